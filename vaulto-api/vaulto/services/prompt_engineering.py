"""
Prompt Engineering Module

Holds the fixed Vaulto AI persona and builds the message list sent to the
upstream model. The system prompt is owned by the server and resent on every
request; nothing the user sends can change it.
"""

from typing import Dict, List, Optional

SYSTEM_PROMPT = """You are Vaulto AI, an expert investment assistant for the Vaulto platform. Vaulto is a DeFi platform that offers:

## Stablecoins
- vltUSD: Fiat-backed stablecoin
- vltUSDy: Yield-bearing stablecoin (target 8.5% APY)
- vltUSDe: Crypto-native stablecoin

## Tokenized Assets
Real-world assets like stocks, commodities, and private companies represented as blockchain tokens

## Investment Strategies
Automated yield farming, liquidity provision, and DeFi strategies

## Key Features
Minting, swapping, vault management, and transparent on-chain operations

Instructions:
- Always format your responses using Markdown for better readability
- Use bold for important terms and concepts
- Use bullet points and numbered lists for structured information
- Use code blocks for technical terms or addresses
- Provide helpful, accurate, and educational responses about investments, DeFi, stablecoins, and tokenized assets
- Be conversational but professional
- If asked about specific Vaulto features, explain them clearly with proper formatting
- If asked about general investment advice, provide balanced guidance while noting that this is not financial advice
- Structure your responses with clear headings and organized information"""

# Starter questions offered by the assistant page
QUICK_QUESTIONS = [
    "What are the best investment opportunities right now?",
    "How do stablecoins work?",
    "What's the difference between tokenized stocks and regular stocks?",
    "Should I invest in AI companies?",
    "How do I choose between different stablecoin types?",
    "What are the risks of tokenized assets?",
]


def build_user_content(message: str, context: Optional[str] = None) -> str:
    """
    Build the user turn sent upstream

    Args:
        message: The user's question
        context: Optional label for where the question was asked
            (e.g. "vltUSDy stablecoin card")

    Returns:
        User message content, prefixed with a context line when one is given
    """
    message = message.strip()
    if context and context.strip():
        return f"Context: {context.strip()}\n\n{message}"
    return message


def build_messages(message: str, context: Optional[str] = None) -> List[Dict[str, str]]:
    """Build the system + user message list for one stateless request"""
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": build_user_content(message, context)},
    ]
