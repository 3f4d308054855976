"""
Upstream LLM providers for Vaulto AI

Each provider turns a system + user message list into an asynchronous
sequence of text deltas. Awaiting ``stream_completion`` opens the upstream
stream, so connection and authentication failures surface before the relay
has sent a single byte; iterating the returned iterator yields the deltas.
"""

import asyncio
import json
import re
from abc import ABC, abstractmethod
from typing import Any, AsyncIterator, Dict, List, Optional

import boto3
from openai import AsyncOpenAI
from starlette.concurrency import iterate_in_threadpool, run_in_threadpool

from ..config import Settings


class ProviderNotConfiguredError(RuntimeError):
    """Raised when the upstream provider has no usable credential"""


class LLMProvider(ABC):
    """Abstract base class for streaming completion providers"""

    name = "base"

    @abstractmethod
    async def stream_completion(
        self,
        messages: List[Dict[str, str]],
        max_tokens: int,
        temperature: float
    ) -> AsyncIterator[str]:
        """
        Open a streaming completion

        Args:
            messages: System and user messages
            max_tokens: Cap on generated tokens
            temperature: Sampling temperature

        Returns:
            Async iterator of incremental text deltas
        """

    async def close(self) -> None:
        """Release any open connections"""


class OpenAIProvider(LLMProvider):
    """Chat Completions streaming through the OpenAI SDK"""

    name = "openai"

    def __init__(self, api_key: str, model: str = "gpt-3.5-turbo", base_url: Optional[str] = None):
        self.model = model
        self._client = AsyncOpenAI(api_key=api_key, base_url=base_url)

    async def stream_completion(self, messages, max_tokens, temperature):
        stream = await self._client.chat.completions.create(
            model=self.model,
            messages=messages,
            max_tokens=max_tokens,
            temperature=temperature,
            stream=True,
        )
        return self._iter_deltas(stream)

    async def _iter_deltas(self, stream) -> AsyncIterator[str]:
        try:
            async for chunk in stream:
                if chunk.choices and chunk.choices[0].delta.content:
                    yield chunk.choices[0].delta.content
        finally:
            await stream.close()

    async def close(self) -> None:
        await self._client.close()


class BedrockProvider(LLMProvider):
    """Anthropic models on AWS Bedrock via invoke_model_with_response_stream"""

    name = "bedrock"

    def __init__(self, bedrock_client: Any, model_id: str):
        self.model_id = model_id
        self.bedrock_client = bedrock_client

    def _request_body(self, messages, max_tokens, temperature) -> str:
        system = "\n\n".join(m["content"] for m in messages if m["role"] == "system")
        conversation = [
            {"role": m["role"], "content": m["content"]}
            for m in messages if m["role"] != "system"
        ]
        return json.dumps({
            "anthropic_version": "bedrock-2023-05-31",
            "max_tokens": max_tokens,
            "temperature": temperature,
            "system": system,
            "messages": conversation,
        })

    async def stream_completion(self, messages, max_tokens, temperature):
        # boto3 is blocking, keep it off the event loop
        response = await run_in_threadpool(
            self.bedrock_client.invoke_model_with_response_stream,
            modelId=self.model_id,
            body=self._request_body(messages, max_tokens, temperature),
        )
        return self._iter_deltas(response["body"])

    async def _iter_deltas(self, event_stream) -> AsyncIterator[str]:
        async for event in iterate_in_threadpool(iter(event_stream)):
            chunk = event.get("chunk")
            if not chunk:
                continue
            data = json.loads(chunk["bytes"])
            if data.get("type") == "content_block_delta":
                text = data.get("delta", {}).get("text")
                if text:
                    yield text


# Canned answers from the original assistant panel, used by the offline demo
MOCK_RESPONSES = {
    "stablecoin": "Stablecoins are digital currencies designed to maintain a stable value relative to a reference asset, typically the US dollar. Vaulto offers three types: **vltUSD** (fiat-backed), **vltUSDy** (yield-bearing), and **vltUSDe** (crypto-native). Each provides different risk profiles and yield opportunities.",
    "minting": "Minting stablecoins involves depositing collateral (USD, crypto, or other assets) to create new tokens. The process is transparent and verifiable on-chain. You can mint any amount above the minimum threshold, and the tokens are immediately available for use.",
    "yield": "Yield-bearing assets like **vltUSDy** generate returns through various DeFi strategies including lending, liquidity provision, and automated yield farming. The target yield is 8.5% APY, though actual returns may vary based on market conditions.",
    "tokenized": "Tokenized assets represent real-world assets (stocks, commodities, private companies) as blockchain tokens. This enables fractional ownership, 24/7 trading, and global accessibility while maintaining the underlying asset's value and characteristics.",
    "risks": "Key risks include smart contract vulnerabilities, regulatory changes, market volatility, and counterparty risks. Vaulto implements multiple security measures including audits, insurance, and transparent reserve reporting to mitigate these risks.",
    "swap": "Swapping involves exchanging one asset for another at current market rates. The process is automated through smart contracts, ensuring fair pricing and immediate settlement. All swaps are recorded on-chain for transparency.",
    "default": "I'm here to help with any questions about Vaulto's platform, stablecoin mechanics, tokenized assets, or investment strategies. Feel free to ask about specific features, risks, or how to get started!",
}

MOCK_DISCLAIMER = "\n\n*This is general information, not financial advice.*"

# Checked in order, first match wins
MOCK_KEYWORDS = [
    (("stablecoin", "vltusd"), "stablecoin"),
    (("mint",), "minting"),
    (("yield", "return"), "yield"),
    (("tokenized", "token"), "tokenized"),
    (("risk", "safe"), "risks"),
    (("swap", "trade"), "swap"),
]


class MockProvider(LLMProvider):
    """Offline provider streaming canned answers word by word"""

    name = "mock"

    def __init__(self, delay: float = 0.03):
        self.delay = delay

    def pick_response(self, question: str) -> str:
        question = question.lower()
        for keywords, key in MOCK_KEYWORDS:
            if any(word in question for word in keywords):
                return MOCK_RESPONSES[key]
        return MOCK_RESPONSES["default"]

    async def stream_completion(self, messages, max_tokens, temperature):
        question = next((m["content"] for m in reversed(messages) if m["role"] == "user"), "")
        return self._iter_deltas(self.pick_response(question) + MOCK_DISCLAIMER)

    async def _iter_deltas(self, text: str) -> AsyncIterator[str]:
        for piece in re.findall(r"\S+\s*|\s+", text):
            if self.delay:
                await asyncio.sleep(self.delay)
            yield piece


def build_provider(settings: Settings) -> LLMProvider:
    """
    Construct the configured upstream provider

    Raises:
        ProviderNotConfiguredError: If the provider is unknown or has no credential
    """
    provider = settings.ai_provider

    if provider == "openai":
        if not settings.openai_api_key:
            raise ProviderNotConfiguredError("OPENAI_API_KEY is not set")
        return OpenAIProvider(
            api_key=settings.openai_api_key,
            model=settings.openai_model,
            base_url=settings.openai_base_url,
        )

    if provider == "bedrock":
        session = boto3.Session(region_name=settings.aws_region)
        if session.get_credentials() is None:
            raise ProviderNotConfiguredError("No AWS credentials available for Bedrock")
        return BedrockProvider(
            bedrock_client=session.client("bedrock-runtime"),
            model_id=settings.bedrock_model_id,
        )

    if provider == "mock":
        return MockProvider()

    raise ProviderNotConfiguredError(f"Unknown AI_PROVIDER: {provider!r}")
