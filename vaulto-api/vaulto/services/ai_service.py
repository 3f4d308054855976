"""
AI Service for Vaulto AI

This service owns the upstream provider and turns a user message into a
stream of cumulative answer snapshots.
"""

import logging
from typing import AsyncIterator, Optional

from ..config import Settings
from ..utils.debug_logger import debug_logger
from .llm_providers import LLMProvider, ProviderNotConfiguredError, build_provider
from .prompt_engineering import build_messages

logger = logging.getLogger(__name__)

# Fixed generation parameters, not user-configurable
MAX_TOKENS = 500
TEMPERATURE = 0.7


class AIServiceUnavailableError(RuntimeError):
    """Raised when a completion is requested from an unconfigured service"""


class AIService:
    """Service for streaming answers from the configured LLM provider"""

    def __init__(self, provider: Optional[LLMProvider], unavailable_reason: Optional[str] = None):
        """
        Args:
            provider: Upstream provider, or None when no credential is configured
            unavailable_reason: Why the provider could not be built
        """
        self.provider = provider
        self.unavailable_reason = unavailable_reason if provider is None else None

    @property
    def is_available(self) -> bool:
        return self.provider is not None

    async def open_answer_stream(
        self,
        message: str,
        context: Optional[str] = None,
        request_id: Optional[str] = None
    ) -> AsyncIterator[str]:
        """
        Open an upstream completion for one stateless request

        Args:
            message: User's question
            context: Optional label for where the question was asked
            request_id: Optional request ID for logging consistency

        Returns:
            Async iterator of text deltas

        Raises:
            AIServiceUnavailableError: If no provider is configured
            Exception: Whatever the provider raises while opening the stream
        """
        if self.provider is None:
            raise AIServiceUnavailableError(self.unavailable_reason or "AI provider is not configured")

        messages = build_messages(message, context)
        debug_logger.log_ai(
            request_id,
            f"Opening {self.provider.name} stream, question: '{message[:50]}{'...' if len(message) > 50 else ''}'"
        )
        return await self.provider.stream_completion(
            messages,
            max_tokens=MAX_TOKENS,
            temperature=TEMPERATURE,
        )

    async def accumulate(self, deltas: AsyncIterator[str]) -> AsyncIterator[str]:
        """Yield the full answer so far after every non-empty delta"""
        full_content = ""
        async for delta in deltas:
            if not delta:
                continue
            full_content += delta
            yield full_content

    async def close(self) -> None:
        if self.provider is not None:
            await self.provider.close()


def create_ai_service(settings: Settings) -> AIService:
    """
    Build the AI service from settings

    A missing credential does not raise here; the service is returned in its
    unavailable state and every chat request is answered with 503.
    """
    try:
        provider = build_provider(settings)
    except ProviderNotConfiguredError as e:
        logger.warning(f"AI service unavailable: {e}")
        return AIService(provider=None, unavailable_reason=str(e))

    logger.info(f"AI service using provider: {provider.name}")
    return AIService(provider=provider)
