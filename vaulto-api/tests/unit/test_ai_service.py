"""
Unit tests for AIService functionality.

This module tests provider wiring, the unconfigured state and the
accumulation of upstream deltas into cumulative answers.
"""

import pytest
from unittest.mock import patch

from vaulto.services.ai_service import (
    MAX_TOKENS,
    TEMPERATURE,
    AIService,
    AIServiceUnavailableError,
    create_ai_service,
)
from vaulto.services.llm_providers import OpenAIProvider
from vaulto.services.prompt_engineering import SYSTEM_PROMPT


async def collect(iterator):
    return [item async for item in iterator]


class TestAIService:
    """Test class for AIService functionality."""

    @pytest.fixture
    def ai_service(self, fake_provider):
        return AIService(provider=fake_provider)

    def test_available_with_provider(self, ai_service):
        assert ai_service.is_available
        assert ai_service.unavailable_reason is None

    def test_unavailable_without_provider(self):
        service = AIService(provider=None, unavailable_reason="OPENAI_API_KEY is not set")

        assert not service.is_available
        assert service.unavailable_reason == "OPENAI_API_KEY is not set"

    @pytest.mark.asyncio
    async def test_open_answer_stream_uses_fixed_parameters(self, ai_service, fake_provider):
        deltas = await ai_service.open_answer_stream("How do stablecoins work?", context="Mint page")
        await collect(deltas)

        call = fake_provider.calls[0]
        assert call["max_tokens"] == MAX_TOKENS == 500
        assert call["temperature"] == TEMPERATURE == 0.7
        assert call["messages"][0] == {"role": "system", "content": SYSTEM_PROMPT}
        assert call["messages"][1]["role"] == "user"
        assert "How do stablecoins work?" in call["messages"][1]["content"]
        assert "Mint page" in call["messages"][1]["content"]

    @pytest.mark.asyncio
    async def test_open_answer_stream_unconfigured_raises(self):
        service = AIService(provider=None, unavailable_reason="no key")

        with pytest.raises(AIServiceUnavailableError, match="no key"):
            await service.open_answer_stream("hello")

    @pytest.mark.asyncio
    async def test_open_errors_propagate(self, provider_factory):
        provider = provider_factory(open_error=ConnectionError("network unreachable"))
        service = AIService(provider=provider)

        with pytest.raises(ConnectionError):
            await service.open_answer_stream("hello")

    @pytest.mark.asyncio
    async def test_accumulate_yields_cumulative_text(self, ai_service, provider_factory):
        deltas = await provider_factory(["Hello", "", " world", "!"]).stream_completion([], 10, 0.5)

        answers = await collect(ai_service.accumulate(deltas))

        assert answers == ["Hello", "Hello world", "Hello world!"]

    @pytest.mark.asyncio
    async def test_close_closes_provider(self, ai_service, fake_provider):
        await ai_service.close()
        assert fake_provider.closed

    @pytest.mark.asyncio
    async def test_close_without_provider_is_noop(self):
        await AIService(provider=None).close()


class TestCreateAIService:
    """Building the service from settings."""

    def test_configured_openai(self, test_settings):
        service = create_ai_service(test_settings)

        assert service.is_available
        assert isinstance(service.provider, OpenAIProvider)

    def test_missing_credential_returns_unavailable_service(self, test_settings):
        settings = test_settings.model_copy(update={"openai_api_key": None})

        service = create_ai_service(settings)

        assert not service.is_available
        assert "OPENAI_API_KEY" in service.unavailable_reason

    def test_unknown_provider_returns_unavailable_service(self, test_settings):
        settings = test_settings.model_copy(update={"ai_provider": "carrier-pigeon"})

        service = create_ai_service(settings)

        assert not service.is_available
        assert "carrier-pigeon" in service.unavailable_reason

    def test_missing_aws_credentials_for_bedrock(self, test_settings):
        settings = test_settings.model_copy(update={"ai_provider": "bedrock"})

        with patch("vaulto.services.llm_providers.boto3.Session") as mock_session:
            mock_session.return_value.get_credentials.return_value = None
            service = create_ai_service(settings)

        assert not service.is_available
