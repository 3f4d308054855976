"""
Pytest configuration and shared fixtures for Vaulto AI API tests.
"""

import pytest
import httpx
from fastapi.testclient import TestClient

from vaulto.config import Settings
from vaulto.protocol import encode_content_frame, encode_done_frame
from vaulto.main import app
from vaulto.services import AIService, ChatService
from vaulto.services.llm_providers import LLMProvider
from vaulto.web.routes import get_chat_service


class FakeProvider(LLMProvider):
    """Scripted upstream provider that records how it was called"""

    name = "fake"

    def __init__(self, deltas=None, fail_after=None, open_error=None):
        self.deltas = list(deltas if deltas is not None else ["Hello", " world", "!"])
        self.fail_after = fail_after
        self.open_error = open_error
        self.calls = []
        self.closed = False

    async def stream_completion(self, messages, max_tokens, temperature):
        self.calls.append({"messages": messages, "max_tokens": max_tokens, "temperature": temperature})
        if self.open_error:
            raise self.open_error
        return self._iter_deltas()

    async def _iter_deltas(self):
        for index, delta in enumerate(self.deltas):
            if self.fail_after is not None and index >= self.fail_after:
                raise RuntimeError("upstream connection reset")
            yield delta

    async def close(self):
        self.closed = True


@pytest.fixture
def test_settings():
    """Settings with an OpenAI credential, independent of the environment."""
    return Settings(
        ai_provider="openai",
        openai_api_key="sk-test",
        openai_model="gpt-3.5-turbo",
        openai_base_url=None,
        aws_region="us-east-1",
        bedrock_model_id="anthropic.claude-3-haiku-20240307-v1:0",
        debug=False,
        posthog_api_key=None,
        api_url="http://testserver"
    )


@pytest.fixture
def fake_provider():
    return FakeProvider()


@pytest.fixture
def chat_service(fake_provider):
    return ChatService(AIService(provider=fake_provider))


@pytest.fixture
def unconfigured_chat_service():
    return ChatService(AIService(provider=None, unavailable_reason="OPENAI_API_KEY is not set"))


@pytest.fixture
def override_chat_service():
    """Install a chat service on the app for the duration of a test."""
    def install(service):
        app.dependency_overrides[get_chat_service] = lambda: service
        return service

    yield install
    app.dependency_overrides.pop(get_chat_service, None)


@pytest.fixture
def api_client(chat_service, override_chat_service):
    """TestClient wired to the fake provider."""
    override_chat_service(chat_service)
    return TestClient(app)


@pytest.fixture
def asgi_http_client():
    """httpx client that talks to the app in-process."""
    def build():
        return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://testserver")
    return build


def _frames_for(*contents, done=True):
    """Expected wire bytes for a sequence of cumulative contents."""
    body = b"".join(encode_content_frame(content) for content in contents)
    if done:
        body += encode_done_frame()
    return body


@pytest.fixture
def wire_frames():
    return _frames_for


@pytest.fixture
def provider_factory():
    return FakeProvider
