"""
Stream consumer for the Vaulto AI chat relay

Posts a question to the relay endpoint and decodes the streamed answer as it
arrives, handing every cumulative snapshot to a callback. The callback must
replace whatever it displayed before: each frame already holds the whole
answer so far.

Outcomes of one call:

- ``DONE``: the ``[DONE]`` sentinel was received
- ``FALLBACK``: the relay is missing or unconfigured (404/503); the callback
  got the unavailability message once and nothing is raised
- error: the callback gets the apology message and a ``ChatStreamError`` is
  raised carrying the technical cause

There is no retry and no timeout unless the caller passes one. Cancelling the
awaiting task closes the HTTP connection.
"""

import logging
from enum import Enum
from typing import Callable, Optional

import httpx

from ..config import get_settings
from ..protocol import FrameDecoder, StreamEvent

logger = logging.getLogger(__name__)

CHAT_PATH = "/api/chat"
FALLBACK_STATUSES = (404, 503)

UNAVAILABLE_MESSAGE = (
    "The AI assistant is currently unavailable. "
    "Please check back later or browse the platform guides in the meantime."
)
ERROR_MESSAGE = "Sorry, I encountered an error while answering. Please try again in a moment."


class StreamOutcome(str, Enum):
    DONE = "done"
    FALLBACK = "fallback"


class ChatStreamError(Exception):
    """Base class for failures while fetching or reading a chat stream"""


class ChatFetchError(ChatStreamError):
    """The relay answered with a non-success status"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class StreamInterruptedError(ChatStreamError):
    """The stream ended without the [DONE] sentinel"""


class UpstreamStreamError(ChatStreamError):
    """The relay reported an upstream failure part way through the answer"""


class ChatStreamConsumer:
    """Client for the streaming chat relay"""

    def __init__(
        self,
        base_url: Optional[str] = None,
        context: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None
    ):
        """
        Args:
            base_url: Relay base URL, defaults to VAULTO_API_URL
            context: Default context label sent with every question
            client: Existing httpx client to use, left open on close
            timeout: Transport timeout in seconds, None waits forever
        """
        self.base_url = base_url or get_settings().api_url
        self.context = context
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "ChatStreamConsumer":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def stream_chat(
        self,
        message: str,
        on_chunk: Callable[[str], None],
        context: Optional[str] = None
    ) -> StreamOutcome:
        """
        Ask one question and stream the answer into ``on_chunk``

        Args:
            message: The user's question
            on_chunk: Called with the cumulative answer text after every frame
            context: Context label, overrides the consumer default

        Returns:
            StreamOutcome.DONE or StreamOutcome.FALLBACK

        Raises:
            ChatStreamError: On HTTP errors, transport failures, upstream
                failures or a stream that ends without [DONE]
        """
        payload = {"message": message}
        context = context if context is not None else self.context
        if context:
            payload["context"] = context

        try:
            async with self._get_client().stream("POST", CHAT_PATH, json=payload) as response:
                if response.status_code in FALLBACK_STATUSES:
                    logger.warning(f"Chat relay unavailable: HTTP {response.status_code}")
                    on_chunk(UNAVAILABLE_MESSAGE)
                    return StreamOutcome.FALLBACK

                if not response.is_success:
                    raise ChatFetchError(
                        f"Failed to fetch chat response: HTTP {response.status_code}",
                        status_code=response.status_code
                    )

                await self._consume(response, on_chunk)
                return StreamOutcome.DONE

        except ChatStreamError as e:
            logger.error(f"Chat stream failed: {e}")
            on_chunk(ERROR_MESSAGE)
            raise
        except (httpx.HTTPError, UnicodeDecodeError) as e:
            logger.error(f"Chat stream transport error: {type(e).__name__}: {e}")
            on_chunk(ERROR_MESSAGE)
            raise ChatStreamError(f"{type(e).__name__}: {e}") from e

    async def _consume(self, response: httpx.Response, on_chunk: Callable[[str], None]) -> None:
        decoder = FrameDecoder()

        async for data in response.aiter_bytes():
            for event in decoder.feed(data):
                self._dispatch(event, on_chunk)
            if decoder.finished:
                # Anything after the terminal frame is ignored
                return

        for event in decoder.finish():
            self._dispatch(event, on_chunk)

        if not decoder.completed:
            raise StreamInterruptedError("Chat stream closed before [DONE]")

    def _dispatch(self, event: StreamEvent, on_chunk: Callable[[str], None]) -> None:
        if event.kind == "content":
            on_chunk(event.content)
        elif event.kind == "error":
            raise UpstreamStreamError(event.error or "Upstream error")
