"""
Chat Service

Validates chat requests and relays the upstream completion to the client as
a stream of cumulative-content frames.
"""

import logging
import time
from typing import Any, AsyncIterator, Optional

from ..models.chat import ChatRequest
from ..protocol import encode_content_frame, encode_done_frame, encode_error_frame
from ..utils.debug_logger import debug_logger
from .ai_service import AIService

logger = logging.getLogger(__name__)

MESSAGE_REQUIRED = "Message is required"
STREAM_FAILED = "The AI response was interrupted. Please try again."


class ChatValidationError(ValueError):
    """Raised when a chat request body is not acceptable"""


class ChatService:
    """Service for relaying chat completions to the browser"""

    def __init__(self, ai_service: AIService):
        self.ai_service = ai_service

    @property
    def is_available(self) -> bool:
        return self.ai_service.is_available

    def validate(self, payload: Any) -> ChatRequest:
        """
        Validate a decoded JSON body

        Args:
            payload: Decoded request body

        Returns:
            ChatRequest with the message and optional context

        Raises:
            ChatValidationError: If the message is missing or blank
        """
        if not isinstance(payload, dict):
            raise ChatValidationError(MESSAGE_REQUIRED)

        message = payload.get("message")
        if not isinstance(message, str) or not message.strip():
            raise ChatValidationError(MESSAGE_REQUIRED)

        context = payload.get("context")
        if context is not None and not isinstance(context, str):
            context = str(context)

        return ChatRequest(message=message, context=context)

    async def open_stream(self, request_id: Optional[str], chat_request: ChatRequest) -> AsyncIterator[bytes]:
        """
        Open the upstream completion and return the frame generator

        Failures while opening propagate to the caller, before any frame has
        been produced.
        """
        deltas = await self.ai_service.open_answer_stream(
            chat_request.message,
            chat_request.context,
            request_id=request_id,
        )
        debug_logger.log_relay(request_id, "Upstream stream opened")
        return self.relay_frames(request_id, deltas)

    async def relay_frames(self, request_id: Optional[str], deltas: AsyncIterator[str]) -> AsyncIterator[bytes]:
        """
        Re-frame upstream deltas for the client

        Yields one content frame with the cumulative answer per non-empty
        delta, then a single [DONE] frame. If the upstream fails part way the
        stream ends with an error frame instead and [DONE] is never sent.
        """
        started = time.perf_counter()
        frames = 0
        content = ""
        answers = self.ai_service.accumulate(deltas)
        try:
            async for content in answers:
                frames += 1
                yield encode_content_frame(content)
        except Exception as e:
            logger.error(f"Streaming error after {frames} frames [{request_id}]: {e}")
            yield encode_error_frame(STREAM_FAILED)
            return
        finally:
            await answers.aclose()
            aclose = getattr(deltas, "aclose", None)
            if aclose is not None:
                await aclose()

        yield encode_done_frame()
        debug_logger.log_stream_summary(request_id, frames, len(content), started)
