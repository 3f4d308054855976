"""
Web routes for Vaulto AI

This module contains the FastAPI routes of the chat relay.
"""

import functools
import inspect
import logging
import uuid
from functools import lru_cache
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, StreamingResponse

from ..analytics.posthog_client import capture_event, flush_events
from ..config import get_settings
from ..models.chat import ErrorResponse
from ..protocol import STREAM_HEADERS, STREAM_MEDIA_TYPE
from ..services import ChatService, ChatValidationError, create_ai_service
from ..services.prompt_engineering import QUICK_QUESTIONS
from ..utils.debug_logger import debug_logger

logger = logging.getLogger(__name__)

router = APIRouter()

UNAVAILABLE_ERROR = "AI service is not available. Please check configuration."
UPSTREAM_ERROR = "Failed to get AI response"


@lru_cache(maxsize=1)
def get_chat_service() -> ChatService:
    """Build the process-wide chat service from settings"""
    return ChatService(create_ai_service(get_settings()))


def error_response(status_code: int, error: str, details: Optional[str] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=error, details=details).to_content()
    )


def anonymize_ip(client_ip: Optional[str]) -> Optional[str]:
    """Zero the last octet of an IPv4 address, leave anything else unchanged"""
    if not client_ip:
        return None
    ip_parts = client_ip.split(".")
    if len(ip_parts) == 4:
        ip_parts[-1] = "0"
        return ".".join(ip_parts)
    return client_ip


def track_event(event_name: str):
    """
    Decorator to capture a PostHog event when a route is hit.
    Works for sync and async routes. Properties placed on
    request.state.analytics by the handler are included.
    """
    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            if inspect.iscoroutinefunction(func):
                response = await func(*args, **kwargs)
            else:
                response = func(*args, **kwargs)

            try:
                request: Request | None = next((a for a in args if isinstance(a, Request)), None)
                if not request:
                    request = kwargs.get('request')

                # Skip capture if no Request object found
                if not request:
                    return response

                user_agent = request.headers.get("user-agent", "")
                if len(user_agent) > 300:
                    user_agent = user_agent[:300] + "..."

                props = {
                    "path": str(request.url.path),
                    "method": request.method,
                    "status_code": getattr(response, "status_code", None),
                    "user_agent": user_agent,
                    "ip_anonymized": anonymize_ip(request.client.host if request.client else None),
                }
                props.update(getattr(request.state, "analytics", {}))

                distinct_id = getattr(request.state, "request_id", None)
                if capture_event(event_name=event_name, properties=props, distinct_id=distinct_id):
                    flush_events()
            except Exception as e:
                logger.warning(f"PostHog capture failed for {event_name}: {e}")

            return response
        return wrapper
    return decorator


@router.post("/api/chat")
@track_event("chat_message")
async def chat(request: Request, chat_service: ChatService = Depends(get_chat_service)):
    """
    Relay a chat message to the upstream model and stream the answer

    Body: {"message": str, "context": str (optional)}

    The response is text/plain made of ``data: {"content": ...}`` frames,
    each carrying the full answer so far, terminated by ``data: [DONE]``.
    """
    request_id = getattr(request.state, 'request_id', str(uuid.uuid4())[:8])

    try:
        payload = await request.json()
    except ValueError as e:
        debug_logger.log_route(request_id, f"Invalid JSON body: {e}", request)
        return error_response(400, "Invalid JSON body")

    try:
        chat_request = chat_service.validate(payload)
    except ChatValidationError as e:
        debug_logger.log_route(request_id, f"Rejected chat request: {e}", request)
        return error_response(400, str(e))

    request.state.analytics = {
        "message_length": len(chat_request.message),
        "context": chat_request.context[:100] if chat_request.context else None,
    }
    debug_logger.log_route(
        request_id,
        f"Received message: '{chat_request.message[:50]}{'...' if len(chat_request.message) > 50 else ''}', context: {chat_request.context}",
        request
    )

    if not chat_service.is_available:
        logger.warning(f"Chat request {request_id} rejected: AI provider not configured")
        return error_response(503, UNAVAILABLE_ERROR)

    try:
        frames = await chat_service.open_stream(request_id, chat_request)
    except Exception as e:
        logger.error(f"Upstream API error [{request_id}]: {e}")
        return error_response(500, UPSTREAM_ERROR, details=str(e) or type(e).__name__)

    return StreamingResponse(frames, media_type=STREAM_MEDIA_TYPE, headers=STREAM_HEADERS)


@router.get("/api/chat/suggestions")
def chat_suggestions():
    """Starter questions for the assistant panel"""
    return {"questions": QUICK_QUESTIONS}
