"""
Vaulto AI FastAPI Application

This is the main FastAPI application entry point.
It sets up the app, middleware, and includes the chat relay routes.
"""

import logging
from fastapi import Depends, FastAPI

from .config import get_settings
from .services import ChatService
from .web.routes import router as web_router, get_chat_service
from .middleware.timing import TimingMiddleware
from .analytics import get_posthog_client, capture_event

logging.basicConfig(level=logging.DEBUG if get_settings().debug else logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Vaulto AI API",
    version="0.1.0",
    description="Streaming relay between the Vaulto assistant panel and the upstream language model"
)

app.add_middleware(TimingMiddleware)

app.include_router(web_router)


@app.on_event("startup")
async def startup_event():
    """Build the chat service and capture server start event"""
    chat_service = get_chat_service()
    if chat_service.is_available:
        logger.info(f"AI assistant ready: provider={chat_service.ai_service.provider.name}")
    else:
        logger.warning(f"AI assistant unavailable: {chat_service.ai_service.unavailable_reason}")

    if get_posthog_client():
        capture_event("server_start", {
            "app_version": app.version,
            "ai_available": chat_service.is_available
        })


@app.on_event("shutdown")
async def shutdown_event():
    """Close the upstream provider's connections"""
    await get_chat_service().ai_service.close()


@app.get("/health")
def health_check(chat_service: ChatService = Depends(get_chat_service)):
    """Health check endpoint for monitoring"""
    return {
        "status": "healthy",
        "service": "vaulto-ai-api",
        "ai_available": chat_service.is_available
    }
