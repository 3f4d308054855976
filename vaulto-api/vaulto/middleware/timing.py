"""
Request timing middleware

Assigns a request ID, captures a high-resolution start time for each request
and logs how long it took until the response started. For streamed chat
answers that is the time to the first byte, not the full stream.
"""

import time
import logging
import traceback
import uuid
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse
from ..utils.debug_logger import debug_logger

logger = logging.getLogger(__name__)


class TimingMiddleware(BaseHTTPMiddleware):
    """Middleware to capture request timing and tag requests with an ID"""

    async def dispatch(self, request: Request, call_next):
        try:
            request.state.start_time = time.perf_counter()
            if not hasattr(request.state, 'request_id'):
                request.state.request_id = request.headers.get("x-request-id") or str(uuid.uuid4())[:8]

            debug_logger.log_route(
                request.state.request_id,
                f"Request started: {request.method} {request.url.path}",
                request
            )

            response = await call_next(request)

            total_time_ms = (time.perf_counter() - request.state.start_time) * 1000
            response.headers["X-Request-ID"] = request.state.request_id
            debug_logger.log_route(
                request.state.request_id,
                f"Response started: {response.status_code} in {total_time_ms:.3f}ms",
                request
            )
            return response

        except Exception as e:
            logger.error(f"Exception in timing middleware for {request.url.path}: {type(e).__name__}: {e}")
            logger.error(f"Traceback: {traceback.format_exc()}")
            return JSONResponse(
                status_code=500,
                content={"error": "Internal server error", "details": type(e).__name__}
            )
