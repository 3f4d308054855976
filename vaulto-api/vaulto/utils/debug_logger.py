"""
Request-scoped debug output

Prints one line per event, tagged with the component, the time since the
request started and the request ID:

    [DEBUG] [RELAY] [0.412s] [3f2a9c1d] Upstream stream opened

Enabled by DEBUG_LOGGING_DEV locally and DEBUG_LOGGING_PROD on Lambda.
"""

import os
import time
from typing import Optional

from fastapi import Request


def _flag_from_environment() -> bool:
    on_lambda = os.getenv("AWS_LAMBDA_FUNCTION_NAME") is not None
    flag = "DEBUG_LOGGING_PROD" if on_lambda else "DEBUG_LOGGING_DEV"
    return os.getenv(flag, "false").lower() == "true"


class DebugLogger:
    """Debug printer for the relay request path"""

    def __init__(self, enabled: Optional[bool] = None):
        self.debug_enabled = _flag_from_environment() if enabled is None else enabled

    def format(self, request_id: Optional[str], service: str, message: str,
               request: Optional[Request] = None, **fields) -> str:
        parts = ["[DEBUG]", f"[{service}]"]

        started = getattr(request.state, "start_time", None) if request is not None else None
        if started is not None:
            parts.append(f"[{time.perf_counter() - started:.3f}s]")
        if request_id:
            parts.append(f"[{request_id}]")

        parts.append(message)
        parts.extend(f"{key}={value}" for key, value in fields.items())
        return " ".join(parts)

    def log(self, request_id: Optional[str], service: str, message: str,
            request: Optional[Request] = None, **fields) -> None:
        if self.debug_enabled:
            print(self.format(request_id, service, message, request, **fields))

    def log_route(self, request_id: Optional[str], message: str, request: Optional[Request] = None, **fields):
        self.log(request_id, "ROUTE", message, request, **fields)

    def log_relay(self, request_id: Optional[str], message: str, request: Optional[Request] = None, **fields):
        self.log(request_id, "RELAY", message, request, **fields)

    def log_ai(self, request_id: Optional[str], message: str, request: Optional[Request] = None, **fields):
        self.log(request_id, "AI", message, request, **fields)

    def log_timing(self, request_id: Optional[str], operation: str, duration_ms: float, **fields):
        self.log(request_id, "TIMING", f"{operation} completed in {duration_ms:.3f}ms", **fields)

    def log_stream_summary(self, request_id: Optional[str], frames: int, chars: int, started: float):
        """Summarise a finished relay: frame count, answer length and duration"""
        self.log_timing(
            request_id,
            "Stream relay",
            (time.perf_counter() - started) * 1000,
            frames=frames,
            chars=chars
        )


debug_logger = DebugLogger()
