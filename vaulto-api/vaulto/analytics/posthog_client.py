"""
PostHog Analytics Client for Vaulto AI

This module provides PostHog integration with lazy initialization.
Only initializes when running in AWS Lambda production environment.
"""

import os
import logging
from typing import Optional, Dict, Any

from ..config import get_settings

logger = logging.getLogger(__name__)

# Global PostHog client instance (lazy initialized)
_posthog_client: Optional[Any] = None


def _is_lambda_environment() -> bool:
    """Check if we're running in AWS Lambda environment."""
    return bool(os.getenv("AWS_EXECUTION_ENV"))


def _is_test_environment() -> bool:
    """Check if we're running under pytest."""
    return os.getenv("PYTEST_CURRENT_TEST") is not None


def _initialize_posthog() -> Optional[Any]:
    """
    Initialize PostHog client if running in Lambda environment.

    Returns:
        PostHog module configured as a client, or None if disabled
    """
    if not _is_lambda_environment():
        logger.info("PostHog disabled: Not running in AWS Lambda environment")
        return None

    api_key = get_settings().posthog_api_key
    if not api_key:
        logger.warning("PostHog disabled: POSTHOG_API_KEY not set")
        return None

    try:
        import posthog

        posthog.api_key = api_key
        posthog.host = os.getenv("POSTHOG_HOST", "https://app.posthog.com")

        # Lambda freezes between invocations, send synchronously
        posthog.sync_mode = True
        posthog.debug = get_settings().debug

        logger.info("PostHog client initialized: host=%s, debug=%s", posthog.host, posthog.debug)
        return posthog

    except Exception as e:
        logger.error(f"PostHog initialization failed: {e}")
        return None


def get_posthog_client() -> Optional[Any]:
    """
    Get PostHog client instance with lazy initialization.

    Returns:
        PostHog client instance or None if disabled
    """
    global _posthog_client

    if _posthog_client is None:
        _posthog_client = _initialize_posthog()

    return _posthog_client


def capture_event(event_name: str, properties: Optional[Dict[str, Any]] = None, distinct_id: Optional[str] = None) -> bool:
    """
    Safely capture an event with PostHog.

    Args:
        event_name: Name of the event to capture
        properties: Optional event properties dictionary
        distinct_id: Optional distinct user ID (defaults to 'anonymous')

    Returns:
        bool: True if event was captured successfully, False otherwise
    """
    if _is_test_environment():
        logger.debug(f"PostHog disabled in test environment: Event '{event_name}' not captured")
        return False

    client = get_posthog_client()
    if not client:
        logger.debug(f"PostHog disabled: Event '{event_name}' not captured")
        return False

    try:
        event_properties = dict(properties or {})
        event_properties.update({
            "lambda_function": os.getenv("AWS_LAMBDA_FUNCTION_NAME", "unknown"),
            "aws_region": os.getenv("AWS_REGION", "unknown"),
        })

        client.capture(
            distinct_id=distinct_id or "anonymous",
            event=event_name,
            properties=event_properties
        )
        logger.debug(f"PostHog event captured: '{event_name}'")
        return True

    except Exception as e:
        logger.error(f"Failed to capture PostHog event '{event_name}': {e}")
        return False


def flush_events() -> bool:
    """
    Flush pending PostHog events.

    Returns:
        bool: True if events were flushed successfully, False otherwise
    """
    client = get_posthog_client()
    if not client:
        return False

    try:
        client.flush()
        return True
    except Exception as e:
        logger.error(f"Failed to flush PostHog events: {e}")
        return False
