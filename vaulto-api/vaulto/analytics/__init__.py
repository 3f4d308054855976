"""
Analytics module for Vaulto AI

Thin wrapper around PostHog event capture.
"""

from .posthog_client import get_posthog_client, capture_event, flush_events

__all__ = ["get_posthog_client", "capture_event", "flush_events"]
