"""
Client side of the Vaulto AI chat relay

Stream consumer and the assistant panel state built on it.
"""

from .stream_consumer import (
    ChatStreamConsumer,
    ChatStreamError,
    ChatFetchError,
    StreamInterruptedError,
    UpstreamStreamError,
    StreamOutcome,
    UNAVAILABLE_MESSAGE,
    ERROR_MESSAGE
)
from .assistant import AssistantSession

__all__ = [
    "ChatStreamConsumer",
    "ChatStreamError",
    "ChatFetchError",
    "StreamInterruptedError",
    "UpstreamStreamError",
    "StreamOutcome",
    "UNAVAILABLE_MESSAGE",
    "ERROR_MESSAGE",
    "AssistantSession"
]
