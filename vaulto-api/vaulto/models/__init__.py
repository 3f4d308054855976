"""
Data models for Vaulto AI

This module contains all Pydantic models for data validation and serialization.
"""

from .chat import ChatRequest, ConversationTurn, ErrorResponse, TurnClosedError

__all__ = [
    "ChatRequest",
    "ConversationTurn",
    "ErrorResponse",
    "TurnClosedError"
]
