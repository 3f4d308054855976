"""
Services layer for Vaulto AI

This module contains the business logic services behind the chat relay.
"""

from .chat_service import ChatService, ChatValidationError
from .ai_service import AIService, create_ai_service
from .llm_providers import LLMProvider, ProviderNotConfiguredError, build_provider

__all__ = [
    "ChatService",
    "ChatValidationError",
    "AIService",
    "create_ai_service",
    "LLMProvider",
    "ProviderNotConfiguredError",
    "build_provider"
]
