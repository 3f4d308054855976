"""
Chat-related data models

These models define the structure for chat requests, error bodies and the
client-side conversation turns of the Vaulto AI assistant.
"""

import logging
import uuid
from datetime import datetime
from typing import Literal, Optional

import markdown
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

TurnStatus = Literal["pending", "streaming", "done", "errored", "fallback"]
TERMINAL_STATUSES = ("done", "errored", "fallback")


class ChatRequest(BaseModel):
    """Request model for chat interactions"""
    message: str
    context: Optional[str] = None


class ErrorResponse(BaseModel):
    """Error body returned by the chat API before any stream is opened"""
    error: str
    details: Optional[str] = None

    def to_content(self) -> dict:
        return self.model_dump(exclude_none=True)


class TurnClosedError(RuntimeError):
    """Raised when a finished conversation turn is modified"""


class ConversationTurn(BaseModel):
    """
    One question and its (growing) answer in the assistant panel

    The answer is replaced in place as cumulative snapshots arrive. Once the
    stream ends the turn is frozen.
    """
    id: str = Field(default_factory=lambda: uuid.uuid4().hex[:12])
    question: str
    answer: str = ""
    timestamp: datetime = Field(default_factory=datetime.now)
    context: Optional[str] = None
    status: TurnStatus = "pending"
    is_typing: bool = False
    error: Optional[str] = None

    @property
    def is_finished(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def update_answer(self, text: str) -> None:
        if self.is_finished:
            raise TurnClosedError(f"Turn {self.id} is already {self.status}")
        self.answer = text
        self.status = "streaming"

    def finish(self, status: TurnStatus, error: Optional[str] = None) -> None:
        if self.is_finished:
            raise TurnClosedError(f"Turn {self.id} is already {self.status}")
        if status not in TERMINAL_STATUSES:
            raise ValueError(f"Not a terminal status: {status}")
        self.status = status
        self.error = error
        self.is_typing = False

    @property
    def answer_html(self) -> str:
        """Answer rendered from Markdown, plain text if rendering fails"""
        try:
            return markdown.markdown(self.answer, extensions=["nl2br", "fenced_code"])
        except Exception as e:
            logger.warning(f"Markdown conversion failed for turn {self.id}: {e}")
            return self.answer
