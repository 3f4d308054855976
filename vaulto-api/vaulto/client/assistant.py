"""
Assistant session

Client-side state of the assistant panel: the list of conversation turns and
the typing indicator. Every question streams into its own turn object, so two
questions in flight at once never overwrite each other's answers.
"""

import asyncio
import logging
from typing import List, Optional, Set

from ..models.chat import ConversationTurn
from .stream_consumer import ChatStreamConsumer, ChatStreamError, StreamOutcome

logger = logging.getLogger(__name__)


class AssistantSession:
    """Conversation turns for one open assistant panel"""

    def __init__(self, consumer: ChatStreamConsumer, context: Optional[str] = None):
        self.consumer = consumer
        self.context = context
        self.turns: List[ConversationTurn] = []
        self._tasks: Set[asyncio.Task] = set()

    @property
    def is_typing(self) -> bool:
        return any(turn.is_typing for turn in self.turns)

    async def ask(self, question: str) -> Optional[ConversationTurn]:
        """
        Ask a question and stream the answer into a new turn

        Returns:
            The finished turn, or None for a blank question
        """
        if not question or not question.strip():
            return None

        turn = ConversationTurn(question=question.strip(), context=self.context, is_typing=True)
        self.turns.append(turn)

        task = asyncio.create_task(self._stream_into(turn))
        self._tasks.add(task)
        try:
            await asyncio.wait({task})
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            self._tasks.discard(task)

        if not task.cancelled():
            task.result()
        return turn

    async def _stream_into(self, turn: ConversationTurn) -> None:
        try:
            outcome = await self.consumer.stream_chat(turn.question, turn.update_answer, context=turn.context)
        except asyncio.CancelledError:
            if not turn.is_finished:
                turn.finish("errored", error="cancelled")
            raise
        except ChatStreamError as e:
            # The turn already shows the user-facing message
            logger.warning(f"Answer for turn {turn.id} failed: {e}")
            turn.finish("errored", error=str(e))
        except Exception as e:
            if not turn.is_finished:
                turn.finish("errored", error=f"{type(e).__name__}: {e}")
            raise
        else:
            turn.finish("fallback" if outcome is StreamOutcome.FALLBACK else "done")

    async def close(self) -> None:
        """Abort every answer still streaming, closing its connection"""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
