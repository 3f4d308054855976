"""
Unit tests for the assistant panel session state.
"""

import asyncio

import pytest

from vaulto.client import (
    ERROR_MESSAGE,
    UNAVAILABLE_MESSAGE,
    AssistantSession,
    StreamInterruptedError,
    StreamOutcome,
)


class ScriptedConsumer:
    """Stands in for ChatStreamConsumer, one script per question"""

    def __init__(self, scripts):
        self.scripts = scripts
        self.calls = []

    async def stream_chat(self, message, on_chunk, context=None):
        self.calls.append((message, context))
        return await self.scripts[message](on_chunk)


def answer(*snapshots, gate=None):
    async def run(on_chunk):
        for index, snapshot in enumerate(snapshots):
            on_chunk(snapshot)
            if gate is not None and index == 0:
                await gate.wait()
            await asyncio.sleep(0)
        return StreamOutcome.DONE
    return run


async def fallback(on_chunk):
    on_chunk(UNAVAILABLE_MESSAGE)
    return StreamOutcome.FALLBACK


async def interrupted(on_chunk):
    on_chunk("Partial")
    on_chunk(ERROR_MESSAGE)
    raise StreamInterruptedError("Chat stream closed before [DONE]")


class TestAssistantSession:
    """Turns, statuses and the typing indicator."""

    @pytest.mark.asyncio
    async def test_answer_fills_turn(self):
        consumer = ScriptedConsumer({"What is vltUSD?": answer("vltUSD", "vltUSD is a stablecoin")})
        session = AssistantSession(consumer, context="AI search query")

        turn = await session.ask("  What is vltUSD?  ")

        assert turn.question == "What is vltUSD?"
        assert turn.answer == "vltUSD is a stablecoin"
        assert turn.status == "done"
        assert not session.is_typing
        assert consumer.calls == [("What is vltUSD?", "AI search query")]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("question", ["", "   ", "\n"])
    async def test_blank_question_is_ignored(self, question):
        session = AssistantSession(ScriptedConsumer({}))

        assert await session.ask(question) is None
        assert session.turns == []

    @pytest.mark.asyncio
    async def test_fallback_status(self):
        session = AssistantSession(ScriptedConsumer({"hi": fallback}))

        turn = await session.ask("hi")

        assert turn.status == "fallback"
        assert turn.answer == UNAVAILABLE_MESSAGE

    @pytest.mark.asyncio
    async def test_stream_error_marks_turn_errored(self):
        session = AssistantSession(ScriptedConsumer({"hi": interrupted}))

        turn = await session.ask("hi")

        assert turn.status == "errored"
        assert turn.answer == ERROR_MESSAGE
        assert "before [DONE]" in turn.error
        assert not turn.is_typing

    @pytest.mark.asyncio
    async def test_typing_indicator_while_streaming(self):
        gate = asyncio.Event()
        session = AssistantSession(ScriptedConsumer({"hi": answer("H", "Hi", gate=gate)}))

        pending = asyncio.create_task(session.ask("hi"))
        await asyncio.sleep(0.01)

        assert session.is_typing
        assert session.turns[0].answer == "H"
        assert session.turns[0].status == "streaming"

        gate.set()
        turn = await pending

        assert not session.is_typing
        assert turn.answer == "Hi"

    @pytest.mark.asyncio
    async def test_concurrent_questions_keep_their_own_answers(self):
        first_gate = asyncio.Event()
        consumer = ScriptedConsumer({
            "first": answer("one", "one done", gate=first_gate),
            "second": answer("two", "two done"),
        })
        session = AssistantSession(consumer)

        first = asyncio.create_task(session.ask("first"))
        await asyncio.sleep(0.01)
        second_turn = await session.ask("second")
        first_gate.set()
        first_turn = await first

        assert [t.question for t in session.turns] == ["first", "second"]
        assert first_turn.answer == "one done"
        assert second_turn.answer == "two done"
        assert first_turn.id != second_turn.id

    @pytest.mark.asyncio
    async def test_close_cancels_streaming_answers(self):
        gate = asyncio.Event()
        session = AssistantSession(ScriptedConsumer({"hi": answer("H", "Hi", gate=gate)}))

        pending = asyncio.create_task(session.ask("hi"))
        await asyncio.sleep(0.01)
        await session.close()
        turn = await pending

        assert turn.status == "errored"
        assert turn.error == "cancelled"
        assert turn.answer == "H"
        assert not session.is_typing
