"""
Chat stream wire protocol

Framing shared by the relay endpoint and the stream consumer.

Every frame is a single line ``data: <payload>`` followed by a blank line.
Content frames carry the full answer generated so far (cumulative content),
not the delta, so a consumer only ever has to render the latest frame.
A clean stream ends with exactly one ``data: [DONE]`` frame. A stream that
fails after it has started ends with one ``data: {"error": ...}`` frame and
never sends ``[DONE]``.
"""

import codecs
import json
import logging
from typing import List, Literal, Optional

from pydantic import BaseModel

logger = logging.getLogger(__name__)

DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"

STREAM_MEDIA_TYPE = "text/plain; charset=utf-8"
STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}


class StreamEvent(BaseModel):
    """One decoded frame of the chat stream"""
    kind: Literal["content", "done", "error"]
    content: Optional[str] = None
    error: Optional[str] = None


def _frame(payload: str) -> bytes:
    return f"{DATA_PREFIX}{payload}\n\n".encode("utf-8")


def encode_content_frame(content: str) -> bytes:
    """Encode a cumulative answer snapshot"""
    return _frame(json.dumps({"content": content}, ensure_ascii=False))


def encode_done_frame() -> bytes:
    return _frame(DONE_SENTINEL)


def encode_error_frame(error: str) -> bytes:
    """Encode the terminal frame sent when the upstream fails mid-stream"""
    return _frame(json.dumps({"error": error}, ensure_ascii=False))


def parse_data_line(line: str) -> Optional[StreamEvent]:
    """
    Parse one complete line of the stream

    Args:
        line: A single line without its trailing newline

    Returns:
        The decoded event, or None for separator lines and frames that
        could not be parsed
    """
    line = line.rstrip("\r")
    if not line.startswith(DATA_PREFIX):
        return None

    payload = line[len(DATA_PREFIX):]
    if payload == DONE_SENTINEL:
        return StreamEvent(kind="done")

    try:
        data = json.loads(payload)
    except ValueError as e:
        logger.debug(f"Skipping malformed frame {payload[:80]!r}: {e}")
        return None

    if not isinstance(data, dict):
        logger.debug(f"Skipping non-object frame: {payload[:80]!r}")
        return None

    if isinstance(data.get("error"), str):
        return StreamEvent(kind="error", error=data["error"])
    if isinstance(data.get("content"), str):
        return StreamEvent(kind="content", content=data["content"])

    logger.debug(f"Skipping frame without content: {payload[:80]!r}")
    return None


class FrameDecoder:
    """
    Incremental decoder for the chat stream

    Feed it raw bytes as they arrive from the network, in whatever chunks the
    transport delivers. Bytes are decoded with an incremental UTF-8 decoder so
    characters split across reads survive, and the text after the last
    newline is carried over until the rest of the line arrives.

    Once a ``[DONE]`` or error frame has been seen the decoder is finished
    and ignores any further input.
    """

    def __init__(self):
        self._decoder = codecs.getincrementaldecoder("utf-8")()
        self._buffer = ""
        self.finished = False
        self.completed = False

    def feed(self, data: bytes) -> List[StreamEvent]:
        if self.finished:
            return []
        self._buffer += self._decoder.decode(data)
        return self._drain()

    def finish(self) -> List[StreamEvent]:
        """Flush the decoder at end of stream and process a trailing line"""
        if self.finished:
            return []
        self._buffer += self._decoder.decode(b"", final=True)
        self._buffer += "\n"
        return self._drain()

    def _drain(self) -> List[StreamEvent]:
        lines = self._buffer.split("\n")
        # The last fragment may be a partial line
        self._buffer = lines.pop()

        events = []
        for line in lines:
            event = parse_data_line(line)
            if event is None:
                continue
            events.append(event)
            if event.kind != "content":
                self.finished = True
                self.completed = event.kind == "done"
                self._buffer = ""
                break
        return events
