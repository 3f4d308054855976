#!/usr/bin/env python3
"""
Terminal client for the Vaulto AI assistant.

Streams an answer from the chat relay and prints it as it grows.
"""

import argparse
import asyncio
import sys
from typing import Optional

import httpx

from ..config import get_settings
from .stream_consumer import ChatStreamConsumer, ChatStreamError, StreamOutcome


class SuffixPrinter:
    """Print only the newly grown part of each cumulative snapshot"""

    def __init__(self, out=None):
        self.out = out or sys.stdout
        self.shown = ""

    def __call__(self, text: str) -> None:
        if text.startswith(self.shown):
            self.out.write(text[len(self.shown):])
        else:
            # Snapshot replaced rather than extended (fallback or error message)
            self.out.write(("\n" if self.shown else "") + text)
        self.out.flush()
        self.shown = text


async def ask(url: str, question: str, context: Optional[str] = None) -> int:
    printer = SuffixPrinter()
    async with ChatStreamConsumer(base_url=url, context=context) as consumer:
        try:
            outcome = await consumer.stream_chat(question, printer)
        except ChatStreamError as e:
            print(f"\n[error] {e}", file=sys.stderr)
            return 1
    print()
    return 2 if outcome is StreamOutcome.FALLBACK else 0


def show_suggestions(url: str) -> int:
    try:
        response = httpx.get(f"{url.rstrip('/')}/api/chat/suggestions", timeout=10.0)
        response.raise_for_status()
    except httpx.HTTPError as e:
        print(f"[error] Could not load suggestions: {e}", file=sys.stderr)
        return 1
    for question in response.json().get("questions", []):
        print(f"- {question}")
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Ask the Vaulto AI assistant")
    parser.add_argument("question", nargs="?", help="Question to ask")
    parser.add_argument("--url", default=get_settings().api_url, help="Chat relay base URL")
    parser.add_argument("--context", help="Context label sent with the question")
    parser.add_argument("--suggestions", action="store_true", help="List starter questions and exit")

    args = parser.parse_args(argv)

    if args.suggestions:
        return show_suggestions(args.url)

    if not args.question or not args.question.strip():
        parser.error("a question is required")

    return asyncio.run(ask(args.url, args.question, args.context))


if __name__ == "__main__":
    sys.exit(main())
