"""Example streaming client for the /chat endpoint."""

from __future__ import annotations

import argparse
import asyncio
import sys
from collections.abc import AsyncIterator
from typing import Sequence

import httpx

from agentchat.core.streaming import FrameDecoder
from agentchat.models.events import (
    ErrorEvent,
    ReasoningEvent,
    ResponseEvent,
    StreamEvent,
    ToolCallEvent,
)

DEFAULT_BASE_URL = "http://localhost:3000"
DEFAULT_QUERY = "Explain the state of AI in 2025?"
DEFAULT_TIMEOUT = 300.0

# Tool output is cut to this many characters when rendered
OUTPUT_PREVIEW_CHARS = 200


class ChatClientError(Exception):
    """Raised when the server rejects a chat request."""

    def __init__(self, status_code: int, detail: str):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"HTTP {status_code}: {detail}")


async def stream_chat(
    query: str,
    base_url: str = DEFAULT_BASE_URL,
    timeout: float = DEFAULT_TIMEOUT,
    transport: httpx.AsyncBaseTransport | None = None,
) -> AsyncIterator[StreamEvent]:
    """Send a query and yield the decoded events as they arrive.

    Iteration ends at the terminal frame, or when the server closes the
    connection without one.

    Raises:
        ChatClientError: If the server answers with a non-200 status.
    """
    async with httpx.AsyncClient(
        base_url=base_url, timeout=timeout, transport=transport
    ) as client:
        async with client.stream("POST", "/chat", json={"query": query}) as response:
            if response.status_code != 200:
                await response.aread()
                raise ChatClientError(response.status_code, _error_detail(response))

            decoder = FrameDecoder()
            async for chunk in response.aiter_bytes():
                for event in decoder.feed(chunk):
                    yield event
                if decoder.done:
                    break


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict) and body.get("detail"):
        return str(body["detail"])
    return response.text


def render_event(event: StreamEvent) -> str:
    """Format an event as terminal text."""
    if isinstance(event, ReasoningEvent):
        return f"Reasoning: {event.content}"
    if isinstance(event, ToolCallEvent):
        lines = [f"Tool call: {event.tool}", f"  Input: {event.input}"]
        if event.is_pending:
            lines.append("  Running...")
        else:
            output = event.output or ""
            if len(output) > OUTPUT_PREVIEW_CHARS:
                output = output[:OUTPUT_PREVIEW_CHARS] + "..."
            lines.append(f"  Output: {output}")
        return "\n".join(lines)
    if isinstance(event, ResponseEvent):
        return f"Response: {event.content}"
    if isinstance(event, ErrorEvent):
        return f"Error: {event.content}"
    return str(event)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Stream an agent answer from an agentchat server")
    parser.add_argument("query", nargs="?", default=DEFAULT_QUERY, help="Question to ask")
    parser.add_argument("--url", default=DEFAULT_BASE_URL, help="Base URL of the server")
    parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_TIMEOUT,
        help="Overall request timeout in seconds",
    )
    return parser


async def _run(args: argparse.Namespace) -> int:
    print(f'Streaming response for query: "{args.query}"')
    print("-" * 60)
    async for event in stream_chat(args.query, base_url=args.url, timeout=args.timeout):
        print(render_event(event), flush=True)
    print("-" * 60)
    print("Stream complete")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        return asyncio.run(_run(args))
    except ChatClientError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except httpx.HTTPError as e:
        print(f"Error: could not reach {args.url}: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
