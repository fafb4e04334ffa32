"""Server-Sent Events codec and transport helpers for the agent event stream.

Each event travels as ``data: <json>`` followed by a blank line. The stream is
terminated by the ``data: [DONE]`` sentinel, which is not an event.
"""

import asyncio
import codecs
import json
import logging
from collections.abc import AsyncIterator
from contextlib import aclosing
from typing import Any

from fastapi import Request
from fastapi.responses import StreamingResponse
from pydantic import ValidationError

from agentchat.models.events import ErrorEvent, StreamEvent, stream_event_adapter
from agentchat.utils.errors import ErrorCode, get_user_message

logger = logging.getLogger(__name__)

# Default stream timeout in seconds (5 minutes)
DEFAULT_STREAM_TIMEOUT = 300

DATA_PREFIX = "data:"
DONE_PAYLOAD = "[DONE]"
SSE_DONE_MARKER = f"data: {DONE_PAYLOAD}\n\n"


def encode_sse_event(data: dict[str, Any]) -> str:
    """Encode data as a Server-Sent Event.

    Args:
        data: Dictionary to encode as JSON. Non-ASCII text is kept as-is.

    Returns:
        SSE-formatted string with data: prefix and double newline.
    """
    json_data = json.dumps(data, ensure_ascii=False)

    return f"data: {json_data}\n\n"


def encode_stream_event(event: StreamEvent) -> str:
    """Encode a StreamEvent model as an SSE frame."""
    return encode_sse_event(event.model_dump())


def decode_stream_event(payload: str) -> StreamEvent | None:
    """Parse one frame payload into an event.

    Args:
        payload: The text after the ``data:`` prefix.

    Returns:
        The decoded event, or None when the payload is not a well-formed event.
    """
    try:
        return stream_event_adapter.validate_json(payload)
    except ValidationError:
        logger.debug("Skipping malformed event payload", extra={"payload": payload[:200]})
        return None


def _frame_payload(line: str) -> str | None:
    """Return the data payload of an SSE line, or None for other lines."""
    line = line.rstrip("\r")
    if not line.startswith(DATA_PREFIX):
        return None
    payload = line[len(DATA_PREFIX):]
    if payload.startswith(" "):
        payload = payload[1:]
    return payload.strip()


def decode_frames(raw: str) -> list[StreamEvent]:
    """Decode every complete event frame in a block of text.

    Malformed payloads and the terminal frame are skipped. Use
    :class:`FrameDecoder` when frames may be split across reads.
    """
    events = []
    for line in raw.split("\n"):
        payload = _frame_payload(line)
        if not payload or payload == DONE_PAYLOAD:
            continue
        event = decode_stream_event(payload)
        if event is not None:
            events.append(event)
    return events


class FrameDecoder:
    """Incremental decoder for an event stream read in arbitrary chunks.

    Partial lines are buffered until their newline arrives, and multi-byte
    characters split across byte chunks are reassembled. Once the terminal
    frame is seen :attr:`done` is set and further input is ignored.

    Example usage:
        decoder = FrameDecoder()
        async for chunk in response.aiter_bytes():
            for event in decoder.feed(chunk):
                handle(event)
            if decoder.done:
                break
    """

    def __init__(self):
        self._buffer = ""
        self._utf8 = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self.done = False

    def feed(self, chunk: str | bytes) -> list[StreamEvent]:
        """Consume a chunk and return the events completed by it."""
        if self.done:
            return []

        if isinstance(chunk, bytes):
            chunk = self._utf8.decode(chunk)
        self._buffer += chunk

        events: list[StreamEvent] = []
        while "\n" in self._buffer:
            line, self._buffer = self._buffer.split("\n", 1)
            payload = _frame_payload(line)
            if not payload:
                continue
            if payload == DONE_PAYLOAD:
                self.done = True
                self._buffer = ""
                break
            event = decode_stream_event(payload)
            if event is not None:
                events.append(event)

        return events


async def stream_events(
    events: AsyncIterator[StreamEvent],
) -> AsyncIterator[str]:
    """Transform an async iterator of events into SSE-encoded strings.

    Args:
        events: Async iterator of StreamEvent models.

    Yields:
        SSE-formatted strings for each event, ending with exactly one [DONE] marker.
    """
    async with aclosing(events):
        try:
            async for event in events:
                yield encode_stream_event(event)
        except Exception:
            logger.exception("Error during event streaming")
            yield encode_stream_event(ErrorEvent(content=get_user_message(ErrorCode.INTERNAL_ERROR)))
    yield SSE_DONE_MARKER


async def stream_with_timeout(
    frames: AsyncIterator[str],
    timeout: float = DEFAULT_STREAM_TIMEOUT,
    request: Request | None = None,
) -> AsyncIterator[str]:
    """Wrap a frame stream with timeout and disconnect handling.

    On timeout the wrapped stream is closed and an error frame plus the
    terminal marker are sent. On client disconnect the stream is abandoned
    without writing anything further.

    Args:
        frames: Async iterator yielding SSE-encoded strings.
        timeout: Maximum stream duration in seconds (default: 5 minutes).
        request: Optional FastAPI request for disconnect detection.

    Yields:
        SSE-formatted strings from the wrapped iterator.
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout

    async with aclosing(frames):
        while True:
            remaining = deadline - loop.time()
            try:
                if remaining <= 0:
                    raise asyncio.TimeoutError
                frame = await asyncio.wait_for(anext(frames), timeout=remaining)
            except StopAsyncIteration:
                break
            except asyncio.TimeoutError:
                logger.warning(f"Stream timeout after {timeout:.1f}s, closing stream")
                yield encode_stream_event(ErrorEvent(content=get_user_message(ErrorCode.TIMEOUT)))
                yield SSE_DONE_MARKER
                break
            except asyncio.CancelledError:
                logger.info("Stream cancelled, abandoning remaining work")
                raise

            if request is not None and await request.is_disconnected():
                logger.info("Client disconnected, abandoning stream")
                break

            yield frame

            if frame == SSE_DONE_MARKER:
                break

    logger.debug("Stream cleanup completed")


def create_streaming_response(
    event_generator: AsyncIterator[str],
    request: Request | None = None,
) -> StreamingResponse:
    """Create a FastAPI StreamingResponse for SSE.

    Args:
        event_generator: Async iterator yielding SSE-encoded strings.
        request: Optional request to extract request ID for headers.

    Returns:
        StreamingResponse with headers that disable caching and proxy buffering.
    """
    headers = {
        "Cache-Control": "no-cache",
        "Connection": "keep-alive",
        "X-Accel-Buffering": "no",
    }

    if request is not None and hasattr(request.state, "request_id"):
        headers["X-Request-ID"] = request.state.request_id

    return StreamingResponse(
        event_generator,
        media_type="text/event-stream",
        headers=headers,
    )
