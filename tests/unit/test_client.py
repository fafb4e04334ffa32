"""Tests for the example streaming client."""

import json
from unittest.mock import patch

import httpx
import pytest

from agentchat.client import (
    DEFAULT_QUERY,
    ChatClientError,
    build_parser,
    main,
    render_event,
    stream_chat,
)
from agentchat.core.streaming import SSE_DONE_MARKER, encode_stream_event
from agentchat.models.events import (
    ErrorEvent,
    ReasoningEvent,
    ResponseEvent,
    ToolCallEvent,
)


class ChunkedStream(httpx.AsyncByteStream):
    """Response body delivered in the given chunks."""

    def __init__(self, chunks: list[bytes]):
        self.chunks = chunks

    async def __aiter__(self):
        for chunk in self.chunks:
            yield chunk


def sse_transport(body: str, chunk_size: int | None = None, seen: list | None = None):
    """Mock transport answering /chat with the given SSE body."""
    data = body.encode("utf-8")
    size = chunk_size or len(data) or 1
    chunks = [data[i : i + size] for i in range(0, len(data), size)]

    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return httpx.Response(
            200,
            headers={"Content-Type": "text/event-stream"},
            stream=ChunkedStream(chunks),
        )

    return httpx.MockTransport(handler)


async def collect(query: str, transport) -> list:
    return [event async for event in stream_chat(query, transport=transport)]


class TestStreamChat:
    """Tests for stream_chat function."""

    @pytest.mark.asyncio
    async def test_posts_query(self):
        """Test the query is sent as JSON to /chat."""
        seen = []
        body = encode_stream_event(ResponseEvent(content="4")) + SSE_DONE_MARKER

        await collect("2+2?", sse_transport(body, seen=seen))

        request = seen[0]
        assert request.method == "POST"
        assert request.url.path == "/chat"
        assert json.loads(request.content) == {"query": "2+2?"}

    @pytest.mark.asyncio
    async def test_decodes_events_split_across_chunks(self):
        """Test frames fragmented by the network are decoded in order."""
        events = [
            ToolCallEvent(tool="web_search", input="weather in Paris"),
            ToolCallEvent(tool="web_search", input="weather in Paris", output="Sunny, 20°C"),
            ResponseEvent(content="It is sunny and 20°C in Paris."),
        ]
        body = "".join(encode_stream_event(event) for event in events) + SSE_DONE_MARKER

        result = await collect("weather?", sse_transport(body, chunk_size=7))

        assert result == events

    @pytest.mark.asyncio
    async def test_stops_at_done(self):
        """Test frames after the terminal marker are ignored."""
        body = (
            encode_stream_event(ResponseEvent(content="4"))
            + SSE_DONE_MARKER
            + encode_stream_event(ResponseEvent(content="late"))
        )

        result = await collect("2+2?", sse_transport(body))

        assert result == [ResponseEvent(content="4")]

    @pytest.mark.asyncio
    async def test_skips_malformed_frames(self):
        """Test unparseable frames are skipped."""
        body = "data: {oops\n\n" + encode_stream_event(ResponseEvent(content="4")) + SSE_DONE_MARKER

        result = await collect("2+2?", sse_transport(body))

        assert result == [ResponseEvent(content="4")]

    @pytest.mark.asyncio
    async def test_rejected_request_raises(self):
        """Test a non-200 answer raises with the server's detail."""

        def handler(request):
            return httpx.Response(400, json={"detail": "Invalid request."})

        with pytest.raises(ChatClientError) as exc_info:
            await collect("", httpx.MockTransport(handler))

        assert exc_info.value.status_code == 400
        assert exc_info.value.detail == "Invalid request."


class TestRenderEvent:
    """Tests for render_event function."""

    def test_reasoning(self):
        """Test reasoning rendering."""
        assert render_event(ReasoningEvent(content="Thinking")) == "Reasoning: Thinking"

    def test_pending_tool_call(self):
        """Test a pending tool call shows it is running."""
        output = render_event(ToolCallEvent(tool="web_search", input="weather in Paris"))
        assert "Tool call: web_search" in output
        assert "Input: weather in Paris" in output
        assert "Running..." in output

    def test_resolved_tool_call_truncated(self):
        """Test long tool output is shortened."""
        output = render_event(ToolCallEvent(tool="web_search", input="q", output="x" * 500))
        assert "Output: " + "x" * 200 + "..." in output

    def test_response(self):
        """Test response rendering."""
        assert render_event(ResponseEvent(content="4")) == "Response: 4"

    def test_error(self):
        """Test error rendering."""
        assert render_event(ErrorEvent(content="boom")) == "Error: boom"


class TestMain:
    """Tests for the command line entry point."""

    def test_default_query(self):
        """Test the query argument is optional."""
        args = build_parser().parse_args([])
        assert args.query == DEFAULT_QUERY
        assert args.url == "http://localhost:3000"

    def test_prints_events(self, capsys):
        """Test events are printed as they arrive."""

        async def fake_stream(query, base_url, timeout):
            yield ResponseEvent(content=f"answer to {query}")

        with patch("agentchat.client.stream_chat", fake_stream):
            exit_code = main(["2+2?", "--url", "http://server:3000"])

        assert exit_code == 0
        assert "Response: answer to 2+2?" in capsys.readouterr().out

    def test_rejected_request_exit_code(self, capsys):
        """Test a rejected request exits non-zero."""

        async def failing_stream(query, base_url, timeout):
            raise ChatClientError(400, "Invalid request.")
            yield

        with patch("agentchat.client.stream_chat", failing_stream):
            exit_code = main([""])

        assert exit_code == 1
        assert "HTTP 400" in capsys.readouterr().err
