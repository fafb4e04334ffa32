"""Tests for the tool invoker."""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest
from pydantic import BaseModel

from agentchat.config import Settings
from agentchat.core.invoker import DEFAULT_TOOL_TIMEOUT, ToolInvoker, create_tool_invoker
from agentchat.core.tool_schema import build_tool_declaration
from agentchat.core.tools import SUPPORTED_TOOLS, TOOL_ARG_MODELS, WebSearchArgs


@pytest.fixture
def invoker():
    """Invoker with a scripted web_search tool."""
    invoker = ToolInvoker(timeout_seconds=1.0)

    @invoker.tool("web_search", WebSearchArgs)
    async def search(args: WebSearchArgs) -> str:
        return f"results for {args.query}"

    return invoker


class TestRegistration:
    """Tests for the tool decorator and registry."""

    def test_default_timeout(self):
        """Test the default per-call timeout."""
        assert ToolInvoker().timeout_seconds == DEFAULT_TOOL_TIMEOUT

    def test_registers_declaration(self, invoker):
        """Test registering a handler advertises its declaration."""
        assert invoker.tool_names == ["web_search"]
        assert invoker.has_tool("web_search") is True
        assert invoker.has_tool("calculator") is False

        declaration = invoker.declarations[0]
        assert declaration.name == "web_search"
        assert "query" in declaration.parameters["properties"]

    def test_decorator_returns_handler(self):
        """Test the decorated function is returned unchanged."""
        invoker = ToolInvoker()

        async def handler(args):
            return "ok"

        assert invoker.tool("web_search", WebSearchArgs)(handler) is handler

    def test_rejects_tool_without_description(self):
        """Test a declaration that cannot be advertised is refused."""
        invoker = ToolInvoker()

        class LookupArgs(BaseModel):
            key: str

        with pytest.raises(ValueError, match="lookup"):
            invoker.tool("lookup", LookupArgs)

        assert invoker.has_tool("lookup") is False

    def test_accepts_description_override(self):
        """Test an explicit description makes a new tool registrable."""
        invoker = ToolInvoker()

        class LookupArgs(BaseModel):
            key: str

        @invoker.tool("lookup", LookupArgs, "Look up a key")
        async def lookup(args: LookupArgs) -> str:
            return args.key

        assert invoker.tool_names == ["lookup"]


class TestDescribeInput:
    """Tests for describe_input."""

    def test_primary_field_value(self, invoker):
        """Test the displayed input is the query passed to the tool."""
        assert invoker.describe_input("web_search", {"query": "weather in Paris"}) == (
            "weather in Paris"
        )

    def test_alias_resolved(self, invoker):
        """Test the displayed input follows argument normalization."""
        assert invoker.describe_input("web_search", {"searchQuery": "news"}) == "news"

    def test_invalid_arguments_shown_as_json(self, invoker):
        """Test arguments that do not validate are displayed as JSON."""
        assert invoker.describe_input("web_search", {"q": "x"}) == '{"q": "x"}'

    def test_unknown_tool_shown_as_json(self, invoker):
        """Test arguments of an unknown tool are displayed as JSON."""
        assert invoker.describe_input("calculator", {"expr": "1+1"}) == '{"expr": "1+1"}'


class TestInvoke:
    """Tests for invoke."""

    @pytest.mark.asyncio
    async def test_success(self, invoker):
        """Test a valid call returns the tool's text."""
        result = await invoker.invoke("web_search", {"query": "weather in Paris"})
        assert result == "results for weather in Paris"

    @pytest.mark.asyncio
    async def test_unknown_tool(self, invoker):
        """Test an unknown tool returns an error result listing available tools."""
        result = await invoker.invoke("calculator", {"expr": "1+1"})
        assert result == "Error: Unknown tool 'calculator'. Available tools: web_search"

    @pytest.mark.asyncio
    async def test_invalid_arguments(self, invoker):
        """Test invalid arguments return an error result naming the field."""
        result = await invoker.invoke("web_search", {})
        assert result.startswith("Error: Invalid arguments for tool 'web_search': query:")

    @pytest.mark.asyncio
    async def test_handler_exception(self):
        """Test a raising handler becomes an error result."""
        invoker = ToolInvoker()

        @invoker.tool("web_search", WebSearchArgs)
        async def broken(args):
            raise RuntimeError("service down")

        result = await invoker.invoke("web_search", {"query": "q"})

        assert result == "Error executing tool 'web_search': RuntimeError: service down"

    @pytest.mark.asyncio
    async def test_handler_timeout(self):
        """Test a slow handler is abandoned with an error result."""
        invoker = ToolInvoker(timeout_seconds=0.05)

        @invoker.tool("web_search", WebSearchArgs)
        async def slow(args):
            await asyncio.sleep(10)
            return "late"

        result = await invoker.invoke("web_search", {"query": "q"})

        assert result.startswith("Error: Tool 'web_search' timed out after")

    @pytest.mark.asyncio
    async def test_non_string_result_converted(self):
        """Test handler results are always returned as text."""
        invoker = ToolInvoker()

        @invoker.tool("web_search", WebSearchArgs)
        async def numeric(args):
            return 42

        assert await invoker.invoke("web_search", {"query": "q"}) == "42"


class TestCreateToolInvoker:
    """Tests for create_tool_invoker factory."""

    def test_registers_web_search(self, monkeypatch):
        """Test the application invoker exposes web_search."""
        monkeypatch.delenv("SERPAPI_KEY", raising=False)
        invoker = create_tool_invoker(Settings())
        assert invoker.tool_names == ["web_search"]

    def test_declarations_follow_tool_tables(self, monkeypatch):
        """Test each supported tool is declared from its argument model."""
        monkeypatch.delenv("SERPAPI_KEY", raising=False)
        invoker = create_tool_invoker(Settings())

        assert invoker.tool_names == SUPPORTED_TOOLS
        for declaration in invoker.declarations:
            expected = build_tool_declaration(declaration.name, TOOL_ARG_MODELS[declaration.name])
            assert declaration == expected

    def test_uses_agent_tool_timeout(self, monkeypatch):
        """Test the configured tool timeout is applied."""
        monkeypatch.delenv("SERPAPI_KEY", raising=False)
        invoker = create_tool_invoker(Settings(agent={"tool_timeout_seconds": 3.0}))
        assert invoker.timeout_seconds == 3.0

    @pytest.mark.asyncio
    async def test_web_search_dispatches_query(self, monkeypatch):
        """Test web_search is called with the validated query and search settings."""
        monkeypatch.delenv("SERPAPI_KEY", raising=False)
        settings = Settings()
        invoker = create_tool_invoker(settings)

        with patch(
            "agentchat.core.invoker.web_search",
            new=AsyncMock(return_value="Sunny, 20C"),
        ) as mock_search:
            result = await invoker.invoke("web_search", {"query": "weather in Paris"})

        assert result == "Sunny, 20C"
        mock_search.assert_awaited_once_with("weather in Paris", settings.search)
