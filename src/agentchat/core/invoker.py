"""Tool invoker: executes one named tool call against its collaborator.

Tool failures are domain data here, not exceptions. Whatever goes wrong
(unknown tool, bad arguments, timeout, collaborator error) comes back as a
text result the model can reason about.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ValidationError

from agentchat.config import Settings
from agentchat.core.search import web_search
from agentchat.core.tool_schema import (
    ToolDeclaration,
    build_tool_declaration,
    validate_tool_declaration,
)
from agentchat.core.tools import (
    SUPPORTED_TOOLS,
    TOOL_ARG_MODELS,
    TOOL_INPUT_FIELDS,
    TOOL_WEB_SEARCH,
    WebSearchArgs,
)

logger = logging.getLogger(__name__)

DEFAULT_TOOL_TIMEOUT = 20.0

ToolHandler = Callable[[Any], Awaitable[str]]


@dataclass(frozen=True)
class RegisteredTool:
    """A tool's declaration together with its argument model and handler."""

    declaration: ToolDeclaration
    args_model: type[BaseModel]
    handler: ToolHandler
    input_field: str | None = None


def _format_validation_error(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(loc) for loc in error["loc"]) or "arguments"
        parts.append(f"{location}: {error['msg']}")
    return "; ".join(parts)


class ToolInvoker:
    """Registry of callable tools with normalized, never-raising invocation."""

    def __init__(self, timeout_seconds: float = DEFAULT_TOOL_TIMEOUT):
        self.timeout_seconds = timeout_seconds
        self._tools: dict[str, RegisteredTool] = {}

    def tool(
        self,
        name: str,
        args_model: type[BaseModel],
        description: str | None = None,
    ) -> Callable[[ToolHandler], ToolHandler]:
        """Decorator to register an async tool handler.

        The handler receives the validated ``args_model`` instance and returns
        the tool's text result.

        Args:
            name: Unique tool name advertised to the model.
            args_model: Pydantic model validating the tool's arguments.
            description: Optional description override.

        Returns:
            Decorator function that registers the handler.

        Raises:
            ValueError: If the resulting declaration cannot be advertised to
                the backend (no description, or a malformed parameter schema).
        """
        declaration = build_tool_declaration(name, args_model, description)
        if not validate_tool_declaration(declaration):
            raise ValueError(f"Invalid declaration for tool '{name}'")

        def decorator(handler: ToolHandler) -> ToolHandler:
            self._tools[name] = RegisteredTool(
                declaration=declaration,
                args_model=args_model,
                handler=handler,
                input_field=TOOL_INPUT_FIELDS.get(name),
            )
            logger.debug(f"Registered tool: {name}")
            return handler

        return decorator

    @property
    def declarations(self) -> list[ToolDeclaration]:
        return [tool.declaration for tool in self._tools.values()]

    @property
    def tool_names(self) -> list[str]:
        return list(self._tools.keys())

    def has_tool(self, name: str) -> bool:
        return name in self._tools

    def describe_input(self, name: str, arguments: dict[str, Any]) -> str:
        """Render the input a tool call will receive, for display.

        For tools with a primary text argument this is exactly the value passed
        to the collaborator. Otherwise, or when the arguments do not validate,
        the arguments are shown as JSON.
        """
        tool = self._tools.get(name)
        if tool is not None and tool.input_field:
            try:
                args = tool.args_model.model_validate(arguments)
            except ValidationError:
                pass
            else:
                return str(getattr(args, tool.input_field))
        return json.dumps(arguments, ensure_ascii=False, default=str)

    async def invoke(self, name: str, arguments: dict[str, Any]) -> str:
        """Execute a tool call and return its text result.

        Args:
            name: Tool name requested by the model.
            arguments: Raw arguments supplied by the model.

        Returns:
            The tool's result, or an error description. Never raises, apart
            from cancellation of the calling task.
        """
        tool = self._tools.get(name)
        if tool is None:
            available = ", ".join(self.tool_names) or "none"
            logger.warning(f"Model requested unknown tool '{name}'")
            return f"Error: Unknown tool '{name}'. Available tools: {available}"

        try:
            args = tool.args_model.model_validate(arguments)
        except ValidationError as e:
            logger.warning(f"Invalid arguments for tool '{name}'", extra={"tool": name})
            return f"Error: Invalid arguments for tool '{name}': {_format_validation_error(e)}"

        try:
            result = await asyncio.wait_for(tool.handler(args), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning(f"Tool '{name}' timed out", extra={"tool": name})
            return f"Error: Tool '{name}' timed out after {self.timeout_seconds:.0f}s"
        except Exception as e:
            logger.exception(f"Tool '{name}' failed", extra={"tool": name})
            return f"Error executing tool '{name}': {type(e).__name__}: {e}"

        return result if isinstance(result, str) else str(result)


def create_tool_invoker(settings: Settings) -> ToolInvoker:
    """Create the invoker holding the application's static tool set.

    Args:
        settings: Application settings.

    Returns:
        ToolInvoker with every supported tool registered.
    """
    invoker = ToolInvoker(timeout_seconds=settings.agent.tool_timeout_seconds)

    async def search(args: WebSearchArgs) -> str:
        return await web_search(args.query, settings.search)

    handlers: dict[str, ToolHandler] = {
        TOOL_WEB_SEARCH: search,
    }

    for name in SUPPORTED_TOOLS:
        invoker.tool(name, TOOL_ARG_MODELS[name])(handlers[name])

    return invoker
