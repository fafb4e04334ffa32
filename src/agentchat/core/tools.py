"""Tool call and tool argument definitions for the agent's static tool set."""

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


@dataclass(frozen=True)
class ToolCall:
    """A finalized request from the model to invoke a declared tool."""

    name: str
    arguments: dict[str, Any] = field(default_factory=dict)
    tool_call_id: str = ""


# === Web Search Tool Types ===


class WebSearchArgs(BaseModel):
    """Arguments for the web_search tool."""

    model_config = ConfigDict(extra="ignore")

    query: str = Field(
        min_length=1,
        description="The specific search query to look up on the web. Be precise and focused.",
    )

    @model_validator(mode="before")
    @classmethod
    def accept_search_query_alias(cls, data: Any) -> Any:
        """Accept ``searchQuery`` when models use that name for the query."""
        if isinstance(data, dict) and "query" not in data and "searchQuery" in data:
            data = {**data, "query": data["searchQuery"]}
        return data


# === Tool Definitions ===

TOOL_WEB_SEARCH = "web_search"

SUPPORTED_TOOLS = [
    TOOL_WEB_SEARCH,
]

# Map tool names to their argument models
TOOL_ARG_MODELS: dict[str, type[BaseModel]] = {
    TOOL_WEB_SEARCH: WebSearchArgs,
}

# Argument shown as the tool call's input in the event stream
TOOL_INPUT_FIELDS: dict[str, str] = {
    TOOL_WEB_SEARCH: "query",
}
