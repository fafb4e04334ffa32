"""Server-Sent Event data models for the agent event stream.

Every event carries a ``type`` discriminator. ``tool_call`` events follow a
pending/resolved policy: the first emission for an invocation has
``output=None`` and the second carries the tool's text result.
"""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter


class ReasoningEvent(BaseModel):
    """Model free text produced before a tool call."""

    type: Literal["reasoning"] = "reasoning"
    content: str


class ToolCallEvent(BaseModel):
    """Announces a tool invocation (pending) or its result (resolved)."""

    type: Literal["tool_call"] = "tool_call"
    tool: str
    input: str
    output: str | None = None

    @property
    def is_pending(self) -> bool:
        """Whether this is the pre-invocation emission."""
        return self.output is None


class ResponseEvent(BaseModel):
    """A fragment or the whole of the final answer."""

    type: Literal["response"] = "response"
    content: str


class ErrorEvent(BaseModel):
    """Terminal, user-visible failure description."""

    type: Literal["error"] = "error"
    content: str


StreamEvent = Annotated[
    Union[
        ReasoningEvent,
        ToolCallEvent,
        ResponseEvent,
        ErrorEvent,
    ],
    Field(discriminator="type"),
]

stream_event_adapter: TypeAdapter[StreamEvent] = TypeAdapter(StreamEvent)
