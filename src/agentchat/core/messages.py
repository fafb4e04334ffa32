"""Conversation history threaded through successive model turns.

History is held as pydantic-ai messages. A user prompt and a tool result are
``ModelRequest``s, a model turn is a ``ModelResponse``.
"""

from typing import Literal

from pydantic_ai.messages import (
    ModelMessage,
    ModelRequest,
    ModelResponse,
    SystemPromptPart,
    ToolReturnPart,
    UserPromptPart,
)

from agentchat.core.tools import ToolCall

TurnRole = Literal["user", "model", "tool-result"]


def turn_role(message: ModelMessage) -> TurnRole:
    """Classify a history message as a user, model or tool-result turn."""
    if isinstance(message, ModelResponse):
        return "model"
    if any(isinstance(part, ToolReturnPart) for part in message.parts):
        return "tool-result"
    return "user"


class Conversation:
    """Append-only, chronologically ordered exchange history.

    Turns can only be appended; :attr:`messages` returns an immutable snapshot.
    """

    def __init__(self, system_prompt: str | None = None):
        self._system_prompt = system_prompt
        self._messages: list[ModelMessage] = []

    def __len__(self) -> int:
        return len(self._messages)

    @property
    def messages(self) -> tuple[ModelMessage, ...]:
        return tuple(self._messages)

    @property
    def roles(self) -> list[TurnRole]:
        return [turn_role(message) for message in self._messages]

    def add_user_prompt(self, prompt: str) -> None:
        """Append the user's query. The system prompt leads the first request."""
        parts = []
        if self._system_prompt and not self._messages:
            parts.append(SystemPromptPart(content=self._system_prompt))
        parts.append(UserPromptPart(content=prompt))
        self._messages.append(ModelRequest(parts=parts))

    def add_model_response(self, response: ModelResponse) -> None:
        self._messages.append(response)

    def add_tool_result(self, call: ToolCall, result: str) -> None:
        """Append the text result of a tool call, failures included."""
        self._messages.append(
            ModelRequest(
                parts=[
                    ToolReturnPart(
                        tool_name=call.name,
                        content=result,
                        tool_call_id=call.tool_call_id,
                    )
                ],
            )
        )
