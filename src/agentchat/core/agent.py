"""Pydantic AI model access and single-turn streaming adapter.

``ModelFactory`` lazily builds the shared OpenAI chat model. ``ChatModelAdapter``
runs one turn against it: text fragments are yielded as they arrive, and the
tool calls the model requested are yielded once the turn is fully drained.
"""

import json
import logging
import threading
from collections.abc import AsyncIterator, Sequence
from dataclasses import dataclass, field

from pydantic_ai.direct import model_request_stream
from pydantic_ai.messages import (
    ModelMessage,
    ModelResponse,
    ModelResponseStreamEvent,
    PartDeltaEvent,
    PartStartEvent,
    TextPart,
    TextPartDelta,
    ToolCallPart,
)
from pydantic_ai.models import Model, ModelRequestParameters
from pydantic_ai.models.openai import OpenAIChatModel
from pydantic_ai.providers.openai import OpenAIProvider
from pydantic_ai.settings import ModelSettings
from pydantic_ai.tools import ToolDefinition

from agentchat.config import AgentSettings, OpenAISettings
from agentchat.core.tool_schema import ToolDeclaration
from agentchat.core.tools import ToolCall
from agentchat.utils.errors import MissingCredentialError, ResponseTooLargeError

logger = logging.getLogger(__name__)


class ModelFactory:
    """Thread-safe, build-once access to the generation backend model.

    The model is created on first use, so a missing API key surfaces as a
    :class:`MissingCredentialError` from the first request rather than at
    startup.
    """

    def __init__(self, settings: OpenAISettings, model: Model | None = None):
        """Initialize the factory.

        Args:
            settings: Generation backend settings.
            model: Optional prebuilt model, used instead of building one.
        """
        self.settings = settings
        self._model = model
        self._lock = threading.Lock()

    def get_model(self) -> Model:
        """Return the shared model, building it on first call."""
        if self._model is None:
            with self._lock:
                if self._model is None:
                    self._model = self._create_model()
        return self._model

    def _create_model(self) -> Model:
        if not self.settings.api_key:
            raise MissingCredentialError("OPENAI_API_KEY", "the generation backend")

        provider = OpenAIProvider(
            base_url=self.settings.base_url,
            api_key=self.settings.api_key,
        )
        logger.info(
            "Initialized generation backend",
            extra={"model": self.settings.default_model},
        )
        return OpenAIChatModel(self.settings.default_model, provider=provider)


@dataclass(frozen=True)
class TextDelta:
    """A non-empty text fragment received while a turn streams."""

    content: str


@dataclass(frozen=True)
class TurnResult:
    """Outcome of a fully drained turn."""

    text: str
    tool_calls: list[ToolCall] = field(default_factory=list)
    response: ModelResponse | None = None

    @property
    def is_empty(self) -> bool:
        """The model produced neither text nor tool calls."""
        return not self.text and not self.tool_calls


TurnItem = TextDelta | TurnResult


def to_tool_definition(declaration: ToolDeclaration) -> ToolDefinition:
    """Convert a tool declaration to pydantic-ai's function tool definition."""
    return ToolDefinition(
        name=declaration.name,
        description=declaration.description,
        parameters_json_schema=declaration.parameters,
    )


def to_tool_call(part: ToolCallPart) -> ToolCall:
    """Convert a finalized tool call part, parsing JSON arguments."""
    args = part.args
    if isinstance(args, str):
        try:
            args = json.loads(args) if args.strip() else {}
        except json.JSONDecodeError:
            args = {"raw": args}
    if not isinstance(args, dict):
        args = {}
    return ToolCall(name=part.tool_name, arguments=args, tool_call_id=part.tool_call_id)


def _text_from_event(event: ModelResponseStreamEvent) -> str:
    if isinstance(event, PartStartEvent) and isinstance(event.part, TextPart):
        return event.part.content
    if isinstance(event, PartDeltaEvent) and isinstance(event.delta, TextPartDelta):
        return event.delta.content_delta
    return ""


class ChatModelAdapter:
    """Runs single streamed turns against the generation backend."""

    def __init__(
        self,
        model_factory: ModelFactory,
        tool_declarations: Sequence[ToolDeclaration],
        agent_settings: AgentSettings | None = None,
    ):
        self.model_factory = model_factory
        self.tool_declarations = list(tool_declarations)
        self.max_response_chars = (agent_settings or AgentSettings()).max_response_chars

        openai_settings = model_factory.settings
        self.model_settings = ModelSettings(
            temperature=openai_settings.temperature,
            timeout=float(openai_settings.timeout_seconds),
        )

    async def run_turn(
        self,
        messages: Sequence[ModelMessage],
        tool_declarations: Sequence[ToolDeclaration] | None = None,
    ) -> AsyncIterator[TurnItem]:
        """Stream one turn of the conversation.

        Text is yielded as :class:`TextDelta` items as soon as it arrives.
        Tool calls may be fragmented across the stream, so they are only
        yielded, inside the final :class:`TurnResult`, after the stream has
        completed.

        Args:
            messages: Full history, ending with the prompt or tool results.
            tool_declarations: Tools to advertise; defaults to the adapter's.

        Yields:
            TextDelta items, then exactly one TurnResult.

        Raises:
            MissingCredentialError: If the backend credential is not configured.
            ResponseTooLargeError: If the turn's text exceeds the size limit.
        """
        model = self.model_factory.get_model()
        declarations = self.tool_declarations if tool_declarations is None else tool_declarations
        parameters = ModelRequestParameters(
            function_tools=[to_tool_definition(d) for d in declarations],
        )

        chunks: list[str] = []
        size = 0

        async with model_request_stream(
            model,
            list(messages),
            model_settings=self.model_settings,
            model_request_parameters=parameters,
        ) as stream:
            async for event in stream:
                text = _text_from_event(event)
                if not text:
                    continue
                size += len(text)
                if size > self.max_response_chars:
                    raise ResponseTooLargeError(self.max_response_chars)
                chunks.append(text)
                yield TextDelta(content=text)

            response = stream.get()

        tool_calls = [
            to_tool_call(part) for part in response.parts if isinstance(part, ToolCallPart)
        ]
        result = TurnResult(text="".join(chunks), tool_calls=tool_calls, response=response)

        if result.is_empty:
            logger.warning("Model returned an empty turn")
        else:
            logger.debug(
                "Model turn completed",
                extra={"text_length": len(result.text), "tool_calls": len(tool_calls)},
            )

        yield result
