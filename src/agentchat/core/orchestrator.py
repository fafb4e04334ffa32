"""Agent orchestrator: turns a query into the ordered event sequence.

One run per query. The orchestrator drives model turns through the
:class:`ChatModelAdapter`, executes requested tools sequentially through the
:class:`ToolInvoker`, feeds their results back as continuation turns, and
converts everything into ``reasoning``, ``tool_call``, ``response`` and
``error`` events.

Event policy:
    - First-turn text is buffered until the turn completes. If the model then
      calls tools it becomes one ``reasoning`` event, otherwise one
      ``response`` event. With ``stream_reasoning`` enabled the text is
      streamed as ``reasoning`` deltas instead, followed by the full
      ``response`` when no tools are called.
    - Continuation-turn text is streamed as ``response`` deltas.
    - Each tool call produces a pending ``tool_call`` (``output`` null) and a
      resolved ``tool_call`` with the same ``tool`` and ``input``.
    - Backend failures end the run with a single ``error`` event. Tool
      failures are passed to the model as the tool's result.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import aclosing

from agentchat.config import AgentSettings, Settings
from agentchat.core.agent import ChatModelAdapter, ModelFactory, TextDelta, TurnResult
from agentchat.core.invoker import ToolInvoker
from agentchat.core.messages import Conversation
from agentchat.core.tools import ToolCall
from agentchat.models.events import (
    ReasoningEvent,
    ResponseEvent,
    StreamEvent,
    ToolCallEvent,
)
from agentchat.utils.errors import (
    ToolRoundLimitError,
    classify_exception,
    create_stream_error_event,
    log_error,
)

logger = logging.getLogger(__name__)

EMPTY_RESPONSE_MESSAGE = (
    "I received your query but couldn't generate a response. Please try again."
)


class AgentOrchestrator:
    """Drives the model/tool loop for a query and emits stream events.

    Holds only immutable collaborators, so one instance can serve concurrent
    queries. All per-query state lives inside :meth:`run`.
    """

    def __init__(
        self,
        adapter: ChatModelAdapter,
        invoker: ToolInvoker,
        settings: AgentSettings | None = None,
    ):
        self.adapter = adapter
        self.invoker = invoker
        self.settings = settings or AgentSettings()

    def run(self, query: str) -> AsyncIterator[StreamEvent]:
        """Start an agent run for a query.

        Args:
            query: The user's question.

        Returns:
            Async iterator of stream events for the whole exchange.

        Raises:
            ValueError: If the query is not a non-empty string. Raised
                immediately, before any event is produced.
        """
        if not isinstance(query, str) or not query:
            raise ValueError("Query must be a non-empty string")
        return self._run(query)

    async def _run(self, query: str) -> AsyncIterator[StreamEvent]:
        conversation = Conversation(system_prompt=self.settings.system_prompt)
        conversation.add_user_prompt(query)

        logger.info("Starting agent run", extra={"query_length": len(query)})

        try:
            tool_rounds = 0
            continuation = False
            response_emitted = False

            while True:
                turn: TurnResult | None = None
                async with aclosing(self.adapter.run_turn(conversation.messages)) as items:
                    async for item in items:
                        if isinstance(item, TextDelta):
                            if continuation:
                                response_emitted = True
                                yield ResponseEvent(content=item.content)
                            elif self.settings.stream_reasoning:
                                yield ReasoningEvent(content=item.content)
                        else:
                            turn = item

                if turn is None:
                    raise RuntimeError("Model turn ended without a result")

                if turn.response is not None:
                    conversation.add_model_response(turn.response)

                if not turn.tool_calls:
                    if not continuation and turn.text:
                        yield ResponseEvent(content=turn.text)
                    elif not response_emitted:
                        yield ResponseEvent(content=EMPTY_RESPONSE_MESSAGE)
                    logger.info(
                        "Agent run completed",
                        extra={"tool_rounds": tool_rounds, "history_length": len(conversation)},
                    )
                    return

                if not continuation:
                    reasoning = self._turn_reasoning(turn)
                    if reasoning:
                        yield ReasoningEvent(content=reasoning)

                if tool_rounds >= self.settings.max_tool_rounds:
                    raise ToolRoundLimitError(self.settings.max_tool_rounds)
                tool_rounds += 1

                for call in turn.tool_calls:
                    async with aclosing(self._execute_tool_call(call, conversation)) as events:
                        async for event in events:
                            yield event

                continuation = True

        except Exception as e:
            code = classify_exception(e)
            log_error(e, code=code, component="orchestrator")
            yield create_stream_error_event(code=code, message=str(e))

    def _turn_reasoning(self, turn: TurnResult) -> str | None:
        """Reasoning to show before the first turn's tool calls, if any."""
        if turn.text.strip():
            # Already streamed as deltas
            if self.settings.stream_reasoning:
                return None
            return turn.text
        return self.settings.tool_intent_message

    async def _execute_tool_call(
        self,
        call: ToolCall,
        conversation: Conversation,
    ) -> AsyncIterator[StreamEvent]:
        """Invoke one tool call exactly once and record its result."""
        if not self.invoker.has_tool(call.name):
            # Undeclared tools get no events; the model still learns of the failure
            result = await self.invoker.invoke(call.name, call.arguments)
            conversation.add_tool_result(call, result)
            return

        tool_input = self.invoker.describe_input(call.name, call.arguments)
        logger.info("Executing tool", extra={"tool": call.name})

        yield ToolCallEvent(tool=call.name, input=tool_input, output=None)

        result = await self.invoker.invoke(call.name, call.arguments)

        yield ToolCallEvent(tool=call.name, input=tool_input, output=result)

        conversation.add_tool_result(call, result)


def create_orchestrator(
    settings: Settings,
    model_factory: ModelFactory,
    invoker: ToolInvoker,
) -> AgentOrchestrator:
    """Create an orchestrator wired to the shared model factory and tool invoker.

    Args:
        settings: Application settings.
        model_factory: Shared, lazily initialized backend model factory.
        invoker: Tool invoker holding the static tool registry.

    Returns:
        Configured AgentOrchestrator.
    """
    adapter = ChatModelAdapter(model_factory, invoker.declarations, settings.agent)
    return AgentOrchestrator(adapter, invoker, settings.agent)
