"""Chat endpoint handler."""

import logging

from fastapi import APIRouter, Request

from agentchat.api.deps import OrchestratorDep, RequestIdDep, SettingsDep
from agentchat.core.streaming import (
    create_streaming_response,
    stream_events,
    stream_with_timeout,
)
from agentchat.models.request import ChatRequest

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/chat")
async def chat(
    request_body: ChatRequest,
    request: Request,
    settings: SettingsDep,
    orchestrator: OrchestratorDep,
    request_id: RequestIdDep,
):
    """Answer a query with a stream of agent events.

    The response is ``text/event-stream``: one ``data: <json>`` frame per
    reasoning, tool_call, response or error event, ended by ``data: [DONE]``.
    Invalid requests are rejected with HTTP 400 before streaming starts.

    Args:
        request_body: The chat request containing the query.
        request: The FastAPI request object, used for disconnect detection.
        settings: Application settings dependency.
        orchestrator: Agent orchestrator dependency.
        request_id: Request ID assigned by the middleware.

    Returns:
        StreamingResponse with SSE events.
    """
    logger.info(
        "Chat request received",
        extra={"request_id": request_id, "query_length": len(request_body.query)},
    )

    events = orchestrator.run(request_body.query)
    frames = stream_events(events)
    wrapped = stream_with_timeout(
        frames,
        timeout=settings.server.timeout_seconds,
        request=request,
    )

    return create_streaming_response(wrapped, request)
