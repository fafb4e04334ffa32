"""Chat request data models."""

from typing import Annotated

from pydantic import BaseModel, Field, StrictStr

INVALID_QUERY_MESSAGE = (
    "Invalid request. 'query' field is required and must be a non-empty string."
)


class ChatRequest(BaseModel):
    """Request body for the chat endpoint."""

    query: Annotated[
        StrictStr,
        Field(
            min_length=1,
            description="Natural-language question for the agent",
        ),
    ]
