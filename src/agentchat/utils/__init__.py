"""Error taxonomy and error-reporting helpers."""

from agentchat.utils.errors import (
    AgentChatError,
    ErrorCode,
    MissingCredentialError,
    ResponseTooLargeError,
    ToolRoundLimitError,
    classify_exception,
    create_stream_error_event,
    log_error,
)

__all__ = [
    "AgentChatError",
    "ErrorCode",
    "MissingCredentialError",
    "ResponseTooLargeError",
    "ToolRoundLimitError",
    "classify_exception",
    "create_stream_error_event",
    "log_error",
]
