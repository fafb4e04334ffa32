"""Error taxonomy and helpers for consistent error responses and events."""

import logging
from enum import Enum
from typing import Any

from pydantic import BaseModel

from agentchat.models.events import ErrorEvent

logger = logging.getLogger(__name__)


class ErrorCode(str, Enum):
    """Standard error codes for API responses and stream errors."""

    # Request errors
    INVALID_REQUEST = "INVALID_REQUEST"
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Configuration errors
    MISSING_CREDENTIAL = "MISSING_CREDENTIAL"

    # Provider errors
    AUTH_INVALID = "AUTH_INVALID"
    RATE_LIMITED = "RATE_LIMITED"
    MODEL_NOT_FOUND = "MODEL_NOT_FOUND"
    PROVIDER_ERROR = "PROVIDER_ERROR"
    RESPONSE_TOO_LARGE = "RESPONSE_TOO_LARGE"
    TOOL_LIMIT_EXCEEDED = "TOOL_LIMIT_EXCEEDED"

    # Server errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    TIMEOUT = "TIMEOUT"


class AgentChatError(Exception):
    """Base class for failures that end the current agent run."""

    code: ErrorCode = ErrorCode.INTERNAL_ERROR


class MissingCredentialError(AgentChatError):
    """A required credential was not configured."""

    code = ErrorCode.MISSING_CREDENTIAL

    def __init__(self, variable: str, purpose: str):
        self.variable = variable
        super().__init__(f"{variable} environment variable is required for {purpose}")


class ResponseTooLargeError(AgentChatError):
    """The model produced more text in one turn than allowed."""

    code = ErrorCode.RESPONSE_TOO_LARGE

    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f"Model response exceeded the maximum of {limit} characters")


class ToolRoundLimitError(AgentChatError):
    """The model kept requesting tools past the configured number of rounds."""

    code = ErrorCode.TOOL_LIMIT_EXCEEDED

    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f"Model requested tools in more than {limit} consecutive turns")


class ErrorResponse(BaseModel):
    """HTTP error response model."""

    detail: str
    code: ErrorCode | None = None
    request_id: str | None = None


USER_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.INVALID_REQUEST: "Invalid request format",
    ErrorCode.VALIDATION_ERROR: "Request validation failed",
    ErrorCode.MISSING_CREDENTIAL: "The server is missing a required credential",
    ErrorCode.AUTH_INVALID: "The AI provider rejected the configured credentials",
    ErrorCode.RATE_LIMITED: (
        "The service is experiencing high demand. Please try again in a moment."
    ),
    ErrorCode.MODEL_NOT_FOUND: "The configured model was not found",
    ErrorCode.PROVIDER_ERROR: "The AI provider returned an error. Please try again.",
    ErrorCode.RESPONSE_TOO_LARGE: "The model response was too large to process",
    ErrorCode.TOOL_LIMIT_EXCEEDED: "The agent used too many tool calls to answer",
    ErrorCode.INTERNAL_ERROR: "An unexpected error occurred",
    ErrorCode.SERVICE_UNAVAILABLE: (
        "The service is temporarily unavailable. Please try again later."
    ),
    ErrorCode.TIMEOUT: "The request timed out. Please try again.",
}

DEFAULT_USER_MESSAGE = "An unexpected error occurred"

MAX_ERROR_LENGTH = 500


def get_user_message(code: ErrorCode | None, default: str | None = None) -> str:
    """Get user-appropriate error message for an error code.

    Args:
        code: The error code.
        default: Default message if code not found.

    Returns:
        User-friendly error message.
    """
    if code is None:
        return default or DEFAULT_USER_MESSAGE

    return USER_MESSAGES.get(code, default or DEFAULT_USER_MESSAGE)


def truncate_error(error: str, max_length: int = MAX_ERROR_LENGTH) -> str:
    """Truncate error message if too long."""
    if len(error) <= max_length:
        return error

    return error[: max_length - 3] + "..."


def create_error_response(
    code: ErrorCode,
    detail: str | None = None,
    request_id: str | None = None,
) -> ErrorResponse:
    """Create a standardized error response.

    Args:
        code: The error code.
        detail: Optional custom detail message.
        request_id: Optional request ID.

    Returns:
        ErrorResponse model.
    """
    message = detail if detail else get_user_message(code)
    return ErrorResponse(
        detail=truncate_error(message),
        code=code,
        request_id=request_id,
    )


def create_stream_error_event(
    code: ErrorCode | None = None,
    message: str | None = None,
) -> ErrorEvent:
    """Create an error event for the event stream.

    Args:
        code: Optional error code.
        message: Optional raw failure message (takes precedence over code).

    Returns:
        ErrorEvent carrying the failure description.
    """
    if message:
        error_message = truncate_error(message)
    else:
        error_message = get_user_message(code)

    return ErrorEvent(content=error_message)


def classify_exception(exc: BaseException) -> ErrorCode:
    """Classify an exception to an error code.

    Args:
        exc: The exception to classify.

    Returns:
        Appropriate error code.
    """
    import httpx
    from pydantic import ValidationError
    from pydantic_ai.exceptions import ModelHTTPError, UnexpectedModelBehavior

    if isinstance(exc, AgentChatError):
        return exc.code

    if isinstance(exc, ValidationError):
        return ErrorCode.VALIDATION_ERROR

    if isinstance(exc, (ModelHTTPError, httpx.HTTPStatusError)):
        if isinstance(exc, ModelHTTPError):
            status_code = exc.status_code
        else:
            status_code = exc.response.status_code
        if status_code in (401, 403):
            return ErrorCode.AUTH_INVALID
        elif status_code == 429:
            return ErrorCode.RATE_LIMITED
        elif status_code == 404:
            return ErrorCode.MODEL_NOT_FOUND
        elif status_code >= 500:
            return ErrorCode.SERVICE_UNAVAILABLE
        else:
            return ErrorCode.PROVIDER_ERROR

    if isinstance(exc, UnexpectedModelBehavior):
        return ErrorCode.PROVIDER_ERROR

    if isinstance(exc, (httpx.TimeoutException, TimeoutError)):
        return ErrorCode.TIMEOUT

    if isinstance(exc, (httpx.ConnectError, ConnectionError)):
        return ErrorCode.SERVICE_UNAVAILABLE

    return ErrorCode.INTERNAL_ERROR


def log_error(
    exc: BaseException,
    code: ErrorCode | None = None,
    request_id: str | None = None,
    **context: Any,
) -> None:
    """Log an error with context.

    Args:
        exc: The exception that occurred.
        code: Optional pre-classified error code.
        request_id: Optional request ID.
        **context: Additional context to include in log.
    """
    if code is None:
        code = classify_exception(exc)

    log_extra = {
        "error_code": code.value,
        "error_type": type(exc).__name__,
        "request_id": request_id,
        **context,
    }

    # Full traceback only for errors we cannot explain
    if code == ErrorCode.INTERNAL_ERROR:
        logger.exception("Internal error occurred", extra=log_extra)
    else:
        logger.error(f"Agent run failed: {exc}", extra=log_extra)
