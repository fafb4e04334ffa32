"""Request ID middleware for request tracing."""

import uuid
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

REQUEST_ID_HEADER = "X-Request-ID"


def is_valid_uuid(value: str) -> bool:
    """Check if a string is a valid UUID.

    Args:
        value: String to validate.

    Returns:
        True if valid UUID, False otherwise.
    """
    try:
        uuid.UUID(value)
        return True
    except (ValueError, TypeError):
        return False


def generate_request_id() -> str:
    """Generate a new request ID.

    Returns:
        A new UUID4 string.
    """
    return str(uuid.uuid4())


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Attach a request ID to every request and response.

    This middleware:
    - Keeps a client-supplied X-Request-ID when it is a valid UUID
    - Generates a new UUID4 if the header is missing or invalid
    - Stores the ID in request.state for handlers, logging and stream headers
    - Adds X-Request-ID to response headers
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Response]
    ) -> Response:
        """Process the request with request ID handling.

        Args:
            request: The incoming request.
            call_next: The next middleware/handler in the chain.

        Returns:
            The response with X-Request-ID header added.
        """
        request_id = request.headers.get(REQUEST_ID_HEADER, "")

        # Empty or malformed IDs are replaced
        if not request_id or not is_valid_uuid(request_id):
            request_id = generate_request_id()

        # Handlers and LoggingMiddleware read it from here
        request.state.request_id = request_id

        response = await call_next(request)

        response.headers[REQUEST_ID_HEADER] = request_id

        return response
