"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from agentchat import __version__
from agentchat.api.routes import api_router
from agentchat.config import Settings, get_settings
from agentchat.core.agent import ModelFactory
from agentchat.core.invoker import create_tool_invoker
from agentchat.middleware.logging import LoggingMiddleware, configure_logging
from agentchat.middleware.request_id import RequestIdMiddleware
from agentchat.models.request import INVALID_QUERY_MESSAGE
from agentchat.utils.errors import ErrorCode, create_error_response

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan - startup and shutdown events."""
    settings: Settings = app.state.settings

    configure_logging(
        level=settings.logging.level,
        format=settings.logging.format,
    )

    logger.info(
        "Starting agentchat-server",
        extra={
            "version": __version__,
            "host": settings.server.host,
            "port": settings.server.port,
            "log_level": settings.logging.level,
        },
    )

    # Credentials are enforced when first used, not here
    for variable in settings.missing_credentials():
        logger.warning(f"{variable} is not configured; requests needing it will fail")

    logger.info(
        "agentchat-server started successfully",
        extra={"tools": app.state.tool_invoker.tool_names},
    )

    yield

    logger.info("Shutting down agentchat-server")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    The backend model factory and tool invoker are created here, once per
    process, and shared by all requests through ``app.state``.

    Args:
        settings: Optional settings override for testing.

    Returns:
        Configured FastAPI application.
    """
    if settings is None:
        settings = get_settings()

    app = FastAPI(
        title="agentchat-server",
        description="Agentic chat server streaming reasoning, tool calls and answers over SSE",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.model_factory = ModelFactory(settings.openai)
    app.state.tool_invoker = create_tool_invoker(settings)

    # Last added = outermost: CORS, then request ID, then logging
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.server.cors.allowed_origins,
        allow_methods=settings.server.cors.allowed_methods,
        allow_headers=settings.server.cors.allowed_headers,
    )

    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(ValueError, value_error_handler)
    app.add_exception_handler(Exception, generic_error_handler)

    app.include_router(api_router)

    return app


async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Reject malformed request bodies before any streaming starts."""
    return JSONResponse(
        status_code=400,
        content={
            "detail": INVALID_QUERY_MESSAGE,
            "code": ErrorCode.INVALID_REQUEST.value,
            "errors": jsonable_encoder(exc.errors()),
        },
    )


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Handle Pydantic validation errors."""
    return JSONResponse(
        status_code=422,
        content={
            "detail": "Validation error",
            "errors": jsonable_encoder(exc.errors()),
        },
    )


async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    """Handle value errors raised while preparing a request."""
    error = create_error_response(
        ErrorCode.INVALID_REQUEST,
        detail=str(exc),
        request_id=getattr(request.state, "request_id", None),
    )
    return JSONResponse(status_code=400, content=error.model_dump(mode="json"))


async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected errors."""
    request_id = getattr(request.state, "request_id", None)

    logger.exception(
        "Unhandled exception",
        extra={
            "request_id": request_id,
            "path": request.url.path,
            "method": request.method,
        },
    )

    error = create_error_response(ErrorCode.INTERNAL_ERROR, request_id=request_id)
    return JSONResponse(status_code=500, content=error.model_dump(mode="json"))


def run() -> None:
    """Run the server with uvicorn using the configured host and port."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "agentchat.main:app",
        host=settings.server.host,
        port=settings.server.port,
        log_config=None,
    )


# Create the default app instance
app = create_app()
