"""Dependency injection for API handlers."""

from typing import Annotated

from fastapi import Depends, Request

from agentchat.config import Settings, get_settings
from agentchat.core.agent import ModelFactory
from agentchat.core.invoker import ToolInvoker
from agentchat.core.orchestrator import AgentOrchestrator, create_orchestrator


def get_settings_dependency(request: Request) -> Settings:
    """Get application settings.

    Returns the settings the application was created with, falling back to
    get_settings() for apps that did not store any.
    """
    settings = getattr(request.app.state, "settings", None)
    return settings if settings is not None else get_settings()


SettingsDep = Annotated[Settings, Depends(get_settings_dependency)]


def get_model_factory(request: Request) -> ModelFactory:
    """Shared backend model factory created with the application."""
    return request.app.state.model_factory


def get_tool_invoker(request: Request) -> ToolInvoker:
    """Shared tool invoker created with the application."""
    return request.app.state.tool_invoker


def get_orchestrator(
    settings: SettingsDep,
    model_factory: Annotated[ModelFactory, Depends(get_model_factory)],
    invoker: Annotated[ToolInvoker, Depends(get_tool_invoker)],
) -> AgentOrchestrator:
    """Build the orchestrator for a request from the shared collaborators."""
    return create_orchestrator(settings, model_factory, invoker)


OrchestratorDep = Annotated[AgentOrchestrator, Depends(get_orchestrator)]


def get_request_id(request: Request) -> str | None:
    """Extract request ID from request state.

    The request ID is set by the request ID middleware.
    """
    return getattr(request.state, "request_id", None)


RequestIdDep = Annotated[str | None, Depends(get_request_id)]
