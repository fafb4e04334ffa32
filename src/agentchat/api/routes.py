"""API route registration."""

from fastapi import APIRouter

from agentchat.api.handlers.chat import router as chat_router
from agentchat.api.handlers.health import router as health_router

# Main API router that aggregates all endpoint routers
api_router = APIRouter()

api_router.include_router(health_router, tags=["health"])
api_router.include_router(chat_router, tags=["chat"])
