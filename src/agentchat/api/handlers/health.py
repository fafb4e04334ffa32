"""Health check endpoint handler."""

from datetime import datetime, timezone

from fastapi import APIRouter

from agentchat import __version__
from agentchat.models.health import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Liveness check.

    Always reports ``ok`` with the current time; it does not contact the
    generation backend or any tool provider.
    """
    return HealthResponse(
        version=__version__,
        timestamp=datetime.now(timezone.utc),
    )
