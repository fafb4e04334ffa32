"""Health check data models."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel


class HealthResponse(BaseModel):
    """Liveness response: static status plus the time it was produced."""

    status: Literal["ok"] = "ok"
    version: str
    timestamp: datetime
