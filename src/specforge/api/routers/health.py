"""
Health router - liveness and configuration summary.

Endpoints:
    GET /health    Service status, version, uptime, and active provider
"""

from __future__ import annotations

import time
from datetime import UTC, datetime
from typing import Literal

from fastapi import APIRouter
from pydantic import BaseModel, Field

from specforge.api.deps import Cache, Provider, Settings

router = APIRouter()

# Module-level start time - set when the service first imports this module.
_START_TIME = time.monotonic()


class HealthResponse(BaseModel):
    """Health envelope returned from ``GET /health``."""

    status: Literal["healthy", "degraded", "unhealthy"] = "healthy"
    service: str = "specforge"
    version: str = ""
    uptime_s: float = Field(default_factory=lambda: round(time.monotonic() - _START_TIME, 1))
    timestamp: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
    provider: str = Field(default="", description="Configured text-generation backend")
    models: list[str] = Field(default_factory=list)
    cached_entries: int = 0


@router.get("/health", response_model=HealthResponse)
async def health(settings: Settings, provider: Provider, cache: Cache) -> HealthResponse:
    return HealthResponse(
        version=settings.api_version,
        provider=type(provider).__name__,
        models=provider.models(),
        cached_entries=len(cache),
    )
