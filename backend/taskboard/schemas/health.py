"""Health and readiness probe response schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field
from sqlmodel import SQLModel

RUNTIME_ANNOTATION_TYPES = (datetime,)


class HealthStatusResponse(SQLModel):
    """Standard payload for service liveness/readiness checks."""

    ok: bool = Field(
        description="Indicates whether the probe check succeeded.",
        examples=[True],
    )


class ServiceHealthResponse(SQLModel):
    """Detailed health payload reporting service state and runtime environment."""

    status: str = Field(
        description="Overall service state.",
        examples=["OK"],
    )
    timestamp: datetime = Field(
        description="Server time (UTC) when the probe was answered.",
        examples=["2026-01-01T12:00:00Z"],
    )
    environment: str = Field(
        description="Runtime environment name from configuration.",
        examples=["dev", "production"],
    )
