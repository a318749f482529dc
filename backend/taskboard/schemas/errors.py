"""Structured error payload schemas used by API responses."""

from __future__ import annotations

from pydantic import Field
from sqlmodel import SQLModel


class ValidationIssueRead(SQLModel):
    """One failing field reported by a validation error."""

    path: str = Field(description="Dotted field path.", examples=["title", "details.severity"])
    message: str = Field(examples=["String should have at most 100 characters"])
    code: str = Field(examples=["string_too_long"])


class ErrorResponse(SQLModel):
    """Standard error envelope returned by every failing request."""

    error: str = Field(
        description="Human-readable error summary.",
        examples=["Validation error", "Task not found"],
    )
    details: list[ValidationIssueRead] | None = Field(
        default=None,
        description="Per-field issues; present for validation failures only.",
    )
    request_id: str | None = Field(
        default=None,
        description="Request correlation identifier injected by middleware.",
    )
