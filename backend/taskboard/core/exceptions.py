"""Domain exceptions raised by services and translated by the error-handling layer."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from uuid import UUID


@dataclass(frozen=True)
class ValidationIssue:
    """One failing field in a validation error."""

    path: str
    message: str
    code: str

    def as_dict(self) -> dict[str, str]:
        return asdict(self)


def _format_loc(loc: Sequence[Any], *, strip_prefix: Sequence[str] = ()) -> str:
    parts = list(loc)
    location: str | None = None
    while parts and parts[0] in strip_prefix:
        location = str(parts.pop(0))
    # A missing body, or a JSON decode error pointing at a character offset,
    # is reported against the location itself.
    if location is not None and all(isinstance(part, int) for part in parts):
        return location
    return ".".join(str(part) for part in parts)


def issues_from_errors(
    errors: Iterable[dict[str, Any]],
    *,
    prefix: str = "",
    strip_prefix: Sequence[str] = (),
) -> list[ValidationIssue]:
    """Convert pydantic-style error dicts into validation issues."""
    issues: list[ValidationIssue] = []
    for error in errors:
        path = _format_loc(error.get("loc", ()), strip_prefix=strip_prefix)
        if prefix:
            path = f"{prefix}.{path}" if path else prefix
        issues.append(
            ValidationIssue(
                path=path,
                message=str(error.get("msg", "Invalid value")),
                code=str(error.get("type", "value_error")),
            ),
        )
    return issues


class TaskboardError(Exception):
    """Base class for errors the API translates into client responses."""


class TaskNotFoundError(TaskboardError):
    """Raised when a task id does not resolve to a stored task."""

    def __init__(self, task_id: UUID | str) -> None:
        self.task_id = task_id
        super().__init__("Task not found")


class TaskValidationError(TaskboardError):
    """Raised when a task record fails one or more field rules."""

    def __init__(self, issues: list[ValidationIssue]) -> None:
        self.issues = issues
        summary = ", ".join(f"{issue.path}: {issue.message}" for issue in issues)
        super().__init__(f"Validation error: {summary}" if summary else "Validation error")


class TaskDomainError(TaskboardError):
    """Raised when a well-formed request breaks a cross-record rule."""
