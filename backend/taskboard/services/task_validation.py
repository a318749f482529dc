"""Whole-record task validation shared by create and update."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from taskboard.core.exceptions import TaskValidationError, ValidationIssue, issues_from_errors
from taskboard.models.tasks import TaskKind
from taskboard.schemas.tasks import DEADLINE_FLOOR_CONTEXT_KEY, TASK_DETAILS_SCHEMAS, TaskFields

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import date


def _coerce_kind(value: object) -> TaskKind | None:
    try:
        return TaskKind(value)
    except ValueError:
        return None


def validate_details(kind: TaskKind, details: object) -> tuple[dict[str, Any] | None, list[ValidationIssue]]:
    """Validate a details payload against *kind*; returns the normalized payload and issues."""
    schema = TASK_DETAILS_SCHEMAS.get(kind)
    if schema is None:
        if details:
            return None, [
                ValidationIssue(
                    path="details",
                    message=f"Tasks of kind '{kind.value}' do not take details",
                    code="extra_forbidden",
                ),
            ]
        return None, []
    if details is None:
        return None, [
            ValidationIssue(
                path="details",
                message=f"Details are required for kind '{kind.value}'",
                code="missing",
            ),
        ]
    try:
        parsed = schema.model_validate(details)
    except ValidationError as exc:
        return None, issues_from_errors(exc.errors(), prefix="details")
    return parsed.model_dump(mode="json", by_alias=True, exclude_none=True), []


def validate_task_values(
    values: Mapping[str, Any],
    *,
    deadline_floor: date | None = None,
) -> dict[str, Any]:
    """Validate a full task record and return normalized field values.

    Every failing field is collected before raising, including problems in the
    kind-specific ``details`` payload, so callers see the complete list at once.
    When *deadline_floor* is given, a deadline before it is rejected.
    """
    issues: list[ValidationIssue] = []
    fields: TaskFields | None = None
    try:
        fields = TaskFields.model_validate(
            dict(values),
            context={DEADLINE_FLOOR_CONTEXT_KEY: deadline_floor},
        )
    except ValidationError as exc:
        issues.extend(issues_from_errors(exc.errors()))

    kind = _coerce_kind(values.get("kind", TaskKind.TASK))
    details: dict[str, Any] | None = None
    if kind is not None:
        details, detail_issues = validate_details(kind, values.get("details"))
        issues.extend(detail_issues)

    if issues or fields is None:
        raise TaskValidationError(issues)

    normalized = fields.model_dump()
    normalized["details"] = details
    return normalized
