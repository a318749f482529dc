# ruff: noqa: INP001
"""Validation rules for task fields and kind-specific details."""

from __future__ import annotations

from datetime import date
from uuid import uuid4

import pytest

from taskboard.core.exceptions import TaskValidationError
from taskboard.models.tasks import TaskKind
from taskboard.services.task_validation import validate_details, validate_task_values


def _paths(exc: TaskValidationError) -> set[str]:
    return {issue.path for issue in exc.issues}


def test_defaults_are_applied_and_text_is_trimmed() -> None:
    values = validate_task_values({"title": "  Write docs  ", "description": " Cover the API "})

    assert values["title"] == "Write docs"
    assert values["description"] == "Cover the API"
    assert values["status"] == "todo"
    assert values["priority"] == "medium"
    assert values["kind"] == "task"
    assert values["deadline"] is None
    assert values["details"] is None


def test_title_length_boundary() -> None:
    assert validate_task_values({"title": "x" * 100, "description": "d"})["title"] == "x" * 100

    with pytest.raises(TaskValidationError) as exc:
        validate_task_values({"title": "x" * 101, "description": "d"})
    assert exc.value.issues[0].path == "title"
    assert exc.value.issues[0].code == "string_too_long"


def test_blank_text_fields_are_rejected_after_trimming() -> None:
    with pytest.raises(TaskValidationError) as exc:
        validate_task_values({"title": "   ", "description": "d" * 1001})
    assert _paths(exc.value) == {"title", "description"}


def test_every_failing_field_is_reported() -> None:
    with pytest.raises(TaskValidationError) as exc:
        validate_task_values(
            {"title": "", "status": "finished", "priority": "asap", "deadline": "not-a-date"},
        )
    assert _paths(exc.value) == {"title", "description", "status", "priority", "deadline"}


def test_deadline_floor_rejects_past_dates_only_when_given() -> None:
    values = {"title": "t", "description": "d", "deadline": date(2020, 1, 1)}

    assert validate_task_values(values)["deadline"] == date(2020, 1, 1)

    with pytest.raises(TaskValidationError) as exc:
        validate_task_values(values, deadline_floor=date(2024, 6, 1))
    assert exc.value.issues[0].path == "deadline"
    assert "Deadline cannot be in the past" in exc.value.issues[0].message


def test_deadline_equal_to_floor_is_accepted() -> None:
    values = {"title": "t", "description": "d", "deadline": "2024-06-01"}
    assert validate_task_values(values, deadline_floor=date(2024, 6, 1))["deadline"] == date(
        2024, 6, 1
    )


def test_plain_task_rejects_details() -> None:
    with pytest.raises(TaskValidationError) as exc:
        validate_task_values({"title": "t", "description": "d", "details": {"severity": "low"}})
    assert exc.value.issues[0].path == "details"
    assert exc.value.issues[0].code == "extra_forbidden"


def test_non_plain_kind_requires_details() -> None:
    normalized, issues = validate_details(TaskKind.BUG, None)
    assert normalized is None
    assert [issue.code for issue in issues] == ["missing"]


def test_subtask_details_are_normalized_to_camel_case() -> None:
    parent_id = uuid4()
    values = validate_task_values(
        {
            "title": "t",
            "description": "d",
            "kind": "subtask",
            "details": {"parent_task_id": str(parent_id), "estimated_hours": 2.5},
        },
    )
    assert values["details"] == {"parentTaskId": str(parent_id), "estimatedHours": 2.5}


def test_bug_details_errors_are_prefixed_with_details() -> None:
    with pytest.raises(TaskValidationError) as exc:
        validate_task_values(
            {
                "title": "t",
                "description": "d",
                "kind": "bug",
                "details": {"severity": "major", "reproductionSteps": ["open app", " "]},
            },
        )
    assert _paths(exc.value) == {"details.severity", "details.reproductionSteps"}


def test_unknown_detail_fields_are_rejected() -> None:
    _, issues = validate_details(TaskKind.STORY, {"storyPoints": 3, "acceptanceCriteria": [], "x": 1})
    assert [issue.path for issue in issues] == ["details.x"]


def test_epic_child_stories_are_deduplicated() -> None:
    story_id = uuid4()
    normalized, issues = validate_details(
        TaskKind.EPIC,
        {"epicGoal": "Launch", "childStories": [str(story_id), str(story_id)]},
    )
    assert issues == []
    assert normalized == {"epicGoal": "Launch", "childStories": [str(story_id)]}


def test_unknown_kind_reports_kind_without_details_noise() -> None:
    with pytest.raises(TaskValidationError) as exc:
        validate_task_values({"title": "t", "description": "d", "kind": "feature", "details": {}})
    assert _paths(exc.value) == {"kind"}
