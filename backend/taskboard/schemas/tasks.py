"""Schemas for task payloads, kind-specific details, and list filters."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any
from uuid import UUID

from pydantic import Field, ValidationInfo, field_validator
from sqlmodel import SQLModel
from sqlmodel._compat import SQLModelConfig

from taskboard.models.tasks import (
    DESCRIPTION_MAX_LENGTH,
    TITLE_MAX_LENGTH,
    TaskKind,
    TaskPriority,
    TaskStatus,
)

RUNTIME_ANNOTATION_TYPES = (date, datetime, UUID)

# Validation context key: when set to a date, deadlines before it are rejected.
DEADLINE_FLOOR_CONTEXT_KEY = "deadline_floor"


class TaskFields(SQLModel):
    """Every user-editable task field with its declarative rules.

    Used for request bodies on create and, on update, to validate the merged
    record so that a partial update can never leave a task in an invalid state.
    """

    model_config = SQLModelConfig(use_enum_values=True, validate_default=True)

    title: str = Field(min_length=1, max_length=TITLE_MAX_LENGTH, examples=["Ship release notes"])
    description: str = Field(
        min_length=1,
        max_length=DESCRIPTION_MAX_LENGTH,
        examples=["Collect merged changes and publish the notes."],
    )
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    kind: TaskKind = TaskKind.TASK
    deadline: date | None = Field(default=None, examples=["2099-01-01"])
    details: dict[str, Any] | None = None

    @field_validator("title", "description", mode="before")
    @classmethod
    def _strip_text(cls, value: object) -> object:
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("deadline")
    @classmethod
    def _deadline_not_before_floor(cls, value: date | None, info: ValidationInfo) -> date | None:
        context = info.context or {}
        floor = context.get(DEADLINE_FLOOR_CONTEXT_KEY)
        if value is not None and isinstance(floor, date) and value < floor:
            msg = "Deadline cannot be in the past"
            raise ValueError(msg)
        return value


class TaskCreate(TaskFields):
    """Payload for creating a task; omitted fields take their defaults."""


class TaskUpdate(SQLModel):
    """Partial update payload; only fields present in the request are merged."""

    title: str | None = None
    description: str | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    kind: TaskKind | None = None
    deadline: date | None = None
    details: dict[str, Any] | None = None


class TaskRead(SQLModel):
    """Task payload returned by read endpoints."""

    model_config = SQLModelConfig(populate_by_name=True)

    id: UUID
    title: str
    description: str
    status: TaskStatus
    priority: TaskPriority
    kind: TaskKind
    deadline: date | None = None
    details: dict[str, Any] | None = None
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")


class DeadlineComplianceRead(SQLModel):
    """Result of checking whether a task was finished by its deadline."""

    model_config = SQLModelConfig(populate_by_name=True)

    task_id: UUID = Field(alias="taskId")
    completed_before_deadline: bool = Field(alias="completedBeforeDeadline")


# --- Kind-specific details payloads ---


class _TaskDetails(SQLModel):
    model_config = SQLModelConfig(populate_by_name=True, extra="forbid")


def _non_empty_items(values: list[str]) -> list[str]:
    cleaned = [value.strip() for value in values]
    if any(not value for value in cleaned):
        msg = "Items must be non-empty strings"
        raise ValueError(msg)
    return cleaned


class SubtaskDetails(_TaskDetails):
    """Details for a subtask: its parent task and an optional estimate."""

    parent_task_id: UUID = Field(alias="parentTaskId")
    estimated_hours: float | None = Field(default=None, gt=0, alias="estimatedHours")


class BugDetails(_TaskDetails):
    """Details for a bug report."""

    severity: str = Field(pattern="^(low|medium|high|critical)$")
    reproduction_steps: list[str] = Field(alias="reproductionSteps")
    environment: str | None = None

    @field_validator("reproduction_steps")
    @classmethod
    def _steps_non_empty(cls, value: list[str]) -> list[str]:
        return _non_empty_items(value)


class StoryDetails(_TaskDetails):
    """Details for a user story."""

    story_points: int = Field(gt=0, alias="storyPoints")
    acceptance_criteria: list[str] = Field(alias="acceptanceCriteria")
    epic_id: UUID | None = Field(default=None, alias="epicId")

    @field_validator("acceptance_criteria")
    @classmethod
    def _criteria_non_empty(cls, value: list[str]) -> list[str]:
        return _non_empty_items(value)


class EpicDetails(_TaskDetails):
    """Details for an epic grouping child stories."""

    epic_goal: str = Field(min_length=1, alias="epicGoal")
    child_stories: list[UUID] = Field(default_factory=list, alias="childStories")
    estimated_duration: int | None = Field(default=None, gt=0, alias="estimatedDuration")

    @field_validator("child_stories")
    @classmethod
    def _unique_children(cls, value: list[UUID]) -> list[UUID]:
        return list(dict.fromkeys(value))


TASK_DETAILS_SCHEMAS: dict[TaskKind, type[_TaskDetails]] = {
    TaskKind.SUBTASK: SubtaskDetails,
    TaskKind.BUG: BugDetails,
    TaskKind.STORY: StoryDetails,
    TaskKind.EPIC: EpicDetails,
}
