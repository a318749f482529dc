"""Task model and the enumerations its string columns draw from."""

from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from uuid import UUID, uuid4

from sqlalchemy import JSON, Column, DateTime, Text
from sqlmodel import Field

from taskboard.core.time import utcnow
from taskboard.models.base import QueryModel

RUNTIME_ANNOTATION_TYPES = (date, datetime)

TITLE_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 1000


class TaskStatus(str, Enum):
    """Lifecycle stage of a task. There are no transition rules between values."""

    TODO = "todo"
    IN_PROGRESS = "in_progress"
    REVIEW = "review"
    DONE = "done"


class TaskPriority(str, Enum):
    """Urgency tag, independent of status."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class TaskKind(str, Enum):
    """Tag selecting which kind-specific ``details`` payload a task carries."""

    TASK = "task"
    SUBTASK = "subtask"
    BUG = "bug"
    STORY = "story"
    EPIC = "epic"


class Task(QueryModel, table=True):
    """Task record with kind-tagged details and audit timestamps."""

    __tablename__ = "tasks"  # pyright: ignore[reportAssignmentType]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    title: str = Field(max_length=TITLE_MAX_LENGTH)
    description: str = Field(sa_column=Column(Text, nullable=False))
    status: str = Field(default=TaskStatus.TODO.value, index=True)
    priority: str = Field(default=TaskPriority.MEDIUM.value, index=True)
    kind: str = Field(default=TaskKind.TASK.value, index=True)
    deadline: date | None = None
    details: dict[str, object] | None = Field(default=None, sa_column=Column(JSON))

    # Stored as naive UTC.
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime, index=True)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)
