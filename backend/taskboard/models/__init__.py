"""Model exports for SQLAlchemy/SQLModel metadata discovery."""

from taskboard.models.tasks import Task, TaskKind, TaskPriority, TaskStatus

__all__ = [
    "Task",
    "TaskKind",
    "TaskPriority",
    "TaskStatus",
]
