"""Deadline compliance check."""

from __future__ import annotations

from typing import TYPE_CHECKING

from taskboard.models.tasks import TaskStatus

if TYPE_CHECKING:
    from taskboard.models.tasks import Task


def is_completed_before_deadline(task: Task) -> bool:
    """Return whether a done task was finished on or before its deadline day.

    ``updated_at`` stands in for the completion time. ``created_at`` says nothing
    about when work finished and is never consulted.
    """
    if task.status != TaskStatus.DONE.value:
        return False
    if task.deadline is None:
        return True
    return task.updated_at.date() <= task.deadline
