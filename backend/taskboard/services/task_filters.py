"""List filters shared by every task store backend."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from taskboard.core.time import day_bounds, to_naive_utc

if TYPE_CHECKING:
    from datetime import date, datetime

    from taskboard.models.tasks import Task, TaskKind, TaskPriority, TaskStatus


@dataclass(frozen=True)
class TaskFilters:
    """ANDed list predicates. ``None`` disables a predicate.

    ``created_on`` selects one UTC calendar day. ``created_after`` is inclusive and
    ``created_before`` exclusive, so together they form a half-open range.
    """

    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    kind: TaskKind | None = None
    created_on: date | None = None
    created_after: datetime | None = None
    created_before: datetime | None = None

    def created_range(self) -> tuple[datetime | None, datetime | None]:
        """Return the effective half-open ``[lower, upper)`` bounds on ``created_at``."""
        lower = to_naive_utc(self.created_after) if self.created_after else None
        upper = to_naive_utc(self.created_before) if self.created_before else None
        if self.created_on is not None:
            day_start, day_end = day_bounds(self.created_on)
            lower = day_start if lower is None else max(lower, day_start)
            upper = day_end if upper is None else min(upper, day_end)
        return lower, upper

    def matches(self, task: Task) -> bool:
        if self.status is not None and task.status != self.status.value:
            return False
        if self.priority is not None and task.priority != self.priority.value:
            return False
        if self.kind is not None and task.kind != self.kind.value:
            return False
        lower, upper = self.created_range()
        if lower is not None and task.created_at < lower:
            return False
        return upper is None or task.created_at < upper
