"""Task CRUD, merge-then-validate updates, and deadline checks."""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING, Any
from uuid import UUID

from pydantic import TypeAdapter, ValidationError
from sqlmodel import SQLModel

from taskboard.core.exceptions import TaskDomainError, TaskNotFoundError
from taskboard.core.logging import get_logger
from taskboard.core.time import utcnow
from taskboard.models.tasks import Task, TaskKind
from taskboard.services.deadlines import is_completed_before_deadline
from taskboard.services.task_filters import TaskFilters
from taskboard.services.task_validation import validate_task_values

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping
    from datetime import datetime

    from taskboard.schemas.tasks import TaskCreate, TaskUpdate
    from taskboard.services.task_store import TaskStore

logger = get_logger(__name__)

EDITABLE_FIELDS = ("title", "description", "status", "priority", "kind", "deadline", "details")
_DEADLINE_ADAPTER: TypeAdapter[date | None] = TypeAdapter(date | None)


def _payload_values(payload: SQLModel | Mapping[str, Any], *, partial: bool) -> dict[str, Any]:
    if isinstance(payload, SQLModel):
        return payload.model_dump(exclude_unset=partial)
    return dict(payload)


def _parse_deadline(value: object, *, fallback: object) -> object:
    try:
        return _DEADLINE_ADAPTER.validate_python(value)
    except ValidationError:
        return fallback


def _parent_task_id(values: Mapping[str, Any]) -> UUID | None:
    if values.get("kind") != TaskKind.SUBTASK.value:
        return None
    details = values.get("details") or {}
    parent_id = details.get("parentTaskId")
    return UUID(str(parent_id)) if parent_id is not None else None


class TaskService:
    """Application-level task operations on top of a :class:`TaskStore`.

    Every lookup of an unknown id raises :class:`TaskNotFoundError`, whichever
    operation performed it.
    """

    def __init__(
        self,
        store: TaskStore,
        *,
        reject_past_deadlines: bool = True,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.store = store
        self.reject_past_deadlines = reject_past_deadlines
        self._clock = clock

    def _deadline_floor(self) -> date | None:
        return self._clock().date() if self.reject_past_deadlines else None

    async def _require(self, task_id: UUID) -> Task:
        task = await self.store.get(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    async def _check_parent(self, *, task_id: UUID, values: Mapping[str, Any]) -> None:
        parent_id = _parent_task_id(values)
        if parent_id is None:
            return
        if parent_id == task_id:
            msg = "A task cannot be its own parent"
            raise TaskDomainError(msg)
        if await self.store.get(parent_id) is None:
            msg = "Parent task not found"
            raise TaskDomainError(msg)

    async def create_task(self, payload: TaskCreate | Mapping[str, Any]) -> Task:
        """Validate *payload*, apply defaults, and persist a new task."""
        values = validate_task_values(
            _payload_values(payload, partial=False),
            deadline_floor=self._deadline_floor(),
        )
        now = self._clock()
        task = Task(**values, created_at=now, updated_at=now)
        await self._check_parent(task_id=task.id, values=values)
        created = await self.store.add(task)
        logger.info(
            "task.created",
            extra={"task_id": str(created.id), "kind": created.kind, "status": created.status},
        )
        return created

    async def get_task(self, task_id: UUID) -> Task:
        return await self._require(task_id)

    async def update_task(
        self,
        task_id: UUID,
        patch: TaskUpdate | Mapping[str, Any],
    ) -> Task:
        """Merge the provided fields into a task, re-validate, and persist it."""
        task = await self._require(task_id)
        changes = {
            key: value
            for key, value in _payload_values(patch, partial=True).items()
            if key in EDITABLE_FIELDS
        }
        current = {field: getattr(task, field) for field in EDITABLE_FIELDS}
        merged = {**current, **changes}

        # Only a newly set deadline is held to the past-date rule; an existing one
        # that has since passed must not block unrelated edits.
        deadline_changed = "deadline" in changes and (
            _parse_deadline(changes["deadline"], fallback=changes["deadline"]) != current["deadline"]
        )
        values = validate_task_values(
            merged,
            deadline_floor=self._deadline_floor() if deadline_changed else None,
        )
        if _parent_task_id(values) != _parent_task_id(current):
            await self._check_parent(task_id=task.id, values=values)

        task.sqlmodel_update(values)
        task.updated_at = self._clock()
        updated = await self.store.save(task)
        logger.info(
            "task.updated",
            extra={"task_id": str(updated.id), "fields": sorted(changes)},
        )
        return updated

    async def delete_task(self, task_id: UUID) -> None:
        if not await self.store.delete(task_id):
            raise TaskNotFoundError(task_id)
        logger.info("task.deleted", extra={"task_id": str(task_id)})

    async def list_tasks(self, filters: TaskFilters | None = None) -> list[Task]:
        return await self.store.list(filters or TaskFilters())

    async def is_completed_before_deadline(self, task_id: UUID) -> bool:
        task = await self._require(task_id)
        return is_completed_before_deadline(task)

    async def clear(self) -> None:
        await self.store.clear()
        logger.info("task.cleared")
