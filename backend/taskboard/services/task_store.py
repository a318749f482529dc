"""Task persistence backends.

A store is an owned object with an explicit lifecycle: build it, ``start()`` it,
hand it to the service layer, and ``close()`` it on shutdown. Stores only persist
records that the service layer has already validated. Absence is signalled with
``None`` (``get``) or ``False`` (``delete``); raising is the service's job.
"""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING, Protocol

from sqlmodel import col

from taskboard.core.config import TaskStoreBackend
from taskboard.core.logging import get_logger
from taskboard.db.session import create_engine, create_session_maker, init_db
from taskboard.models.tasks import Task

if TYPE_CHECKING:
    from uuid import UUID

    from sqlalchemy.ext.asyncio import AsyncEngine

    from taskboard.core.config import Settings
    from taskboard.services.task_filters import TaskFilters

logger = get_logger(__name__)


class TaskStore(Protocol):
    """Storage contract the task service depends on."""

    async def start(self) -> None: ...

    async def close(self) -> None: ...

    async def add(self, task: Task) -> Task: ...

    async def get(self, task_id: UUID) -> Task | None: ...

    async def save(self, task: Task) -> Task: ...

    async def delete(self, task_id: UUID) -> bool: ...

    async def list(self, filters: TaskFilters) -> list[Task]: ...

    async def clear(self) -> None: ...


def _clone(task: Task) -> Task:
    return Task(**copy.deepcopy(task.model_dump()))


class InMemoryTaskStore:
    """Dict-backed store with linear-scan filtering.

    Records are copied on the way in and out so callers cannot mutate stored
    state without going through ``save``.
    """

    def __init__(self) -> None:
        self._tasks: dict[UUID, Task] = {}

    async def start(self) -> None:
        logger.info("task_store.started backend=memory")

    async def close(self) -> None:
        self._tasks.clear()
        logger.info("task_store.closed backend=memory")

    async def add(self, task: Task) -> Task:
        if task.id in self._tasks:
            msg = f"Task id already stored: {task.id}"
            raise ValueError(msg)
        self._tasks[task.id] = _clone(task)
        return _clone(task)

    async def get(self, task_id: UUID) -> Task | None:
        task = self._tasks.get(task_id)
        return _clone(task) if task is not None else None

    async def save(self, task: Task) -> Task:
        if task.id not in self._tasks:
            msg = f"Cannot save unknown task: {task.id}"
            raise KeyError(msg)
        self._tasks[task.id] = _clone(task)
        return _clone(task)

    async def delete(self, task_id: UUID) -> bool:
        return self._tasks.pop(task_id, None) is not None

    async def list(self, filters: TaskFilters) -> list[Task]:
        matched = [task for task in self._tasks.values() if filters.matches(task)]
        # Stable sort keeps insertion order among tasks created in the same instant.
        matched.sort(key=lambda task: task.created_at, reverse=True)
        return [_clone(task) for task in matched]

    async def clear(self) -> None:
        self._tasks.clear()


class SqlTaskStore:
    """SQLModel-backed store that opens one session per operation."""

    def __init__(self, engine: AsyncEngine, *, auto_migrate: bool = False) -> None:
        self._engine = engine
        self._session_maker = create_session_maker(engine)
        self._auto_migrate = auto_migrate

    async def start(self) -> None:
        await init_db(self._engine, auto_migrate=self._auto_migrate)
        logger.info(
            "task_store.started backend=sql auto_migrate=%s",
            self._auto_migrate,
        )

    async def close(self) -> None:
        await self._engine.dispose()
        logger.info("task_store.closed backend=sql")

    async def add(self, task: Task) -> Task:
        async with self._session_maker() as session:
            session.add(task)
            await session.commit()
            await session.refresh(task)
            return task

    async def get(self, task_id: UUID) -> Task | None:
        async with self._session_maker() as session:
            return await Task.objects.by_id(task_id).first(session)

    async def save(self, task: Task) -> Task:
        async with self._session_maker() as session:
            merged = await session.merge(task)
            await session.commit()
            await session.refresh(merged)
            return merged

    async def delete(self, task_id: UUID) -> bool:
        async with self._session_maker() as session:
            task = await Task.objects.by_id(task_id).first(session)
            if task is None:
                return False
            await session.delete(task)
            await session.commit()
            return True

    async def list(self, filters: TaskFilters) -> list[Task]:
        query = Task.objects.all()
        if filters.status is not None:
            query = query.filter(col(Task.status) == filters.status.value)
        if filters.priority is not None:
            query = query.filter(col(Task.priority) == filters.priority.value)
        if filters.kind is not None:
            query = query.filter(col(Task.kind) == filters.kind.value)
        lower, upper = filters.created_range()
        if lower is not None:
            query = query.filter(col(Task.created_at) >= lower)
        if upper is not None:
            query = query.filter(col(Task.created_at) < upper)
        async with self._session_maker() as session:
            return await query.order_by(col(Task.created_at).desc()).all(session)

    async def clear(self) -> None:
        async with self._session_maker() as session:
            for task in await Task.objects.all().all(session):
                await session.delete(task)
            await session.commit()


def build_task_store(settings: Settings) -> TaskStore:
    """Construct the store selected by ``TASK_STORE_BACKEND`` (not yet started)."""
    if settings.task_store_backend == TaskStoreBackend.MEMORY:
        return InMemoryTaskStore()
    return SqlTaskStore(
        create_engine(settings.database_url),
        auto_migrate=settings.db_auto_migrate,
    )
