"""Reusable FastAPI dependencies for task store and service access.

The task store is owned by the application (created and closed in the lifespan
handler) and lives on ``app.state``. Routes never reach for it directly: they
depend on :func:`get_task_service`, which tests can override with a service
bound to their own store.
"""

from __future__ import annotations

from uuid import UUID

from fastapi import Depends, Request

from taskboard.core.config import settings
from taskboard.core.exceptions import TaskNotFoundError
from taskboard.services.task_store import TaskStore
from taskboard.services.tasks import TaskService


def get_task_store(request: Request) -> TaskStore:
    """Return the store attached to the running application."""
    store = getattr(request.app.state, "task_store", None)
    if store is None:
        msg = "Task store is not initialized; was the application lifespan run?"
        raise RuntimeError(msg)
    return store


TASK_STORE_DEP = Depends(get_task_store)


def get_task_service(store: TaskStore = TASK_STORE_DEP) -> TaskService:
    """Build a request-scoped task service over the application store."""
    return TaskService(store, reject_past_deadlines=settings.reject_past_deadlines)


def parse_task_id(task_id: str) -> UUID:
    """Parse a task id path parameter; malformed ids are reported as not found."""
    try:
        return UUID(task_id)
    except ValueError as exc:
        raise TaskNotFoundError(task_id) from exc
