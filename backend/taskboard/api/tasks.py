"""Task CRUD, filtered listing, and deadline-compliance endpoints."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from taskboard.api.deps import get_task_service, parse_task_id
from taskboard.core.time import to_naive_utc
from taskboard.models.tasks import TaskKind, TaskPriority, TaskStatus
from taskboard.schemas.common import OkResponse
from taskboard.schemas.errors import ErrorResponse
from taskboard.schemas.tasks import DeadlineComplianceRead, TaskCreate, TaskRead, TaskUpdate
from taskboard.services.task_filters import TaskFilters
from taskboard.services.tasks import TaskService

router = APIRouter(prefix="/tasks", tags=["tasks"])
TASK_SERVICE_DEP = Depends(get_task_service)
TASK_ID_DEP = Depends(parse_task_id)

TOTAL_COUNT_HEADER = "X-Total-Count"
NOT_FOUND_RESPONSE = {status.HTTP_404_NOT_FOUND: {"model": ErrorResponse}}
VALIDATION_RESPONSE = {status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse}}


@router.get("", response_model=list[TaskRead], responses=VALIDATION_RESPONSE)
async def list_tasks(
    response: Response,
    service: TaskService = TASK_SERVICE_DEP,
    task_status: TaskStatus | None = Query(default=None, alias="status"),
    priority: TaskPriority | None = None,
    kind: TaskKind | None = None,
    created_at: datetime | None = Query(default=None, alias="createdAt"),
    created_after: datetime | None = Query(default=None, alias="createdAfter"),
    created_before: datetime | None = Query(default=None, alias="createdBefore"),
) -> list[TaskRead]:
    """List tasks newest first; every provided filter must match.

    ``createdAt`` takes a date or a datetime and selects its whole UTC day.
    """
    tasks = await service.list_tasks(
        TaskFilters(
            status=task_status,
            priority=priority,
            kind=kind,
            created_on=to_naive_utc(created_at).date() if created_at else None,
            created_after=created_after,
            created_before=created_before,
        ),
    )
    response.headers[TOTAL_COUNT_HEADER] = str(len(tasks))
    return [TaskRead.model_validate(task, from_attributes=True) for task in tasks]


@router.post(
    "",
    response_model=TaskRead,
    status_code=status.HTTP_201_CREATED,
    responses={**VALIDATION_RESPONSE},
)
async def create_task(
    payload: TaskCreate,
    service: TaskService = TASK_SERVICE_DEP,
) -> TaskRead:
    """Create a task; omitted status/priority/kind take their defaults."""
    task = await service.create_task(payload)
    return TaskRead.model_validate(task, from_attributes=True)


@router.get("/{task_id}", response_model=TaskRead, responses=NOT_FOUND_RESPONSE)
async def get_task(
    task_uuid: UUID = TASK_ID_DEP,
    service: TaskService = TASK_SERVICE_DEP,
) -> TaskRead:
    """Get a task by id."""
    task = await service.get_task(task_uuid)
    return TaskRead.model_validate(task, from_attributes=True)


@router.put(
    "/{task_id}",
    response_model=TaskRead,
    responses={**NOT_FOUND_RESPONSE, **VALIDATION_RESPONSE},
)
@router.patch(
    "/{task_id}",
    response_model=TaskRead,
    responses={**NOT_FOUND_RESPONSE, **VALIDATION_RESPONSE},
)
async def update_task(
    payload: TaskUpdate,
    task_uuid: UUID = TASK_ID_DEP,
    service: TaskService = TASK_SERVICE_DEP,
) -> TaskRead:
    """Merge the provided fields into a task and return the validated result."""
    task = await service.update_task(task_uuid, payload)
    return TaskRead.model_validate(task, from_attributes=True)


@router.delete("/{task_id}", response_model=OkResponse, responses=NOT_FOUND_RESPONSE)
async def delete_task(
    task_uuid: UUID = TASK_ID_DEP,
    service: TaskService = TASK_SERVICE_DEP,
) -> OkResponse:
    """Delete a task; deleting an unknown or already-deleted id is a 404."""
    await service.delete_task(task_uuid)
    return OkResponse()


@router.get(
    "/{task_id}/deadline-compliance",
    response_model=DeadlineComplianceRead,
    responses=NOT_FOUND_RESPONSE,
)
async def get_deadline_compliance(
    task_uuid: UUID = TASK_ID_DEP,
    service: TaskService = TASK_SERVICE_DEP,
) -> DeadlineComplianceRead:
    """Report whether a done task was completed on or before its deadline."""
    completed = await service.is_completed_before_deadline(task_uuid)
    return DeadlineComplianceRead(task_id=task_uuid, completed_before_deadline=completed)
