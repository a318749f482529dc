"""Public schema exports shared across API route modules."""

from taskboard.schemas.common import OkResponse
from taskboard.schemas.errors import ErrorResponse, ValidationIssueRead
from taskboard.schemas.health import HealthStatusResponse, ServiceHealthResponse
from taskboard.schemas.tasks import (
    BugDetails,
    DeadlineComplianceRead,
    EpicDetails,
    StoryDetails,
    SubtaskDetails,
    TaskCreate,
    TaskRead,
    TaskUpdate,
)

__all__ = [
    "BugDetails",
    "DeadlineComplianceRead",
    "EpicDetails",
    "ErrorResponse",
    "HealthStatusResponse",
    "OkResponse",
    "ServiceHealthResponse",
    "StoryDetails",
    "SubtaskDetails",
    "TaskCreate",
    "TaskRead",
    "TaskUpdate",
    "ValidationIssueRead",
]
