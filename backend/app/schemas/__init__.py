"""Public schema exports shared across API route modules."""

from app.schemas.columns import ColumnCreate, ColumnRead, ColumnUpdate, ColumnWithTasksRead
from app.schemas.common import OkResponse
from app.schemas.errors import ErrorDetail, ErrorResponse
from app.schemas.health import HealthStatusResponse
from app.schemas.tasks import (
    HighPriorityAvailability,
    SubtaskItem,
    TaskCreate,
    TaskMove,
    TaskRead,
    TaskUpdate,
)
from app.schemas.users import UserRead

__all__ = [
    "ColumnCreate",
    "ColumnRead",
    "ColumnUpdate",
    "ColumnWithTasksRead",
    "ErrorDetail",
    "ErrorResponse",
    "HealthStatusResponse",
    "HighPriorityAvailability",
    "OkResponse",
    "SubtaskItem",
    "TaskCreate",
    "TaskMove",
    "TaskRead",
    "TaskUpdate",
    "UserRead",
]
