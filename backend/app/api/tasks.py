"""Task endpoints: CRUD, completion toggle, move, and High-priority availability."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

from fastapi import APIRouter, Query, status
from sqlmodel import col

from app.api.deps import OWNER_DEP, SESSION_DEP
from app.models.tasks import Task
from app.models.users import User
from app.schemas.common import OkResponse
from app.schemas.errors import ErrorResponse
from app.schemas.tasks import (
    HighPriorityAvailability,
    TaskCreate,
    TaskMove,
    TaskRead,
    TaskUpdate,
)
from app.services import task_mutations
from app.services.admission import high_priority_availability

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

router = APIRouter(prefix="/tasks", tags=["tasks"])
NOT_FOUND_RESPONSE = {
    status.HTTP_404_NOT_FOUND: {"model": ErrorResponse, "description": "Task not found."},
}
CONFLICT_RESPONSE = {
    status.HTTP_409_CONFLICT: {
        "model": ErrorResponse,
        "description": "High-priority admission rejected (daily limit or time conflict).",
        "content": {
            "application/json": {
                "example": {
                    "detail": {
                        "code": "daily_limit_reached",
                        "message": (
                            "Daily Limit Reached: You can only have 5 high priority "
                            "tasks per day."
                        ),
                    },
                    "code": "daily_limit_reached",
                },
            },
        },
    },
}
UNAVAILABLE_RESPONSE = {
    status.HTTP_503_SERVICE_UNAVAILABLE: {
        "model": ErrorResponse,
        "description": "Storage failed; the mutation was rolled back and may be retried.",
    },
}


def _read(task: Task) -> TaskRead:
    return TaskRead.model_validate(task, from_attributes=True)


@router.get("", response_model=list[TaskRead])
async def list_tasks(
    date: str | None = Query(default=None),
    column_id: UUID | None = Query(default=None),
    session: AsyncSession = SESSION_DEP,
    owner: User = OWNER_DEP,
) -> list[TaskRead]:
    """List the owner's tasks by position, newest first among equal positions."""
    query = Task.objects.filter_by(owner_id=owner.id)
    if date is not None:
        query = query.filter_by(date=date)
    if column_id is not None:
        query = query.filter_by(column_id=column_id)
    tasks = await query.order_by(col(Task.order).asc(), col(Task.created_at).desc()).all(session)
    return [_read(task) for task in tasks]


@router.get("/high-priority/availability", response_model=HighPriorityAvailability)
async def get_high_priority_availability(
    date: str = Query(..., min_length=10, max_length=10),
    session: AsyncSession = SESSION_DEP,
    owner: User = OWNER_DEP,
) -> HighPriorityAvailability:
    """Report how many High-priority slots remain on `date`."""
    limit, used = await high_priority_availability(session, owner_id=owner.id, date=date)
    return HighPriorityAvailability(
        date=date,
        limit=limit,
        used=used,
        remaining=max(limit - used, 0),
    )


@router.post(
    "",
    response_model=TaskRead,
    status_code=status.HTTP_201_CREATED,
    responses={**CONFLICT_RESPONSE, **UNAVAILABLE_RESPONSE},
)
async def create_task(
    payload: TaskCreate,
    session: AsyncSession = SESSION_DEP,
    owner: User = OWNER_DEP,
) -> TaskRead:
    """Create a task at the end of its column."""
    task = await task_mutations.create_task(session, owner_id=owner.id, payload=payload)
    return _read(task)


@router.get("/{task_id}", response_model=TaskRead, responses=NOT_FOUND_RESPONSE)
async def get_task(
    task_id: UUID,
    session: AsyncSession = SESSION_DEP,
    owner: User = OWNER_DEP,
) -> TaskRead:
    """Read one task."""
    task = await task_mutations.get_owned_task(session, owner_id=owner.id, task_id=task_id)
    return _read(task)


@router.patch(
    "/{task_id}",
    response_model=TaskRead,
    responses={**NOT_FOUND_RESPONSE, **CONFLICT_RESPONSE, **UNAVAILABLE_RESPONSE},
)
async def update_task(
    task_id: UUID,
    payload: TaskUpdate,
    session: AsyncSession = SESSION_DEP,
    owner: User = OWNER_DEP,
) -> TaskRead:
    """Apply a partial update to a task."""
    task = await task_mutations.update_task(
        session,
        owner_id=owner.id,
        task_id=task_id,
        payload=payload,
    )
    return _read(task)


@router.patch(
    "/{task_id}/toggle",
    response_model=TaskRead,
    responses={**NOT_FOUND_RESPONSE, **UNAVAILABLE_RESPONSE},
)
async def toggle_task(
    task_id: UUID,
    session: AsyncSession = SESSION_DEP,
    owner: User = OWNER_DEP,
) -> TaskRead:
    """Flip a task between completed and open."""
    task = await task_mutations.toggle_task_completion(
        session,
        owner_id=owner.id,
        task_id=task_id,
    )
    return _read(task)


@router.patch(
    "/{task_id}/move",
    response_model=TaskRead,
    responses={**NOT_FOUND_RESPONSE, **UNAVAILABLE_RESPONSE},
)
async def move_task(
    task_id: UUID,
    payload: TaskMove,
    session: AsyncSession = SESSION_DEP,
    owner: User = OWNER_DEP,
) -> TaskRead:
    """Move a task to a position within the same or another column."""
    task = await task_mutations.move_task(
        session,
        owner_id=owner.id,
        task_id=task_id,
        payload=payload,
    )
    return _read(task)


@router.delete(
    "/{task_id}",
    response_model=OkResponse,
    responses={**NOT_FOUND_RESPONSE, **UNAVAILABLE_RESPONSE},
)
async def delete_task(
    task_id: UUID,
    session: AsyncSession = SESSION_DEP,
    owner: User = OWNER_DEP,
) -> OkResponse:
    """Delete a task and close the gap in its column."""
    await task_mutations.delete_task(session, owner_id=owner.id, task_id=task_id)
    return OkResponse()
