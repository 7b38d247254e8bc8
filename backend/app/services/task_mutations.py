"""Validated task mutations: create, update, toggle, move, delete.

Every mutation runs under the owner's serialization boundary
(`app.services.owner_locks`) and commits exactly once. Admission checks and
order adjustments happen inside that boundary, so a rejected request leaves
no trace and a storage failure rolls the whole mutation back.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, TypeVar

from fastapi import HTTPException, status
from sqlalchemy.exc import OperationalError

from app.core.config import settings
from app.core.logging import get_logger
from app.core.time import utcnow
from app.db.errors import StorageUnavailableError
from app.models.columns import BoardColumn
from app.models.tasks import PRIORITY_COMPLETED, PRIORITY_HIGH, PRIORITY_MEDIUM, Task
from app.services.admission import ScheduleCandidate, require_high_priority_admission
from app.services.owner_locks import lock_owner_row, owner_lock
from app.services.task_ordering import (
    append_position,
    apply_shifts,
    clamp_position,
    column_size,
    plan_delete,
    plan_move,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession

    from app.schemas.tasks import TaskCreate, TaskMove, TaskUpdate

logger = get_logger(__name__)
ResultT = TypeVar("ResultT")

_SCHEDULE_FIELDS = frozenset({"priority", "date", "due_time", "duration"})


def _not_found(resource: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail={"code": "not_found", "message": f"{resource} not found"},
    )


async def get_owned_task(session: AsyncSession, *, owner_id: UUID, task_id: UUID) -> Task:
    """Load a task owned by `owner_id` or raise 404."""
    task = await Task.objects.filter_by(id=task_id, owner_id=owner_id).fresh().first(session)
    if task is None:
        raise _not_found("Task")
    return task


async def get_owned_column(
    session: AsyncSession,
    *,
    owner_id: UUID,
    column_id: UUID,
) -> BoardColumn:
    """Load a column owned by `owner_id` or raise 404."""
    column = (
        await BoardColumn.objects.filter_by(id=column_id, owner_id=owner_id)
        .fresh()
        .first(session)
    )
    if column is None:
        raise _not_found("Column")
    return column


async def run_owner_mutation(
    session: AsyncSession,
    *,
    owner_id: UUID,
    action: str,
    operation: Callable[[], Awaitable[ResultT]],
) -> ResultT:
    """Run `operation` serialized per owner and commit it as one transaction.

    `operation` must reload whatever it mutates with `.fresh()` queries: rows
    cached by the session may predate the owner lock, and after a transient
    storage error the transaction is rolled back and the operation runs again
    from scratch, up to `task_mutation_max_retries` extra attempts.
    """
    attempts = settings.task_mutation_max_retries + 1
    async with owner_lock(owner_id):
        attempt = 0
        while True:
            attempt += 1
            try:
                await lock_owner_row(session, owner_id)
                result = await operation()
                await session.commit()
            except OperationalError as exc:
                await session.rollback()
                logger.warning(
                    "task.mutation.storage_error",
                    extra={
                        "action": action,
                        "owner_id": str(owner_id),
                        "attempt": attempt,
                        "max_attempts": attempts,
                    },
                )
                if attempt >= attempts:
                    raise StorageUnavailableError from exc
                continue
            except HTTPException as exc:
                await session.rollback()
                code = exc.detail.get("code") if isinstance(exc.detail, dict) else None
                logger.info(
                    "task.mutation.rejected",
                    extra={
                        "action": action,
                        "owner_id": str(owner_id),
                        "status_code": exc.status_code,
                        "code": code,
                    },
                )
                raise
            except Exception:
                await session.rollback()
                raise
            return result


async def create_task(
    session: AsyncSession,
    *,
    owner_id: UUID,
    payload: TaskCreate,
) -> Task:
    """Append a new task to its column, admitting High priority first."""

    async def _create() -> Task:
        await get_owned_column(session, owner_id=owner_id, column_id=payload.column_id)
        if payload.priority == PRIORITY_HIGH:
            await require_high_priority_admission(
                session,
                owner_id=owner_id,
                date=payload.date,
                candidate=ScheduleCandidate(due_time=payload.due_time, duration=payload.duration),
            )
        task = Task(
            owner_id=owner_id,
            column_id=payload.column_id,
            title=payload.title,
            date=payload.date,
            due_time=payload.due_time,
            duration=payload.duration,
            priority=payload.priority,
            is_completed=payload.priority == PRIORITY_COMPLETED,
            order=await append_position(
                session,
                owner_id=owner_id,
                column_id=payload.column_id,
            ),
            subtasks=[item.model_dump() for item in payload.subtasks],
            tags=list(payload.tags),
        )
        session.add(task)
        await session.flush()
        return task

    task = await run_owner_mutation(session, owner_id=owner_id, action="create", operation=_create)
    logger.info(
        "task.created",
        extra={"task_id": str(task.id), "owner_id": str(owner_id), "order": task.order},
    )
    return task


async def update_task(
    session: AsyncSession,
    *,
    owner_id: UUID,
    task_id: UUID,
    payload: TaskUpdate,
) -> Task:
    """Apply a partial update; a rejected High-priority change modifies nothing."""
    updates = payload.model_dump(exclude_unset=True)

    async def _update() -> Task:
        task = await get_owned_task(session, owner_id=owner_id, task_id=task_id)
        priority = updates.get("priority", task.priority)
        if priority == PRIORITY_HIGH and _SCHEDULE_FIELDS.intersection(updates):
            await require_high_priority_admission(
                session,
                owner_id=owner_id,
                date=updates.get("date", task.date),
                candidate=ScheduleCandidate(
                    due_time=updates.get("due_time", task.due_time),
                    duration=updates.get("duration", task.duration),
                ),
                exclude_task_id=task.id,
            )
        for key, value in updates.items():
            setattr(task, key, value)
        if "priority" in updates:
            task.is_completed = priority == PRIORITY_COMPLETED
        task.updated_at = utcnow()
        session.add(task)
        await session.flush()
        return task

    return await run_owner_mutation(session, owner_id=owner_id, action="update", operation=_update)


async def toggle_task_completion(
    session: AsyncSession,
    *,
    owner_id: UUID,
    task_id: UUID,
) -> Task:
    """Flip completion; completing forces `Completed`, reopening forces `Medium`."""

    async def _toggle() -> Task:
        task = await get_owned_task(session, owner_id=owner_id, task_id=task_id)
        task.is_completed = not task.is_completed
        task.priority = PRIORITY_COMPLETED if task.is_completed else PRIORITY_MEDIUM
        task.updated_at = utcnow()
        session.add(task)
        await session.flush()
        return task

    return await run_owner_mutation(session, owner_id=owner_id, action="toggle", operation=_toggle)


async def move_task(
    session: AsyncSession,
    *,
    owner_id: UUID,
    task_id: UUID,
    payload: TaskMove,
) -> Task:
    """Move a task within or across columns, keeping both columns dense."""

    async def _move() -> Task:
        task = await get_owned_task(session, owner_id=owner_id, task_id=task_id)
        await get_owned_column(session, owner_id=owner_id, column_id=payload.column_id)
        size = await column_size(session, owner_id=owner_id, column_id=payload.column_id)
        if payload.column_id == task.column_id:
            # The moving task is counted in `size`; the last valid slot is size - 1.
            size -= 1
        target = clamp_position(payload.order, size=size)
        shifts = plan_move(
            task_id=task.id,
            from_column_id=task.column_id,
            from_order=task.order,
            to_column_id=payload.column_id,
            to_order=target,
        )
        if not shifts:
            return task
        await apply_shifts(session, owner_id=owner_id, shifts=shifts)
        task.column_id = payload.column_id
        task.order = target
        task.updated_at = utcnow()
        session.add(task)
        await session.flush()
        return task

    task = await run_owner_mutation(session, owner_id=owner_id, action="move", operation=_move)
    logger.info(
        "task.moved",
        extra={
            "task_id": str(task.id),
            "column_id": str(task.column_id),
            "order": task.order,
        },
    )
    return task


async def delete_task(
    session: AsyncSession,
    *,
    owner_id: UUID,
    task_id: UUID,
) -> None:
    """Delete a task and close the gap it leaves in its column."""

    async def _delete() -> None:
        task = await get_owned_task(session, owner_id=owner_id, task_id=task_id)
        shifts = plan_delete(column_id=task.column_id, order=task.order)
        await session.delete(task)
        await session.flush()
        await apply_shifts(session, owner_id=owner_id, shifts=shifts)

    await run_owner_mutation(session, owner_id=owner_id, action="delete", operation=_delete)
    logger.info("task.deleted", extra={"task_id": str(task_id), "owner_id": str(owner_id)})
