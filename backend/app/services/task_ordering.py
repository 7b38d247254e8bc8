"""Dense per-column task ordering.

Within one ``(owner, column)`` pair task orders are always exactly
``0..n-1``. Each mutation is expressed as a small list of `OrderShift`
adjustments (a contiguous order range in one column moved by +1 or -1) that
are applied in the same transaction as the task's own field change.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from sqlmodel import col

from app.db import crud
from app.models.tasks import Task

if TYPE_CHECKING:
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession


@dataclass(frozen=True)
class OrderShift:
    """Add `delta` to every task order in ``[lower, upper]`` of one column.

    `upper=None` means unbounded above. The task named by `exclude_task_id`
    is never shifted.
    """

    column_id: UUID
    delta: int
    lower: int
    upper: int | None = None
    exclude_task_id: UUID | None = None


def plan_delete(*, column_id: UUID, order: int) -> list[OrderShift]:
    """Close the gap left by removing the task at `order`."""
    return [OrderShift(column_id=column_id, delta=-1, lower=order + 1)]


def plan_move(
    *,
    task_id: UUID,
    from_column_id: UUID,
    from_order: int,
    to_column_id: UUID,
    to_order: int,
) -> list[OrderShift]:
    """Return the shifts needed to place `task_id` at ``(to_column_id, to_order)``."""
    if from_column_id != to_column_id:
        return [
            OrderShift(
                column_id=from_column_id,
                delta=-1,
                lower=from_order + 1,
                exclude_task_id=task_id,
            ),
            OrderShift(
                column_id=to_column_id,
                delta=1,
                lower=to_order,
                exclude_task_id=task_id,
            ),
        ]
    if from_order < to_order:
        return [
            OrderShift(
                column_id=from_column_id,
                delta=-1,
                lower=from_order + 1,
                upper=to_order,
                exclude_task_id=task_id,
            ),
        ]
    if from_order > to_order:
        return [
            OrderShift(
                column_id=from_column_id,
                delta=1,
                lower=to_order,
                upper=from_order - 1,
                exclude_task_id=task_id,
            ),
        ]
    return []


def clamp_position(order: int, *, size: int) -> int:
    """Clamp a requested position into ``[0, size]``."""
    return max(0, min(order, size))


async def column_size(session: AsyncSession, *, owner_id: UUID, column_id: UUID) -> int:
    return await Task.objects.filter_by(owner_id=owner_id, column_id=column_id).count(session)


async def append_position(session: AsyncSession, *, owner_id: UUID, column_id: UUID) -> int:
    """Order a newly created task receives: the current size of its column."""
    return await column_size(session, owner_id=owner_id, column_id=column_id)


async def apply_shifts(
    session: AsyncSession,
    *,
    owner_id: UUID,
    shifts: list[OrderShift],
) -> int:
    """Apply `shifts` as bulk updates scoped to `owner_id`; return rows touched."""
    touched = 0
    for shift in shifts:
        criteria = [
            col(Task.owner_id) == owner_id,
            col(Task.column_id) == shift.column_id,
            col(Task.order) >= shift.lower,
        ]
        if shift.upper is not None:
            criteria.append(col(Task.order) <= shift.upper)
        if shift.exclude_task_id is not None:
            criteria.append(col(Task.id) != shift.exclude_task_id)
        touched += await crud.update_where(
            session,
            Task,
            *criteria,
            values={"order": col(Task.order) + shift.delta},
        )
    return touched

