"""High-priority admission control for a user's daily schedule.

A task may hold ``High`` priority on a given day only when

* fewer than ``daily_high_priority_limit`` (5 by default) other High tasks exist
  for the same owner and date, and
* its ``[due_time, due_time + duration)`` interval does not overlap any of
  those tasks' intervals.

The decision is computed against the rows visible to the caller's session.
Callers that need the result to hold under concurrency must evaluate it inside
the owner's serialized mutation (see `app.services.owner_locks`).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from fastapi import HTTPException, status
from sqlmodel import col

from app.core.config import settings
from app.models.tasks import PRIORITY_HIGH, Task
from app.services.task_time import intervals_overlap, task_interval

if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession

DAILY_LIMIT_REACHED = "daily_limit_reached"
TIME_CONFLICT = "time_conflict"


@dataclass(frozen=True)
class ScheduleCandidate:
    """Schedule fields of a task that wants to be High priority."""

    due_time: str | None = None
    duration: str | None = None


@dataclass(frozen=True)
class AdmissionDecision:
    """Outcome of a High-priority admission check."""

    ok: bool
    code: str | None = None
    message: str | None = None
    conflicting_task_ids: tuple[UUID, ...] = field(default_factory=tuple)


ADMITTED = AdmissionDecision(ok=True)


def daily_limit_message(limit: int) -> str:
    return f"Daily Limit Reached: You can only have {limit} high priority tasks per day."


TIME_CONFLICT_MESSAGE = "Time Conflict: Another High priority task is scheduled during this time."


def evaluate_high_priority(
    candidate: ScheduleCandidate,
    scheduled: Sequence[Task],
    *,
    limit: int,
) -> AdmissionDecision:
    """Decide admission of `candidate` against the day's other High tasks."""
    if len(scheduled) >= limit:
        return AdmissionDecision(
            ok=False,
            code=DAILY_LIMIT_REACHED,
            message=daily_limit_message(limit),
        )

    start, length = task_interval(candidate.due_time, candidate.duration)
    conflicts = tuple(
        task.id
        for task in scheduled
        if intervals_overlap(start, length, *task_interval(task.due_time, task.duration))
    )
    if conflicts:
        return AdmissionDecision(
            ok=False,
            code=TIME_CONFLICT,
            message=TIME_CONFLICT_MESSAGE,
            conflicting_task_ids=conflicts,
        )
    return ADMITTED


async def high_priority_tasks_for_day(
    session: AsyncSession,
    *,
    owner_id: UUID,
    date: str,
    exclude_task_id: UUID | None = None,
) -> list[Task]:
    """Return the owner's High tasks scheduled on `date`, minus `exclude_task_id`."""
    query = Task.objects.filter_by(owner_id=owner_id, date=date, priority=PRIORITY_HIGH)
    if exclude_task_id is not None:
        query = query.filter(col(Task.id) != exclude_task_id)
    return await query.fresh().all(session)


async def admit_high_priority(
    session: AsyncSession,
    *,
    owner_id: UUID,
    date: str,
    candidate: ScheduleCandidate,
    exclude_task_id: UUID | None = None,
) -> AdmissionDecision:
    """Check whether `candidate` may be stored as High priority on `date`."""
    scheduled = await high_priority_tasks_for_day(
        session,
        owner_id=owner_id,
        date=date,
        exclude_task_id=exclude_task_id,
    )
    return evaluate_high_priority(
        candidate,
        scheduled,
        limit=settings.daily_high_priority_limit,
    )


def rejection_error(decision: AdmissionDecision) -> HTTPException:
    """Translate a failed decision into the API's 409 error."""
    detail: dict[str, object] = {"code": decision.code, "message": decision.message}
    if decision.conflicting_task_ids:
        detail["conflicting_task_ids"] = [str(task_id) for task_id in decision.conflicting_task_ids]
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=detail)


async def require_high_priority_admission(
    session: AsyncSession,
    *,
    owner_id: UUID,
    date: str,
    candidate: ScheduleCandidate,
    exclude_task_id: UUID | None = None,
) -> None:
    """Raise a 409 `HTTPException` unless `candidate` is admitted."""
    decision = await admit_high_priority(
        session,
        owner_id=owner_id,
        date=date,
        candidate=candidate,
        exclude_task_id=exclude_task_id,
    )
    if not decision.ok:
        raise rejection_error(decision)


async def high_priority_availability(
    session: AsyncSession,
    *,
    owner_id: UUID,
    date: str,
) -> tuple[int, int]:
    """Return ``(limit, used)`` High-priority slots for the owner on `date`."""
    used = await Task.objects.filter_by(
        owner_id=owner_id,
        date=date,
        priority=PRIORITY_HIGH,
    ).count(session)
    return settings.daily_high_priority_limit, used
