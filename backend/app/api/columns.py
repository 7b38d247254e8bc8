"""Board column endpoints: list, create, read, update, and cascade delete."""

from __future__ import annotations

from collections import defaultdict
from typing import TYPE_CHECKING
from uuid import UUID

from fastapi import APIRouter, Query, status
from sqlmodel import col

from app.api.deps import OWNER_DEP, SESSION_DEP
from app.models.columns import BoardColumn
from app.models.tasks import Task
from app.models.users import User
from app.schemas.columns import ColumnCreate, ColumnRead, ColumnUpdate, ColumnWithTasksRead
from app.schemas.common import OkResponse
from app.schemas.errors import ErrorResponse
from app.schemas.tasks import TaskRead
from app.services.board_columns import create_column, delete_column, update_column
from app.services.task_mutations import get_owned_column

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

router = APIRouter(prefix="/columns", tags=["columns"])
NOT_FOUND_RESPONSE = {
    status.HTTP_404_NOT_FOUND: {"model": ErrorResponse, "description": "Column not found."},
}


@router.get("", response_model=list[ColumnWithTasksRead])
async def list_columns(
    include_tasks: bool = Query(default=False),
    date: str | None = Query(default=None, description="Only include tasks scheduled on this day."),
    session: AsyncSession = SESSION_DEP,
    owner: User = OWNER_DEP,
) -> list[ColumnWithTasksRead]:
    """List the owner's columns in display order, optionally with their tasks."""
    columns = (
        await BoardColumn.objects.filter_by(owner_id=owner.id)
        .order_by(col(BoardColumn.order).asc(), col(BoardColumn.created_at).asc())
        .all(session)
    )
    tasks_by_column: dict[UUID, list[TaskRead]] = defaultdict(list)
    if include_tasks:
        query = Task.objects.filter_by(owner_id=owner.id)
        if date is not None:
            query = query.filter_by(date=date)
        tasks = await query.order_by(
            col(Task.order).asc(),
            col(Task.created_at).desc(),
        ).all(session)
        for task in tasks:
            tasks_by_column[task.column_id].append(
                TaskRead.model_validate(task, from_attributes=True),
            )
    return [
        ColumnWithTasksRead.model_validate(
            {
                **ColumnRead.model_validate(column, from_attributes=True).model_dump(),
                "tasks": tasks_by_column.get(column.id, []),
            },
        )
        for column in columns
    ]


@router.post("", response_model=ColumnRead, status_code=status.HTTP_201_CREATED)
async def create_board_column(
    payload: ColumnCreate,
    session: AsyncSession = SESSION_DEP,
    owner: User = OWNER_DEP,
) -> ColumnRead:
    """Create a column after the owner's last column."""
    column = await create_column(session, owner_id=owner.id, payload=payload)
    return ColumnRead.model_validate(column, from_attributes=True)


@router.get("/{column_id}", response_model=ColumnRead, responses=NOT_FOUND_RESPONSE)
async def get_board_column(
    column_id: UUID,
    session: AsyncSession = SESSION_DEP,
    owner: User = OWNER_DEP,
) -> ColumnRead:
    """Read one column."""
    column = await get_owned_column(session, owner_id=owner.id, column_id=column_id)
    return ColumnRead.model_validate(column, from_attributes=True)


@router.patch("/{column_id}", response_model=ColumnRead, responses=NOT_FOUND_RESPONSE)
async def update_board_column(
    column_id: UUID,
    payload: ColumnUpdate,
    session: AsyncSession = SESSION_DEP,
    owner: User = OWNER_DEP,
) -> ColumnRead:
    """Rename or reposition a column."""
    column = await update_column(
        session,
        owner_id=owner.id,
        column_id=column_id,
        payload=payload,
    )
    return ColumnRead.model_validate(column, from_attributes=True)


@router.delete("/{column_id}", response_model=OkResponse, responses=NOT_FOUND_RESPONSE)
async def delete_board_column(
    column_id: UUID,
    session: AsyncSession = SESSION_DEP,
    owner: User = OWNER_DEP,
) -> OkResponse:
    """Delete a column together with all of its tasks."""
    await delete_column(session, owner_id=owner.id, column_id=column_id)
    return OkResponse()
