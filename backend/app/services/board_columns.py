"""Column lifecycle helpers, including cascade deletion of a column's tasks."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import func
from sqlmodel import col, select

from app.core.logging import get_logger
from app.core.time import utcnow
from app.db import crud
from app.models.columns import BoardColumn
from app.models.tasks import Task
from app.services.task_mutations import get_owned_column, run_owner_mutation

if TYPE_CHECKING:
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession

    from app.schemas.columns import ColumnCreate, ColumnUpdate

logger = get_logger(__name__)


async def create_column(
    session: AsyncSession,
    *,
    owner_id: UUID,
    payload: ColumnCreate,
) -> BoardColumn:
    """Create a column after the owner's last one."""

    async def _create() -> BoardColumn:
        last_order = (
            await session.exec(
                select(func.max(BoardColumn.order)).where(col(BoardColumn.owner_id) == owner_id),
            )
        ).one()
        column = BoardColumn(
            owner_id=owner_id,
            title=payload.title,
            order=0 if last_order is None else last_order + 1,
        )
        session.add(column)
        await session.flush()
        return column

    return await run_owner_mutation(
        session,
        owner_id=owner_id,
        action="column.create",
        operation=_create,
    )


async def update_column(
    session: AsyncSession,
    *,
    owner_id: UUID,
    column_id: UUID,
    payload: ColumnUpdate,
) -> BoardColumn:
    """Rename or reposition a column."""
    updates = payload.model_dump(exclude_unset=True)

    async def _update() -> BoardColumn:
        column = await get_owned_column(session, owner_id=owner_id, column_id=column_id)
        for key, value in updates.items():
            setattr(column, key, value)
        column.updated_at = utcnow()
        session.add(column)
        await session.flush()
        return column

    return await run_owner_mutation(
        session,
        owner_id=owner_id,
        action="column.update",
        operation=_update,
    )


async def delete_column(
    session: AsyncSession,
    *,
    owner_id: UUID,
    column_id: UUID,
) -> int:
    """Delete a column and every task in it; return the number of tasks removed."""

    async def _delete() -> int:
        column = await get_owned_column(session, owner_id=owner_id, column_id=column_id)
        removed = await crud.delete_where(
            session,
            Task,
            col(Task.owner_id) == owner_id,
            col(Task.column_id) == column.id,
        )
        await session.delete(column)
        await session.flush()
        return removed

    removed = await run_owner_mutation(
        session,
        owner_id=owner_id,
        action="column.delete",
        operation=_delete,
    )
    logger.info(
        "column.deleted",
        extra={"column_id": str(column_id), "owner_id": str(owner_id), "tasks_removed": removed},
    )
    return removed
