"""Write helpers shared by services: bulk update/delete and get-or-create."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, TypeVar

from sqlalchemy import delete, update
from sqlalchemy.exc import IntegrityError

from app.models.base import QueryModel

if TYPE_CHECKING:
    from sqlalchemy.sql.elements import ColumnElement
    from sqlmodel import SQLModel
    from sqlmodel.ext.asyncio.session import AsyncSession

ModelT = TypeVar("ModelT", bound=QueryModel)


async def delete_where(
    session: AsyncSession,
    model: type[SQLModel],
    *criteria: ColumnElement[bool],
) -> int:
    """Delete every row of `model` matching `criteria`; return the row count."""
    result = await session.exec(delete(model).where(*criteria))  # type: ignore[call-overload]
    return int(result.rowcount or 0)


async def update_where(
    session: AsyncSession,
    model: type[SQLModel],
    *criteria: ColumnElement[bool],
    values: dict[str, Any],
) -> int:
    """Apply `values` to every row of `model` matching `criteria`; return the row count."""
    statement = update(model).where(*criteria).values(**values)
    result = await session.exec(statement)  # type: ignore[call-overload]
    return int(result.rowcount or 0)


async def get_or_create(
    session: AsyncSession,
    model: type[ModelT],
    *,
    defaults: dict[str, Any] | None = None,
    **lookup: Any,
) -> tuple[ModelT, bool]:
    """Return the row matching `lookup`, inserting it with `defaults` when missing."""
    existing = await model.objects.filter_by(**lookup).first(session)
    if existing is not None:
        return existing, False
    instance = model(**lookup, **(defaults or {}))
    session.add(instance)
    try:
        await session.commit()
    except IntegrityError:
        # Lost a concurrent insert race; the winner's row is now visible.
        await session.rollback()
        existing = await model.objects.filter_by(**lookup).first(session)
        if existing is None:
            raise
        return existing, False
    await session.refresh(instance)
    return instance, True
