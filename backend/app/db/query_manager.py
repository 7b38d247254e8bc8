"""Chainable, model-bound query builder exposed as `Model.objects`."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from sqlalchemy import func
from sqlmodel import SQLModel, col, select

if TYPE_CHECKING:
    from sqlalchemy.sql.elements import ColumnElement
    from sqlmodel.ext.asyncio.session import AsyncSession

ModelT = TypeVar("ModelT", bound=SQLModel)


@dataclass(frozen=True)
class ModelQuery(Generic[ModelT]):
    """Immutable query description; each builder call returns a new instance."""

    model: type[ModelT]
    criteria: tuple[Any, ...] = field(default_factory=tuple)
    ordering: tuple[Any, ...] = field(default_factory=tuple)
    limit_value: int | None = None
    refresh_existing: bool = False

    def filter(self, *criteria: ColumnElement[bool] | bool) -> ModelQuery[ModelT]:
        return replace(self, criteria=(*self.criteria, *criteria))

    def filter_by(self, **values: object) -> ModelQuery[ModelT]:
        clauses = [col(getattr(self.model, name)) == value for name, value in values.items()]
        return self.filter(*clauses)

    def order_by(self, *ordering: Any) -> ModelQuery[ModelT]:
        return replace(self, ordering=(*self.ordering, *ordering))

    def limit(self, value: int) -> ModelQuery[ModelT]:
        return replace(self, limit_value=value)

    def fresh(self) -> ModelQuery[ModelT]:
        """Overwrite rows already held by the session with the values just read."""
        return replace(self, refresh_existing=True)

    def statement(self) -> Any:
        stmt = select(self.model)
        if self.criteria:
            stmt = stmt.where(*self.criteria)
        if self.ordering:
            stmt = stmt.order_by(*self.ordering)
        if self.limit_value is not None:
            stmt = stmt.limit(self.limit_value)
        if self.refresh_existing:
            stmt = stmt.execution_options(populate_existing=True)
        return stmt

    async def all(self, session: AsyncSession) -> list[ModelT]:
        return list(await session.exec(self.statement()))

    async def first(self, session: AsyncSession) -> ModelT | None:
        return (await session.exec(self.limit(1).statement())).first()

    async def count(self, session: AsyncSession) -> int:
        stmt = select(func.count()).select_from(self.model)
        if self.criteria:
            stmt = stmt.where(*self.criteria)
        return int((await session.exec(stmt)).one())


@dataclass(frozen=True)
class ModelManager(Generic[ModelT]):
    """Entry point for building queries against a single model."""

    model: type[ModelT]

    def all(self) -> ModelQuery[ModelT]:
        return ModelQuery(self.model)

    def by_id(self, obj_id: object) -> ModelQuery[ModelT]:
        return self.filter_by(id=obj_id)

    def filter(self, *criteria: ColumnElement[bool] | bool) -> ModelQuery[ModelT]:
        return ModelQuery(self.model).filter(*criteria)

    def filter_by(self, **values: object) -> ModelQuery[ModelT]:
        return ModelQuery(self.model).filter_by(**values)
