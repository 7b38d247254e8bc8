"""Shared SQLModel base exposing the `objects` query manager."""

from __future__ import annotations

from typing import Any, ClassVar

from sqlmodel import SQLModel

from app.db.query_manager import ModelManager


class _ObjectsDescriptor:
    def __get__(self, _instance: object, owner: type[QueryModel]) -> ModelManager:
        return ModelManager(owner)


class QueryModel(SQLModel):
    """Base for table models; `Model.objects` builds queries bound to the class."""

    objects: ClassVar[ModelManager[Any]] = _ObjectsDescriptor()  # type: ignore[assignment]
