"""Schemas for board column API operations."""

from __future__ import annotations

from datetime import datetime
from typing import Self
from uuid import UUID

from pydantic import model_validator
from sqlmodel import Field, SQLModel

from app.schemas.tasks import TaskRead

RUNTIME_ANNOTATION_TYPES = (datetime, UUID)

COLUMN_TITLE_MAX_LENGTH = 50
_ERR_TITLE_REQUIRED = "title is required"


class ColumnCreate(SQLModel):
    """Payload for creating a column after the owner's last column."""

    title: str = Field(max_length=COLUMN_TITLE_MAX_LENGTH)

    @model_validator(mode="after")
    def validate_title(self) -> Self:
        """Trim and require a non-empty title."""
        title = self.title.strip()
        if not title:
            raise ValueError(_ERR_TITLE_REQUIRED)
        self.title = title
        return self


class ColumnUpdate(SQLModel):
    """Payload for partial column updates."""

    title: str | None = Field(default=None, max_length=COLUMN_TITLE_MAX_LENGTH)
    order: int | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def validate_title(self) -> Self:
        """Reject blank or explicit-null titles in patch payloads."""
        if "title" in self.model_fields_set:
            if self.title is None:
                raise ValueError(_ERR_TITLE_REQUIRED)
            title = self.title.strip()
            if not title:
                raise ValueError(_ERR_TITLE_REQUIRED)
            self.title = title
        if "order" in self.model_fields_set and self.order is None:
            raise ValueError("order cannot be null")
        return self


class ColumnRead(SQLModel):
    """Column payload returned from read endpoints."""

    id: UUID
    owner_id: UUID
    title: str
    order: int
    created_at: datetime
    updated_at: datetime


class ColumnWithTasksRead(ColumnRead):
    """Column payload including its tasks in display order."""

    tasks: list[TaskRead] = Field(default_factory=list)
