"""Task model representing scheduled, prioritized board items."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import JSON, Column, Index
from sqlmodel import Field

from app.core.time import utcnow
from app.models.base import QueryModel

RUNTIME_ANNOTATION_TYPES = (datetime,)

PRIORITY_HIGH = "High"
PRIORITY_MEDIUM = "Medium"
PRIORITY_COMPLETED = "Completed"


class Task(QueryModel, table=True):
    """Column-scoped task with a dense per-column `order` and a daily schedule."""

    __tablename__ = "tasks"  # pyright: ignore[reportAssignmentType]
    __table_args__ = (
        Index("ix_tasks_owner_date_priority", "owner_id", "date", "priority"),
        Index("ix_tasks_owner_column_order", "owner_id", "column_id", "order"),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    owner_id: UUID = Field(foreign_key="users.id", index=True)
    column_id: UUID = Field(foreign_key="board_columns.id", index=True)

    title: str
    date: str = Field(index=True)
    due_time: str | None = None
    duration: str | None = None
    priority: str = Field(default=PRIORITY_MEDIUM)
    is_completed: bool = Field(default=False)
    order: int = Field(default=0)
    subtasks: list[dict[str, object]] = Field(default_factory=list, sa_column=Column(JSON))
    tags: list[str] = Field(default_factory=list, sa_column=Column(JSON))

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
