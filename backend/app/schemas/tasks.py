"""Schemas for task create/update/move/read API operations."""

from __future__ import annotations

from datetime import date as date_type
from datetime import datetime
from typing import Literal, Self
from uuid import UUID

from pydantic import Field, field_validator, model_validator
from sqlmodel import SQLModel

RUNTIME_ANNOTATION_TYPES = (datetime, UUID)

TaskPriority = Literal["High", "Medium", "Low", "Completed"]

TITLE_MAX_LENGTH = 200
SUBTASK_TEXT_MAX_LENGTH = 200
TAG_MAX_LENGTH = 30
_ERR_TITLE_REQUIRED = "title is required"
_ERR_DATE_FORMAT = "date must be a calendar date in YYYY-MM-DD format"
_ERR_TAG_TOO_LONG = f"tags must be at most {TAG_MAX_LENGTH} characters"
_NON_NULLABLE_UPDATE_FIELDS = ("title", "date", "priority", "subtasks", "tags")


def _validate_date(value: str) -> str:
    cleaned = value.strip()
    if len(cleaned) != 10:
        raise ValueError(_ERR_DATE_FORMAT)
    try:
        date_type.fromisoformat(cleaned)
    except ValueError as exc:
        raise ValueError(_ERR_DATE_FORMAT) from exc
    return cleaned


def _validate_title(value: str) -> str:
    cleaned = value.strip()
    if not cleaned:
        raise ValueError(_ERR_TITLE_REQUIRED)
    return cleaned


def _normalize_tags(tags: list[str]) -> list[str]:
    normalized: list[str] = []
    seen: set[str] = set()
    for tag in tags:
        cleaned = tag.strip()
        if not cleaned:
            continue
        if len(cleaned) > TAG_MAX_LENGTH:
            raise ValueError(_ERR_TAG_TOO_LONG)
        if cleaned in seen:
            continue
        seen.add(cleaned)
        normalized.append(cleaned)
    return normalized


def _blank_to_none(value: str | None) -> str | None:
    if value is None:
        return None
    cleaned = value.strip()
    return cleaned or None


class SubtaskItem(SQLModel):
    """Checklist entry embedded in a task."""

    id: str = Field(min_length=1)
    text: str = Field(min_length=1, max_length=SUBTASK_TEXT_MAX_LENGTH)
    completed: bool = False


class TaskCreate(SQLModel):
    """Payload for creating a task at the end of a column."""

    column_id: UUID
    title: str = Field(max_length=TITLE_MAX_LENGTH)
    date: str = Field(description="Scheduled day in YYYY-MM-DD format.", examples=["2024-01-01"])
    due_time: str | None = Field(default=None, examples=["2:30 PM"])
    duration: str | None = Field(default=None, examples=["1h 30m"])
    priority: TaskPriority = "Medium"
    subtasks: list[SubtaskItem] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)

    @field_validator("title")
    @classmethod
    def _clean_title(cls, value: str) -> str:
        return _validate_title(value)

    @field_validator("date")
    @classmethod
    def _clean_date(cls, value: str) -> str:
        return _validate_date(value)

    @field_validator("due_time", "duration")
    @classmethod
    def _clean_schedule(cls, value: str | None) -> str | None:
        return _blank_to_none(value)

    @field_validator("tags")
    @classmethod
    def _clean_tags(cls, value: list[str]) -> list[str]:
        return _normalize_tags(value)


class TaskUpdate(SQLModel):
    """Payload for partial task updates; column and order change only via move."""

    title: str | None = Field(default=None, max_length=TITLE_MAX_LENGTH)
    date: str | None = None
    due_time: str | None = None
    duration: str | None = None
    priority: TaskPriority | None = None
    subtasks: list[SubtaskItem] | None = None
    tags: list[str] | None = None

    @field_validator("title")
    @classmethod
    def _clean_title(cls, value: str | None) -> str | None:
        return None if value is None else _validate_title(value)

    @field_validator("date")
    @classmethod
    def _clean_date(cls, value: str | None) -> str | None:
        return None if value is None else _validate_date(value)

    @field_validator("due_time", "duration")
    @classmethod
    def _clean_schedule(cls, value: str | None) -> str | None:
        return _blank_to_none(value)

    @field_validator("tags")
    @classmethod
    def _clean_tags(cls, value: list[str] | None) -> list[str] | None:
        return None if value is None else _normalize_tags(value)

    @model_validator(mode="after")
    def _reject_explicit_nulls(self) -> Self:
        for name in _NON_NULLABLE_UPDATE_FIELDS:
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self


class TaskMove(SQLModel):
    """Payload for moving a task to a column position."""

    column_id: UUID
    order: int = Field(ge=0, description="Zero-based target position; clamped to the column size.")


class TaskRead(SQLModel):
    """Task payload returned from read endpoints."""

    id: UUID
    owner_id: UUID
    column_id: UUID
    title: str
    date: str
    due_time: str | None = None
    duration: str | None = None
    priority: TaskPriority
    is_completed: bool
    order: int
    subtasks: list[SubtaskItem] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class HighPriorityAvailability(SQLModel):
    """Remaining High-priority slots for one owner and day."""

    date: str
    limit: int
    used: int
    remaining: int
