"""Structured error payload schemas used by API responses."""

from __future__ import annotations

from pydantic import Field
from sqlmodel import SQLModel


class ErrorDetail(SQLModel):
    """Machine-readable reason attached to a rejected request."""

    code: str = Field(
        description="Stable error code clients branch on.",
        examples=["daily_limit_reached", "time_conflict", "not_found"],
    )
    message: str = Field(
        description="Human-readable message suitable for verbatim display.",
        examples=["Daily Limit Reached: You can only have 5 high priority tasks per day."],
    )


class ErrorResponse(SQLModel):
    """Standard error envelope returned by every failing endpoint."""

    detail: ErrorDetail | str | list[object] = Field(
        description=(
            "Error payload. Clients should rely on `code` when present and fall back "
            "to `message` for display."
        ),
    )
    request_id: str | None = Field(
        default=None,
        description="Request correlation identifier injected by middleware.",
    )
    code: str | None = Field(
        default=None,
        description="Copy of `detail.code` when the detail is structured.",
    )
    retryable: bool | None = Field(
        default=None,
        description="Whether the whole request can be retried unchanged.",
    )
