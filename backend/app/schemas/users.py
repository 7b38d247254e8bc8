"""User API schemas for read operations."""

from __future__ import annotations

from uuid import UUID

from pydantic import Field
from sqlmodel import SQLModel

RUNTIME_ANNOTATION_TYPES = (UUID,)


class UserRead(SQLModel):
    """User payload returned by API responses."""

    id: UUID = Field(
        description="Internal user UUID.",
        examples=["11111111-1111-1111-1111-111111111111"],
    )
    external_id: str = Field(
        description="Identifier assigned by the authentication provider.",
        examples=["local-auth-user"],
    )
    email: str | None = Field(
        default=None,
        description="Primary email address for the user.",
        examples=["alex@example.com"],
    )
    name: str | None = Field(
        default=None,
        description="Full display name.",
        examples=["Alex Chen"],
    )
