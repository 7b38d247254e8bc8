"""Small response payloads shared by several routers."""

from __future__ import annotations

from sqlmodel import SQLModel


class OkResponse(SQLModel):
    """Acknowledgement returned by delete endpoints."""

    ok: bool = True
