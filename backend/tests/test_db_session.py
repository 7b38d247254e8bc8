# ruff: noqa: INP001
"""Engine URL handling, schema bootstrap, and readiness ping."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy import inspect

from app.db import session as session_module
from app.db.errors import StorageUnavailableError

if TYPE_CHECKING:
    from pathlib import Path


@pytest.mark.parametrize(
    ("configured", "expected"),
    [
        ("postgresql://u:p@db:5432/board", "postgresql+psycopg://u:p@db:5432/board"),
        ("sqlite:///./board.db", "sqlite+aiosqlite:///./board.db"),
        ("postgresql+asyncpg://db/board", "postgresql+asyncpg://db/board"),
        ("not-a-url", "not-a-url"),
    ],
)
def test_async_database_url_pins_async_drivers(configured: str, expected: str) -> None:
    assert session_module.async_database_url(configured) == expected


@pytest.mark.asyncio
async def test_create_schema_builds_board_tables(tmp_path: Path) -> None:
    engine = session_module.build_engine(f"sqlite:///{tmp_path / 'board.db'}")
    try:
        await session_module.create_schema(engine)
        async with engine.connect() as conn:
            tables = await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())
        assert {"users", "board_columns", "tasks"} <= set(tables)
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_ping_database_reports_unreachable_storage(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    engine = session_module.build_engine(f"sqlite:///{tmp_path / 'missing' / 'board.db'}")
    monkeypatch.setattr(session_module, "async_engine", engine)
    try:
        with pytest.raises(StorageUnavailableError):
            await session_module.ping_database()
    finally:
        await engine.dispose()
