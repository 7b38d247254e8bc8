"""Async engine and request-scoped sessions for the board database.

`build_engine`, `build_session_maker` and `create_schema` are the same
building blocks the module-level engine is made from, so tests can stand up
an isolated database (in memory or file-backed) with production settings.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import TYPE_CHECKING

from alembic.config import Config
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from app import models  # noqa: F401  (registers every table on SQLModel.metadata)
from app.core.config import settings
from app.core.logging import get_logger
from app.db.errors import StorageUnavailableError

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

logger = get_logger(__name__)

BACKEND_DIR = Path(__file__).resolve().parents[2]
ALEMBIC_INI = BACKEND_DIR / "alembic.ini"
MIGRATION_VERSIONS_DIR = BACKEND_DIR / "migrations" / "versions"

_ASYNC_DRIVERS = {
    "postgresql": "postgresql+psycopg",
    "sqlite": "sqlite+aiosqlite",
}


def async_database_url(database_url: str) -> str:
    """Pin bare ``postgresql://`` and ``sqlite://`` URLs to their async drivers."""
    scheme, sep, rest = database_url.partition("://")
    driver = _ASYNC_DRIVERS.get(scheme)
    if not sep or driver is None:
        return database_url
    return f"{driver}://{rest}"


def build_engine(database_url: str) -> AsyncEngine:
    """Create an async engine for `database_url`."""
    return create_async_engine(async_database_url(database_url), pool_pre_ping=True)


def build_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory whose objects stay readable after commit."""
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def create_schema(engine: AsyncEngine) -> None:
    """Create every registered table that does not exist yet."""
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async_engine = build_engine(settings.database_url)
async_session_maker = build_session_maker(async_engine)


def run_migrations() -> None:
    """Upgrade the configured database to the latest Alembic revision."""
    from alembic import command

    config = Config(str(ALEMBIC_INI))
    config.attributes["configure_logger"] = False
    logger.info("db.migrations.starting", extra={"alembic_ini": str(ALEMBIC_INI)})
    command.upgrade(config, "head")
    logger.info("db.migrations.complete")


async def init_db() -> None:
    """Bring the schema up to date at startup.

    With `db_auto_migrate` on and revisions present, Alembic owns the schema.
    Otherwise the tables are created straight from the model metadata.
    """
    if settings.db_auto_migrate:
        if any(MIGRATION_VERSIONS_DIR.glob("*.py")):
            await asyncio.to_thread(run_migrations)
            return
        logger.warning("db.migrations.none_found", extra={"fallback": "create_all"})
    await create_schema(async_engine)
    logger.info("db.schema.created")


async def ping_database() -> None:
    """Round-trip ``SELECT 1``; raise `StorageUnavailableError` when that fails."""
    try:
        async with async_engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.warning("db.ping.failed", extra={"error": type(exc).__name__})
        raise StorageUnavailableError from exc


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield one session per request; an unfinished transaction is rolled back."""
    async with async_session_maker() as session:
        try:
            yield session
        finally:
            if session.in_transaction():
                try:
                    await session.rollback()
                except SQLAlchemyError:
                    logger.exception("db.session.rollback_failed")
