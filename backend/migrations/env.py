"""Alembic environment bound to the application's SQLModel metadata."""

from __future__ import annotations

import logging.config

from alembic import context
from sqlalchemy import create_engine, pool
from sqlmodel import SQLModel

from app import models as _models
from app.core.config import settings

_MODEL_REGISTRY = _models

config = context.config
if config.config_file_name is not None and config.attributes.get("configure_logger", True):
    logging.config.fileConfig(config.config_file_name)

target_metadata = SQLModel.metadata


def _sync_database_url(database_url: str) -> str:
    """Return a driver URL usable by Alembic's synchronous engine."""
    if "://" not in database_url:
        return database_url
    scheme, rest = database_url.split("://", 1)
    if scheme in {"postgresql", "postgresql+psycopg"}:
        return f"postgresql+psycopg://{rest}"
    if scheme in {"sqlite", "sqlite+aiosqlite"}:
        return f"sqlite://{rest}"
    return database_url


def run_migrations_offline() -> None:
    context.configure(
        url=_sync_database_url(settings.database_url),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = create_engine(
        _sync_database_url(settings.database_url),
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
