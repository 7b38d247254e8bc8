# ruff: noqa: INP001
"""Concurrent requests for one owner, each with its own session.

These run against a file-backed SQLite database so every session gets its own
connection, the way separate requests do in production.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

import pytest
import pytest_asyncio
from fastapi import HTTPException

from app.db.session import build_engine, build_session_maker, create_schema
from app.models.columns import BoardColumn
from app.models.tasks import Task
from app.models.users import User
from app.schemas.tasks import TaskCreate, TaskMove
from app.services import task_mutations
from app.services.admission import DAILY_LIMIT_REACHED

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from pathlib import Path

    from sqlalchemy.ext.asyncio import async_sessionmaker
    from sqlmodel.ext.asyncio.session import AsyncSession

DAY = "2024-01-01"


@pytest_asyncio.fixture
async def session_maker(tmp_path: Path) -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    engine = build_engine(f"sqlite:///{tmp_path / 'board.db'}")
    await create_schema(engine)
    try:
        yield build_session_maker(engine)
    finally:
        await engine.dispose()


async def _seed_owner(
    session_maker: async_sessionmaker[AsyncSession],
    *titles: str,
) -> tuple[UUID, list[UUID]]:
    async with session_maker() as session:
        owner = User(external_id=f"owner-{uuid4().hex}")
        session.add(owner)
        await session.flush()
        columns = [
            BoardColumn(owner_id=owner.id, title=title, order=i) for i, title in enumerate(titles)
        ]
        session.add_all(columns)
        await session.commit()
        return owner.id, [column.id for column in columns]


async def _column_orders(
    session_maker: async_sessionmaker[AsyncSession],
    owner_id: UUID,
    column_id: UUID,
) -> list[int]:
    async with session_maker() as session:
        tasks = await Task.objects.filter_by(owner_id=owner_id, column_id=column_id).all(session)
        return sorted(task.order for task in tasks)


@pytest.mark.asyncio
async def test_concurrent_high_creates_admit_exactly_the_daily_limit(
    session_maker: async_sessionmaker[AsyncSession],
) -> None:
    owner_id, (column_id,) = await _seed_owner(session_maker, "Work")

    async def create_high(hour: int) -> Task:
        async with session_maker() as session:
            return await task_mutations.create_task(
                session,
                owner_id=owner_id,
                payload=TaskCreate(
                    column_id=column_id,
                    title=f"high at {hour}",
                    date=DAY,
                    priority="High",
                    due_time=f"{hour}:00 AM",
                    duration="30m",
                ),
            )

    results = await asyncio.gather(
        *(create_high(hour) for hour in range(1, 9)),
        return_exceptions=True,
    )

    created = [result for result in results if isinstance(result, Task)]
    rejected = [result for result in results if isinstance(result, HTTPException)]
    assert len(created) == 5
    assert len(rejected) == 3
    assert all(exc.status_code == 409 for exc in rejected)
    assert all(exc.detail["code"] == DAILY_LIMIT_REACHED for exc in rejected)

    async with session_maker() as session:
        stored = await Task.objects.filter_by(owner_id=owner_id, priority="High").all(session)
        assert len(stored) == 5
    assert await _column_orders(session_maker, owner_id, column_id) == [0, 1, 2, 3, 4]


@pytest.mark.asyncio
async def test_concurrent_moves_from_sessions_with_cached_rows_stay_dense(
    session_maker: async_sessionmaker[AsyncSession],
) -> None:
    owner_id, (todo_id, done_id) = await _seed_owner(session_maker, "Todo", "Done")
    task_ids: list[UUID] = []
    async with session_maker() as session:
        for i in range(5):
            task = await task_mutations.create_task(
                session,
                owner_id=owner_id,
                payload=TaskCreate(column_id=todo_id, title=f"task {i}", date=DAY),
            )
            task_ids.append(task.id)

    sessions = [session_maker() for _ in range(10)]
    try:
        # Every session caches the starting layout before any move lands.
        for session in sessions:
            await Task.objects.filter_by(owner_id=owner_id).all(session)
            await session.commit()

        moves = [
            (task_ids[i % 5], todo_id if i % 3 else done_id, (i * 7) % 5) for i in range(10)
        ]
        await asyncio.gather(
            *(
                task_mutations.move_task(
                    session,
                    owner_id=owner_id,
                    task_id=task_id,
                    payload=TaskMove(column_id=column_id, order=order),
                )
                for session, (task_id, column_id, order) in zip(sessions, moves, strict=True)
            ),
        )
    finally:
        for session in sessions:
            await session.close()

    todo = await _column_orders(session_maker, owner_id, todo_id)
    done = await _column_orders(session_maker, owner_id, done_id)
    assert todo == list(range(len(todo)))
    assert done == list(range(len(done)))
    assert len(todo) + len(done) == 5


@pytest.mark.asyncio
async def test_owned_task_lookup_sees_writes_from_other_sessions(
    session_maker: async_sessionmaker[AsyncSession],
) -> None:
    owner_id, (column_id,) = await _seed_owner(session_maker, "Work")
    async with session_maker() as session:
        first = await task_mutations.create_task(
            session,
            owner_id=owner_id,
            payload=TaskCreate(column_id=column_id, title="first", date=DAY),
        )
        await task_mutations.create_task(
            session,
            owner_id=owner_id,
            payload=TaskCreate(column_id=column_id, title="second", date=DAY),
        )
        first_id = first.id

    async with session_maker() as reader, session_maker() as writer:
        cached = await task_mutations.get_owned_task(reader, owner_id=owner_id, task_id=first_id)
        assert cached.order == 0
        await reader.commit()

        await task_mutations.move_task(
            writer,
            owner_id=owner_id,
            task_id=first_id,
            payload=TaskMove(column_id=column_id, order=1),
        )

        reloaded = await task_mutations.get_owned_task(reader, owner_id=owner_id, task_id=first_id)
        assert reloaded is cached
        assert reloaded.order == 1
