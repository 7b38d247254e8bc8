# ruff: noqa: INP001
"""HTTP-level tests for the column and task routers."""

from __future__ import annotations

from collections.abc import AsyncIterator
from uuid import uuid4

import pytest
import pytest_asyncio
from fastapi import APIRouter, FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from app.api.auth import router as auth_router
from app.api.columns import router as columns_router
from app.api.tasks import router as tasks_router
from app.api.users import router as users_router
from app.core import auth as auth_module
from app.core.auth_mode import AuthMode
from app.core.config import settings
from app.core.error_handling import REQUEST_ID_HEADER, install_error_handling
from app.db.session import get_session
from app.services import task_mutations

TOKEN = "api-test-token-" + "x" * 40
AUTH = {"Authorization": f"Bearer {TOKEN}"}
DAY = "2024-01-01"


async def _make_engine() -> AsyncEngine:
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.connect() as conn, conn.begin():
        await conn.run_sync(SQLModel.metadata.create_all)
    return engine


def _build_test_app(session_maker: async_sessionmaker[AsyncSession]) -> FastAPI:
    app = FastAPI()
    install_error_handling(app)
    api_v1 = APIRouter(prefix="/api/v1")
    api_v1.include_router(auth_router)
    api_v1.include_router(users_router)
    api_v1.include_router(columns_router)
    api_v1.include_router(tasks_router)
    app.include_router(api_v1)

    async def _override_get_session() -> AsyncIterator[AsyncSession]:
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_session] = _override_get_session
    app.dependency_overrides[auth_module.get_session] = _override_get_session
    return app


@pytest_asyncio.fixture
async def client(monkeypatch: pytest.MonkeyPatch) -> AsyncIterator[AsyncClient]:
    monkeypatch.setattr(settings, "auth_mode", AuthMode.LOCAL)
    monkeypatch.setattr(settings, "local_auth_token", TOKEN)
    monkeypatch.setattr(auth_module, "LOCAL_AUTH_USER_ID", f"api-user-{uuid4().hex}")
    engine = await _make_engine()
    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    app = _build_test_app(session_maker)
    try:
        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://testserver",
        ) as http:
            yield http
    finally:
        await engine.dispose()


async def _column(client: AsyncClient, title: str) -> dict[str, object]:
    resp = await client.post("/api/v1/columns", json={"title": title}, headers=AUTH)
    assert resp.status_code == 201
    return resp.json()


async def _task(client: AsyncClient, column_id: object, **fields: object) -> dict[str, object]:
    body = {"column_id": column_id, "title": "task", "date": DAY, **fields}
    resp = await client.post("/api/v1/tasks", json=body, headers=AUTH)
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.mark.asyncio
async def test_routes_require_bearer_token(client: AsyncClient) -> None:
    missing = await client.get("/api/v1/tasks")
    assert missing.status_code == 401

    wrong = await client.get("/api/v1/columns", headers={"Authorization": "Bearer nope"})
    assert wrong.status_code == 401

    me = await client.get("/api/v1/users/me", headers=AUTH)
    assert me.status_code == 200
    bootstrap = await client.post("/api/v1/auth/bootstrap", headers=AUTH)
    assert bootstrap.status_code == 200
    assert bootstrap.json()["id"] == me.json()["id"]


@pytest.mark.asyncio
async def test_task_lifecycle_over_http(client: AsyncClient) -> None:
    column = await _column(client, "Work")
    created = await _task(
        client,
        column["id"],
        title="  Write report  ",
        due_time="2:00 PM",
        duration="1h",
        tags=["work", " work ", "deep"],
        subtasks=[{"id": "s1", "text": "outline"}],
    )
    assert created["title"] == "Write report"
    assert created["priority"] == "Medium"
    assert created["order"] == 0
    assert created["tags"] == ["work", "deep"]
    assert created["subtasks"] == [{"id": "s1", "text": "outline", "completed": False}]

    fetched = await client.get(f"/api/v1/tasks/{created['id']}", headers=AUTH)
    assert fetched.status_code == 200

    patched = await client.patch(
        f"/api/v1/tasks/{created['id']}",
        json={"title": "Final report", "duration": ""},
        headers=AUTH,
    )
    assert patched.status_code == 200
    assert patched.json()["title"] == "Final report"
    assert patched.json()["duration"] is None

    toggled = await client.patch(f"/api/v1/tasks/{created['id']}/toggle", headers=AUTH)
    assert toggled.json()["is_completed"] is True
    assert toggled.json()["priority"] == "Completed"

    deleted = await client.delete(f"/api/v1/tasks/{created['id']}", headers=AUTH)
    assert deleted.status_code == 200
    assert deleted.json() == {"ok": True}

    gone = await client.get(f"/api/v1/tasks/{created['id']}", headers=AUTH)
    assert gone.status_code == 404
    assert gone.json()["code"] == "not_found"
    assert gone.json()["detail"] == {"code": "not_found", "message": "Task not found"}


@pytest.mark.asyncio
async def test_daily_limit_rejection_payload(client: AsyncClient) -> None:
    column = await _column(client, "Work")
    for hour in range(1, 6):
        await _task(client, column["id"], priority="High", due_time=f"{hour}:00 AM", duration="30m")

    resp = await client.post(
        "/api/v1/tasks",
        json={
            "column_id": column["id"],
            "title": "sixth",
            "date": DAY,
            "priority": "High",
            "due_time": "9:00 PM",
        },
        headers=AUTH,
    )

    assert resp.status_code == 409
    body = resp.json()
    assert body["code"] == "daily_limit_reached"
    assert body["detail"]["message"] == (
        "Daily Limit Reached: You can only have 5 high priority tasks per day."
    )
    assert resp.headers.get(REQUEST_ID_HEADER) == body["request_id"]

    availability = await client.get(
        "/api/v1/tasks/high-priority/availability",
        params={"date": DAY},
        headers=AUTH,
    )
    assert availability.status_code == 200
    assert availability.json() == {"date": DAY, "limit": 5, "used": 5, "remaining": 0}


@pytest.mark.asyncio
async def test_time_conflict_rejection_payload(client: AsyncClient) -> None:
    column = await _column(client, "Work")
    existing = await _task(client, column["id"], priority="High", due_time="2:15 PM", duration="30m")

    resp = await client.post(
        "/api/v1/tasks",
        json={
            "column_id": column["id"],
            "title": "clash",
            "date": DAY,
            "priority": "High",
            "due_time": "2:00 PM",
            "duration": "30m",
        },
        headers=AUTH,
    )

    assert resp.status_code == 409
    body = resp.json()
    assert body["code"] == "time_conflict"
    assert body["detail"]["conflicting_task_ids"] == [existing["id"]]


@pytest.mark.asyncio
async def test_move_and_list_by_column(client: AsyncClient) -> None:
    todo = await _column(client, "Todo")
    done = await _column(client, "Done")
    first = await _task(client, todo["id"], title="first")
    await _task(client, todo["id"], title="second")
    third = await _task(client, todo["id"], title="third")

    moved = await client.patch(
        f"/api/v1/tasks/{third['id']}/move",
        json={"column_id": todo["id"], "order": 0},
        headers=AUTH,
    )
    assert moved.status_code == 200
    assert moved.json()["order"] == 0

    listed = await client.get("/api/v1/tasks", params={"column_id": todo["id"]}, headers=AUTH)
    assert [(t["title"], t["order"]) for t in listed.json()] == [
        ("third", 0),
        ("first", 1),
        ("second", 2),
    ]

    await client.patch(
        f"/api/v1/tasks/{first['id']}/move",
        json={"column_id": done["id"], "order": 5},
        headers=AUTH,
    )
    board = await client.get("/api/v1/columns", params={"include_tasks": True}, headers=AUTH)
    assert board.status_code == 200
    columns = {c["title"]: [(t["title"], t["order"]) for t in c["tasks"]] for c in board.json()}
    assert columns == {
        "Todo": [("third", 0), ("second", 1)],
        "Done": [("first", 0)],
    }


@pytest.mark.asyncio
async def test_deleting_column_cascades_over_http(client: AsyncClient) -> None:
    column = await _column(client, "Scratch")
    task = await _task(client, column["id"])

    resp = await client.delete(f"/api/v1/columns/{column['id']}", headers=AUTH)
    assert resp.status_code == 200

    assert (await client.get(f"/api/v1/tasks/{task['id']}", headers=AUTH)).status_code == 404
    missing = await client.get(f"/api/v1/columns/{column['id']}", headers=AUTH)
    assert missing.status_code == 404
    assert missing.json()["detail"]["message"] == "Column not found"


@pytest.mark.asyncio
async def test_invalid_payloads_are_rejected(client: AsyncClient) -> None:
    column = await _column(client, "Work")

    bad_date = await client.post(
        "/api/v1/tasks",
        json={"column_id": column["id"], "title": "x", "date": "01/02/2024"},
        headers=AUTH,
    )
    assert bad_date.status_code == 422

    blank_title = await client.post("/api/v1/columns", json={"title": "   "}, headers=AUTH)
    assert blank_title.status_code == 422

    task = await _task(client, column["id"])
    null_title = await client.patch(
        f"/api/v1/tasks/{task['id']}",
        json={"title": None},
        headers=AUTH,
    )
    assert null_title.status_code == 422

    negative = await client.patch(
        f"/api/v1/tasks/{task['id']}/move",
        json={"column_id": column["id"], "order": -1},
        headers=AUTH,
    )
    assert negative.status_code == 422


@pytest.mark.asyncio
async def test_storage_failure_maps_to_retryable_503(
    client: AsyncClient,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    column = await _column(client, "Work")
    monkeypatch.setattr(settings, "task_mutation_max_retries", 0)

    async def _broken_lock(session: AsyncSession, owner_id: object) -> None:
        _ = (session, owner_id)
        raise OperationalError("SELECT", {}, Exception("database is locked"))

    monkeypatch.setattr(task_mutations, "lock_owner_row", _broken_lock)

    resp = await client.post(
        "/api/v1/tasks",
        json={"column_id": column["id"], "title": "x", "date": DAY},
        headers=AUTH,
    )

    assert resp.status_code == 503
    body = resp.json()
    assert body["code"] == "storage_unavailable"
    assert body["retryable"] is True
