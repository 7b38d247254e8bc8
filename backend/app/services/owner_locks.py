"""Per-owner serialization of task mutations.

Two layers keep concurrent requests for the same owner from interleaving:

* an in-process `asyncio.Lock` per owner id, shared by every request handled
  by this worker;
* a ``SELECT ... FOR UPDATE`` on the owner's ``users`` row inside the
  mutation's transaction, which serializes across workers on databases that
  support row locks (it is a no-op on SQLite).
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING
from weakref import WeakValueDictionary

from sqlmodel import col, select

from app.models.users import User

if TYPE_CHECKING:
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession

_OWNER_LOCKS: WeakValueDictionary[UUID, asyncio.Lock] = WeakValueDictionary()


def owner_lock(owner_id: UUID) -> asyncio.Lock:
    """Return the process-wide lock for `owner_id`, creating it on first use."""
    lock = _OWNER_LOCKS.get(owner_id)
    if lock is None:
        lock = asyncio.Lock()
        _OWNER_LOCKS[owner_id] = lock
    return lock


async def lock_owner_row(session: AsyncSession, owner_id: UUID) -> None:
    """Take a row lock on the owner for the rest of the current transaction."""
    await session.exec(
        select(User.id).where(col(User.id) == owner_id).with_for_update(),
    )
