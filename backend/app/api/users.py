"""User profile endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from app.api.deps import OWNER_DEP
from app.models.users import User
from app.schemas.users import UserRead

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserRead)
async def read_current_user(owner: User = OWNER_DEP) -> UserRead:
    """Return the authenticated user's profile."""
    return UserRead.model_validate(owner, from_attributes=True)
