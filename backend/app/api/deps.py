"""Reusable FastAPI dependencies for auth and owner scoping.

Every column and task route is scoped to the authenticated user: routes depend
on `require_owner` and pass the returned user's id to the service layer, which
filters every read and write by it. A resource that exists but belongs to
someone else is reported exactly like a missing one (404).
"""

from __future__ import annotations

from fastapi import Depends, HTTPException, status

from app.core.auth import AuthContext, get_auth_context
from app.db.session import get_session
from app.models.users import User

AUTH_DEP = Depends(get_auth_context)
SESSION_DEP = Depends(get_session)


def require_owner(auth: AuthContext = AUTH_DEP) -> User:
    """Require an authenticated user and return it as the data owner."""
    if auth.actor_type != "user" or auth.user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    return auth.user


OWNER_DEP = Depends(require_owner)
