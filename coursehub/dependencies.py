"""
Course service — FastAPI dependencies.

Wraps the core auth dependencies and adds per-operation role guards and
the Redis handle stored on application state.
"""
from __future__ import annotations

from collections.abc import Callable

from fastapi import Depends, HTTPException, Request, status
from redis.asyncio import Redis

from coursehub.core.auth import (
    CurrentUser,
    get_current_user_required,
)
from coursehub.core.roles import Role


# ── Base user dependencies ────────────────────────────────────────────────────

get_current_user = get_current_user_required


# ── Role guards ───────────────────────────────────────────────────────────────


def require_roles(*roles: Role) -> Callable[..., CurrentUser]:
    """Build a dependency that admits users holding at least one of ``roles``."""
    required = set(roles)

    def guard(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if not current_user.has_any_role(required):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient role",
            )
        return current_user

    return guard


require_admin = require_roles(Role.ADMIN)


# ── Infrastructure ───────────────────────────────────────────────────────────


def get_redis(request: Request) -> Redis | None:
    return getattr(request.app.state, "redis", None)
