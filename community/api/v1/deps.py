"""
FastAPI dependencies — database session, current account and actor.

The current actor is resolved once per request and passed explicitly into
the access evaluator and the services; nothing reads a global auth context.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Optional

from fastapi import Cookie, Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from community.core.exceptions import Unauthenticated
from community.core.security import decode_access_token
from community.db.session import async_session_factory
from community.models.user import User
from community.repositories.users import UserRepository
from community.services.access import Actor
from community.services.presence import touch_activity

# auto_error=False so anonymous requests and cookie-only clients get through
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)


# ── Database session ────────────────────────────────────────────────
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


# ── Auth dependencies ───────────────────────────────────────────────
def _resolve_token(header_token: str | None, cookie_token: str | None) -> str | None:
    # Priority: Header > Cookie ("Bearer <token>" or bare token)
    if header_token:
        return header_token
    if cookie_token:
        if cookie_token.startswith("Bearer "):
            return cookie_token.split(" ", 1)[1]
        return cookie_token
    return None


async def get_current_user_optional(
    token: Optional[str] = Depends(oauth2_scheme),
    access_token: Optional[str] = Cookie(default=None),
    db: AsyncSession = Depends(get_db),
) -> User | None:
    """Decode the JWT from header or cookie; ``None`` for anonymous requests.

    Every authenticated request also refreshes the account's presence.
    """
    final_token = _resolve_token(token, access_token)
    if not final_token:
        return None

    payload = decode_access_token(final_token)
    if payload is None:
        return None

    user_id: str | None = payload.get("sub")
    if user_id is None or not user_id.isdigit():
        return None

    user = await UserRepository(db).get(int(user_id))
    if user is None:
        return None

    await touch_activity(db, user)
    return user


async def get_current_user(
    user: User | None = Depends(get_current_user_optional),
) -> User:
    if user is None:
        raise Unauthenticated("Could not validate credentials")
    return user


async def get_actor(
    user: User | None = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db),
) -> Actor | None:
    """The request's actor with resolved roles, or ``None`` when anonymous."""
    if user is None:
        return None
    roles = await UserRepository(db).role_names(user.id)
    return Actor(id=user.id, username=user.username, roles=roles)
