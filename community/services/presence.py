"""
Presence tracking — last activity / last login timestamps.

An account counts as online while its last activity is at most
``TIMEOUT_ACTIVITY`` seconds old. ``touch_activity`` is debounced by the
same window so ordinary requests do not write on every hit.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from community.models.user import User
from community.repositories.users import UserRepository

logger = logging.getLogger(__name__)

TIMEOUT_ACTIVITY = 120  # seconds


def _as_utc(ts: datetime) -> datetime:
    # SQLite hands back naive datetimes
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts


def is_online(user: User, as_of: datetime | None = None) -> bool:
    if user.last_activity_at is None:
        return False
    as_of = _as_utc(as_of or datetime.now(timezone.utc))
    return as_of - _as_utc(user.last_activity_at) <= timedelta(seconds=TIMEOUT_ACTIVITY)


async def touch_activity(db: AsyncSession, user: User, now: datetime | None = None) -> bool:
    """Bump ``last_activity_at`` unless it is still inside the window."""
    now = now or datetime.now(timezone.utc)
    if is_online(user, now):
        return False
    await UserRepository(db).update_presence(user, last_activity_at=now)
    return True


async def touch_login(db: AsyncSession, user: User, now: datetime | None = None) -> bool:
    now = now or datetime.now(timezone.utc)
    await UserRepository(db).update_presence(user, last_login_at=now, last_activity_at=now)
    logger.debug("Login recorded for user %s", user.id)
    return True


async def online_users(
    db: AsyncSession, search: str | None = None, skip: int = 0, limit: int = 50
) -> list[User]:
    """Accounts active within the window, evaluated against server time."""
    return await UserRepository(db).find_online(
        datetime.now(timezone.utc), TIMEOUT_ACTIVITY, search, skip=skip, limit=limit
    )


async def offline_users(
    db: AsyncSession, search: str | None = None, skip: int = 0, limit: int = 50
) -> list[User]:
    return await UserRepository(db).find_offline(
        datetime.now(timezone.utc), TIMEOUT_ACTIVITY, search, skip=skip, limit=limit
    )
