"""
User directory — search, online/offline lists, public profiles and role
administration.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from enum import Enum

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from community.api.v1.deps import get_actor, get_db
from community.api.v1.views import user_public
from community.core.exceptions import NotFound
from community.models.user import User
from community.repositories.users import UserRepository
from community.schemas.user import RolesRead, RolesUpdate, UserPublic
from community.services import presence
from community.services.access import Action, Actor, authorize

router = APIRouter(prefix="/users", tags=["users"])
logger = logging.getLogger(__name__)


class PresenceFilter(str, Enum):
    ONLINE = "online"
    OFFLINE = "offline"


async def _get_user_or_404(repo: UserRepository, username: str) -> User:
    user = await repo.find_by_username(username)
    if user is None:
        raise NotFound("User not found")
    return user


@router.get("", response_model=list[UserPublic])
async def list_users(
    search: str | None = Query(None, max_length=64),
    status: PresenceFilter | None = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
) -> list[UserPublic]:
    """Search accounts; ``status`` narrows to online or offline using server time."""
    repo = UserRepository(db)
    if status is PresenceFilter.ONLINE:
        users = await presence.online_users(db, search, skip=skip, limit=limit)
    elif status is PresenceFilter.OFFLINE:
        users = await presence.offline_users(db, search, skip=skip, limit=limit)
    else:
        users = await repo.search(search, skip=skip, limit=limit)

    now = datetime.now(timezone.utc)
    return [user_public(u, await repo.role_names(u.id), now) for u in users]


@router.get("/{username}", response_model=UserPublic)
async def get_user(
    username: str,
    db: AsyncSession = Depends(get_db),
) -> UserPublic:
    repo = UserRepository(db)
    user = await _get_user_or_404(repo, username)
    return user_public(user, await repo.role_names(user.id))


@router.put("/{username}/roles", response_model=RolesRead)
async def update_roles(
    username: str,
    body: RolesUpdate,
    db: AsyncSession = Depends(get_db),
    actor: Actor | None = Depends(get_actor),
) -> RolesRead:
    """Replace an account's role set (administrators only)."""
    admin = authorize(actor, Action.EDIT_ROLES)
    repo = UserRepository(db)
    user = await _get_user_or_404(repo, username)
    roles = await repo.set_roles(user.id, set(body.roles))
    logger.info(
        "Roles of %s set to %s by %s",
        user.username,
        sorted(r.value for r in roles),
        admin.username,
    )
    return RolesRead(username=user.username, roles=sorted(roles))
