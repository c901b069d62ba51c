"""
User blog — an author's posts, newest first, with ownership flags.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from community.api.v1.deps import get_actor, get_db
from community.api.v1.views import article_read, user_public
from community.core.exceptions import NotFound
from community.repositories.content import ArticleRepository
from community.repositories.users import UserRepository
from community.schemas.content import BlogRead
from community.services.access import Actor

router = APIRouter(prefix="/blog", tags=["blog"])


@router.get("/{username}", response_model=BlogRead)
async def user_blog(
    username: str,
    db: AsyncSession = Depends(get_db),
    actor: Actor | None = Depends(get_actor),
) -> BlogRead:
    users = UserRepository(db)
    user = await users.find_by_username(username)
    if user is None:
        raise NotFound("User not found")

    posts = await ArticleRepository(db).by_author(user.id)
    return BlogRead(
        user=user_public(user, await users.role_names(user.id)),
        is_author=actor is not None and actor.id == user.id,
        posts=[article_read(p, actor) for p in posts],
    )
