"""
News endpoints.

News is published unapproved; administrators or moderators approve it
before it shows up in the public feed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from community.api.v1.deps import get_actor, get_db
from community.api.v1.views import news_read
from community.core.exceptions import NotFound
from community.models.content import News
from community.repositories.content import NewsRepository
from community.schemas.content import NewsCreate, NewsRead, NewsUpdate
from community.services.access import Action, Actor, authorize

router = APIRouter(prefix="/news", tags=["news"])
logger = logging.getLogger(__name__)


async def _get_news_or_404(db: AsyncSession, news_id: int) -> News:
    news = await NewsRepository(db).get(news_id)
    if news is None:
        raise NotFound("News not found")
    return news


@router.get("", response_model=list[NewsRead])
async def list_news(
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    actor: Actor | None = Depends(get_actor),
) -> list[NewsRead]:
    """Approved news, newest first."""
    items = await NewsRepository(db).latest(approved=True, skip=skip, limit=limit)
    return [news_read(n, actor) for n in items]


@router.get("/pending", response_model=list[NewsRead])
async def list_pending_news(
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    actor: Actor | None = Depends(get_actor),
) -> list[NewsRead]:
    """News waiting for approval (moderators and administrators)."""
    moderator = authorize(actor, Action.APPROVE_NEWS)
    items = await NewsRepository(db).latest(approved=False, skip=skip, limit=limit)
    return [news_read(n, moderator) for n in items]


@router.post("", response_model=NewsRead, status_code=201)
async def create_news(
    body: NewsCreate,
    db: AsyncSession = Depends(get_db),
    actor: Actor | None = Depends(get_actor),
) -> NewsRead:
    author = authorize(actor, Action.CREATE_NEWS)
    news = News(author_id=author.id, title=body.title, body=body.body, is_approved=False)
    db.add(news)
    await db.commit()
    await db.refresh(news)
    logger.info("News %s submitted by %s", news.id, author.username)
    return news_read(news, author)


@router.put("/{news_id}", response_model=NewsRead)
async def update_news(
    news_id: int,
    body: NewsUpdate,
    db: AsyncSession = Depends(get_db),
    actor: Actor | None = Depends(get_actor),
) -> NewsRead:
    news = await _get_news_or_404(db, news_id)
    editor = authorize(actor, Action.EDIT_NEWS, news)

    for field, value in body.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(news, field, value)
    await db.commit()
    await db.refresh(news)
    return news_read(news, editor)


@router.post("/{news_id}/approve", response_model=NewsRead)
async def approve_news(
    news_id: int,
    db: AsyncSession = Depends(get_db),
    actor: Actor | None = Depends(get_actor),
) -> NewsRead:
    moderator = authorize(actor, Action.APPROVE_NEWS)
    news = await _get_news_or_404(db, news_id)

    if not news.is_approved:
        news.is_approved = True
        news.approved_by_id = moderator.id
        news.approved_at = datetime.now(timezone.utc)
        await db.commit()
        await db.refresh(news)
        logger.info("News %s approved by %s", news.id, moderator.username)
    return news_read(news, moderator)
