"""
Article (blog post) endpoints plus comment creation under an article.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from community.api.v1.deps import get_actor, get_db
from community.api.v1.views import article_read, comment_read
from community.core.exceptions import NotFound
from community.models.content import Article, Comment
from community.repositories.content import ArticleRepository, CommentRepository
from community.schemas.content import (ArticleCreate, ArticleDetail,
                                       ArticleRead, ArticleUpdate,
                                       CommentCreate, CommentRead)
from community.services.access import Action, Actor, authorize

router = APIRouter(prefix="/articles", tags=["articles"])
logger = logging.getLogger(__name__)


async def _get_article_or_404(db: AsyncSession, article_id: int) -> Article:
    article = await ArticleRepository(db).get(article_id)
    if article is None:
        raise NotFound("Article not found")
    return article


@router.post("", response_model=ArticleRead, status_code=201)
async def create_article(
    body: ArticleCreate,
    db: AsyncSession = Depends(get_db),
    actor: Actor | None = Depends(get_actor),
) -> ArticleRead:
    author = authorize(actor, Action.CREATE_ARTICLE)
    article = Article(
        author_id=author.id,
        title=body.title,
        body=body.body,
        published_at=datetime.now(timezone.utc),
    )
    db.add(article)
    await db.commit()
    await db.refresh(article)
    logger.info("Article %s created by %s", article.id, author.username)
    return article_read(article, author)


@router.get("/{article_id}", response_model=ArticleDetail)
async def get_article(
    article_id: int,
    db: AsyncSession = Depends(get_db),
    actor: Actor | None = Depends(get_actor),
) -> ArticleDetail:
    article = await _get_article_or_404(db, article_id)
    comments = await CommentRepository(db).for_article(article.id)
    return ArticleDetail(
        **article_read(article, actor).model_dump(),
        comments=[comment_read(c, actor) for c in comments],
    )


@router.put("/{article_id}", response_model=ArticleRead)
async def update_article(
    article_id: int,
    body: ArticleUpdate,
    db: AsyncSession = Depends(get_db),
    actor: Actor | None = Depends(get_actor),
) -> ArticleRead:
    """Authors edit their own posts; administrators edit any."""
    article = await _get_article_or_404(db, article_id)
    editor = authorize(actor, Action.EDIT_ARTICLE, article)

    for field, value in body.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(article, field, value)
    await db.commit()
    await db.refresh(article)
    logger.info("Article %s edited by %s", article.id, editor.username)
    return article_read(article, editor)


@router.post("/{article_id}/comments", response_model=CommentRead, status_code=201)
async def create_comment(
    article_id: int,
    body: CommentCreate,
    db: AsyncSession = Depends(get_db),
    actor: Actor | None = Depends(get_actor),
) -> CommentRead:
    author = authorize(actor, Action.CREATE_COMMENT)
    article = await _get_article_or_404(db, article_id)
    comment = Comment(author_id=author.id, article_id=article.id, body=body.body)
    db.add(comment)
    await db.commit()
    await db.refresh(comment)
    return comment_read(comment, author)
