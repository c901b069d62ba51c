"""
Content queries: articles, news, tips and comments.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from community.models.content import Article, Comment, News, Tip


class ArticleRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get(self, article_id: int) -> Article | None:
        return await self.db.get(Article, article_id)

    async def by_author(self, author_id: int, limit: int | None = None) -> list[Article]:
        stmt = (
            select(Article)
            .where(Article.author_id == author_id)
            .order_by(Article.published_at.desc(), Article.id.desc())
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        return list((await self.db.execute(stmt)).scalars().all())


class NewsRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get(self, news_id: int) -> News | None:
        return await self.db.get(News, news_id)

    async def latest(self, approved: bool = True, skip: int = 0, limit: int = 20) -> list[News]:
        result = await self.db.execute(
            select(News)
            .where(News.is_approved == approved)
            .order_by(News.created_at.desc(), News.id.desc())
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all())


class TipsRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get(self, tip_id: int) -> Tip | None:
        return await self.db.get(Tip, tip_id)

    async def get_last_tips(self, num: int = 10) -> list[Tip]:
        """Latest "did you know" tips, newest first."""
        result = await self.db.execute(
            select(Tip).order_by(Tip.published_at.desc(), Tip.id.desc()).limit(num)
        )
        return list(result.scalars().all())


class CommentRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get(self, comment_id: int) -> Comment | None:
        return await self.db.get(Comment, comment_id)

    async def for_article(self, article_id: int) -> list[Comment]:
        result = await self.db.execute(
            select(Comment)
            .where(Comment.article_id == article_id)
            .order_by(Comment.created_at.asc(), Comment.id.asc())
        )
        return list(result.scalars().all())
