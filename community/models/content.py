"""
Authored content — articles, news, tips and comments.

Every row is owned by exactly one account through ``author_id``.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, Integer, String, Text

from community.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Article(Base):
    __tablename__ = "articles"
    __table_args__ = (Index("ix_articles_author_published", "author_id", "published_at"),)

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    author_id: int = Column(Integer, ForeignKey("users.id"), nullable=False)  # type: ignore[assignment]
    title: str = Column(String(255), nullable=False)  # type: ignore[assignment]
    body: str = Column(Text, nullable=False)  # type: ignore[assignment]
    published_at: datetime = Column(DateTime(timezone=True), default=_utcnow, index=True)  # type: ignore[assignment]
    created_at: datetime = Column(DateTime(timezone=True), default=_utcnow)  # type: ignore[assignment]
    updated_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )


class News(Base):
    __tablename__ = "news"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    author_id: int = Column(Integer, ForeignKey("users.id"), nullable=False)  # type: ignore[assignment]
    title: str = Column(String(255), nullable=False)  # type: ignore[assignment]
    body: str = Column(Text, nullable=False)  # type: ignore[assignment]
    is_approved: bool = Column(  # type: ignore[assignment]
        Boolean, nullable=False, default=False, server_default="false", index=True
    )
    approved_by_id: int | None = Column(Integer, ForeignKey("users.id"), nullable=True)  # type: ignore[assignment]
    approved_at: datetime | None = Column(DateTime(timezone=True), nullable=True)  # type: ignore[assignment]
    created_at: datetime = Column(DateTime(timezone=True), default=_utcnow, index=True)  # type: ignore[assignment]
    updated_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )


class Tip(Base):
    __tablename__ = "tips"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    author_id: int = Column(Integer, ForeignKey("users.id"), nullable=False)  # type: ignore[assignment]
    body: str = Column(Text, nullable=False)  # type: ignore[assignment]
    published_at: datetime = Column(DateTime(timezone=True), default=_utcnow, index=True)  # type: ignore[assignment]
    created_at: datetime = Column(DateTime(timezone=True), default=_utcnow)  # type: ignore[assignment]
    updated_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )


class Comment(Base):
    __tablename__ = "comments"
    __table_args__ = (Index("ix_comments_article_created", "article_id", "created_at"),)

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    author_id: int = Column(Integer, ForeignKey("users.id"), nullable=False)  # type: ignore[assignment]
    article_id: int = Column(  # type: ignore[assignment]
        Integer, ForeignKey("articles.id", ondelete="CASCADE"), nullable=False
    )
    body: str = Column(String(5000), nullable=False)  # type: ignore[assignment]
    created_at: datetime = Column(DateTime(timezone=True), default=_utcnow)  # type: ignore[assignment]
    updated_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )
