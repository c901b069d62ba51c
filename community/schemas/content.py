"""Pydantic schemas for articles, news, tips and comments.

Read models carry pre-computed permission flags (``can_edit``,
``can_approve``, ``is_author``) so clients never re-derive access rules.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, field_validator

from community.schemas.user import UserPublic


def _not_blank(v: str, limit: int) -> str:
    v = v.strip()
    if not v:
        raise ValueError("Must not be empty")
    if len(v) > limit:
        raise ValueError(f"Must not exceed {limit} characters")
    return v


# ── Articles ────────────────────────────────────────────────────────
class ArticleCreate(BaseModel):
    title: str
    body: str

    @field_validator("title")
    @classmethod
    def _title(cls, v: str) -> str:
        return _not_blank(v, 255)

    @field_validator("body")
    @classmethod
    def _body(cls, v: str) -> str:
        return _not_blank(v, 100_000)


class ArticleUpdate(BaseModel):
    title: str | None = None
    body: str | None = None

    @field_validator("title")
    @classmethod
    def _title(cls, v: str | None) -> str | None:
        return None if v is None else _not_blank(v, 255)

    @field_validator("body")
    @classmethod
    def _body(cls, v: str | None) -> str | None:
        return None if v is None else _not_blank(v, 100_000)


class ArticleRead(BaseModel):
    id: int
    author_id: int
    title: str
    body: str
    published_at: datetime | None
    updated_at: datetime | None = None
    can_edit: bool = False

    model_config = {"from_attributes": True}


# ── Comments ────────────────────────────────────────────────────────
class CommentCreate(BaseModel):
    body: str

    @field_validator("body")
    @classmethod
    def _body(cls, v: str) -> str:
        return _not_blank(v, 5000)


class CommentRead(BaseModel):
    id: int
    article_id: int
    author_id: int
    body: str
    created_at: datetime | None
    can_edit: bool = False

    model_config = {"from_attributes": True}


class ArticleDetail(ArticleRead):
    comments: list[CommentRead] = []


# ── Blog ────────────────────────────────────────────────────────────
class BlogRead(BaseModel):
    user: UserPublic
    is_author: bool
    posts: list[ArticleRead]


# ── News ────────────────────────────────────────────────────────────
class NewsCreate(ArticleCreate):
    pass


class NewsUpdate(ArticleUpdate):
    pass


class NewsRead(BaseModel):
    id: int
    author_id: int
    title: str
    body: str
    is_approved: bool
    approved_by_id: int | None = None
    approved_at: datetime | None = None
    created_at: datetime | None
    can_edit: bool = False
    can_approve: bool = False

    model_config = {"from_attributes": True}


# ── Tips ────────────────────────────────────────────────────────────
class TipCreate(BaseModel):
    body: str

    @field_validator("body")
    @classmethod
    def _body(cls, v: str) -> str:
        return _not_blank(v, 2000)


class TipRead(BaseModel):
    id: int
    author_id: int
    body: str
    published_at: datetime | None
    can_edit: bool = False

    model_config = {"from_attributes": True}
