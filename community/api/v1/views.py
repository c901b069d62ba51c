"""
View-model builders — attach permission flags computed by the access
evaluator so responses carry booleans instead of rules.
"""

from __future__ import annotations

from datetime import datetime

from community.models.content import Article, Comment, News, Tip
from community.models.enums import RoleName
from community.models.user import User
from community.schemas.content import ArticleRead, CommentRead, NewsRead, TipRead
from community.schemas.user import UserPrivate, UserPublic
from community.services.access import Action, Actor, can_perform
from community.services.presence import is_online


def user_public(
    user: User,
    roles: frozenset[RoleName] = frozenset(),
    as_of: datetime | None = None,
) -> UserPublic:
    return UserPublic.model_validate(user).model_copy(
        update={"is_online": is_online(user, as_of), "roles": sorted(roles)}
    )


def user_private(user: User, roles: frozenset[RoleName] = frozenset()) -> UserPrivate:
    return UserPrivate.model_validate(user).model_copy(
        update={"is_online": is_online(user), "roles": sorted(roles)}
    )


def article_read(article: Article, actor: Actor | None) -> ArticleRead:
    return ArticleRead.model_validate(article).model_copy(
        update={"can_edit": bool(can_perform(actor, Action.EDIT_ARTICLE, article))}
    )


def comment_read(comment: Comment, actor: Actor | None) -> CommentRead:
    return CommentRead.model_validate(comment).model_copy(
        update={"can_edit": bool(can_perform(actor, Action.EDIT_COMMENT, comment))}
    )


def news_read(news: News, actor: Actor | None) -> NewsRead:
    return NewsRead.model_validate(news).model_copy(
        update={
            "can_edit": bool(can_perform(actor, Action.EDIT_NEWS, news)),
            "can_approve": not news.is_approved
            and bool(can_perform(actor, Action.APPROVE_NEWS)),
        }
    )


def tip_read(tip: Tip, actor: Actor | None) -> TipRead:
    return TipRead.model_validate(tip).model_copy(
        update={"can_edit": bool(can_perform(actor, Action.EDIT_TIP, tip))}
    )
