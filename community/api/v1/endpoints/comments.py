"""Comment editing."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from community.api.v1.deps import get_actor, get_db
from community.api.v1.views import comment_read
from community.core.exceptions import NotFound
from community.repositories.content import CommentRepository
from community.schemas.content import CommentCreate, CommentRead
from community.services.access import Action, Actor, authorize

router = APIRouter(prefix="/comments", tags=["comments"])


@router.put("/{comment_id}", response_model=CommentRead)
async def update_comment(
    comment_id: int,
    body: CommentCreate,
    db: AsyncSession = Depends(get_db),
    actor: Actor | None = Depends(get_actor),
) -> CommentRead:
    comment = await CommentRepository(db).get(comment_id)
    if comment is None:
        raise NotFound("Comment not found")
    editor = authorize(actor, Action.EDIT_COMMENT, comment)

    comment.body = body.body
    await db.commit()
    await db.refresh(comment)
    return comment_read(comment, editor)
