"""
"Did you know" tips — latest feed, creation and editing.
"""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from community.api.v1.deps import get_actor, get_db
from community.api.v1.views import tip_read
from community.core.exceptions import NotFound
from community.models.content import Tip
from community.repositories.content import TipsRepository
from community.schemas.content import TipCreate, TipRead
from community.services.access import Action, Actor, authorize

router = APIRouter(prefix="/tips", tags=["tips"])


@router.get("", response_model=list[TipRead])
async def latest_tips(
    limit: int = Query(10, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    actor: Actor | None = Depends(get_actor),
) -> list[TipRead]:
    tips = await TipsRepository(db).get_last_tips(limit)
    return [tip_read(t, actor) for t in tips]


@router.post("", response_model=TipRead, status_code=201)
async def create_tip(
    body: TipCreate,
    db: AsyncSession = Depends(get_db),
    actor: Actor | None = Depends(get_actor),
) -> TipRead:
    author = authorize(actor, Action.CREATE_TIP)
    tip = Tip(author_id=author.id, body=body.body, published_at=datetime.now(timezone.utc))
    db.add(tip)
    await db.commit()
    await db.refresh(tip)
    return tip_read(tip, author)


@router.put("/{tip_id}", response_model=TipRead)
async def update_tip(
    tip_id: int,
    body: TipCreate,
    db: AsyncSession = Depends(get_db),
    actor: Actor | None = Depends(get_actor),
) -> TipRead:
    tip = await TipsRepository(db).get(tip_id)
    if tip is None:
        raise NotFound("Tip not found")
    editor = authorize(actor, Action.EDIT_TIP, tip)

    tip.body = body.body
    await db.commit()
    await db.refresh(tip)
    return tip_read(tip, editor)
