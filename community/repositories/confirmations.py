"""
Confirmation code storage.

``consume`` is a single conditional DELETE ... RETURNING, so of two
concurrent confirmations for the same code exactly one gets the owner back.
"""

from __future__ import annotations

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from community.models.user import Confirmation


class ConfirmationRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    def add(self, user_id: int, code: str) -> Confirmation:
        confirmation = Confirmation(user_id=user_id, code=code)
        self.db.add(confirmation)
        return confirmation

    async def find_for_user(self, user_id: int) -> Confirmation | None:
        result = await self.db.execute(
            select(Confirmation).where(Confirmation.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def consume(self, code: str) -> int | None:
        """Delete the code and return its owner's id, or ``None`` if absent."""
        result = await self.db.execute(
            delete(Confirmation)
            .where(Confirmation.code == code)
            .returning(Confirmation.user_id)
        )
        return result.scalar_one_or_none()
