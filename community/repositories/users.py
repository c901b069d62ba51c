"""
Account queries — lookups, presence filters, search and role membership.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from sqlalchemy import Select, delete, func, insert, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value

from community.models.enums import RoleName
from community.models.user import Role, User, user_roles


def _matching(stmt: Select, text: str | None) -> Select:
    """Narrow ``stmt`` to usernames containing ``text`` (case-insensitive)."""
    text = (text or "").strip()
    if text:
        stmt = stmt.where(User.username.ilike(f"%{text}%"))
    return stmt


class UserRepository:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    # ── Lookups ──────────────────────────────────────────────────────
    async def get(self, user_id: int) -> User | None:
        return await self.db.get(User, user_id)

    async def find_by_username(self, username: str) -> User | None:
        result = await self.db.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()

    async def find_by_email(self, email: str) -> User | None:
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def username_taken(self, username: str) -> bool:
        result = await self.db.execute(
            select(func.count()).select_from(User).where(
                func.lower(User.username) == username.lower()
            )
        )
        return result.scalar_one() > 0

    async def email_taken(self, email: str) -> bool:
        result = await self.db.execute(
            select(func.count()).select_from(User).where(User.email == email)
        )
        return result.scalar_one() > 0

    async def search(self, text: str | None = None, skip: int = 0, limit: int = 50) -> list[User]:
        stmt = _matching(select(User), text)
        stmt = stmt.order_by(User.username).offset(skip).limit(limit)
        return list((await self.db.execute(stmt)).scalars().all())

    # ── Presence ─────────────────────────────────────────────────────
    async def find_online(
        self,
        as_of: datetime,
        timeout: int,
        text: str | None = None,
        skip: int = 0,
        limit: int = 50,
    ) -> list[User]:
        cutoff = as_of - timedelta(seconds=timeout)
        stmt = _matching(select(User).where(User.last_activity_at >= cutoff), text)
        stmt = stmt.order_by(User.last_activity_at.desc(), User.id).offset(skip).limit(limit)
        return list((await self.db.execute(stmt)).scalars().all())

    async def find_offline(
        self,
        as_of: datetime,
        timeout: int,
        text: str | None = None,
        skip: int = 0,
        limit: int = 50,
    ) -> list[User]:
        cutoff = as_of - timedelta(seconds=timeout)
        stmt = _matching(
            select(User).where(
                or_(User.last_activity_at.is_(None), User.last_activity_at < cutoff)
            ),
            text,
        )
        stmt = stmt.order_by(User.username).offset(skip).limit(limit)
        return list((await self.db.execute(stmt)).scalars().all())

    async def update_presence(self, user: User, **columns: datetime) -> None:
        """Write presence timestamps without bumping ``updated_at``."""
        await self.db.execute(
            update(User)
            .where(User.id == user.id)
            .values(updated_at=User.updated_at, **columns)
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()
        for key, value in columns.items():
            set_committed_value(user, key, value)

    # ── Roles ────────────────────────────────────────────────────────
    async def role_names(self, user_id: int) -> frozenset[RoleName]:
        result = await self.db.execute(
            select(Role.name)
            .join(user_roles, user_roles.c.role_id == Role.id)
            .where(user_roles.c.user_id == user_id)
        )
        known = {r.value for r in RoleName}
        return frozenset(RoleName(name) for name in result.scalars().all() if name in known)

    async def set_roles(self, user_id: int, roles: set[RoleName]) -> frozenset[RoleName]:
        await self.db.execute(delete(user_roles).where(user_roles.c.user_id == user_id))
        if roles:
            role_ids = (
                await self.db.execute(
                    select(Role.id).where(Role.name.in_([r.value for r in roles]))
                )
            ).scalars().all()
            await self.db.execute(
                insert(user_roles),
                [{"user_id": user_id, "role_id": role_id} for role_id in role_ids],
            )
        await self.db.commit()
        return await self.role_names(user_id)


async def ensure_roles(db: AsyncSession) -> None:
    """Create any missing row of the closed role set."""
    existing = set((await db.execute(select(Role.name))).scalars().all())
    missing = [Role(name=r.value) for r in RoleName if r.value not in existing]
    if missing:
        db.add_all(missing)
        await db.commit()
