"""
Account, role membership and e-mail confirmation models.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Table

from community.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


user_roles = Table(
    "user_roles",
    Base.metadata,
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("role_id", Integer, ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
)


class User(Base):
    __tablename__ = "users"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    username: str = Column(String(32), unique=True, nullable=False, index=True)  # type: ignore[assignment]
    email: str = Column(String(320), unique=True, nullable=False, index=True)  # type: ignore[assignment]
    hashed_password: str = Column(String(128), nullable=False)  # type: ignore[assignment]
    is_confirmed: bool = Column(  # type: ignore[assignment]
        Boolean, nullable=False, default=False, server_default="false"
    )
    last_login_at: datetime | None = Column(DateTime(timezone=True), nullable=True)  # type: ignore[assignment]
    last_activity_at: datetime | None = Column(  # type: ignore[assignment]
        DateTime(timezone=True), nullable=True, index=True
    )
    created_at: datetime = Column(DateTime(timezone=True), default=_utcnow)  # type: ignore[assignment]
    updated_at: datetime = Column(  # type: ignore[assignment]
        DateTime(timezone=True),
        default=_utcnow,
        onupdate=_utcnow,
    )


class Role(Base):
    __tablename__ = "roles"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    name: str = Column(String(50), unique=True, nullable=False)  # type: ignore[assignment]
    # administrator | moderator | librarian


class Confirmation(Base):
    """Single-use registration confirmation code, one per account."""

    __tablename__ = "confirmations"

    id: int = Column(Integer, primary_key=True, index=True)  # type: ignore[assignment]
    user_id: int = Column(  # type: ignore[assignment]
        Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    code: str = Column(String(64), unique=True, nullable=False, index=True)  # type: ignore[assignment]
    created_at: datetime = Column(DateTime(timezone=True), default=_utcnow)  # type: ignore[assignment]
