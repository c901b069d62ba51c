"""Pydantic schemas for accounts, registration and roles."""

from __future__ import annotations

import re
from datetime import datetime

from pydantic import BaseModel, field_validator

from community.models.enums import RoleName

_USERNAME_RE = re.compile(r"^[A-Za-z0-9_.-]{3,32}$")


def _normalise_email(v: str) -> str:
    v = v.strip().lower()
    if "@" not in v or v.startswith("@") or v.endswith("@") or len(v) > 320:
        raise ValueError("Invalid email address")
    return v


class RegistrationRequest(BaseModel):
    username: str
    email: str
    password: str
    js_token: str

    @field_validator("username")
    @classmethod
    def _username(cls, v: str) -> str:
        v = v.strip()
        if not _USERNAME_RE.match(v):
            raise ValueError("Username must be 3-32 letters, digits, '.', '_' or '-'")
        return v

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        return _normalise_email(v)

    @field_validator("password")
    @classmethod
    def _password(cls, v: str) -> str:
        if len(v) < 5:
            raise ValueError("Password must be at least 5 characters")
        if len(v.encode("utf-8")) > 72:
            raise ValueError("Password must not exceed 72 bytes")
        return v


class RegistrationResponse(BaseModel):
    id: int
    username: str
    email: str
    is_confirmed: bool
    message: str = "Check your inbox to confirm the registration"

    model_config = {"from_attributes": True}


class UserPublic(BaseModel):
    id: int
    username: str
    is_confirmed: bool
    is_online: bool = False
    roles: list[RoleName] = []
    last_login_at: datetime | None = None
    last_activity_at: datetime | None = None
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class UserPrivate(UserPublic):
    email: str


class RolesUpdate(BaseModel):
    roles: list[RoleName]


class RolesRead(BaseModel):
    username: str
    roles: list[RoleName]
