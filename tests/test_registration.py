"""Tests for the registration / confirmation workflow (service level)."""

import asyncio
from unittest.mock import AsyncMock, patch

import pytest
from fastapi import BackgroundTasks
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from community.core.config import settings
from community.core.exceptions import (Forbidden, InvalidCredentials,
                                       InvalidToken, ValidationError)
from community.core.mail import send_mail
from community.core.security import (create_access_token,
                                     create_registration_token,
                                     generate_confirmation_code,
                                     verify_password)
from community.db.base import Base
from community.models.user import Confirmation, User
from community.repositories.confirmations import ConfirmationRepository
from community.repositories.users import UserRepository, ensure_roles
from community.schemas.user import RegistrationRequest
from community.services import registration


def _form(**overrides) -> RegistrationRequest:
    data = {
        "username": "alice",
        "email": "a@x.com",
        "password": "p@ss1",
        "js_token": create_registration_token(),
    }
    data.update(overrides)
    return RegistrationRequest(**data)


async def _count(db: AsyncSession, model) -> int:
    return (await db.execute(select(func.count()).select_from(model))).scalar_one()


async def test_register_creates_unconfirmed_account_and_queues_one_mail(db_session: AsyncSession):
    tasks = BackgroundTasks()
    user = await registration.register(db_session, _form(), tasks)

    assert user.id is not None
    assert user.is_confirmed is False
    assert user.hashed_password != "p@ss1"
    assert verify_password("p@ss1", user.hashed_password)

    confirmation = await ConfirmationRepository(db_session).find_for_user(user.id)
    assert confirmation is not None
    assert len(confirmation.code) >= 20
    assert confirmation.code.isalnum()
    assert await _count(db_session, Confirmation) == 1

    assert len(tasks.tasks) == 1
    task = tasks.tasks[0]
    assert task.func is send_mail
    assert task.args[0] == "auth/register"
    assert task.args[1] == "a@x.com"
    assert confirmation.code in task.args[2]["confirmation_url"]


async def test_register_rejects_duplicates_field_by_field(db_session: AsyncSession, make_user):
    await make_user("alice", email="a@x.com")

    with pytest.raises(ValidationError) as exc:
        await registration.register(db_session, _form(username="ALICE"), BackgroundTasks())
    assert set(exc.value.errors) == {"username", "email"}
    assert await _count(db_session, User) == 1


async def test_register_rejects_bad_form_token(db_session: AsyncSession):
    tasks = BackgroundTasks()
    with pytest.raises(ValidationError) as exc:
        # an access token is signed with the same key but has the wrong type
        await registration.register(db_session, _form(js_token=create_access_token(1)), tasks)
    assert "js_token" in exc.value.errors
    assert tasks.tasks == []
    assert await _count(db_session, User) == 0


async def test_confirm_activates_exactly_once(db_session: AsyncSession):
    user = await registration.register(db_session, _form(), BackgroundTasks())
    code = (await ConfirmationRepository(db_session).find_for_user(user.id)).code

    confirmed = await registration.confirm(db_session, code)
    assert confirmed.id == user.id
    assert confirmed.is_confirmed is True
    assert confirmed.last_login_at is not None
    assert await ConfirmationRepository(db_session).find_for_user(user.id) is None

    with pytest.raises(InvalidToken):
        await registration.confirm(db_session, code)


async def test_confirm_unknown_code_changes_nothing(db_session: AsyncSession):
    user = await registration.register(db_session, _form(), BackgroundTasks())

    with pytest.raises(InvalidToken):
        await registration.confirm(db_session, "zzz")

    await db_session.refresh(user)
    assert user.is_confirmed is False
    assert await _count(db_session, Confirmation) == 1


async def test_authenticate_does_not_reveal_unknown_email(db_session: AsyncSession, make_user):
    await make_user("bob", password="right-pass")

    with pytest.raises(InvalidCredentials) as wrong_password:
        await registration.authenticate(db_session, "bob@example.com", "wrong-pass")
    with pytest.raises(InvalidCredentials) as unknown_email:
        await registration.authenticate(db_session, "nobody@example.com", "wrong-pass")
    assert wrong_password.value.detail == unknown_email.value.detail


async def test_unconfirmed_login_is_allowed_by_default(db_session: AsyncSession, make_user):
    await make_user("carol", confirmed=False)
    user = await registration.authenticate(db_session, " Carol@Example.com ", "secret1")
    assert user.is_confirmed is False
    assert user.last_login_at is not None


async def test_unconfirmed_login_can_be_refused(db_session: AsyncSession, make_user):
    await make_user("dave", confirmed=False)
    with patch.object(settings, "REQUIRE_CONFIRMED_LOGIN", True):
        with pytest.raises(Forbidden):
            await registration.authenticate(db_session, "dave@example.com", "secret1")


def test_confirmation_codes_are_long_and_independent():
    codes = {generate_confirmation_code() for _ in range(50)}
    assert len(codes) == 50
    assert all(len(c) == settings.CONFIRMATION_CODE_LENGTH and c.isalnum() for c in codes)


def test_registration_form_validation():
    with pytest.raises(ValueError):
        _form(username="a b")
    with pytest.raises(ValueError):
        _form(email="not-an-email")
    with pytest.raises(ValueError):
        _form(password="1234")
    assert _form(email="  A@X.COM ").email == "a@x.com"


async def test_register_race_reports_the_clashing_field(db_session: AsyncSession, make_user):
    await make_user("bob", email="a@x.com")

    # the pre-check misses the concurrent insert, the unique index catches it
    with patch.object(UserRepository, "email_taken", AsyncMock(side_effect=[False, True])):
        with pytest.raises(ValidationError) as exc:
            await registration.register(db_session, _form(), BackgroundTasks())

    assert exc.value.errors == {"email": "Email already registered"}
    assert await _count(db_session, User) == 1


async def test_concurrent_confirmations_activate_exactly_once(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'confirm.db'}")
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

        async with factory() as db:
            await ensure_roles(db)
            user = await registration.register(db, _form(), BackgroundTasks())
            code = (await ConfirmationRepository(db).find_for_user(user.id)).code

        async def attempt():
            async with factory() as db:
                return await registration.confirm(db, code)

        results = await asyncio.gather(*(attempt() for _ in range(8)), return_exceptions=True)

        confirmed = [r for r in results if isinstance(r, User)]
        rejected = [r for r in results if isinstance(r, InvalidToken)]
        assert len(confirmed) == 1
        assert confirmed[0].id == user.id
        assert len(rejected) == 7

        async with factory() as db:
            assert (await UserRepository(db).get(user.id)).is_confirmed is True
            assert await _count(db, Confirmation) == 0
    finally:
        await engine.dispose()
