"""Registration, e-mail confirmation and credential checks.

Lifecycle of an account::

    Submitted -> PendingConfirmation -> Confirmed
        \\-> Rejected (validation failure, nothing persisted)

Registration persists the account and its confirmation code in one
transaction, then queues the confirmation mail on ``BackgroundTasks`` so the
caller never waits on SMTP. Confirmation consumes the code with a single
conditional delete: a code activates an account exactly once.
"""

from __future__ import annotations

import logging

from fastapi import BackgroundTasks
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from community.core.config import settings
from community.core.exceptions import (Forbidden, InvalidCredentials,
                                       InvalidToken, ValidationError)
from community.core.mail import send_mail
from community.core.security import (decode_registration_token, dummy_verify,
                                     generate_confirmation_code,
                                     get_password_hash, verify_password)
from community.models.user import User
from community.repositories.confirmations import ConfirmationRepository
from community.repositories.users import UserRepository
from community.schemas.user import RegistrationRequest
from community.services.presence import touch_login

logger = logging.getLogger(__name__)


def confirmation_url(code: str) -> str:
    return f"{settings.SITE_URL.rstrip('/')}{settings.API_V1_PREFIX}/auth/confirmation/{code}"


async def _duplicate_errors(users: UserRepository, data: RegistrationRequest) -> dict[str, str]:
    errors: dict[str, str] = {}
    if await users.username_taken(data.username):
        errors["username"] = "Username is already taken"
    if await users.email_taken(data.email):
        errors["email"] = "Email already registered"
    return errors


async def register(
    db: AsyncSession,
    data: RegistrationRequest,
    background_tasks: BackgroundTasks,
) -> User:
    """Create an unconfirmed account, issue its code and queue the mail."""
    if decode_registration_token(data.js_token) is None:
        raise ValidationError({"js_token": "Registration form expired, reload the page"})

    users = UserRepository(db)
    errors = await _duplicate_errors(users, data)
    if errors:
        raise ValidationError(errors)

    code = generate_confirmation_code()
    user = User(
        username=data.username,
        email=data.email,
        hashed_password=get_password_hash(data.password),
        is_confirmed=False,
    )
    try:
        db.add(user)
        await db.flush()
        ConfirmationRepository(db).add(user.id, code)
        await db.commit()
    except IntegrityError:
        # Lost a race with a concurrent registration for the same handle/email
        await db.rollback()
        errors = await _duplicate_errors(users, data)
        raise ValidationError(
            errors or {"username": "Username or email already registered"}
        ) from None
    await db.refresh(user)

    background_tasks.add_task(
        send_mail,
        "auth/register",
        user.email,
        {"username": user.username, "confirmation_url": confirmation_url(code)},
    )
    logger.info("Registered user %s (id %s), confirmation queued", user.username, user.id)
    return user


async def confirm(db: AsyncSession, code: str) -> User:
    """Consume a confirmation code and activate its account."""
    user_id = await ConfirmationRepository(db).consume(code)
    if user_id is None:
        await db.rollback()
        raise InvalidToken()

    await db.execute(
        update(User)
        .where(User.id == user_id)
        .values(is_confirmed=True)
        .execution_options(synchronize_session=False)
    )
    await db.commit()

    user = await UserRepository(db).get(user_id)
    if user is None:
        raise InvalidToken()
    await db.refresh(user)
    await touch_login(db, user)
    logger.info("User %s confirmed", user.id)
    return user


async def authenticate(db: AsyncSession, email: str, password: str) -> User:
    """Check credentials without revealing whether the email exists."""
    user = await UserRepository(db).find_by_email(email.lower().strip())
    if user is None:
        dummy_verify()
        raise InvalidCredentials()
    if not verify_password(password, user.hashed_password):
        raise InvalidCredentials()
    if settings.REQUIRE_CONFIRMED_LOGIN and not user.is_confirmed:
        raise Forbidden("Account is not confirmed yet")

    await touch_login(db, user)
    logger.info("User %s logged in", user.id)
    return user
