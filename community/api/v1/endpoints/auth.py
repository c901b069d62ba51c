"""
Auth endpoints — registration, e-mail confirmation, login (OAuth2 password
flow), token refresh and logout.

No ``from __future__ import annotations`` here: slowapi wraps the endpoints
and FastAPI must see real annotation objects through the wrapper.
"""

from fastapi import (APIRouter, BackgroundTasks, Cookie, Depends, Request,
                     Response)
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession

from community.api.v1.deps import get_current_user, get_db
from community.api.v1.views import user_private
from community.core.config import settings
from community.core.exceptions import Unauthenticated
from community.core.rate_limit import limiter
from community.core.security import (create_access_token, create_refresh_token,
                                     create_registration_token,
                                     decode_refresh_token)
from community.models.user import User
from community.repositories.users import UserRepository
from community.schemas.common import MessageResponse
from community.schemas.token import RefreshRequest, RegistrationToken, Token
from community.schemas.user import (RegistrationRequest, RegistrationResponse,
                                    UserPrivate)
from community.services import registration

router = APIRouter(prefix="/auth", tags=["auth"])


def _open_session(response: Response, user: User) -> Token:
    """Issue access + refresh tokens and set them as HttpOnly cookies."""
    access_token = create_access_token(user.id)
    refresh_token = create_refresh_token(user.id)

    response.set_cookie(
        key="access_token",
        value=f"Bearer {access_token}",
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )
    # The refresh cookie is what makes the session outlive the browser tab
    response.set_cookie(
        key="refresh_token",
        value=refresh_token,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="lax",
        max_age=settings.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60,
    )
    return Token(access_token=access_token, refresh_token=refresh_token)


# ── Registration ────────────────────────────────────────────────────
@router.get("/registration", response_model=RegistrationToken)
async def registration_form() -> RegistrationToken:
    """Hand out the short-lived token the registration form must echo back."""
    return RegistrationToken(js_token=create_registration_token())


@router.post("/registration", response_model=RegistrationResponse, status_code=201)
@limiter.limit("5/minute")
async def register(
    request: Request,
    body: RegistrationRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
) -> User:
    """Create an unconfirmed account and mail its confirmation link."""
    return await registration.register(db, body, background_tasks)


@router.get("/confirmation/{code}", response_model=Token)
async def confirm_registration(
    code: str,
    response: Response,
    db: AsyncSession = Depends(get_db),
) -> Token:
    """Activate the account owning *code* and log it in."""
    user = await registration.confirm(db, code)
    return _open_session(response, user)


# ── Session ─────────────────────────────────────────────────────────
@router.post("/login", response_model=Token)
@limiter.limit("5/minute")
async def login_for_access_token(
    request: Request,
    response: Response,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: AsyncSession = Depends(get_db),
) -> Token:
    """Authenticate with email/password. Returns 200 OK with HttpOnly cookies."""
    user = await registration.authenticate(db, form_data.username, form_data.password)
    return _open_session(response, user)


@router.post("/refresh", response_model=Token)
@limiter.limit("10/minute")
async def refresh_access_token_endpoint(
    request: Request,
    response: Response,
    body: RefreshRequest | None = None,
    refresh_token_cookie: str | None = Cookie(None, alias="refresh_token"),
    db: AsyncSession = Depends(get_db),
) -> Token:
    # Priority: Body > Cookie
    token_str = body.refresh_token if body and body.refresh_token else refresh_token_cookie
    if not token_str:
        raise Unauthenticated("Refresh token missing")

    payload = decode_refresh_token(token_str)
    if payload is None or not str(payload.get("sub", "")).isdigit():
        raise Unauthenticated("Invalid or expired refresh token")

    user = await UserRepository(db).get(int(payload["sub"]))
    if user is None:
        raise Unauthenticated("User not found")

    return _open_session(response, user)


@router.post("/logout", response_model=MessageResponse)
async def logout(response: Response) -> MessageResponse:
    """Clear auth cookies. Safe to call without a session."""
    response.delete_cookie("access_token")
    response.delete_cookie("refresh_token")
    return MessageResponse(message="Logged out")


@router.get("/me", response_model=UserPrivate)
async def read_current_user(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> UserPrivate:
    """Return the private profile of the authenticated account."""
    roles = await UserRepository(db).role_names(current_user.id)
    return user_private(current_user, roles)
