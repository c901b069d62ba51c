"""
Community portal — application entry point.

This is the **only** file that assembles the app. All business logic
lives in the `services/`, `repositories/`, `api/` and `core/` packages.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.ext.asyncio import AsyncSession

from community.api.v1.api import api_router
from community.core.config import settings
from community.core.exceptions import register_exception_handlers
from community.core.rate_limit import limiter
from community.core.security import get_password_hash
from community.db.base import Base
from community.db.session import async_session_factory, engine
# Ensure all models are imported so metadata.create_all can see them
from community.models.content import Article, Comment, News, Tip  # noqa: F401
from community.models.enums import RoleName
from community.models.user import User
from community.repositories.users import UserRepository, ensure_roles

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


# ── Seeding ─────────────────────────────────────────────────────────
async def seed_admin(session: AsyncSession) -> User | None:
    """Create the configured administrator on first run; ``None`` if present."""
    email = settings.FIRST_ADMIN_EMAIL.strip().lower()
    users = UserRepository(session)
    if await users.find_by_email(email) is not None:
        return None

    admin = User(
        username=settings.FIRST_ADMIN_USERNAME,
        email=email,
        hashed_password=get_password_hash(settings.FIRST_ADMIN_PASSWORD),
        is_confirmed=True,
    )
    session.add(admin)
    await session.commit()
    await users.set_roles(admin.id, {RoleName.ADMINISTRATOR})
    logger.info("Default admin created: %s (password: <redacted>)", email)
    return admin


# ── Lifespan ────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(_app: FastAPI):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables initialised")

    async with async_session_factory() as session:
        await ensure_roles(session)
        await seed_admin(session)

    logger.info("%s v%s started", settings.PROJECT_NAME, settings.VERSION)
    yield
    await engine.dispose()
    logger.info("Shutdown complete")


# ── App factory ─────────────────────────────────────────────────────
def create_app() -> FastAPI:
    application = FastAPI(
        title=settings.PROJECT_NAME,
        description="Community portal: news, articles, tips and user blogs",
        version=settings.VERSION,
        openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # slowapi looks the limiter up on app state
    application.state.limiter = limiter

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Global exception handlers (prevent stack-trace leakage)
    register_exception_handlers(application)

    application.include_router(api_router, prefix=settings.API_V1_PREFIX)

    return application


app = create_app()
