"""
Domain error taxonomy and global exception handlers.

Every ``CommunityError`` is recoverable at the request boundary and is
rendered as ``{"detail": ..., "success": false}``; nothing leaks a stack
trace to the client.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

logger = logging.getLogger(__name__)


# ── Domain errors ───────────────────────────────────────────────────
class CommunityError(Exception):
    status_code: int = status.HTTP_400_BAD_REQUEST
    detail: str = "Bad request"

    def __init__(self, detail: str | None = None) -> None:
        if detail is not None:
            self.detail = detail
        super().__init__(self.detail)


class ValidationError(CommunityError):
    """Malformed or duplicate input, reported field by field."""

    status_code = 422
    detail = "Validation failed"

    def __init__(self, errors: dict[str, str], detail: str | None = None) -> None:
        self.errors = errors
        super().__init__(detail)


class Unauthenticated(CommunityError):
    status_code = status.HTTP_401_UNAUTHORIZED
    detail = "Authentication required"


class Forbidden(CommunityError):
    status_code = status.HTTP_403_FORBIDDEN
    detail = "Access denied"


class NotFound(CommunityError):
    status_code = status.HTTP_404_NOT_FOUND
    detail = "Not found"


class InvalidToken(CommunityError):
    detail = "Invalid confirmation code"


class InvalidCredentials(CommunityError):
    status_code = status.HTTP_401_UNAUTHORIZED
    detail = "Incorrect email or password"


# ── Handlers ────────────────────────────────────────────────────────
async def _community_error_handler(_request: Request, exc: CommunityError) -> JSONResponse:
    content: dict = {"detail": exc.detail, "success": False}
    if isinstance(exc, ValidationError):
        content["errors"] = exc.errors
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthenticated) else None
    return JSONResponse(status_code=exc.status_code, content=content, headers=headers)


async def _request_validation_handler(_request: Request, exc: RequestValidationError) -> JSONResponse:
    errors: dict[str, str] = {}
    for err in exc.errors():
        loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")]
        errors.setdefault(".".join(loc) or "request", err.get("msg", "Invalid value"))
    return JSONResponse(
        status_code=422,
        content={"detail": ValidationError.detail, "errors": errors, "success": False},
    )


async def _http_exception_handler(_request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "success": False},
        headers=getattr(exc, "headers", None),
    )


async def _integrity_error_handler(_request: Request, exc: IntegrityError) -> JSONResponse:
    logger.error("Database integrity error: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=409,
        content={"detail": "Database constraint violation", "success": False},
    )


async def _sqlalchemy_error_handler(_request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Database error: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal database error", "success": False},
    )


async def _generic_exception_handler(_request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception: %s", exc)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "success": False},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach all exception handlers to the FastAPI app."""
    app.add_exception_handler(CommunityError, _community_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _request_validation_handler)  # type: ignore[arg-type]
    app.add_exception_handler(HTTPException, _http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)  # type: ignore[arg-type]
    app.add_exception_handler(IntegrityError, _integrity_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(SQLAlchemyError, _sqlalchemy_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _generic_exception_handler)
