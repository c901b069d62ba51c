"""Liveness probe."""

from fastapi import APIRouter

from community.core.config import settings
from community.schemas.common import HealthResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    return HealthResponse(status="ok", version=settings.VERSION)
