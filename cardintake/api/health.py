"""
Health check endpoints.

Liveness only; upstream APIs are not called.
"""

from fastapi import APIRouter
from pydantic import BaseModel

from cardintake.config import settings

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    psa_token: str | None = None


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """
    Liveness check.

    Returns healthy if the service is running, and whether a PSA token is
    configured (lookups without one are heavily rate limited).
    """
    return HealthResponse(
        status="healthy",
        psa_token="configured" if settings.psa_api_token else "missing",
    )
