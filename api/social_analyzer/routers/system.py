"""System endpoints (health)."""

from __future__ import annotations

import logging
import time

from fastapi import APIRouter, HTTPException, status

from .. import schemas
from ..cache import get_redis_client
from ..settings import REDIS_URL

router = APIRouter(prefix="", tags=["System"])
logger = logging.getLogger(__name__)

# Global startup time for uptime calculation
_STARTUP_TIME = time.time()


@router.get("/health", response_model=schemas.HealthResponse)
def get_health() -> schemas.HealthResponse:
    """Liveness check."""
    uptime_s = time.time() - _STARTUP_TIME
    return schemas.HealthResponse(status="ok", uptime_s=uptime_s)


@router.get("/health/redis")
def check_redis_health() -> dict:
    """
    Redis health check endpoint.

    Returns 200 if Redis is available or caching is disabled, 503 if configured but unreachable.
    """
    if not REDIS_URL:
        return {"status": "ok", "message": "Cache disabled"}

    if not get_redis_client():
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Redis unavailable"
        )
    return {"status": "ok", "message": "Redis is available"}
