# backend/parkito/routes/health.py
"""
Health check endpoints for the application.

Used by the hosting platform to check the service is up and whether the
draft storage is reachable.
"""

from datetime import datetime, timezone
import logging
from typing import Dict, Optional

from fastapi import APIRouter, Response
from pydantic import BaseModel
from redis.exceptions import RedisError

from ..core.constants import API_TITLE, API_VERSION
from ..core.redis import get_redis_client

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["health"])


class HealthCheckResponse(BaseModel):
    status: str
    service: str
    version: str
    timestamp: datetime
    checks: Dict[str, Optional[bool]]


@router.get("/health", response_model=HealthCheckResponse)
def health_check(response: Response) -> HealthCheckResponse:
    """
    Basic health check endpoint.

    Returns:
        Service status; ``redis`` is None when drafts are kept in memory.
    """
    response.headers["Cache-Control"] = "no-store"

    redis_ok: Optional[bool] = None
    status = "healthy"
    client = get_redis_client()
    if client is not None:
        try:
            redis_ok = bool(client.ping())
        except RedisError as e:
            logger.error(f"Redis health check failed: {e}")
            redis_ok = False
            status = "degraded"

    return HealthCheckResponse(
        status=status,
        service=API_TITLE,
        version=API_VERSION,
        timestamp=datetime.now(timezone.utc),
        checks={"redis": redis_ok},
    )
