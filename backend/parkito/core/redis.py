# backend/parkito/core/redis.py
"""
Sync Redis client for session draft storage.

Drafts are read and written inside request handlers with plain blocking
calls, matching the synchronous pending store.
"""

import logging
from typing import Optional

from redis import Redis

from .config import settings

logger = logging.getLogger(__name__)

_redis_client: Optional[Redis] = None


def get_redis_client() -> Optional[Redis]:
    """
    Get or create the Redis client for drafts.

    Returns:
        Redis client, or None when no REDIS_URL is configured
    """
    global _redis_client

    if not settings.redis_url:
        return None

    if _redis_client is None:
        _redis_client = Redis.from_url(
            settings.redis_url,
            encoding="utf-8",
            decode_responses=True,
            socket_timeout=5,
        )
        logger.info("[REDIS-DRAFTS] Redis client initialized")

    return _redis_client


def close_redis_client() -> None:
    """Close the Redis client gracefully."""
    global _redis_client

    if _redis_client is not None:
        _redis_client.close()
        _redis_client = None
        logger.info("[REDIS-DRAFTS] Redis client closed")
