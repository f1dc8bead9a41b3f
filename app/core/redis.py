from __future__ import annotations

import logging
import time
from typing import Optional

import redis
from redis import Redis

from app.core.config import settings

logger = logging.getLogger("damage_report.redis")

# After a failed connect, don't try again for this long.
_RETRY_AFTER_SECONDS = 30.0

_client: Optional[Redis] = None
_down_until: float = 0.0


def get_redis() -> Optional[Redis]:
    """Return a shared Redis client, or None while Redis is unreachable.

    Redis only caches queue badge counts here, so callers must work without it.
    """
    global _client, _down_until
    if _client is not None:
        return _client
    if not settings.REDIS_URL or time.monotonic() < _down_until:
        return None
    try:
        client = redis.Redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=0.5,
            socket_timeout=0.5,
        )
        client.ping()
    except redis.RedisError as exc:
        logger.warning("Redis unavailable, retrying in %.0fs: %s", _RETRY_AFTER_SECONDS, exc)
        _down_until = time.monotonic() + _RETRY_AFTER_SECONDS
        return None
    _client = client
    return _client


def mark_redis_down(exc: Exception) -> None:
    """Drop the shared client after a command failed mid-flight."""
    global _client, _down_until
    logger.warning("Redis command failed: %s", exc)
    _client = None
    _down_until = time.monotonic() + _RETRY_AFTER_SECONDS


def reset_redis() -> None:
    global _client, _down_until
    _client = None
    _down_until = 0.0
