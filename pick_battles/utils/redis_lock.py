"""Shared Redis distributed lock helpers."""
from __future__ import annotations

import redis

from ..config import settings
from ..logging import logger

LOCK_TIMEOUT_5MIN = 300
LOCK_TIMEOUT_10MIN = 600


def acquire_redis_lock(lock_name: str, timeout: int = LOCK_TIMEOUT_5MIN) -> bool:
    """Try to acquire a Redis lock. Returns True if acquired."""
    try:
        r = redis.from_url(settings.redis_url)
        return bool(r.set(lock_name, "1", nx=True, ex=timeout))
    except redis.RedisError as exc:
        # Conditional writes still guard each battle if Redis is unavailable
        logger.warning("redis_lock_failed", lock=lock_name, error=str(exc))
        return True


def release_redis_lock(lock_name: str) -> None:
    """Release a Redis lock."""
    try:
        r = redis.from_url(settings.redis_url)
        r.delete(lock_name)
    except redis.RedisError as exc:
        logger.warning("redis_unlock_failed", lock=lock_name, error=str(exc))
