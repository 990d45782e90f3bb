"""Redis store for distributed locks.

Used to keep two SoHo sweeps from running at the same time. Locks are redis-py
token locks, so a crashed holder frees the lock once the TTL runs out.
"""

import logging

import redis.asyncio as redis
from redis.asyncio.lock import Lock

from stock_api.settings import get_settings

PREFIX_LOCK = "lock:"

# Redis client (initialized on startup)
_redis: redis.Redis | None = None
logger = logging.getLogger("uvicorn.error")


async def init_redis() -> None:
    """Initialize Redis connection."""
    global _redis
    settings = get_settings()
    _redis = redis.from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
        socket_connect_timeout=5,
        socket_timeout=5,
    )
    # Validate connectivity early (especially for `rediss://` in production).
    await _redis.ping()
    logger.info("Redis connected")


async def close_redis() -> None:
    """Close Redis connection."""
    global _redis
    if _redis:
        await _redis.aclose()
        _redis = None


def _get_redis() -> redis.Redis:
    """Get Redis client instance."""
    if _redis is None:
        raise RuntimeError("Redis not initialized. Call init_redis() first.")
    return _redis


def sweep_lock(key: str, ttl: int) -> Lock:
    """Non-blocking, token-owned lock.

    `acquire()` returns False when another holder has it. `release()` and
    `reacquire()` only succeed for the holder whose token is still stored,
    so an expired holder can never free a newer holder's lock.

    Args:
        key: Lock key (e.g., "sweep:zara:11719").
        ttl: Lock timeout in seconds; `reacquire()` resets it.
    """
    return _get_redis().lock(f"{PREFIX_LOCK}{key}", timeout=ttl, blocking=False)
