"""
Optional Redis cache for computed analytics.

Values are stored as JSON under an "analyzer:" namespace. Every function here
degrades to a no-op when REDIS_URL is unset or Redis cannot be reached, so
callers never need to care whether caching is on.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import redis

from . import settings

logger = logging.getLogger(__name__)

KEY_PREFIX = "analyzer:"

_client: redis.Redis | None = None


def _namespaced(key: str) -> str:
    return f"{KEY_PREFIX}{key}"


def get_redis_client() -> redis.Redis | None:
    """Return a connected client, or None when caching is off or Redis is down."""
    global _client

    if not settings.REDIS_URL:
        return None
    if _client is not None:
        return _client

    try:
        candidate = redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
        )
        candidate.ping()
    except redis.RedisError as e:
        logger.warning(f"Analytics cache disabled, Redis unreachable: {e}")
        return None

    _client = candidate
    logger.info("Analytics cache connected")
    return _client


def cache_get(key: str) -> Any | None:
    """Decoded value stored under key, or None on a miss or any cache failure."""
    client = get_redis_client()
    if client is None:
        return None

    try:
        raw = client.get(_namespaced(key))
    except redis.RedisError as e:
        logger.warning(f"Cache read failed for {key!r}: {e}")
        return None
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        logger.warning(f"Dropping undecodable cache entry {key!r}")
        cache_delete(key)
        return None


def cache_set(key: str, value: Any, ttl: int = 300) -> bool:
    """Store a JSON-serializable value for ttl seconds. Returns whether it was stored."""
    client = get_redis_client()
    if client is None:
        return False

    try:
        payload = json.dumps(value)
    except (TypeError, ValueError) as e:
        logger.warning(f"Not caching {key!r}, value is not JSON-serializable: {e}")
        return False
    try:
        client.setex(_namespaced(key), ttl, payload)
    except redis.RedisError as e:
        logger.warning(f"Cache write failed for {key!r}: {e}")
        return False
    return True


def cache_delete(key: str) -> bool:
    """Evict key. Returns True only if something was removed."""
    client = get_redis_client()
    if client is None:
        return False

    try:
        return bool(client.delete(_namespaced(key)))
    except redis.RedisError as e:
        logger.warning(f"Cache eviction failed for {key!r}: {e}")
        return False


def cache_incr(key: str) -> int | None:
    """Atomically increment an integer counter. Returns the new value, or None without a cache."""
    client = get_redis_client()
    if client is None:
        return None

    try:
        value = client.incr(_namespaced(key))
    except redis.RedisError as e:
        logger.warning(f"Cache increment failed for {key!r}: {e}")
        return None
    return int(value)
