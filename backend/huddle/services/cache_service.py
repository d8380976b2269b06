"""
Redis cache for event listing pages.

Keys are "events:list:" followed by the sorted, non-empty query parameters
of the listing request, so every filter combination gets its own entry.

Any roster change (join, approve, leave, waitlist) moves capacity_current,
participants or waitlist, and any catalogue change (create, update, delete)
moves everything else; both drop every listing page with a prefix SCAN.
The TTL bounds staleness if an invalidation is lost.

Single events are not cached: their detail view shows the live roster.

Redis is optional. When it is disabled or unreachable every read is a
miss and every write or invalidation is a no-op.
"""

import json
from typing import Any, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from huddle.core.config import get_settings
from huddle.core.logging import get_logger
from huddle.core.metrics import record_cache_operation

logger = get_logger(__name__)
settings = get_settings()

EVENT_LIST_PREFIX = "events:list:"

_redis_client: Optional[redis.Redis] = None


async def get_redis() -> Optional[redis.Redis]:
    """Shared client, created lazily. None when Redis is disabled or down."""
    global _redis_client

    if not settings.REDIS_ENABLED:
        return None
    if _redis_client is not None:
        return _redis_client

    client = redis.from_url(
        settings.REDIS_URL,
        encoding="utf-8",
        decode_responses=True,
        socket_connect_timeout=5,
        socket_timeout=5,
        retry_on_timeout=True,
    )
    try:
        await client.ping()
    except RedisError as e:
        logger.error("redis_connection_failed", url=settings.REDIS_URL, error=str(e))
        await client.aclose()
        return None

    logger.info("redis_connected", url=settings.REDIS_URL)
    _redis_client = client
    return _redis_client


async def close_redis() -> None:
    global _redis_client
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None


def make_event_list_key(params: dict[str, Any]) -> str:
    """Stable key for a listing query; None-valued params are left out."""
    parts = [f"{name}={params[name]}" for name in sorted(params) if params[name] is not None]
    return EVENT_LIST_PREFIX + "&".join(parts)


async def _read_json(key: str) -> Optional[dict]:
    client = await get_redis()
    if client is None:
        return None
    try:
        raw = await client.get(key)
    except RedisError as e:
        logger.error("cache_get_error", key=key, error=str(e))
        return None

    record_cache_operation("get", hit=raw is not None)
    return json.loads(raw) if raw else None


async def _write_json(key: str, data: dict, ttl: int) -> None:
    client = await get_redis()
    if client is None:
        return
    try:
        await client.setex(key, ttl, json.dumps(data, default=str))
    except RedisError as e:
        logger.error("cache_set_error", key=key, error=str(e))
        return
    record_cache_operation("set", hit=False)


async def _delete_prefix(prefix: str) -> int:
    client = await get_redis()
    if client is None:
        return 0
    deleted = 0
    try:
        async for key in client.scan_iter(match=f"{prefix}*", count=100):
            deleted += await client.delete(key)
    except RedisError as e:
        logger.error("cache_invalidation_error", prefix=prefix, error=str(e))
    return deleted


async def get_cached_events(params: dict[str, Any]) -> Optional[dict]:
    return await _read_json(make_event_list_key(params))


async def set_cached_events(params: dict[str, Any], data: dict) -> None:
    await _write_json(make_event_list_key(params), data, settings.REDIS_CACHE_TTL)


async def invalidate_event_cache() -> None:
    """Drop every cached event listing page."""
    if settings.REDIS_ENABLED:
        deleted = await _delete_prefix(EVENT_LIST_PREFIX)
        logger.info("cache_invalidated", keys_deleted=deleted)


async def get_cache_stats() -> dict:
    """Server-side hit/miss counters for the /health endpoint."""
    client = await get_redis()
    if client is None:
        return {"status": "disabled"}

    try:
        info = await client.info("stats")
    except RedisError as e:
        return {"status": "error", "error": str(e)}

    hits = info.get("keyspace_hits", 0)
    misses = info.get("keyspace_misses", 0)
    return {
        "status": "connected",
        "hits": hits,
        "misses": misses,
        "hit_rate": round(hits / max(hits + misses, 1) * 100, 2),
    }
