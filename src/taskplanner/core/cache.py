"""Redis-backed response cache for per-owner task listings."""

from __future__ import annotations

import asyncio
import json
import logging
from threading import Lock
from typing import Awaitable, Callable, TypeVar, cast

from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel
from redis.asyncio import Redis

from .config import get_settings

T = TypeVar("T")

logger = logging.getLogger("taskplanner.core.cache")

TASK_LIST_CACHE_NAMESPACE = "tasks:list"
TASK_STATISTICS_CACHE_NAMESPACE = "tasks:statistics"
TASK_AGENDA_CACHE_NAMESPACE = "tasks:agenda"

_OWNER_SCOPED_NAMESPACES = (
    TASK_LIST_CACHE_NAMESPACE,
    TASK_STATISTICS_CACHE_NAMESPACE,
    TASK_AGENDA_CACHE_NAMESPACE,
)


class CacheMetrics:
    """Thread-safe counters describing cache behaviour."""

    _FIELDS = ("hits", "misses", "stores", "invalidations", "skipped")

    def __init__(self) -> None:
        self._lock = Lock()
        self._counts = dict.fromkeys(self._FIELDS, 0)

    def _bump(self, name: str, amount: int = 1) -> None:
        with self._lock:
            self._counts[name] += amount

    def record_hit(self) -> None:
        self._bump("hits")

    def record_miss(self) -> None:
        self._bump("misses")

    def record_store(self) -> None:
        self._bump("stores")

    def record_invalidation(self, amount: int = 1) -> None:
        self._bump("invalidations", amount)

    def record_skipped(self) -> None:
        self._bump("skipped")

    def reset(self) -> None:
        with self._lock:
            self._counts = dict.fromkeys(self._FIELDS, 0)

    def snapshot(self) -> dict[str, int]:
        with self._lock:
            return dict(self._counts)


cache_metrics = CacheMetrics()

_redis_client: Redis | None = None
_redis_lock = asyncio.Lock()
_connection_error_logged = False


def owner_key(owner_id: int, suffix: str = "") -> str:
    """Build a cache key whose prefix identifies the owning user."""

    key = f"owner={owner_id}"
    return f"{key}:{suffix}" if suffix else key


def set_cache_client(client: Redis | None) -> None:
    """Inject a Redis client instance (primarily for tests)."""

    global _redis_client, _connection_error_logged
    _redis_client = client
    _connection_error_logged = False


async def close_cache_client() -> None:
    """Close the active Redis client, if any."""

    global _redis_client
    client = _redis_client
    _redis_client = None
    if client is not None:
        await client.aclose()


async def _create_redis_client() -> Redis | None:
    global _connection_error_logged

    settings = get_settings()
    try:
        client = Redis.from_url(settings.redis_url, encoding="utf-8", decode_responses=True)
        await client.ping()
    except Exception:  # pragma: no cover - network failure scenarios
        if not _connection_error_logged:
            logger.warning("Redis cache unavailable; caching will be bypassed.", exc_info=True)
            _connection_error_logged = True
        return None
    _connection_error_logged = False
    return client


async def get_cache_client() -> Redis | None:
    """Return a connected Redis client or ``None`` if caching is disabled."""

    global _redis_client

    if not get_settings().cache_enabled:
        return None
    if _redis_client is not None:
        return _redis_client

    async with _redis_lock:
        if _redis_client is None:
            _redis_client = await _create_redis_client()
        return _redis_client


async def cache_get_or_set(
    *,
    namespace: str,
    key: str,
    builder: Callable[[], Awaitable[T]],
    ttl: int | None = None,
    model: type[BaseModel] | None = None,
) -> T:
    """Return a cached value or compute and store it if absent."""

    client = await get_cache_client()
    if client is None:
        cache_metrics.record_skipped()
        return await builder()

    cache_key = f"{namespace}:{key}"
    try:
        cached_payload = await client.get(cache_key)
    except Exception:  # pragma: no cover - network failure scenarios
        logger.warning("Failed to read cache key %s; bypassing cache.", cache_key, exc_info=True)
        cached_payload = None

    if cached_payload is not None:
        cache_metrics.record_hit()
        logger.debug("Cache hit for %s", cache_key)
        data = json.loads(cached_payload)
        if model is not None:
            return cast(T, model.model_validate(data))
        return cast(T, data)

    cache_metrics.record_miss()
    logger.debug("Cache miss for %s", cache_key)

    result = await builder()
    serialized = json.dumps(jsonable_encoder(result))
    expires = ttl if ttl is not None else get_settings().cache_default_ttl_seconds

    try:
        await client.set(cache_key, serialized, ex=expires if expires > 0 else None)
    except Exception:  # pragma: no cover - network failure scenarios
        logger.warning("Failed to store cache key %s", cache_key, exc_info=True)
    else:
        cache_metrics.record_store()

    return result


async def invalidate_namespace(namespace: str, match: str = "*") -> None:
    """Remove cached entries under the provided namespace."""

    client = await get_cache_client()
    if client is None:
        return

    pattern = f"{namespace}:{match}"
    try:
        keys = [key async for key in client.scan_iter(match=pattern)]
        if keys:
            await client.delete(*keys)
    except Exception:  # pragma: no cover - network failure scenarios
        logger.warning("Failed to invalidate cache keys for pattern %s", pattern, exc_info=True)
        return

    if keys:
        cache_metrics.record_invalidation(len(keys))
        logger.debug("Invalidated %d cache entries for pattern %s", len(keys), pattern)


async def invalidate_task_cache(owner_id: int) -> None:
    """Clear every cached task view belonging to ``owner_id``."""

    prefix = owner_key(owner_id)
    for namespace in _OWNER_SCOPED_NAMESPACES:
        await invalidate_namespace(namespace, prefix)
        await invalidate_namespace(namespace, f"{prefix}:*")


__all__ = [
    "TASK_AGENDA_CACHE_NAMESPACE",
    "TASK_LIST_CACHE_NAMESPACE",
    "TASK_STATISTICS_CACHE_NAMESPACE",
    "cache_get_or_set",
    "cache_metrics",
    "close_cache_client",
    "get_cache_client",
    "invalidate_namespace",
    "invalidate_task_cache",
    "owner_key",
    "set_cache_client",
]
