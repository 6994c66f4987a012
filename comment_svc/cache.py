import asyncio
import fnmatch
import logging
import time
from typing import Callable, Protocol

import redis.asyncio as redis
from redis.exceptions import RedisError

from comment_svc.config import settings
from comment_svc.errors import BackendUnavailableError

logger = logging.getLogger(__name__)

_REDIS_ERRORS = (RedisError, OSError, asyncio.TimeoutError)


class CacheBackend(Protocol):
    """
    Key-value cache over opaque byte payloads.

    ``get`` returns None on a miss; every other failure is raised as
    ``BackendUnavailableError`` so callers can tell the two apart.
    """

    async def get(self, key: str) -> bytes | None: ...

    async def set(self, key: str, value: bytes, ttl: int | None = None) -> None: ...

    async def delete(self, key: str) -> None: ...


class _HitCounter:
    def __init__(self) -> None:
        self._hits: int = 0
        self._misses: int = 0

    def _record(self, hit: bool) -> None:
        if hit:
            self._hits += 1
        else:
            self._misses += 1

    @property
    def stats(self) -> dict:
        """Return a snapshot of hit/miss counters for metrics endpoints."""
        total = self._hits + self._misses
        return {
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": round(self._hits / total * 100, 1) if total > 0 else 0.0,
        }


class RedisCache(_HitCounter):
    """
    Cache backend on a shared redis-py connection pool.

    Unlike a best-effort cache, every Redis failure is surfaced to the
    caller as ``BackendUnavailableError``; the store decides which of those
    are fatal.
    """

    def __init__(self, url: str | None = None, socket_timeout: float | None = None) -> None:
        super().__init__()
        self._url = url or settings.REDIS_URL
        self._socket_timeout = (
            socket_timeout if socket_timeout is not None else settings.REDIS_SOCKET_TIMEOUT
        )
        self._redis: redis.Redis | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        """Open the connection pool.  Called once at application startup."""
        self._redis = redis.from_url(
            self._url,
            decode_responses=False,
            socket_connect_timeout=self._socket_timeout,
            socket_timeout=self._socket_timeout,
        )
        # Ping to surface mis-configuration early; requests still fail loudly later.
        try:
            await self._redis.ping()
            logger.info("Redis connected: %s", self._url)
        except _REDIS_ERRORS as exc:
            logger.warning("Redis ping failed: %s", exc)

    async def disconnect(self) -> None:
        """Close the connection pool.  Called once at application shutdown."""
        if self._redis:
            await self._redis.aclose()
            self._redis = None

    def _client(self) -> redis.Redis:
        if self._redis is None:
            raise BackendUnavailableError("Redis client is not connected", "cache")
        return self._redis

    # ------------------------------------------------------------------
    # Core cache operations
    # ------------------------------------------------------------------

    async def get(self, key: str) -> bytes | None:
        client = self._client()
        try:
            data = await client.get(key)
        except _REDIS_ERRORS as exc:
            logger.error("Cache GET error for key=%r: %s", key, exc)
            raise BackendUnavailableError(f"Cache GET failed for {key!r}: {exc}", "cache") from exc
        self._record(data is not None)
        return data

    async def set(self, key: str, value: bytes, ttl: int | None = None) -> None:
        client = self._client()
        try:
            await client.set(key, value, ex=ttl)
        except _REDIS_ERRORS as exc:
            logger.error("Cache SET error for key=%r: %s", key, exc)
            raise BackendUnavailableError(f"Cache SET failed for {key!r}: {exc}", "cache") from exc

    async def delete(self, key: str) -> None:
        client = self._client()
        try:
            await client.delete(key)
        except _REDIS_ERRORS as exc:
            logger.error("Cache DELETE error for key=%r: %s", key, exc)
            raise BackendUnavailableError(f"Cache DELETE failed for {key!r}: {exc}", "cache") from exc

    async def delete_pattern(self, pattern: str) -> int:
        """
        Delete all keys matching *pattern* using SCAN (avoids blocking KEYS).
        Returns the number of keys removed.
        """
        client = self._client()
        try:
            keys: list[bytes] = []
            async for key in client.scan_iter(match=pattern):
                keys.append(key)
            if keys:
                await client.delete(*keys)
        except _REDIS_ERRORS as exc:
            logger.error("Cache DELETE_PATTERN error for pattern=%r: %s", pattern, exc)
            raise BackendUnavailableError(
                f"Cache DELETE_PATTERN failed for {pattern!r}: {exc}", "cache"
            ) from exc
        logger.debug("Cache invalidated %d key(s) matching %r", len(keys), pattern)
        return len(keys)


class InMemoryCache(_HitCounter):
    """
    Process-local cache backend used by the test-suite and by
    ``CACHE_BACKEND=memory``.  TTLs are honoured lazily on read.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        super().__init__()
        self._clock = clock
        self._entries: dict[str, tuple[bytes, float | None]] = {}

    async def connect(self) -> None:
        return None

    async def disconnect(self) -> None:
        self._entries.clear()

    async def get(self, key: str) -> bytes | None:
        entry = self._entries.get(key)
        if entry is not None:
            expires_at = entry[1]
            if expires_at is not None and expires_at <= self._clock():
                del self._entries[key]
                entry = None
        self._record(entry is not None)
        return entry[0] if entry is not None else None

    async def set(self, key: str, value: bytes, ttl: int | None = None) -> None:
        # Redis rejects SET ... EX 0 (and negatives); fail the same way here.
        if ttl is not None and ttl <= 0:
            raise BackendUnavailableError(
                f"Cache SET failed for {key!r}: invalid expire time {ttl}", "cache"
            )
        expires_at = self._clock() + ttl if ttl is not None else None
        self._entries[key] = (bytes(value), expires_at)

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    async def delete_pattern(self, pattern: str) -> int:
        """Glob-style counterpart of ``RedisCache.delete_pattern``."""
        keys = [key for key in self._entries if fnmatch.fnmatchcase(key, pattern)]
        for key in keys:
            del self._entries[key]
        return len(keys)

    def __contains__(self, key: str) -> bool:
        return key in self._entries


def build_cache(backend: str | None = None) -> RedisCache | InMemoryCache:
    """Return the cache backend selected by ``CACHE_BACKEND``."""
    backend = (backend or settings.CACHE_BACKEND).lower()
    if backend == "memory":
        return InMemoryCache()
    if backend == "redis":
        return RedisCache()
    raise ValueError(f"Unknown CACHE_BACKEND {backend!r}")
