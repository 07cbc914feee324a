"""Fast-cache backends: in-process TTL store, redis, and a two-tier wrapper.

Values are JSON-compatible (dicts and lists from ``model_dump(mode="json")``).
None is never stored; a None read always means a miss.
"""

from __future__ import annotations

import json
import threading
import time
from typing import Any, Callable

import redis

from ..config import CacheTTLConfig, settings
from ..logging import logger


class MemoryCache:
    """In-process TTL cache."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._store: dict[str, tuple[Any, float]] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def get(self, key: str) -> Any | None:
        with self._lock:
            item = self._store.get(key)
            if item is None:
                return None
            value, expires_at = item
            if self._clock() >= expires_at:
                self._store.pop(key, None)
                return None
            return value

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        if value is None or ttl_seconds <= 0:
            return
        with self._lock:
            self._store[key] = (value, self._clock() + ttl_seconds)

    def delete(self, *keys: str) -> None:
        with self._lock:
            for key in keys:
                self._store.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def __len__(self) -> int:
        return len(self._store)


class RedisCache:
    """JSON values in redis under a shared key prefix.

    Raises ``redis.RedisError`` on connection problems; TieredCache handles them.
    """

    def __init__(self, client: redis.Redis | None = None, prefix: str | None = None) -> None:
        self.client = client if client is not None else redis.from_url(settings.redis_url)
        self.prefix = prefix if prefix is not None else settings.cache_config.key_prefix

    def _key(self, key: str) -> str:
        return f"{self.prefix}:{key}" if self.prefix else key

    def get(self, key: str) -> tuple[Any | None, int]:
        """Return (value, remaining ttl seconds); (None, 0) on a miss."""
        pipe = self.client.pipeline()
        pipe.get(self._key(key))
        pipe.ttl(self._key(key))
        raw, ttl = pipe.execute()
        if raw is None:
            return None, 0
        try:
            return json.loads(raw), max(int(ttl or 0), 0)
        except (TypeError, ValueError):
            logger.warning("cache_redis_decode_error", key=key)
            return None, 0

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        if value is None or ttl_seconds <= 0:
            return
        self.client.setex(self._key(key), ttl_seconds, json.dumps(value, default=str))

    def delete(self, *keys: str) -> None:
        if keys:
            self.client.delete(*(self._key(key) for key in keys))


class TieredCache:
    """Memory first, then redis; writes and deletes go to both tiers.

    A redis failure is logged and the call continues against memory alone.
    """

    def __init__(
        self,
        memory: MemoryCache | None = None,
        remote: RedisCache | None = None,
        config: CacheTTLConfig | None = None,
    ) -> None:
        self.config = config or settings.cache_config
        self.memory = memory if memory is not None else (MemoryCache() if self.config.memory_enabled else None)
        if remote is None and self.config.redis_enabled:
            remote = RedisCache(prefix=self.config.key_prefix)
        self.remote = remote
        self._stats = {"memory_hits": 0, "redis_hits": 0, "misses": 0, "redis_errors": 0}

    def get(self, key: str) -> Any | None:
        if self.memory is not None:
            value = self.memory.get(key)
            if value is not None:
                self._stats["memory_hits"] += 1
                logger.debug("cache_hit", key=key, tier="memory")
                return value

        if self.remote is not None:
            try:
                value, ttl = self.remote.get(key)
            except redis.RedisError as exc:
                self._redis_failed("get", key, exc)
            else:
                if value is not None:
                    self._stats["redis_hits"] += 1
                    logger.debug("cache_hit", key=key, tier="redis")
                    if self.memory is not None and ttl:
                        self.memory.set(key, value, ttl)
                    return value

        self._stats["misses"] += 1
        logger.debug("cache_miss", key=key)
        return None

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        if self.memory is not None:
            self.memory.set(key, value, ttl_seconds)
        if self.remote is not None:
            try:
                self.remote.set(key, value, ttl_seconds)
            except redis.RedisError as exc:
                self._redis_failed("set", key, exc)

    def delete(self, *keys: str) -> None:
        if not keys:
            return
        if self.memory is not None:
            self.memory.delete(*keys)
        if self.remote is not None:
            try:
                self.remote.delete(*keys)
            except redis.RedisError as exc:
                self._redis_failed("delete", ",".join(keys), exc)
        logger.info("cache_invalidated", keys=list(keys))

    def stats(self) -> dict[str, int]:
        return dict(self._stats)

    def _redis_failed(self, operation: str, key: str, exc: Exception) -> None:
        self._stats["redis_errors"] += 1
        logger.warning("cache_redis_error", operation=operation, key=key, error=str(exc))
