"""Read-through cache with sync-on-miss.

Lookup order for every read: fast cache, then the store, then one provider
sync followed by a single store re-read. A provider failure during the sync
is reported as ``unavailable`` and nothing is cached, so the next read tries
again instead of serving a remembered failure.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Generic, TypeVar

from ..client.errors import NotFound, ProviderError
from ..logging import logger
from .backends import TieredCache

T = TypeVar("T")


class CacheOutcome(str, Enum):
    found = "found"
    not_found = "not_found"
    unavailable = "unavailable"


@dataclass(frozen=True)
class CacheResult(Generic[T]):
    outcome: CacheOutcome
    value: T | None = None
    source: str | None = None
    error: str | None = None

    @property
    def found(self) -> bool:
        return self.outcome == CacheOutcome.found

    @classmethod
    def hit(cls, value: T, source: str) -> CacheResult[T]:
        return cls(CacheOutcome.found, value=value, source=source)

    @classmethod
    def missing(cls) -> CacheResult[T]:
        return cls(CacheOutcome.not_found)

    @classmethod
    def failed(cls, error: str) -> CacheResult[T]:
        return cls(CacheOutcome.unavailable, error=error)


TTL = int | Callable[[Any], int]


class SyncCache:
    def __init__(self, backend: TieredCache | None = None) -> None:
        self.backend = backend if backend is not None else TieredCache()

    def get(
        self,
        key: str,
        load: Callable[[], T | None],
        sync: Callable[[], Any] | None = None,
        ttl: TTL = 900,
    ) -> CacheResult[T]:
        """Resolve ``key`` through cache, store and (at most once) the provider.

        ``load`` reads the store and returns None when absent. ``sync`` pulls
        from the provider into the store; it may raise NotFound or any
        ProviderError.
        """
        cached = self.backend.get(key)
        if cached is not None:
            return CacheResult.hit(cached, "cache")

        value = load()
        if value is not None:
            self._store(key, value, ttl)
            return CacheResult.hit(value, "store")

        if sync is None:
            return CacheResult.missing()

        logger.info("cache_sync_on_miss", key=key)
        try:
            sync()
        except NotFound:
            logger.info("cache_sync_not_found", key=key)
            return CacheResult.missing()
        except ProviderError as exc:
            logger.warning("cache_sync_unavailable", key=key, error=str(exc))
            return CacheResult.failed(str(exc))

        value = load()
        if value is None:
            return CacheResult.missing()
        self._store(key, value, ttl)
        return CacheResult.hit(value, "provider")

    def put(self, key: str, value: Any, ttl: TTL) -> None:
        self._store(key, value, ttl)

    def invalidate(self, *keys: str) -> None:
        self.backend.delete(*keys)

    def stats(self) -> dict[str, int]:
        return self.backend.stats()

    def _store(self, key: str, value: Any, ttl: TTL) -> None:
        seconds = ttl(value) if callable(ttl) else ttl
        self.backend.set(key, value, seconds)
