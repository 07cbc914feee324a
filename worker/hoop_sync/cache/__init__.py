"""Tiered fast cache and the read-through SyncCache."""

from . import keys
from .backends import MemoryCache, RedisCache, TieredCache
from .sync_cache import CacheOutcome, CacheResult, SyncCache

__all__ = [
    "keys",
    "MemoryCache",
    "RedisCache",
    "TieredCache",
    "CacheOutcome",
    "CacheResult",
    "SyncCache",
]
