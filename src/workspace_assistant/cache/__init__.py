"""Decision caches (TTL + LRU) and the service that sweeps them."""

from workspace_assistant.cache.service import CacheService
from workspace_assistant.cache.store import CacheEntry, CacheStats, TTLCache, normalize_key

__all__ = [
    "CacheService",
    "CacheEntry",
    "CacheStats",
    "TTLCache",
    "normalize_key",
]
