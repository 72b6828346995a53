"""Bounded TTL cache with least-recently-accessed eviction.

Used for model decisions that are safe to reuse for a while: query
classification, tool selection and risk assessment. Values are snapshots,
so concurrent writers to the same key may race and the last write wins.
"""

import json
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass, replace
from typing import Any, Callable, Generic, TypeVar

from typing_extensions import TypedDict

from workspace_assistant.telemetry import CACHE_EVICTED, CACHE_HIT, get_logger

log = get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """One cached value.

    Attributes:
        value: The cached value.
        expires_at: Clock time after which the entry is treated as absent.
        last_accessed: Clock time of the last set() or successful get().
    """

    value: T
    expires_at: float
    last_accessed: float


class CacheStats(TypedDict):
    """Point-in-time cache statistics."""

    name: str
    size: int
    max_size: int
    ttl_seconds: float


def normalize_key(key: Any) -> str:
    """Normalize a cache key.

    Strings are trimmed and lowercased so that trivially different phrasings
    share an entry. Anything else is serialized to stable JSON.

    Args:
        key: String or JSON-serializable structure.

    Returns:
        Normalized string key.
    """
    if isinstance(key, str):
        return key.strip().lower()
    return json.dumps(key, sort_keys=True, separators=(",", ":"), default=str)


class TTLCache(Generic[T]):
    """In-process key/value cache bounded by size and per-entry TTL.

    Invariants:
        - ``len(cache) <= max_size`` at all times.
        - When full, inserting a new key evicts exactly the least recently
          accessed entry.
        - Entries are replaced whole, never updated in place.

    Example:
        >>> cache: TTLCache[str] = TTLCache("demo", max_size=2, ttl_seconds=60)
        >>> cache.set("Hello ", "world")
        >>> cache.get("hello")
        'world'
    """

    def __init__(
        self,
        name: str,
        max_size: int = 1000,
        ttl_seconds: float = 15 * 60,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize an empty cache.

        Args:
            name: Cache name used in logs and stats.
            max_size: Maximum number of entries (>= 1).
            ttl_seconds: Lifetime of each entry in seconds (> 0).
            clock: Monotonic clock, injectable for tests.

        Raises:
            ValueError: If max_size or ttl_seconds is not positive.
        """
        if max_size < 1:
            raise ValueError(f"max_size must be >= 1, got {max_size}")
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be > 0, got {ttl_seconds}")

        self.name = name
        self.max_size = max_size
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        # Ordered from least to most recently accessed
        self._entries: OrderedDict[str, CacheEntry[T]] = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: Any) -> T | None:
        """Return the cached value, or None if absent or expired.

        Expired entries are deleted on access. A hit refreshes recency.
        """
        normalized = normalize_key(key)
        now = self._clock()
        with self._lock:
            entry = self._entries.get(normalized)
            if entry is None:
                return None
            if now >= entry.expires_at:
                del self._entries[normalized]
                return None
            self._entries[normalized] = replace(entry, last_accessed=now)
            self._entries.move_to_end(normalized)
            value = entry.value

        log.debug(CACHE_HIT, cache=self.name)
        return value

    def set(self, key: Any, value: T) -> None:
        """Store a value, evicting the least recently accessed entry if full."""
        normalized = normalize_key(key)
        now = self._clock()
        entry = CacheEntry(value=value, expires_at=now + self.ttl_seconds, last_accessed=now)
        evicted: str | None = None
        with self._lock:
            if normalized not in self._entries and len(self._entries) >= self.max_size:
                evicted, _ = self._entries.popitem(last=False)
            self._entries[normalized] = entry
            self._entries.move_to_end(normalized)

        if evicted is not None:
            log.debug(CACHE_EVICTED, cache=self.name, max_size=self.max_size)

    def clear_expired(self) -> int:
        """Delete every expired entry.

        Returns:
            Number of entries removed.
        """
        now = self._clock()
        with self._lock:
            expired = [key for key, entry in self._entries.items() if now >= entry.expires_at]
            for key in expired:
                del self._entries[key]
        return len(expired)

    def clear(self) -> None:
        """Delete every entry."""
        with self._lock:
            self._entries.clear()

    def get_stats(self) -> CacheStats:
        """Return size and configuration of this cache."""
        return CacheStats(
            name=self.name,
            size=len(self._entries),
            max_size=self.max_size,
            ttl_seconds=self.ttl_seconds,
        )
