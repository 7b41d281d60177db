"""LRU cache used for compiled tokenizer rules.

Components:
- CacheKey: Immutable cache key
- CacheStats: Hit/miss/eviction counters
- UnifiedCache: Thread-safe LRU cache

Rule sets depend only on the dialect and parse configuration, so entries never
go stale; the size bound is the only eviction policy.
"""

import threading
from collections import OrderedDict
from typing import Any, Final, Generic, Optional

from mypy_extensions import mypyc_attr
from typing_extensions import TypeVar

__all__ = ("CacheKey", "CacheStats", "UnifiedCache")

CacheValueT = TypeVar("CacheValueT")

DEFAULT_MAX_SIZE: Final = 256


@mypyc_attr(allow_interpreted_subclasses=False)
class CacheKey:
    """Immutable cache key.

    Args:
        key_data: Tuple of hashable values that uniquely identify the cached item
    """

    __slots__ = ("_hash", "_key_data")

    def __init__(self, key_data: "tuple[Any, ...]") -> None:
        self._key_data = key_data
        self._hash = hash(key_data)

    @property
    def key_data(self) -> "tuple[Any, ...]":
        return self._key_data

    def __hash__(self) -> int:
        return self._hash

    def __eq__(self, other: object) -> bool:
        if type(other) is not CacheKey:
            return False
        if self._hash != other._hash:
            return False
        return self._key_data == other._key_data

    def __repr__(self) -> str:
        return f"CacheKey({self._key_data!r})"


@mypyc_attr(allow_interpreted_subclasses=False)
class CacheStats:
    """Hit, miss and eviction counters of one cache."""

    __slots__ = ("evictions", "hits", "misses")

    def __init__(self) -> None:
        self.hits = 0
        self.misses = 0
        self.evictions = 0

    @property
    def hit_rate(self) -> float:
        """Cache hit rate as percentage."""
        total = self.hits + self.misses
        return (self.hits / total * 100) if total > 0 else 0.0

    def reset(self) -> None:
        self.hits = 0
        self.misses = 0
        self.evictions = 0

    def __repr__(self) -> str:
        return (
            f"CacheStats(hit_rate={self.hit_rate:.1f}%, "
            f"hits={self.hits}, misses={self.misses}, evictions={self.evictions})"
        )


@mypyc_attr(allow_interpreted_subclasses=False)
class UnifiedCache(Generic[CacheValueT]):
    """Size-bounded cache evicting the least recently used entry.

    Args:
        max_size: Maximum number of items to cache
    """

    __slots__ = ("_entries", "_lock", "_max_size", "_stats")

    def __init__(self, max_size: int = DEFAULT_MAX_SIZE) -> None:
        self._entries: OrderedDict[CacheKey, CacheValueT] = OrderedDict()
        self._lock = threading.RLock()
        self._max_size = max_size
        self._stats = CacheStats()

    def get(self, key: CacheKey) -> Optional[CacheValueT]:
        """Get value from cache.

        Returns:
            Cached value or None if not found
        """
        with self._lock:
            if key not in self._entries:
                self._stats.misses += 1
                return None
            self._entries.move_to_end(key)
            self._stats.hits += 1
            return self._entries[key]

    def put(self, key: CacheKey, value: CacheValueT) -> None:
        with self._lock:
            self._entries[key] = value
            self._entries.move_to_end(key)
            if len(self._entries) > self._max_size:
                self._entries.popitem(last=False)
                self._stats.evictions += 1

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._stats.reset()

    def size(self) -> int:
        return len(self._entries)

    def get_stats(self) -> CacheStats:
        return self._stats
