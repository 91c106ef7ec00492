"""Bounded TTL cache shared by every upstream fetch and query.

Replaces the unbounded module-level dict pattern:
    _cache = {}  # {url: {"data": ..., "timestamp": ...}}

Usage:
    cache = CacheStore(ttl=300, max_entries=4096)

    # Read
    hit, data = cache.get(url)
    if hit:
        return data

    # Write
    data = await fetch(url)
    cache.put(url, data)

Staleness is checked lazily on read. A stale entry is ignored (reported as
a miss) but stays in place until the next put for the same key overwrites
it, or until LRU eviction pushes it out.
"""

import logging
import time
from collections import OrderedDict
from typing import Any, Callable, Hashable

from pokedex.telemetry import record_cache_lookup

logger = logging.getLogger(__name__)


def make_key(endpoint: str, *parts: object) -> tuple:
    """Build a deterministic cache key, lower-casing text parts.

    make_key("search", "Pikachu", 20) -> ("search", "pikachu", 20)

    Tuple keys never collide with the URL strings used for raw fetches.
    """
    normalized = []
    for part in parts:
        if isinstance(part, str):
            normalized.append(part.strip().lower())
        else:
            normalized.append(part)
    return (endpoint, *normalized)


class CacheStore:
    """TTL cache with LRU eviction once max_entries is exceeded."""

    __slots__ = ("ttl", "max_entries", "_clock", "_entries", "_hits", "_misses")

    def __init__(
        self,
        ttl: float = 300.0,
        max_entries: int = 4096,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_entries < 1:
            raise ValueError(f"max_entries must be >= 1, got {max_entries}")
        self.ttl = ttl
        self.max_entries = max_entries
        self._clock = clock
        self._entries: "OrderedDict[Hashable, tuple[Any, float]]" = OrderedDict()
        self._hits = 0
        self._misses = 0

    def get(self, key: Hashable) -> tuple[bool, Any]:
        """Return (hit, value). A hit requires the entry to be younger than TTL."""
        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            record_cache_lookup("miss")
            return False, None

        value, stored_at = entry
        if self._clock() - stored_at >= self.ttl:
            self._misses += 1
            record_cache_lookup("stale")
            return False, None

        self._entries.move_to_end(key)
        self._hits += 1
        record_cache_lookup("hit")
        return True, value

    def put(self, key: Hashable, value: Any) -> None:
        """Store value with the current timestamp, overwriting any previous entry."""
        if key in self._entries:
            self._entries.move_to_end(key)
        self._entries[key] = (value, self._clock())
        while len(self._entries) > self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug(f"[CACHE] Evicted LRU entry: {evicted}")

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: Hashable) -> bool:
        """Physical presence, regardless of staleness."""
        return key in self._entries

    def stats(self) -> dict:
        """Return hit/miss/size statistics."""
        lookups = self._hits + self._misses
        return {
            "hits": self._hits,
            "misses": self._misses,
            "size": len(self._entries),
            "max_entries": self.max_entries,
            "hit_rate": round(self._hits / max(lookups, 1) * 100, 1),
        }
