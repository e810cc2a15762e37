"""Entry table management with lazy expiry and bulk eviction."""

import math
from typing import Dict, Iterable, List, Optional, Tuple

from .models import CacheEntry
from ...constants import CACHE_PURGE_RATIO, DEFAULT_CACHE_MAX_SIZE
from ...logging import debug, LogRecord, LogEvent


class CacheMemoryManager:
    """
    Owns the key -> entry table and enforces its capacity.

    Eviction removes the oldest ``CACHE_PURGE_RATIO`` share of ``max_size``
    in one sweep, ordered by write timestamp. Reads never refresh the
    timestamp, so a frequently hit entry still ages out.

    Not thread-safe on its own; ``ResponseCache`` serializes access.
    """

    def __init__(
        self,
        max_size: int = DEFAULT_CACHE_MAX_SIZE,
        purge_ratio: float = CACHE_PURGE_RATIO,
    ):
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.max_size = max_size
        self.purge_ratio = purge_ratio
        self.cache: Dict[str, CacheEntry] = {}
        self.eviction_count = 0

    @property
    def purge_count(self) -> int:
        """Number of entries removed per eviction sweep (at least one)."""
        return max(1, math.floor(self.max_size * self.purge_ratio))

    def add(self, key: str, entry: CacheEntry) -> List[str]:
        """
        Insert or overwrite an entry, evicting if capacity is exceeded.

        Returns:
            Keys removed by the eviction sweep, if one ran.
        """
        self.cache[key] = entry
        if len(self.cache) > self.max_size:
            return self.evict_oldest()
        return []

    def get(self, key: str, expiry_ms: int, now: int) -> Optional[CacheEntry]:
        """
        Look up a live entry and count the hit.

        An entry older than ``expiry_ms`` is deleted and ``None`` returned.
        """
        entry = self.cache.get(key)
        if entry is None:
            return None

        if entry.is_expired(expiry_ms, now):
            del self.cache[key]
            debug(
                LogRecord(
                    event=LogEvent.CACHE_EVENT.value,
                    message="Expired cache entry removed on read",
                    data={"cache_key": key, "age_ms": now - entry.timestamp},
                )
            )
            return None

        entry.record_hit()
        return entry

    def evict_oldest(self) -> List[str]:
        """Remove the oldest entries by write timestamp.

        ``sorted`` is stable, so entries with equal timestamps leave in
        table order.
        """
        ordered = sorted(self.cache.items(), key=lambda item: item[1].timestamp)
        evicted = [key for key, _ in ordered[: self.purge_count]]
        for key in evicted:
            del self.cache[key]
        self.eviction_count += len(evicted)

        if evicted:
            debug(
                LogRecord(
                    event=LogEvent.CACHE_EVICTION.value,
                    message=f"Evicted {len(evicted)} oldest cache entries",
                    data={
                        "evicted_count": len(evicted),
                        "remaining": len(self.cache),
                        "max_size": self.max_size,
                    },
                )
            )
        return evicted

    def replace(self, items: Iterable[Tuple[str, CacheEntry]]) -> None:
        """Swap the whole table for ``items`` (used when rehydrating)."""
        self.cache = dict(items)

    def clear(self) -> None:
        self.cache.clear()

    def items(self) -> List[Tuple[str, CacheEntry]]:
        return list(self.cache.items())

    def get_size(self) -> int:
        """Get number of cached entries."""
        return len(self.cache)

    def total_hits(self) -> int:
        return sum(entry.hits for entry in self.cache.values())

    def __contains__(self, key: str) -> bool:
        return key in self.cache
