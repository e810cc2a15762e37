"""Modular response cache implementation using specialized components."""

import threading
from typing import Any, Callable, Dict, List, Optional

from .keys import generate_cache_key
from .memory_manager import CacheMemoryManager
from .models import CacheEntry, PopularQuery, now_ms
from .persistence import (
    decode_snapshot,
    encode_snapshot,
    rehydrate_entries,
    rehydrate_popularity,
)
from .statistics import CacheStatistics
from ...config import Settings
from ...constants import (
    CACHE_STORAGE_KEY,
    DEFAULT_CACHE_EXPIRY_MS,
    DEFAULT_CACHE_MAX_SIZE,
    DEFAULT_POPULAR_QUERIES_LIMIT,
    SNAPSHOT_MAX_AGE_MS,
    SNAPSHOT_MAX_BYTES,
)
from ...domain.exceptions import (
    SnapshotCorruptError,
    SnapshotFormatError,
    StorageQuotaExceededError,
)
from ...infrastructure.storage.base import StorageBackend, payload_size
from ...logging import debug, info, warning, error, LogRecord, LogEvent


class ResponseCache:
    """
    Bounded, time-expiring response cache with popularity tracking.

    This modular implementation delegates specific responsibilities to:
    - CacheMemoryManager: entry table, lazy expiry and eviction sweeps
    - CacheStatistics: popularity table and reporting
    - persistence: snapshot encoding for the injected storage backend

    Both tables are guarded by one re-entrant lock. No public method raises;
    storage and snapshot faults are logged and the call degrades to a no-op.
    """

    def __init__(
        self,
        max_cache_size: int = DEFAULT_CACHE_MAX_SIZE,
        cache_expiry_ms: int = DEFAULT_CACHE_EXPIRY_MS,
        storage: Optional[StorageBackend] = None,
        storage_key: str = CACHE_STORAGE_KEY,
        clock: Callable[[], int] = now_ms,
    ):
        """Initialize response cache with modular components."""
        self.cache_expiry_ms = cache_expiry_ms
        self._storage = storage
        self._storage_key = storage_key
        self._clock = clock

        self._memory_manager = CacheMemoryManager(max_size=max_cache_size)
        self._statistics = CacheStatistics()
        self._lock = threading.RLock()

    @classmethod
    def from_settings(
        cls, settings: Settings, storage: Optional[StorageBackend] = None
    ) -> "ResponseCache":
        return cls(
            max_cache_size=settings.cache_max_size,
            cache_expiry_ms=settings.cache_expiry_ms,
            storage=storage,
            storage_key=settings.cache_storage_key,
        )

    @property
    def max_cache_size(self) -> int:
        return self._memory_manager.max_size

    @property
    def storage(self) -> Optional[StorageBackend]:
        return self._storage

    @staticmethod
    def generate_cache_key(message: str, language: str) -> str:
        return generate_cache_key(message, language)

    def set_cache(self, message: Optional[str], language: str, response: Optional[str]) -> None:
        """Store ``response`` for ``(message, language)``; empty input is ignored."""
        if not message or not response:
            return

        cache_key = generate_cache_key(message, language)
        entry = CacheEntry(response=response, timestamp=self._clock(), hits=1)

        with self._lock:
            evicted = self._memory_manager.add(cache_key, entry)
            self._statistics.record_query(message, language)

        debug(
            LogRecord(
                event=LogEvent.CACHE_EVENT.value,
                message="Response cached",
                data={
                    "cache_key": cache_key,
                    "language": language,
                    "evicted_count": len(evicted),
                },
            )
        )

    def get_cache(self, message: Optional[str], language: str) -> Optional[str]:
        """
        Get cached response for a query.

        Returns:
            The cached response, or ``None`` on a miss or expired entry.
        """
        if not message:
            return None

        cache_key = generate_cache_key(message, language)
        with self._lock:
            entry = self._memory_manager.get(
                cache_key, self.cache_expiry_ms, self._clock()
            )
            if entry is None:
                return None
            response, hits = entry.response, entry.hits

        debug(
            LogRecord(
                event=LogEvent.CACHE_EVENT.value,
                message="Cache hit",
                data={"cache_key": cache_key, "hits": hits},
            )
        )
        return response

    def cleanup_cache(self) -> List[str]:
        """Run one eviction sweep; returns the evicted keys."""
        with self._lock:
            return self._memory_manager.evict_oldest()

    def get_popular_queries(
        self, limit: int = DEFAULT_POPULAR_QUERIES_LIMIT
    ) -> List[PopularQuery]:
        with self._lock:
            return self._statistics.get_popular_queries(limit)

    def get_cache_stats(self) -> Dict[str, Any]:
        """Get entry count, hit totals and the top popular queries."""
        with self._lock:
            return self._statistics.get_stats(
                total_entries=self._memory_manager.get_size(),
                total_hits=self._memory_manager.total_hits(),
            )

    def clear_cache(self) -> None:
        """Clear all cache entries and the popularity table."""
        with self._lock:
            self._memory_manager.clear()
            self._statistics.reset()

        info(
            LogRecord(
                event=LogEvent.CACHE_EVENT.value,
                message="Cache cleared",
                data={},
            )
        )

    def __len__(self) -> int:
        with self._lock:
            return self._memory_manager.get_size()

    def _serialize_snapshot(self) -> str:
        with self._lock:
            return encode_snapshot(
                self._memory_manager.items(),
                self._statistics.items(),
                self._clock(),
            )

    def save_to_storage(self) -> bool:
        """
        Write a snapshot of both tables to the storage backend.

        An oversized snapshot triggers one eviction sweep and is written
        after that single retry whatever its size. A quota rejection clears
        the in-memory cache.

        Returns:
            True if a snapshot was written, False otherwise.
        """
        if self._storage is None:
            return False

        try:
            payload = self._serialize_snapshot()
            size = payload_size(payload)
            if size > SNAPSHOT_MAX_BYTES:
                warning(
                    LogRecord(
                        event=LogEvent.STORAGE_EVENT.value,
                        message="Snapshot exceeds size limit, evicting before save",
                        data={"size_bytes": size, "max_bytes": SNAPSHOT_MAX_BYTES},
                    )
                )
                self.cleanup_cache()
                payload = self._serialize_snapshot()

            self._storage.set_item(self._storage_key, payload)
        except StorageQuotaExceededError as e:
            warning(
                LogRecord(
                    event=LogEvent.STORAGE_EVENT.value,
                    message="Storage quota exceeded, clearing in-memory cache",
                    data={"size_bytes": e.size_bytes, "quota_bytes": e.quota_bytes},
                ),
                exc=e,
            )
            self.clear_cache()
            return False
        except Exception as e:
            error(
                LogRecord(
                    event=LogEvent.STORAGE_EVENT.value,
                    message="Failed to save cache snapshot",
                    data={"storage_key": self._storage_key},
                ),
                exc=e,
            )
            return False

        info(
            LogRecord(
                event=LogEvent.SNAPSHOT_SAVED.value,
                message="Cache snapshot saved",
                data={"size_bytes": payload_size(payload), "entries": len(self)},
            )
        )
        return True

    def load_from_storage(self) -> bool:
        """
        Replace both tables with the persisted snapshot, if usable.

        Missing, malformed and stale snapshots leave the tables untouched.
        Stale and undecodable snapshots are also removed from storage.

        Returns:
            True if the tables were rehydrated, False otherwise.
        """
        if self._storage is None:
            return False

        try:
            payload = self._storage.get_item(self._storage_key)
        except Exception as e:
            error(
                LogRecord(
                    event=LogEvent.STORAGE_EVENT.value,
                    message="Failed to read cache snapshot",
                    data={"storage_key": self._storage_key},
                ),
                exc=e,
            )
            self._remove_snapshot()
            return False

        if not payload:
            return False

        try:
            snapshot = decode_snapshot(payload)
        except SnapshotCorruptError as e:
            error(
                LogRecord(
                    event=LogEvent.SNAPSHOT_DISCARDED.value,
                    message="Corrupt cache snapshot, removing it",
                    data=e.details,
                ),
                exc=e,
            )
            self._remove_snapshot()
            return False
        except SnapshotFormatError as e:
            warning(
                LogRecord(
                    event=LogEvent.SNAPSHOT_DISCARDED.value,
                    message="Ignoring cache snapshot with invalid shape",
                    data={"field": e.field, **e.details},
                ),
                exc=e,
            )
            return False

        age_ms = self._clock() - snapshot.timestamp
        if age_ms > SNAPSHOT_MAX_AGE_MS:
            info(
                LogRecord(
                    event=LogEvent.SNAPSHOT_DISCARDED.value,
                    message="Cache snapshot is stale, removing it",
                    data={"age_ms": age_ms, "max_age_ms": SNAPSHOT_MAX_AGE_MS},
                )
            )
            self._remove_snapshot()
            return False

        entries = rehydrate_entries(snapshot)
        popular_queries = rehydrate_popularity(snapshot)
        with self._lock:
            self._memory_manager.replace(entries)
            self._statistics.replace(popular_queries)
            while self._memory_manager.get_size() > self._memory_manager.max_size:
                self._memory_manager.evict_oldest()
            loaded = self._memory_manager.get_size()

        info(
            LogRecord(
                event=LogEvent.SNAPSHOT_LOADED.value,
                message="Cache snapshot loaded",
                data={"entries": loaded, "popular_queries": len(popular_queries)},
            )
        )
        return True

    def _remove_snapshot(self) -> None:
        try:
            self._storage.remove_item(self._storage_key)  # type: ignore[union-attr]
        except Exception as e:
            warning(
                LogRecord(
                    event=LogEvent.STORAGE_EVENT.value,
                    message="Failed to remove cache snapshot",
                    data={"storage_key": self._storage_key},
                ),
                exc=e,
            )
