"""Data models for the cache module."""

import time
from dataclasses import dataclass
from typing import Any, Dict


def now_ms() -> int:
    """Current wall-clock time in milliseconds since the epoch."""
    return int(time.time() * 1000)


@dataclass
class CacheEntry:
    """Represents a cached response with metadata."""

    response: str
    timestamp: int
    hits: int = 1

    def is_expired(self, expiry_ms: int, now: int) -> bool:
        """Check if this entry is older than ``expiry_ms``."""
        return now - self.timestamp > expiry_ms

    def record_hit(self) -> None:
        self.hits += 1

    def to_dict(self) -> Dict[str, Any]:
        return {"response": self.response, "timestamp": self.timestamp, "hits": self.hits}


@dataclass(frozen=True)
class PopularQuery:
    """A popularity table row as reported to callers."""

    query: str
    hits: int

    def to_dict(self) -> Dict[str, Any]:
        return {"query": self.query, "hits": self.hits}
