"""Cache module for response caching with expiry, eviction and persistence."""

from .autosave import CacheAutoSaver
from .keys import generate_cache_key
from .models import CacheEntry, PopularQuery
from .response_cache import ResponseCache
from .statistics import CacheStatistics

__all__ = [
    "CacheAutoSaver",
    "CacheEntry",
    "CacheStatistics",
    "PopularQuery",
    "ResponseCache",
    "generate_cache_key",
]
