"""Popularity tracking and cache statistics reporting."""

import math
from typing import Any, Dict, Iterable, List, Tuple

from .keys import popularity_key
from .models import PopularQuery
from ...constants import DEFAULT_POPULAR_QUERIES_LIMIT, STATS_POPULAR_QUERIES_LIMIT


def _round_half_up(value: float, places: int = 2) -> float:
    factor = 10**places
    return math.floor(value * factor + 0.5) / factor


class CacheStatistics:
    """Tracks how often each query is written and reports cache statistics.

    The popularity table is keyed on the lowercased raw message, not the
    cache key, and is never evicted. Only ``reset`` empties it.
    """

    def __init__(self):
        self.popular_queries: Dict[str, int] = {}

    def record_query(self, message: str, language: str) -> int:
        """Count one occurrence of ``(language, message)``; return the new count."""
        key = popularity_key(message, language)
        count = self.popular_queries.get(key, 0) + 1
        self.popular_queries[key] = count
        return count

    def get_popular_queries(
        self, limit: int = DEFAULT_POPULAR_QUERIES_LIMIT
    ) -> List[PopularQuery]:
        """Most frequent queries first; ties keep insertion order."""
        if limit <= 0:
            return []
        ranked = sorted(
            self.popular_queries.items(), key=lambda item: item[1], reverse=True
        )
        return [PopularQuery(query=query, hits=hits) for query, hits in ranked[:limit]]

    def get_stats(self, total_entries: int, total_hits: int) -> Dict[str, Any]:
        """Get all statistics as a dictionary."""
        average_hits = _round_half_up(total_hits / total_entries) if total_entries else 0
        return {
            "total_entries": total_entries,
            "total_hits": total_hits,
            "average_hits": average_hits,
            "popular_queries": [
                query.to_dict()
                for query in self.get_popular_queries(STATS_POPULAR_QUERIES_LIMIT)
            ],
        }

    def items(self) -> List[Tuple[str, int]]:
        return list(self.popular_queries.items())

    def replace(self, items: Iterable[Tuple[str, int]]) -> None:
        self.popular_queries = dict(items)

    def reset(self):
        """Reset all statistics."""
        self.popular_queries.clear()
