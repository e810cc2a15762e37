"""Snapshot encoding and decoding for durable cache persistence.

A snapshot is a JSON object::

    {"cache": [[key, {"response": ..., "timestamp": ..., "hits": ...}], ...],
     "popularQueries": [[query_key, count], ...],
     "timestamp": <ms since epoch>}

It is always written and read wholesale.
"""

import json
from typing import Any, Iterable, List, Tuple, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictFloat,
    StrictInt,
    StrictStr,
    TypeAdapter,
    ValidationError,
)

from .models import CacheEntry
from ...domain.exceptions import SnapshotCorruptError, SnapshotFormatError
from ...logging import warning, LogRecord, LogEvent


class PersistedEntry(BaseModel):
    """Wire form of a :class:`CacheEntry`."""

    model_config = ConfigDict(extra="ignore")

    response: StrictStr
    timestamp: StrictInt
    hits: StrictInt = Field(default=1, ge=1)

    def to_entry(self) -> CacheEntry:
        return CacheEntry(response=self.response, timestamp=self.timestamp, hits=self.hits)


class CacheSnapshot(BaseModel):
    """Top-level snapshot shape.

    Only the container shape is validated here; list items are checked
    separately so one malformed table does not discard the other.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    cache: List[Any] = Field(default_factory=list)
    popular_queries: List[Any] = Field(default_factory=list, alias="popularQueries")
    timestamp: Union[StrictInt, StrictFloat]


_ENTRY_LIST = TypeAdapter(List[Tuple[StrictStr, PersistedEntry]])
_POPULARITY_LIST = TypeAdapter(List[Tuple[StrictStr, StrictInt]])


def encode_snapshot(
    entries: Iterable[Tuple[str, CacheEntry]],
    popular_queries: Iterable[Tuple[str, int]],
    timestamp: int,
) -> str:
    """Serialize both tables into a snapshot JSON string.

    Non-ASCII text is escaped, so unpaired surrogates survive as ``\\udXXX``.
    """
    return json.dumps(
        {
            "cache": [[key, entry.to_dict()] for key, entry in entries],
            "popularQueries": [[query, count] for query, count in popular_queries],
            "timestamp": timestamp,
        },
        separators=(",", ":"),
    )


def decode_snapshot(payload: str) -> CacheSnapshot:
    """
    Parse a snapshot payload.

    Raises:
        SnapshotCorruptError: The payload is not valid JSON.
        SnapshotFormatError: The JSON does not have the snapshot shape.
    """
    try:
        raw = json.loads(payload)
    except (TypeError, ValueError) as e:
        raise SnapshotCorruptError(
            f"Snapshot is not valid JSON: {e}", details={"length": len(payload)}
        ) from e

    if not isinstance(raw, dict):
        raise SnapshotFormatError(
            "Snapshot must be a JSON object",
            details={"type": type(raw).__name__},
        )

    try:
        return CacheSnapshot.model_validate(raw)
    except ValidationError as e:
        fields = sorted({str(err["loc"][0]) for err in e.errors() if err["loc"]})
        raise SnapshotFormatError(
            "Snapshot has an invalid shape",
            field=fields[0] if fields else None,
            details={"fields": fields},
        ) from e


def rehydrate_entries(snapshot: CacheSnapshot) -> List[Tuple[str, CacheEntry]]:
    """Entry table rows from a snapshot, or ``[]`` if any row is malformed."""
    try:
        rows = _ENTRY_LIST.validate_python(snapshot.cache)
    except ValidationError as e:
        warning(
            LogRecord(
                event=LogEvent.SNAPSHOT_LOADED.value,
                message="Malformed cache list in snapshot, starting with empty cache",
                data={"error_count": e.error_count()},
            )
        )
        return []
    return [(key, persisted.to_entry()) for key, persisted in rows]


def rehydrate_popularity(snapshot: CacheSnapshot) -> List[Tuple[str, int]]:
    """Popularity rows from a snapshot, or ``[]`` if any row is malformed."""
    try:
        return list(_POPULARITY_LIST.validate_python(snapshot.popular_queries))
    except ValidationError as e:
        warning(
            LogRecord(
                event=LogEvent.SNAPSHOT_LOADED.value,
                message="Malformed popularQueries list in snapshot, starting empty",
                data={"error_count": e.error_count()},
            )
        )
        return []
