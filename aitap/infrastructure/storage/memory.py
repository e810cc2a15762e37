"""In-process storage adapter, used in tests and when no directory is configured."""

from typing import Dict, Optional

from .base import payload_size
from ...domain.exceptions import StorageQuotaExceededError


class InMemoryStorage:
    """Dictionary-backed :class:`StorageBackend` with an optional byte quota."""

    def __init__(self, quota_bytes: Optional[int] = None):
        self.quota_bytes = quota_bytes
        self._items: Dict[str, str] = {}

    def _used_bytes(self, excluding: Optional[str] = None) -> int:
        return sum(
            payload_size(value)
            for key, value in self._items.items()
            if key != excluding
        )

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        if self.quota_bytes is not None:
            required = self._used_bytes(excluding=key) + payload_size(value)
            if required > self.quota_bytes:
                raise StorageQuotaExceededError(
                    "Storage quota exceeded",
                    key=key,
                    size_bytes=required,
                    quota_bytes=self.quota_bytes,
                )
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def __len__(self) -> int:
        return len(self._items)
