"""Durable key/value storage port consumed by the response cache."""

from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class StorageBackend(Protocol):
    """Synchronous string key/value store.

    Every method may raise; ``StorageQuotaExceededError`` signals that a
    write was rejected for lack of space, anything else is a generic fault.
    """

    def get_item(self, key: str) -> Optional[str]:
        """Return the stored value, or ``None`` when the key is absent."""
        ...

    def set_item(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""
        ...

    def remove_item(self, key: str) -> None:
        """Delete ``key``; removing an absent key is not an error."""
        ...


def payload_size(value: str) -> int:
    """Size in bytes that ``value`` occupies once UTF-8 encoded."""
    return len(value.encode("utf-8"))
