"""Storage adapters for cache snapshots."""

from .base import StorageBackend
from .file import FileStorage
from .memory import InMemoryStorage
from ...config import Settings


def build_storage(settings: Settings) -> StorageBackend:
    """File storage when a directory is configured, in-memory otherwise."""
    if settings.cache_storage_dir:
        return FileStorage(
            settings.cache_storage_dir, quota_bytes=settings.cache_storage_quota_bytes
        )
    return InMemoryStorage(quota_bytes=settings.cache_storage_quota_bytes)


__all__ = ["StorageBackend", "FileStorage", "InMemoryStorage", "build_storage"]
