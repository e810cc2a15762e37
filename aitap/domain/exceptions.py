"""Custom exception hierarchy for the AI-TAP cache.

Storage adapters and the snapshot codec raise these; the response cache
catches them at its persistence boundary so callers never see them.
"""

from typing import Optional, Dict, Any


class AITapException(Exception):
    """Base exception for all AI-TAP-specific exceptions."""

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class CacheError(AITapException):
    """Base exception for cache-related errors."""

    pass


class SnapshotFormatError(CacheError):
    """Raised when a persisted snapshot does not have the expected shape."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.field = field


class SnapshotCorruptError(CacheError):
    """Raised when a persisted snapshot cannot be decoded at all."""

    pass


class StorageError(AITapException):
    """Raised when the durable storage surface fails."""

    def __init__(
        self,
        message: str,
        key: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.key = key


class StorageQuotaExceededError(StorageError):
    """Raised when a write would exceed the storage quota."""

    def __init__(
        self,
        message: str,
        key: Optional[str] = None,
        size_bytes: int = 0,
        quota_bytes: int = 0,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, key, details)
        self.size_bytes = size_bytes
        self.quota_bytes = quota_bytes
