"""Tests for AI-TAP domain exceptions."""

from aitap.domain.exceptions import (
    AITapException,
    CacheError,
    SnapshotCorruptError,
    SnapshotFormatError,
    StorageError,
    StorageQuotaExceededError,
)


class TestAITapException:
    """Test base AITapException."""

    def test_basic_exception(self):
        """Test basic exception with message only."""
        exc = AITapException("Test error")
        assert str(exc) == "Test error"
        assert exc.message == "Test error"
        assert exc.details == {}

    def test_exception_with_details(self):
        exc = AITapException("Test error", details={"key": "value"})
        assert exc.details == {"key": "value"}


class TestSnapshotErrors:
    def test_hierarchy(self):
        assert issubclass(SnapshotFormatError, CacheError)
        assert issubclass(SnapshotCorruptError, CacheError)
        assert not issubclass(SnapshotCorruptError, SnapshotFormatError)

    def test_format_error_field(self):
        exc = SnapshotFormatError("bad", field="timestamp")
        assert exc.field == "timestamp"
        assert exc.message == "bad"


class TestStorageErrors:
    def test_storage_error_key(self):
        exc = StorageError("failed", key="ai-tap-cache")
        assert exc.key == "ai-tap-cache"
        assert isinstance(exc, AITapException)

    def test_quota_error(self):
        exc = StorageQuotaExceededError(
            "full", key="k", size_bytes=10, quota_bytes=5, details={"x": 1}
        )
        assert isinstance(exc, StorageError)
        assert exc.size_bytes == 10
        assert exc.quota_bytes == 5
        assert exc.key == "k"
        assert exc.details == {"x": 1}
