"""Tests for the snapshot storage adapters."""

import errno
from pathlib import Path
from unittest.mock import patch

import pytest

from aitap.config import Settings
from aitap.domain.exceptions import StorageError, StorageQuotaExceededError
from aitap.infrastructure.storage import (
    FileStorage,
    InMemoryStorage,
    StorageBackend,
    build_storage,
)


class TestInMemoryStorage:
    def test_set_get_remove(self) -> None:
        storage = InMemoryStorage()
        assert storage.get_item("k") is None
        storage.set_item("k", "v")
        assert storage.get_item("k") == "v"
        storage.remove_item("k")
        assert storage.get_item("k") is None

    def test_remove_missing_key(self) -> None:
        InMemoryStorage().remove_item("missing")

    def test_quota(self) -> None:
        storage = InMemoryStorage(quota_bytes=4)
        storage.set_item("a", "12")
        with pytest.raises(StorageQuotaExceededError) as exc_info:
            storage.set_item("b", "345")
        assert exc_info.value.size_bytes == 5
        assert exc_info.value.quota_bytes == 4
        assert storage.get_item("b") is None

    def test_quota_counts_replacement_once(self) -> None:
        storage = InMemoryStorage(quota_bytes=4)
        storage.set_item("a", "1234")
        storage.set_item("a", "abcd")
        assert storage.get_item("a") == "abcd"

    def test_quota_uses_utf8_size(self) -> None:
        storage = InMemoryStorage(quota_bytes=4)
        with pytest.raises(StorageQuotaExceededError):
            storage.set_item("a", "ддд")

    def test_satisfies_protocol(self) -> None:
        assert isinstance(InMemoryStorage(), StorageBackend)


class TestFileStorage:
    def test_set_get_remove(self, tmp_path: Path) -> None:
        storage = FileStorage(tmp_path / "cache")
        assert storage.get_item("ai-tap-cache") is None

        storage.set_item("ai-tap-cache", '{"timestamp": 1}')

        assert (tmp_path / "cache" / "ai-tap-cache.json").read_text() == '{"timestamp": 1}'
        assert storage.get_item("ai-tap-cache") == '{"timestamp": 1}'

        storage.remove_item("ai-tap-cache")
        assert storage.get_item("ai-tap-cache") is None
        storage.remove_item("ai-tap-cache")

    def test_keys_are_escaped(self, tmp_path: Path) -> None:
        storage = FileStorage(tmp_path)
        storage.set_item("../escape", "v")
        assert storage.get_item("../escape") == "v"
        assert not (tmp_path.parent / "escape.json").exists()

    def test_no_temp_files_left(self, tmp_path: Path) -> None:
        storage = FileStorage(tmp_path)
        storage.set_item("k", "v1")
        storage.set_item("k", "v2")
        assert sorted(p.name for p in tmp_path.iterdir()) == ["k.json"]

    def test_quota(self, tmp_path: Path) -> None:
        storage = FileStorage(tmp_path, quota_bytes=5)
        storage.set_item("a", "123")
        storage.set_item("a", "12345")
        with pytest.raises(StorageQuotaExceededError):
            storage.set_item("b", "1")

    def test_disk_full_maps_to_quota_error(self, tmp_path: Path) -> None:
        storage = FileStorage(tmp_path)
        with patch(
            "aitap.infrastructure.storage.file.os.replace",
            side_effect=OSError(errno.ENOSPC, "No space left on device"),
        ):
            with pytest.raises(StorageQuotaExceededError):
                storage.set_item("k", "v")
        assert list(tmp_path.iterdir()) == []

    def test_other_write_errors(self, tmp_path: Path) -> None:
        storage = FileStorage(tmp_path)
        with patch(
            "aitap.infrastructure.storage.file.os.replace",
            side_effect=OSError(errno.EACCES, "Permission denied"),
        ):
            with pytest.raises(StorageError) as exc_info:
                storage.set_item("k", "v")
        assert not isinstance(exc_info.value, StorageQuotaExceededError)
        assert exc_info.value.key == "k"

    def test_unreadable_file(self, tmp_path: Path) -> None:
        (tmp_path / "k.json").write_bytes(b"\xff\xfe\xfa")
        with pytest.raises(StorageError):
            FileStorage(tmp_path).get_item("k")


class TestBuildStorage:
    def test_in_memory_by_default(self) -> None:
        storage = build_storage(Settings(cache_storage_dir=None))
        assert isinstance(storage, InMemoryStorage)

    def test_file_storage_when_directory_set(self, tmp_path: Path) -> None:
        storage = build_storage(
            Settings(cache_storage_dir=str(tmp_path), cache_storage_quota_bytes=1024)
        )
        assert isinstance(storage, FileStorage)
        assert storage.directory == tmp_path
        assert storage.quota_bytes == 1024
