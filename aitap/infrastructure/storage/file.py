"""Filesystem storage adapter: one UTF-8 file per key inside a directory."""

import errno
import os
import tempfile
from pathlib import Path
from typing import Optional, Union
from urllib.parse import quote

from .base import payload_size
from ...domain.exceptions import StorageError, StorageQuotaExceededError

_NO_SPACE_ERRNOS = {errno.ENOSPC, getattr(errno, "EDQUOT", errno.ENOSPC)}


class FileStorage:
    """
    :class:`StorageBackend` persisting each key to ``<directory>/<key>.json``.

    Writes go to a temporary file that is atomically renamed over the
    target, so a crash never leaves a half-written snapshot behind. When
    ``quota_bytes`` is set, the total size of all stored files is capped.
    """

    SUFFIX = ".json"

    def __init__(self, directory: Union[str, Path], quota_bytes: Optional[int] = None):
        self.directory = Path(directory)
        self.quota_bytes = quota_bytes

    def _path_for(self, key: str) -> Path:
        return self.directory / f"{quote(key, safe='')}{self.SUFFIX}"

    def _used_bytes(self, excluding: Path) -> int:
        if not self.directory.is_dir():
            return 0
        return sum(
            path.stat().st_size
            for path in self.directory.glob(f"*{self.SUFFIX}")
            if path != excluding
        )

    def get_item(self, key: str) -> Optional[str]:
        path = self._path_for(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            raise StorageError(f"Failed to read {path}: {e}", key=key) from e

    def set_item(self, key: str, value: str) -> None:
        path = self._path_for(key)
        size = payload_size(value)
        try:
            if self.quota_bytes is not None:
                required = self._used_bytes(excluding=path) + size
                if required > self.quota_bytes:
                    raise StorageQuotaExceededError(
                        "Storage quota exceeded",
                        key=key,
                        size_bytes=required,
                        quota_bytes=self.quota_bytes,
                    )

            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.directory, prefix=".tmp-", suffix=".part"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(value)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            if e.errno in _NO_SPACE_ERRNOS:
                raise StorageQuotaExceededError(
                    f"No space left writing {path}",
                    key=key,
                    size_bytes=size,
                    quota_bytes=self.quota_bytes or 0,
                ) from e
            raise StorageError(f"Failed to write {path}: {e}", key=key) from e

    def remove_item(self, key: str) -> None:
        path = self._path_for(key)
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageError(f"Failed to remove {path}: {e}", key=key) from e
