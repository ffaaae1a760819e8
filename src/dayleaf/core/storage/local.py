"""
Local filesystem key/value store.

Each key maps to one file under ``base_path``. Writes go to a temporary
file first and are moved into place, so a crash never leaves half a value.
"""

import errno
import os
import tempfile
from collections.abc import Iterator
from pathlib import Path

from loguru import logger

from .base import KeyValueStore, StorageError, StoragePermissionError, StorageQuotaError

_SUFFIX = ".json"
_QUOTA_ERRNOS = {errno.ENOSPC, getattr(errno, "EDQUOT", errno.ENOSPC)}


class LocalKeyValueStore(KeyValueStore):
    """Local filesystem key/value store."""

    def __init__(self, base_path: str = "~/.dayleaf/data", **config):
        super().__init__(**config)
        self.base_path = Path(base_path).expanduser().resolve()
        self.base_path.mkdir(parents=True, exist_ok=True)

    def _get_full_path(self, key: str) -> Path:
        """Resolve a storage key to an absolute path under ``base_path``.

        Rejects unsafe keys (absolute paths, traversal, empty keys, and
        backslash-delimited paths) to prevent writes outside ``base_path``.
        """
        raw_key = key.strip()
        if not raw_key:
            raise StoragePermissionError("Storage key cannot be empty.")
        if "\x00" in raw_key:
            raise StoragePermissionError("Storage key cannot contain null bytes.")
        if "\\" in raw_key:
            raise StoragePermissionError("Storage key cannot contain backslashes. Use '/' separators.")

        key_path = Path(raw_key + _SUFFIX)
        if key_path.is_absolute() or raw_key.startswith("~"):
            raise StoragePermissionError(f"Unsafe storage key '{key}': absolute paths are not allowed.")

        full_path = (self.base_path / key_path).resolve()
        try:
            full_path.relative_to(self.base_path)
        except ValueError as e:
            raise StoragePermissionError(f"Unsafe storage key '{key}': path traversal is not allowed.") from e
        return full_path

    def get(self, key: str, default: str | None = None) -> str | None:
        path = self._get_full_path(key)
        if not path.exists():
            return default
        try:
            return path.read_text(encoding="utf-8")
        except PermissionError as e:
            raise StoragePermissionError(f"Cannot read {path}: {e}") from e

    def set(self, key: str, value: str) -> None:
        path = self._get_full_path(key)
        path.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
            os.replace(tmp_path, path)
        except PermissionError as e:
            _discard(tmp_path)
            raise StoragePermissionError(f"Cannot write to {path}: {e}") from e
        except OSError as e:
            _discard(tmp_path)
            if e.errno in _QUOTA_ERRNOS:
                raise StorageQuotaError(f"No space left to write {path}: {e}") from e
            raise StorageError(f"Cannot write to {path}: {e}") from e
        logger.debug(f"Stored {len(value)} chars under '{key}'")

    def delete(self, key: str) -> bool:
        path = self._get_full_path(key)
        if not path.exists():
            return False
        try:
            path.unlink()
        except PermissionError as e:
            raise StoragePermissionError(f"Cannot delete {path}: {e}") from e
        return True

    def keys(self, prefix: str = "") -> Iterator[str]:
        for path in sorted(self.base_path.rglob(f"*{_SUFFIX}")):
            key = path.relative_to(self.base_path).as_posix()[: -len(_SUFFIX)]
            if prefix and not key.startswith(prefix):
                continue
            yield key


def _discard(path: str) -> None:
    try:
        os.unlink(path)
    except FileNotFoundError:
        pass
