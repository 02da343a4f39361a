"""Storage backends for the persistent store.

Two implementations of the ``StorageBackend`` protocol:

- ``MemoryStorageBackend``: a process-wide dictionary, lost on exit.
- ``FileStorageBackend``: one file per key under a cache directory, named
  by the SHA-256 of the key. Writes go to a temporary file that replaces
  the target, so readers never observe a partial value.

Both enforce an optional byte ceiling the way browser storage does: a write
that would exceed it is refused with ``False`` rather than raising.
"""

from __future__ import annotations

import hashlib
import logging
import os
import tempfile
from pathlib import Path

from foliosync.shared.constants import Cache

logger = logging.getLogger(__name__)


def _size_of(value: str) -> int:
    return len(value.encode("utf-8"))


class MemoryStorageBackend:
    """In-memory storage backend.

    Args:
        max_bytes: Optional ceiling on the total size of stored values.
    """

    def __init__(self, max_bytes: int | None = None) -> None:
        self.max_bytes = max_bytes
        self._values: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str) -> bool:
        if self.max_bytes is not None:
            others = sum(_size_of(v) for k, v in self._values.items() if k != key)
            if others + _size_of(value) > self.max_bytes:
                logger.debug("Memory storage quota exceeded for key '%s'", key)
                return False
        self._values[key] = value
        return True

    def remove(self, key: str) -> None:
        self._values.pop(key, None)

    def keys(self) -> list[str]:
        """Stored keys, in insertion order."""
        return list(self._values)

    def __len__(self) -> int:
        return len(self._values)


class FileStorageBackend:
    """File-based storage backend.

    Args:
        directory: Directory holding one file per key; created if missing.
        max_bytes: Optional ceiling on the total size of the directory's entries.

    Example:
        >>> backend = FileStorageBackend(Path(".foliosync/cache"))
        >>> backend.set("foliosync:skills", '{"data": [], "timestamp": 0}')
        True
    """

    def __init__(self, directory: Path | str, max_bytes: int | None = Cache.DEFAULT_MAX_BYTES) -> None:
        self.directory = Path(directory)
        self.max_bytes = max_bytes
        self.directory.mkdir(parents=True, exist_ok=True)
        logger.debug("Initialized FileStorageBackend in %s", self.directory)

    def path_for(self, key: str) -> Path:
        """Return the file path that stores ``key``."""
        key_hash = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return self.directory / f"{key_hash}{Cache.FILE_SUFFIX}"

    def get(self, key: str) -> str | None:
        path = self.path_for(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def set(self, key: str, value: str) -> bool:
        path = self.path_for(key)
        encoded = value.encode("utf-8")

        if self.max_bytes is not None and self._used_bytes(exclude=path) + len(encoded) > self.max_bytes:
            logger.debug("File storage quota exceeded for key '%s'", key)
            return False

        tmp_name: str | None = None
        try:
            with tempfile.NamedTemporaryFile(
                "wb",
                dir=self.directory,
                prefix=".tmp-",
                suffix=Cache.FILE_SUFFIX,
                delete=False,
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(encoded)
            os.replace(tmp_name, path)
        except OSError as e:
            logger.debug("Failed to write %s: %s", path, e)
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
            return False
        return True

    def remove(self, key: str) -> None:
        self.path_for(key).unlink(missing_ok=True)

    def _used_bytes(self, exclude: Path) -> int:
        total = 0
        for entry in self.directory.glob(f"*{Cache.FILE_SUFFIX}"):
            if entry == exclude or entry.name.startswith(".tmp-"):
                continue
            try:
                total += entry.stat().st_size
            except FileNotFoundError:
                continue
        return total


__all__ = ["FileStorageBackend", "MemoryStorageBackend"]
