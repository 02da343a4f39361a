"""Persistent store for collection cache entries.

Wraps a ``StorageBackend`` with typed ``CacheEntry`` reads and writes. The
cache is an optimization, never a correctness requirement, so no method of
this class raises on storage trouble:

- unreadable or unparsable entries read as absent and are purged;
- failed writes are logged and reported through the return value.
"""

from __future__ import annotations

import logging
from typing import Callable

from pydantic import ValidationError

from foliosync.shared.constants import Cache
from foliosync.shared.errors import (
    CacheCorruptError,
    ErrorCode,
    ErrorContext,
    StorageWriteError,
)
from foliosync.shared.logging import log_operation_error, log_operation_success
from foliosync.shared.models import CacheEntry, Record, RecordT, is_temporary_id, now_ms
from foliosync.shared.protocols import StorageBackend

logger = logging.getLogger(__name__)


class PersistentStore:
    """Durable, synchronous storage of one CacheEntry per resource key.

    Args:
        backend: Storage backend holding serialized entries.
        namespace: Prefix of every storage key.
        clock: Millisecond clock, injectable for tests.

    Example:
        >>> store = PersistentStore(MemoryStorageBackend())
        >>> store.write("skills", CacheEntry[Skill](data=[], timestamp=now_ms()))
        True
        >>> store.read("skills", Skill).data
        []
    """

    def __init__(
        self,
        backend: StorageBackend,
        *,
        namespace: str = Cache.DEFAULT_NAMESPACE,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.backend = backend
        self.namespace = namespace
        self._clock = clock

    def storage_key(self, key: str) -> str:
        """Namespaced key under which ``key`` is stored."""
        return f"{self.namespace}{Cache.KEY_SEPARATOR}{key}"

    def read(self, key: str, record_type: type[RecordT] = Record) -> CacheEntry[RecordT] | None:  # type: ignore[assignment]
        """Return the stored entry for ``key`` or None.

        A corrupt entry (undecodable bytes, bad JSON, failed validation, or a
        TemporaryId that should never have been persisted) is removed and
        reads as absent.
        """
        storage_key = self.storage_key(key)
        try:
            raw = self.backend.get(storage_key)
        except UnicodeDecodeError as e:
            self._handle_corrupt_entry(key, storage_key, str(e), e)
            return None
        except OSError as e:
            error = CacheCorruptError(
                code=ErrorCode.CACHE_READ_FAILED,
                message=f"Failed to read cache entry for '{key}': {e!s}",
                context=ErrorContext(resource=key, operation="cache_read"),
                original_error=e,
            )
            log_operation_error(logger, error, level=logging.WARNING)
            self._purge(storage_key)
            return None

        if raw is None:
            logger.debug("No cache entry for '%s'", key)
            return None

        try:
            entry = CacheEntry[record_type].model_validate_json(raw)  # type: ignore[valid-type]
        except (ValidationError, ValueError) as e:
            self._handle_corrupt_entry(key, storage_key, str(e), e)
            return None

        temporary = [record.id for record in entry.data if is_temporary_id(record.id)]
        if temporary:
            self._handle_corrupt_entry(key, storage_key, f"{len(temporary)} temporary id(s) persisted", None)
            return None

        logger.debug("Cache hit for '%s' (%d records, age %d ms)", key, len(entry.data), entry.age_ms(self._clock()))
        return entry

    def write(self, key: str, entry: CacheEntry[RecordT]) -> bool:
        """Persist ``entry`` under ``key``.

        Data and timestamp are serialized into a single value, so a reader
        sees either the previous entry or this one. Records still carrying a
        TemporaryId are dropped.

        Returns:
            True if the entry was stored, False if the backend refused it.
        """
        context = ErrorContext(
            resource=key,
            operation="cache_write",
            additional_data={"records": len(entry.data), "timestamp": entry.timestamp},
        )

        if any(is_temporary_id(record.id) for record in entry.data):
            logger.warning("Dropping temporary records before persisting '%s'", key)
            entry = entry.model_copy(
                update={"data": [r for r in entry.data if not is_temporary_id(r.id)]},
            )

        try:
            payload = entry.model_dump_json(by_alias=True)
            stored = self.backend.set(self.storage_key(key), payload)
        except (OSError, ValueError) as e:
            self._log_write_failure(key, context, e)
            return False

        if not stored:
            self._log_write_failure(key, context, None)
            return False

        log_operation_success(
            logger=logger,
            operation="cache_write",
            duration_ms=0,
            context=context,
        )
        return True

    def is_fresh(self, entry: CacheEntry[RecordT], ttl_ms: int, now: int | None = None) -> bool:
        """Whether ``entry`` was confirmed less than ``ttl_ms`` ago."""
        current = self._clock() if now is None else now
        return current - entry.timestamp < ttl_ms

    def clear(self, key: str) -> None:
        """Remove the entry for ``key``."""
        self._purge(self.storage_key(key))
        logger.info("Cleared cache entry for '%s'", key)

    def _purge(self, storage_key: str) -> None:
        try:
            self.backend.remove(storage_key)
        except OSError:
            logger.exception("Failed to remove cache entry %s", storage_key)

    def _handle_corrupt_entry(
        self,
        key: str,
        storage_key: str,
        reason: str,
        cause: Exception | None,
    ) -> None:
        error = CacheCorruptError(
            code=ErrorCode.CACHE_CORRUPTED,
            message=f"Cache entry for '{key}' is corrupted, purging it",
            context=ErrorContext(
                resource=key,
                operation="cache_read",
                additional_data={"reason": reason[:200]},
            ),
            original_error=cause,
        )
        log_operation_error(logger, error, level=logging.WARNING)
        self._purge(storage_key)

    def _log_write_failure(self, key: str, context: ErrorContext, cause: Exception | None) -> None:
        code = ErrorCode.CACHE_WRITE_FAILED if cause else ErrorCode.STORAGE_QUOTA_EXCEEDED
        error = StorageWriteError(
            code=code,
            message=f"Failed to persist cache entry for '{key}'",
            context=context,
            original_error=cause,
        )
        log_operation_error(logger, error, level=logging.WARNING)


__all__ = ["PersistentStore"]
