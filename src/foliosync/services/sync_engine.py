"""Stale-while-revalidate synchronization of one collection.

The engine reads the persisted entry synchronously on mount, exposes it at
once, and revalidates in the background when the entry is stale or absent.
States:

    EMPTY -> LOADING -> READY                        (no cache)
    EMPTY -> CACHED_FRESH                            (cache within TTL)
    EMPTY -> CACHED_STALE -> VALIDATING -> READY     (expired cache)

A failed revalidation keeps the last known-good collection and attaches the
error. A superseded revalidation changes nothing.
"""

from __future__ import annotations

import asyncio
import logging
import time
from enum import Enum
from typing import Callable, Generic

from foliosync.services.collection_state import CollectionState
from foliosync.services.persistent_store import PersistentStore
from foliosync.services.request_coordinator import RequestCoordinator
from foliosync.shared.constants import Cache
from foliosync.shared.errors import FetchFailedError, RequestCancelledError
from foliosync.shared.logging import log_operation_start, log_operation_success
from foliosync.shared.models import CacheEntry, Record, RecordT, now_ms

logger = logging.getLogger(__name__)


class SyncState(Enum):
    """Synchronization states of a collection."""

    EMPTY = "empty"
    LOADING = "loading"
    CACHED_FRESH = "cached_fresh"
    CACHED_STALE = "cached_stale"
    VALIDATING = "validating"
    READY = "ready"


class SyncEngine(Generic[RecordT]):
    """Instant read, eventually fresh view of one collection resource.

    Args:
        resource: Collection resource name, also the store key.
        store: Persistent store shared across engines.
        coordinator: Request coordinator issuing the fetches.
        record_type: Model of the collection's records.
        ttl_ms: Freshness window of the persisted entry.
        clock: Millisecond clock, injectable for tests.
    """

    def __init__(
        self,
        resource: str,
        store: PersistentStore,
        coordinator: RequestCoordinator[RecordT],
        record_type: type[RecordT] = Record,  # type: ignore[assignment]
        *,
        ttl_ms: int = Cache.DEFAULT_TTL_MS,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.resource = resource
        self.store = store
        self.coordinator = coordinator
        self.record_type = record_type
        self.ttl_ms = ttl_ms
        self._clock = clock

        self.collection: CollectionState[RecordT] = CollectionState()
        self._state = SyncState.EMPTY
        self._error: FetchFailedError | None = None
        self._last_fetched_at: int | None = None
        self._has_data = False
        self._mounted = False
        self._tasks: set[asyncio.Task[None]] = set()
        self._listeners: list[Callable[[], None]] = []
        self.collection.subscribe(self._notify)

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def data(self) -> list[RecordT]:
        """Currently visible collection."""
        return self.collection.records

    @property
    def is_loading(self) -> bool:
        """True only while the first load runs without any cached data."""
        return self._state is SyncState.LOADING

    @property
    def is_revalidating(self) -> bool:
        return self._state is SyncState.VALIDATING

    @property
    def error(self) -> FetchFailedError | None:
        """Last fetch failure, cleared by the next successful fetch."""
        return self._error

    @property
    def last_fetched_at(self) -> int | None:
        """Timestamp (ms) of the data last confirmed by a fetch."""
        return self._last_fetched_at

    @property
    def mounted(self) -> bool:
        return self._mounted

    def mount(self) -> None:
        """Expose the persisted collection and revalidate it if needed.

        Synchronous: cached data is visible when this returns. Must be
        called with a running event loop when a revalidation is due.
        """
        if self._mounted:
            return
        self._mounted = True

        entry = self.store.read(self.resource, self.record_type)
        if entry is None:
            logger.debug("Mounted '%s' without cache", self.resource)
            self._schedule_revalidation()
            return

        self._has_data = True
        self._last_fetched_at = entry.timestamp
        self.collection.replace_all(list(entry.data))

        if self.store.is_fresh(entry, self.ttl_ms, now=self._clock()):
            self._set_state(SyncState.CACHED_FRESH)
            logger.debug("Mounted '%s' from fresh cache (%d records)", self.resource, len(entry.data))
        else:
            self._set_state(SyncState.CACHED_STALE)
            logger.debug("Mounted '%s' from stale cache, revalidating", self.resource)
            self._schedule_revalidation()

    def unmount(self) -> None:
        """Abort the in-flight fetch and background work.

        A load in progress ends in READY, or EMPTY when nothing was loaded.
        The persisted entry is kept.
        """
        if not self._mounted:
            return
        self._mounted = False
        self.coordinator.cancel(self.resource)
        for task in list(self._tasks):
            task.cancel()
        if self._state in (SyncState.LOADING, SyncState.VALIDATING):
            self._set_state(SyncState.READY if self._has_data else SyncState.EMPTY)
        logger.debug("Unmounted '%s'", self.resource)

    def refetch(self) -> asyncio.Task[None]:
        """Start a manual revalidation in the background."""
        return self._schedule_revalidation()

    async def revalidate(self) -> None:
        """Fetch the collection and apply it if this fetch is still current."""
        self._set_state(SyncState.VALIDATING if self._has_data else SyncState.LOADING)
        log_operation_start(logger, "revalidate", {"resource": self.resource})
        start = time.monotonic()

        try:
            records = await self.coordinator.fetch(self.resource)
        except RequestCancelledError:
            logger.debug("Revalidation of '%s' superseded", self.resource)
            return
        except FetchFailedError as e:
            self._error = e
            self._set_state(SyncState.READY)
            return

        fetched_at = self._clock()
        self._error = None
        self._has_data = True
        self._last_fetched_at = fetched_at
        self.collection.replace_all(records)
        self.store.write(
            self.resource,
            CacheEntry[self.record_type](data=records, timestamp=fetched_at),  # type: ignore[name-defined]
        )
        self._set_state(SyncState.READY)

        log_operation_success(
            logger,
            "revalidate",
            duration_ms=(time.monotonic() - start) * 1000,
            result_info={"records": len(records)},
            context={"resource": self.resource},
        )

    def persist_confirmed(self) -> bool:
        """Persist the server-confirmed view, keeping the last fetch timestamp.

        A collection that was never fetched gets timestamp 0, so the next
        mount revalidates it.
        """
        entry = CacheEntry[self.record_type](  # type: ignore[name-defined]
            data=self.collection.confirmed(),
            timestamp=self._last_fetched_at or 0,
        )
        return self.store.write(self.resource, entry)

    async def wait_idle(self) -> None:
        """Wait for background revalidations to finish."""
        while True:
            pending = [task for task in self._tasks if not task.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    def subscribe(self, listener: Callable[[], None]) -> Callable[[], None]:
        """Call ``listener`` after every state or collection change.

        Returns:
            A function that unsubscribes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _schedule_revalidation(self) -> asyncio.Task[None]:
        # Set the state before the task runs so callers observe it synchronously.
        self._set_state(SyncState.VALIDATING if self._has_data else SyncState.LOADING)
        task = asyncio.get_running_loop().create_task(self.revalidate())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def _set_state(self, state: SyncState) -> None:
        if state is self._state:
            return
        logger.debug("'%s': %s -> %s", self.resource, self._state.value, state.value)
        self._state = state
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener()


__all__ = ["SyncEngine", "SyncState"]
