"""Consumer API: ``use_collection``.

A ``CollectionHandle`` bundles one SyncEngine with its OptimisticMutator and
exposes a snapshot (data, flags, errors) plus the mutation functions. Each
call builds its own engine; only the store is shared.

Example:
    >>> async with use_collection("skills", record_type=Skill, transport=transport) as skills:
    ...     print(skills.data, skills.is_loading)
    ...     await skills.create({"name": "Go", "category": "Backend"})
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Callable, Generic

from foliosync.config import get_config
from foliosync.config.models import CacheSettings, Settings
from foliosync.services.optimistic_mutator import OptimisticMutator
from foliosync.services.persistent_store import PersistentStore
from foliosync.services.request_coordinator import RequestCoordinator
from foliosync.services.storage_backends import FileStorageBackend, MemoryStorageBackend
from foliosync.services.sync_engine import SyncEngine, SyncState
from foliosync.services.transport import AiohttpTransport
from foliosync.shared.constants import Cache
from foliosync.shared.errors import FetchFailedError, MutationFailedError
from foliosync.shared.models import Record, RecordT
from foliosync.shared.protocols import Transport

logger = logging.getLogger(__name__)


def create_store(settings: CacheSettings) -> PersistentStore:
    """Build the persistent store described by cache settings."""
    if settings.backend == Cache.BACKEND_MEMORY:
        backend: MemoryStorageBackend | FileStorageBackend = MemoryStorageBackend(settings.max_bytes)
    else:
        backend = FileStorageBackend(Path(settings.directory).expanduser(), settings.max_bytes)
    logger.debug("Using %s storage backend", settings.backend)
    return PersistentStore(backend, namespace=settings.namespace)


class CollectionHandle(Generic[RecordT]):
    """Snapshot and mutation functions for one mounted collection."""

    def __init__(
        self,
        engine: SyncEngine[RecordT],
        mutator: OptimisticMutator[RecordT] | None = None,
        *,
        owned_transport: AiohttpTransport | None = None,
    ) -> None:
        self.engine = engine
        self.mutator = mutator or OptimisticMutator(engine)
        self._owned_transport = owned_transport

    @property
    def resource(self) -> str:
        return self.engine.resource

    @property
    def data(self) -> list[RecordT]:
        return self.engine.data

    @property
    def is_loading(self) -> bool:
        return self.engine.is_loading

    @property
    def is_revalidating(self) -> bool:
        return self.engine.is_revalidating

    @property
    def error(self) -> FetchFailedError | None:
        return self.engine.error

    @property
    def mutation_error(self) -> MutationFailedError | None:
        """Last failed mutation, cleared when the next one starts."""
        return self.mutator.last_error

    @property
    def state(self) -> SyncState:
        return self.engine.state

    def mount(self) -> CollectionHandle[RecordT]:
        self.engine.mount()
        return self

    async def create(self, payload: dict[str, Any]) -> RecordT:
        return await self.mutator.create(payload)

    async def update(self, record_id: str, patch: dict[str, Any]) -> RecordT:
        return await self.mutator.update(record_id, patch)

    async def remove(self, record_id: str) -> None:
        await self.mutator.delete(record_id)

    def refetch(self) -> asyncio.Task[None]:
        return self.engine.refetch()

    def subscribe(self, listener: Callable[[], None]) -> Callable[[], None]:
        return self.engine.subscribe(listener)

    def unmount(self) -> None:
        self.engine.unmount()

    async def wait_idle(self) -> None:
        """Wait until no revalidation is running."""
        await self.engine.wait_idle()

    async def close(self) -> None:
        """Unmount and close the transport if this handle created it."""
        self.unmount()
        if self._owned_transport is not None:
            await self._owned_transport.close()
            self._owned_transport = None

    async def __aenter__(self) -> CollectionHandle[RecordT]:
        return self.mount()

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()


def use_collection(
    resource: str,
    ttl_ms: int | None = None,
    *,
    record_type: type[RecordT] = Record,  # type: ignore[assignment]
    store: PersistentStore | None = None,
    transport: Transport | None = None,
    coordinator: RequestCoordinator[RecordT] | None = None,
    settings: Settings | None = None,
    mount: bool = True,
) -> CollectionHandle[RecordT]:
    """Open a collection with stale-while-revalidate semantics.

    Missing collaborators are built from ``settings`` (or the loaded
    configuration): a store from the cache settings and an
    ``AiohttpTransport`` from the API settings.

    Args:
        resource: Collection resource name (e.g. "skills")
        ttl_ms: Freshness window; defaults to ``settings.cache.ttl_ms``
        record_type: Model of the records
        store: Shared persistent store
        transport: Transport for a new coordinator
        coordinator: Pre-built coordinator (takes precedence over transport)
        settings: Settings used for defaults
        mount: Mount immediately (requires a running event loop when the
            cache is stale or empty)

    Returns:
        CollectionHandle exposing data, flags and mutation functions
    """
    if settings is None:
        settings = get_config()

    owned_transport: AiohttpTransport | None = None
    if coordinator is None:
        if transport is None:
            owned_transport = AiohttpTransport.from_settings(settings.api)
            transport = owned_transport
        coordinator = RequestCoordinator(transport, record_type, prefix=settings.api.prefix)

    engine = SyncEngine(
        resource,
        store if store is not None else create_store(settings.cache),
        coordinator,
        record_type,
        ttl_ms=ttl_ms if ttl_ms is not None else settings.cache.ttl_ms,
    )
    handle = CollectionHandle(engine, owned_transport=owned_transport)
    if mount:
        handle.mount()
    return handle


__all__ = ["CollectionHandle", "create_store", "use_collection"]
