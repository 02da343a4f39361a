"""Services module for FolioSync.

Storage, transport, request coordination and the stale-while-revalidate
sync layer with optimistic mutations.
"""

from .cancellation import CancellationToken
from .collection_handle import CollectionHandle, create_store, use_collection
from .collection_state import (
    CollectionState,
    Committed,
    Entry,
    PendingCreate,
    PendingDelete,
    PendingUpdate,
)
from .filtering import category_counts, filter_records
from .optimistic_mutator import OptimisticMutator
from .persistent_store import PersistentStore
from .request_coordinator import InFlightRequest, RequestCoordinator
from .storage_backends import FileStorageBackend, MemoryStorageBackend
from .sync_engine import SyncEngine, SyncState
from .transport import AiohttpTransport, TransportResponse

__all__ = [
    "AiohttpTransport",
    "CancellationToken",
    "CollectionHandle",
    "CollectionState",
    "Committed",
    "Entry",
    "FileStorageBackend",
    "InFlightRequest",
    "MemoryStorageBackend",
    "OptimisticMutator",
    "PendingCreate",
    "PendingDelete",
    "PendingUpdate",
    "PersistentStore",
    "RequestCoordinator",
    "SyncEngine",
    "SyncState",
    "TransportResponse",
    "category_counts",
    "create_store",
    "filter_records",
    "use_collection",
]
