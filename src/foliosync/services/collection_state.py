"""In-memory collection state with tagged record lifecycles.

Each position of the collection holds one entry:

- ``Committed``: server-confirmed record.
- ``PendingCreate``: optimistically appended record under a TemporaryId.
- ``PendingUpdate``: optimistically patched record stacked on the entry it
  replaced.
- ``PendingDelete``: hidden record stacked on the entry it hid.

Pending entries name the mutation that owns them. Settling a mutation walks
the stack of its record and rewrites only the layer that mutation owns, so
a later mutation on the same record keeps its optimistic state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Callable, Generic, Optional, Union

from foliosync.shared.models import RecordT

logger = logging.getLogger(__name__)

Listener = Callable[[], None]


@dataclass(frozen=True)
class Committed(Generic[RecordT]):
    record: RecordT

    @property
    def id(self) -> str:
        return self.record.id

    @property
    def owner(self) -> str | None:
        return None

    @property
    def visible(self) -> RecordT | None:
        return self.record

    @property
    def confirmed(self) -> RecordT | None:
        return self.record


@dataclass(frozen=True)
class PendingCreate(Generic[RecordT]):
    record: RecordT
    owner: str

    @property
    def id(self) -> str:
        return self.record.id

    @property
    def temporary_id(self) -> str:
        return self.record.id

    @property
    def visible(self) -> RecordT | None:
        return self.record

    @property
    def confirmed(self) -> RecordT | None:
        return None


@dataclass(frozen=True)
class PendingUpdate(Generic[RecordT]):
    record: RecordT
    previous: Entry
    owner: str

    @property
    def id(self) -> str:
        return self.record.id

    @property
    def base(self) -> RecordT | None:
        """Server-confirmed record the patch was applied over."""
        return self.previous.confirmed

    @property
    def visible(self) -> RecordT | None:
        return self.record

    @property
    def confirmed(self) -> RecordT | None:
        return self.previous.confirmed


@dataclass(frozen=True)
class PendingDelete(Generic[RecordT]):
    previous: Entry
    owner: str

    @property
    def id(self) -> str:
        return self.previous.id

    @property
    def record(self) -> RecordT | None:
        return self.previous.visible

    @property
    def visible(self) -> RecordT | None:
        return None

    @property
    def confirmed(self) -> RecordT | None:
        return self.previous.confirmed


Entry = Union[Committed, PendingCreate, PendingUpdate, PendingDelete]

# Computes what replaces the settled layer; None removes the entry.
Resolver = Callable[[Entry], Optional[Entry]]


def _settle_layer(entry: Entry, owner: str, resolve: Resolver) -> tuple[Entry | None, bool]:
    if entry.owner == owner:
        return resolve(entry), True
    if isinstance(entry, (PendingUpdate, PendingDelete)):
        previous, found = _settle_layer(entry.previous, owner, resolve)
        if not found:
            return entry, False
        if previous is None:
            return None, True
        return replace(entry, previous=previous), True
    return entry, False


class CollectionState(Generic[RecordT]):
    """Ordered entries of one collection plus change listeners."""

    def __init__(self, records: list[RecordT] | None = None) -> None:
        self._entries: list[Entry] = [Committed(r) for r in records or []]
        self._listeners: list[Listener] = []

    @property
    def entries(self) -> tuple[Entry, ...]:
        return tuple(self._entries)

    @property
    def records(self) -> list[RecordT]:
        """The collection as the UI should show it."""
        return [e.visible for e in self._entries if e.visible is not None]

    def confirmed(self) -> list[RecordT]:
        """The collection as last confirmed by the server.

        Pending creates are left out, pending updates show their base and
        pending deletes still show their record.
        """
        return [e.confirmed for e in self._entries if e.confirmed is not None]

    def has_pending(self) -> bool:
        return any(not isinstance(e, Committed) for e in self._entries)

    def index_of(self, record_id: str) -> int | None:
        for index, entry in enumerate(self._entries):
            if entry.id == record_id:
                return index
        return None

    def get(self, record_id: str) -> Entry | None:
        index = self.index_of(record_id)
        return None if index is None else self._entries[index]

    def replace_all(self, records: list[RecordT]) -> None:
        """Replace every entry with committed server records."""
        dropped = sum(1 for e in self._entries if not isinstance(e, Committed))
        if dropped:
            logger.debug("Wholesale replace dropped %d pending entries", dropped)
        self._entries = [Committed(r) for r in records]
        self.notify()

    def append(self, entry: Entry) -> None:
        self._entries.append(entry)
        self.notify()

    def put(self, record_id: str, entry: Entry) -> bool:
        """Replace the entry for ``record_id`` in place."""
        index = self.index_of(record_id)
        if index is None:
            return False
        self._entries[index] = entry
        self.notify()
        return True

    def discard(self, record_id: str) -> bool:
        index = self.index_of(record_id)
        if index is None:
            return False
        del self._entries[index]
        self.notify()
        return True

    def settle(self, record_id: str, owner: str, resolve: Resolver) -> bool:
        """Rewrite the layer owned by ``owner`` in the entry of ``record_id``.

        Returns:
            False if no layer of that entry is owned by ``owner`` (the entry
            was replaced by a fetch or never existed).
        """
        index = self.index_of(record_id)
        if index is None:
            return False
        settled, found = _settle_layer(self._entries[index], owner, resolve)
        if not found:
            return False
        if settled is None:
            del self._entries[index]
        else:
            self._entries[index] = settled
        self.notify()
        return True

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def notify(self) -> None:
        for listener in list(self._listeners):
            listener()

    def __len__(self) -> int:
        return len(self.records)


__all__ = [
    "CollectionState",
    "Committed",
    "Entry",
    "PendingCreate",
    "PendingDelete",
    "PendingUpdate",
]
