"""Optimistic create/update/delete over a SyncEngine's collection.

Every operation changes the visible collection before the network call and
settles afterwards:

- success replaces the optimistic layer with the server record and persists
  the confirmed collection;
- failure removes the optimistic layer, restoring exactly what that
  mutation replaced, and raises ``MutationFailedError``. The store is not
  touched.

Settling is targeted by record id and mutation id, so concurrent mutations
on other records (or later ones on the same record) are left alone.
"""

from __future__ import annotations

import logging
import uuid
from typing import Any, Generic, cast

from foliosync.services.collection_state import (
    Committed,
    Entry,
    PendingCreate,
    PendingDelete,
    PendingUpdate,
)
from foliosync.services.sync_engine import SyncEngine
from foliosync.shared.constants import MutationVerb
from foliosync.shared.errors import MutationFailedError, create_record_not_found_error
from foliosync.shared.models import (
    RecordT,
    apply_patch,
    is_temporary_id,
    new_temporary_id,
    normalize_fields,
    to_wire,
)

logger = logging.getLogger(__name__)


def _new_mutation_id() -> str:
    return uuid.uuid4().hex


def _rollback(entry: Entry) -> Entry | None:
    if isinstance(entry, (PendingUpdate, PendingDelete)):
        return entry.previous
    return None


class OptimisticMutator(Generic[RecordT]):
    """Applies mutations to ``engine.collection`` ahead of the server.

    Args:
        engine: Engine owning the collection, coordinator and store.
    """

    def __init__(self, engine: SyncEngine[RecordT]) -> None:
        self.engine = engine
        self.last_error: MutationFailedError | None = None

    @property
    def resource(self) -> str:
        return self.engine.resource

    async def create(self, payload: dict[str, Any]) -> RecordT:
        """Append a record immediately and create it on the server.

        Returns:
            The server record, carrying its real id.

        Raises:
            pydantic.ValidationError: If the payload does not form a valid record
            MutationFailedError: After the temporary record was removed
        """
        engine = self.engine
        fields = normalize_fields(engine.record_type, payload)
        fields.pop("id", None)

        temporary_id = new_temporary_id()
        optimistic = engine.record_type.model_validate({**fields, "id": temporary_id})
        mutation_id = _new_mutation_id()
        self.last_error = None
        engine.collection.append(PendingCreate(optimistic, mutation_id))
        logger.debug("Optimistic create %s in '%s'", temporary_id, self.resource)

        try:
            created = await engine.coordinator.mutate(
                MutationVerb.CREATE,
                self.resource,
                to_wire(engine.record_type, fields),
            )
        except MutationFailedError as e:
            engine.collection.settle(temporary_id, mutation_id, _rollback)
            self._fail(e)
            raise

        created = cast(RecordT, created)
        self._commit_create(temporary_id, mutation_id, created)
        engine.persist_confirmed()
        return created

    async def update(self, record_id: str, patch: dict[str, Any]) -> RecordT:
        """Patch a record immediately and update it on the server.

        Returns:
            The server's canonical record.

        Raises:
            RecordNotFoundError: If no visible, server-known record has ``record_id``
            pydantic.ValidationError: If the patch makes the record invalid
            MutationFailedError: After the record was restored
        """
        engine = self.engine
        entry = self._require(record_id, "update")

        fields = normalize_fields(engine.record_type, patch)
        fields.pop("id", None)
        optimistic = apply_patch(entry.visible, fields)
        mutation_id = _new_mutation_id()
        self.last_error = None
        engine.collection.put(record_id, PendingUpdate(optimistic, entry, mutation_id))
        logger.debug("Optimistic update of %s in '%s'", record_id, self.resource)

        try:
            updated = await engine.coordinator.mutate(
                MutationVerb.UPDATE,
                self.resource,
                to_wire(engine.record_type, fields),
                record_id=record_id,
            )
        except MutationFailedError as e:
            engine.collection.settle(record_id, mutation_id, _rollback)
            self._fail(e)
            raise

        updated = cast(RecordT, updated)
        self._commit_replace(record_id, mutation_id, updated)
        engine.persist_confirmed()
        return updated

    async def delete(self, record_id: str) -> None:
        """Hide a record immediately and delete it on the server.

        Raises:
            RecordNotFoundError: If no visible, server-known record has ``record_id``
            MutationFailedError: After the record was restored at its position
        """
        engine = self.engine
        entry = self._require(record_id, "delete")

        mutation_id = _new_mutation_id()
        self.last_error = None
        engine.collection.put(record_id, PendingDelete(entry, mutation_id))
        logger.debug("Optimistic delete of %s in '%s'", record_id, self.resource)

        try:
            await engine.coordinator.mutate(MutationVerb.DELETE, self.resource, record_id=record_id)
        except MutationFailedError as e:
            engine.collection.settle(record_id, mutation_id, _rollback)
            self._fail(e)
            raise

        if not engine.collection.settle(record_id, mutation_id, lambda _: None):
            current = engine.collection.get(record_id)
            if isinstance(current, Committed):
                engine.collection.discard(record_id)
        engine.persist_confirmed()

    def _require(self, record_id: str, operation: str) -> Entry:
        entry = self.engine.collection.get(record_id)
        if entry is None or entry.visible is None or is_temporary_id(record_id):
            raise create_record_not_found_error(self.resource, record_id, operation)
        return entry

    def _commit_create(self, temporary_id: str, mutation_id: str, created: RecordT) -> None:
        collection = self.engine.collection
        existing = collection.get(created.id)

        if existing is not None:
            # A revalidation already brought the server record in.
            collection.settle(temporary_id, mutation_id, lambda _: None)
            if isinstance(existing, Committed):
                collection.put(created.id, Committed(created))
            return

        if not collection.settle(temporary_id, mutation_id, lambda _: Committed(created)):
            collection.append(Committed(created))

    def _commit_replace(self, record_id: str, mutation_id: str, record: RecordT) -> None:
        collection = self.engine.collection
        if collection.settle(record_id, mutation_id, lambda _: Committed(record)):
            return
        if isinstance(collection.get(record_id), Committed):
            collection.put(record_id, Committed(record))

    def _fail(self, error: MutationFailedError) -> None:
        self.last_error = error
        logger.info("Rolled back %s on '%s': %s", error.verb, self.resource, error.message)


__all__ = ["OptimisticMutator"]
