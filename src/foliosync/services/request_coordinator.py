"""Request coordination with last-fetch-wins semantics.

Every fetch for a resource gets a fresh ``CancellationToken`` and a
monotonically increasing sequence number. Starting a fetch cancels the
previous token for that resource, and a result is only handed back if its
sequence is still the latest one when it resolves. Transports that cannot
abort therefore still lose the race.

Mutations bypass this group: they are never superseded and never cancel
anything.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Generic
from urllib.parse import quote

import orjson
from pydantic import TypeAdapter, ValidationError

from foliosync.services.cancellation import CancellationToken
from foliosync.services.transport import TransportResponse
from foliosync.shared.constants import HTTPMethod, MutationVerb, NetworkConfig
from foliosync.shared.errors import (
    MutationFailedError,
    RequestCancelledError,
    TransportError,
    create_cancelled_error,
    create_fetch_failed_error,
    create_mutation_failed_error,
)
from foliosync.shared.logging import log_operation_error
from foliosync.shared.models import Record, RecordT
from foliosync.shared.protocols import Transport

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InFlightRequest:
    """An active fetch for one resource."""

    resource: str
    sequence: int
    token: CancellationToken


class RequestCoordinator(Generic[RecordT]):
    """Issues fetches and mutations for collection resources.

    Args:
        transport: Transport performing the HTTP exchange.
        record_type: Model used to validate response records.
        prefix: Path prefix of the collection endpoints.

    Example:
        >>> coordinator = RequestCoordinator(transport, Skill)
        >>> skills = await coordinator.fetch("skills")
    """

    def __init__(
        self,
        transport: Transport,
        record_type: type[RecordT] = Record,  # type: ignore[assignment]
        *,
        prefix: str = NetworkConfig.DEFAULT_API_PREFIX,
    ) -> None:
        self.transport = transport
        self.record_type = record_type
        self.prefix = "/" + prefix.strip("/") if prefix.strip("/") else ""
        self._list_adapter: TypeAdapter[list[RecordT]] = TypeAdapter(list[record_type])  # type: ignore[valid-type]
        self._sequence = 0
        self._latest: dict[str, int] = {}
        self._in_flight: dict[str, InFlightRequest] = {}

    def collection_path(self, resource: str) -> str:
        return f"{self.prefix}/{quote(resource)}"

    def record_path(self, resource: str, record_id: str) -> str:
        return f"{self.prefix}/{quote(resource)}/{quote(record_id, safe='')}"

    def in_flight(self, resource: str) -> InFlightRequest | None:
        """Return the active fetch for ``resource``, if any."""
        return self._in_flight.get(resource)

    def is_current(self, resource: str, sequence: int) -> bool:
        """Whether ``sequence`` is the newest, non-cancelled fetch for ``resource``."""
        return self._latest.get(resource) == sequence

    def cancel(self, resource: str) -> bool:
        """Cancel the in-flight fetch for ``resource``.

        Returns:
            True if a fetch was cancelled by this call.
        """
        request = self._in_flight.pop(resource, None)
        if request is None:
            return False
        if self._latest.get(resource) == request.sequence:
            del self._latest[resource]
        return request.token.cancel()

    def cancel_all(self) -> int:
        """Cancel every in-flight fetch and return how many were cancelled."""
        return sum(1 for resource in list(self._in_flight) if self.cancel(resource))

    def _begin(self, resource: str) -> InFlightRequest:
        self.cancel(resource)
        self._sequence += 1
        request = InFlightRequest(resource, self._sequence, CancellationToken(self._sequence))
        self._latest[resource] = request.sequence
        self._in_flight[resource] = request
        return request

    def _finish(self, request: InFlightRequest) -> None:
        current = self._in_flight.get(request.resource)
        if current is not None and current.sequence == request.sequence:
            del self._in_flight[request.resource]

    def _ensure_current(self, request: InFlightRequest) -> None:
        if request.token.cancelled or self._latest.get(request.resource) != request.sequence:
            logger.debug("Discarding result of superseded fetch #%d for '%s'", request.sequence, request.resource)
            raise create_cancelled_error(request.resource, request.sequence)

    async def fetch(self, resource: str) -> list[RecordT]:
        """Fetch the full collection for ``resource``.

        Raises:
            RequestCancelledError: If a newer fetch superseded this one
            FetchFailedError: On network failure, non-2xx status or unparsable body
        """
        request = self._begin(resource)
        path = self.collection_path(resource)
        logger.debug("Fetch #%d started: GET %s", request.sequence, path)

        try:
            response = await self.transport.request(HTTPMethod.GET, path, token=request.token)
        except RequestCancelledError:
            raise create_cancelled_error(resource, request.sequence) from None
        except TransportError as e:
            self._ensure_current(request)
            self._finish(request)
            error = create_fetch_failed_error(resource, e.message, original_error=e)
            log_operation_error(logger, error, level=logging.WARNING)
            raise error from e

        self._ensure_current(request)
        self._finish(request)

        if not response.ok:
            error = create_fetch_failed_error(
                resource,
                f"GET {path} returned HTTP {response.status}",
                status=response.status,
            )
            log_operation_error(logger, error, level=logging.WARNING)
            raise error

        try:
            records = self._list_adapter.validate_python(response.json())
        except (ValidationError, orjson.JSONDecodeError) as e:
            error = create_fetch_failed_error(
                resource,
                f"Invalid collection body for '{resource}'",
                status=response.status,
                original_error=e,
            )
            log_operation_error(logger, error, level=logging.WARNING)
            raise error from e

        logger.debug("Fetch #%d for '%s' returned %d records", request.sequence, resource, len(records))
        return records

    async def mutate(
        self,
        verb: str,
        resource: str,
        payload: dict[str, Any] | None = None,
        record_id: str | None = None,
    ) -> RecordT | None:
        """Perform a create, update or delete call.

        Args:
            verb: One of ``MutationVerb.CREATE/UPDATE/DELETE``
            resource: Collection resource name
            payload: Wire-format body for create/update
            record_id: Target id for update/delete

        Returns:
            The server record for create/update, None for delete.

        Raises:
            ValueError: If the verb is unknown or a required id is missing
            MutationFailedError: On network failure, non-2xx status or unparsable body
        """
        method = MutationVerb.METHODS.get(verb)
        if method is None:
            raise ValueError(f"Unknown mutation verb: {verb!r}")

        if verb == MutationVerb.CREATE:
            path = self.collection_path(resource)
        else:
            if not record_id:
                raise ValueError(f"'{verb}' requires a record id")
            path = self.record_path(resource, record_id)

        body = payload if verb != MutationVerb.DELETE else None
        logger.debug("Mutation started: %s %s", method, path)

        try:
            response = await self.transport.request(method, path, body)
        except TransportError as e:
            raise self._mutation_failed(resource, verb, e.message, record_id, original_error=e) from e

        if not response.ok:
            raise self._mutation_failed(
                resource,
                verb,
                self._error_message(response) or f"{method} {path} returned HTTP {response.status}",
                record_id,
                status=response.status,
            )

        if verb == MutationVerb.DELETE:
            return None

        try:
            return self.record_type.model_validate(response.json())
        except (ValidationError, orjson.JSONDecodeError) as e:
            raise self._mutation_failed(
                resource,
                verb,
                f"Invalid record body from {method} {path}",
                record_id,
                status=response.status,
                original_error=e,
            ) from e

    def _mutation_failed(
        self,
        resource: str,
        verb: str,
        message: str,
        record_id: str | None,
        *,
        status: int | None = None,
        original_error: Exception | None = None,
    ) -> MutationFailedError:
        error = create_mutation_failed_error(
            resource,
            verb,
            message,
            record_id=record_id,
            status=status,
            original_error=original_error,
        )
        log_operation_error(logger, error, level=logging.WARNING)
        return error

    @staticmethod
    def _error_message(response: TransportResponse) -> str | None:
        """Extract the API's ``{"error": "..."}`` message, if present."""
        try:
            body = response.json()
        except orjson.JSONDecodeError:
            return None
        if isinstance(body, dict) and isinstance(body.get("error"), str):
            return body["error"]
        return None


__all__ = ["InFlightRequest", "RequestCoordinator"]
