"""Boundary protocols for dependency inversion.

The sync layer talks to storage and to the network only through these
interfaces, so tests can inject in-memory fakes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from foliosync.services.cancellation import CancellationToken
    from foliosync.services.transport import TransportResponse


@runtime_checkable
class StorageBackend(Protocol):
    """Synchronous key/value storage of string values.

    Implementations report quota or I/O failures from ``set`` by returning
    False; ``get`` may raise ``OSError`` on unreadable storage.
    """

    def get(self, key: str) -> str | None:
        """Return the stored value or None if absent."""

    def set(self, key: str, value: str) -> bool:
        """Store a value; return False when it could not be persisted."""

    def remove(self, key: str) -> None:
        """Delete a value. Removing a missing key is a no-op."""


@runtime_checkable
class Transport(Protocol):
    """HTTP-like call with JSON bodies and cooperative cancellation.

    Example:
        >>> transport: Transport = AiohttpTransport(base_url="http://localhost:3000")
        >>> response = await transport.request("GET", "/api/admin/skills")
    """

    async def request(
        self,
        method: str,
        path: str,
        body: Any | None = None,
        *,
        token: CancellationToken | None = None,
    ) -> TransportResponse:
        """Perform a request.

        Args:
            method: HTTP method (GET, POST, PUT, DELETE)
            path: Request path relative to the base URL
            body: JSON-serializable request body
            token: Abort token; cancelling it aborts the request

        Returns:
            TransportResponse with status and raw content

        Raises:
            RequestCancelledError: If the token was cancelled
            TransportError: If the exchange failed
        """
