"""Cooperative cancellation for in-flight requests.

A ``CancellationToken`` is handed to the transport with every fetch. The
coordinator cancels the token when a newer fetch for the same resource
starts; the transport observes it and aborts. Transports that cannot abort
simply finish, and the coordinator's sequence check discards the result.
"""

from __future__ import annotations

import logging
from typing import Callable

logger = logging.getLogger(__name__)


class CancellationToken:
    """Abort signal tied to one request sequence number.

    Cancelling is idempotent: later calls do nothing and callbacks run once.
    """

    def __init__(self, sequence: int = 0) -> None:
        self.sequence = sequence
        self._cancelled = False
        self._callbacks: list[Callable[[], object]] = []

    @property
    def cancelled(self) -> bool:
        """Whether the token has been cancelled."""
        return self._cancelled

    def cancel(self) -> bool:
        """Cancel the token.

        Returns:
            True if this call cancelled it, False if it already was.
        """
        if self._cancelled:
            return False
        self._cancelled = True
        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback()
        logger.debug("Cancelled request #%d", self.sequence)
        return True

    def add_callback(self, callback: Callable[[], object]) -> Callable[[], None]:
        """Run ``callback`` on cancellation (immediately if already cancelled).

        Returns:
            A function that unregisters the callback.
        """
        if self._cancelled:
            callback()
            return lambda: None

        self._callbacks.append(callback)

        def remove() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return remove

    def __repr__(self) -> str:
        state = "cancelled" if self._cancelled else "active"
        return f"CancellationToken(sequence={self.sequence}, {state})"


__all__ = ["CancellationToken"]
