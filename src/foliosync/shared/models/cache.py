"""Cache entry model.

One ``CacheEntry`` is persisted per collection resource. ``timestamp`` is the
wall-clock time (milliseconds) at which ``data`` was last confirmed by a
successful fetch.
"""

from __future__ import annotations

import time
from typing import Generic

from pydantic import BaseModel, Field

from foliosync.shared.models.records import RecordT

__all__ = ["CacheEntry", "now_ms"]


def now_ms() -> int:
    """Current wall-clock time in integer milliseconds."""
    return int(time.time() * 1000)


class CacheEntry(BaseModel, Generic[RecordT]):
    """Persisted snapshot of a collection.

    Attributes:
        data: The collection, in display order.
        timestamp: Milliseconds since the epoch of the last confirming fetch.
    """

    data: list[RecordT] = Field(default_factory=list, description="Cached collection")
    timestamp: int = Field(..., ge=0, description="Last confirmation time (ms)")

    def age_ms(self, now: int | None = None) -> int:
        """Milliseconds elapsed since the entry was confirmed."""
        return (now_ms() if now is None else now) - self.timestamp
