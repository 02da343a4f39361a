"""Cache configuration model.

This module contains the cache configuration model for managing
collection caching: TTL, storage backend and size ceiling.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from foliosync.shared.constants import Cache


class CacheSettings(BaseModel):
    """Cache configuration."""

    ttl_ms: int = Field(
        default=Cache.DEFAULT_TTL_MS,
        gt=0,
        description="Time a cached collection counts as fresh (milliseconds)",
    )
    backend: Literal["file", "memory"] = Field(
        default=Cache.BACKEND_FILE,
        description="Storage backend (file, memory)",
    )
    directory: str = Field(
        default=Cache.DEFAULT_DIR,
        description="Directory of the file backend",
    )
    namespace: str = Field(
        default=Cache.DEFAULT_NAMESPACE,
        min_length=1,
        description="Key namespace for persisted entries",
    )
    max_bytes: int = Field(
        default=Cache.DEFAULT_MAX_BYTES,
        gt=0,
        description="Storage ceiling; writes beyond it fail softly",
    )


__all__ = ["CacheSettings"]
