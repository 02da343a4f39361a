"""
Cache Configuration Constants

This module provides the cache and storage constants used by the
persistent store and the sync engine.
"""

# Base time units for TTL calculations (milliseconds)
BASE_MILLISECOND = 1
BASE_SECOND_MS = 1000 * BASE_MILLISECOND
BASE_MINUTE_MS = 60 * BASE_SECOND_MS


class Cache:
    """Cache configuration constants."""

    # Fresh window for a cached collection
    DEFAULT_TTL_MS = 60 * BASE_SECOND_MS  # 60 seconds

    # Key namespace for persisted entries
    DEFAULT_NAMESPACE = "foliosync"
    KEY_SEPARATOR = ":"

    # Storage ceiling, mirrors the usual browser storage quota
    DEFAULT_MAX_BYTES = 5 * 1024 * 1024  # 5 MiB

    # Backends
    BACKEND_FILE = "file"
    BACKEND_MEMORY = "memory"
    DEFAULT_DIR = ".foliosync/cache"
    FILE_SUFFIX = ".json"


class TemporaryIds:
    """Temporary id convention for optimistically created records."""

    PREFIX = "temp-"
