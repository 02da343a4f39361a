"""
Pytest configuration and shared fixtures for FolioSync tests.

Provides an in-memory store with a controllable clock and a scriptable
transport, so the sync layer can be driven without a network.
"""

from __future__ import annotations

import logging
import tempfile
from collections.abc import Generator
from pathlib import Path
from typing import Any

import pytest

from foliosync.cli.common.context import clear_cli_context
from foliosync.config import reset_config
from foliosync.services import (
    MemoryStorageBackend,
    PersistentStore,
    RequestCoordinator,
    SyncEngine,
)
from foliosync.shared.constants import Cache
from foliosync.shared.logging import PACKAGE_LOGGER_NAME
from foliosync.shared.models import CacheEntry, Skill
from tests.helpers import FakeClock, FakeTransport


@pytest.fixture(autouse=True)
def _reset_global_state() -> Generator[None, None, None]:
    """Undo logger, configuration and CLI context changes made by a test."""
    yield
    package_logger = logging.getLogger(PACKAGE_LOGGER_NAME)
    package_logger.handlers.clear()
    package_logger.setLevel(logging.NOTSET)
    package_logger.propagate = True
    reset_config()
    clear_cli_context()


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as temp_path:
        yield Path(temp_path)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def backend() -> MemoryStorageBackend:
    return MemoryStorageBackend()


@pytest.fixture
def store(backend: MemoryStorageBackend, clock: FakeClock) -> PersistentStore:
    return PersistentStore(backend, clock=clock)


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def coordinator(transport: FakeTransport) -> RequestCoordinator[Skill]:
    return RequestCoordinator(transport, Skill)


@pytest.fixture
def make_engine(store: PersistentStore, coordinator: RequestCoordinator[Skill], clock: FakeClock):
    """Factory for skill engines sharing the store, coordinator and clock."""

    def factory(ttl_ms: int = Cache.DEFAULT_TTL_MS, **overrides: Any) -> SyncEngine[Skill]:
        return SyncEngine(
            overrides.get("resource", "skills"),
            overrides.get("store", store),
            overrides.get("coordinator", coordinator),
            Skill,
            ttl_ms=ttl_ms,
            clock=clock,
        )

    return factory


@pytest.fixture
def seed_cache(store: PersistentStore, clock: FakeClock):
    """Write a skills cache entry aged ``age_ms``."""

    def seed(records: list[Skill], age_ms: int = 0, resource: str = "skills") -> CacheEntry[Skill]:
        entry = CacheEntry[Skill](data=records, timestamp=clock() - age_ms)
        assert store.write(resource, entry)
        return entry

    return seed
