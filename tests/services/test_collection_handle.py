"""Tests for use_collection and CollectionHandle."""

from __future__ import annotations

from pathlib import Path

import pytest

from foliosync.config import CacheSettings, Settings
from foliosync.services import (
    AiohttpTransport,
    CollectionHandle,
    FileStorageBackend,
    MemoryStorageBackend,
    SyncState,
    create_store,
    use_collection,
)
from foliosync.shared.errors import MutationFailedError
from foliosync.shared.models import Record, Skill
from tests.helpers import SKILLS_PATH, json_response, skill

GO = skill("1", "Go", category="Backend")


class TestCreateStore:
    """Test building the store from cache settings."""

    def test_memory_backend(self):
        store = create_store(CacheSettings(backend="memory", namespace="test"))
        assert isinstance(store.backend, MemoryStorageBackend)
        assert store.storage_key("skills") == "test:skills"

    def test_file_backend(self, temp_dir: Path):
        store = create_store(CacheSettings(backend="file", directory=str(temp_dir / "cache"), max_bytes=1024))
        assert isinstance(store.backend, FileStorageBackend)
        assert store.backend.directory == temp_dir / "cache"
        assert store.backend.max_bytes == 1024


class TestUseCollection:
    """Test the consumer API."""

    def test_fresh_cache_snapshot(self, store, seed_cache, transport):
        seed_cache([GO])

        handle = use_collection("skills", record_type=Skill, store=store, transport=transport)

        assert handle.data == [GO]
        assert handle.is_loading is False
        assert handle.is_revalidating is False
        assert handle.error is None
        assert handle.mutation_error is None
        assert handle.state is SyncState.CACHED_FRESH
        assert handle.resource == "skills"

    def test_mount_false(self, store, seed_cache, transport):
        seed_cache([GO])
        handle = use_collection("skills", record_type=Skill, store=store, transport=transport, mount=False)

        assert handle.data == []
        assert handle.state is SyncState.EMPTY
        assert handle.mount() is handle
        assert handle.data == [GO]

    def test_ttl_defaults_to_settings(self, store, transport):
        settings = Settings(cache=CacheSettings(ttl_ms=5_000, backend="memory"))
        handle = use_collection("skills", store=store, transport=transport, settings=settings, mount=False)
        assert handle.engine.ttl_ms == 5_000

        handle = use_collection("skills", 1_000, store=store, transport=transport, settings=settings, mount=False)
        assert handle.engine.ttl_ms == 1_000

    def test_prefix_from_settings(self, store, transport):
        settings = Settings.model_validate({"api": {"prefix": "cms"}, "cache": {"backend": "memory"}})
        handle = use_collection("skills", store=store, transport=transport, settings=settings, mount=False)
        assert handle.engine.coordinator.collection_path("skills") == "/cms/skills"

    def test_default_record_type(self, store, transport):
        handle = use_collection("projects", store=store, transport=transport, mount=False)
        assert handle.engine.record_type is Record

    def test_each_call_builds_its_own_engine(self, store, transport):
        first = use_collection("skills", store=store, transport=transport, mount=False)
        second = use_collection("skills", store=store, transport=transport, mount=False)
        assert first.engine is not second.engine
        assert first.engine.store is second.engine.store

    @pytest.mark.asyncio
    async def test_owned_transport_closed(self, store, mocker):
        close = mocker.patch.object(AiohttpTransport, "close")
        settings = Settings(cache=CacheSettings(backend="memory"))

        handle = use_collection("skills", store=store, settings=settings, mount=False)
        await handle.close()

        close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_given_transport_left_open(self, store, seed_cache, transport):
        seed_cache([GO])

        async with use_collection("skills", record_type=Skill, store=store, transport=transport) as handle:
            assert handle.data == [GO]

        assert transport.closed is False
        assert handle.engine.mounted is False


class TestHandleOperations:
    """Mutations and refetch through the handle."""

    @pytest.mark.asyncio
    async def test_load_then_mutate(self, store, transport):
        transport.reply("GET", SKILLS_PATH, json_response([{"id": "1", "name": "Go"}]))
        transport.reply("POST", SKILLS_PATH, json_response({"id": "2", "name": "Rust"}))
        transport.reply("PUT", f"{SKILLS_PATH}/2", json_response({"id": "2", "name": "Rust", "level": 60}))
        transport.reply("DELETE", f"{SKILLS_PATH}/1", json_response({"success": True}))

        async with use_collection("skills", record_type=Skill, store=store, transport=transport) as handle:
            assert handle.is_loading is True
            await handle.wait_idle()

            await handle.create({"name": "Rust"})
            await handle.update("2", {"level": 60})
            await handle.remove("1")

            assert handle.data == [Skill(id="2", name="Rust", level=60)]

        entry = store.read("skills", Skill)
        assert entry is not None
        assert entry.data == [Skill(id="2", name="Rust", level=60)]

    @pytest.mark.asyncio
    async def test_mutation_error_exposed(self, store, seed_cache, transport):
        seed_cache([GO])
        transport.reply("DELETE", f"{SKILLS_PATH}/1", json_response({"error": "Failed to delete skill"}, 500))
        handle: CollectionHandle[Skill] = use_collection("skills", record_type=Skill, store=store, transport=transport)

        with pytest.raises(MutationFailedError):
            await handle.remove("1")

        assert handle.data == [GO]
        assert handle.mutation_error is not None
        assert handle.mutation_error.message == "Failed to delete skill"
        handle.unmount()

    @pytest.mark.asyncio
    async def test_refetch_and_subscribe(self, store, seed_cache, transport):
        seed_cache([GO])
        transport.reply("GET", SKILLS_PATH, json_response([]))
        handle = use_collection("skills", record_type=Skill, store=store, transport=transport)
        changes: list[int] = []
        handle.subscribe(lambda: changes.append(len(handle.data)))

        await handle.refetch()

        assert handle.data == []
        assert changes[-1] == 0
        handle.unmount()
