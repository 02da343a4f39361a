"""Tests for SyncEngine: instant reads and stale-while-revalidate."""

from __future__ import annotations

import asyncio

import pytest

from foliosync.services import MemoryStorageBackend, PersistentStore, RequestCoordinator, SyncState
from foliosync.shared.errors import ErrorCode, FetchFailedError, TransportError
from foliosync.shared.models import Skill
from tests.helpers import SKILLS_PATH, FakeClock, FakeTransport, json_response, skill

GO = skill("1", "Go", category="Backend")
RUST = skill("2", "Rust", category="Backend")


class TestMountFromCache:
    """Mounting exposes persisted data synchronously."""

    def test_fresh_cache_is_instant(self, make_engine, seed_cache, transport: FakeTransport):
        """A fresh entry is visible on mount with no loading and no request."""
        seed_cache([GO, RUST], age_ms=1_000)
        engine = make_engine()

        engine.mount()

        assert engine.data == [GO, RUST]
        assert engine.state is SyncState.CACHED_FRESH
        assert engine.is_loading is False
        assert engine.is_revalidating is False
        assert transport.calls == []

    @pytest.mark.asyncio
    async def test_stale_cache_revalidates(self, make_engine, seed_cache, transport, store, clock):
        """A stale entry is visible at once while the refresh runs."""
        seed_cache([GO], age_ms=120_000)
        reply = transport.pending("GET", SKILLS_PATH)
        engine = make_engine()

        engine.mount()

        assert engine.data == [GO]
        assert engine.is_loading is False
        assert engine.is_revalidating is True
        assert engine.state is SyncState.VALIDATING

        reply.set_result(json_response([{"id": "1", "name": "Golang"}, {"id": "2", "name": "Rust"}]))
        await engine.wait_idle()

        assert [r.name for r in engine.data] == ["Golang", "Rust"]
        assert engine.is_revalidating is False
        assert engine.state is SyncState.READY
        entry = store.read("skills", Skill)
        assert entry is not None
        assert entry.timestamp == clock()
        assert entry.data == engine.data

    @pytest.mark.asyncio
    async def test_no_cache_loads(self, make_engine, transport):
        reply = transport.pending("GET", SKILLS_PATH)
        engine = make_engine()

        engine.mount()

        assert engine.data == []
        assert engine.is_loading is True
        assert engine.state is SyncState.LOADING

        reply.set_result(json_response([{"id": "1", "name": "Go"}]))
        await engine.wait_idle()

        assert engine.is_loading is False
        assert engine.data == [Skill(id="1", name="Go")]

    def test_mount_is_idempotent(self, make_engine, seed_cache):
        seed_cache([GO])
        engine = make_engine()
        engine.mount()
        engine.mount()
        assert engine.mounted
        assert engine.data == [GO]

    @pytest.mark.asyncio
    async def test_corrupt_cache_mounts_as_empty(self, make_engine, backend, store, transport):
        """A corrupt entry is purged and the collection loads from the network."""
        backend.set(store.storage_key("skills"), "{broken")
        transport.reply("GET", SKILLS_PATH, json_response([]))
        engine = make_engine()

        engine.mount()

        assert engine.data == []
        assert engine.is_loading is True
        await engine.wait_idle()
        assert engine.state is SyncState.READY


class TestReload:
    """A successful fetch survives re-instantiation."""

    @pytest.mark.asyncio
    async def test_reload_exposes_fetched_data(self, make_engine, transport, store, clock):
        transport.reply("GET", SKILLS_PATH, json_response([{"id": "1", "name": "Go"}]))
        first = make_engine()
        first.mount()
        await first.wait_idle()
        first.unmount()

        clock.advance(30_000)
        second = make_engine()
        second.mount()

        assert second.data == [Skill(id="1", name="Go")]
        assert second.state is SyncState.CACHED_FRESH
        entry = store.read("skills", Skill)
        assert entry is not None and store.is_fresh(entry, second.ttl_ms)
        assert len(transport.calls) == 1


class TestSupersession:
    """Only the newest revalidation is applied."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("honor_cancellation", [True, False])
    async def test_older_fetch_never_applied(self, make_engine, store, clock, honor_cancellation):
        transport = FakeTransport(honor_cancellation=honor_cancellation)
        engine = make_engine(coordinator=RequestCoordinator(transport, Skill))
        first = transport.pending("GET", SKILLS_PATH)
        second = transport.pending("GET", SKILLS_PATH)

        engine.mount()
        await asyncio.sleep(0)
        engine.refetch()
        await asyncio.sleep(0)

        second.set_result(json_response([{"id": "new", "name": "Fresh"}]))
        await asyncio.sleep(0.01)
        first.set_result(json_response([{"id": "old", "name": "Stale"}]))
        await engine.wait_idle()

        assert [r.id for r in engine.data] == ["new"]
        assert engine.error is None
        entry = store.read("skills", Skill)
        assert entry is not None and [r.id for r in entry.data] == ["new"]


class TestFetchFailure:
    """Failed revalidations keep the last known-good data."""

    @pytest.mark.asyncio
    async def test_failure_keeps_data_and_sets_error(self, make_engine, seed_cache, transport, store):
        seeded = seed_cache([GO], age_ms=120_000)
        transport.reply("GET", SKILLS_PATH, json_response({"error": "down"}, status=503))
        engine = make_engine()

        engine.mount()
        await engine.wait_idle()

        assert engine.data == [GO]
        assert isinstance(engine.error, FetchFailedError)
        assert engine.state is SyncState.READY
        assert engine.is_revalidating is False
        entry = store.read("skills", Skill)
        assert entry is not None and entry.timestamp == seeded.timestamp
        assert engine.state is SyncState.READY
        assert engine.is_revalidating is False

    @pytest.mark.asyncio
    async def test_unmount_during_first_load(self, make_engine, transport):
        """Unmounting before anything loaded leaves the engine empty, not loading."""
        reply = transport.pending("GET", SKILLS_PATH)
        engine = make_engine()
        engine.mount()
        await asyncio.sleep(0)
        assert engine.is_loading is True

        engine.unmount()
        reply.set_result(json_response([{"id": "1", "name": "Go"}]))
        await engine.wait_idle()

        assert engine.state is SyncState.EMPTY
        assert engine.is_loading is False
        assert engine.data == []

    @pytest.mark.asyncio
    async def test_success_clears_error(self, make_engine, transport):
        transport.reply(
            "GET",
            SKILLS_PATH,
            TransportError(ErrorCode.NETWORK_ERROR, "offline"),
            json_response([{"id": "1", "name": "Go"}]),
        )
        engine = make_engine()
        engine.mount()
        await engine.wait_idle()
        assert engine.error is not None
        assert engine.is_loading is False

        await engine.refetch()

        assert engine.error is None
        assert engine.data == [Skill(id="1", name="Go")]

    @pytest.mark.asyncio
    async def test_cancelled_fetch_sets_no_error(self, make_engine, seed_cache, transport):
        seed_cache([GO], age_ms=120_000)
        transport.pending("GET", SKILLS_PATH)
        engine = make_engine()
        engine.mount()
        await asyncio.sleep(0)

        engine.coordinator.cancel("skills")
        await engine.wait_idle()

        assert engine.error is None
        assert engine.data == [GO]

    @pytest.mark.asyncio
    async def test_quota_failure_keeps_engine_working(self, make_engine, transport, clock):
        store = PersistentStore(MemoryStorageBackend(max_bytes=4), clock=clock)
        transport.reply("GET", SKILLS_PATH, json_response([{"id": "1", "name": "Go"}]))
        engine = make_engine(store=store)

        engine.mount()
        await engine.wait_idle()

        assert engine.data == [Skill(id="1", name="Go")]
        assert engine.state is SyncState.READY
        assert store.read("skills", Skill) is None


class TestLifecycle:
    """Test unmount, refetch and listeners."""

    @pytest.mark.asyncio
    async def test_unmount_aborts_fetch(self, make_engine, seed_cache, transport, store):
        seeded = seed_cache([GO], age_ms=120_000)
        reply = transport.pending("GET", SKILLS_PATH)
        engine = make_engine()
        engine.mount()
        await asyncio.sleep(0)
        token = transport.calls[0].token

        engine.unmount()
        reply.set_result(json_response([{"id": "9", "name": "Late"}]))
        await engine.wait_idle()

        assert token is not None and token.cancelled
        assert engine.data == [GO]
        assert engine.mounted is False
        entry = store.read("skills", Skill)
        assert entry is not None and entry.timestamp == seeded.timestamp

    @pytest.mark.asyncio
    async def test_refetch_on_fresh_cache(self, make_engine, seed_cache, transport):
        seed_cache([GO])
        transport.reply("GET", SKILLS_PATH, json_response([{"id": "2", "name": "Rust"}]))
        engine = make_engine()
        engine.mount()

        task = engine.refetch()
        assert engine.is_revalidating is True
        await task

        assert engine.data == [Skill(id="2", name="Rust")]

    @pytest.mark.asyncio
    async def test_listeners_see_each_change(self, make_engine, transport):
        transport.reply("GET", SKILLS_PATH, json_response([{"id": "1", "name": "Go"}]))
        engine = make_engine()
        states: list[SyncState] = []
        unsubscribe = engine.subscribe(lambda: states.append(engine.state))

        engine.mount()
        await engine.wait_idle()
        unsubscribe()
        await engine.refetch()

        assert states[0] is SyncState.LOADING
        assert states[-1] is SyncState.READY
        assert len(states) >= 3

    def test_persist_confirmed_without_fetch(self, make_engine, store):
        engine = make_engine()
        engine.collection.replace_all([GO])

        assert engine.persist_confirmed() is True

        entry = store.read("skills", Skill)
        assert entry is not None
        assert entry.timestamp == 0
        assert not store.is_fresh(entry, engine.ttl_ms)

    def test_engines_share_store(self, make_engine, seed_cache, clock: FakeClock):
        """Engines on different resources read their own entries."""
        seed_cache([GO])
        seed_cache([RUST], resource="tools")
        skills = make_engine()
        tools = make_engine(resource="tools")

        skills.mount()
        tools.mount()

        assert skills.data == [GO]
        assert tools.data == [RUST]
