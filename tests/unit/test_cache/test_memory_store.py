"""Tests for the in-memory cache store."""

import asyncio

from fetchplus.fetch.cache.stores import CacheStore, MemoryCacheStore
from tests.helpers.fakes import FakeClock


class TestMemoryCacheStore:
    """Tests for MemoryCacheStore."""

    def test_satisfies_protocol(self) -> None:
        """Test that the store implements CacheStore."""
        assert isinstance(MemoryCacheStore(), CacheStore)

    def test_set_and_get(self) -> None:
        """Test that a stored entry is returned before expiry."""
        store = MemoryCacheStore()

        async def run() -> dict | None:
            await store.set("k", {"a": 1}, 1000)
            return await store.get("k")

        assert asyncio.run(run()) == {"a": 1}
        assert len(store) == 1

    def test_missing_key(self) -> None:
        """Test that an unknown key returns None."""
        assert asyncio.run(MemoryCacheStore().get("missing")) is None

    def test_entry_expires(self) -> None:
        """Test that entries disappear once their TTL elapses."""
        clock = FakeClock(start=0.0)
        store = MemoryCacheStore(clock=clock)
        asyncio.run(store.set("k", {"a": 1}, 500))

        clock.advance(0.4)
        assert asyncio.run(store.get("k")) == {"a": 1}

        clock.advance(0.1)
        assert asyncio.run(store.get("k")) is None
        assert len(store) == 0

    def test_set_sweeps_expired_entries(self) -> None:
        """Test that writing evicts other keys whose TTL has elapsed."""
        clock = FakeClock(start=0.0)
        store = MemoryCacheStore(clock=clock)

        async def run() -> None:
            await store.set("old", {"v": 1}, 100)
            await store.set("live", {"v": 2}, 10_000)
            clock.advance(0.2)
            await store.set("new", {"v": 3}, 100)

        asyncio.run(run())

        assert len(store) == 2
        assert asyncio.run(store.get("old")) is None
        assert asyncio.run(store.get("live")) == {"v": 2}

    def test_set_overwrites(self) -> None:
        """Test that setting a key replaces the entry and its TTL."""
        clock = FakeClock(start=0.0)
        store = MemoryCacheStore(clock=clock)

        async def run() -> None:
            await store.set("k", {"v": 1}, 100)
            await store.set("k", {"v": 2}, 1000)

        asyncio.run(run())
        clock.advance(0.5)

        assert asyncio.run(store.get("k")) == {"v": 2}

    def test_delete_and_clear(self) -> None:
        """Test removing one entry and all entries."""
        store = MemoryCacheStore()

        async def run() -> None:
            await store.set("a", {}, 1000)
            await store.set("b", {}, 1000)
            await store.delete("a")
            await store.delete("missing")
            assert await store.get("a") is None
            await store.clear()

        asyncio.run(run())

        assert len(store) == 0
