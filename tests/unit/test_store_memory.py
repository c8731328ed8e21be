"""Tests for the in-memory key-value store."""

import pytest

from dotdotdot.store import InMemoryStore, StoreError


class TestBasicOperations:
    @pytest.mark.asyncio
    async def test_set_and_get(self, store) -> None:
        await store.set("a", {"bullets": ["x"], "n": 1})
        assert await store.get("a") == {"bullets": ["x"], "n": 1}

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self, store) -> None:
        assert await store.get("missing") is None

    @pytest.mark.asyncio
    async def test_values_are_copies(self, store) -> None:
        value = {"items": [1]}
        await store.set("a", value)
        value["items"].append(2)

        assert await store.get("a") == {"items": [1]}

    @pytest.mark.asyncio
    async def test_unserialisable_value_raises(self, store) -> None:
        with pytest.raises(StoreError):
            await store.set("a", object())

    @pytest.mark.asyncio
    async def test_delete_counts_existing_keys(self, store) -> None:
        await store.set("a", 1)
        await store.set("b", 2)

        assert await store.delete("a", "b", "c") == 2
        assert await store.exists("a") is False

    @pytest.mark.asyncio
    async def test_ping_and_health(self, store) -> None:
        assert await store.ping() is True
        assert await store.is_healthy() is True


class TestCounters:
    @pytest.mark.asyncio
    async def test_incr_from_missing(self, store) -> None:
        assert await store.incr("c") == 1
        assert await store.incr("c") == 2
        assert await store.get("c") == 2

    @pytest.mark.asyncio
    async def test_decr(self, store) -> None:
        await store.set("c", 5)
        assert await store.decr("c") == 4

    @pytest.mark.asyncio
    async def test_incr_non_integer_raises(self, store) -> None:
        await store.set("c", "not-a-number")
        with pytest.raises(StoreError):
            await store.incr("c")

    @pytest.mark.asyncio
    async def test_incr_keeps_expiry(self, store, clock) -> None:
        await store.incr("c")
        await store.expire("c", 1000)
        await store.incr("c")

        assert await store.ttl("c") == 1000


class TestExpiry:
    @pytest.mark.asyncio
    async def test_value_expires(self, store, clock) -> None:
        await store.set("a", 1, ttl_ms=500)

        clock.advance(499)
        assert await store.get("a") == 1

        clock.advance(1)
        assert await store.get("a") is None
        assert await store.exists("a") is False

    @pytest.mark.asyncio
    async def test_ttl_reports_remaining_ms(self, store, clock) -> None:
        await store.set("a", 1, ttl_ms=1000)
        clock.advance(250)

        assert await store.ttl("a") == 750

    @pytest.mark.asyncio
    async def test_ttl_none_for_persistent_or_missing(self, store) -> None:
        await store.set("a", 1)

        assert await store.ttl("a") is None
        assert await store.ttl("missing") is None

    @pytest.mark.asyncio
    async def test_expire_missing_key(self, store) -> None:
        assert await store.expire("missing", 1000) is False

    @pytest.mark.asyncio
    async def test_expire_existing_key(self, store, clock) -> None:
        await store.set("a", 1)
        assert await store.expire("a", 100) is True

        clock.advance(100)
        assert await store.get("a") is None

    @pytest.mark.asyncio
    async def test_incr_after_expiry_restarts(self, store, clock) -> None:
        await store.incr("c")
        await store.expire("c", 100)
        clock.advance(100)

        assert await store.incr("c") == 1


class TestKeys:
    @pytest.mark.asyncio
    async def test_keys_are_relative_and_filtered(self, store) -> None:
        await store.set("cache:1", 1)
        await store.set("cache:2", 2)
        await store.set("rate_limit:x", 3)

        assert sorted(await store.keys("cache:*")) == ["cache:1", "cache:2"]
        assert len(await store.keys()) == 3

    @pytest.mark.asyncio
    async def test_keys_skip_expired(self, store, clock) -> None:
        await store.set("a", 1, ttl_ms=10)
        await store.set("b", 2)
        clock.advance(10)

        assert await store.keys() == ["b"]

    @pytest.mark.asyncio
    async def test_flush(self, store) -> None:
        await store.set("a", 1)
        await store.set("b", 2)

        assert await store.flush() == 2
        assert await store.keys() == []

    @pytest.mark.asyncio
    async def test_unprefixed_store(self, clock) -> None:
        plain = InMemoryStore(clock=clock)
        await plain.set("k", 1)

        assert await plain.keys() == ["k"]


class TestExpiredEntryReclamation:
    """Expired keys are reclaimed on writes even if never read again."""

    @pytest.mark.asyncio
    async def test_write_purges_untouched_expired_keys(self, store, clock) -> None:
        for i in range(100):
            await store.set(f"one-off:{i}", 1, ttl_ms=1000)
        await store.set("persistent", 1)

        clock.advance(1000)
        await store.set("trigger", 1)

        assert set(store._data) == {"test:persistent", "test:trigger"}

    @pytest.mark.asyncio
    async def test_counters_reclaimed_after_window(self, store, clock) -> None:
        for i in range(50):
            await store.incr(f"rate_limit:{i}")
            await store.expire(f"rate_limit:{i}", 1000)

        clock.advance(1000)
        await store.incr("rate_limit:new")

        assert list(store._data) == ["test:rate_limit:new"]

    @pytest.mark.asyncio
    async def test_rewritten_key_keeps_new_deadline(self, store, clock) -> None:
        await store.set("k", "old", ttl_ms=100)
        await store.set("k", "new", ttl_ms=1000)

        clock.advance(100)
        await store.set("other", 1)

        assert await store.get("k") == "new"

    @pytest.mark.asyncio
    async def test_extended_expiry_not_purged_early(self, store, clock) -> None:
        await store.set("k", 1, ttl_ms=100)
        await store.expire("k", 1000)

        clock.advance(500)
        await store.set("other", 1)

        assert await store.get("k") == 1
