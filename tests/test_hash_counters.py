# ==============================================================================
# Tests for Hash Counters
# ==============================================================================
"""
Tests for HashCounterStore through StatsService, backed by fakeredis.
"""

import asyncio

import pytest

from statcounter.core.exceptions import InvalidIdentity, InvalidRecord
from statcounter.core.models import AwaitPolicy, CounterIdentity, InFlight

EVENTS = CounterIdentity.global_("count", "events")
EVENTS_KEY = "app:acme:billing:test:stat:count:events"


class TestHashCounters:
    """Tests for per-field increments and reads."""

    @pytest.mark.asyncio
    async def test_read_all_absent_is_empty(self, stats):
        assert await stats.read_all_fields(EVENTS) == {}

    @pytest.mark.asyncio
    async def test_fields_are_independent(self, stats):
        await stats.increment_field(EVENTS, "a")
        await stats.increment_field(EVENTS, "a")
        await stats.increment_field(EVENTS, "b", amount=5)

        assert await stats.read_all_fields(EVENTS) == {"a": 2, "b": 5}

    @pytest.mark.asyncio
    async def test_increment_returns_new_field_value(self, stats):
        assert await stats.increment_field(EVENTS, "a", amount=3) == 3
        assert await stats.increment_field(EVENTS, "a") == 4

    @pytest.mark.asyncio
    async def test_decrement_field(self, stats):
        await stats.increment_field(EVENTS, "a", amount=10)
        assert await stats.decrement_field(EVENTS, "a", amount=4) == 6
        assert await stats.decrement_field(EVENTS, "b") == -1

    @pytest.mark.asyncio
    async def test_concurrent_field_increments(self, stats):
        await asyncio.gather(*(stats.increment_field(EVENTS, "a") for _ in range(25)))
        assert await stats.read_all_fields(EVENTS) == {"a": 25}

    @pytest.mark.asyncio
    async def test_ttl_covers_whole_hash(self, stats, fake_redis):
        await stats.increment_field(EVENTS, "a")
        await stats.increment_field(EVENTS, "b", ttl_seconds=60)

        ttl = await fake_redis.ttl(EVENTS_KEY)
        assert 0 < ttl <= 60
        assert await fake_redis.hgetall(EVENTS_KEY) == {"a": "1", "b": "1"}

    @pytest.mark.asyncio
    async def test_no_ttl_leaves_hash_persistent(self, stats, fake_redis):
        await stats.increment_field(EVENTS, "a")
        assert await fake_redis.ttl(EVENTS_KEY) == -1

    @pytest.mark.asyncio
    async def test_fire_and_forget(self, stats):
        handle = await stats.increment_field(EVENTS, "a", policy=AwaitPolicy.FIRE_AND_FORGET)
        assert isinstance(handle, InFlight)
        await stats.wait_for_pending()
        assert await stats.read_all_fields(EVENTS) == {"a": 1}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("field", ["", "a*", None])
    async def test_invalid_field_rejected(self, stats, field):
        with pytest.raises(InvalidIdentity):
            await stats.increment_field(EVENTS, field)

    @pytest.mark.asyncio
    async def test_non_integer_field_raises(self, stats, fake_redis):
        await fake_redis.hset(EVENTS_KEY, "a", "oops")
        with pytest.raises(InvalidRecord, match="Field a"):
            await stats.read_all_fields(EVENTS)

    @pytest.mark.asyncio
    async def test_wildcard_identity_rejected(self, stats):
        with pytest.raises(InvalidIdentity):
            await stats.read_all_fields(CounterIdentity("count", "*", host=None))

    @pytest.mark.asyncio
    async def test_read_all_on_string_key_raises(self, stats, fake_redis):
        await fake_redis.set(EVENTS_KEY, "5")
        with pytest.raises(InvalidRecord, match="Store rejected command"):
            await stats.read_all_fields(EVENTS)

    @pytest.mark.asyncio
    async def test_increment_field_on_string_key_raises(self, stats, fake_redis):
        await fake_redis.set(EVENTS_KEY, "5")
        with pytest.raises(InvalidRecord, match=EVENTS_KEY):
            await stats.increment_field(EVENTS, "a", ttl_seconds=60)
