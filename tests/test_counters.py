# ==============================================================================
# Tests for Scalar Counters
# ==============================================================================
"""
Tests for CounterStore through StatsService, backed by fakeredis.

Tests cover:
- get/set/delete basics
- Atomic increment and decrement under concurrency
- TTL handling (separate EXPIRE and the atomic transaction variant)
- Composite values stored as {value, setTime} envelopes
- Fire-and-forget dispatch and failure logging
- Connection failures surfaced as StoreUnavailable
"""

import asyncio
import json
import logging
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from statcounter.core.exceptions import InvalidIdentity, InvalidRecord, StoreUnavailable
from statcounter.core.models import AwaitPolicy, CounterIdentity, InFlight
from statcounter.infrastructure.counters import decode_envelope, encode_envelope
from statcounter.infrastructure.service import StatsService

ONLINE = CounterIdentity("count", "online", host="web-1", instance_id="urn1")
ONLINE_KEY = "app:acme:billing:test:stat:count:online:web-1:urn1"
JOBS = CounterIdentity.global_("count", "jobs")
JOBS_KEY = "app:acme:billing:test:stat:count:jobs"


# ==============================================================================
# Get / Set / Delete
# ==============================================================================


class TestGetSet:
    """Tests for reading and overwriting counters."""

    @pytest.mark.asyncio
    async def test_get_absent_returns_none(self, stats):
        assert await stats.get(ONLINE) is None

    @pytest.mark.asyncio
    async def test_set_then_get(self, stats, fake_redis):
        assert await stats.set(JOBS, 42) is True
        assert await stats.get(JOBS) == 42
        assert await fake_redis.get(JOBS_KEY) == "42"

    @pytest.mark.asyncio
    async def test_set_scalar_string_stored_raw(self, stats, fake_redis):
        await stats.set(JOBS, "17")
        assert await fake_redis.get(JOBS_KEY) == "17"

    @pytest.mark.asyncio
    async def test_set_with_ttl(self, stats, fake_redis):
        await stats.set(JOBS, 5, ttl_seconds=30)
        ttl = await fake_redis.ttl(JOBS_KEY)
        assert 0 < ttl <= 30

    @pytest.mark.asyncio
    async def test_set_with_ttl_uses_set_ex(self, settings):
        client = MagicMock()
        client.set = AsyncMock(return_value=True)
        client.setex = AsyncMock(side_effect=AssertionError("setex is deprecated"))

        assert await StatsService(settings, client=client).set(JOBS, 5, ttl_seconds=30) is True
        client.set.assert_awaited_once_with(JOBS_KEY, 5, ex=30)
        client.setex.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_get_non_integer_raises(self, stats, fake_redis):
        await fake_redis.set(JOBS_KEY, "not-a-number")
        with pytest.raises(InvalidRecord, match="not an integer"):
            await stats.get(JOBS)

    @pytest.mark.asyncio
    async def test_set_rejects_bool(self, stats):
        with pytest.raises(InvalidRecord, match="bool"):
            await stats.set(JOBS, True)

    @pytest.mark.asyncio
    async def test_set_rejects_unsupported_type(self, stats):
        with pytest.raises(InvalidRecord, match="object"):
            await stats.set(JOBS, object())

    @pytest.mark.asyncio
    async def test_delete(self, stats):
        await stats.set(JOBS, 1)
        assert await stats.delete(JOBS) == 1
        assert await stats.get(JOBS) is None

    @pytest.mark.asyncio
    async def test_delete_absent_returns_zero(self, stats):
        assert await stats.delete(JOBS) == 0

    @pytest.mark.asyncio
    async def test_wildcard_identity_rejected(self, stats):
        with pytest.raises(InvalidIdentity):
            await stats.get(CounterIdentity("count", "online", host="*"))


# ==============================================================================
# Envelopes
# ==============================================================================


class TestEnvelope:
    """Tests for composite values written by set()."""

    @pytest.mark.asyncio
    async def test_dict_stored_as_envelope(self, stats, fake_redis):
        await stats.set(JOBS, {"a": 1})

        stored = json.loads(await fake_redis.get(JOBS_KEY))
        assert stored["value"] == {"a": 1}
        assert stored["setTime"].endswith("Z")

    @pytest.mark.asyncio
    async def test_get_envelope(self, stats):
        before = datetime.now(timezone.utc).replace(microsecond=0)
        await stats.set(JOBS, [1, 2, 3])

        envelope = await stats.get_envelope(JOBS)
        assert envelope.value == [1, 2, 3]
        assert envelope.set_time >= before

    @pytest.mark.asyncio
    async def test_get_envelope_absent(self, stats):
        assert await stats.get_envelope(JOBS) is None

    @pytest.mark.asyncio
    async def test_get_on_envelope_raises(self, stats):
        await stats.set(JOBS, {"a": 1})
        with pytest.raises(InvalidRecord):
            await stats.get(JOBS)

    def test_encode_fixed_time(self):
        now = datetime(2024, 5, 1, 12, 30, 0, 123000, tzinfo=timezone.utc)
        payload = json.loads(encode_envelope({"x": 1}, now=now))
        assert payload == {"value": {"x": 1}, "setTime": "2024-05-01T12:30:00.123Z"}

    def test_decode_rejects_plain_value(self):
        with pytest.raises(InvalidRecord, match="not a JSON envelope"):
            decode_envelope("k", "42")

    def test_decode_rejects_garbage(self):
        with pytest.raises(InvalidRecord):
            decode_envelope("k", "{not json")

    def test_decode_tolerates_bad_set_time(self, caplog):
        with caplog.at_level(logging.WARNING):
            envelope = decode_envelope("k", '{"value": 1, "setTime": "yesterday"}')
        assert envelope.value == 1
        assert envelope.set_time is None
        assert "unreadable setTime" in caplog.text


# ==============================================================================
# Increment / Decrement
# ==============================================================================


class TestIncrement:
    """Tests for atomic increments and decrements."""

    @pytest.mark.asyncio
    async def test_increment_creates_at_one(self, stats):
        assert await stats.increment(ONLINE) == 1
        assert await stats.get(ONLINE) == 1

    @pytest.mark.asyncio
    async def test_increment_by_amount(self, stats):
        await stats.increment(ONLINE, amount=5)
        assert await stats.increment(ONLINE, amount=3) == 8

    @pytest.mark.asyncio
    async def test_decrement_creates_negative(self, stats):
        assert await stats.decrement(ONLINE) == -1

    @pytest.mark.asyncio
    async def test_decrement_by_amount(self, stats):
        await stats.set(ONLINE, 10)
        assert await stats.decrement(ONLINE, amount=4) == 6

    @pytest.mark.asyncio
    async def test_concurrent_increments_are_not_lost(self, stats):
        await asyncio.gather(*(stats.increment(JOBS) for _ in range(50)))
        assert await stats.get(JOBS) == 50

    @pytest.mark.asyncio
    async def test_concurrent_mixed_updates(self, stats):
        ops = [stats.increment(JOBS) for _ in range(30)]
        ops += [stats.decrement(JOBS) for _ in range(10)]
        await asyncio.gather(*ops)
        assert await stats.get(JOBS) == 20

    @pytest.mark.asyncio
    async def test_increment_with_ttl(self, stats, fake_redis):
        await stats.increment(ONLINE, ttl_seconds=60)
        ttl = await fake_redis.ttl(ONLINE_KEY)
        assert 0 < ttl <= 60

    @pytest.mark.asyncio
    async def test_increment_refreshes_ttl(self, stats, fake_redis):
        await stats.increment(ONLINE, ttl_seconds=10)
        await stats.increment(ONLINE, ttl_seconds=100)
        assert await fake_redis.ttl(ONLINE_KEY) > 10

    @pytest.mark.asyncio
    async def test_increment_without_ttl_has_no_expiry(self, stats, fake_redis):
        await stats.increment(ONLINE)
        assert await fake_redis.ttl(ONLINE_KEY) == -1

    @pytest.mark.asyncio
    async def test_counter_expires(self, stats):
        await stats.increment(ONLINE, ttl_seconds=1)
        await asyncio.sleep(1.1)
        assert await stats.get(ONLINE) is None

    @pytest.mark.asyncio
    async def test_atomic_increment_with_ttl(self, stats, fake_redis):
        assert await stats.increment(ONLINE, amount=2, ttl_seconds=60, atomic=True) == 2
        assert await stats.increment(ONLINE, ttl_seconds=60, atomic=True) == 3
        assert 0 < await fake_redis.ttl(ONLINE_KEY) <= 60

    @pytest.mark.asyncio
    async def test_atomic_decrement_with_ttl(self, stats):
        assert await stats.decrement(ONLINE, amount=2, ttl_seconds=60, atomic=True) == -2

    @pytest.mark.asyncio
    @pytest.mark.parametrize("ttl", [0, -5, 1.5, True, "60"])
    async def test_invalid_ttl_rejected(self, stats, ttl):
        with pytest.raises(InvalidRecord, match="ttl_seconds"):
            await stats.increment(ONLINE, ttl_seconds=ttl)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", [1.5, "2", True])
    async def test_invalid_amount_rejected(self, stats, amount):
        with pytest.raises(InvalidRecord, match="amount"):
            await stats.increment(ONLINE, amount=amount)

    @pytest.mark.asyncio
    async def test_increment_on_non_integer_value_fails(self, stats, fake_redis):
        await fake_redis.set(ONLINE_KEY, "abc")
        with pytest.raises(InvalidRecord, match="Store rejected command") as exc_info:
            await stats.increment(ONLINE)
        assert exc_info.value.key == ONLINE_KEY

    @pytest.mark.asyncio
    async def test_increment_on_hash_key_fails(self, stats, fake_redis):
        await fake_redis.hset(JOBS_KEY, "a", "1")
        with pytest.raises(InvalidRecord, match=JOBS_KEY):
            await stats.increment(JOBS)

    @pytest.mark.asyncio
    async def test_atomic_increment_on_hash_key_fails(self, stats, fake_redis):
        await fake_redis.hset(JOBS_KEY, "a", "1")
        with pytest.raises(InvalidRecord):
            await stats.increment(JOBS, ttl_seconds=60, atomic=True)


# ==============================================================================
# Fire-and-Forget
# ==============================================================================


class TestFireAndForget:
    """Tests for the FIRE_AND_FORGET await policy."""

    @pytest.mark.asyncio
    async def test_returns_handle_not_value(self, stats):
        handle = await stats.increment(JOBS, policy=AwaitPolicy.FIRE_AND_FORGET)
        assert isinstance(handle, InFlight)
        assert await handle.result() == 1

    @pytest.mark.asyncio
    async def test_update_applied_after_wait(self, stats):
        for _ in range(5):
            await stats.increment(JOBS, policy=AwaitPolicy.FIRE_AND_FORGET)
        await stats.wait_for_pending()
        assert await stats.get(JOBS) == 5

    @pytest.mark.asyncio
    async def test_set_and_delete_fire_and_forget(self, stats):
        handle = await stats.set(JOBS, 9, policy=AwaitPolicy.FIRE_AND_FORGET)
        assert await handle.result() is True

        handle = await stats.delete(JOBS, policy=AwaitPolicy.FIRE_AND_FORGET)
        assert await handle.result() == 1

    @pytest.mark.asyncio
    async def test_failure_is_logged_not_raised(self, stats, fake_redis, caplog):
        await fake_redis.set(JOBS_KEY, "abc")

        with caplog.at_level(logging.ERROR, logger="statcounter.infrastructure.dispatch"):
            handle = await stats.increment(JOBS, policy=AwaitPolicy.FIRE_AND_FORGET)
            await stats.wait_for_pending()

        assert handle.done()
        assert "Fire-and-forget incr" in caplog.text
        assert JOBS_KEY in caplog.text

    @pytest.mark.asyncio
    async def test_close_waits_for_pending(self, settings, fake_redis):
        service = StatsService(settings, client=fake_redis)
        await service.increment(JOBS, policy=AwaitPolicy.FIRE_AND_FORGET)
        await service.close()

        assert await fake_redis.get(JOBS_KEY) == "1"

    @pytest.mark.asyncio
    async def test_repr(self, stats):
        handle = await stats.increment(JOBS, policy=AwaitPolicy.FIRE_AND_FORGET)
        await handle.result()
        assert repr(handle) == f"<InFlight incr {JOBS_KEY} (done)>"


# ==============================================================================
# Store Failures
# ==============================================================================


class TestStoreFailures:
    """Tests for connection errors surfaced as StoreUnavailable."""

    @pytest.fixture()
    def broken_stats(self, settings):
        client = MagicMock()
        client.get = AsyncMock(side_effect=RedisConnectionError("Connection refused"))
        client.incrby = AsyncMock(side_effect=RedisConnectionError("Connection refused"))
        return StatsService(settings, client=client)

    @pytest.mark.asyncio
    async def test_get_raises_store_unavailable(self, broken_stats):
        with pytest.raises(StoreUnavailable) as exc_info:
            await broken_stats.get(JOBS)
        assert exc_info.value.key == JOBS_KEY
        assert "Connection refused" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_increment_raises_store_unavailable(self, broken_stats):
        with pytest.raises(StoreUnavailable):
            await broken_stats.increment(JOBS)

    @pytest.mark.asyncio
    async def test_fire_and_forget_failure_kept_on_handle(self, broken_stats):
        handle = await broken_stats.increment(JOBS, policy=AwaitPolicy.FIRE_AND_FORGET)
        with pytest.raises(StoreUnavailable):
            await handle.result()
