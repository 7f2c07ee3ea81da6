# ==============================================================================
# Scalar Counter Store
# ==============================================================================
"""
Get/set/increment/decrement/delete of namespaced scalar counters.

Increment and decrement rely on the store's single-command atomicity
(INCRBY, with a negated amount for decrements). When a TTL is requested,
EXPIRE is sent as a second round trip: a crash between the two leaves a
counter with no expiry. Pass atomic=True to queue both commands in one
MULTI/EXEC transaction instead (single-node only).

Composite values written by set() are stored as a JSON envelope:
    {"value": <value>, "setTime": "<ISO-8601 UTC>"}
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any

from statcounter.core.exceptions import InvalidRecord, UnsupportedInTopology, store_errors
from statcounter.core.keys import KeyNamespace
from statcounter.core.models import AwaitPolicy, CounterIdentity, InFlight, SetEnvelope
from statcounter.infrastructure.dispatch import Dispatcher
from statcounter.infrastructure.topology import StoreClient

logger = logging.getLogger(__name__)

SCALAR_TYPES = (int, float, str)
COMPOSITE_TYPES = (dict, list, tuple)


def validate_ttl(ttl_seconds: int | None) -> None:
    """Reject TTLs the store would refuse or misinterpret."""
    if ttl_seconds is None:
        return
    if isinstance(ttl_seconds, bool) or not isinstance(ttl_seconds, int) or ttl_seconds <= 0:
        raise InvalidRecord(f"ttl_seconds must be a positive integer, got {ttl_seconds!r}")


def validate_amount(amount: int) -> None:
    """Counters only move by whole numbers."""
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidRecord(f"amount must be an integer, got {amount!r}")


def encode_envelope(value: Any, now: datetime | None = None) -> str:
    """Wrap a composite value with its write time."""
    now = now or datetime.now(timezone.utc)
    set_time = now.isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return json.dumps({"value": value, "setTime": set_time})


def decode_envelope(key: str, raw: str) -> SetEnvelope:
    """
    Parse a stored envelope.

    Raises:
        InvalidRecord: If the payload is not an envelope
    """
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        raise InvalidRecord(f"Value at {key} is not a JSON envelope") from None
    if not isinstance(data, dict) or "value" not in data:
        raise InvalidRecord(f"Value at {key} is not a JSON envelope")

    set_time = None
    if data.get("setTime"):
        try:
            set_time = datetime.fromisoformat(data["setTime"].replace("Z", "+00:00"))
        except (AttributeError, ValueError):
            logger.warning("Ignoring unreadable setTime at %s: %r", key, data["setTime"])
    return SetEnvelope(value=data["value"], set_time=set_time)


class CounterStore:
    """
    Scalar counters addressed by CounterIdentity.

    Mutating operations accept an AwaitPolicy. With FIRE_AND_FORGET the call
    returns an InFlight handle immediately; errors are only logged.
    """

    def __init__(
        self,
        client: StoreClient,
        namespace: KeyNamespace,
        dispatcher: Dispatcher,
        cluster: bool = False,
    ):
        """
        Initialize the counter store.

        Args:
            client: Connected async store client (borrowed, not owned)
            namespace: Key namespace used to resolve identities
            dispatcher: Applies the await policy to each mutation
            cluster: True when the client talks to a cluster (no MULTI/EXEC)
        """
        self._client = client
        self._namespace = namespace
        self._dispatcher = dispatcher
        self._cluster = cluster

    async def get(self, identity: CounterIdentity) -> int | None:
        """
        Read a counter.

        Args:
            identity: Counter identity (no wildcards)

        Returns:
            Current integer value, or None if the key does not exist

        Raises:
            InvalidRecord: If the stored value is not an integer
            StoreUnavailable: On connection failure
        """
        key = self._namespace.resolve_exact(identity)
        logger.debug("Getting value for %s", key)
        with store_errors(key):
            raw = await self._client.get(key)
        if raw is None:
            return None
        try:
            return int(raw)
        except ValueError:
            raise InvalidRecord(f"Value at {key} is not an integer: {raw!r}") from None

    async def get_envelope(self, identity: CounterIdentity) -> SetEnvelope | None:
        """
        Read a composite value written by set().

        Returns:
            Decoded envelope, or None if the key does not exist
        """
        key = self._namespace.resolve_exact(identity)
        with store_errors(key):
            raw = await self._client.get(key)
        if raw is None:
            return None
        return decode_envelope(key, raw)

    async def increment(
        self,
        identity: CounterIdentity,
        amount: int = 1,
        ttl_seconds: int | None = None,
        policy: AwaitPolicy = AwaitPolicy.AWAIT,
        atomic: bool = False,
    ) -> int | InFlight[int]:
        """
        Atomically add to a counter, creating it at `amount` if absent.

        Args:
            identity: Counter identity (no wildcards)
            amount: Amount to add (default: 1)
            ttl_seconds: Optional expiry set after the increment (separate round trip)
            policy: AWAIT for the new value, FIRE_AND_FORGET for an InFlight handle
            atomic: Send INCRBY and EXPIRE in one transaction

        Returns:
            New value after increment (or InFlight handle)

        Raises:
            UnsupportedInTopology: If atomic=True with a TTL in cluster mode
        """
        key = self._namespace.resolve_exact(identity)
        validate_amount(amount)
        validate_ttl(ttl_seconds)
        self._check_atomic(atomic, ttl_seconds)
        logger.debug("Incrementing %s by %d", key, amount)
        return await self._dispatcher.submit(
            lambda: self._add(key, amount, ttl_seconds, atomic),
            policy,
            f"incr {key}",
        )

    async def decrement(
        self,
        identity: CounterIdentity,
        amount: int = 1,
        ttl_seconds: int | None = None,
        policy: AwaitPolicy = AwaitPolicy.AWAIT,
        atomic: bool = False,
    ) -> int | InFlight[int]:
        """
        Atomically subtract from a counter, creating it at `-amount` if absent.

        Same contract as increment().
        """
        key = self._namespace.resolve_exact(identity)
        validate_amount(amount)
        validate_ttl(ttl_seconds)
        self._check_atomic(atomic, ttl_seconds)
        logger.debug("Decrementing %s by %d", key, amount)
        return await self._dispatcher.submit(
            lambda: self._add(key, -amount, ttl_seconds, atomic),
            policy,
            f"decr {key}",
        )

    async def set(
        self,
        identity: CounterIdentity,
        value: Any,
        ttl_seconds: int | None = None,
        policy: AwaitPolicy = AwaitPolicy.AWAIT,
    ) -> bool | InFlight[bool]:
        """
        Overwrite a counter with an explicit value.

        Scalars (int, float, str) are stored as-is. Composites (dict, list)
        are stored as a {value, setTime} JSON envelope.

        Args:
            identity: Counter identity (no wildcards)
            value: Value to store
            ttl_seconds: Optional time-to-live in seconds (SET EX)
            policy: AWAIT or FIRE_AND_FORGET

        Returns:
            True once the store acknowledges the write (or InFlight handle)
        """
        key = self._namespace.resolve_exact(identity)
        validate_ttl(ttl_seconds)
        if isinstance(value, bool) or not isinstance(value, SCALAR_TYPES + COMPOSITE_TYPES):
            raise InvalidRecord(f"Unsupported counter value type: {type(value).__name__}")

        if isinstance(value, COMPOSITE_TYPES):
            payload = encode_envelope(value)
            logger.debug("Setting value %s for %s", json.dumps(value), key)
        else:
            payload = value
            logger.debug("Setting value %s for %s", value, key)

        async def _write() -> bool:
            with store_errors(key):
                return bool(await self._client.set(key, payload, ex=ttl_seconds))

        return await self._dispatcher.submit(_write, policy, f"set {key}")

    async def delete(
        self,
        identity: CounterIdentity,
        policy: AwaitPolicy = AwaitPolicy.AWAIT,
    ) -> int | InFlight[int]:
        """
        Delete a counter.

        Returns:
            Number of keys removed (0 if it did not exist), or InFlight handle
        """
        key = self._namespace.resolve_exact(identity)
        logger.debug("Deleting %s", key)

        async def _delete() -> int:
            with store_errors(key):
                return await self._client.delete(key)

        return await self._dispatcher.submit(_delete, policy, f"del {key}")

    def _check_atomic(self, atomic: bool, ttl_seconds: int | None) -> None:
        if atomic and ttl_seconds is not None and self._cluster:
            raise UnsupportedInTopology(
                "Atomic increment with expiry needs MULTI/EXEC, which is not available in cluster mode"
            )

    async def _add(self, key: str, amount: int, ttl_seconds: int | None, atomic: bool) -> int:
        with store_errors(key):
            if atomic and ttl_seconds is not None:
                async with self._client.pipeline(transaction=True) as pipe:
                    pipe.incrby(key, amount)
                    pipe.expire(key, ttl_seconds)
                    value, _ = await pipe.execute()
                return value

            value = await self._client.incrby(key, amount)
            if ttl_seconds is not None:
                # Not atomic with the increment above
                await self._client.expire(key, ttl_seconds)
            return value
