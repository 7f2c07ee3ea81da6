# ==============================================================================
# Hash Counter Store
# ==============================================================================
"""
Per-field counters stored in one Redis hash per identity.

Each field is incremented independently with HINCRBY; the TTL covers the
whole hash. When a TTL is given, HINCRBY and EXPIRE go out in a single
pipeline. The pipeline is not a transaction: commands are sent in order but a
failure between them can still leave the hash without expiry.
"""

import logging

from statcounter.core.exceptions import InvalidIdentity, InvalidRecord, store_errors
from statcounter.core.keys import KeyNamespace
from statcounter.core.models import WILDCARD, AwaitPolicy, CounterIdentity, InFlight
from statcounter.infrastructure.counters import validate_amount, validate_ttl
from statcounter.infrastructure.dispatch import Dispatcher
from statcounter.infrastructure.topology import StoreClient

logger = logging.getLogger(__name__)


def validate_field(field: str) -> None:
    if not isinstance(field, str) or not field:
        raise InvalidIdentity(f"Hash field must be a non-empty string, got {field!r}")
    if WILDCARD in field:
        raise InvalidIdentity(f"Hash field must not contain a wildcard: {field!r}")


class HashCounterStore:
    """Hash-shaped counter records addressed by CounterIdentity."""

    def __init__(self, client: StoreClient, namespace: KeyNamespace, dispatcher: Dispatcher):
        self._client = client
        self._namespace = namespace
        self._dispatcher = dispatcher

    async def increment_field(
        self,
        identity: CounterIdentity,
        field: str,
        amount: int = 1,
        ttl_seconds: int | None = None,
        policy: AwaitPolicy = AwaitPolicy.AWAIT,
    ) -> int | InFlight[int]:
        """
        Atomically add to one field of a hash counter.

        Args:
            identity: Counter identity (no wildcards)
            field: Hash field name
            amount: Amount to add (default: 1)
            ttl_seconds: Optional expiry for the whole hash
            policy: AWAIT for the new value, FIRE_AND_FORGET for an InFlight handle

        Returns:
            New field value after increment (or InFlight handle)
        """
        key = self._namespace.resolve_exact(identity)
        validate_field(field)
        validate_amount(amount)
        validate_ttl(ttl_seconds)
        logger.debug("Incrementing hash %s field %s by %d", key, field, amount)
        return await self._dispatcher.submit(
            lambda: self._add(key, field, amount, ttl_seconds),
            policy,
            f"hincr {key} {field}",
        )

    async def decrement_field(
        self,
        identity: CounterIdentity,
        field: str,
        amount: int = 1,
        ttl_seconds: int | None = None,
        policy: AwaitPolicy = AwaitPolicy.AWAIT,
    ) -> int | InFlight[int]:
        """Subtract from one field of a hash counter (HINCRBY with -amount)."""
        key = self._namespace.resolve_exact(identity)
        validate_field(field)
        validate_amount(amount)
        validate_ttl(ttl_seconds)
        logger.debug("Decrementing hash %s field %s by %d", key, field, amount)
        return await self._dispatcher.submit(
            lambda: self._add(key, field, -amount, ttl_seconds),
            policy,
            f"hdecr {key} {field}",
        )

    async def read_all(self, identity: CounterIdentity) -> dict[str, int]:
        """
        Read every field of a hash counter.

        Returns:
            Mapping of field to integer value ({} if the hash does not exist)

        Raises:
            InvalidRecord: If a field does not hold an integer
        """
        key = self._namespace.resolve_exact(identity)
        with store_errors(key):
            data = await self._client.hgetall(key)

        counts = {}
        for field, raw in data.items():
            try:
                counts[field] = int(raw)
            except ValueError:
                raise InvalidRecord(f"Field {field} of {key} is not an integer: {raw!r}") from None
        return counts

    async def _add(self, key: str, field: str, amount: int, ttl_seconds: int | None) -> int:
        with store_errors(key):
            if ttl_seconds is None:
                return await self._client.hincrby(key, field, amount)

            async with self._client.pipeline(transaction=False) as pipe:
                pipe.hincrby(key, field, amount)
                pipe.expire(key, ttl_seconds)
                value, _ = await pipe.execute()
            return value
