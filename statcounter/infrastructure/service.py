# ==============================================================================
# Stats Service
# ==============================================================================
"""
Owned service instance bundling key resolution, counters, hash counters and
scans over one store client.

Build one per process (or per test) and pass it to the code that needs it:

    async with StatsService() as stats:
        online = CounterIdentity.scoped("count", "online", instance_id=urn)
        await stats.increment(online, ttl_seconds=60)
        total = await stats.online_server_count()
"""

import logging
from typing import Any

from statcounter.core.keys import KeyNamespace
from statcounter.core.models import (
    WILDCARD,
    AwaitPolicy,
    CounterIdentity,
    InFlight,
    ScanResult,
    SetEnvelope,
)
from statcounter.infrastructure.counters import CounterStore
from statcounter.infrastructure.dispatch import Dispatcher
from statcounter.infrastructure.hash_counters import HashCounterStore
from statcounter.infrastructure.scanner import KeyScanner
from statcounter.infrastructure.topology import StoreClient, Topology, TopologyAdapter
from statcounter.utils.config import Settings, get_settings

logger = logging.getLogger(__name__)


class StatsService:
    """
    Public counter API for one application namespace.

    Mutating calls take an AwaitPolicy. FIRE_AND_FORGET returns an InFlight
    handle right away; failures are logged instead of raised.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        client: StoreClient | None = None,
        topology: Topology | None = None,
    ):
        """
        Initialize the stats service.

        Args:
            settings: Application settings. If None, uses cached settings.
            client: Pre-built store client. If None, one is created from settings.
            topology: Override for the topology of an injected client

        Raises:
            ConfigurationError: If namespace or connection settings are invalid
        """
        settings = settings or get_settings()
        self._settings = settings
        self._namespace = KeyNamespace(settings.app.prefix, settings.app.key_segment)
        self._adapter = TopologyAdapter(settings.valkey, client=client, topology=topology)
        self._dispatcher = Dispatcher()

        store_client = self._adapter.client
        self._counters = CounterStore(
            store_client, self._namespace, self._dispatcher, cluster=self._adapter.is_cluster
        )
        self._hashes = HashCounterStore(store_client, self._namespace, self._dispatcher)
        self._scanner = KeyScanner(self._adapter, page_size=settings.valkey.scan_page_size)

    async def __aenter__(self) -> "StatsService":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    @property
    def namespace(self) -> KeyNamespace:
        return self._namespace

    @property
    def adapter(self) -> TopologyAdapter:
        return self._adapter

    @property
    def counters(self) -> CounterStore:
        return self._counters

    @property
    def hashes(self) -> HashCounterStore:
        return self._hashes

    @property
    def scanner(self) -> KeyScanner:
        return self._scanner

    def key_for(self, identity: CounterIdentity) -> str:
        """Resolve an identity (or wildcard identity) to its store key."""
        return self._namespace.resolve(identity)

    # ==========================================================================
    # Scalar Counters
    # ==========================================================================

    async def get(self, identity: CounterIdentity) -> int | None:
        return await self._counters.get(identity)

    async def get_envelope(self, identity: CounterIdentity) -> SetEnvelope | None:
        return await self._counters.get_envelope(identity)

    async def increment(
        self,
        identity: CounterIdentity,
        amount: int = 1,
        ttl_seconds: int | None = None,
        policy: AwaitPolicy = AwaitPolicy.AWAIT,
        atomic: bool = False,
    ) -> int | InFlight[int]:
        return await self._counters.increment(identity, amount, ttl_seconds, policy, atomic)

    async def decrement(
        self,
        identity: CounterIdentity,
        amount: int = 1,
        ttl_seconds: int | None = None,
        policy: AwaitPolicy = AwaitPolicy.AWAIT,
        atomic: bool = False,
    ) -> int | InFlight[int]:
        return await self._counters.decrement(identity, amount, ttl_seconds, policy, atomic)

    async def set(
        self,
        identity: CounterIdentity,
        value: Any,
        ttl_seconds: int | None = None,
        policy: AwaitPolicy = AwaitPolicy.AWAIT,
    ) -> bool | InFlight[bool]:
        return await self._counters.set(identity, value, ttl_seconds, policy)

    async def delete(
        self,
        identity: CounterIdentity,
        policy: AwaitPolicy = AwaitPolicy.AWAIT,
    ) -> int | InFlight[int]:
        return await self._counters.delete(identity, policy)

    # ==========================================================================
    # Hash Counters
    # ==========================================================================

    async def increment_field(
        self,
        identity: CounterIdentity,
        field: str,
        amount: int = 1,
        ttl_seconds: int | None = None,
        policy: AwaitPolicy = AwaitPolicy.AWAIT,
    ) -> int | InFlight[int]:
        return await self._hashes.increment_field(identity, field, amount, ttl_seconds, policy)

    async def decrement_field(
        self,
        identity: CounterIdentity,
        field: str,
        amount: int = 1,
        ttl_seconds: int | None = None,
        policy: AwaitPolicy = AwaitPolicy.AWAIT,
    ) -> int | InFlight[int]:
        return await self._hashes.decrement_field(identity, field, amount, ttl_seconds, policy)

    async def read_all_fields(self, identity: CounterIdentity) -> dict[str, int]:
        return await self._hashes.read_all(identity)

    # ==========================================================================
    # Scans
    # ==========================================================================

    async def scan(self, pattern: str | CounterIdentity) -> ScanResult:
        """Collect keys matching a glob pattern or wildcard identity."""
        return await self._scanner.scan(self._pattern(pattern))

    async def delete_matching(self, pattern: str | CounterIdentity) -> int:
        """Delete keys matching a glob pattern or wildcard identity."""
        return await self._scanner.delete_matching(self._pattern(pattern))

    async def read_matching(self, pattern: str | CounterIdentity) -> dict[str, str | None]:
        """Read raw values of keys matching a glob pattern or wildcard identity."""
        return await self._scanner.read_matching(self._pattern(pattern))

    async def purge_instance(self, instance_id: str) -> int:
        """
        Delete every counter written for an application instance.

        Called when an instance shuts down so its per-instance counters do
        not linger until their TTL.

        Returns:
            Number of keys removed
        """
        pattern = self._namespace.instance_pattern(instance_id)
        logger.info("Purging counters for instance %s (%s)", instance_id, pattern)
        return await self._scanner.delete_matching(pattern)

    async def online_server_count(self) -> int:
        """
        Count live servers by their online markers.

        Only keys are counted, not values. The census is approximate: markers
        written or expiring during the scan may or may not be included.
        """
        result = await self._scanner.scan(self._namespace.online_pattern())
        return result.count

    async def subscription_counts(self, instance_id: str = WILDCARD) -> dict[str, int]:
        """
        Read per-instance subscription counters.

        Args:
            instance_id: Instance to read, or "*" for every instance

        Returns:
            Mapping of store key to subscription count
        """
        pattern = self._namespace.subscription_pattern(instance_id)
        raw = await self._scanner.read_matching(pattern)
        counts = {}
        for key, value in raw.items():
            if value is None:
                continue
            try:
                counts[key] = int(value)
            except ValueError:
                logger.warning("Skipping non-integer subscription count at %s: %r", key, value)
        return counts

    # ==========================================================================
    # Lifecycle
    # ==========================================================================

    async def ping(self, attempts: int = 1) -> bool:
        """Check the store is reachable (raises StoreUnavailable if not)."""
        return await self._adapter.ping(attempts=attempts)

    async def wait_for_pending(self) -> None:
        """Wait for fire-and-forget operations to settle."""
        await self._dispatcher.wait_for_pending()

    async def close(self) -> None:
        """Settle pending fire-and-forget operations, then close the client."""
        await self._dispatcher.wait_for_pending()
        await self._adapter.close()

    def _pattern(self, pattern: str | CounterIdentity) -> str:
        if isinstance(pattern, CounterIdentity):
            return self._namespace.resolve(pattern)
        return pattern
