# ==============================================================================
# Store Topology Adapter
# ==============================================================================
"""
Selects and owns the Valkey/Redis client for the process.

The topology is decided once, from static configuration: when cluster nodes
are configured a RedisCluster client is built, otherwise a single-node Redis
client. There is no failover between the two.
"""

import logging
from enum import Enum

from redis.asyncio import Redis
from redis.asyncio.cluster import ClusterNode, RedisCluster
from redis.asyncio.retry import Retry
from redis.backoff import ExponentialBackoff

from statcounter.core.exceptions import ConfigurationError, store_errors
from statcounter.utils.config import ValkeySettings
from statcounter.utils.retry import (
    REDIS_RETRY_EXCEPTIONS,
    VALKEY_BACKOFF_BASE,
    VALKEY_BACKOFF_CAP,
    retry_light,
)

logger = logging.getLogger(__name__)

StoreClient = Redis | RedisCluster


class Topology(str, Enum):
    """Deployment shape of the store."""

    SINGLE = "single"
    CLUSTER = "cluster"


def _client_retry(settings: ValkeySettings) -> Retry:
    """Bounded exponential backoff used by redis-py for transient failures."""
    return Retry(
        ExponentialBackoff(cap=VALKEY_BACKOFF_CAP, base=VALKEY_BACKOFF_BASE),
        retries=settings.retries,
    )


def create_redis(settings: ValkeySettings) -> Redis:
    """
    Build a single-node async client.

    Configured with:
    - Connect timeout from settings (commands have no per-call timeout)
    - Automatic retries with exponential backoff for transient failures
    - decode_responses so keys and values come back as str
    """
    return Redis(
        host=settings.host,
        port=settings.port,
        password=settings.password,
        client_name=settings.client_name,
        decode_responses=True,
        socket_connect_timeout=settings.connect_timeout_seconds,
        retry=_client_retry(settings),
        retry_on_error=list(REDIS_RETRY_EXCEPTIONS),
    )


def create_redis_cluster(settings: ValkeySettings) -> RedisCluster:
    """Build a cluster client from the configured startup nodes."""
    nodes = [ClusterNode(host, port) for host, port in settings.cluster_node_list]
    return RedisCluster(
        startup_nodes=nodes,
        password=settings.password,
        client_name=settings.client_name,
        decode_responses=True,
        socket_connect_timeout=settings.connect_timeout_seconds,
        retry=_client_retry(settings),
        retry_on_error=list(REDIS_RETRY_EXCEPTIONS),
    )


class TopologyAdapter:
    """
    Owns the store client and reports which topology it talks to.

    Stores borrow `client` per call; nothing else holds the connection.
    """

    def __init__(
        self,
        settings: ValkeySettings,
        client: StoreClient | None = None,
        topology: Topology | None = None,
    ):
        """
        Initialize the adapter.

        Args:
            settings: Connection settings
            client: Pre-built client (tests, shared pools). If None, one is created.
            topology: Override for the topology of an injected client
        """
        self._owns_client = client is None
        if client is None:
            if settings.is_cluster:
                client = create_redis_cluster(settings)
            else:
                if not settings.host:
                    raise ConfigurationError("Valkey host is required")
                client = create_redis(settings)

        if topology is None:
            topology = Topology.CLUSTER if isinstance(client, RedisCluster) else Topology.SINGLE

        self._settings = settings
        self._client = client
        self._topology = topology
        logger.info(
            "Using %s topology (%s)",
            topology.value,
            settings.cluster_nodes if topology is Topology.CLUSTER else settings.host,
        )

    @property
    def client(self) -> StoreClient:
        """Get the underlying Redis client for store operations."""
        return self._client

    @property
    def topology(self) -> Topology:
        return self._topology

    @property
    def is_cluster(self) -> bool:
        return self._topology is Topology.CLUSTER

    async def ping(self, attempts: int = 1, wait_min: float = 1) -> bool:
        """
        Check the store is reachable.

        Args:
            attempts: PING attempts before giving up
            wait_min: Minimum backoff between attempts in seconds

        Raises:
            StoreUnavailable: If every attempt fails
        """

        @retry_light(REDIS_RETRY_EXCEPTIONS, logger, attempts=attempts, wait_min=wait_min)
        async def _ping() -> bool:
            return bool(await self._client.ping())

        with store_errors():
            return await _ping()

    async def close(self) -> None:
        """Close the client and release its connection pool (injected clients are left open)."""
        if not self._owns_client:
            return
        await self._client.aclose()
        logger.info("Closed %s store client", self._topology.value)
