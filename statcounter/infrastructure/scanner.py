# ==============================================================================
# Key Scanner
# ==============================================================================
"""
Cursor-based enumeration of keys matching a glob pattern.

Uses SCAN with MATCH/COUNT and keeps requesting pages until the store hands
back cursor 0. SCAN only promises that keys present for the whole traversal
are returned; keys created or deleted while it runs may or may not be seen.

Against a cluster, SCAN on one connection only walks one shard. Rather than
return partial results that look complete, every wildcard operation here
raises UnsupportedInTopology in cluster mode.
"""

import logging
from collections.abc import AsyncIterator

from statcounter.core.exceptions import UnsupportedInTopology, store_errors
from statcounter.core.models import ScanResult, has_glob
from statcounter.infrastructure.topology import TopologyAdapter

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 100


def is_pattern(key: str) -> bool:
    return has_glob(key)


class KeyScanner:
    """Pattern scans, bulk reads and bulk deletes over the keyspace."""

    def __init__(self, adapter: TopologyAdapter, page_size: int = DEFAULT_PAGE_SIZE):
        """
        Initialize the scanner.

        Args:
            adapter: Topology adapter providing the client
            page_size: COUNT hint sent with each SCAN round trip
        """
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        self._adapter = adapter
        self._page_size = page_size

    @property
    def page_size(self) -> int:
        return self._page_size

    def _require_single_node(self, pattern: str) -> None:
        if self._adapter.is_cluster:
            raise UnsupportedInTopology(
                f"Cannot scan '{pattern}' in cluster mode: results would cover one shard only"
            )

    async def iter_pages(self, pattern: str, page_size: int | None = None) -> AsyncIterator[list[str]]:
        """
        Yield pages of keys matching a pattern until the cursor completes.

        Args:
            pattern: Glob pattern (e.g., "app:sys:prod:dev:stat:count:online:*")
            page_size: Override for the COUNT hint

        Yields:
            Non-empty lists of matching keys

        Raises:
            UnsupportedInTopology: In cluster mode
        """
        self._require_single_node(pattern)
        count = page_size or self._page_size
        client = self._adapter.client

        cursor = 0
        while True:
            with store_errors(pattern):
                cursor, batch = await client.scan(cursor, match=pattern, count=count)
            if batch:
                yield batch
            if cursor == 0:
                break

    async def scan(self, pattern: str, page_size: int | None = None) -> ScanResult:
        """
        Collect every key matching a pattern.

        A pattern without wildcards is answered with EXISTS instead of a
        scan, which also works in cluster mode.

        Returns:
            ScanResult with the match count and keys in discovery order
        """
        client = self._adapter.client
        if not is_pattern(pattern):
            with store_errors(pattern):
                exists = await client.exists(pattern)
            results = [pattern] if exists else []
            return ScanResult(count=len(results), results=results)

        # SCAN may return a key more than once
        seen: dict[str, None] = {}
        async for batch in self.iter_pages(pattern, page_size):
            for key in batch:
                seen.setdefault(key)

        results = list(seen)
        logger.debug("Scan %s matched %d keys", pattern, len(results))
        return ScanResult(count=len(results), results=results)

    async def delete_matching(self, pattern: str, page_size: int | None = None) -> int:
        """
        Delete every key matching a pattern, one DEL per key.

        Deletes are neither batched nor atomic with respect to other writers.

        Returns:
            Number of keys removed
        """
        client = self._adapter.client
        if not is_pattern(pattern):
            with store_errors(pattern):
                return await client.delete(pattern)

        logger.debug("Removing all keys for %s", pattern)
        removed = 0
        async for batch in self.iter_pages(pattern, page_size):
            for key in batch:
                with store_errors(key):
                    removed += await client.delete(key)

        logger.debug("Removed %d keys for %s", removed, pattern)
        return removed

    async def read_matching(self, pattern: str, page_size: int | None = None) -> dict[str, str | None]:
        """
        Read the raw values of every key matching a pattern.

        Each page is fetched with one MGET. Keys that expire between the scan
        and the read map to None.

        Returns:
            Mapping of key to stored string value
        """
        client = self._adapter.client
        if not is_pattern(pattern):
            with store_errors(pattern):
                value = await client.get(pattern)
            return {} if value is None else {pattern: value}

        values: dict[str, str | None] = {}
        async for batch in self.iter_pages(pattern, page_size):
            with store_errors(pattern):
                page_values = await client.mget(batch)
            values.update(zip(batch, page_values))
        return values
