# ==============================================================================
# Infrastructure Adapters
# ==============================================================================
"""
Store-backed components (ports-and-adapters architecture).

This module contains the pieces that talk to Valkey/Redis:
- topology.py - client construction for single-node or cluster deployments
- dispatch.py - awaited vs fire-and-forget execution
- counters.py - scalar counters
- hash_counters.py - hash field counters
- scanner.py - pattern scans, bulk reads and bulk deletes
- service.py - StatsService facade over all of the above
"""

from statcounter.infrastructure.counters import CounterStore
from statcounter.infrastructure.dispatch import Dispatcher
from statcounter.infrastructure.hash_counters import HashCounterStore
from statcounter.infrastructure.scanner import KeyScanner
from statcounter.infrastructure.service import StatsService
from statcounter.infrastructure.topology import (
    Topology,
    TopologyAdapter,
    create_redis,
    create_redis_cluster,
)

__all__ = [
    "CounterStore",
    "Dispatcher",
    "HashCounterStore",
    "KeyScanner",
    "StatsService",
    "Topology",
    "TopologyAdapter",
    "create_redis",
    "create_redis_cluster",
]
