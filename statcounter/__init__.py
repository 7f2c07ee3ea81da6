# ==============================================================================
# Stats Counter Client
# ==============================================================================
"""
Namespaced counters and hash counters on Valkey/Redis for an application fleet.
"""

from statcounter.core import (
    AwaitPolicy,
    ConfigurationError,
    CounterIdentity,
    InFlight,
    InvalidIdentity,
    InvalidRecord,
    KeyNamespace,
    NamespacePrefix,
    ScanResult,
    Scope,
    SetEnvelope,
    StatsError,
    StoreUnavailable,
    UnsupportedInTopology,
)
from statcounter.infrastructure import StatsService, Topology

__all__ = [
    "AwaitPolicy",
    "ConfigurationError",
    "CounterIdentity",
    "InFlight",
    "InvalidIdentity",
    "InvalidRecord",
    "KeyNamespace",
    "NamespacePrefix",
    "ScanResult",
    "Scope",
    "SetEnvelope",
    "StatsError",
    "StatsService",
    "StoreUnavailable",
    "Topology",
    "UnsupportedInTopology",
]
