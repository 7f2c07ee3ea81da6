# ==============================================================================
# Core Domain Layer
# ==============================================================================
"""
Counter identities, key construction and errors.

Nothing in this package talks to the store.
"""

from statcounter.core.exceptions import (
    ConfigurationError,
    InvalidIdentity,
    InvalidRecord,
    StatsError,
    StoreUnavailable,
    UnsupportedInTopology,
    store_errors,
)
from statcounter.core.keys import KeyNamespace
from statcounter.core.models import (
    AwaitPolicy,
    CounterIdentity,
    InFlight,
    NamespacePrefix,
    ScanResult,
    Scope,
    SetEnvelope,
    local_hostname,
)

__all__ = [
    # Errors
    "ConfigurationError",
    "InvalidIdentity",
    "InvalidRecord",
    "StatsError",
    "StoreUnavailable",
    "UnsupportedInTopology",
    "store_errors",
    # Keys
    "KeyNamespace",
    # Models
    "AwaitPolicy",
    "CounterIdentity",
    "InFlight",
    "NamespacePrefix",
    "ScanResult",
    "Scope",
    "SetEnvelope",
    "local_hostname",
]
