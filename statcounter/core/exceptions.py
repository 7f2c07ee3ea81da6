# ==============================================================================
# Stats Error Hierarchy
# ==============================================================================
"""
Exceptions raised by the stats counter layer.

All library errors derive from StatsError so callers can catch them in one
place. Store transport failures from redis-py are translated into
StoreUnavailable by the store_errors() context manager; commands the store
rejects (WRONGTYPE, non-integer INCRBY targets) become InvalidRecord.
"""

from collections.abc import Iterator
from contextlib import contextmanager

from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import ReadOnlyError, ResponseError
from redis.exceptions import TimeoutError as RedisTimeoutError


class StatsError(Exception):
    """Base class for all stats counter errors."""


class ConfigurationError(StatsError):
    """Required connection or namespace settings are missing or invalid."""


class InvalidIdentity(StatsError, ValueError):
    """A counter identity or field cannot be used for the requested operation."""


class InvalidRecord(StatsError, ValueError):
    """A stored payload or supplied value is not a valid counter value."""

    def __init__(self, message: str, key: str | None = None):
        super().__init__(message)
        self.key = key


class StoreUnavailable(StatsError):
    """The key-value store could not be reached."""

    def __init__(self, message: str, key: str | None = None):
        super().__init__(message)
        self.key = key


class UnsupportedInTopology(StatsError):
    """The operation cannot give complete results against a cluster."""


@contextmanager
def store_errors(key: str | None = None) -> Iterator[None]:
    """
    Translate redis-py errors into the stats error hierarchy.

    Connection failures, timeouts and read-only replicas become
    StoreUnavailable. Any other command rejection (e.g. WRONGTYPE, or
    INCRBY on a non-integer value) becomes InvalidRecord.

    Works around awaited calls as well as plain ones:

        with store_errors(key):
            value = await client.incrby(key, 1)

    Args:
        key: Store key involved in the operation (for the error message)
    """
    try:
        yield
    except (RedisConnectionError, RedisTimeoutError, ReadOnlyError) as e:
        target = f" for key {key}" if key else ""
        raise StoreUnavailable(f"Store unavailable{target}: {e}", key=key) from e
    except ResponseError as e:
        target = f" for key {key}" if key else ""
        raise InvalidRecord(f"Store rejected command{target}: {e}", key=key) from e
