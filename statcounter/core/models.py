# ==============================================================================
# Stats Counter Domain Models
# ==============================================================================
"""
Value types for counter identities, namespaces, scans and dispatch handles.

This module is part of the core domain layer and performs no I/O.
"""

import asyncio
import socket
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Generic, TypeVar

from statcounter.core.exceptions import InvalidIdentity

T = TypeVar("T")

KEY_SEPARATOR = ":"
WILDCARD = "*"
GLOB_CHARS = frozenset("*?[")


def has_glob(text: str) -> bool:
    """True when text contains a SCAN/KEYS glob metacharacter."""
    return any(ch in GLOB_CHARS for ch in text)


def local_hostname() -> str:
    """Lowercase hostname of the machine resolving the key."""
    return socket.gethostname().lower()


class Scope(str, Enum):
    """Whether a counter is shared fleet-wide or tied to a host/instance."""

    GLOBAL = "global"
    SCOPED = "scoped"


class AwaitPolicy(str, Enum):
    """How a mutating operation is dispatched to the store."""

    AWAIT = "await"
    FIRE_AND_FORGET = "fire_and_forget"


def _check_segment(name: str, value: Any, required: bool = True) -> None:
    if value is None and not required:
        return
    if not isinstance(value, str) or not value:
        raise InvalidIdentity(f"{name} must be a non-empty string, got {value!r}")
    if KEY_SEPARATOR in value:
        raise InvalidIdentity(f"{name} must not contain '{KEY_SEPARATOR}': {value!r}")
    if any(ch.isspace() for ch in value):
        raise InvalidIdentity(f"{name} must not contain whitespace: {value!r}")


@dataclass(frozen=True)
class NamespacePrefix:
    """
    Fixed namespace shared by every key a client writes.

    Attributes:
        system: Application system name
        product: Product name within the system
        environment: Deployment environment (e.g., "prod", "dev")
    """

    system: str
    product: str
    environment: str

    def __post_init__(self):
        for name in ("system", "product", "environment"):
            value = getattr(self, name)
            _check_segment(name, value)
            if has_glob(value):
                raise InvalidIdentity(f"{name} must not contain glob characters: {value!r}")

    def __str__(self) -> str:
        return f"app:{self.system}:{self.product}:{self.environment}"


@dataclass(frozen=True)
class CounterIdentity:
    """
    Logical identity of a counter.

    Attributes:
        counter_type: Counter category (e.g., "count")
        counter_name: Counter name within the category (e.g., "online")
        scope: GLOBAL counters ignore host and instance
        host: Host segment; defaults to the local hostname, None omits it
        instance_id: Optional application instance segment

    Segments may carry glob characters (*, ?, [...]) to build a scan pattern.
    """

    counter_type: str
    counter_name: str
    scope: Scope = Scope.SCOPED
    host: str | None = field(default_factory=local_hostname)
    instance_id: str | None = None

    def __post_init__(self):
        if not isinstance(self.scope, Scope):
            try:
                object.__setattr__(self, "scope", Scope(self.scope))
            except ValueError:
                raise InvalidIdentity(f"Unknown scope: {self.scope!r}") from None
        _check_segment("counter_type", self.counter_type)
        _check_segment("counter_name", self.counter_name)
        _check_segment("host", self.host, required=False)
        _check_segment("instance_id", self.instance_id, required=False)

    @classmethod
    def global_(cls, counter_type: str, counter_name: str) -> "CounterIdentity":
        """Build a fleet-wide counter identity."""
        return cls(counter_type, counter_name, scope=Scope.GLOBAL, host=None)

    @classmethod
    def scoped(
        cls,
        counter_type: str,
        counter_name: str,
        instance_id: str | None = None,
        host: str | None = None,
        use_local_host: bool = True,
    ) -> "CounterIdentity":
        """
        Build a host/instance scoped counter identity.

        Args:
            counter_type: Counter category
            counter_name: Counter name
            instance_id: Optional instance segment
            host: Explicit host segment
            use_local_host: Fill in the local hostname when host is not given
        """
        if host is None and use_local_host:
            host = local_hostname()
        return cls(
            counter_type,
            counter_name,
            scope=Scope.SCOPED,
            host=host,
            instance_id=instance_id,
        )

    @property
    def is_pattern(self) -> bool:
        """True when any key segment contains a glob character."""
        segments = [self.counter_type, self.counter_name]
        if self.scope is Scope.SCOPED:
            segments.extend(s for s in (self.host, self.instance_id) if s)
        return any(has_glob(s) for s in segments)


@dataclass
class ScanResult:
    """Keys matched by a pattern scan."""

    count: int
    results: list[str]


@dataclass
class SetEnvelope:
    """
    Decoded composite record written by set().

    Attributes:
        value: The stored composite value
        set_time: Wall-clock time of the write (advisory only)
    """

    value: Any
    set_time: datetime | None


class InFlight(Generic[T]):
    """
    Handle for an operation dispatched without awaiting its completion.

    The settled value is only available through result(); the handle itself
    is never the counter value.
    """

    def __init__(self, task: "asyncio.Task[T]", description: str):
        self._task = task
        self.description = description

    @property
    def task(self) -> "asyncio.Task[T]":
        return self._task

    def done(self) -> bool:
        return self._task.done()

    async def result(self) -> T:
        """Wait for the operation and return its value (or raise its error)."""
        return await asyncio.shield(self._task)

    def __repr__(self) -> str:
        state = "done" if self.done() else "pending"
        return f"<InFlight {self.description} ({state})>"
