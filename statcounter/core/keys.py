# ==============================================================================
# Key Namespace
# ==============================================================================
"""
Deterministic store key construction.

Key layout:
    app:{system}:{product}:{environment}:{segment}:{type}:{name}[:{host}][:{instance}]

Global counters never carry host or instance segments, so every host in the
fleet resolves a global identity to the same key.
"""

from typing import Literal

from statcounter.core.exceptions import ConfigurationError, InvalidIdentity
from statcounter.core.models import (
    KEY_SEPARATOR,
    WILDCARD,
    CounterIdentity,
    NamespacePrefix,
    Scope,
    has_glob,
)

KeySegment = Literal["stat", "cnt"]
KEY_SEGMENTS = ("stat", "cnt")

ONLINE_COUNTER = ("count", "online")
SUBSCRIPTION_COUNTER = ("count", "subscription")


class KeyNamespace:
    """Resolves counter identities to store keys under a fixed prefix."""

    def __init__(self, prefix: NamespacePrefix, segment: KeySegment = "stat"):
        if segment not in KEY_SEGMENTS:
            raise ConfigurationError(
                f"Unknown key segment {segment!r}, expected one of {KEY_SEGMENTS}"
            )
        self._prefix = prefix
        self._segment = segment
        self._base = f"{prefix}{KEY_SEPARATOR}{segment}"

    @property
    def prefix(self) -> NamespacePrefix:
        return self._prefix

    @property
    def base(self) -> str:
        """Key prefix including the segment, e.g. app:sys:prod:dev:stat."""
        return self._base

    def resolve(self, identity: CounterIdentity) -> str:
        """
        Build the store key (or glob pattern) for an identity.

        Args:
            identity: Counter identity to resolve

        Returns:
            Fully-qualified key string
        """
        parts = [self._base, identity.counter_type, identity.counter_name]
        if identity.scope is Scope.SCOPED:
            if identity.host:
                parts.append(identity.host)
            if identity.instance_id:
                parts.append(identity.instance_id)
        return KEY_SEPARATOR.join(parts)

    def resolve_exact(self, identity: CounterIdentity) -> str:
        """
        Resolve an identity that must address exactly one key.

        Raises:
            InvalidIdentity: If the resolved key contains a glob character
        """
        key = self.resolve(identity)
        if has_glob(key):
            raise InvalidIdentity(f"Wildcard key {key} is only valid for scans")
        return key

    def instance_pattern(self, instance_id: str) -> str:
        """Pattern matching every counter written for one instance."""
        identity = CounterIdentity(
            WILDCARD, WILDCARD, scope=Scope.SCOPED, host=None, instance_id=instance_id
        )
        return self.resolve(identity)

    def online_pattern(self) -> str:
        """Pattern matching every per-host online marker."""
        counter_type, counter_name = ONLINE_COUNTER
        identity = CounterIdentity(counter_type, counter_name, host=WILDCARD)
        return self.resolve(identity)

    def subscription_pattern(self, instance_id: str = WILDCARD) -> str:
        """Pattern (or key) for per-instance subscription counters."""
        counter_type, counter_name = SUBSCRIPTION_COUNTER
        identity = CounterIdentity(
            counter_type, counter_name, host=None, instance_id=instance_id
        )
        return self.resolve(identity)
