# ==============================================================================
# Shared Utilities for CLI Commands
# ==============================================================================
"""
Shared utilities, constants, and helper functions used across CLI command modules.

This module provides:
- ANSI color codes and status icons
- Common Typer option types for counter identities
- Service construction and error reporting for async commands
"""

import asyncio
import json
from collections.abc import Awaitable, Callable, Iterator
from contextlib import contextmanager
from typing import Annotated, Optional, TypeVar

import typer

from statcounter.core.exceptions import StatsError
from statcounter.core.models import CounterIdentity
from statcounter.infrastructure.service import StatsService

T = TypeVar("T")


# ==============================================================================
# ANSI Colors and Icons
# ==============================================================================


class Colors:
    """ANSI color codes for terminal output."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    # Bright colors
    BRIGHT_RED = "\033[91m"
    BRIGHT_GREEN = "\033[92m"
    BRIGHT_YELLOW = "\033[93m"
    BRIGHT_CYAN = "\033[96m"


class Icons:
    """Status icons using Unicode symbols."""

    CHECK = "✓"
    CROSS = "✗"
    WARN = "!"
    BULLET = "•"
    ARROW = "→"


# Module-level aliases for convenience
C, I = Colors, Icons


# ==============================================================================
# Identity Options
# ==============================================================================

TypeOption = Annotated[str, typer.Option("--type", "-t", help="Counter type (e.g., count)")]
NameOption = Annotated[str, typer.Option("--name", "-n", help="Counter name (e.g., online)")]
GlobalOption = Annotated[
    bool, typer.Option("--global", "-g", help="Fleet-wide counter (ignores host and instance)")
]
HostOption = Annotated[
    Optional[str], typer.Option("--host", help="Host segment (default: this machine)")
]
NoHostOption = Annotated[bool, typer.Option("--no-host", help="Omit the host segment")]
InstanceOption = Annotated[
    Optional[str], typer.Option("--instance", "-i", help="Instance segment")
]
TtlOption = Annotated[
    Optional[int], typer.Option("--ttl", help="Expiry in seconds", min=1)
]
JsonOption = Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")]


def build_identity(
    counter_type: str,
    counter_name: str,
    global_scope: bool = False,
    host: str | None = None,
    no_host: bool = False,
    instance: str | None = None,
) -> CounterIdentity:
    """Build a CounterIdentity from CLI options."""
    if global_scope:
        return CounterIdentity.global_(counter_type, counter_name)
    return CounterIdentity.scoped(
        counter_type,
        counter_name,
        instance_id=instance,
        host=host,
        use_local_host=not no_host,
    )


# ==============================================================================
# Service Helpers
# ==============================================================================


def create_service() -> StatsService:
    """Create a StatsService from environment settings."""
    return StatsService()


def run_with_service(action: Callable[[StatsService], Awaitable[T]]) -> T:
    """
    Run one async action against a fresh service and close it afterwards.

    Args:
        action: Coroutine function taking the service

    Returns:
        The action's result
    """

    async def _main() -> T:
        async with create_service() as stats:
            return await action(stats)

    return asyncio.run(_main())


@contextmanager
def cli_errors(json_output: bool = False) -> Iterator[None]:
    """Report library errors and exit with status 1."""
    try:
        yield
    except StatsError as e:
        if json_output:
            print(json.dumps({"error": str(e), "type": type(e).__name__}))
        else:
            print(f"\n  {C.BRIGHT_RED}{I.CROSS} {type(e).__name__}: {e}{C.RESET}\n")
        raise typer.Exit(code=1)

