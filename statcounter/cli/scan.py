# ==============================================================================
# Scan Commands
# ==============================================================================
"""
Pattern scans, bulk deletes and fleet-wide aggregates.

Scans need a single-node store; against a cluster these commands fail with
UnsupportedInTopology instead of reporting one shard's keys.
"""

import json as _json
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.table import Table

from statcounter.cli.shared import C, I, JsonOption, cli_errors, run_with_service

PatternArgument = Annotated[
    Optional[str],
    typer.Argument(help="Full glob pattern; defaults to every key under the namespace"),
]
YesOption = Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation")]


def scan_keys(
    pattern: PatternArgument = None,
    json_output: JsonOption = False,
) -> None:
    """List keys matching a glob pattern."""
    with cli_errors(json_output):

        async def _scan(stats):
            target = pattern or f"{stats.namespace.base}:*"
            return target, await stats.scan(target)

        target, result = run_with_service(_scan)

    if json_output:
        print(_json.dumps({"pattern": target, "count": result.count, "results": result.results}))
        return

    if not result.results:
        print(f"\n  {C.BRIGHT_YELLOW}{I.WARN} No keys match {target}{C.RESET}\n")
        return

    console = Console()
    table = Table(title=f"Keys matching {target}", show_header=True, header_style="bold")
    table.add_column("#", justify="right")
    table.add_column("Key", justify="left")
    for index, key in enumerate(result.results, start=1):
        table.add_row(str(index), key)

    print()
    console.print(table)
    print(f"  {C.BOLD}Count:{C.RESET}  {result.count:,}")
    print()


def delete_matching(
    pattern: Annotated[str, typer.Argument(help="Full glob pattern")],
    yes: YesOption = False,
    json_output: JsonOption = False,
) -> None:
    """Delete every key matching a glob pattern."""
    if not yes and not json_output:
        typer.confirm(f"Delete every key matching {pattern}?", abort=True)

    with cli_errors(json_output):
        removed = run_with_service(lambda stats: stats.delete_matching(pattern))

    if json_output:
        print(_json.dumps({"pattern": pattern, "removed": removed}))
    else:
        print(f"  {C.BRIGHT_GREEN}{I.CHECK}{C.RESET} Removed {removed:,} keys matching {pattern}")


def purge_instance(
    instance: Annotated[str, typer.Argument(help="Instance identifier")],
    yes: YesOption = False,
    json_output: JsonOption = False,
) -> None:
    """Delete every counter written for an application instance."""
    if not yes and not json_output:
        typer.confirm(f"Delete every counter for instance {instance}?", abort=True)

    with cli_errors(json_output):
        removed = run_with_service(lambda stats: stats.purge_instance(instance))

    if json_output:
        print(_json.dumps({"instance": instance, "removed": removed}))
    else:
        print(f"  {C.BRIGHT_GREEN}{I.CHECK}{C.RESET} Removed {removed:,} keys for {instance}")


def online_count(json_output: JsonOption = False) -> None:
    """Show the approximate number of online servers."""
    with cli_errors(json_output):
        count = run_with_service(lambda stats: stats.online_server_count())

    if json_output:
        print(_json.dumps({"online": count}))
    else:
        print(f"  {C.BOLD}Online servers:{C.RESET}  {count:,}")


def subscription_counts(
    instance: Annotated[
        str, typer.Option("--instance", "-i", help="Instance identifier (default: all)")
    ] = "*",
    json_output: JsonOption = False,
) -> None:
    """Show per-instance subscription counts."""
    with cli_errors(json_output):
        counts = run_with_service(lambda stats: stats.subscription_counts(instance))

    if json_output:
        print(_json.dumps({"counts": counts, "total": sum(counts.values())}))
        return

    if not counts:
        print(f"\n  {C.BRIGHT_YELLOW}{I.WARN} No subscription counters found{C.RESET}\n")
        return

    console = Console()
    table = Table(title="Subscriptions", show_header=True, header_style="bold")
    table.add_column("Key", justify="left")
    table.add_column("Count", justify="right")
    for key in sorted(counts):
        table.add_row(key, f"{counts[key]:,}")

    print()
    console.print(table)
    print(f"  {C.BOLD}Total:{C.RESET}  {sum(counts.values()):,}")
    print()
