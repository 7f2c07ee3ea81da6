# ==============================================================================
# Hash Counter Commands
# ==============================================================================
"""
Commands for hash-field counters.

Examples:
    statcounter hincr -t count -n events --global --field login
    statcounter hgetall -t count -n events --global
"""

import json as _json
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from statcounter.cli.shared import (
    C,
    I,
    GlobalOption,
    HostOption,
    InstanceOption,
    JsonOption,
    NameOption,
    NoHostOption,
    TtlOption,
    TypeOption,
    build_identity,
    cli_errors,
    run_with_service,
)

FieldOption = Annotated[str, typer.Option("--field", "-f", help="Hash field name")]
AmountOption = Annotated[int, typer.Option("--amount", "-a", help="Amount to add/subtract")]


def _print_field(key: str, field: str, value: int, json_output: bool) -> None:
    if json_output:
        print(_json.dumps({"key": key, "field": field, "value": value}))
    else:
        print(f"  {C.DIM}{key}{C.RESET} {field}  {C.BOLD}{value}{C.RESET}")


def hash_incr(
    counter_type: TypeOption,
    counter_name: NameOption,
    field: FieldOption,
    amount: AmountOption = 1,
    ttl: TtlOption = None,
    global_scope: GlobalOption = False,
    host: HostOption = None,
    no_host: NoHostOption = False,
    instance: InstanceOption = None,
    json_output: JsonOption = False,
) -> None:
    """Increment one field of a hash counter."""
    with cli_errors(json_output):
        identity = build_identity(counter_type, counter_name, global_scope, host, no_host, instance)

        async def _incr(stats):
            value = await stats.increment_field(identity, field, amount, ttl)
            return stats.key_for(identity), value

        key, value = run_with_service(_incr)
    _print_field(key, field, value, json_output)


def hash_decr(
    counter_type: TypeOption,
    counter_name: NameOption,
    field: FieldOption,
    amount: AmountOption = 1,
    ttl: TtlOption = None,
    global_scope: GlobalOption = False,
    host: HostOption = None,
    no_host: NoHostOption = False,
    instance: InstanceOption = None,
    json_output: JsonOption = False,
) -> None:
    """Decrement one field of a hash counter."""
    with cli_errors(json_output):
        identity = build_identity(counter_type, counter_name, global_scope, host, no_host, instance)

        async def _decr(stats):
            value = await stats.decrement_field(identity, field, amount, ttl)
            return stats.key_for(identity), value

        key, value = run_with_service(_decr)
    _print_field(key, field, value, json_output)


def hash_getall(
    counter_type: TypeOption,
    counter_name: NameOption,
    global_scope: GlobalOption = False,
    host: HostOption = None,
    no_host: NoHostOption = False,
    instance: InstanceOption = None,
    json_output: JsonOption = False,
) -> None:
    """Show every field of a hash counter."""
    with cli_errors(json_output):
        identity = build_identity(counter_type, counter_name, global_scope, host, no_host, instance)

        async def _getall(stats):
            return stats.key_for(identity), await stats.read_all_fields(identity)

        key, fields = run_with_service(_getall)

    if json_output:
        print(_json.dumps({"key": key, "fields": fields}))
        return

    if not fields:
        print(f"\n  {C.BRIGHT_YELLOW}{I.WARN} No fields at {key}{C.RESET}\n")
        return

    console = Console()
    table = Table(title=key, show_header=True, header_style="bold")
    table.add_column("Field", justify="left")
    table.add_column("Value", justify="right")
    for name in sorted(fields):
        table.add_row(name, f"{fields[name]:,}")

    print()
    console.print(table)
    print(f"  {C.BOLD}Total:{C.RESET}  {sum(fields.values()):,}")
    print()
