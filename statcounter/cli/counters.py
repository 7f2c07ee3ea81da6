# ==============================================================================
# Scalar Counter Commands
# ==============================================================================
"""
Commands for reading and mutating scalar counters.

Examples:
    statcounter get -t count -n online -i app-1
    statcounter incr -t count -n online -i app-1 --ttl 60
    statcounter set -t gauge -n build --global '{"sha": "abc"}'
"""

import json as _json
from typing import Annotated

import typer

from statcounter.cli.shared import (
    C,
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

AmountOption = Annotated[int, typer.Option("--amount", "-a", help="Amount to add/subtract")]


def _print_result(key: str, value, json_output: bool) -> None:
    if json_output:
        print(_json.dumps({"key": key, "value": value}))
    elif value is None:
        print(f"  {C.DIM}{key}{C.RESET}  {C.BRIGHT_YELLOW}(absent){C.RESET}")
    else:
        print(f"  {C.DIM}{key}{C.RESET}  {C.BOLD}{value}{C.RESET}")


def counter_get(
    counter_type: TypeOption,
    counter_name: NameOption,
    global_scope: GlobalOption = False,
    host: HostOption = None,
    no_host: NoHostOption = False,
    instance: InstanceOption = None,
    json_output: JsonOption = False,
) -> None:
    """Show the current value of a counter."""
    with cli_errors(json_output):
        identity = build_identity(counter_type, counter_name, global_scope, host, no_host, instance)

        async def _get(stats):
            return stats.key_for(identity), await stats.get(identity)

        key, value = run_with_service(_get)
    _print_result(key, value, json_output)


def counter_incr(
    counter_type: TypeOption,
    counter_name: NameOption,
    amount: AmountOption = 1,
    ttl: TtlOption = None,
    global_scope: GlobalOption = False,
    host: HostOption = None,
    no_host: NoHostOption = False,
    instance: InstanceOption = None,
    json_output: JsonOption = False,
) -> None:
    """Increment a counter and show its new value."""
    with cli_errors(json_output):
        identity = build_identity(counter_type, counter_name, global_scope, host, no_host, instance)

        async def _incr(stats):
            return stats.key_for(identity), await stats.increment(identity, amount, ttl)

        key, value = run_with_service(_incr)
    _print_result(key, value, json_output)


def counter_decr(
    counter_type: TypeOption,
    counter_name: NameOption,
    amount: AmountOption = 1,
    ttl: TtlOption = None,
    global_scope: GlobalOption = False,
    host: HostOption = None,
    no_host: NoHostOption = False,
    instance: InstanceOption = None,
    json_output: JsonOption = False,
) -> None:
    """Decrement a counter and show its new value."""
    with cli_errors(json_output):
        identity = build_identity(counter_type, counter_name, global_scope, host, no_host, instance)

        async def _decr(stats):
            return stats.key_for(identity), await stats.decrement(identity, amount, ttl)

        key, value = run_with_service(_decr)
    _print_result(key, value, json_output)


def counter_set(
    counter_type: TypeOption,
    counter_name: NameOption,
    value: Annotated[str, typer.Argument(help="Integer, or a JSON object/array")],
    ttl: TtlOption = None,
    global_scope: GlobalOption = False,
    host: HostOption = None,
    no_host: NoHostOption = False,
    instance: InstanceOption = None,
    json_output: JsonOption = False,
) -> None:
    """Overwrite a counter. JSON objects and arrays are stored with a set time."""
    try:
        parsed = _json.loads(value)
    except _json.JSONDecodeError:
        parsed = value
    if isinstance(parsed, bool) or parsed is None:
        parsed = value

    with cli_errors(json_output):
        identity = build_identity(counter_type, counter_name, global_scope, host, no_host, instance)

        async def _set(stats):
            return stats.key_for(identity), await stats.set(identity, parsed, ttl)

        key, ok = run_with_service(_set)
    _print_result(key, "OK" if ok else "FAILED", json_output)


def counter_delete(
    counter_type: TypeOption,
    counter_name: NameOption,
    global_scope: GlobalOption = False,
    host: HostOption = None,
    no_host: NoHostOption = False,
    instance: InstanceOption = None,
    json_output: JsonOption = False,
) -> None:
    """Delete a counter."""
    with cli_errors(json_output):
        identity = build_identity(counter_type, counter_name, global_scope, host, no_host, instance)

        async def _delete(stats):
            return stats.key_for(identity), await stats.delete(identity)

        key, removed = run_with_service(_delete)
    _print_result(key, removed, json_output)
