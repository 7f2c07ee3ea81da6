# ==============================================================================
# Stats Counter CLI
# ==============================================================================
"""
Command-line interface for fleet counters.

Usage:
    statcounter --help
    statcounter status
    statcounter config show
    statcounter get -t count -n online -i app-1
    statcounter incr -t count -n online -i app-1 --ttl 60
    statcounter hgetall -t count -n events --global
    statcounter scan 'app:sys:prod:dev:stat:count:*'
    statcounter online
    statcounter purge-instance app-1 -y
"""

import logging
import os
from typing import Annotated

import typer

from statcounter.utils.versions import get_statcounter_version

# ==============================================================================
# App Configuration
# ==============================================================================
# Set consistent terminal width for help output formatting
if "COLUMNS" not in os.environ:
    os.environ["COLUMNS"] = "115"

app = typer.Typer(
    name="statcounter",
    help="Fleet counters on Valkey/Redis",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    if value:
        print(get_statcounter_version())
        raise typer.Exit()


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log store operations")] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version", help="Show version and exit", callback=_version_callback, is_eager=True
        ),
    ] = False,
) -> None:
    """Fleet counters on Valkey/Redis"""
    logging.basicConfig(
        level=logging.DEBUG if verbose else os.environ.get("LOG_LEVEL", "WARNING").upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


# Register counter commands from cli.counters module
from statcounter.cli.counters import (
    counter_decr,
    counter_delete,
    counter_get,
    counter_incr,
    counter_set,
)

app.command("get")(counter_get)
app.command("incr")(counter_incr)
app.command("decr")(counter_decr)
app.command("set")(counter_set)
app.command("delete")(counter_delete)

# Register hash counter commands from cli.hashes module
from statcounter.cli.hashes import hash_decr, hash_getall, hash_incr

app.command("hincr")(hash_incr)
app.command("hdecr")(hash_decr)
app.command("hgetall")(hash_getall)

# Register scan commands from cli.scan module
from statcounter.cli.scan import (
    delete_matching,
    online_count,
    purge_instance,
    scan_keys,
    subscription_counts,
)

app.command("scan")(scan_keys)
app.command("delete-matching")(delete_matching)
app.command("purge-instance")(purge_instance)
app.command("online")(online_count)
app.command("subscriptions")(subscription_counts)

# Status command is imported from statcounter.cli.status
from statcounter.cli.status import config_show, show_status

app.command("status")(show_status)

config_app = typer.Typer(
    help="Configuration management",
    no_args_is_help=True,
)
app.add_typer(config_app, name="config")

config_app.command("show")(config_show)


if __name__ == "__main__":
    app()
