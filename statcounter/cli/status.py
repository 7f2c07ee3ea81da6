# ==============================================================================
# Status and Config Commands
# ==============================================================================
"""
Connectivity status and configuration display.
"""

import json as _json
from typing import Annotated

import typer

from statcounter.cli.shared import C, I, JsonOption, cli_errors, run_with_service
from statcounter.core.exceptions import StoreUnavailable
from statcounter.utils.config import get_settings
from statcounter.utils.versions import get_dependency_versions, get_statcounter_version


def show_status(
    retries: Annotated[
        int, typer.Option("--retries", "-r", help="PING attempts before giving up", min=1)
    ] = 1,
    json_output: JsonOption = False,
) -> None:
    """Check that the store is reachable and show the active topology."""
    with cli_errors(json_output):
        settings = get_settings()

        async def _status(stats):
            try:
                reachable = await stats.ping(attempts=retries)
                error = None
            except StoreUnavailable as e:
                reachable, error = False, str(e)
            return stats.adapter.topology.value, stats.namespace.base, reachable, error

        topology, base, reachable, error = run_with_service(_status)

    if json_output:
        print(
            _json.dumps(
                {
                    "topology": topology,
                    "namespace": base,
                    "reachable": reachable,
                    "error": error,
                    "version": get_statcounter_version(),
                    "dependencies": get_dependency_versions(),
                }
            )
        )
    else:
        target = settings.valkey.cluster_nodes or f"{settings.valkey.host}:{settings.valkey.port}"
        badge = (
            f"{C.BRIGHT_GREEN}{I.CHECK} reachable{C.RESET}"
            if reachable
            else f"{C.BRIGHT_RED}{I.CROSS} unreachable{C.RESET}"
        )
        print()
        print(f"  {C.BOLD}Store:{C.RESET}      {target} ({topology})")
        print(f"  {C.BOLD}Namespace:{C.RESET}  {base}")
        print(f"  {C.BOLD}Status:{C.RESET}     {badge}")
        if error:
            print(f"  {C.DIM}{error}{C.RESET}")
        print()

    if not reachable:
        raise typer.Exit(code=1)


def config_show(json_output: JsonOption = False) -> None:
    """Display current configuration (password masked)."""
    with cli_errors(json_output):
        settings = get_settings()
        cluster_nodes = settings.valkey.cluster_node_list
        prefix = str(settings.app.prefix)

        config = {
            "app": {
                "system": settings.app.system,
                "product": settings.app.product,
                "environment": settings.app.environment,
                "key_segment": settings.app.key_segment,
                "prefix": prefix,
            },
            "valkey": {
                "host": settings.valkey.host,
                "port": settings.valkey.port,
                "password": "****" if settings.valkey.password else None,
                "connect_timeout_ms": settings.valkey.connect_timeout_ms,
                "retries": settings.valkey.retries,
                "cluster_nodes": [f"{host}:{port}" for host, port in cluster_nodes],
                "scan_page_size": settings.valkey.scan_page_size,
            },
            "log_level": settings.log_level,
        }

    if json_output:
        print(_json.dumps(config, indent=2))
        return

    for section, values in config.items():
        if not isinstance(values, dict):
            print(f"  {C.BOLD}{section}:{C.RESET} {values}")
            continue
        print(f"\n  {C.BRIGHT_CYAN}{section}{C.RESET}")
        for name, value in values.items():
            print(f"    {name:<20} {value}")
    print()
