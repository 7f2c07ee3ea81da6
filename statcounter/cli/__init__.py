# ==============================================================================
# CLI Commands Module
# ==============================================================================
"""
CLI commands for the stats counter client.

Commands are organized into separate modules for maintainability:
- shared.py: Common options, colors and service helpers
- counters.py: Scalar counter commands
- hashes.py: Hash counter commands
- scan.py: Pattern scans and fleet aggregates
- status.py: Status and config commands
"""

from statcounter.cli.shared import (
    C,
    Colors,
    I,
    Icons,
    build_identity,
    cli_errors,
    create_service,
    run_with_service,
)

__all__ = [
    "C",
    "Colors",
    "I",
    "Icons",
    "build_identity",
    "cli_errors",
    "create_service",
    "run_with_service",
]
