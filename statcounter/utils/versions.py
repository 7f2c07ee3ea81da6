# ==============================================================================
# Version Utilities
# ==============================================================================
"""
Installed versions of statcounter and the libraries it drives, for
`statcounter --version` and `statcounter status`.
"""

from importlib.metadata import PackageNotFoundError, version

PACKAGE_NAME = "statcounter"
FALLBACK_VERSION = "0.1.0"

# Libraries whose behavior shows up in counter semantics or connectivity
TRACKED_DEPENDENCIES = ("redis", "pydantic-settings", "tenacity")


def get_package_version(package_name: str) -> str:
    """Version of an installed distribution, or "unknown"."""
    try:
        return version(package_name)
    except PackageNotFoundError:
        return "unknown"


def get_statcounter_version() -> str:
    """Installed statcounter version (source checkouts report the fallback)."""
    found = get_package_version(PACKAGE_NAME)
    return FALLBACK_VERSION if found == "unknown" else found


def get_dependency_versions() -> dict[str, str]:
    """
    Versions of the tracked client libraries.

    Returns:
        Mapping of distribution name to version string
    """
    return {name: get_package_version(name) for name in TRACKED_DEPENDENCIES}
