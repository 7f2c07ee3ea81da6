# ==============================================================================
# Stats Counter Utilities
# ==============================================================================
"""
Shared utilities: configuration, retry decorators and version lookup.
"""

from statcounter.utils.config import (
    AppSettings,
    Settings,
    ValkeySettings,
    get_settings,
    load_settings,
)
from statcounter.utils.retry import REDIS_RETRY_EXCEPTIONS, retry_light
from statcounter.utils.versions import (
    get_dependency_versions,
    get_package_version,
    get_statcounter_version,
)

__all__ = [
    # Config
    "AppSettings",
    "Settings",
    "ValkeySettings",
    "get_settings",
    "load_settings",
    # Retry
    "REDIS_RETRY_EXCEPTIONS",
    "retry_light",
    # Versions
    "get_dependency_versions",
    "get_package_version",
    "get_statcounter_version",
]
