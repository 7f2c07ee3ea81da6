# ==============================================================================
# Application Configuration
# ==============================================================================
"""
Configuration management using pydantic-settings.

All configuration is loaded from environment variables, with support for
.env files via python-dotenv.
"""

from functools import lru_cache
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from statcounter.core.exceptions import ConfigurationError, InvalidIdentity
from statcounter.core.models import NamespacePrefix

# Load .env file before any settings are instantiated
load_dotenv()


class AppSettings(BaseSettings):
    """Namespace identifying the application that owns the counters."""

    model_config = SettingsConfigDict(env_prefix="STATS_APP_")

    system: str = Field(..., min_length=1, description="Application system name")
    product: str = Field(..., min_length=1, description="Product name")
    environment: str = Field(..., min_length=1, description="Deployment environment")
    key_segment: Literal["stat", "cnt"] = Field(
        default="stat", description="Key segment after the prefix (stat or cnt)"
    )

    @property
    def prefix(self) -> NamespacePrefix:
        """
        Build the key namespace prefix.

        Raises:
            ConfigurationError: If a namespace field cannot appear in a key
        """
        try:
            return NamespacePrefix(self.system, self.product, self.environment)
        except InvalidIdentity as e:
            raise ConfigurationError(f"Invalid stats namespace: {e}") from e


class ValkeySettings(BaseSettings):
    """Valkey (Redis-compatible) connection settings."""

    model_config = SettingsConfigDict(env_prefix="VALKEY_")

    host: str = Field(default="localhost", min_length=1, description="Valkey host")
    port: int = Field(default=6379, gt=0, description="Valkey port")
    password: Optional[str] = Field(default=None, description="Valkey password")
    connect_timeout_ms: int = Field(
        default=20000, gt=0, description="Connection establishment timeout in milliseconds"
    )
    retries: int = Field(
        default=10, ge=0, description="Client retries for transient connection failures"
    )
    client_name: str = Field(default="statcounter", description="CLIENT SETNAME value")

    # Cluster topology: comma-separated host:port list, empty for a single node
    cluster_nodes: str = Field(
        default="", description="Cluster startup nodes (host:port,host:port)"
    )

    scan_page_size: int = Field(
        default=100, gt=0, description="Candidate keys requested per SCAN round trip"
    )

    @property
    def connect_timeout_seconds(self) -> float:
        return self.connect_timeout_ms / 1000.0

    @property
    def cluster_node_list(self) -> list[tuple[str, int]]:
        """
        Parse cluster_nodes into (host, port) pairs.

        Raises:
            ConfigurationError: If an entry is not host:port
        """
        nodes = []
        for entry in self.cluster_nodes.split(","):
            entry = entry.strip()
            if not entry:
                continue
            host, sep, port = entry.rpartition(":")
            if not sep or not host or not port.isdigit():
                raise ConfigurationError(f"Invalid cluster node '{entry}', expected host:port")
            nodes.append((host, int(port)))
        return nodes

    @property
    def is_cluster(self) -> bool:
        """Presence of cluster nodes selects the cluster topology."""
        return bool(self.cluster_node_list)


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        extra="ignore",
    )

    # Nested settings
    app: AppSettings = Field(default_factory=AppSettings)
    valkey: ValkeySettings = Field(default_factory=ValkeySettings)

    # General settings
    log_level: str = Field(default="INFO", description="Logging level")


def load_settings(**overrides) -> Settings:
    """
    Build settings from the environment, reporting problems as ConfigurationError.

    Args:
        **overrides: Explicit values for top-level settings (app, valkey, log_level)

    Raises:
        ConfigurationError: If required namespace or connection fields are missing
    """
    try:
        settings = Settings(**overrides)
    except ValidationError as e:
        missing = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise ConfigurationError(f"Invalid stats configuration ({missing}): {e}") from e

    # Namespace fields must be usable as key segments
    settings.app.prefix
    return settings


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Settings are loaded once and cached for subsequent calls.
    """
    return load_settings()
