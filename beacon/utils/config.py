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
from pydantic import AliasChoices, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file before any settings are instantiated
load_dotenv()


class CollectorSettings(BaseSettings):
    """Beacon collector behaviour.

    The toggles accept both the prefixed name (``COLLECTOR_DISABLE_BOT_CHECK``)
    and the bare name used by tracker deployments (``DISABLE_BOT_CHECK``).
    """

    model_config = SettingsConfigDict(env_prefix="COLLECTOR_")

    app_secret: str = Field(
        default="",
        validation_alias=AliasChoices("COLLECTOR_APP_SECRET", "APP_SECRET"),
        description="Secret used to sign continuation tokens and salt identifiers",
    )
    disable_bot_check: bool = Field(
        default=False,
        validation_alias=AliasChoices("COLLECTOR_DISABLE_BOT_CHECK", "DISABLE_BOT_CHECK"),
        description="Accept beacons from user agents classified as bots",
    )
    remove_trailing_slash: bool = Field(
        default=False,
        validation_alias=AliasChoices("COLLECTOR_REMOVE_TRAILING_SLASH", "REMOVE_TRAILING_SLASH"),
        description="Strip a single trailing slash from URL paths",
    )
    ignore_ip: str = Field(
        default="",
        validation_alias=AliasChoices("COLLECTOR_IGNORE_IP", "IGNORE_IP"),
        description="Comma-separated IP addresses or CIDR ranges to reject",
    )
    client_ip_header: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("COLLECTOR_CLIENT_IP_HEADER", "CLIENT_IP_HEADER"),
        description="Header to read the client IP from before the built-in list",
    )
    storage_mode: Literal["postgresql", "opensearch"] = Field(
        default="postgresql",
        description="Event store (postgresql: relational, opensearch: analytic)",
    )
    visit_timeout_seconds: int = Field(
        default=1800, description="A visit lapses after this many idle seconds"
    )
    token_max_age_seconds: Optional[int] = Field(
        default=None,
        description=(
            "Reject continuation tokens whose visit started longer ago than this"
            " (None: no limit; never below visit_timeout_seconds)"
        ),
    )
    cache_header: str = Field(
        default="x-beacon-cache", description="Request header carrying the continuation token"
    )

    @model_validator(mode="after")
    def _token_outlives_visit(self) -> "CollectorSettings":
        # Token age is measured from the visit start, so a shorter limit
        # would end visits before their timeout
        if (
            self.token_max_age_seconds is not None
            and self.token_max_age_seconds < self.visit_timeout_seconds
        ):
            raise ValueError(
                f"token_max_age_seconds ({self.token_max_age_seconds}) must be at least "
                f"visit_timeout_seconds ({self.visit_timeout_seconds})"
            )
        return self

    @property
    def blocked_networks(self) -> list[str]:
        """Entries of IGNORE_IP, stripped and without blanks."""
        return [entry.strip() for entry in self.ignore_ip.split(",") if entry.strip()]


class PostgresSettings(BaseSettings):
    """PostgreSQL connection settings."""

    model_config = SettingsConfigDict(env_prefix="PG_")

    host: str = Field(default="localhost", description="PostgreSQL host")
    port: int = Field(default=5432, description="PostgreSQL port")
    user: str = Field(default="postgres", description="PostgreSQL username")
    password: str = Field(default="", description="PostgreSQL password")
    database: str = Field(default="beacon", description="Database name")
    schema_name: str = Field(default="beacon", description="Schema name")
    sslmode: str = Field(default="prefer", description="SSL mode")
    pool_min: int = Field(default=1, description="Minimum pooled connections")
    pool_max: int = Field(default=10, description="Maximum pooled connections")

    @property
    def connection_string(self) -> str:
        """Build PostgreSQL connection string."""
        return (
            f"postgresql://{self.user}:{self.password}@"
            f"{self.host}:{self.port}/{self.database}?sslmode={self.sslmode}"
        )


class ValkeySettings(BaseSettings):
    """Valkey (Redis-compatible) settings for the lookup cache."""

    model_config = SettingsConfigDict(env_prefix="VALKEY_")

    enabled: bool = Field(default=False, description="Cache website and session lookups")
    host: str = Field(default="localhost", description="Valkey host")
    port: int = Field(default=6379, description="Valkey port")
    password: Optional[str] = Field(default=None, description="Valkey password")
    db: int = Field(default=0, description="Valkey database number")
    ssl: bool = Field(default=False, description="Use SSL/TLS connection")

    lookup_ttl_seconds: int = Field(
        default=86400, description="TTL for cached website and session lookups"
    )
    key_prefix: str = Field(default="beacon:", description="Namespace prepended to every cache key")

    @property
    def url(self) -> str:
        """Build Valkey connection URL."""
        scheme = "rediss" if self.ssl else "redis"
        if self.password:
            return f"{scheme}://:{self.password}@{self.host}:{self.port}/{self.db}"
        return f"{scheme}://{self.host}:{self.port}/{self.db}"


class OpenSearchSettings(BaseSettings):
    """OpenSearch connection settings (analytic storage mode)."""

    model_config = SettingsConfigDict(env_prefix="OPENSEARCH_")

    host: str = Field(default="localhost", description="OpenSearch host")
    port: int = Field(default=9200, description="OpenSearch port")
    user: str = Field(default="admin", description="OpenSearch username")
    password: str = Field(default="admin", description="OpenSearch password")
    use_ssl: bool = Field(default=True, description="Use SSL")
    verify_certs: bool = Field(
        default=True, description="Verify SSL certificates (False for local self-signed)"
    )

    events_index: str = Field(default="beacon-events", description="Events index name")
    session_data_index: str = Field(
        default="beacon-session-data", description="Identity beacon index name"
    )

    @property
    def hosts(self) -> list[dict]:
        """Build OpenSearch hosts configuration."""
        return [
            {
                "host": self.host,
                "port": self.port,
            }
        ]


class ServerSettings(BaseSettings):
    """HTTP server settings for `beacon serve`."""

    model_config = SettingsConfigDict(env_prefix="SERVER_")

    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=8000, description="Bind port")
    workers: int = Field(default=1, description="Uvicorn worker processes")


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        extra="ignore",
    )

    # Nested settings
    collector: CollectorSettings = Field(default_factory=CollectorSettings)
    postgres: PostgresSettings = Field(default_factory=PostgresSettings)
    valkey: ValkeySettings = Field(default_factory=ValkeySettings)
    opensearch: OpenSearchSettings = Field(default_factory=OpenSearchSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)

    # General settings
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Logging level")


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Settings are loaded once and cached for subsequent calls.
    """
    return Settings()
