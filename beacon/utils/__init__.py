# ==============================================================================
# Beacon Collector Utilities
# ==============================================================================
"""
Shared utilities: configuration, schema management, retry policies, paths.
"""

from beacon.utils.config import (
    CollectorSettings,
    OpenSearchSettings,
    PostgresSettings,
    ServerSettings,
    Settings,
    ValkeySettings,
    get_settings,
)
from beacon.utils.db import (
    ensure_schema,
    reset_schema,
)

__all__ = [
    # Config
    "CollectorSettings",
    "OpenSearchSettings",
    "PostgresSettings",
    "ServerSettings",
    "Settings",
    "ValkeySettings",
    "get_settings",
    # Database
    "ensure_schema",
    "reset_schema",
]
