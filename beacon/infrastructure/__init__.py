# ==============================================================================
# Infrastructure Adapters
# ==============================================================================
"""
Adapters for external services (ports-and-adapters architecture).

This module contains concrete implementations of the base ABCs:
- cache/ - Cache adapters (Valkey/Redis)
- repositories/ - Database adapters (PostgreSQL) and cached lookups
- search/ - Search engine adapters (OpenSearch, analytic mode)
- detect.py - Bot classifier, IP block list, client info from headers
- factory.py - Collector wiring from settings
"""

from beacon.infrastructure.cache import ValkeyCache, check_valkey_connection
from beacon.infrastructure.detect import (
    HeaderClientInfoResolver,
    NetworkBlockList,
    SubstringBotClassifier,
)
from beacon.infrastructure.factory import build_collector, close_collector, connect_collector
from beacon.infrastructure.repositories import (
    PostgreSQLEventRepository,
    PostgreSQLIdentityRepository,
    PostgreSQLSessionRepository,
    PostgreSQLWebsiteRepository,
    check_postgresql_connection,
)
from beacon.infrastructure.search import OpenSearchStore, check_opensearch_connection

__all__ = [
    # Cache
    "ValkeyCache",
    "check_valkey_connection",
    # Detection
    "HeaderClientInfoResolver",
    "NetworkBlockList",
    "SubstringBotClassifier",
    # Factory
    "build_collector",
    "close_collector",
    "connect_collector",
    # Repositories
    "PostgreSQLEventRepository",
    "PostgreSQLIdentityRepository",
    "PostgreSQLSessionRepository",
    "PostgreSQLWebsiteRepository",
    "check_postgresql_connection",
    # Search
    "OpenSearchStore",
    "check_opensearch_connection",
]
