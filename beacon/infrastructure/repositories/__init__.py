# ==============================================================================
# Database Repository Adapters
# ==============================================================================
"""
Database adapters implementing the repository interfaces from base/repositories.py.

Currently supported:
- PostgreSQL (postgresql.py), relational mode
- Valkey-backed lookup caching around any website/session repository (cached.py)
"""

from beacon.infrastructure.repositories.cached import (
    CachedSessionRepository,
    CachedWebsiteRepository,
)
from beacon.infrastructure.repositories.postgresql import (
    PostgreSQLEventRepository,
    PostgreSQLIdentityRepository,
    PostgreSQLPool,
    PostgreSQLSessionRepository,
    PostgreSQLWebsiteRepository,
    check_postgresql_connection,
    is_unique_violation,
)

__all__ = [
    "CachedSessionRepository",
    "CachedWebsiteRepository",
    "PostgreSQLEventRepository",
    "PostgreSQLIdentityRepository",
    "PostgreSQLPool",
    "PostgreSQLSessionRepository",
    "PostgreSQLWebsiteRepository",
    "check_postgresql_connection",
    "is_unique_violation",
]
