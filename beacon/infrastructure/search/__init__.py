# ==============================================================================
# Search Engine Adapters
# ==============================================================================
"""
Analytic-store adapters implementing the repository interfaces from
base/repositories.py.

Currently supported:
- OpenSearch (opensearch.py)
"""

from beacon.infrastructure.search.opensearch import (
    OpenSearchEventRepository,
    OpenSearchIdentityRepository,
    OpenSearchSessionRepository,
    OpenSearchStore,
    check_opensearch_connection,
)

__all__ = [
    "OpenSearchEventRepository",
    "OpenSearchIdentityRepository",
    "OpenSearchSessionRepository",
    "OpenSearchStore",
    "check_opensearch_connection",
]
