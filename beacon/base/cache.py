# ==============================================================================
# Lookup Cache Interface
# ==============================================================================
"""
Key-value store in front of the website and session lookups.

Beacons from clients that do not echo a continuation token would otherwise
cost a database round trip per lookup. Entries always expire; a stale
website or session may be served for at most one TTL.
"""

from abc import ABC, abstractmethod


class Cache(ABC):
    """Expiring dict store. Implementations own serialization."""

    @abstractmethod
    def get(self, key: str) -> dict | None:
        """Return the entry for key, or None when absent or unreadable."""
        ...

    @abstractmethod
    def set(self, key: str, value: dict, ttl_seconds: int) -> None:
        """Store value under key for ttl_seconds."""
        ...

    def close(self) -> None:
        """Release connections. No-op by default."""
