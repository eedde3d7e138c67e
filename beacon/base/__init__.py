# ==============================================================================
# Base Abstract Classes
# ==============================================================================
"""
Abstract base classes defining the collaborators of the collector
(ports-and-adapters architecture).

Concrete adapters live in beacon.infrastructure.
"""

from beacon.base.cache import Cache
from beacon.base.detect import BlockList, BotClassifier, ClientInfoResolver
from beacon.base.repositories import (
    CreateResult,
    EventRepository,
    IdentityRepository,
    SessionRepository,
    WebsiteRepository,
)

__all__ = [
    "BlockList",
    "BotClassifier",
    "Cache",
    "ClientInfoResolver",
    "CreateResult",
    "EventRepository",
    "IdentityRepository",
    "SessionRepository",
    "WebsiteRepository",
]
