# ==============================================================================
# Collector Factory
# ==============================================================================
"""
Wires a Collector from settings.

Storage modes:
- postgresql: websites, sessions, events and session data in PostgreSQL
- opensearch: websites in PostgreSQL; events and session data in OpenSearch,
  sessions derived from events (no eager session creation)

With VALKEY_ENABLED the website and session lookups are wrapped in a
read-through Valkey cache.
"""

import logging

from beacon.base import SessionRepository, WebsiteRepository
from beacon.core.collector import Collector
from beacon.core.identity import hash_value, session_salt
from beacon.core.token import TokenCodec
from beacon.core.visit import VisitWindowResolver
from beacon.infrastructure.cache import ValkeyCache
from beacon.infrastructure.detect import (
    HeaderClientInfoResolver,
    NetworkBlockList,
    SubstringBotClassifier,
)
from beacon.infrastructure.repositories import (
    CachedSessionRepository,
    CachedWebsiteRepository,
    PostgreSQLEventRepository,
    PostgreSQLIdentityRepository,
    PostgreSQLPool,
    PostgreSQLSessionRepository,
    PostgreSQLWebsiteRepository,
)
from beacon.infrastructure.search import (
    OpenSearchEventRepository,
    OpenSearchIdentityRepository,
    OpenSearchSessionRepository,
    OpenSearchStore,
)
from beacon.utils.config import Settings, get_settings

logger = logging.getLogger(__name__)


def get_secret(settings: Settings) -> str:
    """APP_SECRET, or the database URL when no secret is configured."""
    secret = settings.collector.app_secret
    if not secret:
        logger.warning("APP_SECRET is not set; deriving the signing key from the database URL")
        secret = settings.postgres.connection_string
    return secret


def build_collector(settings: Settings | None = None) -> Collector:
    """
    Build a Collector with the adapters selected by settings.

    Repositories are created but not connected; call connect_collector()
    before serving beacons.
    """
    settings = settings or get_settings()
    collector_settings = settings.collector
    secret = get_secret(settings)

    pool = PostgreSQLPool(settings)
    websites: WebsiteRepository = PostgreSQLWebsiteRepository(pool)

    sessions: SessionRepository
    if collector_settings.storage_mode == "opensearch":
        store = OpenSearchStore(settings)
        sessions = OpenSearchSessionRepository(store)
        events = OpenSearchEventRepository(store)
        identities = OpenSearchIdentityRepository(store)
    else:
        sessions = PostgreSQLSessionRepository(pool)
        events = PostgreSQLEventRepository(pool)
        identities = PostgreSQLIdentityRepository(pool)

    if settings.valkey.enabled:
        cache = ValkeyCache(settings.valkey)
        ttl = settings.valkey.lookup_ttl_seconds
        websites = CachedWebsiteRepository(websites, cache, ttl_seconds=ttl)
        sessions = CachedSessionRepository(sessions, cache, ttl_seconds=ttl)

    logger.info(
        "Collector configured (storage=%s, cache=%s, bot_check=%s)",
        collector_settings.storage_mode,
        "valkey" if settings.valkey.enabled else "off",
        "off" if collector_settings.disable_bot_check else "on",
    )

    return Collector(
        websites=websites,
        sessions=sessions,
        events=events,
        identities=identities,
        client_info=HeaderClientInfoResolver(collector_settings.client_ip_header),
        block_list=NetworkBlockList(collector_settings.blocked_networks),
        bot_classifier=SubstringBotClassifier(),
        tokens=TokenCodec(hash_value(secret), max_age=collector_settings.token_max_age_seconds),
        visits=VisitWindowResolver(secret, collector_settings.visit_timeout_seconds),
        session_salt=session_salt(secret),
        disable_bot_check=collector_settings.disable_bot_check,
        remove_trailing_slash=collector_settings.remove_trailing_slash,
    )


def _repositories(collector: Collector) -> list:
    return [collector.websites, collector.sessions, collector.events, collector.identities]


def connect_collector(collector: Collector) -> None:
    """Connect every repository (shared pools open once)."""
    for repository in _repositories(collector):
        repository.connect()


def close_collector(collector: Collector) -> None:
    """Close every repository; errors are logged so the rest still close."""
    for repository in _repositories(collector):
        try:
            repository.close()
        except Exception as e:
            logger.warning("Error closing %s: %s", type(repository).__name__, e)
