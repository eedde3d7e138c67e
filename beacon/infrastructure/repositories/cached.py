# ==============================================================================
# Cached Lookup Repositories
# ==============================================================================
"""
Read-through cache decorators for website and session lookups.

Clients that do not send a continuation token (first beacon, cookieless
trackers) would otherwise hit the database twice per beacon. These wrappers
keep found websites and sessions in a Cache (Valkey) for a TTL.

A failing cache never fails a beacon: errors are logged and the wrapped
repository answers instead.
"""

import logging

from pydantic import ValidationError

from beacon.base import Cache
from beacon.base.repositories import CreateResult, SessionRepository, WebsiteRepository
from beacon.core.models import SessionRecord, Website
from beacon.utils.retry import REDIS_RETRY_EXCEPTIONS

logger = logging.getLogger(__name__)

WEBSITE_KEY_PREFIX = "website:"
SESSION_KEY_PREFIX = "session:"


class CachedWebsiteRepository(WebsiteRepository):
    """Caches found websites; misses are not cached."""

    def __init__(self, inner: WebsiteRepository, cache: Cache, ttl_seconds: int = 86400):
        self._inner = inner
        self._cache = cache
        self._ttl = ttl_seconds

    def _key(self, website_id: str) -> str:
        return f"{WEBSITE_KEY_PREFIX}{website_id}"

    def connect(self) -> None:
        self._inner.connect()

    def find(self, website_id: str) -> Website | None:
        key = self._key(website_id)
        try:
            cached = self._cache.get(key)
        except REDIS_RETRY_EXCEPTIONS as e:
            logger.warning("Website cache read failed: %s", e)
            cached = None
        if cached is not None:
            try:
                return Website.model_validate(cached)
            except ValidationError:
                logger.warning("Discarding malformed cache entry %s", key)

        website = self._inner.find(website_id)
        if website is not None:
            try:
                self._cache.set(key, website.model_dump(), ttl_seconds=self._ttl)
            except REDIS_RETRY_EXCEPTIONS as e:
                logger.warning("Website cache write failed: %s", e)
        return website

    def close(self) -> None:
        self._inner.close()
        self._cache.close()


class CachedSessionRepository(SessionRepository):
    """Caches found and newly created sessions."""

    def __init__(self, inner: SessionRepository, cache: Cache, ttl_seconds: int = 86400):
        self._inner = inner
        self._cache = cache
        self._ttl = ttl_seconds

    @property
    def supports_eager_session_creation(self) -> bool:
        return self._inner.supports_eager_session_creation

    def _key(self, session_id: str) -> str:
        return f"{SESSION_KEY_PREFIX}{session_id}"

    def _remember(self, session: SessionRecord) -> None:
        try:
            self._cache.set(self._key(session.id), session.model_dump(), ttl_seconds=self._ttl)
        except REDIS_RETRY_EXCEPTIONS as e:
            logger.warning("Session cache write failed: %s", e)

    def connect(self) -> None:
        self._inner.connect()

    def find(self, website_id: str, session_id: str) -> SessionRecord | None:
        try:
            cached = self._cache.get(self._key(session_id))
        except REDIS_RETRY_EXCEPTIONS as e:
            logger.warning("Session cache read failed: %s", e)
            cached = None
        if cached is not None and cached.get("website_id") == website_id:
            try:
                return SessionRecord.model_validate(cached)
            except ValidationError:
                logger.warning("Discarding malformed cache entry for session %s", session_id)

        session = self._inner.find(website_id, session_id)
        if session is not None:
            self._remember(session)
        return session

    def create(self, session: SessionRecord) -> CreateResult:
        result = self._inner.create(session)
        self._remember(session)
        return result

    def close(self) -> None:
        self._inner.close()
        self._cache.close()
