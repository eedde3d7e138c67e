# ==============================================================================
# OpenSearch Repository Implementations
# ==============================================================================
"""
OpenSearch implementations of the repository interfaces (analytic mode).

Provides:
- OpenSearchStore: Shared client plus index management
- OpenSearchEventRepository: One document per event
- OpenSearchSessionRepository: Sessions derived from event documents
- OpenSearchIdentityRepository: One merged document per session

In this mode there is no session table. A session exists once one of its
events is indexed, so the collector never creates sessions eagerly.
"""

import logging

from opensearchpy import OpenSearch
from opensearchpy.exceptions import NotFoundError, OpenSearchException

from beacon.base.repositories import (
    CreateResult,
    EventRepository,
    IdentityRepository,
    SessionRepository,
)
from beacon.core.exceptions import StorageError
from beacon.core.models import EventRecord, IdentityRecord, SessionRecord
from beacon.utils.config import Settings, get_settings
from beacon.utils.retry import OPENSEARCH_RETRY_EXCEPTIONS, retry_light, retry_standard

logger = logging.getLogger(__name__)

SESSION_FIELDS = (
    "hostname",
    "browser",
    "os",
    "device",
    "screen",
    "language",
    "country",
    "subdivision1",
    "subdivision2",
    "city",
)

EVENTS_MAPPING = {
    "properties": {
        "website_id": {"type": "keyword"},
        "session_id": {"type": "keyword"},
        "visit_id": {"type": "keyword"},
        "event_type": {"type": "byte"},
        "event_name": {"type": "keyword"},
        "event_data": {"type": "object", "enabled": False},
        "url_path": {"type": "keyword"},
        "url_query": {"type": "keyword"},
        "referrer_path": {"type": "keyword"},
        "referrer_query": {"type": "keyword"},
        "referrer_domain": {"type": "keyword"},
        "page_title": {"type": "text"},
        "tag": {"type": "keyword"},
        "created_at": {"type": "date"},
        **{name: {"type": "keyword"} for name in SESSION_FIELDS},
    }
}

SESSION_DATA_MAPPING = {
    "properties": {
        "website_id": {"type": "keyword"},
        "session_id": {"type": "keyword"},
        "data": {"type": "object", "dynamic": True},
        "created_at": {"type": "date"},
    }
}


class OpenSearchStore:
    """OpenSearch client shared by the analytic-mode repositories."""

    def __init__(self, settings: Settings | None = None):
        self._settings = settings or get_settings()
        self._client: OpenSearch | None = None

    @property
    def events_index(self) -> str:
        return self._settings.opensearch.events_index

    @property
    def session_data_index(self) -> str:
        return self._settings.opensearch.session_data_index

    @property
    def client(self) -> OpenSearch:
        if self._client is None:
            raise StorageError("OpenSearch connection not established. Call connect() first.")
        return self._client

    @retry_standard(OPENSEARCH_RETRY_EXCEPTIONS, logger)
    def open(self) -> None:
        """Establish connection to OpenSearch (idempotent)."""
        if self._client is not None:
            return
        os_settings = self._settings.opensearch
        client = OpenSearch(
            hosts=os_settings.hosts,
            http_auth=(os_settings.user, os_settings.password),
            use_ssl=os_settings.use_ssl,
            verify_certs=os_settings.verify_certs,
            ssl_show_warn=False,
            timeout=30,
            max_retries=3,
            retry_on_timeout=True,
        )
        info = client.info()
        self._client = client
        logger.info(
            "OpenSearch connected (cluster=%s, events=%s)",
            info.get("cluster_name", "unknown"),
            self.events_index,
        )

    def ensure_indices(self) -> list[str]:
        """Create missing indices. Returns the names that were created."""
        created = []
        for index, mapping in (
            (self.events_index, EVENTS_MAPPING),
            (self.session_data_index, SESSION_DATA_MAPPING),
        ):
            if not self.client.indices.exists(index=index):
                self.client.indices.create(index=index, body={"mappings": mapping})
                created.append(index)
                logger.info("Created OpenSearch index %s", index)
        return created

    def close(self) -> None:
        if self._client is not None:
            try:
                self._client.close()
                logger.info("OpenSearch connection closed")
            except OpenSearchException as e:
                logger.warning("Error closing connection: %s", e)
            finally:
                self._client = None


class _OpenSearchRepository:
    def __init__(self, store: OpenSearchStore | None = None, settings: Settings | None = None):
        self._store = store or OpenSearchStore(settings)

    def connect(self) -> None:
        self._store.open()

    def close(self) -> None:
        self._store.close()


class OpenSearchEventRepository(_OpenSearchRepository, EventRepository):
    """Indexes each event as its own document."""

    def save(self, event: EventRecord) -> None:
        document = event.to_db_record()
        document["created_at"] = event.created_at.isoformat()
        try:
            self._store.client.index(index=self._store.events_index, body=document)
        except OpenSearchException as e:
            raise StorageError(f"Event indexing failed: {e}", e) from e


class OpenSearchSessionRepository(_OpenSearchRepository, SessionRepository):
    """Reads sessions back from the first event indexed for them."""

    supports_eager_session_creation = False

    def find(self, website_id: str, session_id: str) -> SessionRecord | None:
        query = {
            "size": 1,
            "sort": [{"created_at": {"order": "asc"}}],
            "_source": ["website_id", "session_id", *SESSION_FIELDS],
            "query": {
                "bool": {
                    "filter": [
                        {"term": {"website_id": website_id}},
                        {"term": {"session_id": session_id}},
                    ]
                }
            },
        }
        try:
            response = self._store.client.search(index=self._store.events_index, body=query)
        except NotFoundError:
            return None
        except OpenSearchException as e:
            raise StorageError(f"Session lookup failed: {e}", e) from e

        hits = response.get("hits", {}).get("hits", [])
        if not hits:
            return None
        source = hits[0]["_source"]
        return SessionRecord(
            id=source["session_id"],
            website_id=source["website_id"],
            **{name: source.get(name) for name in SESSION_FIELDS},
        )

    def create(self, session: SessionRecord) -> CreateResult:
        # Sessions are implied by their events; nothing to write.
        return CreateResult.CONFLICT


class OpenSearchIdentityRepository(_OpenSearchRepository, IdentityRepository):
    """Upserts one document per session; new keys merge into existing data."""

    def save(self, identity: IdentityRecord) -> None:
        document = {
            "website_id": identity.website_id,
            "session_id": identity.session_id,
            "data": identity.session_data,
            "created_at": identity.created_at.isoformat(),
        }
        try:
            self._store.client.update(
                index=self._store.session_data_index,
                id=identity.session_id,
                body={"doc": document, "doc_as_upsert": True},
            )
        except OpenSearchException as e:
            raise StorageError(f"Session data upsert failed: {e}", e) from e


def check_opensearch_connection(settings: Settings | None = None) -> bool:
    """
    Check if OpenSearch is reachable.

    Returns:
        True if connection successful, False otherwise
    """
    settings = settings or get_settings()
    os_settings = settings.opensearch

    @retry_light(OPENSEARCH_RETRY_EXCEPTIONS, logger)
    def _ping() -> None:
        client = OpenSearch(
            hosts=os_settings.hosts,
            http_auth=(os_settings.user, os_settings.password),
            use_ssl=os_settings.use_ssl,
            verify_certs=os_settings.verify_certs,
            ssl_show_warn=False,
            timeout=5,
        )
        try:
            client.info()
        finally:
            client.close()

    try:
        _ping()
        return True
    except OpenSearchException:
        return False
