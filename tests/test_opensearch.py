# ==============================================================================
# Tests for OpenSearch Repositories
# ==============================================================================
"""
Unit tests for the analytic-mode adapters using a mocked OpenSearch client.
"""

from unittest.mock import MagicMock

import pytest
from opensearchpy.exceptions import NotFoundError, OpenSearchException

from beacon.base import CreateResult
from beacon.core.exceptions import StorageError
from beacon.core.models import EventRecord, IdentityRecord, SessionRecord
from beacon.infrastructure.search import (
    OpenSearchEventRepository,
    OpenSearchIdentityRepository,
    OpenSearchSessionRepository,
    OpenSearchStore,
)

WEBSITE_ID = "6d1f2a3b-4c5d-4e6f-8a9b-0c1d2e3f4a5b"
SESSION_ID = "7e2f3a4b-5c6d-5e7f-9a0b-1c2d3e4f5a6b"


@pytest.fixture()
def store():
    store = MagicMock(spec=OpenSearchStore)
    store.client = MagicMock()
    store.events_index = "beacon-events"
    store.session_data_index = "beacon-session-data"
    return store


class TestSessionRepository:
    def test_no_eager_creation(self, store):
        repo = OpenSearchSessionRepository(store)
        assert repo.supports_eager_session_creation is False
        assert repo.create(SessionRecord(id=SESSION_ID, website_id=WEBSITE_ID)) == CreateResult.CONFLICT
        store.client.index.assert_not_called()

    def test_find_from_first_event(self, store):
        store.client.search.return_value = {
            "hits": {
                "hits": [
                    {"_source": {"website_id": WEBSITE_ID, "session_id": SESSION_ID, "os": "iOS"}}
                ]
            }
        }
        session = OpenSearchSessionRepository(store).find(WEBSITE_ID, SESSION_ID)
        assert session.id == SESSION_ID
        assert session.os == "iOS"
        assert store.client.search.call_args.kwargs["index"] == "beacon-events"

    def test_find_missing(self, store):
        store.client.search.return_value = {"hits": {"hits": []}}
        assert OpenSearchSessionRepository(store).find(WEBSITE_ID, SESSION_ID) is None

    def test_missing_index(self, store):
        store.client.search.side_effect = NotFoundError(404, "index_not_found_exception", {})
        assert OpenSearchSessionRepository(store).find(WEBSITE_ID, SESSION_ID) is None


class TestEventRepository:
    def test_index_document(self, store):
        event = EventRecord(website_id=WEBSITE_ID, session_id=SESSION_ID, visit_id="v", url_path="/")
        OpenSearchEventRepository(store).save(event)
        body = store.client.index.call_args.kwargs["body"]
        assert body["event_type"] == 1
        assert isinstance(body["created_at"], str)

    def test_failure_wrapped(self, store):
        store.client.index.side_effect = OpenSearchException("boom")
        event = EventRecord(website_id=WEBSITE_ID, session_id=SESSION_ID, visit_id="v", url_path="/")
        with pytest.raises(StorageError):
            OpenSearchEventRepository(store).save(event)


class TestIdentityRepository:
    def test_upsert_per_session(self, store):
        identity = IdentityRecord(
            website_id=WEBSITE_ID, session_id=SESSION_ID, session_data={"plan": "pro"}
        )
        OpenSearchIdentityRepository(store).save(identity)
        kwargs = store.client.update.call_args.kwargs
        assert kwargs["id"] == SESSION_ID
        assert kwargs["body"]["doc_as_upsert"] is True
        assert kwargs["body"]["doc"]["data"] == {"plan": "pro"}


class TestStore:
    def test_client_requires_open(self):
        with pytest.raises(StorageError):
            OpenSearchStore().client

    def test_ensure_indices_creates_missing(self):
        store = OpenSearchStore()
        store._client = MagicMock()
        store._client.indices.exists.side_effect = [True, False]
        assert store.ensure_indices() == ["beacon-session-data"]
        store._client.indices.create.assert_called_once()
