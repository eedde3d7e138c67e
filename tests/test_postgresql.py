# ==============================================================================
# Tests for PostgreSQL Repositories
# ==============================================================================
"""
Unit tests for the PostgreSQL adapters using a mocked connection pool.

Tests cover:
- Unique violations are reported as CreateResult.CONFLICT
- Other driver errors become StorageError
- Website and session rows map to models
- Session data is flattened into one upsert row per key
"""

from unittest.mock import MagicMock, patch

import psycopg2
import pytest
from psycopg2 import errors as pg_errors

from beacon.base import CreateResult
from beacon.core.exceptions import StorageError
from beacon.core.models import EventRecord, IdentityRecord, SessionRecord
from beacon.infrastructure.repositories import (
    PostgreSQLEventRepository,
    PostgreSQLIdentityRepository,
    PostgreSQLPool,
    PostgreSQLSessionRepository,
    PostgreSQLWebsiteRepository,
    is_unique_violation,
)
from beacon.utils.config import Settings

WEBSITE_ID = "6d1f2a3b-4c5d-4e6f-8a9b-0c1d2e3f4a5b"
SESSION = SessionRecord(id="7e2f3a4b-5c6d-5e7f-9a0b-1c2d3e4f5a6b", website_id=WEBSITE_ID)


@pytest.fixture()
def cursor():
    return MagicMock()


@pytest.fixture()
def pool(cursor):
    """A PostgreSQLPool stand-in whose connections hand out ``cursor``."""
    conn = MagicMock()
    conn.cursor.return_value.__enter__.return_value = cursor
    pool = MagicMock(spec=PostgreSQLPool)
    pool.schema = "beacon"
    pool.connection.return_value.__enter__.return_value = conn
    return pool


class TestIsUniqueViolation:
    def test_unique_violation_class(self):
        assert is_unique_violation(pg_errors.UniqueViolation("duplicate key"))

    def test_message_match(self):
        error = psycopg2.IntegrityError('duplicate key value violates unique constraint "session_pkey"')
        assert is_unique_violation(error)

    def test_other_error(self):
        assert not is_unique_violation(psycopg2.OperationalError("server closed the connection"))


class TestSessionRepository:
    def test_create(self, pool, cursor):
        assert PostgreSQLSessionRepository(pool).create(SESSION) == CreateResult.CREATED
        sql, params = cursor.execute.call_args.args
        assert "INSERT INTO beacon.session" in sql
        assert params["session_id"] == SESSION.id

    def test_create_conflict(self, pool, cursor):
        cursor.execute.side_effect = pg_errors.UniqueViolation("duplicate key")
        assert PostgreSQLSessionRepository(pool).create(SESSION) == CreateResult.CONFLICT

    def test_create_failure(self, pool, cursor):
        cursor.execute.side_effect = psycopg2.OperationalError("connection lost")
        with pytest.raises(StorageError):
            PostgreSQLSessionRepository(pool).create(SESSION)

    def test_find(self, pool, cursor):
        cursor.fetchone.return_value = {
            "id": SESSION.id,
            "website_id": WEBSITE_ID,
            "hostname": "example.com",
            "browser": "chrome",
            "os": None,
            "device": None,
            "screen": None,
            "language": None,
            "country": None,
            "subdivision1": None,
            "subdivision2": None,
            "city": None,
        }
        session = PostgreSQLSessionRepository(pool).find(WEBSITE_ID, SESSION.id)
        assert session.id == SESSION.id
        assert session.browser == "chrome"

    def test_find_missing(self, pool, cursor):
        cursor.fetchone.return_value = None
        assert PostgreSQLSessionRepository(pool).find(WEBSITE_ID, SESSION.id) is None


class TestWebsiteRepository:
    def test_find(self, pool, cursor):
        cursor.fetchone.return_value = {"id": WEBSITE_ID, "name": "Example", "domain": "example.com"}
        assert PostgreSQLWebsiteRepository(pool).find(WEBSITE_ID).domain == "example.com"

    def test_soft_deleted_excluded(self, pool, cursor):
        cursor.fetchone.return_value = None
        assert PostgreSQLWebsiteRepository(pool).find(WEBSITE_ID) is None
        assert "deleted_at IS NULL" in cursor.execute.call_args.args[0]

    def test_driver_error(self, pool, cursor):
        cursor.execute.side_effect = psycopg2.OperationalError("timeout")
        with pytest.raises(StorageError):
            PostgreSQLWebsiteRepository(pool).find(WEBSITE_ID)


class TestEventRepository:
    def test_save(self, pool, cursor):
        event = EventRecord(
            website_id=WEBSITE_ID,
            session_id=SESSION.id,
            visit_id="v-1",
            url_path="/",
            event_name="signup",
            event_data={"plan": "pro"},
        )
        PostgreSQLEventRepository(pool).save(event)
        params = cursor.execute.call_args.args[1]
        assert params["event_type"] == 2
        assert params["event_data"].adapted == {"plan": "pro"}

    def test_save_without_data(self, pool, cursor):
        event = EventRecord(website_id=WEBSITE_ID, session_id=SESSION.id, visit_id="v", url_path="/")
        PostgreSQLEventRepository(pool).save(event)
        params = cursor.execute.call_args.args[1]
        assert params["event_type"] == 1
        assert params["event_data"] is None


class TestIdentityRepository:
    def test_rows_per_key(self, pool):
        identity = IdentityRecord(
            website_id=WEBSITE_ID,
            session_id=SESSION.id,
            session_data={"user": {"plan": "pro"}, "seats": 3},
        )
        with patch("beacon.infrastructure.repositories.postgresql.execute_batch") as batch:
            PostgreSQLIdentityRepository(pool).save(identity)

        sql, rows = batch.call_args.args[1], batch.call_args.args[2]
        assert "ON CONFLICT (session_id, data_key) DO UPDATE" in sql
        assert [(r["data_key"], r["data_type"]) for r in rows] == [("user.plan", 1), ("seats", 2)]
        assert rows[1]["number_value"] == 3


class TestPool:
    def test_connection_requires_open(self):
        pool = PostgreSQLPool(Settings())
        with pytest.raises(StorageError):
            with pool.connection():
                pass
