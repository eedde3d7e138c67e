# ==============================================================================
# PostgreSQL Repository Implementations
# ==============================================================================
"""
PostgreSQL implementations of the repository interfaces (relational mode).

Provides:
- PostgreSQLPool: Thread-safe connection pool shared by the repositories
- PostgreSQLWebsiteRepository: Website existence lookups
- PostgreSQLSessionRepository: Session lookup and race-tolerant insert
- PostgreSQLEventRepository: Event inserts
- PostgreSQLIdentityRepository: Session data upserts

Driver errors are wrapped in StorageError. A unique violation on session
insert is reported as CreateResult.CONFLICT instead.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager

import psycopg2
from psycopg2 import errors as pg_errors
from psycopg2.extras import Json, RealDictCursor, execute_batch
from psycopg2.pool import ThreadedConnectionPool

from beacon.base.repositories import (
    CreateResult,
    EventRepository,
    IdentityRepository,
    SessionRepository,
    WebsiteRepository,
)
from beacon.core.data import flatten_data
from beacon.core.exceptions import StorageError
from beacon.core.models import EventRecord, IdentityRecord, SessionRecord, Website
from beacon.utils.config import Settings, get_settings
from beacon.utils.retry import POSTGRES_RETRY_EXCEPTIONS, retry_standard

logger = logging.getLogger(__name__)

# Batch size for execute_batch
PAGE_SIZE = 100

# Connection timeout
CONNECT_TIMEOUT = 10


def _add_connect_timeout(conn_string: str) -> str:
    """Add connect_timeout to connection string if not present."""
    if "connect_timeout" not in conn_string:
        separator = "&" if "?" in conn_string else "?"
        return f"{conn_string}{separator}connect_timeout={CONNECT_TIMEOUT}"
    return conn_string


def is_unique_violation(error: BaseException) -> bool:
    """True for driver errors caused by a unique constraint."""
    if isinstance(error, pg_errors.UniqueViolation):
        return True
    return "unique constraint" in str(error).lower()


class PostgreSQLPool:
    """
    Connection pool shared by the PostgreSQL repositories.

    Each repository call checks out a connection, commits on success and
    rolls back on failure, so concurrent beacons never share a transaction.
    """

    def __init__(self, settings: Settings | None = None):
        self._settings = settings or get_settings()
        self._pool: ThreadedConnectionPool | None = None

    @property
    def schema(self) -> str:
        return self._settings.postgres.schema_name

    @retry_standard(POSTGRES_RETRY_EXCEPTIONS, logger)
    def open(self) -> None:
        """Create the pool (idempotent)."""
        if self._pool is not None:
            return
        pg = self._settings.postgres
        self._pool = ThreadedConnectionPool(
            pg.pool_min,
            pg.pool_max,
            _add_connect_timeout(pg.connection_string),
        )
        logger.info("PostgreSQL pool opened (schema=%s, max=%d)", self.schema, pg.pool_max)

    @contextmanager
    def connection(self) -> Iterator[psycopg2.extensions.connection]:
        """Check out a connection for one unit of work."""
        if self._pool is None:
            raise StorageError("PostgreSQL pool not open. Call connect() first.")
        conn = self._pool.getconn()
        try:
            yield conn
            conn.commit()
        except BaseException:
            conn.rollback()
            raise
        finally:
            self._pool.putconn(conn)

    def close(self) -> None:
        if self._pool is not None:
            self._pool.closeall()
            self._pool = None
            logger.info("PostgreSQL pool closed")


class _PostgreSQLRepository:
    """Shared plumbing: pool ownership and connect/close."""

    def __init__(self, pool: PostgreSQLPool | None = None, settings: Settings | None = None):
        self._pool = pool or PostgreSQLPool(settings)

    @property
    def schema(self) -> str:
        """Get the database schema name."""
        return self._pool.schema

    def connect(self) -> None:
        self._pool.open()

    def close(self) -> None:
        self._pool.close()


class PostgreSQLWebsiteRepository(_PostgreSQLRepository, WebsiteRepository):
    """Website lookups. Soft-deleted websites count as missing."""

    def find(self, website_id: str) -> Website | None:
        try:
            with self._pool.connection() as conn:
                with conn.cursor(cursor_factory=RealDictCursor) as cur:
                    cur.execute(
                        f"""
                        SELECT website_id::text AS id, name, domain
                        FROM {self.schema}.website
                        WHERE website_id = %s AND deleted_at IS NULL
                        """,
                        (website_id,),
                    )
                    row = cur.fetchone()
        except psycopg2.Error as e:
            raise StorageError(f"Website lookup failed: {e}", e) from e
        return Website(**row) if row else None


class PostgreSQLSessionRepository(_PostgreSQLRepository, SessionRepository):
    """
    Session lookup and insert.

    The session table's primary key arbitrates concurrent inserts of the same
    derived session id: the loser sees a unique violation, reported as
    CreateResult.CONFLICT.
    """

    supports_eager_session_creation = True

    def find(self, website_id: str, session_id: str) -> SessionRecord | None:
        try:
            with self._pool.connection() as conn:
                with conn.cursor(cursor_factory=RealDictCursor) as cur:
                    cur.execute(
                        f"""
                        SELECT session_id::text AS id, website_id::text AS website_id,
                               hostname, browser, os, device, screen, language,
                               country, subdivision1, subdivision2, city
                        FROM {self.schema}.session
                        WHERE session_id = %s AND website_id = %s
                        """,
                        (session_id, website_id),
                    )
                    row = cur.fetchone()
        except psycopg2.Error as e:
            raise StorageError(f"Session lookup failed: {e}", e) from e
        return SessionRecord(**row) if row else None

    def create(self, session: SessionRecord) -> CreateResult:
        try:
            with self._pool.connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(
                        f"""
                        INSERT INTO {self.schema}.session (
                            session_id, website_id, hostname, browser, os, device,
                            screen, language, country, subdivision1, subdivision2, city
                        ) VALUES (
                            %(session_id)s, %(website_id)s, %(hostname)s, %(browser)s,
                            %(os)s, %(device)s, %(screen)s, %(language)s, %(country)s,
                            %(subdivision1)s, %(subdivision2)s, %(city)s
                        )
                        """,
                        session.to_db_record(),
                    )
        except psycopg2.Error as e:
            if is_unique_violation(e):
                logger.debug("Session %s already exists", session.id)
                return CreateResult.CONFLICT
            raise StorageError(f"Session insert failed: {e}", e) from e
        logger.debug("Created session %s", session.id)
        return CreateResult.CREATED


class PostgreSQLEventRepository(_PostgreSQLRepository, EventRepository):
    """Event inserts into website_event."""

    def save(self, event: EventRecord) -> None:
        record = event.to_db_record()
        record["event_data"] = Json(record["event_data"]) if record["event_data"] else None
        try:
            with self._pool.connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(
                        f"""
                        INSERT INTO {self.schema}.website_event (
                            website_id, session_id, visit_id, url_path, url_query,
                            referrer_path, referrer_query, referrer_domain, page_title,
                            event_type, event_name, event_data, tag, created_at
                        ) VALUES (
                            %(website_id)s, %(session_id)s, %(visit_id)s, %(url_path)s,
                            %(url_query)s, %(referrer_path)s, %(referrer_query)s,
                            %(referrer_domain)s, %(page_title)s, %(event_type)s,
                            %(event_name)s, %(event_data)s, %(tag)s, %(created_at)s
                        )
                        """,
                        record,
                    )
        except psycopg2.Error as e:
            raise StorageError(f"Event insert failed: {e}", e) from e


class PostgreSQLIdentityRepository(_PostgreSQLRepository, IdentityRepository):
    """
    Session data upserts.

    Data is flattened to one row per key; a key sent again for the same
    session overwrites the previous value.
    """

    def save(self, identity: IdentityRecord) -> None:
        rows = [
            {
                "website_id": identity.website_id,
                "session_id": identity.session_id,
                "data_key": item.key,
                "string_value": item.string_value,
                "number_value": item.number_value,
                "date_value": item.date_value,
                "data_type": int(item.data_type),
                "created_at": identity.created_at,
            }
            for item in flatten_data(identity.session_data)
        ]
        if not rows:
            return

        try:
            with self._pool.connection() as conn:
                with conn.cursor() as cur:
                    execute_batch(
                        cur,
                        f"""
                        INSERT INTO {self.schema}.session_data (
                            website_id, session_id, data_key, string_value,
                            number_value, date_value, data_type, created_at
                        ) VALUES (
                            %(website_id)s, %(session_id)s, %(data_key)s, %(string_value)s,
                            %(number_value)s, %(date_value)s, %(data_type)s, %(created_at)s
                        )
                        ON CONFLICT (session_id, data_key) DO UPDATE SET
                            string_value = EXCLUDED.string_value,
                            number_value = EXCLUDED.number_value,
                            date_value = EXCLUDED.date_value,
                            data_type = EXCLUDED.data_type,
                            created_at = EXCLUDED.created_at
                        """,
                        rows,
                        page_size=PAGE_SIZE,
                    )
        except psycopg2.Error as e:
            raise StorageError(f"Session data upsert failed: {e}", e) from e
        logger.debug("Upserted %d session data keys", len(rows))


def check_postgresql_connection(settings: Settings | None = None) -> bool:
    """
    Check if PostgreSQL is reachable.

    Returns:
        True if connection successful, False otherwise
    """
    settings = settings or get_settings()
    try:
        conn = psycopg2.connect(
            _add_connect_timeout(settings.postgres.connection_string)
        )
        conn.close()
        return True
    except psycopg2.Error:
        return False
