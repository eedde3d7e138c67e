# ==============================================================================
# Repository Abstract Base Classes
# ==============================================================================
"""
Repository ABCs for the stores the collector reads and writes.

These define the "what" (find a website, create a session, save an event)
not the "how". Concrete implementations in infrastructure/ handle the
specifics of PostgreSQL or OpenSearch.

Includes:
- WebsiteRepository: Website existence lookups
- SessionRepository: Session lookup and race-tolerant creation
- EventRepository: Event fact persistence
- IdentityRepository: Session data from identity beacons
"""

from abc import ABC, abstractmethod
from enum import Enum

from beacon.core.models import EventRecord, IdentityRecord, SessionRecord, Website


class CreateResult(str, Enum):
    """Outcome of a session create call that did not fail."""

    CREATED = "created"
    CONFLICT = "conflict"  # another request already created it


class WebsiteRepository(ABC):
    """Repository for tracked websites."""

    @abstractmethod
    def connect(self) -> None:
        """Establish connection to the data store."""
        ...

    @abstractmethod
    def find(self, website_id: str) -> Website | None:
        """
        Look up a website.

        Args:
            website_id: Website UUID

        Returns:
            The website, or None if it does not exist (or is deleted)
        """
        ...

    @abstractmethod
    def close(self) -> None:
        """Close connection and release resources."""
        ...


class SessionRepository(ABC):
    """
    Repository for visitor sessions.

    Stores that derive sessions from event data (analytic stores) set
    ``supports_eager_session_creation`` to False; the collector then never
    calls create().
    """

    supports_eager_session_creation: bool = True

    @abstractmethod
    def connect(self) -> None:
        """Establish connection to the data store."""
        ...

    @abstractmethod
    def find(self, website_id: str, session_id: str) -> SessionRecord | None:
        """
        Look up a session.

        Returns:
            The session, or None if not found
        """
        ...

    @abstractmethod
    def create(self, session: SessionRecord) -> CreateResult:
        """
        Create a session.

        Returns:
            CREATED, or CONFLICT when a session with the same id already exists

        Raises:
            StorageError: For any failure other than a uniqueness conflict
        """
        ...

    @abstractmethod
    def close(self) -> None:
        """Close connection and release resources."""
        ...


class EventRepository(ABC):
    """Repository for pageview and custom event facts."""

    @abstractmethod
    def connect(self) -> None:
        """Establish connection to the data store."""
        ...

    @abstractmethod
    def save(self, event: EventRecord) -> None:
        """
        Persist one event.

        Raises:
            StorageError: If the event could not be written
        """
        ...

    @abstractmethod
    def close(self) -> None:
        """Close connection and release resources."""
        ...


class IdentityRepository(ABC):
    """Repository for session data sent by identity beacons."""

    @abstractmethod
    def connect(self) -> None:
        """Establish connection to the data store."""
        ...

    @abstractmethod
    def save(self, identity: IdentityRecord) -> None:
        """
        Persist session data, merging with data already stored for the session.

        Raises:
            StorageError: If the data could not be written
        """
        ...

    @abstractmethod
    def close(self) -> None:
        """Close connection and release resources."""
        ...
