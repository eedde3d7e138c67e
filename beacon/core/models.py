# ==============================================================================
# Beacon Domain Models
# ==============================================================================
"""
Pydantic models for beacons, sessions and the records the collector persists.

These models are used for:
- Validating beacon request bodies
- Carrying continuation-token claims
- Converting sessions, events and identity data to storage records

This module is part of the core domain layer and has no external dependencies
beyond Pydantic.
"""

from datetime import UTC, datetime
from enum import Enum, IntEnum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field, IPvAnyAddress


class BeaconType(str, Enum):
    """Kinds of beacon accepted by the collector."""

    EVENT = "event"
    IDENTITY = "identity"


class EventType(IntEnum):
    """Stored event classification."""

    PAGEVIEW = 1
    CUSTOM_EVENT = 2


class BeaconPayload(BaseModel):
    """
    Payload of a beacon sent by the tracker script.

    Attributes:
        website: Website UUID the beacon belongs to
        data: Arbitrary event data (event) or session data (identity)
        hostname: Hostname of the tracked page
        language: Browser language
        referrer: Raw referrer string
        screen: Screen descriptor such as "1920x1080"
        title: Page title
        url: Raw page URL (usually path and query)
        name: Custom event name (absent for pageviews)
        tag: Optional grouping tag
        ip: Client IP override
        user_agent: User-agent override
    """

    website: UUID
    data: dict[str, Any] | None = None
    hostname: str | None = Field(None, max_length=100)
    language: str | None = Field(None, max_length=35)
    referrer: str | None = None
    screen: str | None = Field(None, max_length=11)
    title: str | None = None
    url: str | None = None
    name: str | None = Field(None, max_length=50)
    tag: str | None = Field(None, max_length=50)
    ip: IPvAnyAddress | None = None
    user_agent: str | None = Field(None, alias="userAgent")

    model_config = {"populate_by_name": True, "extra": "ignore"}

    @property
    def website_id(self) -> str:
        """Website id as a canonical string."""
        return str(self.website)


class Beacon(BaseModel):
    """A request body: beacon type plus payload."""

    type: BeaconType
    payload: BeaconPayload


class CacheClaims(BaseModel):
    """
    Claims carried by the continuation token.

    Serialized with camelCase keys, matching what tracker clients send back.
    """

    website_id: str = Field(..., alias="websiteId")
    session_id: str = Field(..., alias="sessionId")
    visit_id: str = Field(..., alias="visitId")
    iat: int = Field(..., description="Visit start, epoch seconds")

    model_config = {"populate_by_name": True}

    def to_token_claims(self) -> dict:
        """Serialize for token signing."""
        return self.model_dump(by_alias=True)


class ClientInfo(BaseModel):
    """Client attributes resolved from the request and payload overrides."""

    ip: str = ""
    user_agent: str = ""
    device: str | None = None
    browser: str | None = None
    os: str | None = None
    country: str | None = None
    subdivision1: str | None = None
    subdivision2: str | None = None
    city: str | None = None


class Website(BaseModel):
    """A tracked website. Only its existence matters to the collector."""

    id: str
    name: str | None = None
    domain: str | None = None


class SessionRecord(BaseModel):
    """One unique client against one website."""

    id: str
    website_id: str
    hostname: str | None = None
    browser: str | None = None
    os: str | None = None
    device: str | None = None
    screen: str | None = None
    language: str | None = None
    country: str | None = None
    subdivision1: str | None = None
    subdivision2: str | None = None
    city: str | None = None

    def to_db_record(self) -> dict:
        """Convert session to database record format."""
        record = self.model_dump()
        record["session_id"] = record.pop("id")
        return record


class EventRecord(BaseModel):
    """One pageview or custom event fact row."""

    website_id: str
    session_id: str
    visit_id: str
    url_path: str
    url_query: str = ""
    referrer_path: str = ""
    referrer_query: str = ""
    referrer_domain: str = ""
    page_title: str | None = None
    event_name: str | None = None
    event_data: dict[str, Any] | None = None
    hostname: str | None = None
    browser: str | None = None
    os: str | None = None
    device: str | None = None
    screen: str | None = None
    language: str | None = None
    country: str | None = None
    subdivision1: str | None = None
    subdivision2: str | None = None
    city: str | None = None
    tag: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def event_type(self) -> EventType:
        """Named events are custom events; everything else is a pageview."""
        return EventType.CUSTOM_EVENT if self.event_name else EventType.PAGEVIEW

    def to_db_record(self) -> dict:
        """Convert event to database record format."""
        record = self.model_dump()
        record["event_type"] = int(self.event_type)
        return record


class IdentityRecord(BaseModel):
    """Session-scoped data sent by an identity beacon."""

    website_id: str
    session_id: str
    session_data: dict[str, Any]
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
