# ==============================================================================
# Beacon Collector - Ingestion Orchestrator
# ==============================================================================
"""
Turns one beacon request into at most one persisted record.

Steps (sequential, one attempt per request):
 1. Bot filter            -> BotIgnored, nothing else touched
 2. Validate body         -> BadRequest (identity beacons also need data)
 3. Decode continuation token into a ResolutionContext
 4. Website lookup        -> BadRequest("Website not found.") (skipped when trusted)
 5. Client info
 6. Block list            -> Forbidden
 7. Session lookup/create -> ServerError on storage failure, conflicts tolerated
 8. Visit window
 9. Save event or identity data
10. Issue a new continuation token -> Accepted

Side effects happen only in steps 7 and 9. Collaborators are injected through
the base ABCs, so this module has no storage or transport dependencies.
"""

import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from http import HTTPStatus
from typing import Any, ClassVar

from pydantic import ValidationError

from beacon.base.detect import BlockList, BotClassifier, ClientInfoResolver, get_header
from beacon.base.repositories import (
    CreateResult,
    EventRepository,
    IdentityRepository,
    SessionRepository,
    WebsiteRepository,
)
from beacon.core.exceptions import StorageError, serialize_error
from beacon.core.identity import derive_session_id
from beacon.core.models import (
    Beacon,
    BeaconPayload,
    BeaconType,
    CacheClaims,
    ClientInfo,
    EventRecord,
    IdentityRecord,
    SessionRecord,
)
from beacon.core.token import TokenCodec
from beacon.core.urls import normalize
from beacon.core.visit import VisitWindow, VisitWindowResolver

logger = logging.getLogger(__name__)


# ==============================================================================
# Outcomes
# ==============================================================================


@dataclass(frozen=True)
class Accepted:
    """Beacon stored; ``cache`` is the next continuation token."""

    cache: str
    session_id: str = ""
    visit_id: str = ""
    status: ClassVar[HTTPStatus] = HTTPStatus.OK

    def to_body(self) -> dict:
        return {"cache": self.cache}


@dataclass(frozen=True)
class BotIgnored:
    """Beacon from an automated client, silently dropped."""

    status: ClassVar[HTTPStatus] = HTTPStatus.OK

    def to_body(self) -> dict:
        return {"beep": "boop"}


@dataclass(frozen=True)
class BadRequest:
    """Invalid input, unknown website or missing identity data."""

    message: str
    errors: list = field(default_factory=list)
    status: ClassVar[HTTPStatus] = HTTPStatus.BAD_REQUEST

    def to_body(self) -> dict:
        body: dict[str, Any] = {"error": self.message}
        if self.errors:
            body["details"] = self.errors
        return body


@dataclass(frozen=True)
class Forbidden:
    """Blocked client. Carries no detail about the check."""

    status: ClassVar[HTTPStatus] = HTTPStatus.FORBIDDEN

    def to_body(self) -> dict:
        return {"error": "Forbidden"}


@dataclass(frozen=True)
class ServerError:
    """Unexpected storage failure; ``diagnostic`` is for operators."""

    diagnostic: dict
    status: ClassVar[HTTPStatus] = HTTPStatus.INTERNAL_SERVER_ERROR

    def to_body(self) -> dict:
        return {"error": "Internal server error", "detail": self.diagnostic}


CollectResult = Accepted | BotIgnored | BadRequest | Forbidden | ServerError


# ==============================================================================
# Resolution Context
# ==============================================================================


@dataclass(frozen=True)
class ResolutionContext:
    """
    What the continuation token lets the collector skip.

    Built once per request. A claim is only trusted for the website (and
    session) it was issued for, so a token replayed against another website
    or from a client whose identity changed falls back to full lookups.
    """

    claims: CacheClaims | None = None

    def trusts_website(self, website_id: str) -> bool:
        return self.claims is not None and self.claims.website_id == website_id

    def trusts_session(self, website_id: str, session_id: str) -> bool:
        return self.trusts_website(website_id) and self.claims.session_id == session_id

    def cached_visit(self, website_id: str, session_id: str) -> tuple[str | None, int | None]:
        """(visit_id, issued_at) carried by the token for this session, if any."""
        if not self.trusts_session(website_id, session_id):
            return None, None
        return self.claims.visit_id, self.claims.iat


# ==============================================================================
# Collector
# ==============================================================================


class Collector:
    """
    Ingestion orchestrator.

    Holds only immutable collaborators and settings, so one instance serves
    concurrent requests.
    """

    def __init__(
        self,
        websites: WebsiteRepository,
        sessions: SessionRepository,
        events: EventRepository,
        identities: IdentityRepository,
        client_info: ClientInfoResolver,
        block_list: BlockList,
        bot_classifier: BotClassifier,
        tokens: TokenCodec,
        visits: VisitWindowResolver,
        session_salt: str = "",
        disable_bot_check: bool = False,
        remove_trailing_slash: bool = False,
    ):
        self.websites = websites
        self.sessions = sessions
        self.events = events
        self.identities = identities
        self.client_info = client_info
        self.block_list = block_list
        self.bot_classifier = bot_classifier
        self.tokens = tokens
        self.visits = visits
        self.session_salt = session_salt
        self.disable_bot_check = disable_bot_check
        self.remove_trailing_slash = remove_trailing_slash

    def is_bot(self, headers: Mapping[str, str]) -> bool:
        """True when bot filtering is on and the request user agent is a bot."""
        if self.disable_bot_check:
            return False
        return self.bot_classifier.is_bot(get_header(headers, "user-agent"))

    def collect(
        self,
        body: Any,
        headers: Mapping[str, str],
        cache_token: str | None = None,
        client_host: str | None = None,
        now: int | None = None,
    ) -> CollectResult:
        """
        Process one beacon.

        Args:
            body: Parsed JSON request body
            headers: Request headers
            cache_token: Continuation token sent by the client, if any
            client_host: Peer address of the connection
            now: Current epoch seconds (defaults to wall clock)

        Returns:
            Exactly one outcome; exceptions from storage adapters are
            converted to ServerError.
        """
        if self.is_bot(headers):
            logger.debug("Ignoring beacon from bot user agent")
            return BotIgnored()

        try:
            beacon = Beacon.model_validate(body)
        except ValidationError as e:
            return BadRequest(
                "Invalid beacon.",
                errors=e.errors(include_url=False, include_context=False, include_input=False),
            )

        payload = beacon.payload
        website_id = payload.website_id

        if beacon.type == BeaconType.IDENTITY and not payload.data:
            return BadRequest("Data required.")

        context = ResolutionContext(self.tokens.decode(cache_token, now=now))

        try:
            if not context.trusts_website(website_id) and self.websites.find(website_id) is None:
                return BadRequest("Website not found.")

            client = self.client_info.resolve(headers, payload, client_host)

            if self.block_list.is_blocked(client.ip):
                logger.debug("Rejecting beacon from blocked IP")
                return Forbidden()

            session_id = derive_session_id(
                website_id, payload.hostname, client.ip, client.user_agent, self.session_salt
            )

            if not context.trusts_session(website_id, session_id):
                self._ensure_session(session_id, payload, client)

            current = int(time.time()) if now is None else now
            cached_visit_id, cached_iat = context.cached_visit(website_id, session_id)
            visit = self.visits.resolve(session_id, current, cached_visit_id, cached_iat)

            if beacon.type == BeaconType.EVENT:
                self._save_event(session_id, visit, payload, client)
            else:
                self.identities.save(
                    IdentityRecord(
                        website_id=website_id,
                        session_id=session_id,
                        session_data=payload.data,
                    )
                )
        except StorageError as e:
            logger.error("Beacon for website %s failed: %s", website_id, e)
            return ServerError(serialize_error(e))

        token = self.tokens.encode(
            CacheClaims(
                website_id=website_id,
                session_id=session_id,
                visit_id=visit.visit_id,
                iat=visit.issued_at,
            )
        )
        return Accepted(cache=token, session_id=session_id, visit_id=visit.visit_id)

    def _ensure_session(
        self, session_id: str, payload: BeaconPayload, client: ClientInfo
    ) -> None:
        """Create the session unless it exists or the store derives sessions itself."""
        if self.sessions.find(payload.website_id, session_id) is not None:
            return
        if not self.sessions.supports_eager_session_creation:
            return

        result = self.sessions.create(
            SessionRecord(
                id=session_id,
                website_id=payload.website_id,
                hostname=payload.hostname,
                browser=client.browser,
                os=client.os,
                device=client.device,
                screen=payload.screen,
                language=payload.language,
                country=client.country,
                subdivision1=client.subdivision1,
                subdivision2=client.subdivision2,
                city=client.city,
            )
        )
        if result == CreateResult.CONFLICT:
            logger.debug("Session %s created concurrently", session_id)

    def _save_event(
        self,
        session_id: str,
        visit: VisitWindow,
        payload: BeaconPayload,
        client: ClientInfo,
    ) -> None:
        urls = normalize(payload.url, payload.referrer, self.remove_trailing_slash)
        self.events.save(
            EventRecord(
                website_id=payload.website_id,
                session_id=session_id,
                visit_id=visit.visit_id,
                url_path=urls.url_path,
                url_query=urls.url_query,
                referrer_path=urls.referrer_path,
                referrer_query=urls.referrer_query,
                referrer_domain=urls.referrer_domain,
                page_title=payload.title,
                event_name=payload.name,
                event_data=payload.data,
                hostname=payload.hostname,
                browser=client.browser,
                os=client.os,
                device=client.device,
                screen=payload.screen,
                language=payload.language,
                country=client.country,
                subdivision1=client.subdivision1,
                subdivision2=client.subdivision2,
                city=client.city,
                tag=payload.tag,
            )
        )
