# ==============================================================================
# Visit Window - Pure Domain Logic
# ==============================================================================
"""
Visit window state machine.

A visit groups a session's activity into windows of bounded length. Visits
are never closed explicitly; they lapse. On every beacon the window carried
by the continuation token is either reused (still ACTIVE) or, once the
timeout has elapsed, reported EXPIRED and replaced by a fresh window.

The resolver keeps no state between calls, so the outcome is re-derivable
from (session id, cached window, current time) alone.

Visit ids are salted with the timeout-aligned bucket the visit started in.
Clients without a token stay on one visit per bucket, and a rollover always
lands in a later bucket than the window it replaces.
"""

from dataclasses import dataclass
from enum import Enum

from beacon.core.identity import derive_visit_id, visit_salt

VISIT_TIMEOUT_SECONDS = 1800


class VisitState(str, Enum):
    """State of the cached window when a beacon arrives."""

    ACTIVE = "active"
    EXPIRED = "expired"


@dataclass(frozen=True)
class VisitWindow:
    """
    The visit a beacon is attributed to.

    Attributes:
        visit_id: Derived visit identifier
        issued_at: Epoch seconds at which the visit started
        state: State of the previous window (ACTIVE when none was cached)
        rolled_over: True when an expired window was replaced
    """

    visit_id: str
    issued_at: int
    state: VisitState = VisitState.ACTIVE
    rolled_over: bool = False


class VisitWindowResolver:
    """
    Resolve the visit for a beacon.

    Transition rule, given the cached ``issued_at`` and ``now``:
        absent                     -> fresh window, ACTIVE
        now - issued_at <= timeout -> reuse cached window unchanged, ACTIVE
        now - issued_at >  timeout -> EXPIRED, fresh window issued at ``now``
    """

    def __init__(self, secret: str = "", timeout_seconds: int = VISIT_TIMEOUT_SECONDS):
        """
        Args:
            secret: Deployment secret mixed into visit ids
            timeout_seconds: Window length in seconds
        """
        self._secret = secret
        self.timeout_seconds = timeout_seconds

    def bucket_start(self, timestamp: int) -> int:
        """Start of the timeout-aligned bucket containing ``timestamp``."""
        return timestamp - timestamp % self.timeout_seconds

    def visit_id_for(self, session_id: str, started_at: int) -> str:
        return derive_visit_id(session_id, visit_salt(self._secret, self.bucket_start(started_at)))

    def new_window(self, session_id: str, now: int) -> VisitWindow:
        """Issue a fresh visit starting at ``now``."""
        return VisitWindow(visit_id=self.visit_id_for(session_id, now), issued_at=now)

    def is_expired(self, issued_at: int, now: int) -> bool:
        """True once more than ``timeout_seconds`` have passed since ``issued_at``."""
        return now - issued_at > self.timeout_seconds

    def resolve(
        self,
        session_id: str,
        now: int,
        cached_visit_id: str | None = None,
        cached_issued_at: int | None = None,
    ) -> VisitWindow:
        """
        Reuse the cached visit while it is active, otherwise issue a new one.

        Args:
            session_id: Session the visit belongs to
            now: Current epoch seconds
            cached_visit_id: Visit id from the continuation token, if any
            cached_issued_at: Visit start from the continuation token, if any

        Returns:
            The VisitWindow the beacon belongs to
        """
        if not cached_issued_at:
            return self.new_window(session_id, now)

        if self.is_expired(cached_issued_at, now):
            window = self.new_window(session_id, now)
            return VisitWindow(
                visit_id=window.visit_id,
                issued_at=window.issued_at,
                state=VisitState.EXPIRED,
                rolled_over=True,
            )

        visit_id = cached_visit_id or self.visit_id_for(session_id, cached_issued_at)
        return VisitWindow(visit_id=visit_id, issued_at=cached_issued_at)
