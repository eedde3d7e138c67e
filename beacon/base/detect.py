# ==============================================================================
# Client Detection Abstract Base Classes
# ==============================================================================
"""
Contracts for the request-inspection collaborators of the collector.

- BotClassifier: is this user agent an automated client?
- ClientInfoResolver: IP, user agent, device/browser/os and coarse geo
- BlockList: is this IP denied?
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping

from beacon.core.models import BeaconPayload, ClientInfo


def get_header(headers: Mapping[str, str], name: str) -> str | None:
    """Case-insensitive header lookup that works for plain dicts too."""
    value = headers.get(name)
    if value is not None:
        return value
    lowered = name.lower()
    for key, value in headers.items():
        if key.lower() == lowered:
            return value
    return None


class BotClassifier(ABC):
    """Classifies user agents."""

    @abstractmethod
    def is_bot(self, user_agent: str | None) -> bool:
        """True when the user agent belongs to an automated client."""
        ...


class ClientInfoResolver(ABC):
    """Resolves client attributes from request headers and payload overrides."""

    @abstractmethod
    def resolve(
        self,
        headers: Mapping[str, str],
        payload: BeaconPayload,
        client_host: str | None = None,
    ) -> ClientInfo:
        """
        Args:
            headers: Request headers (names compared case-insensitively)
            payload: Validated beacon payload (may override ip/userAgent)
            client_host: Peer address of the connection, if known

        Returns:
            ClientInfo for the beacon
        """
        ...


class BlockList(ABC):
    """IP deny list."""

    @abstractmethod
    def is_blocked(self, ip: str | None) -> bool:
        """True when beacons from this IP must be rejected."""
        ...
