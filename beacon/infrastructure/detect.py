# ==============================================================================
# Client Detection Adapters
# ==============================================================================
"""
Request-inspection adapters for the collector.

Provides:
- SubstringBotClassifier: user-agent marker matching
- NetworkBlockList: IP addresses and CIDR ranges (IGNORE_IP)
- HeaderClientInfoResolver: IP, user agent, browser/os/device and the coarse
  geo headers set by CDNs (Cloudflare, Vercel)
"""

import ipaddress
import logging
from collections.abc import Mapping, Sequence
from urllib.parse import unquote

from beacon.base.detect import BlockList, BotClassifier, ClientInfoResolver, get_header
from beacon.core.models import BeaconPayload, ClientInfo

logger = logging.getLogger(__name__)

BOT_MARKERS: tuple[str, ...] = (
    "bot",
    "spider",
    "crawl",
    "slurp",
    "facebookexternalhit",
    "whatsapp",
    "headlesschrome",
    "lighthouse",
    "phantomjs",
    "python-requests",
    "curl/",
    "wget/",
    "httpclient",
    "preview",
)

# Checked in order: the first header carrying a value wins
IP_HEADERS: tuple[str, ...] = (
    "cf-connecting-ip",
    "x-client-ip",
    "x-forwarded-for",
    "do-connecting-ip",
    "fastly-client-ip",
    "true-client-ip",
    "x-real-ip",
    "x-cluster-client-ip",
    "x-forwarded",
    "forwarded",
    "x-appengine-user-ip",
)

# (marker, browser) checked in order against the lowercased user agent
BROWSERS: tuple[tuple[str, str], ...] = (
    ("edg/", "edge-chromium"),
    ("edge/", "edge"),
    ("opr/", "opera"),
    ("opera", "opera"),
    ("samsungbrowser", "samsung"),
    ("yabrowser", "yandexbrowser"),
    ("fxios", "fxios"),
    ("firefox", "firefox"),
    ("crios", "crios"),
    ("chrome", "chrome"),
    ("msie", "ie"),
    ("trident/", "ie"),
)

OPERATING_SYSTEMS: tuple[tuple[str, str], ...] = (
    ("iphone", "iOS"),
    ("ipad", "iOS"),
    ("ipod", "iOS"),
    ("android", "Android OS"),
    ("cros ", "Chrome OS"),
    ("mac os x", "Mac OS"),
    ("macintosh", "Mac OS"),
    ("windows nt 10.0", "Windows 10"),
    ("windows nt 6.3", "Windows 8.1"),
    ("windows nt 6.2", "Windows 8"),
    ("windows nt 6.1", "Windows 7"),
    ("windows", "Windows"),
    ("linux", "Linux"),
)

DESKTOP_OS = frozenset(
    {"Windows 10", "Windows 8.1", "Windows 8", "Windows 7", "Windows", "Mac OS", "Linux", "Chrome OS"}
)
MOBILE_OS = frozenset({"iOS", "Android OS"})

DESKTOP_SCREEN_WIDTH = 1920
LAPTOP_SCREEN_WIDTH = 1024
MOBILE_SCREEN_WIDTH = 479


class SubstringBotClassifier(BotClassifier):
    """Flags user agents containing a known automation marker."""

    def __init__(self, markers: Sequence[str] = BOT_MARKERS):
        self._markers = tuple(m.lower() for m in markers)

    def is_bot(self, user_agent: str | None) -> bool:
        ua = (user_agent or "").lower()
        if not ua:
            return False
        return any(marker in ua for marker in self._markers)


class NetworkBlockList(BlockList):
    """Rejects IPs inside any configured address or CIDR range."""

    def __init__(self, entries: Sequence[str] = ()):
        self._networks = []
        for entry in entries:
            try:
                self._networks.append(ipaddress.ip_network(entry, strict=False))
            except ValueError:
                logger.warning("Ignoring invalid IGNORE_IP entry: %s", entry)

    def is_blocked(self, ip: str | None) -> bool:
        if not ip or not self._networks:
            return False
        try:
            address = ipaddress.ip_address(ip)
        except ValueError:
            return False
        return any(
            address.version == network.version and address in network
            for network in self._networks
        )


def detect_browser(user_agent: str) -> str | None:
    ua = user_agent.lower()
    for marker, name in BROWSERS:
        if marker in ua:
            return name
    if "safari" in ua:
        return "ios" if "mobile" in ua else "safari"
    return None


def detect_os(user_agent: str) -> str | None:
    ua = user_agent.lower()
    for marker, name in OPERATING_SYSTEMS:
        if marker in ua:
            return name
    return None


def detect_device(screen: str | None, os_name: str | None) -> str | None:
    """Classify the device from the screen width, refined by the OS family."""
    if not screen:
        return None
    try:
        width = int(screen.split("x")[0])
    except ValueError:
        return None

    if os_name in DESKTOP_OS:
        if os_name == "Chrome OS" or width < DESKTOP_SCREEN_WIDTH:
            return "laptop"
        return "desktop"
    if os_name in MOBILE_OS:
        return "tablet" if width > MOBILE_SCREEN_WIDTH else "mobile"

    if width >= DESKTOP_SCREEN_WIDTH:
        return "desktop"
    if width >= LAPTOP_SCREEN_WIDTH:
        return "laptop"
    if width >= MOBILE_SCREEN_WIDTH:
        return "tablet"
    return "mobile"


def _first_forwarded(value: str) -> str:
    """First address of a forwarding chain, without port or `for=` syntax."""
    first = value.split(",")[0].strip()
    if first.lower().startswith("for="):
        first = first[4:].strip('"')
    if first.startswith("["):
        return first[1:].split("]")[0]
    if first.count(":") == 1:
        return first.split(":")[0]
    return first


class HeaderClientInfoResolver(ClientInfoResolver):
    """Resolves client info from headers; payload ip/userAgent take precedence."""

    def __init__(self, ip_header: str | None = None):
        self._ip_headers = ((ip_header.lower(),) if ip_header else ()) + IP_HEADERS

    def get_ip(self, headers: Mapping[str, str], client_host: str | None) -> str:
        for name in self._ip_headers:
            value = get_header(headers, name)
            if value:
                return _first_forwarded(value)
        return client_host or ""

    def get_location(self, headers: Mapping[str, str]) -> dict:
        country = get_header(headers, "cf-ipcountry") or get_header(headers, "x-vercel-ip-country")
        if not country or country.upper() in ("XX", "T1"):
            return {}

        country = country.upper()
        region = get_header(headers, "cf-region-code") or get_header(
            headers, "x-vercel-ip-country-region"
        )
        city = get_header(headers, "cf-ipcity") or get_header(headers, "x-vercel-ip-city")

        subdivision1 = None
        if region:
            subdivision1 = region if "-" in region else f"{country}-{region}"
        return {
            "country": country,
            "subdivision1": subdivision1,
            "city": unquote(city) if city else None,
        }

    def resolve(
        self,
        headers: Mapping[str, str],
        payload: BeaconPayload,
        client_host: str | None = None,
    ) -> ClientInfo:
        ip = str(payload.ip) if payload.ip else self.get_ip(headers, client_host)
        user_agent = payload.user_agent or get_header(headers, "user-agent") or ""
        browser = detect_browser(user_agent)
        os_name = detect_os(user_agent)

        return ClientInfo(
            ip=ip,
            user_agent=user_agent,
            browser=browser,
            os=os_name,
            device=detect_device(payload.screen, os_name),
            **self.get_location(headers),
        )
