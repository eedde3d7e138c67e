# ==============================================================================
# Tests for Client Detection Adapters
# ==============================================================================
"""
Unit tests for SubstringBotClassifier, NetworkBlockList and
HeaderClientInfoResolver.
"""

import pytest

from beacon.base.detect import get_header
from beacon.core.models import BeaconPayload
from beacon.infrastructure.detect import (
    HeaderClientInfoResolver,
    NetworkBlockList,
    SubstringBotClassifier,
    detect_browser,
    detect_device,
    detect_os,
)

WEBSITE = "6d1f2a3b-4c5d-4e6f-8a9b-0c1d2e3f4a5b"
IPHONE_UA = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1"
)
EDGE_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36 Edg/120.0.0.0"
)


def payload(**fields):
    return BeaconPayload(website=WEBSITE, **fields)


def test_get_header_case_insensitive():
    assert get_header({"User-Agent": "x"}, "user-agent") == "x"
    assert get_header({}, "user-agent") is None


# ==============================================================================
# Bot Classifier
# ==============================================================================


class TestSubstringBotClassifier:
    @pytest.mark.parametrize(
        "user_agent",
        [
            "Mozilla/5.0 (compatible; Googlebot/2.1; +http://www.google.com/bot.html)",
            "Mozilla/5.0 (compatible; bingbot/2.0)",
            "facebookexternalhit/1.1",
            "Mozilla/5.0 HeadlessChrome/120.0.0.0",
            "curl/8.4.0",
        ],
    )
    def test_bots(self, user_agent):
        assert SubstringBotClassifier().is_bot(user_agent)

    def test_browser_is_not_bot(self):
        assert not SubstringBotClassifier().is_bot(IPHONE_UA)

    def test_empty_is_not_bot(self):
        assert not SubstringBotClassifier().is_bot("")
        assert not SubstringBotClassifier().is_bot(None)

    def test_custom_markers(self):
        assert SubstringBotClassifier(["Monitor"]).is_bot("uptime-monitor/1.0")


# ==============================================================================
# Block List
# ==============================================================================


class TestNetworkBlockList:
    def test_exact_address(self):
        assert NetworkBlockList(["198.51.100.4"]).is_blocked("198.51.100.4")
        assert not NetworkBlockList(["198.51.100.4"]).is_blocked("198.51.100.5")

    def test_cidr_range(self):
        block_list = NetworkBlockList(["10.0.0.0/8"])
        assert block_list.is_blocked("10.255.0.1")
        assert not block_list.is_blocked("11.0.0.1")

    def test_ipv6_range(self):
        block_list = NetworkBlockList(["2001:db8::/32"])
        assert block_list.is_blocked("2001:db8::1")
        assert not block_list.is_blocked("10.0.0.1")

    def test_invalid_entry_skipped(self):
        block_list = NetworkBlockList(["not-an-ip", "10.0.0.0/8"])
        assert block_list.is_blocked("10.0.0.1")

    def test_unparseable_ip_not_blocked(self):
        assert not NetworkBlockList(["10.0.0.0/8"]).is_blocked("unknown")
        assert not NetworkBlockList(["10.0.0.0/8"]).is_blocked("")

    def test_empty_list(self):
        assert not NetworkBlockList().is_blocked("10.0.0.1")


# ==============================================================================
# Client Info
# ==============================================================================


class TestUserAgentParsing:
    def test_browsers(self):
        assert detect_browser(EDGE_UA) == "edge-chromium"
        assert detect_browser(IPHONE_UA) == "ios"
        assert detect_browser("Mozilla/5.0 (X11; Linux x86_64; rv:121.0) Firefox/121.0") == "firefox"
        assert detect_browser("") is None

    def test_operating_systems(self):
        assert detect_os(IPHONE_UA) == "iOS"
        assert detect_os(EDGE_UA) == "Windows 10"
        assert detect_os("Mozilla/5.0 (Linux; Android 14; Pixel 8)") == "Android OS"

    def test_devices(self):
        assert detect_device("1920x1080", "Windows 10") == "desktop"
        assert detect_device("1440x900", "Mac OS") == "laptop"
        assert detect_device("390x844", "iOS") == "mobile"
        assert detect_device("820x1180", "iOS") == "tablet"
        assert detect_device("1280x800", None) == "laptop"
        assert detect_device(None, "iOS") is None
        assert detect_device("wide", None) is None


class TestHeaderClientInfoResolver:
    """Tests for IP, user agent and geo resolution."""

    def test_payload_overrides_win(self):
        info = HeaderClientInfoResolver().resolve(
            {"CF-Connecting-IP": "198.51.100.1", "User-Agent": "header-ua"},
            payload(ip="203.0.113.9", userAgent=IPHONE_UA),
            client_host="192.0.2.1",
        )
        assert info.ip == "203.0.113.9"
        assert info.user_agent == IPHONE_UA
        assert info.os == "iOS"

    def test_header_precedence(self):
        headers = {"X-Forwarded-For": "198.51.100.2, 10.0.0.1", "X-Real-IP": "198.51.100.3"}
        info = HeaderClientInfoResolver().resolve(headers, payload(), client_host="192.0.2.1")
        assert info.ip == "198.51.100.2"

    def test_cloudflare_first(self):
        headers = {"CF-Connecting-IP": "198.51.100.1", "X-Forwarded-For": "198.51.100.2"}
        info = HeaderClientInfoResolver().resolve(headers, payload())
        assert info.ip == "198.51.100.1"

    def test_configured_header_first(self):
        headers = {"X-Client-Addr": "198.51.100.7", "CF-Connecting-IP": "198.51.100.1"}
        info = HeaderClientInfoResolver("X-Client-Addr").resolve(headers, payload())
        assert info.ip == "198.51.100.7"

    def test_forwarded_port_stripped(self):
        info = HeaderClientInfoResolver().resolve({"X-Forwarded-For": "198.51.100.2:4711"}, payload())
        assert info.ip == "198.51.100.2"

    def test_falls_back_to_peer(self):
        info = HeaderClientInfoResolver().resolve({}, payload(), client_host="192.0.2.1")
        assert info.ip == "192.0.2.1"

    def test_vercel_geo(self):
        headers = {
            "X-Vercel-IP-Country": "de",
            "X-Vercel-IP-Country-Region": "BE",
            "X-Vercel-IP-City": "Berlin%20Mitte",
        }
        info = HeaderClientInfoResolver().resolve(headers, payload())
        assert info.country == "DE"
        assert info.subdivision1 == "DE-BE"
        assert info.city == "Berlin Mitte"

    def test_unknown_country_ignored(self):
        info = HeaderClientInfoResolver().resolve({"CF-IPCountry": "XX"}, payload())
        assert info.country is None

    def test_device_from_screen(self):
        info = HeaderClientInfoResolver().resolve(
            {"User-Agent": IPHONE_UA}, payload(screen="390x844")
        )
        assert info.device == "mobile"
