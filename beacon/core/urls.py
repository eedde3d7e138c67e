# ==============================================================================
# URL and Referrer Normalization
# ==============================================================================
"""
Split raw page URLs and referrers into the components stored with each event.

Nothing in this module raises on malformed input. The worst case is a set of
empty strings (and "/" for the page path).
"""

import re
from dataclasses import dataclass
from urllib.parse import urlsplit

# Characters decodeURI leaves escaped so the URL structure survives decoding
RESERVED_CHARS = frozenset(";/?:@&=+$,#")

ESCAPE_RUN = re.compile(r"(?:%[0-9A-Fa-f]{2})+")
BROKEN_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")
ABSOLUTE_URL = re.compile(r"^[\w-]+://\w+")
TRAILING_SLASH = re.compile(r"(.+)/\Z", re.DOTALL)


@dataclass(frozen=True)
class NormalizedUrl:
    """Page and referrer components of one event."""

    url_path: str = "/"
    url_query: str = ""
    referrer_path: str = ""
    referrer_query: str = ""
    referrer_domain: str = ""


def _decode_run(match: re.Match) -> str:
    # Reserved characters are ASCII, so they never split a UTF-8 sequence;
    # their escapes are copied through exactly as written
    raw = match.group(0)
    out = []
    pending = bytearray()
    for start in range(0, len(raw), 3):
        escape = raw[start : start + 3]
        byte = int(escape[1:], 16)
        if chr(byte) in RESERVED_CHARS:
            out.append(pending.decode("utf-8"))
            pending.clear()
            out.append(escape)
        else:
            pending.append(byte)
    out.append(pending.decode("utf-8"))
    return "".join(out)


def safe_decode_uri(value: str | None) -> str:
    """
    Percent-decode a URI, keeping reserved characters escaped.

    Returns the input unchanged when it contains an invalid escape or a byte
    sequence that is not UTF-8.
    """
    if not value:
        return ""
    if BROKEN_ESCAPE.search(value):
        return value
    try:
        return ESCAPE_RUN.sub(_decode_run, value)
    except UnicodeDecodeError:
        return value


def split_path_query(value: str) -> tuple[str, str]:
    """Split on the first '?' into (path, query)."""
    path, _, query = value.partition("?")
    return path, query


def strip_www(hostname: str) -> str:
    return hostname[4:] if hostname.startswith("www.") else hostname


def normalize(
    url: str | None,
    referrer: str | None,
    remove_trailing_slash: bool = False,
) -> NormalizedUrl:
    """
    Decompose the page URL and referrer.

    Args:
        url: Raw page URL, usually path plus query
        referrer: Raw referrer, absolute URL or same-site path
        remove_trailing_slash: Strip one trailing slash from the page path

    Returns:
        NormalizedUrl. ``referrer_domain`` is only set for absolute referrers.
    """
    url_path, url_query = split_path_query(safe_decode_uri(url))
    referrer_path, referrer_query = split_path_query(safe_decode_uri(referrer))
    referrer_domain = ""

    if not url_path:
        url_path = "/"

    if referrer and ABSOLUTE_URL.match(referrer_path):
        try:
            parts = urlsplit(referrer)
            hostname = parts.hostname or ""
        except ValueError:
            parts = None
        if parts is not None:
            referrer_path = parts.path or "/"
            referrer_query = parts.query
            referrer_domain = strip_www(hostname)

    if remove_trailing_slash:
        url_path = TRAILING_SLASH.sub(r"\1", url_path)

    return NormalizedUrl(
        url_path=url_path,
        url_query=url_query,
        referrer_path=referrer_path,
        referrer_query=referrer_query,
        referrer_domain=referrer_domain,
    )
