# ==============================================================================
# Identity Derivation
# ==============================================================================
"""
Deterministic identifiers for sessions and visits.

Ids are SHA-512 digests of their ordered components mapped onto UUIDs, so the
same client always lands on the same session id without a database round trip,
and no id depends on process state or random seeding.
"""

import hashlib
import uuid

# Keeps ("ab", "c") and ("a", "bc") apart
PART_SEPARATOR = "\x1f"


def hash_value(*parts: object) -> str:
    """SHA-512 hex digest of the parts, joined in order by a unit separator.

    ``None`` parts are treated as empty strings.
    """
    joined = PART_SEPARATOR.join("" if part is None else str(part) for part in parts)
    return hashlib.sha512(joined.encode("utf-8")).hexdigest()


def derive_id(*parts: object) -> str:
    """Derive a stable UUID string from ordered components."""
    return str(uuid.uuid5(uuid.NAMESPACE_DNS, hash_value(*parts)))


def session_salt(secret: str) -> str:
    """Deployment-wide salt mixed into every session id."""
    return hash_value(secret)


def visit_salt(secret: str, bucket_start: int) -> str:
    """Salt shared by every visit that starts in the bucket opening at ``bucket_start``.

    ``bucket_start`` is epoch seconds aligned to the visit timeout, so clients
    that never echo a continuation token still keep one visit id per bucket.
    """
    return hash_value(secret, bucket_start)


def derive_session_id(
    website_id: str,
    hostname: str | None,
    ip: str | None,
    user_agent: str | None,
    salt: str = "",
) -> str:
    """Session id for one client against one website."""
    return derive_id(website_id, hostname, ip, user_agent, salt)


def derive_visit_id(session_id: str, salt: str) -> str:
    """Visit id for a session and visit salt."""
    return derive_id(session_id, salt)
