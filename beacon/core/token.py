# ==============================================================================
# Continuation Token Codec
# ==============================================================================
"""
Signed continuation tokens carrying {websiteId, sessionId, visitId, iat}.

A token is issued after every accepted beacon. Well-behaved trackers send it
back on their next request so the collector can skip the website and session
lookups. Decoding never raises: anything that is not a valid, correctly signed
token with all four claims decodes to ``None`` and the caller falls back to
full resolution.
"""

import logging
import time

from jose import JWTError, jwt
from pydantic import ValidationError

from beacon.core.models import CacheClaims

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"


def encode_token(claims: CacheClaims, key: str) -> str:
    """Sign the claims into a compact token."""
    return jwt.encode(claims.to_token_claims(), key, algorithm=ALGORITHM)


def decode_token(
    token: str | None,
    key: str,
    max_age: int | None = None,
    now: int | None = None,
) -> CacheClaims | None:
    """
    Verify and decode a continuation token.

    Args:
        token: Raw token string (may be None or empty)
        key: Signing key
        max_age: Reject tokens whose ``iat`` is older than this many seconds
        now: Current epoch seconds (defaults to wall clock)

    Returns:
        The claims, or None when the token is missing, malformed, signed with
        another key, incomplete or too old.
    """
    if not token or not isinstance(token, str):
        return None

    try:
        payload = jwt.decode(token, key, algorithms=[ALGORITHM])
        claims = CacheClaims.model_validate(payload)
    except (JWTError, ValidationError, ValueError, TypeError) as e:
        logger.debug("Ignoring invalid continuation token: %s", e)
        return None

    if max_age is not None:
        current = int(time.time()) if now is None else now
        if current - claims.iat > max_age:
            logger.debug("Ignoring expired continuation token (iat=%d)", claims.iat)
            return None

    return claims


class TokenCodec:
    """Token encoder/decoder bound to the process-wide signing key."""

    def __init__(self, key: str, max_age: int | None = None):
        self._key = key
        self._max_age = max_age

    def encode(self, claims: CacheClaims) -> str:
        return encode_token(claims, self._key)

    def decode(self, token: str | None, now: int | None = None) -> CacheClaims | None:
        return decode_token(token, self._key, max_age=self._max_age, now=now)
