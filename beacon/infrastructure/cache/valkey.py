# ==============================================================================
# Valkey Lookup Cache
# ==============================================================================
"""
Valkey-backed lookup cache.

Entries are JSON strings written with SETEX under a namespace prefix, so a
shared Valkey instance can hold several collectors (or other tenants)
without key collisions.
"""

import json
import logging

import redis
from redis.backoff import ExponentialBackoff
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError
from redis.retry import Retry

from beacon.base import Cache
from beacon.utils.config import ValkeySettings, get_settings
from beacon.utils.retry import REDIS_RETRY_EXCEPTIONS, VALKEY_RETRIES

logger = logging.getLogger(__name__)


class ValkeyCache(Cache):
    """
    Lookup cache on a Valkey (or Redis) server.

    Socket timeouts are kept short: a slow cache costs every beacon that
    misses its continuation token, and the callers fall back to the
    database on any Redis error anyway.
    """

    def __init__(self, settings: ValkeySettings | None = None, socket_timeout: float = 0.5):
        settings = settings or get_settings().valkey
        self._prefix = settings.key_prefix
        self._client = redis.from_url(
            settings.url,
            decode_responses=True,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
            retry=Retry(ExponentialBackoff(cap=1, base=0.05), retries=VALKEY_RETRIES),
            retry_on_error=[RedisTimeoutError, RedisConnectionError],
            health_check_interval=30,
        )

    def _namespaced(self, key: str) -> str:
        return f"{self._prefix}{key}"

    def get(self, key: str) -> dict | None:
        raw = self._client.get(self._namespaced(key))
        if raw is None:
            return None
        try:
            value = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Unreadable cache entry %s", key)
            return None
        return value if isinstance(value, dict) else None

    def set(self, key: str, value: dict, ttl_seconds: int) -> None:
        self._client.setex(self._namespaced(key), ttl_seconds, json.dumps(value, default=str))

    def ping(self) -> bool:
        try:
            return bool(self._client.ping())
        except REDIS_RETRY_EXCEPTIONS:
            return False

    def close(self) -> None:
        self._client.close()


def check_valkey_connection() -> bool:
    """Ping the configured Valkey server once, without retries."""
    settings = get_settings().valkey
    try:
        client = redis.from_url(settings.url, socket_timeout=5, socket_connect_timeout=5)
        try:
            return bool(client.ping())
        finally:
            client.close()
    except REDIS_RETRY_EXCEPTIONS:
        return False
