# ==============================================================================
# Shared Test Fixtures
# ==============================================================================
"""
Pytest fixtures shared across all test modules.

Provides:
- fakeredis-backed ValkeyCache instances
- In-memory repositories recording what the collector touched
- A Collector wired to the in-memory repositories
- Settings isolated from the host environment
"""

import fakeredis
import pytest

from beacon.base import (
    CreateResult,
    EventRepository,
    IdentityRepository,
    SessionRepository,
    WebsiteRepository,
)
from beacon.core.collector import Collector
from beacon.core.identity import hash_value, session_salt
from beacon.core.models import Website
from beacon.core.token import TokenCodec
from beacon.core.visit import VisitWindowResolver
from beacon.infrastructure.cache import ValkeyCache
from beacon.infrastructure.detect import (
    HeaderClientInfoResolver,
    NetworkBlockList,
    SubstringBotClassifier,
)
from beacon.utils.config import get_settings

WEBSITE_ID = "6d1f2a3b-4c5d-4e6f-8a9b-0c1d2e3f4a5b"
OTHER_WEBSITE_ID = "0f9e8d7c-6b5a-4c3d-9e2f-1a0b9c8d7e6f"
SECRET = "test-secret"
NOW = 1_700_000_000

CHROME_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
FIREFOX_UA = "Mozilla/5.0 (X11; Linux x86_64; rv:121.0) Gecko/20100101 Firefox/121.0"
GOOGLEBOT_UA = "Mozilla/5.0 (compatible; Googlebot/2.1; +http://www.google.com/bot.html)"


# ==============================================================================
# In-Memory Repositories
# ==============================================================================


class InMemoryWebsiteRepository(WebsiteRepository):
    def __init__(self, websites=()):
        self.websites = {w.id: w for w in websites}
        self.lookups = []

    def connect(self):
        pass

    def find(self, website_id):
        self.lookups.append(website_id)
        return self.websites.get(website_id)

    def close(self):
        pass


class InMemorySessionRepository(SessionRepository):
    def __init__(self, supports_eager_session_creation=True):
        self.supports_eager_session_creation = supports_eager_session_creation
        self.sessions = {}
        self.lookups = []
        self.create_calls = []

    def connect(self):
        pass

    def find(self, website_id, session_id):
        self.lookups.append(session_id)
        session = self.sessions.get(session_id)
        if session is not None and session.website_id == website_id:
            return session
        return None

    def create(self, session):
        self.create_calls.append(session)
        if session.id in self.sessions:
            return CreateResult.CONFLICT
        self.sessions[session.id] = session
        return CreateResult.CREATED

    def close(self):
        pass


class InMemoryEventRepository(EventRepository):
    def __init__(self):
        self.events = []

    def connect(self):
        pass

    def save(self, event):
        self.events.append(event)

    def close(self):
        pass


class InMemoryIdentityRepository(IdentityRepository):
    def __init__(self):
        self.identities = []

    def connect(self):
        pass

    def save(self, identity):
        self.identities.append(identity)

    def close(self):
        pass


# ==============================================================================
# Fixtures
# ==============================================================================


@pytest.fixture()
def fake_redis():
    """A clean fakeredis instance for each test.

    Uses decode_responses=True to match the real ValkeyCache behavior.
    """
    server = fakeredis.FakeServer()
    client = fakeredis.FakeRedis(server=server, decode_responses=True)
    yield client
    client.flushall()
    client.close()


@pytest.fixture()
def fake_cache(fake_redis):
    """A ValkeyCache with its internal client replaced by fakeredis."""
    cache = ValkeyCache.__new__(ValkeyCache)
    cache._client = fake_redis
    cache._prefix = "beacon:"
    return cache


@pytest.fixture()
def websites():
    return InMemoryWebsiteRepository([Website(id=WEBSITE_ID, name="Example", domain="example.com")])


@pytest.fixture()
def sessions():
    return InMemorySessionRepository()


@pytest.fixture()
def events():
    return InMemoryEventRepository()


@pytest.fixture()
def identities():
    return InMemoryIdentityRepository()


@pytest.fixture()
def tokens():
    return TokenCodec(hash_value(SECRET))


@pytest.fixture()
def make_collector(websites, sessions, events, identities, tokens):
    """Factory for collectors over the in-memory repositories.

    Keyword arguments override any Collector constructor argument.
    """

    def _make(**overrides):
        kwargs = dict(
            websites=websites,
            sessions=sessions,
            events=events,
            identities=identities,
            client_info=HeaderClientInfoResolver(),
            block_list=NetworkBlockList(["10.0.0.0/8", "192.0.2.1"]),
            bot_classifier=SubstringBotClassifier(),
            tokens=tokens,
            visits=VisitWindowResolver(SECRET),
            session_salt=session_salt(SECRET),
        )
        kwargs.update(overrides)
        return Collector(**kwargs)

    return _make


@pytest.fixture()
def collector(make_collector):
    return make_collector()


@pytest.fixture()
def clean_env(monkeypatch):
    """Remove collector-related variables and reset the settings cache."""
    for name in (
        "APP_SECRET",
        "DISABLE_BOT_CHECK",
        "REMOVE_TRAILING_SLASH",
        "IGNORE_IP",
        "CLIENT_IP_HEADER",
        "COLLECTOR_APP_SECRET",
        "COLLECTOR_STORAGE_MODE",
        "COLLECTOR_TOKEN_MAX_AGE_SECONDS",
        "COLLECTOR_VISIT_TIMEOUT_SECONDS",
        "COLLECTOR_CACHE_HEADER",
        "VALKEY_ENABLED",
    ):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield monkeypatch
    get_settings.cache_clear()


def pageview_body(website_id=WEBSITE_ID, **payload):
    body = {
        "type": "event",
        "payload": {
            "website": website_id,
            "hostname": "example.com",
            "url": "/pricing?plan=pro",
            "referrer": "https://www.google.com/search?q=beacon",
            "screen": "1920x1080",
            "language": "en-US",
            "title": "Pricing",
        },
    }
    body["payload"].update(payload)
    return body


def identity_body(data, website_id=WEBSITE_ID):
    payload = {"website": website_id, "hostname": "example.com"}
    if data is not None:
        payload["data"] = data
    return {"type": "identity", "payload": payload}
