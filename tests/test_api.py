# ==============================================================================
# Tests for the HTTP API
# ==============================================================================
"""
Tests for POST /api/send and GET /health through FastAPI's TestClient.

The app is built around a collector over in-memory repositories, so no
database is needed.
"""

import pytest
from conftest import GOOGLEBOT_UA, OTHER_WEBSITE_ID, pageview_body
from fastapi.testclient import TestClient

from beacon.api import create_app
from beacon.utils.config import Settings


@pytest.fixture()
def client(collector, clean_env):
    return TestClient(create_app(collector=collector, settings=Settings()))


class TestSend:
    def test_accepted(self, client, events):
        response = client.post("/api/send", json=pageview_body())
        assert response.status_code == 200
        assert set(response.json()) == {"cache"}
        assert len(events.events) == 1

    def test_token_header_skips_website_lookup(self, client, websites):
        token = client.post("/api/send", json=pageview_body()).json()["cache"]
        response = client.post(
            "/api/send", json=pageview_body(url="/next"), headers={"x-beacon-cache": token}
        )
        assert response.status_code == 200
        assert len(websites.lookups) == 1

    def test_invalid_json(self, client):
        response = client.post(
            "/api/send", content=b"{not json", headers={"Content-Type": "application/json"}
        )
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid JSON body."}

    def test_bot_with_invalid_json(self, client, events):
        response = client.post(
            "/api/send",
            content=b"{not json",
            headers={"Content-Type": "application/json", "User-Agent": GOOGLEBOT_UA},
        )
        assert response.status_code == 200
        assert response.json() == {"beep": "boop"}
        assert events.events == []

    def test_invalid_beacon(self, client):
        response = client.post("/api/send", json={"type": "event", "payload": {}})
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid beacon."

    def test_unknown_website(self, client):
        response = client.post("/api/send", json=pageview_body(website_id=OTHER_WEBSITE_ID))
        assert response.status_code == 400
        assert response.json() == {"error": "Website not found."}

    def test_bot(self, client, events):
        response = client.post(
            "/api/send", json=pageview_body(), headers={"User-Agent": GOOGLEBOT_UA}
        )
        assert response.status_code == 200
        assert response.json() == {"beep": "boop"}
        assert events.events == []

    def test_blocked_ip(self, client, events):
        response = client.post(
            "/api/send", json=pageview_body(), headers={"X-Forwarded-For": "10.1.2.3"}
        )
        assert response.status_code == 403
        assert events.events == []

    def test_identity_without_data(self, client):
        body = {"type": "identity", "payload": {"website": pageview_body()["payload"]["website"]}}
        response = client.post("/api/send", json=body)
        assert response.status_code == 400
        assert response.json() == {"error": "Data required."}


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
