"""
HTTP tests for the Universal Wallpaper API.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

import wallpaper
from wallpaper import __version__
from wallpaper.api.middleware import REQUEST_ID_HEADER, SECURITY_HEADERS

pytestmark = pytest.mark.integration


def test_version():
    """Test that version is defined."""
    assert __version__ == "1.0.0"


def test_import():
    """Test that the package can be imported."""
    assert wallpaper is not None


class TestSmokeTestEndpoint:
    def test_returns_message(self, client: TestClient):
        response = client.get("/test")

        assert response.status_code == 200
        body = response.json()
        assert isinstance(body["message"], str) and body["message"]
        assert body["success"] is True
        assert body["error"] is False

    def test_ignores_query_and_headers(self, client: TestClient):
        response = client.get("/test?foo=bar", headers={"X-Anything": "1"})

        assert response.status_code == 200
        assert response.json()["message"] == "Server is working"

    def test_not_mounted_under_api(self, client: TestClient):
        assert client.get("/api/test").status_code == 404


class TestSignup:
    @pytest.mark.parametrize(
        "payload",
        [
            {},
            {"email": "someone@example.com", "password": "hunter22", "name": "Someone"},
            {"unexpected": {"nested": [1, 2, 3]}},
            [],
            "just a string",
            42,
        ],
    )
    def test_any_json_body_is_accepted(self, client: TestClient, payload):
        response = client.post("/api/signup", json=payload)

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["error"] is False
        assert body["message"]

    def test_json_null_is_accepted(self, client: TestClient):
        response = client.post(
            "/api/signup",
            content=b"null",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 201

    def test_invalid_json_is_a_bad_request(self, client: TestClient):
        response = client.post(
            "/api/signup",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"] is True
        assert "not valid JSON" in body["message"]

    def test_missing_body_is_accepted(self, client: TestClient):
        response = client.post("/api/signup")

        assert response.status_code == 201
        assert response.json()["success"] is True

    def test_empty_json_body_is_accepted(self, client: TestClient):
        response = client.post(
            "/api/signup",
            content=b"",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 201

    def test_form_body_is_accepted(self, client: TestClient):
        response = client.post("/api/signup", data={"email": "a@b.c"})

        assert response.status_code == 201
        assert response.json()["message"] == "Test signup endpoint working"

    def test_text_body_is_accepted(self, client: TestClient):
        response = client.post(
            "/api/signup",
            content=b"hello",
            headers={"Content-Type": "text/plain"},
        )

        assert response.status_code == 201
        assert response.json()["error"] is False

    def test_get_is_not_allowed(self, client: TestClient):
        response = client.get("/api/signup")

        assert response.status_code == 405
        body = response.json()
        assert body == {
            "success": False,
            "error": True,
            "message": "Method GET is not allowed on /api/signup",
        }
        assert "POST" in response.headers["allow"]

    def test_only_mounted_under_api(self, client: TestClient):
        assert client.post("/signup", json={}).status_code == 404


class TestUnknownRoutes:
    def test_not_found_envelope(self, client: TestClient):
        response = client.get("/api/does-not-exist")

        assert response.status_code == 404
        assert response.json() == {
            "success": False,
            "error": True,
            "message": "Can't find /api/does-not-exist on this server",
        }


class TestServiceInfo:
    def test_root_describes_service(self, client: TestClient):
        response = client.get("/")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["version"] == __version__
        assert body["data"]["environment"] == "development"
        assert body["data"]["uptime_seconds"] >= 0


class TestHealth:
    def test_healthy_when_database_answers(self, client: TestClient):
        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        report = body["data"]
        assert report["status"] == "healthy"
        assert [c["name"] for c in report["components"]] == ["database"]
        assert report["components"][0]["metadata"]["database"] == "wallpaper_test"

    def test_unhealthy_when_ping_fails(self, client: TestClient, database, monkeypatch):
        async def _unreachable() -> bool:
            return False

        monkeypatch.setattr(database, "ping", _unreachable)

        response = client.get("/health")

        assert response.status_code == 503
        body = response.json()
        assert body["success"] is False
        assert body["error"] is True
        assert body["data"]["status"] == "unhealthy"

    def test_unhealthy_before_connection_is_open(self, app):
        # No context manager: the lifespan never runs, so nothing is opened
        response = TestClient(app).get("/health")

        assert response.status_code == 503
        component = response.json()["data"]["components"][0]
        assert component["message"] == "Database connection not open"


class TestMiddleware:
    def test_security_headers_on_success(self, client: TestClient):
        response = client.get("/test")

        for name, value in SECURITY_HEADERS.items():
            assert response.headers[name] == value

    def test_security_headers_on_not_found(self, client: TestClient):
        response = client.get("/missing")

        assert response.headers["X-Frame-Options"] == "DENY"

    def test_request_id_is_generated(self, client: TestClient):
        response = client.get("/test")

        assert response.headers[REQUEST_ID_HEADER].startswith("req-")

    def test_request_id_is_echoed(self, client: TestClient):
        response = client.get("/test", headers={REQUEST_ID_HEADER: "trace-abc"})

        assert response.headers[REQUEST_ID_HEADER] == "trace-abc"

    def test_cors_preflight_for_frontend(self, client: TestClient):
        response = client.options(
            "/api/signup",
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "POST",
            },
        )

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "http://localhost:3000"
        assert response.headers["access-control-allow-credentials"] == "true"


class TestMetrics:
    def test_requests_are_counted(self, client: TestClient):
        client.get("/test")

        response = client.get("/metrics")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert (
            'wallpaper_http_requests_total{method="GET",route="/test",status="200"}'
            in response.text
        )
        assert "wallpaper_database_connected 1.0" in response.text
