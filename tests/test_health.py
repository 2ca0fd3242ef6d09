"""Tests for /health and / endpoints."""

from curiocity.core.clients import Clients, get_clients
from curiocity.main import app


class TestHealth:

    def test_health_returns_200(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "healthy"
        assert data["primary"] == "ok"
        assert data["mirror"] == "disabled"
        assert "uptime_seconds" in data
        assert "version" in data

    def test_health_reports_mirror(self, client, primary, blobs, mirror):
        app.dependency_overrides[get_clients] = lambda: Clients(primary=primary, blobs=blobs, mirror=mirror)
        resp = client.get("/health")
        assert resp.json()["mirror"] == "ok"

    def test_health_degraded_when_primary_unreachable(self, client, primary, monkeypatch):
        monkeypatch.setattr(primary.backend, "ping", lambda table_name: False)
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "degraded"

    def test_root_returns_api_info(self, client):
        resp = client.get("/")
        assert resp.status_code == 200
        assert resp.json()["name"] == "Curiocity API"


class TestResponseHeaders:

    def test_response_includes_middleware_headers(self, client):
        resp = client.get("/health")
        assert "x-request-id" in resp.headers
        assert "x-response-time" in resp.headers

    def test_request_id_is_propagated(self, client):
        resp = client.get("/health", headers={"X-Request-ID": "abc123"})
        assert resp.headers["x-request-id"] == "abc123"
