"""
Tests for the unified error body and the service endpoints (/ and /api/health)
"""

from fastapi.testclient import TestClient

from postboard import config
from postboard.main import app
from postboard.services import categories as category_service


class TestErrorShape:
    """Test that every failure renders as {kind, message, statusCode, errors}"""

    def test_unknown_route(self, client):
        response = client.get("/api/nope")

        assert response.status_code == 404
        body = response.json()
        assert body["kind"] == "not_found"
        assert body["message"] == "Cannot GET /api/nope"
        assert body["statusCode"] == 404
        assert body["errors"] == []

    def test_stack_outside_production(self, client):
        """Should include the stack trace in dev"""
        response = client.get("/api/posts/9999")

        assert "stack" in response.json()

    def test_no_stack_in_production(self, client, monkeypatch):
        """Should never leak the stack trace in prod"""
        monkeypatch.setattr(config, "ENV", "prod")

        response = client.get("/api/posts/9999")

        assert response.status_code == 404
        assert "stack" not in response.json()

    def test_request_validation_is_400(self, client):
        """Should map a malformed path parameter to a 400 validation error"""
        response = client.get("/api/categories/not-a-number")

        assert response.status_code == 400
        body = response.json()
        assert body["kind"] == "validation_error"
        assert body["errors"][0]["field"] == "category_id"

    def test_malformed_json(self, client):
        response = client.post(
            "/api/categories", content="{not json", headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 400

    def test_unhandled_error_is_500(self, client, monkeypatch):
        """Should hide unexpected failures behind a generic 500"""
        def explode(db):
            raise RuntimeError("boom")

        monkeypatch.setattr(category_service, "list_categories", explode)
        monkeypatch.setattr(config, "ENV", "prod")

        response = TestClient(app, raise_server_exceptions=False).get("/api/categories")

        assert response.status_code == 500
        body = response.json()
        assert body["kind"] == "internal_error"
        assert body["message"] == "Internal server error"
        assert "boom" not in response.text


class TestServiceEndpoints:
    """Test / and /api/health"""

    def test_home(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_health(self, client):
        body = client.get("/api/health").json()

        assert body["status"] == "ok"
        assert body["environment"] == config.ENV
        assert body["uptime"] >= 0
