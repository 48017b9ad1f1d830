"""
Tests for Main Application wiring.

Error envelopes, the metrics endpoint and the static frontend fallback.
"""

from pathlib import Path
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from prometheus_client import REGISTRY

from mdrg.config import settings
from mdrg.main import UNMATCHED_ROUTE, _resolve_static


class TestErrorEnvelope:
    """Tests for the exception handlers."""

    def test_unknown_api_path(self, client: TestClient):
        response = client.get("/api/does-not-exist")

        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "API endpoint not found."}

    def test_method_not_allowed_uses_envelope(self, client: TestClient):
        response = client.delete("/api/health")

        assert response.status_code == 405
        assert response.json()["success"] is False

    def test_malformed_json_is_400(self, client: TestClient):
        response = client.post(
            "/api/auth/login",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["success"] is False

    def test_unhandled_error_hides_details(
        self, app: FastAPI, db_session: AsyncMock, client: TestClient
    ):
        db_session.execute = AsyncMock(side_effect=RuntimeError("connection refused"))

        response = TestClient(app, raise_server_exceptions=False).get("/api/dashboard/stats")

        assert response.status_code == 500
        assert response.json() == {"success": False, "message": "Internal server error."}

    def test_unhandled_error_exposes_details_when_enabled(
        self,
        app: FastAPI,
        db_session: AsyncMock,
        client: TestClient,
        monkeypatch: pytest.MonkeyPatch,
    ):
        monkeypatch.setattr(settings, "expose_error_details", True)
        db_session.execute = AsyncMock(side_effect=RuntimeError("connection refused"))

        response = TestClient(app, raise_server_exceptions=False).get("/api/dashboard/stats")

        assert response.status_code == 500
        assert response.json()["error"] == "connection refused"


class TestMetricsEndpoint:
    """Tests for GET /metrics."""

    def test_prometheus_text(self, client: TestClient):
        client.get("/api/health")

        response = client.get("/metrics")

        assert response.status_code == 200
        assert "mdrg_http_requests_total" in response.text
        assert "mdrg_service_info" in response.text


class TestStaticFrontend:
    """Tests for the frontend catch-all."""

    @pytest.fixture
    def static_dir(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
        (tmp_path / "index.html").write_text("<html>app</html>")
        (tmp_path / "app.js").write_text("console.log('mdrg');")
        monkeypatch.setattr(settings, "static_dir", str(tmp_path))
        return tmp_path

    def test_serves_file(self, client: TestClient, static_dir: Path):
        response = client.get("/app.js")

        assert response.status_code == 200
        assert "mdrg" in response.text

    def test_unknown_path_falls_back_to_index(self, client: TestClient, static_dir: Path):
        response = client.get("/dashboard/cases")

        assert response.status_code == 200
        assert response.text == "<html>app</html>"

    def test_root_serves_index(self, client: TestClient, static_dir: Path):
        assert client.get("/").text == "<html>app</html>"

    def test_traversal_stays_inside_static_dir(self, static_dir: Path):
        (static_dir.parent / "secret.txt").write_text("secret")

        resolved = _resolve_static("../secret.txt")

        assert resolved == (static_dir / "index.html").resolve()

    def test_missing_static_dir(self, client: TestClient, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setattr(settings, "static_dir", "/nonexistent/mdrg-static")

        response = client.get("/anything")

        assert response.status_code == 404
        assert response.json()["success"] is False


class TestRequestMetricLabels:
    """HTTP metrics are labelled by route template, not by raw path."""

    @staticmethod
    def endpoint_labels() -> set[str]:
        return {
            sample.labels["endpoint"]
            for family in REGISTRY.collect()
            if family.name == "mdrg_http_requests"
            for sample in family.samples
            if "endpoint" in sample.labels
        }

    def test_client_ids_share_one_series(self, client: TestClient):
        labels = {
            "endpoint": "/api/clients/{client_id}/cases",
            "method": "GET",
            "status_code": "401",
        }
        before = REGISTRY.get_sample_value("mdrg_http_requests_total", labels) or 0

        client.get("/api/clients/MDRGAAAA/cases")
        client.get("/api/clients/MDRGBBBB/cases")

        assert REGISTRY.get_sample_value("mdrg_http_requests_total", labels) == before + 2
        endpoints = self.endpoint_labels()
        assert not any("MDRGAAAA" in e or "MDRGBBBB" in e for e in endpoints)

    def test_frontend_paths_share_one_series(
        self, client: TestClient, monkeypatch: pytest.MonkeyPatch
    ):
        monkeypatch.setattr(settings, "static_dir", "/nonexistent/mdrg-static")

        for i in range(5):
            client.get(f"/random/spa/path/{i}")

        endpoints = self.endpoint_labels()
        assert "/{full_path:path}" in endpoints
        assert not any(e.startswith("/random/") for e in endpoints)

    def test_method_mismatch_is_unmatched(self, client: TestClient):
        client.delete("/api/health")

        assert UNMATCHED_ROUTE in self.endpoint_labels()
