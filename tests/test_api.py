"""Tests for the HTTP analysis endpoint."""

import json

import pytest
from fastapi.testclient import TestClient

from plugin_profiler.api import app as app_module
from plugin_profiler.api.app import create_app
from plugin_profiler.config import Settings


@pytest.fixture
def client():
    with TestClient(create_app()) as test_client:
        yield test_client


class TestAnalyzeEndpoint:
    """``POST /analyze``."""

    def test_returns_graph_document(self, client, sample_plugin):
        """Test a valid plugin path returns the export document."""
        response = client.post("/analyze", json={"path": str(sample_plugin)})

        assert response.status_code == 200
        body = response.json()
        assert body["plugin"]["name"] == "Sample Plugin"
        assert any(entry["data"]["id"] == "shortcode_sample" for entry in body["nodes"])
        assert all(edge["data"]["id"].startswith("e_") for edge in body["edges"])

    def test_writes_output_file(self, client, sample_plugin, tmp_path):
        """Test the document is also written when an output path is given."""
        target = tmp_path / "graph.json"

        response = client.post("/analyze", json={"path": str(sample_plugin), "output": str(target)})

        assert response.status_code == 200
        assert json.loads(target.read_text(encoding="utf-8"))["plugin"]["name"] == "Sample Plugin"

    def test_missing_path(self, client, tmp_path):
        """Test a missing plugin directory is a client error."""
        response = client.post("/analyze", json={"path": str(tmp_path / "missing")})

        assert response.status_code == 400

    def test_unknown_script_parser(self, client, sample_plugin):
        """Test an unknown extraction strategy is a client error."""
        response = client.post("/analyze", json={"path": str(sample_plugin), "script_parser": "wasm"})

        assert response.status_code == 400
        assert "wasm" in response.json()["detail"]

    def test_request_validation(self, client):
        """Test a request without a path is rejected."""
        assert client.post("/analyze", json={}).status_code == 422


class TestAppLifespan:
    """Startup configuration."""

    def test_logging_uses_settings(self, monkeypatch):
        """Test startup configures logging from the log settings."""
        calls = []
        monkeypatch.setattr(app_module.settings, "log_level", "DEBUG")
        monkeypatch.setattr(app_module.settings, "log_json", True)
        monkeypatch.setattr(app_module, "setup_logging", lambda level, **kwargs: calls.append((level, kwargs)))

        with TestClient(create_app()):
            pass

        assert calls == [("DEBUG", {"json_output": True})]


class TestServerSettings:
    """Options read by the uvicorn runner."""

    def test_defaults(self, monkeypatch):
        """Test the server binds locally without auto-reload by default."""
        for name in ("PROFILER_HOST", "PROFILER_PORT", "PROFILER_RELOAD"):
            monkeypatch.delenv(name, raising=False)

        server = Settings(_env_file=None)

        assert (server.host, server.port, server.reload) == ("127.0.0.1", 8000, False)

    def test_environment_overrides(self, monkeypatch):
        """Test ``PROFILER_`` variables configure the server."""
        monkeypatch.setenv("PROFILER_HOST", "0.0.0.0")
        monkeypatch.setenv("PROFILER_PORT", "9100")
        monkeypatch.setenv("PROFILER_RELOAD", "true")

        server = Settings(_env_file=None)

        assert (server.host, server.port, server.reload) == ("0.0.0.0", 9100, True)
