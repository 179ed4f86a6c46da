"""
Unit tests for the Sentry exporter service.
"""

import pytest
import httpx
from fastapi.testclient import TestClient

import sys
import os
sys.path.append(os.path.join(os.path.dirname(__file__), '..', '..'))

from service_sentry_exporter.app.main import SentryExporterService, create_app
from shared.config import LabelMode
from shared.errors import ContractViolationError, UpstreamStatusError
from shared.test_helpers import SentryPayloadFactory, create_sentry_transport, create_test_settings


class TestSentryExporterService:
    """Test cases for SentryExporterService."""

    @pytest.fixture
    def captured(self):
        """Requests seen by the mock transport."""
        return []

    @pytest.fixture
    def transport(self, captured):
        """Mock Sentry API with one known project."""
        return create_sentry_transport(
            stats={
                "error": SentryPayloadFactory.event_counts([
                    SentryPayloadFactory.group(project=42, total=7),
                    SentryPayloadFactory.group(project=99, total=3),
                ]),
                "transaction": SentryPayloadFactory.event_counts([
                    SentryPayloadFactory.group(project=42, total=1200),
                ]),
            },
            projects=SentryPayloadFactory.projects({"42": "frontend"}),
            on_request=captured.append
        )

    @pytest.fixture
    def service(self, transport):
        """Create service instance."""
        return SentryExporterService(create_test_settings(), transport=transport)

    @pytest.fixture
    def client(self, service):
        """Create test client running the lifespan."""
        with TestClient(service.app) as client:
            yield client

    def test_healthz(self, client):
        """Test liveness endpoint."""
        response = client.get("/healthz")

        assert response.status_code == 200
        assert response.text == "ok"

    def test_root_endpoint(self, client):
        """Test root endpoint."""
        response = client.get("/")

        assert response.status_code == 200
        data = response.json()
        assert data["service"] == "sentry_exporter"
        assert data["organization"] == "acme"
        assert data["label_mode"] == "with_slug"
        assert data["projects"] == 1

    def test_metrics_endpoint(self, client):
        """Test a scrape exposes both families with slugs."""
        response = client.get("/metrics")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        text = response.text
        assert 'sentry_errors_total{project="42",project_slug="frontend"} 7.0' in text
        assert 'sentry_errors_total{project="99",project_slug=""} 3.0' in text
        assert 'sentry_transactions_total{project="42",project_slug="frontend"} 1200.0' in text
        assert "sentry_exporter_build_info" in text

    def test_directory_resolved_once(self, client, captured):
        """Test projects are listed at startup only."""
        client.get("/metrics")
        client.get("/metrics")

        project_calls = [r for r in captured if r.url.path.endswith("/projects/")]
        stats_calls = [r for r in captured if r.url.path.endswith("/stats_v2/")]
        assert len(project_calls) == 1
        assert len(stats_calls) == 4

    def test_metrics_partial_failure(self):
        """Test a failing family still yields a 200 scrape."""
        transport = create_sentry_transport(
            stats={
                "error": httpx.Response(500, content=b"boom"),
                "transaction": SentryPayloadFactory.event_counts([
                    SentryPayloadFactory.group(project=42, total=5),
                ]),
            },
            projects=SentryPayloadFactory.projects({"42": "frontend"})
        )
        service = SentryExporterService(create_test_settings(), transport=transport)

        with TestClient(service.app) as client:
            response = client.get("/metrics")

        assert response.status_code == 200
        assert 'sentry_transactions_total{project="42",project_slug="frontend"} 5.0' in response.text
        assert "sentry_errors_total{" not in response.text
        assert 'sentry_exporter_collection_errors_total{family="errors"} 1.0' in response.text

    def test_basic_mode_skips_directory(self, captured, transport):
        """Test basic mode never lists projects and omits slugs."""
        service = SentryExporterService(
            create_test_settings(label_mode=LabelMode.BASIC),
            transport=transport
        )

        with TestClient(service.app) as client:
            response = client.get("/metrics")

        assert response.status_code == 200
        assert 'sentry_errors_total{project="42"} 7.0' in response.text
        assert "project_slug" not in response.text
        assert not [r for r in captured if r.url.path.endswith("/projects/")]

    @pytest.mark.asyncio
    async def test_start_fails_on_directory_error(self):
        """Test startup aborts when the directory cannot be resolved."""
        transport = create_sentry_transport(projects=httpx.Response(401, content=b"unauthorized"))
        service = SentryExporterService(create_test_settings(), transport=transport)

        with pytest.raises(UpstreamStatusError):
            await service.start()

    @pytest.mark.asyncio
    async def test_start_fails_on_malformed_project_id(self):
        """Test startup aborts on a non-numeric project id."""
        transport = create_sentry_transport(projects=SentryPayloadFactory.projects({"abc": "frontend"}))
        service = SentryExporterService(create_test_settings(), transport=transport)

        with pytest.raises(ContractViolationError):
            await service.start()

    def test_lifespan_failure_prevents_serving(self):
        """Test the app does not start when the directory fails."""
        transport = create_sentry_transport(projects=httpx.Response(500))
        service = SentryExporterService(create_test_settings(), transport=transport)

        with pytest.raises(Exception):
            with TestClient(service.app):
                pass

    def test_create_app(self, monkeypatch):
        """Test the app factory reads settings from the environment."""
        monkeypatch.setenv("SENTRY_API_KEY", "env-key")
        monkeypatch.setenv("SENTRY_ORGANIZATION_SLUG", "env-org")

        app = create_app()

        assert app.title == "Sentry Exporter"
        assert any(getattr(route, "path", None) == "/metrics" for route in app.routes)
