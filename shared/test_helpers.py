"""
Test helper functions and factory methods for the Sentry exporter.
"""

import json
from typing import Any, Callable, Dict, List, Optional

import httpx

from shared.config import ExporterSettings, LabelMode

TEST_API_KEY = "test-api-key"
TEST_ORGANIZATION = "acme"
TEST_ENDPOINT = "https://sentry.example.com/api/0/"


def create_test_settings(**overrides) -> ExporterSettings:
    """Create exporter settings without reading the environment."""
    values: Dict[str, Any] = {
        "sentry_api_key": TEST_API_KEY,
        "sentry_organization_slug": TEST_ORGANIZATION,
        "sentry_api_endpoint": TEST_ENDPOINT,
        "label_mode": LabelMode.WITH_SLUG,
        "log_level": "warning",
    }
    values.update(overrides)
    return ExporterSettings(_env_file=None, **values)


class SentryPayloadFactory:
    """Factory for Sentry API response bodies."""

    @staticmethod
    def group(project: Optional[int], total: Optional[float] = None, field: str = "sum(quantity)",
              outcome: Optional[str] = None) -> Dict[str, Any]:
        by: Dict[str, Any] = {}
        if project is not None:
            by["project"] = project
        if outcome is not None:
            by["outcome"] = outcome

        totals = {} if total is None else {field: total}
        series = {} if total is None else {field: [total]}
        return {"by": by, "totals": totals, "series": series}

    @staticmethod
    def event_counts(groups: List[Dict[str, Any]]) -> Dict[str, Any]:
        return {
            "start": "2024-01-01T10:00:00Z",
            "end": "2024-01-01T11:00:00Z",
            "intervals": ["2024-01-01T10:00:00Z"],
            "groups": groups,
        }

    @staticmethod
    def projects(slugs: Dict[str, str]) -> List[Dict[str, Any]]:
        return [{"id": project_id, "slug": slug, "name": slug.title()} for project_id, slug in slugs.items()]


def json_response(status_code: int, body: Any) -> httpx.Response:
    """Build an httpx response with a JSON body."""
    return httpx.Response(
        status_code=status_code,
        content=json.dumps(body),
        headers={"Content-Type": "application/json"},
    )


def create_sentry_transport(
    stats: Optional[Dict[str, Any]] = None,
    projects: Optional[Any] = None,
    on_request: Optional[Callable[[httpx.Request], None]] = None,
) -> httpx.MockTransport:
    """Mock transport answering the stats and projects endpoints.

    ``stats`` maps a category to either a response body or an
    ``httpx.Response``; an exception instance is raised instead.
    """
    stats = stats or {}

    def _answer(value: Any) -> httpx.Response:
        if isinstance(value, BaseException):
            raise value
        if isinstance(value, httpx.Response):
            return value
        return json_response(200, value)

    def handler(request: httpx.Request) -> httpx.Response:
        if on_request:
            on_request(request)

        if request.url.path.endswith("/projects/"):
            return _answer(projects if projects is not None else [])

        if request.url.path.endswith("/stats_v2/"):
            category = request.url.params.get("category", "")
            if category not in stats:
                return json_response(404, {"detail": f"no data for {category}"})
            return _answer(stats[category])

        return json_response(404, {"detail": "not found"})

    return httpx.MockTransport(handler)
