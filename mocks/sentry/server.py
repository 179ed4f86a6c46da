"""
Mock Sentry server providing the organization stats and projects endpoints.
"""

from typing import Dict, Any, Optional, List
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from shared.logging import get_logger

# Intervals the stats endpoint accepts, in seconds
SUPPORTED_INTERVALS = {"1h": 3600, "1d": 86400}


@dataclass
class MockProject:
    """Mock Sentry project with hourly event counts per category."""
    id: str
    slug: str
    counts: Dict[str, int] = field(default_factory=dict)


class MockSentryServer:
    """Mock Sentry API implementation."""

    def __init__(self, organization: str = "acme", api_key: str = "test-api-key", port: int = 9000):
        self.organization = organization
        self.api_key = api_key
        self.port = port
        self.logger = get_logger("mock.sentry")
        # Trailing slashes are mandatory upstream; no redirect for missing ones
        self.app = FastAPI(title="Mock Sentry", version="1.0.0", redirect_slashes=False)

        # In-memory storage
        self.projects: List[MockProject] = []
        # category -> forced HTTP status for stats requests
        self.failures: Dict[str, int] = {}
        self.requests: List[Dict[str, Any]] = []

        self._create_default_projects()
        self._setup_routes()

    def _create_default_projects(self):
        """Create default projects with sample counts."""
        self.projects = [
            MockProject(id="42", slug="frontend", counts={"error": 7, "transaction": 1200}),
            MockProject(id="43", slug="backend", counts={"error": 19, "transaction": 5400}),
            MockProject(id="44", slug="worker", counts={"error": 0, "transaction": 310}),
        ]

    def fail_category(self, category: str, status_code: int = 500):
        """Make stats requests for a category answer with an error status."""
        self.failures[category] = status_code
        self.logger.info("Failure injected", category=category, status_code=status_code)

    def _check_auth(self, request: Request):
        if request.headers.get("authorization") != f"Bearer {self.api_key}":
            raise HTTPException(status_code=401, detail="Invalid token")

    def _check_organization(self, organization: str):
        if organization != self.organization:
            raise HTTPException(status_code=404, detail="Organization not found")

    def _setup_routes(self):
        """Set up mock API routes."""

        @self.app.exception_handler(HTTPException)
        async def http_exception_handler(request: Request, exc: HTTPException):
            return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

        @self.app.get("/health", response_class=PlainTextResponse)
        async def health():
            """Health check."""
            return "ok"

        @self.app.get("/api/0/organizations/{organization}/projects/")
        async def list_projects(organization: str, request: Request):
            """List organization projects."""
            self._check_auth(request)
            self._check_organization(organization)
            self.requests.append({"path": request.url.path, "params": list(request.query_params.multi_items())})

            return [{"id": p.id, "slug": p.slug, "name": p.slug.title()} for p in self.projects]

        @self.app.get("/api/0/organizations/{organization}/stats_v2/")
        async def stats_v2(
            organization: str,
            request: Request,
            field: str = Query(...),
            group_by: List[str] = Query(..., alias="groupBy"),
            project: List[str] = Query(default=[]),
            category: Optional[str] = Query(None),
            stats_period: str = Query("24h", alias="statsPeriod"),
            interval: str = Query("1h"),
        ):
            """Retrieve event counts for the organization."""
            self._check_auth(request)
            self._check_organization(organization)
            self.requests.append({"path": request.url.path, "params": list(request.query_params.multi_items())})

            if interval not in SUPPORTED_INTERVALS:
                raise HTTPException(status_code=400, detail=f"Invalid interval: {interval}")
            if field != "sum(quantity)":
                raise HTTPException(status_code=400, detail=f"Invalid field: {field}")
            if category in self.failures:
                raise HTTPException(status_code=self.failures[category], detail="Internal error")

            return self._build_stats(field, group_by, project, category, interval)

    def _build_stats(
        self,
        field_name: str,
        group_by: List[str],
        project_filter: List[str],
        category: Optional[str],
        interval: str,
    ) -> Dict[str, Any]:
        """Build a stats_v2 response body."""
        end = datetime.now(timezone.utc).replace(minute=0, second=0, microsecond=0)
        start = end - timedelta(seconds=SUPPORTED_INTERVALS[interval])

        selected = self.projects
        if project_filter and "-1" not in project_filter:
            selected = [p for p in self.projects if p.id in project_filter]

        groups = []
        for p in selected:
            total = p.counts.get(category, 0) if category else sum(p.counts.values())
            by: Dict[str, Any] = {}
            if "project" in group_by:
                by["project"] = int(p.id)
            groups.append({
                "by": by,
                "totals": {field_name: total},
                "series": {field_name: [total]},
            })

        return {
            "start": start.isoformat().replace("+00:00", "Z"),
            "end": end.isoformat().replace("+00:00", "Z"),
            "intervals": [start.isoformat().replace("+00:00", "Z")],
            "groups": groups,
        }


def create_app():
    """Create mock Sentry application."""
    server = MockSentryServer()
    return server.app


if __name__ == "__main__":
    import uvicorn
    server = MockSentryServer()
    uvicorn.run(server.app, host="0.0.0.0", port=server.port)
