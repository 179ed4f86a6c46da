"""
Sentry Exporter Service package.

Bridges Sentry event counts into Prometheus. Every scrape of `/metrics`
queries the Sentry API for the last hour of error and transaction counts,
grouped by project, and exposes them as `sentry_errors_total` and
`sentry_transactions_total`.

Structure:
- app.main: FastAPI app, lifespan (project directory resolution) and runner.
- app.sentry: HTTP client for the Sentry REST API.
- app.ingestion: project directory and per-scrape collector.
- app.exporters: Prometheus text rendering.
"""

__version__ = "1.0.0"
