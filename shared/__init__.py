"""
Shared utilities for the Sentry exporter.

This package aggregates the service-independent building blocks:

- config: Exporter settings via pydantic-settings
- logging: Structured logging with scrape correlation
- metrics: The exporter's own Prometheus metrics
- errors: Canonical error types and responses
- base_service: FastAPI service skeleton (health, metrics, lifespan)
- test_helpers: Factories shared by the test suites

Do not import from service_* packages into shared/.
"""
