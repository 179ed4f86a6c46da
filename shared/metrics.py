"""
Self-observability metrics for the Sentry exporter.

Instruments are registered on the registry the service hands in, never on the
process-wide default registry, so several service instances can coexist.
"""

from prometheus_client import Counter, Histogram, Info, CollectorRegistry
from prometheus_client import GCCollector, PlatformCollector, ProcessCollector
from typing import Dict, Any, Optional
import time
from contextlib import contextmanager


SELF_NAMESPACE = "sentry_exporter"


def create_registry(with_default_collectors: bool = True) -> CollectorRegistry:
    """Create a registry carrying the process's own default metrics."""
    registry = CollectorRegistry(auto_describe=True)
    if with_default_collectors:
        ProcessCollector(registry=registry)
        PlatformCollector(registry=registry)
        GCCollector(registry=registry)
    return registry


class ServiceMetrics:
    """Centralized self-metrics for the exporter service."""

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None, version: str = "unknown"):
        self.service_name = service_name
        self.registry = registry if registry is not None else create_registry()
        self.version = version
        self._metrics: Dict[str, Any] = {}
        self._setup_metrics()

    def _setup_metrics(self):
        """Set up metrics for the service."""

        # Build info
        self._metrics["build_info"] = Info(
            "build",
            "Exporter build information",
            namespace=SELF_NAMESPACE,
            registry=self.registry
        )
        self._metrics["build_info"].info({
            "service": self.service_name,
            "version": self.version
        })

        # HTTP metrics
        self._metrics["http_requests_total"] = Counter(
            "http_requests_total",
            "Total HTTP requests served",
            ["method", "endpoint", "status_code"],
            namespace=SELF_NAMESPACE,
            registry=self.registry
        )

        # Upstream metrics
        self._metrics["upstream_requests_total"] = Counter(
            "upstream_requests_total",
            "Total requests sent to the Sentry API",
            ["operation", "status"],
            namespace=SELF_NAMESPACE,
            registry=self.registry
        )

        self._metrics["upstream_request_duration_seconds"] = Histogram(
            "upstream_request_duration_seconds",
            "Sentry API request duration in seconds",
            ["operation"],
            namespace=SELF_NAMESPACE,
            registry=self.registry
        )

        # Collection metrics
        self._metrics["collection_errors_total"] = Counter(
            "collection_errors_total",
            "Total failed metric family collections",
            ["family"],
            namespace=SELF_NAMESPACE,
            registry=self.registry
        )

        self._metrics["scrape_duration_seconds"] = Histogram(
            "scrape_duration_seconds",
            "Duration of a full Sentry collection in seconds",
            namespace=SELF_NAMESPACE,
            registry=self.registry
        )

    def record_http_request(self, method: str, endpoint: str, status_code: int):
        """Record HTTP request metrics."""
        self._metrics["http_requests_total"].labels(
            method=method,
            endpoint=endpoint,
            status_code=str(status_code)
        ).inc()

    def record_upstream_request(self, operation: str, status: str, duration: float):
        """Record one Sentry API call.

        ``status`` is the HTTP status code as a string, or the error code when
        no response was received.
        """
        self._metrics["upstream_requests_total"].labels(operation=operation, status=status).inc()
        self._metrics["upstream_request_duration_seconds"].labels(operation=operation).observe(duration)

    def record_collection_error(self, family: str):
        """Record a failed family collection."""
        self._metrics["collection_errors_total"].labels(family=family).inc()

    @contextmanager
    def time_scrape(self):
        """Context manager to time a full collection."""
        start_time = time.time()
        try:
            yield
        finally:
            self._metrics["scrape_duration_seconds"].observe(time.time() - start_time)
