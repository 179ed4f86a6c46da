"""
Sentry exporter service.
"""

from typing import Optional

import httpx
from fastapi.concurrency import run_in_threadpool

from shared.base_service import BaseService
from shared.config import ExporterSettings, LabelMode

from . import __version__
from .sentry.client import SentryClient, SentryClientConfig
from .ingestion.directory import ProjectDirectory, resolve_project_directory
from .ingestion.collector import SentryMetricsCollector
from .exporters.prometheus import PrometheusExporter


class SentryExporterService(BaseService):
    """Sentry exporter service implementation."""

    version = __version__

    def __init__(
        self,
        settings: Optional[ExporterSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__("sentry_exporter", settings)

        # Initialize components
        self.client = SentryClient(
            SentryClientConfig.from_settings(self.config),
            metrics=self.metrics,
            transport=transport
        )
        self.collector = SentryMetricsCollector(
            self.client,
            label_mode=self.config.label_mode,
            metrics=self.metrics
        )
        self.exporter = PrometheusExporter(
            label_mode=self.config.label_mode,
            registry=self.registry
        )

        self._setup_exporter_routes()

    def _setup_exporter_routes(self):
        """Set up exporter-specific routes."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": self.service_name,
                "version": self.version,
                "organization": self.client.organization_slug,
                "label_mode": self.config.label_mode.value,
                "projects": len(self.collector.directory),
                "endpoints": ["/metrics", "/healthz"]
            }

    async def render_metrics(self) -> bytes:
        """Collect from Sentry and render the full scrape."""
        samples = await self.collector.collect()
        return await run_in_threadpool(self.exporter.export_samples, samples)

    async def start(self):
        """Resolve the project directory before serving scrapes.

        In ``with_slug`` mode a failure here aborts startup.
        """
        if self.config.label_mode == LabelMode.WITH_SLUG:
            try:
                directory = await resolve_project_directory(self.client)
            except Exception as e:
                self.logger.error("Failed to resolve project directory", error=str(e))
                raise
            self.collector.directory = directory
        else:
            self.collector.directory = ProjectDirectory()

        self.logger.info(
            "Sentry exporter started",
            organization=self.client.organization_slug,
            label_mode=self.config.label_mode.value,
            projects=len(self.collector.directory)
        )

    async def stop(self):
        """Stop the exporter."""
        self.logger.info("Sentry exporter stopped")


def create_app(settings: Optional[ExporterSettings] = None):
    """Create Sentry exporter application."""
    service = SentryExporterService(settings)
    return service.app


def main():
    """Console entry point."""
    service = SentryExporterService()
    service.logger.info("Listening on address", host=service.config.host, port=service.config.port)
    service.run()


if __name__ == "__main__":
    main()
