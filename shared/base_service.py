"""
Base service class for the Sentry exporter.
"""

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse, PlainTextResponse
from contextlib import asynccontextmanager
from typing import Optional
import time

from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from shared.config import ExporterSettings, get_settings
from shared.logging import configure_logging, get_logger
from shared.metrics import ServiceMetrics, create_registry
from shared.errors import ExporterException


class BaseService:
    """Base service class with common functionality."""

    version = "unknown"

    def __init__(self, service_name: str, settings: Optional[ExporterSettings] = None):
        self.service_name = service_name
        self.config = settings if settings is not None else get_settings()

        # Configure logging
        configure_logging(service_name, self.config.log_level)
        self.logger = get_logger(service_name)

        self.registry = create_registry()
        self.metrics = ServiceMetrics(service_name, registry=self.registry, version=self.version)

        # Create FastAPI app
        self.app = self._create_app()

        # Set up middleware
        self._setup_middleware()

        # Set up routes
        self._setup_routes()

    def _create_app(self) -> FastAPI:
        """Create FastAPI application."""
        return FastAPI(
            title=f"{self.service_name.replace('_', ' ').title()}",
            version=self.version,
            docs_url="/docs" if self.config.env == "local" else None,
            redoc_url=None,
            lifespan=self._lifespan,
        )

    @asynccontextmanager
    async def _lifespan(self, app: FastAPI):
        """Run service start/stop around the server's lifetime."""
        await self.start()
        try:
            yield
        finally:
            await self.stop()

    def _setup_middleware(self):
        """Set up middleware."""

        # Request accounting middleware
        @self.app.middleware("http")
        async def record_request(request: Request, call_next):
            start_time = time.time()

            response = await call_next(request)

            duration = time.time() - start_time
            self.metrics.record_http_request(
                method=request.method,
                endpoint=request.url.path,
                status_code=response.status_code
            )
            self.logger.debug(
                "HTTP request",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=round(duration * 1000, 2)
            )

            return response

    def _setup_routes(self):
        """Set up common routes."""

        @self.app.get("/healthz", response_class=PlainTextResponse)
        async def health_check():
            """Liveness endpoint."""
            return "ok"

        @self.app.get("/metrics")
        async def metrics_endpoint():
            """Prometheus metrics endpoint."""
            return Response(
                content=await self.render_metrics(),
                media_type=CONTENT_TYPE_LATEST
            )

        # Error handlers
        @self.app.exception_handler(ExporterException)
        async def exporter_exception_handler(request: Request, exc: ExporterException):
            """Handle ExporterException."""
            self.logger.error(
                "Exporter error",
                code=exc.code,
                message=exc.message,
                details=exc.details
            )
            return JSONResponse(
                status_code=502,
                content=exc.to_response().model_dump()
            )

        @self.app.exception_handler(Exception)
        async def general_exception_handler(request: Request, exc: Exception):
            """Handle general exceptions."""
            self.logger.error("Unhandled exception", error=str(exc), exc_info=exc)
            return JSONResponse(
                status_code=500,
                content={
                    "code": "INTERNAL_ERROR",
                    "message": "Internal server error",
                    "details": {}
                }
            )

    async def render_metrics(self) -> bytes:
        """Render the service's own metrics. Override to add more."""
        return generate_latest(self.registry)

    async def start(self):
        """Start service components. Override in subclasses."""

    async def stop(self):
        """Stop service components. Override in subclasses."""

    def run(self):
        """Run the service."""
        import uvicorn
        uvicorn.run(
            self.app,
            host=self.config.host,
            port=self.config.port,
            log_level=self.config.log_level.lower()
        )
