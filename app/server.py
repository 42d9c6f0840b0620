"""FastAPI server setup and routes"""
import asyncio
import time
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI, Response
from fastapi.responses import HTMLResponse, PlainTextResponse
from config import Config
from metrics.registry import MetricsRegistry
from metrics.exporters.prometheus import PrometheusExporter
from logging_config import get_logger, log_metrics_collection, log_error
from middleware.security import SecurityHeadersMiddleware, RequestLoggingMiddleware
from utils.http_client import TypesenseClient


logger = get_logger(__name__)


class MetricsServer:
    """FastAPI server exposing Typesense metrics on every scrape"""

    def __init__(self, config: Config, registry: Optional[MetricsRegistry] = None):
        self.config = config
        self.app = FastAPI(
            title="Typesense Exporter",
            version=config.service_version,
            docs_url=None,
            redoc_url=None,
            openapi_url=None,
            lifespan=self._lifespan
        )

        if registry is None:
            client = TypesenseClient(
                config.typesense_url,
                config.typesense_api_key,
                timeout=config.typesense_timeout,
            )
            registry = MetricsRegistry(config, client)
        self.registry = registry
        self.exporter = PrometheusExporter()

        # Collection state
        self.collection_count = 0
        self.last_collection_time = 0.0
        self.last_collection_duration = 0.0

        self._setup_middleware()
        self._setup_routes()

    def _setup_middleware(self):
        """Setup middleware (last added is executed first)"""
        if self.config.enable_request_logging:
            self.app.add_middleware(RequestLoggingMiddleware)

        self.app.add_middleware(SecurityHeadersMiddleware)

    def _setup_routes(self):
        """Setup FastAPI routes"""

        @self.app.get(self.config.telemetry_path, response_class=Response)
        async def get_metrics():
            """Collect from Typesense and serve metrics in Prometheus format"""
            # Shielded so a disconnecting client cannot cut a collection short
            metrics = await asyncio.shield(self._collect_metrics())
            content = self.exporter.export_metrics(metrics)
            return Response(content, media_type=self.exporter.content_type)

        @self.app.get('/healthz', response_class=PlainTextResponse)
        def healthz():
            """Liveness probe; does not touch Typesense"""
            return "OK"

        @self.app.get('/collectors')
        def list_collectors():
            """List registered collectors and their scrape counters"""
            return {
                "collectors": self.registry.get_collector_status(),
                "collection": {
                    "total_collections": self.collection_count,
                    "last_collection_duration_seconds": round(self.last_collection_duration, 3),
                },
            }

        @self.app.get('/', response_class=HTMLResponse)
        def index():
            """Web interface"""
            return self._generate_html_interface()

    @asynccontextmanager
    async def _lifespan(self, app: FastAPI):
        """Log startup and release the Typesense client on shutdown"""
        logger.info(
            "Application startup",
            service_name=self.config.service_name,
            service_version=self.config.service_version,
            collectors=self.registry.list_collectors(),
            event_type="server_startup"
        )
        yield
        logger.info("Shutting down typesense exporter", event_type="server_shutdown")
        try:
            await self.registry.cleanup()
        except Exception as e:
            log_error(logger, e, {"component": "shutdown"})

    async def _collect_metrics(self):
        """Run one collection across all collectors"""
        start_time = time.time()
        self.collection_count += 1

        metrics, errors = await self.registry.collect_with_errors()
        metrics.append(self.registry.build_info())

        self.last_collection_time = time.time()
        self.last_collection_duration = self.last_collection_time - start_time
        log_metrics_collection(logger, len(metrics), self.last_collection_duration, errors=errors)
        return metrics

    def _generate_html_interface(self) -> str:
        """Generate HTML landing page"""
        path = self.config.telemetry_path
        return f"""<html>
<head><title>Typesense Exporter</title></head>
<body>
<h1>Typesense Exporter</h1>
<p><a href="{path}">Metrics</a></p>
<p><a href="/collectors">Collectors</a></p>
</body>
</html>
"""

    def get_app(self) -> FastAPI:
        """Get the FastAPI application"""
        return self.app
