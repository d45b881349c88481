"""FastAPI server setup and routes"""
import time
from fastapi import FastAPI, Response
from fastapi.responses import HTMLResponse
from config import Config
from collectors.cluster import InnoDBClusterCollector
from metrics.registry import ALL_METRICS, MetricsRegistry, select_metrics
from logging_config import get_logger
from middleware.security import SecurityHeadersMiddleware, RequestLoggingMiddleware


logger = get_logger(__name__)

LANDING_PAGE = """<html>
<head><title>MySQL InnoDB Cluster Exporter</title></head>
<body>
<h1>MySQL InnoDB Cluster Exporter</h1>
<p><a href='{telemetry_path}'>Metrics</a></p>
</body>
</html>"""


def render_landing_page(telemetry_path: str) -> str:
    return LANDING_PAGE.format(telemetry_path=telemetry_path)


class MetricsServer:
    """FastAPI server exposing the cluster collector"""

    def __init__(self, config: Config, collector: InnoDBClusterCollector = None):
        self.config = config
        self.app = FastAPI(
            title="MySQL InnoDB Cluster Exporter",
            version=config.service_version,
            docs_url=None,  # Disable docs for security
            redoc_url=None,  # Disable redoc for security
            openapi_url=None  # Disable OpenAPI schema for security
        )
        self.collector = collector or InnoDBClusterCollector(config, select_metrics(config, ALL_METRICS))
        self.registry = MetricsRegistry(config, self.collector)
        self.landing_page = render_landing_page(config.web_telemetry_path)

        self._setup_middleware()
        self._setup_routes()
        self._setup_events()

    def _setup_middleware(self):
        """Setup HTTP middleware"""
        # Last added is executed first
        if self.config.enable_request_logging:
            self.app.add_middleware(RequestLoggingMiddleware)

        self.app.add_middleware(
            SecurityHeadersMiddleware,
            trusted_hosts=self.config.trusted_hosts
        )

    def _setup_routes(self):
        """Setup FastAPI routes"""

        # Sync handler: runs in the threadpool, so a blocking probe never stalls the event loop
        @self.app.get(self.config.web_telemetry_path, response_class=Response)
        def get_metrics():
            """Scrape the cluster and serve metrics in Prometheus format"""
            content, content_type = self.registry.render()
            return Response(content, media_type=content_type)

        @self.app.get('/health')
        def health_check():
            """Liveness information, never triggers a scrape"""
            collector = self.collector
            age = time.time() - collector.last_scrape_time if collector.last_scrape_time > 0 else None
            start_time = getattr(self.app.state, "start_time", None)
            return {
                "status": "ok",
                "uptime_seconds": round(time.time() - start_time, 1) if start_time else None,
                "total_scrapes": collector.scrape_count,
                "last_scrape_seconds_ago": round(age, 1) if age is not None else None,
                "last_scrape_success": collector.last_scrape_success if collector.scrape_count else None,
            }

        @self.app.get('/', response_class=HTMLResponse)
        def index():
            """Landing page"""
            return HTMLResponse(self.landing_page)

    def _setup_events(self):
        """Setup FastAPI startup/shutdown events"""

        @self.app.on_event("startup")
        async def startup_event():
            self.app.state.start_time = time.time()
            logger.info(
                "Listening",
                listen_address=self.config.web_listen_address,
                telemetry_path=self.config.web_telemetry_path,
                metrics=[descriptor.full_name for descriptor in self.collector.descriptors],
                event_type="server_listening"
            )

        @self.app.on_event("shutdown")
        async def shutdown_event():
            logger.info("Shutting down metrics exporter", event_type="server_shutdown")

    def get_app(self) -> FastAPI:
        """Get the FastAPI application"""
        return self.app
