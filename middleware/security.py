"""HTTP middleware for MySQL InnoDB Cluster Exporter"""
import time
from typing import List, Optional
from fastapi import Request, Response
from fastapi.responses import PlainTextResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from logging_config import get_logger


logger = get_logger(__name__)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Middleware to add security headers to responses"""

    def __init__(self, app, trusted_hosts: Optional[List[str]] = None):
        super().__init__(app)
        self.trusted_hosts = [trusted.lower() for trusted in trusted_hosts or []]

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        """Reject untrusted hosts and add security headers to response"""
        if self.trusted_hosts and request.client:
            host = request.headers.get("host", "")
            hostname = (request.url.hostname or "").lower()
            if host and hostname not in self.trusted_hosts:
                logger.warning(
                    "Untrusted host access attempt",
                    host=host,
                    client_ip=request.client.host,
                    event_type="security_violation"
                )
                return PlainTextResponse("Forbidden: Untrusted host", status_code=403)

        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        if "server" in response.headers:
            del response.headers["server"]

        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware to log HTTP requests"""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        start_time = time.time()

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "HTTP request failed",
                method=request.method,
                path=request.url.path,
                error=str(e),
                process_time_seconds=round(time.time() - start_time, 3),
                client_ip=request.client.host if request.client else None,
                event_type="http_request_error",
                exc_info=True
            )
            raise

        process_time = time.time() - start_time
        logger.info(
            "HTTP request completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            process_time_seconds=round(process_time, 3),
            client_ip=request.client.host if request.client else None,
            event_type="http_request_complete"
        )
        response.headers["X-Process-Time"] = str(round(process_time, 3))

        return response
