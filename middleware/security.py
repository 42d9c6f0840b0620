"""HTTP middleware for the exporter"""
import time
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from logging_config import get_logger


logger = get_logger(__name__)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Middleware to add security headers to responses"""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        """Add security headers to response"""
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Content-Security-Policy"] = (
            "default-src 'self'; "
            "style-src 'self' 'unsafe-inline'; "
            "object-src 'none'; "
            "base-uri 'self'"
        )

        # Remove server version information
        if "server" in response.headers:
            del response.headers["server"]

        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware to log HTTP requests"""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        """Log HTTP requests"""
        start_time = time.time()
        client_ip = request.client.host if request.client else None

        try:
            response = await call_next(request)
        except Exception as e:
            process_time = time.time() - start_time
            logger.error(
                "HTTP request failed",
                method=request.method,
                path=request.url.path,
                error=str(e),
                process_time_seconds=round(process_time, 3),
                client_ip=client_ip,
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
            client_ip=client_ip,
            user_agent=request.headers.get("user-agent"),
            event_type="http_request_complete"
        )

        response.headers["X-Process-Time"] = str(round(process_time, 3))
        return response
