# avaliacoes/middleware.py
"""Middlewares HTTP: log de requisições e headers de segurança."""
import logging
import time
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from avaliacoes.audit import get_client_ip
from avaliacoes.config import settings

logger = logging.getLogger("avaliacoes.http")

SKIP_LOGGING_PATHS = {"/api/health", "/favicon.ico"}

CONTENT_SECURITY_POLICY = (
    "default-src 'self'; "
    "style-src 'self' 'unsafe-inline'; "
    "script-src 'self' 'unsafe-inline'; "
    "img-src 'self' data: https:; "
    "connect-src 'self'; "
    "font-src 'self' data:; "
    "object-src 'none'; "
    "media-src 'self'; "
    "frame-src 'none'"
)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Loga método, caminho, status, duração e IP de cada requisição."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        path = request.url.path
        if path in SKIP_LOGGING_PATHS:
            return response

        status_code = response.status_code
        if status_code >= 500:
            level = logging.ERROR
        elif status_code >= 400:
            level = logging.WARNING
        else:
            level = logging.INFO

        logger.log(
            level,
            f"{request.method} {path} {status_code} {duration_ms:.0f}ms",
            extra={
                "event": "http.request",
                "method": request.method,
                "path": path,
                "status": status_code,
                "duration_ms": round(duration_ms, 2),
                "ip": get_client_ip(request),
            },
        )
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Headers equivalentes ao helmet: CSP, nosniff, frame deny etc."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        response.headers["Content-Security-Policy"] = CONTENT_SECURITY_POLICY
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Cross-Origin-Resource-Policy"] = "cross-origin"
        if settings.is_production:
            response.headers["Strict-Transport-Security"] = "max-age=15552000; includeSubDomains"

        return response
