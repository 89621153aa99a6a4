"""Security middleware: response hardening headers and HTTPS redirect."""

from typing import Callable

from fastapi import Request, Response
from fastapi.responses import RedirectResponse
from starlette.middleware.base import BaseHTTPMiddleware

from factucr.config import settings


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to every response."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        if settings.environment == "production":
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains"
            )

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Permissions-Policy"] = (
            "geolocation=(), microphone=(), camera=(), payment=()"
        )

        # JSON/XML API only; docs pages are served outside production
        if settings.environment == "production":
            response.headers["Content-Security-Policy"] = (
                "default-src 'none'; frame-ancestors 'none'; base-uri 'none'"
            )

        return response


class HTTPSRedirectMiddleware(BaseHTTPMiddleware):
    """Redirect HTTP requests to HTTPS (production only)."""

    def __init__(self, app, force_https: bool = False):
        super().__init__(app)
        self.force_https = force_https or settings.environment == "production"

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if self.force_https and request.url.scheme == "http":
            return RedirectResponse(
                url=str(request.url.replace(scheme="https")),
                status_code=301,
            )
        return await call_next(request)
