"""Security Headers Middleware

Adds security headers to HTTP responses of the JSON API.

The storefront is a separate browser application, so these mostly matter
when the API is reachable directly from browsers. Disabled by default,
enabled per deployment through SECURITY_HEADERS_ENABLED / CSP_ENABLED /
HSTS_ENABLED.
"""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
import config


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Middleware that adds security headers to all HTTP responses."""

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)

        if not config.SECURITY_HEADERS_ENABLED:
            return response

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        # API responses are never useful to cache in shared caches
        response.headers["Cache-Control"] = "no-store"

        # Only meaningful behind HTTPS
        if config.HSTS_ENABLED:
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains"
            )

        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Permissions-Policy"] = (
            "geolocation=(), microphone=(), camera=(), usb=()"
        )

        return response


class CSPMiddleware(BaseHTTPMiddleware):
    """Middleware that adds Content Security Policy headers."""

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)

        if not config.CSP_ENABLED:
            return response

        # JSON only: nothing may be loaded, framed or submitted
        csp_directives = [
            "default-src 'none'",
            "frame-ancestors 'none'",
            "base-uri 'none'",
            "form-action 'none'",
        ]

        response.headers["Content-Security-Policy"] = "; ".join(csp_directives)

        return response
