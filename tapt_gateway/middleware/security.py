"""
CORS and Security Header Middleware for Gateway

Every response (including errors and preflights) carries:
- X-Content-Type-Options: nosniff
- X-Frame-Options: DENY
- Content-Security-Policy: default-src 'none'

CORS:
- Access-Control-Allow-Origin echoes the request Origin only when it is in
  ALLOWED_ORIGINS; unknown origins get no allow-origin header at all
- Preflight (OPTIONS) is answered here with 204 and never reaches a router
"""

import logging
from typing import Iterable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

logger = logging.getLogger(__name__)

ALLOWED_METHODS = "GET, POST, PATCH, DELETE, OPTIONS"
ALLOWED_HEADERS = "Content-Type, Authorization"

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Content-Security-Policy": "default-src 'none'",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Allow-list CORS plus fixed security headers.

    Args:
        allowed_origins: Exact origins allowed to call the gateway from a browser

    Example:
        from tapt_gateway.middleware.security import SecurityHeadersMiddleware
        app.add_middleware(SecurityHeadersMiddleware, allowed_origins=config.ALLOWED_ORIGINS)
    """

    def __init__(self, app, allowed_origins: Iterable[str] = ()):
        super().__init__(app)
        self.allowed_origins = set(allowed_origins)

    def _cors_headers(self, origin: str) -> dict:
        headers = {
            "Access-Control-Allow-Methods": ALLOWED_METHODS,
            "Access-Control-Allow-Headers": ALLOWED_HEADERS,
            "Vary": "Origin",
        }
        if origin and origin in self.allowed_origins:
            headers["Access-Control-Allow-Origin"] = origin
        return headers

    async def dispatch(self, request: Request, call_next):
        origin = request.headers.get("origin", "")
        headers = {**self._cors_headers(origin), **SECURITY_HEADERS}

        if request.method == "OPTIONS":
            if origin and origin not in self.allowed_origins:
                logger.info(f"🔒 Preflight from disallowed origin: {origin}")
            return Response(status_code=204, headers=headers)

        response = await call_next(request)
        for name, value in headers.items():
            response.headers[name] = value
        return response
