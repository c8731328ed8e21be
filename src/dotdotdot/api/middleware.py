"""Middleware for the bullets API server.

Provides CORS for allowed origins, baseline security headers and a
per-request logging context.
"""

from __future__ import annotations

import uuid
from typing import Any

import structlog
from aiohttp import web

from dotdotdot.logging import get_logger

log = get_logger("dotdotdot.api.middleware")

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}


def create_cors_middleware(allowed_origins: list[str] | None = None) -> Any:
    """Create CORS middleware.

    Args:
        allowed_origins: List of allowed origins, or None for no CORS headers.
    """

    @web.middleware
    async def cors_middleware(request: web.Request, handler: Any) -> web.StreamResponse:
        # Handle preflight
        if request.method == "OPTIONS":
            response: web.StreamResponse = web.Response(status=204)
        else:
            response = await handler(request)

        if allowed_origins:
            origin = request.headers.get("Origin", "")
            if origin and (origin.rstrip("/") in allowed_origins or "*" in allowed_origins):
                response.headers["Access-Control-Allow-Origin"] = origin
                response.headers["Access-Control-Allow-Methods"] = "GET, POST, OPTIONS"
                response.headers["Access-Control-Allow-Headers"] = "Content-Type, X-CSRF-Token"
                response.headers["Access-Control-Max-Age"] = "86400"
                response.headers["Vary"] = "Origin"

        return response

    return cors_middleware


@web.middleware
async def security_headers_middleware(request: web.Request, handler: Any) -> web.StreamResponse:
    """Attach baseline security headers to every response."""
    try:
        response: web.StreamResponse = await handler(request)
    except web.HTTPException as exc:
        for name, value in SECURITY_HEADERS.items():
            exc.headers.setdefault(name, value)
        raise
    for name, value in SECURITY_HEADERS.items():
        response.headers.setdefault(name, value)
    return response


@web.middleware
async def request_context_middleware(request: web.Request, handler: Any) -> web.StreamResponse:
    """Bind a request id into the structlog context for the request's lifetime."""
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    structlog.contextvars.bind_contextvars(request_id=request_id, path=request.path)
    try:
        response: web.StreamResponse = await handler(request)
    finally:
        structlog.contextvars.unbind_contextvars("request_id", "path")
    response.headers["X-Request-ID"] = request_id
    return response


def client_identity(request: web.Request) -> str:
    """Caller identity: first ``X-Forwarded-For`` hop, else peer address."""
    forwarded = request.headers.get("X-Forwarded-For", "")
    first_hop = forwarded.split(",")[0].strip()
    if first_hop:
        return first_hop
    return request.remote or "unknown"
