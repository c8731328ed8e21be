"""HTTP server for the bullets API."""

from __future__ import annotations

import asyncio
from typing import Any

from aiohttp import web

from dotdotdot.api.middleware import (
    create_cors_middleware,
    request_context_middleware,
    security_headers_middleware,
)
from dotdotdot.api.routes.bullets import handle_bullets
from dotdotdot.api.routes.csrf import handle_csrf_token
from dotdotdot.api.routes.health import handle_health
from dotdotdot.logging import get_logger
from dotdotdot.pipeline import BulletPipeline
from dotdotdot.store.base import KeyValueStore

log = get_logger("dotdotdot.api.server")

API_PREFIX = "/api"


class BulletsAPIServer:
    """Serves the bullets, CSRF token and health endpoints."""

    def __init__(
        self,
        pipeline: BulletPipeline,
        store: KeyValueStore,
        *,
        host: str = "0.0.0.0",  # nosec B104 - Intentional for Docker container
        port: int = 8080,
        allowed_origins: list[str] | None = None,
        summarizer: Any = None,
    ) -> None:
        self._pipeline = pipeline
        self._store = store
        self._host = host
        self._port = port
        self._allowed_origins = allowed_origins
        self._summarizer = summarizer
        self._app: web.Application | None = None
        self._runner: web.AppRunner | None = None

        log.info("bullets_api_initialized", host=host, port=port)

    def create_app(self) -> web.Application:
        """Create and configure the aiohttp application."""
        middlewares: list[Any] = [request_context_middleware, security_headers_middleware]

        # CORS (innermost, so preflights still get security headers)
        if self._allowed_origins:
            middlewares.append(create_cors_middleware(self._allowed_origins))

        app = web.Application(middlewares=middlewares)
        app["pipeline"] = self._pipeline
        app["store"] = self._store

        app.router.add_get(f"{API_PREFIX}/health", handle_health)
        app.router.add_get(f"{API_PREFIX}/csrf-token", handle_csrf_token)
        app.router.add_post(f"{API_PREFIX}/bullets", handle_bullets)

        app.on_cleanup.append(self._on_cleanup)

        self._app = app
        return app

    async def _on_cleanup(self, app: web.Application) -> None:
        close = getattr(self._summarizer, "close", None)
        if close is not None:
            await close()
        await self._store.close()

    async def start(self) -> None:
        """Start the server."""
        if self._app is None:
            self.create_app()

        if self._app is None:  # pragma: no cover
            raise RuntimeError("create_app() must be called first")

        self._runner = web.AppRunner(self._app)
        await self._runner.setup()

        site = web.TCPSite(self._runner, self._host, self._port)
        await site.start()

        log.info("bullets_api_started", host=self._host, port=self._port)

    async def stop(self) -> None:
        """Stop the server."""
        if self._runner:
            await self._runner.cleanup()
            self._runner = None
            log.info("bullets_api_stopped")


async def run_server(server: BulletsAPIServer) -> None:
    """Run ``server`` until cancelled."""
    await server.start()

    try:
        while True:
            await asyncio.sleep(3600)
    except asyncio.CancelledError:
        pass
    finally:
        await server.stop()
