"""Health check endpoint."""

from aiohttp import web

from dotdotdot import __version__


async def handle_health(request: web.Request) -> web.Response:
    """GET /api/health: reports store reachability."""
    store = request.app.get("store")
    store_ok = await store.is_healthy() if store is not None else False
    return web.json_response(
        {
            "status": "healthy" if store_ok else "degraded",
            "version": __version__,
            "store": store_ok,
        }
    )
