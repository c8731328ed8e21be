"""CSRF token endpoint."""

from aiohttp import web

from dotdotdot.pipeline import BulletPipeline


async def handle_csrf_token(request: web.Request) -> web.Response:
    """GET /api/csrf-token: issue a fresh token. No auth required."""
    pipeline: BulletPipeline = request.app["pipeline"]
    return web.json_response(
        {"token": pipeline.issue_csrf_token()},
        headers={"Cache-Control": "no-store"},
    )
