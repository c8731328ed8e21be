"""Bullets endpoint: turns submitted text into bullet points."""

from __future__ import annotations

from aiohttp import web

from dotdotdot.api.middleware import client_identity
from dotdotdot.logging import get_logger
from dotdotdot.pipeline import BulletPipeline, BulletRequest, PipelineError

log = get_logger("dotdotdot.api.routes.bullets")


async def handle_bullets(request: web.Request) -> web.Response:
    """POST /api/bullets with body ``{"input": str, "csrfToken": str}``.

    All validation happens in :class:`BulletPipeline`; this handler only
    translates between HTTP and the pipeline.
    """
    pipeline: BulletPipeline = request.app["pipeline"]

    bullet_request = BulletRequest(
        identity=client_identity(request),
        body=await request.read(),
        content_type=request.headers.get("Content-Type"),
        origin=request.headers.get("Origin"),
        referer=request.headers.get("Referer"),
        csrf_header=request.headers.get("X-CSRF-Token"),
    )

    try:
        result = await pipeline.process(bullet_request)
    except PipelineError as e:
        return web.json_response({"error": e.message}, status=e.status, headers=e.headers)
    except Exception:
        log.exception("bullets_request_failed", identity=bullet_request.identity)
        return web.json_response({"error": "Internal server error"}, status=500)

    return web.json_response(result.to_dict())
