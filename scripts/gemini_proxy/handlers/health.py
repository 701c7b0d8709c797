"""Health endpoint handler."""

from __future__ import annotations

from aiohttp import web

from ..appkeys import CREDENTIALS_KEY


async def handle_health(request: web.Request) -> web.Response:
    store = request.app[CREDENTIALS_KEY]
    return web.json_response({
        "ok": True,
        "api_keys": len(store.list_api_keys()),
        "auth_tokens": len(store.list_auth_tokens()),
    })


__all__ = ["handle_health"]
