"""Management session login and logout."""

from __future__ import annotations

import json
import logging

from aiohttp import web

from ..appkeys import CREDENTIALS_KEY, SESSIONS_KEY
from ..sessions import SESSION_COOKIE
from ..utils import mask_secret


log = logging.getLogger(__name__)


async def handle_verify(request: web.Request) -> web.Response:
    """Exchange a valid auth token for an HttpOnly session cookie."""
    try:
        body = await request.json()
    except json.JSONDecodeError:
        return web.json_response({"success": False, "message": "invalid JSON"}, status=400)

    token = body.get("token") if isinstance(body, dict) else None
    if not isinstance(token, str) or not token.strip():
        return web.json_response({"success": False, "message": "token is required"}, status=400)

    if not request.app[CREDENTIALS_KEY].is_valid_auth_token(token.strip()):
        log.info("Session login rejected for token=%s", mask_secret(token))
        return web.json_response({"success": False, "message": "Invalid auth token"}, status=401)

    sessions = request.app[SESSIONS_KEY]
    session_id = sessions.create(token.strip())
    resp = web.json_response({"success": True, "expires_in": sessions.ttl})
    resp.set_cookie(
        SESSION_COOKIE,
        session_id,
        path="/",
        max_age=sessions.ttl,
        httponly=True,
        samesite="Strict",
    )
    return resp


async def handle_logout(request: web.Request) -> web.Response:
    request.app[SESSIONS_KEY].delete(request.cookies.get(SESSION_COOKIE))
    resp = web.json_response({"success": True})
    resp.del_cookie(SESSION_COOKIE, path="/")
    return resp


__all__ = ["handle_verify", "handle_logout"]
