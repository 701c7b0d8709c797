"""Handlers for toggling verbose upstream logging."""

from __future__ import annotations

import json
from aiohttp import web

from .. import logging_control
from ..access import require_management_access
from ..errors import ProxyError


async def handle_get_logging(request: web.Request) -> web.Response:
    """Return the current logging state."""

    try:
        require_management_access(request)
    except ProxyError as exc:
        return web.Response(status=exc.status, text=exc.message)
    return web.json_response({"enabled": logging_control.is_enabled()})


async def handle_set_logging(request: web.Request) -> web.Response:
    """Update the logging toggle based on a JSON payload."""

    try:
        require_management_access(request)
    except ProxyError as exc:
        return web.Response(status=exc.status, text=exc.message)
    try:
        body = await request.json()
    except json.JSONDecodeError:
        return web.json_response({"error": "invalid JSON"}, status=400)
    if not isinstance(body, dict):
        return web.json_response({"error": "expected a JSON object"}, status=400)
    enabled = bool(body.get("enabled"))
    logging_control.set_enabled(enabled)
    return web.json_response({"enabled": logging_control.is_enabled()})


__all__ = ["handle_get_logging", "handle_set_logging"]
