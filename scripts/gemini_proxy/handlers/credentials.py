"""Operator endpoints for the upstream key pool and the client token list."""

from __future__ import annotations

import json
import logging
from typing import Callable, List, Optional

from aiohttp import web

from ..appkeys import CREDENTIALS_KEY
from ..errors import InvalidRequest, MethodNotAllowed, NotFound
from ..routing import ENDPOINT_API_KEYS
from ..utils import mask_secret


log = logging.getLogger(__name__)


async def _read_credential(request: web.Request, field: str) -> str:
    """Accept either a raw text body or a JSON object carrying ``field``."""
    text = (await request.text()).strip()
    if text.startswith("{"):
        try:
            body = json.loads(text)
        except json.JSONDecodeError:
            raise InvalidRequest("Invalid JSON body")
        value = body.get(field) if isinstance(body, dict) else None
        return value.strip() if isinstance(value, str) else ""
    return text


async def handle_credentials(request: web.Request, endpoint: str) -> web.Response:
    store = request.app[CREDENTIALS_KEY]
    if endpoint == ENDPOINT_API_KEYS:
        label, field = "API Key", "key"
        listing: Callable[[], List[str]] = store.list_api_keys
        add: Callable[[str], None] = store.add_api_key
        remove: Callable[[str], None] = store.remove_api_key
    else:
        label, field = "Auth Token", "token"
        listing, add, remove = store.list_auth_tokens, store.add_auth_token, store.remove_auth_token

    if request.method == "GET":
        return web.json_response([{"id": mask_secret(value)} for value in listing()])

    if request.method not in ("POST", "DELETE"):
        raise MethodNotAllowed("Method not allowed", status=405)

    value: Optional[str] = await _read_credential(request, field)
    if not value:
        raise InvalidRequest(f"{label} cannot be empty")

    if request.method == "POST":
        add(value)
        log.info("%s added via management API: %s", label, mask_secret(value))
        return web.Response(status=201, text=f"{label} added")

    if value not in listing():
        raise NotFound(f"{label} not found")
    remove(value)
    log.info("%s removed via management API: %s", label, mask_secret(value))
    return web.Response(text=f"{label} removed")


__all__ = ["handle_credentials"]
