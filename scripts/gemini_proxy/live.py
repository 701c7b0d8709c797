"""WebSocket relay for the multimodal-live upstream endpoint."""

from __future__ import annotations

import asyncio
import logging
from urllib.parse import urlencode

import websockets
from aiohttp import WSMsgType, web
from websockets.exceptions import ConnectionClosed, WebSocketException

from .access import require_management_access
from .appkeys import CREDENTIALS_KEY, SETTINGS_KEY
from .auth import resolve_auth_strategy
from .errors import ProxyError
from .utils import mask_secret


log = logging.getLogger(__name__)


def is_websocket_upgrade(request: web.Request) -> bool:
    return request.headers.get("Upgrade", "").lower() == "websocket"


def _select_key(request: web.Request) -> str:
    api_key = request.query.get("key")
    if api_key:
        return api_key
    # pooled keys are only handed to admitted callers
    require_management_access(request)
    api_key = request.app[CREDENTIALS_KEY].next_api_key()
    if not api_key:
        raise ProxyError("No API Key available", status=401)
    return api_key


async def _client_to_upstream(client: web.WebSocketResponse, upstream) -> None:
    async for msg in client:
        if msg.type == WSMsgType.TEXT:
            await upstream.send(msg.data)
        elif msg.type == WSMsgType.BINARY:
            await upstream.send(msg.data)
        elif msg.type == WSMsgType.ERROR:
            log.error("Client WebSocket error: %s", client.exception())
            break
    await upstream.close()


async def _upstream_to_client(upstream, client: web.WebSocketResponse) -> None:
    try:
        async for message in upstream:
            if isinstance(message, bytes):
                await client.send_bytes(message)
            else:
                await client.send_str(message)
    except ConnectionClosed as exc:
        log.info("Upstream WebSocket closed: %s", exc)
    code = upstream.close_code or 1000
    reason = upstream.close_reason or ""
    await client.close(code=code, message=reason.encode("utf-8"))


async def handle_live(request: web.Request) -> web.StreamResponse:
    """Relay frames between the client socket and the upstream live API."""
    try:
        api_key = _select_key(request)
    except ProxyError as exc:
        return web.Response(status=exc.status, text=exc.message)

    settings = request.app[SETTINGS_KEY]
    query = urlencode(resolve_auth_strategy(api_key, transport="websocket").query_params())
    target = f"{settings.upstream_ws_base_url}{request.path}?{query}"

    client = web.WebSocketResponse()
    await client.prepare(request)
    log.info("Live relay: %s key=%s", request.path, mask_secret(api_key))

    # frames the client sends while we connect stay buffered in the client reader
    try:
        upstream = await websockets.connect(target, max_size=None)
    except (WebSocketException, OSError) as exc:
        log.error("Live upstream connection failed: %s", exc)
        await client.close(code=1011, message=b"upstream unavailable")
        return client

    tasks = [
        asyncio.ensure_future(_client_to_upstream(client, upstream)),
        asyncio.ensure_future(_upstream_to_client(upstream, client)),
    ]
    try:
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in done:
            if not task.cancelled() and task.exception() is not None:
                log.warning("Live relay ended with error: %s", task.exception())
    finally:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        await upstream.close()
        if not client.closed:
            await client.close()
    log.info("Live relay closed: %s", request.path)
    return client


__all__ = ["handle_live", "is_websocket_upgrade"]
