"""Catch-all API handler: authenticate, classify, pick a key, dispatch."""

from __future__ import annotations

import json
import logging
import time
from typing import Any

from aiohttp import web

from ..access import authenticate, draw_api_key
from ..appkeys import IMAGE_FETCHER_KEY, SETTINGS_KEY
from ..errors import InvalidRequest, MethodNotAllowed, NotFound, ProxyError
from ..live import handle_live, is_websocket_upgrade
from ..providers import GeminiExecutor
from ..routing import (
    ENDPOINT_BATCH,
    ENDPOINT_CHAT,
    ENDPOINT_EMBEDDINGS,
    ENDPOINT_MODELS,
    MANAGEMENT_ENDPOINTS,
    RouteInfo,
    classify,
)
from .batch import run_batch
from .credentials import handle_credentials


log = logging.getLogger(__name__)

PREFLIGHT_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "*",
    "Access-Control-Allow-Headers": "*",
}

_METHOD_ERROR = "The specified HTTP method is not allowed for the requested resource"

_ENDPOINT_METHODS = {
    ENDPOINT_CHAT: "POST",
    ENDPOINT_EMBEDDINGS: "POST",
    ENDPOINT_MODELS: "GET",
    ENDPOINT_BATCH: "POST",
}


async def _read_json_body(request: web.Request) -> Any:
    try:
        return await request.json()
    except json.JSONDecodeError:
        raise InvalidRequest("Invalid JSON body")


async def _dispatch(request: web.Request) -> web.StreamResponse:
    route: RouteInfo = classify(request.path, request.method)
    grant = authenticate(request, route)
    if not route.matched:
        raise NotFound("404 Not Found")

    endpoint = route.endpoint
    if endpoint in MANAGEMENT_ENDPOINTS:
        return await handle_credentials(request, endpoint)
    expected_method = _ENDPOINT_METHODS.get(endpoint)
    if expected_method is None:
        raise NotFound("404 Not Found")
    # reject the verb before a key is drawn from the pool
    if request.method != expected_method:
        raise MethodNotAllowed(_METHOD_ERROR)

    executor = GeminiExecutor(
        request.app[SETTINGS_KEY],
        draw_api_key(request),
        route,
        request.app.get(IMAGE_FETCHER_KEY),
    )
    log.info(
        "Route: format=%s endpoint=%s model=%s via=%s",
        route.format,
        endpoint,
        route.model or "-",
        grant.via,
    )

    if endpoint == ENDPOINT_CHAT:
        return await executor.execute(request, await _read_json_body(request))
    if endpoint == ENDPOINT_EMBEDDINGS:
        return web.json_response(await executor.embed(await _read_json_body(request)))
    if endpoint == ENDPOINT_MODELS:
        return web.json_response(await executor.list_models())
    return web.json_response(await run_batch(executor, await _read_json_body(request)))


async def handle_api(request: web.Request) -> web.StreamResponse:
    if request.method == "OPTIONS":
        return web.Response(headers=PREFLIGHT_HEADERS)
    if is_websocket_upgrade(request):
        return await handle_live(request)

    started = time.monotonic()
    try:
        resp = await _dispatch(request)
    except ProxyError as exc:
        resp = web.Response(status=exc.status, text=exc.message)
    except web.HTTPException:
        raise
    except Exception:
        log.exception("Unhandled error for %s %s", request.method, request.path)
        resp = web.Response(status=500, text="Internal Server Error")

    log.info(
        "%s %s -> %s (%.0f ms)",
        request.method,
        request.path,
        resp.status,
        (time.monotonic() - started) * 1000,
    )
    return resp


__all__ = ["handle_api", "PREFLIGHT_HEADERS"]
