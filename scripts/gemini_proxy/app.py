"""Application bootstrap helpers."""

from __future__ import annotations

from typing import Optional

from aiohttp import web

from .appkeys import CREDENTIALS_KEY, IMAGE_FETCHER_KEY, SESSIONS_KEY, SETTINGS_KEY
from .config import ProxySettings
from .credentials import CredentialStore
from .handlers import (
    handle_api,
    handle_get_logging,
    handle_health,
    handle_logout,
    handle_set_logging,
    handle_verify,
)
from .sessions import SessionStore
from .translators.images import ImageFetcher


async def _add_cors_headers(request: web.Request, response: web.StreamResponse) -> None:
    # runs for streamed responses too, before their headers go out
    response.headers.setdefault("Access-Control-Allow-Origin", "*")


def make_app(
    settings: Optional[ProxySettings] = None,
    store: Optional[CredentialStore] = None,
    sessions: Optional[SessionStore] = None,
    fetch_image: Optional[ImageFetcher] = None,
) -> web.Application:
    settings = settings or ProxySettings()
    app = web.Application()
    app[SETTINGS_KEY] = settings
    app[CREDENTIALS_KEY] = store if store is not None else CredentialStore(settings.api_keys, settings.auth_tokens)
    app[SESSIONS_KEY] = sessions if sessions is not None else SessionStore(ttl=settings.session_ttl)
    if fetch_image is not None:
        app[IMAGE_FETCHER_KEY] = fetch_image
    app.on_response_prepare.append(_add_cors_headers)

    app.router.add_get("/health", handle_health)
    app.router.add_post("/auth/verify", handle_verify)
    app.router.add_post("/auth/logout", handle_logout)
    app.router.add_get("/logging", handle_get_logging)
    app.router.add_post("/logging", handle_set_logging)
    # everything else is classified by path inside the catch-all
    app.router.add_route("*", "/{tail:.*}", handle_api)
    return app


async def start_proxy(settings: ProxySettings, store: Optional[CredentialStore] = None) -> web.AppRunner:
    app = make_app(settings, store)
    # Disable default access logger to avoid redundant Apache-style logs
    runner = web.AppRunner(app, access_log=None)
    await runner.setup()
    site = web.TCPSite(runner, settings.host, settings.port)
    await site.start()
    return runner


__all__ = ["make_app", "start_proxy"]
