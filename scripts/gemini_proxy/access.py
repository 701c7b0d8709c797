"""Admission checks for proxied and management requests."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from aiohttp import web

from .appkeys import CREDENTIALS_KEY, SESSIONS_KEY, SETTINGS_KEY
from .auth import extract_bearer_token
from .errors import AuthenticationError, NoCredentialAvailable
from .routing import MANAGEMENT_ENDPOINTS, RouteInfo, is_native_generate_path
from .sessions import SESSION_COOKIE
from .utils import mask_secret


log = logging.getLogger(__name__)


@dataclass
class Grant:
    """How a request was admitted."""

    via: str  # "token", "session" or "native-shim"


def _has_session(request: web.Request) -> bool:
    return request.app[SESSIONS_KEY].is_valid(request.cookies.get(SESSION_COOKIE))


def authenticate(request: web.Request, route: RouteInfo) -> Grant:
    """Admit a request by bearer token, management session, or the native-path shim."""
    store = request.app[CREDENTIALS_KEY]
    token = extract_bearer_token(request.headers.get("Authorization"))

    if token:
        if not store.is_valid_auth_token(token):
            log.info("Auth failed: invalid token=%s", mask_secret(token))
            raise AuthenticationError("Invalid authentication token")
        return Grant(via="token")

    if route.endpoint in MANAGEMENT_ENDPOINTS and _has_session(request):
        return Grant(via="session")

    settings = request.app[SETTINGS_KEY]
    if settings.allow_unauthenticated_native and is_native_generate_path(request.path):
        log.warning("Admitting token-less native call %s via compatibility shim", request.path)
        return Grant(via="native-shim")

    log.info("Auth failed: missing Authorization header for %s", request.path)
    raise AuthenticationError("Authentication required")


def require_management_access(request: web.Request) -> Grant:
    """Admit operator endpoints by bearer token or management session."""
    token = extract_bearer_token(request.headers.get("Authorization"))
    if token:
        if request.app[CREDENTIALS_KEY].is_valid_auth_token(token):
            return Grant(via="token")
        raise AuthenticationError("Invalid authentication token")
    if _has_session(request):
        return Grant(via="session")
    raise AuthenticationError("Authentication required")


def draw_api_key(request: web.Request) -> str:
    api_key = request.app[CREDENTIALS_KEY].next_api_key()
    if not api_key:
        log.error("No API key available from pool")
        raise NoCredentialAvailable("No API Key available")
    log.info("Using API key: %s", mask_secret(api_key))
    return api_key


__all__ = ["Grant", "authenticate", "require_management_access", "draw_api_key"]
