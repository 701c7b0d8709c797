"""Typed keys for state shared through the aiohttp application."""

from __future__ import annotations

from aiohttp import web

from .config import ProxySettings
from .credentials import CredentialStore
from .sessions import SessionStore


SETTINGS_KEY = web.AppKey("settings", ProxySettings)
CREDENTIALS_KEY = web.AppKey("credentials", CredentialStore)
SESSIONS_KEY = web.AppKey("sessions", SessionStore)
IMAGE_FETCHER_KEY = web.AppKey("image_fetcher", object)


__all__ = ["SETTINGS_KEY", "CREDENTIALS_KEY", "SESSIONS_KEY", "IMAGE_FETCHER_KEY"]
