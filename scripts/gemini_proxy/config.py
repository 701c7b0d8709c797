"""Runtime settings for the proxy, read once from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List

from .utils import split_csv


DEFAULT_UPSTREAM_BASE_URL = "https://generativelanguage.googleapis.com"
DEFAULT_API_VERSION = "v1beta"
DEFAULT_MODEL = "gemini-2.5-pro"
DEFAULT_EMBEDDINGS_MODEL = "text-embedding-004"

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _env_flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class ProxySettings:
    """Process-wide configuration for the proxy server."""

    host: str = "127.0.0.1"
    port: int = 8000
    api_keys: List[str] = field(default_factory=list)
    auth_tokens: List[str] = field(default_factory=list)
    upstream_base_url: str = DEFAULT_UPSTREAM_BASE_URL
    api_version: str = DEFAULT_API_VERSION
    request_timeout: float = 30.0
    default_model: str = DEFAULT_MODEL
    default_embeddings_model: str = DEFAULT_EMBEDDINGS_MODEL
    # Legacy clients call the native generateContent path without a bearer token.
    allow_unauthenticated_native: bool = False
    session_ttl: float = 24 * 60 * 60
    log_level: str = "INFO"

    @property
    def upstream_ws_base_url(self) -> str:
        base = self.upstream_base_url.rstrip("/")
        if base.startswith("https://"):
            return "wss://" + base[len("https://"):]
        if base.startswith("http://"):
            return "ws://" + base[len("http://"):]
        return base

    @classmethod
    def from_env(cls) -> "ProxySettings":
        return cls(
            host=os.getenv("HOST", "127.0.0.1"),
            port=int(os.getenv("PORT", "8000")),
            api_keys=split_csv(os.getenv("GEMINI_API_KEYS")),
            auth_tokens=split_csv(os.getenv("AUTH_TOKENS")),
            upstream_base_url=os.getenv("UPSTREAM_BASE_URL", DEFAULT_UPSTREAM_BASE_URL),
            api_version=os.getenv("UPSTREAM_API_VERSION", DEFAULT_API_VERSION),
            request_timeout=float(os.getenv("REQUEST_TIMEOUT", "30")),
            default_model=os.getenv("DEFAULT_MODEL", DEFAULT_MODEL),
            default_embeddings_model=os.getenv("DEFAULT_EMBEDDINGS_MODEL", DEFAULT_EMBEDDINGS_MODEL),
            allow_unauthenticated_native=_env_flag("ALLOW_UNAUTHENTICATED_NATIVE"),
            session_ttl=float(os.getenv("SESSION_TTL", str(24 * 60 * 60))),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )


__all__ = [
    "ProxySettings",
    "DEFAULT_UPSTREAM_BASE_URL",
    "DEFAULT_API_VERSION",
    "DEFAULT_MODEL",
    "DEFAULT_EMBEDDINGS_MODEL",
    "LOG_FORMAT",
    "LOG_DATE_FORMAT",
]
