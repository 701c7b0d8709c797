"""Authentication strategies for upstream calls and client token extraction."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional


API_CLIENT = "gemini-proxy/0.1.0"


@dataclass
class AuthStrategy:
    """Base strategy that returns headers and optional query params."""

    token: Optional[str] = None

    def headers(self) -> Dict[str, str]:
        return {}

    def query_params(self) -> Dict[str, str]:
        return {}


@dataclass
class ApiKeyHeaderAuth(AuthStrategy):
    """Attach the upstream key as ``x-goog-api-key`` plus a client identifier."""

    header_name: str = "x-goog-api-key"
    client_header: str = "x-goog-api-client"

    def headers(self) -> Dict[str, str]:
        headers = {self.client_header: API_CLIENT}
        if self.token:
            headers[self.header_name] = self.token
        return headers


@dataclass
class ApiKeyQueryAuth(AuthStrategy):
    """Pass the upstream key as a ``key`` query parameter (WebSocket upgrades)."""

    param_name: str = "key"

    def query_params(self) -> Dict[str, str]:
        if not self.token:
            return {}
        return {self.param_name: self.token}


def resolve_auth_strategy(api_key: Optional[str], transport: str = "http") -> AuthStrategy:
    """Return the strategy used to present ``api_key`` over ``transport``."""
    if transport == "websocket":
        return ApiKeyQueryAuth(token=api_key)
    return ApiKeyHeaderAuth(token=api_key)


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Return the credential from an ``Authorization: Bearer <token>`` header."""
    parts = (authorization or "").strip().split(None, 1)
    if len(parts) == 2 and parts[0].lower() == "bearer":
        return parts[1].strip() or None
    return None


__all__ = [
    "API_CLIENT",
    "AuthStrategy",
    "ApiKeyHeaderAuth",
    "ApiKeyQueryAuth",
    "resolve_auth_strategy",
    "extract_bearer_token",
]
