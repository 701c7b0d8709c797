"""Authentication helpers exposed for provider modules."""

from .strategies import (
    ApiKeyHeaderAuth,
    ApiKeyQueryAuth,
    AuthStrategy,
    extract_bearer_token,
    resolve_auth_strategy,
)

__all__ = [
    "ApiKeyHeaderAuth",
    "ApiKeyQueryAuth",
    "AuthStrategy",
    "extract_bearer_token",
    "resolve_auth_strategy",
]
