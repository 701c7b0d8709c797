"""HTTP handlers for the proxy application."""

from .dispatch import handle_api
from .health import handle_health
from .logging import handle_get_logging, handle_set_logging
from .session import handle_logout, handle_verify

__all__ = [
    "handle_api",
    "handle_health",
    "handle_get_logging",
    "handle_set_logging",
    "handle_logout",
    "handle_verify",
]
