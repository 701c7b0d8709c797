"""Logging setup and the runtime toggle for verbose request logging."""

from __future__ import annotations

import logging
import os
from typing import Final

from .config import LOG_DATE_FORMAT, LOG_FORMAT


_REQUEST_LOGGING_ENV: Final[str] = "GEMINI_PROXY_DEBUG"
_REQUEST_LOGGING_ENABLED: bool = os.getenv(_REQUEST_LOGGING_ENV, "0") == "1"

log = logging.getLogger("gemini_proxy")


def is_enabled() -> bool:
    """Return True when request logging is currently allowed."""

    return _REQUEST_LOGGING_ENABLED


def set_enabled(value: bool) -> None:
    """Enable or disable request logging at runtime."""

    global _REQUEST_LOGGING_ENABLED
    _REQUEST_LOGGING_ENABLED = bool(value)


def debug_log(message: str, *args) -> None:
    """Emit ``message`` only while verbose request logging is on."""
    if not _REQUEST_LOGGING_ENABLED:
        return
    log.info("[DEBUG] " + message, *args)


class WebSocketHandshakeFilter(logging.Filter):
    """Suppress EOFError handshake failures (harmless - port scanners/health checks)."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        if "opening handshake failed" in message:
            return False
        if "EOFError" in message and "handshake" in message.lower():
            return False
        return True


def setup_logging(level: str = "INFO") -> None:
    """Set up logging configuration."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
    )
    for name in ("websockets.client", "websockets.server"):
        logging.getLogger(name).addFilter(WebSocketHandshakeFilter())


__all__ = ["is_enabled", "set_enabled", "debug_log", "setup_logging", "WebSocketHandshakeFilter"]
