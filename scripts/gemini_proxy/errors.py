"""Error taxonomy and upstream error normalization."""

from __future__ import annotations

import json
from typing import Any, Dict, Optional


class ProxyError(Exception):
    """An error that renders to the client as ``status`` plus a plain-text message."""

    status: int = 500

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        if status is not None:
            self.status = status

    def payload(self) -> Dict[str, Any]:
        return {"error": {"message": self.message}}


class AuthenticationError(ProxyError):
    status = 401


class MethodNotAllowed(ProxyError):
    status = 400


class InvalidRequest(ProxyError):
    status = 400


class UnsupportedFormat(ProxyError):
    status = 400


class TypeMismatch(ProxyError):
    status = 400


class InvalidImageData(ProxyError):
    status = 400


class ImageFetchError(ProxyError):
    status = 400


class NotFound(ProxyError):
    status = 404


class UpstreamTimeout(ProxyError):
    status = 408


class NetworkError(ProxyError):
    status = 500


class NoCredentialAvailable(ProxyError):
    status = 500


class UpstreamError(ProxyError):
    """Non-2xx answer from the upstream API; ``status`` mirrors the upstream status."""

    def __init__(self, status: int, text: str) -> None:
        super().__init__(f"Gemini API Error: {status} - {text}", status)
        self.upstream_text = text


def extract_error_message(text: str) -> str:
    """Return the ``error.message`` of a Gemini error body, or the raw text."""
    if not text or not text.lstrip().startswith("{"):
        return text
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        return text
    if isinstance(parsed, dict):
        err = parsed.get("error")
        if isinstance(err, dict) and isinstance(err.get("message"), str):
            return err["message"]
    return text


__all__ = [
    "ProxyError",
    "AuthenticationError",
    "MethodNotAllowed",
    "InvalidRequest",
    "UnsupportedFormat",
    "TypeMismatch",
    "InvalidImageData",
    "ImageFetchError",
    "NotFound",
    "UpstreamTimeout",
    "NetworkError",
    "NoCredentialAvailable",
    "UpstreamError",
    "extract_error_message",
]
