"""Classify inbound request paths into protocol format and logical endpoint.

Matchers run top to bottom and the first hit wins, so the specific native and
dual-format shapes must stay ahead of the loose ``/gemini/...`` and ``/v1/...``
fallbacks.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional


FORMAT_OPENAI = "openai"
FORMAT_GEMINI = "gemini"
FORMAT_GOOGLE_SDK = "google-sdk"
NATIVE_FORMATS = frozenset({FORMAT_GEMINI, FORMAT_GOOGLE_SDK})

ENDPOINT_CHAT = "chat/completions"
ENDPOINT_EMBEDDINGS = "embeddings"
ENDPOINT_MODELS = "models"
ENDPOINT_BATCH = "batch"
ENDPOINT_API_KEYS = "api-keys"
ENDPOINT_AUTH_TOKENS = "auth-tokens"
MANAGEMENT_ENDPOINTS = frozenset({ENDPOINT_API_KEYS, ENDPOINT_AUTH_TOKENS})

_DUAL_FORMATS = (FORMAT_OPENAI, FORMAT_GEMINI)
_LEGACY_SUFFIXES = (
    ENDPOINT_CHAT,
    ENDPOINT_EMBEDDINGS,
    ENDPOINT_MODELS,
    ENDPOINT_API_KEYS,
    ENDPOINT_AUTH_TOKENS,
)


@dataclass(frozen=True)
class RouteInfo:
    """Where a request goes: wire format, logical endpoint, and native call details."""

    format: Optional[str] = None
    endpoint: Optional[str] = None
    model: Optional[str] = None
    stream: Optional[bool] = None

    @property
    def matched(self) -> bool:
        return self.endpoint is not None


UNMATCHED = RouteInfo()

Matcher = Callable[[str, List[str], str], Optional[RouteInfo]]


def _generate_call(segment: str) -> Optional[RouteInfo]:
    """Parse ``{model}:generateContent`` / ``{model}:streamGenerateContent``."""
    if ":generateContent" not in segment and ":streamGenerateContent" not in segment:
        return None
    model = segment.split(":", 1)[0]
    return RouteInfo(
        format=FORMAT_GOOGLE_SDK,
        endpoint=ENDPOINT_CHAT,
        model=model,
        stream=":streamGenerateContent" in segment,
    )


def _native_model_list(path: str, parts: List[str], method: str) -> Optional[RouteInfo]:
    if parts == ["v1beta", "models"] and method.upper() == "GET":
        return RouteInfo(format=FORMAT_GOOGLE_SDK, endpoint=ENDPOINT_MODELS)
    return None


def _native_generate(path: str, parts: List[str], method: str) -> Optional[RouteInfo]:
    if len(parts) == 3 and parts[0] == "v1beta" and parts[1] == "models":
        return _generate_call(parts[2])
    return None


def _dual_format(path: str, parts: List[str], method: str) -> Optional[RouteInfo]:
    if len(parts) >= 3 and parts[0] == "v1" and parts[1] in _DUAL_FORMATS:
        return RouteInfo(format=parts[1], endpoint="/".join(parts[2:]))
    return None


def _legacy_suffix(path: str, parts: List[str], method: str) -> Optional[RouteInfo]:
    for endpoint in _LEGACY_SUFFIXES:
        if path.endswith("/" + endpoint):
            return RouteInfo(format=FORMAT_OPENAI, endpoint=endpoint)
    return None


def _batch(path: str, parts: List[str], method: str) -> Optional[RouteInfo]:
    if "/batch" not in path:
        return None
    fmt = FORMAT_GEMINI if "/v1/gemini/" in path else FORMAT_OPENAI
    return RouteInfo(format=fmt, endpoint=ENDPOINT_BATCH)


def _gemini_prefix(path: str, parts: List[str], method: str) -> Optional[RouteInfo]:
    if len(parts) >= 2 and parts[0] == "gemini":
        return RouteInfo(format=FORMAT_GEMINI, endpoint="/".join(parts[1:]))
    return None


def _v1_fallback(path: str, parts: List[str], method: str) -> Optional[RouteInfo]:
    if len(parts) >= 2 and parts[0] == "v1" and parts[1] not in _DUAL_FORMATS:
        return RouteInfo(format=FORMAT_GEMINI, endpoint="/".join(parts[1:]))
    return None


def _bare_model_call(path: str, parts: List[str], method: str) -> Optional[RouteInfo]:
    if len(parts) >= 2 and parts[0] == "models":
        return _generate_call(parts[1])
    return None


ROUTE_MATCHERS: List[Matcher] = [
    _native_model_list,
    _native_generate,
    _dual_format,
    _legacy_suffix,
    _batch,
    _gemini_prefix,
    _v1_fallback,
    _bare_model_call,
]


def classify(path: str, method: str = "GET") -> RouteInfo:
    """Map a request path (and method) to a :class:`RouteInfo`; never raises."""
    parts = [part for part in path.split("/") if part]
    for matcher in ROUTE_MATCHERS:
        route = matcher(path, parts, method)
        if route is not None:
            return route
    return UNMATCHED


def is_native_generate_path(path: str) -> bool:
    """True for ``/v1beta/models/{model}:generateContent`` and its streaming twin."""
    parts = [part for part in path.split("/") if part]
    return _native_generate(path, parts, "POST") is not None


__all__ = [
    "FORMAT_OPENAI",
    "FORMAT_GEMINI",
    "FORMAT_GOOGLE_SDK",
    "NATIVE_FORMATS",
    "ENDPOINT_CHAT",
    "ENDPOINT_EMBEDDINGS",
    "ENDPOINT_MODELS",
    "ENDPOINT_BATCH",
    "ENDPOINT_API_KEYS",
    "ENDPOINT_AUTH_TOKENS",
    "MANAGEMENT_ENDPOINTS",
    "RouteInfo",
    "UNMATCHED",
    "ROUTE_MATCHERS",
    "classify",
    "is_native_generate_path",
]
