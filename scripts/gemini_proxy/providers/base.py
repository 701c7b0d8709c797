"""Provider executor base classes."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, Optional

from aiohttp import ClientError, ClientResponse, ClientSession, ClientTimeout

from .. import logging_control
from ..auth import resolve_auth_strategy
from ..config import ProxySettings
from ..errors import NetworkError, UpstreamError, UpstreamTimeout, extract_error_message
from ..utils import mask_secret


log = logging.getLogger(__name__)


class ProviderExecutor:
    """Common base for executors that call the upstream API with one pooled key."""

    def __init__(self, settings: ProxySettings, api_key: Optional[str]) -> None:
        self.settings = settings
        self.api_key = api_key
        self.timeout = settings.request_timeout

    def _upstream_url(self, path: str) -> str:
        base = self.settings.upstream_base_url.rstrip("/")
        return f"{base}/{self.settings.api_version}/{path.lstrip('/')}"

    def _build_headers(self, json_body: bool = True) -> Dict[str, str]:
        headers = resolve_auth_strategy(self.api_key).headers()
        if json_body:
            headers["Content-Type"] = "application/json"
        return headers

    def _log_upstream(self, method: str, url: str, headers: Dict[str, str], payload: Any = None) -> None:
        if not logging_control.is_enabled():
            return
        masked_headers = {
            key: mask_secret(value) if "key" in key.lower() or "authorization" in key.lower() else value
            for key, value in headers.items()
        }
        log.info("UPSTREAM REQUEST: %s %s headers=%s", method, url, masked_headers)
        if payload is None:
            return
        try:
            body_str = json.dumps(_truncate_inline_data(payload), indent=2, ensure_ascii=False)
        except (TypeError, ValueError):
            body_str = "<unserializable>"
        log.info("   Request Body:\n%s", body_str)

    def _client_session(self) -> ClientSession:
        # The call timeout is enforced in _send; streams may legitimately run longer.
        return ClientSession(timeout=ClientTimeout(total=None, sock_connect=self.timeout))

    async def _send(
        self,
        session: ClientSession,
        method: str,
        url: str,
        payload: Any = None,
    ) -> ClientResponse:
        """Issue one upstream call and return the 2xx response, mapping failures to errors."""
        headers = self._build_headers(json_body=payload is not None)
        self._log_upstream(method, url, headers, payload)

        async def _request() -> ClientResponse:
            return await session.request(method, url, json=payload, headers=headers)

        try:
            upstream = await asyncio.wait_for(_request(), timeout=self.timeout)
        except asyncio.TimeoutError:
            log.error("Upstream request timeout after %ss: %s", self.timeout, url)
            raise UpstreamTimeout("Request timeout")
        except (ClientError, OSError) as exc:
            log.error("Network error calling %s: %s", url, exc)
            raise NetworkError(f"Network error: {exc}")

        log.info("Upstream response: status=%s", upstream.status)
        if not 200 <= upstream.status < 300:
            try:
                text = await upstream.text()
            finally:
                upstream.release()
            log.warning("Upstream error %s: %s", upstream.status, extract_error_message(text))
            raise UpstreamError(upstream.status, text)
        return upstream


def _truncate_inline_data(value: Any) -> Any:
    if isinstance(value, dict):
        return {
            key: "<inline data>" if key == "data" and isinstance(item, str) and len(item) > 256
            else _truncate_inline_data(item)
            for key, item in value.items()
        }
    if isinstance(value, list):
        return [_truncate_inline_data(item) for item in value]
    return value


__all__ = ["ProviderExecutor"]
