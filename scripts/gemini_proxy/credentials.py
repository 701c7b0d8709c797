"""In-memory pools of upstream API keys and client access tokens.

The store is created once at startup from configuration and handed to the
aiohttp application. Nothing is persisted: a restart reseeds it from the
environment.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from .utils import mask_secret


log = logging.getLogger(__name__)


class CredentialStore:
    """Round-robin pool of upstream keys plus an allow-list of bearer tokens.

    Every mutation happens synchronously between awaits, so concurrent request
    handlers on the event loop never observe a half-updated pool.
    """

    def __init__(
        self,
        api_keys: Optional[Iterable[str]] = None,
        auth_tokens: Optional[Iterable[str]] = None,
    ) -> None:
        self._api_keys: List[str] = []
        self._auth_tokens: List[str] = []
        self._cursor = 0
        for key in api_keys or ():
            self.add_api_key(key)
        for token in auth_tokens or ():
            self.add_auth_token(token)

    # upstream keys

    def next_api_key(self) -> Optional[str]:
        """Return the next key in round-robin order, or None when the pool is empty."""
        if not self._api_keys:
            return None
        if self._cursor >= len(self._api_keys):
            self._cursor = 0
        key = self._api_keys[self._cursor]
        self._cursor = (self._cursor + 1) % len(self._api_keys)
        return key

    def add_api_key(self, key: str) -> None:
        if key and key not in self._api_keys:
            self._api_keys.append(key)
            log.info("Added API key: %s", mask_secret(key))

    def remove_api_key(self, key: str) -> None:
        if key not in self._api_keys:
            return
        self._api_keys.remove(key)
        log.info("Removed API key: %s", mask_secret(key))
        if self._cursor >= len(self._api_keys):
            self._cursor = 0

    def list_api_keys(self) -> List[str]:
        return list(self._api_keys)

    # client tokens

    def add_auth_token(self, token: str) -> None:
        if token and token not in self._auth_tokens:
            self._auth_tokens.append(token)
            log.info("Added auth token: %s", mask_secret(token))

    def remove_auth_token(self, token: str) -> None:
        if token in self._auth_tokens:
            self._auth_tokens.remove(token)
            log.info("Removed auth token: %s", mask_secret(token))

    def list_auth_tokens(self) -> List[str]:
        return list(self._auth_tokens)

    def is_valid_auth_token(self, token: Optional[str]) -> bool:
        return bool(token) and token in self._auth_tokens


__all__ = ["CredentialStore"]
