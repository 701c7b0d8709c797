#!/usr/bin/env python3
"""Entry point for the Gemini OpenAI-compatible proxy."""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path

# Add current directory to path for imports
sys.path.insert(0, str(Path(__file__).parent))

from gemini_proxy.app import start_proxy
from gemini_proxy.config import ProxySettings
from gemini_proxy.credentials import CredentialStore
from gemini_proxy.logging_control import setup_logging
from gemini_proxy.utils import mask_secret


log = logging.getLogger("gemini_proxy")


async def _main(settings: ProxySettings) -> None:
    store = CredentialStore(settings.api_keys, settings.auth_tokens)
    log.info("Loaded %d API key(s): %s", len(settings.api_keys), [mask_secret(k) for k in settings.api_keys])
    log.info("Loaded %d auth token(s)", len(settings.auth_tokens))
    if not settings.auth_tokens:
        log.warning("AUTH_TOKENS is empty: every API call will be rejected until a token is added")
    if settings.allow_unauthenticated_native:
        log.warning("Token-less native generateContent calls are allowed")

    runner = await start_proxy(settings, store)
    log.info("Listening on http://%s:%s", settings.host, settings.port)
    try:
        while True:
            await asyncio.sleep(3600)
    finally:
        await runner.cleanup()


def main() -> None:
    settings = ProxySettings.from_env()
    setup_logging(settings.log_level)
    try:
        asyncio.run(_main(settings))
    except KeyboardInterrupt:
        print("\nShutting down...")


if __name__ == "__main__":
    main()
