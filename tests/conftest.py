import json
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestClient, TestServer

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "scripts"))

from gemini_proxy.app import make_app  # noqa: E402
from gemini_proxy.config import ProxySettings  # noqa: E402
from gemini_proxy.credentials import CredentialStore  # noqa: E402
from gemini_proxy.sessions import SessionStore  # noqa: E402


API_KEYS = ["AIzaSyAAAAAAAAAAAAAAAAAAAAAAAAAAAAA1", "AIzaSyBBBBBBBBBBBBBBBBBBBBBBBBBBBBB2"]
AUTH_TOKEN = "sk-client-token-0001"

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]


@dataclass
class Recorded:
    method: str
    path: str
    query: Dict[str, str]
    headers: Any
    body: Any = None


@dataclass
class FakeUpstream:
    """In-process stand-in for the Gemini API that records every call."""

    routes: Dict[Tuple[str, str], Handler] = field(default_factory=dict)
    requests: List[Recorded] = field(default_factory=list)
    base_url: str = ""

    def on(self, method: str, path: str, handler: Handler) -> None:
        self.routes[(method, path)] = handler

    def on_json(self, method: str, path: str, payload: Any, status: int = 200) -> None:
        async def _handler(request: web.Request) -> web.StreamResponse:
            return web.json_response(payload, status=status)

        self.on(method, path, _handler)

    async def handle(self, request: web.Request) -> web.StreamResponse:
        raw = await request.read()
        body: Optional[Any] = json.loads(raw) if raw else None
        self.requests.append(
            Recorded(request.method, request.path, dict(request.query), request.headers.copy(), body)
        )
        handler = self.routes.get((request.method, request.path))
        if handler is None:
            return web.json_response({"error": {"message": "not found"}}, status=404)
        return await handler(request)

    def make_app(self) -> web.Application:
        app = web.Application()
        app.router.add_route("*", "/{tail:.*}", self.handle)
        return app


def gemini_reply(text: str, finish: str = "STOP") -> Dict[str, Any]:
    return {
        "candidates": [
            {"content": {"role": "model", "parts": [{"text": text}]}, "finishReason": finish, "index": 0}
        ],
        "usageMetadata": {"promptTokenCount": 3, "candidatesTokenCount": 2, "totalTokenCount": 5},
    }


@pytest.fixture
def store() -> CredentialStore:
    return CredentialStore(API_KEYS, [AUTH_TOKEN])


@pytest.fixture
def auth_headers() -> Dict[str, str]:
    return {"Authorization": f"Bearer {AUTH_TOKEN}"}


@pytest_asyncio.fixture
async def upstream():
    fake = FakeUpstream()
    server = TestServer(fake.make_app())
    await server.start_server()
    fake.base_url = str(server.make_url("/")).rstrip("/")
    yield fake
    await server.close()


@pytest.fixture
def settings(upstream: FakeUpstream) -> ProxySettings:
    return ProxySettings(upstream_base_url=upstream.base_url, request_timeout=2.0)


@pytest_asyncio.fixture
async def proxy(settings: ProxySettings, store: CredentialStore):
    async def _no_fetch(url: str):
        raise AssertionError(f"unexpected image fetch: {url}")

    app = make_app(settings, store, SessionStore(ttl=60), fetch_image=_no_fetch)
    client = TestClient(TestServer(app))
    await client.start_server()
    yield client
    await client.close()


@pytest_asyncio.fixture
async def make_proxy(upstream: FakeUpstream):
    """Build extra proxy clients with custom settings or stores."""
    clients: List[TestClient] = []

    async def _make(store: CredentialStore, **overrides: Any) -> TestClient:
        overrides.setdefault("upstream_base_url", upstream.base_url)
        app = make_app(ProxySettings(**overrides), store, SessionStore(ttl=60))
        client = TestClient(TestServer(app))
        await client.start_server()
        clients.append(client)
        return client

    yield _make
    for client in clients:
        await client.close()
