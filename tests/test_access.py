import pytest
from aiohttp.test_utils import make_mocked_request

from gemini_proxy.access import authenticate, require_management_access
from gemini_proxy.app import make_app
from gemini_proxy.config import ProxySettings
from gemini_proxy.credentials import CredentialStore
from gemini_proxy.errors import AuthenticationError
from gemini_proxy.routing import classify
from gemini_proxy.sessions import SessionStore


@pytest.fixture
def sessions():
    return SessionStore(ttl=60)


@pytest.fixture
def app(sessions):
    settings = ProxySettings(allow_unauthenticated_native=True)
    return make_app(settings, CredentialStore(["key"], ["tok"]), sessions)


def _admit(app, method, path, headers=None):
    request = make_mocked_request(method, path, headers=headers or {}, app=app)
    return authenticate(request, classify(path, method))


def test_bearer_token_admission(app):
    grant = _admit(app, "POST", "/v1/openai/chat/completions", {"Authorization": "Bearer tok"})
    assert grant.via == "token"


def test_session_admits_management_only(app, sessions):
    cookie = {"Cookie": f"gemini_session={sessions.create('tok')}"}
    assert _admit(app, "GET", "/api-keys", cookie).via == "session"
    with pytest.raises(AuthenticationError):
        _admit(app, "POST", "/v1/openai/chat/completions", cookie)


def test_native_shim_admission(app):
    grant = _admit(app, "POST", "/v1beta/models/gemini-2.5-pro:generateContent")
    assert grant.via == "native-shim"


def test_invalid_token_wins_over_session(app, sessions):
    headers = {"Authorization": "Bearer nope", "Cookie": f"gemini_session={sessions.create('tok')}"}
    request = make_mocked_request("GET", "/logging", headers=headers, app=app)
    with pytest.raises(AuthenticationError) as excinfo:
        require_management_access(request)
    assert excinfo.value.message == "Invalid authentication token"
