from gemini_proxy.config import DEFAULT_UPSTREAM_BASE_URL, ProxySettings
from gemini_proxy.providers import resolve_model


def test_from_env(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEYS", "k1, k2,,")
    monkeypatch.setenv("AUTH_TOKENS", "t1")
    monkeypatch.setenv("PORT", "9001")
    monkeypatch.setenv("ALLOW_UNAUTHENTICATED_NATIVE", "true")
    monkeypatch.delenv("UPSTREAM_BASE_URL", raising=False)

    settings = ProxySettings.from_env()
    assert settings.api_keys == ["k1", "k2"]
    assert settings.auth_tokens == ["t1"]
    assert settings.port == 9001
    assert settings.allow_unauthenticated_native is True
    assert settings.upstream_base_url == DEFAULT_UPSTREAM_BASE_URL
    assert settings.request_timeout == 30.0


def test_websocket_base_url():
    assert ProxySettings().upstream_ws_base_url == "wss://generativelanguage.googleapis.com"
    assert ProxySettings(upstream_base_url="http://127.0.0.1:9/").upstream_ws_base_url == "ws://127.0.0.1:9"


def test_resolve_model():
    assert resolve_model("models/gemini-2.0-flash", "d") == "gemini-2.0-flash"
    assert resolve_model("learnlm-1.5-pro", "d") == "learnlm-1.5-pro"
    assert resolve_model("gpt-4o", "d") == "d"
    assert resolve_model(None, "d") == "d"
