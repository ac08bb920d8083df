"""Tests for the FastAPI relay."""

import json

import httpx
import pytest
from fastapi.testclient import TestClient

from page_chat.relay.app import create_app
from page_chat.relay.config import RelaySettings
from page_chat.web.fetcher import WebFetcher

PUBLIC_URL = "http://93.184.216.34/article"


def _unreachable(request):
    raise AssertionError(f"unexpected outbound request to {request.url}")


def _client(handler=_unreachable, page_handler=_unreachable, api_keys=None):
    settings = RelaySettings(api_keys=api_keys if api_keys is not None else {"openai": "sk-test"})
    app = create_app(
        settings,
        fetcher=WebFetcher(transport=httpx.MockTransport(page_handler)),
        upstream_transport=httpx.MockTransport(handler),
    )
    return TestClient(app)


def test_fetch_page_private_address_rejected_without_request():
    response = _client().post("/api/fetch-page", json={"url": "http://192.168.1.5/"})
    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "Access to this domain is not allowed"}


@pytest.mark.parametrize("url", ["file:///etc/passwd", "ftp://example.com/x"])
def test_fetch_page_bad_scheme(url):
    response = _client().post("/api/fetch-page", json={"url": url})
    assert response.status_code == 400
    assert response.json()["error"] == "Only HTTP and HTTPS URLs are supported"


@pytest.mark.parametrize("payload", [{}, {"url": ""}, {"url": 5}])
def test_fetch_page_requires_url(payload):
    response = _client().post("/api/fetch-page", json=payload)
    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "URL is required"}


def test_fetch_page_returns_redacted_digest():
    def page(request):
        return httpx.Response(
            200,
            headers={"content-type": "text/html; charset=utf-8"},
            text=(
                "<html><head><title>Contact</title></head><body>"
                "<h1>Mail admin@example.org</h1><script>track()</script>"
                "<p>Call 555-123-4567</p></body></html>"
            ),
        )

    response = _client(page_handler=page).post("/api/fetch-page", json={"url": PUBLIC_URL})
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["title"] == "Contact"
    assert data["originalUrl"] == PUBLIC_URL
    assert data["html"].startswith("# Page Title\nContact")
    assert "admin@example.org" not in data["html"]
    assert "555-123-4567" not in data["html"]
    assert "track()" not in data["html"]
    assert "# Mail [EMAIL]" in data["html"]


def test_fetch_page_rejects_non_html():
    def page(request):
        return httpx.Response(200, headers={"content-type": "application/pdf"}, content=b"%PDF-1.4")

    response = _client(page_handler=page).post("/api/fetch-page", json={"url": PUBLIC_URL})
    assert response.status_code == 400
    assert response.json() == {
        "success": False,
        "error": "URL does not return HTML content",
        "contentType": "application/pdf",
    }


def test_fetch_page_upstream_failure():
    def page(request):
        return httpx.Response(503)

    response = _client(page_handler=page).post("/api/fetch-page", json={"url": PUBLIC_URL})
    assert response.status_code == 500
    data = response.json()
    assert data["success"] is False
    assert "503" in data["error"]
    assert data["url"] == PUBLIC_URL


def test_fetch_page_blocks_private_redirect():
    def page(request):
        return httpx.Response(302, headers={"location": "http://127.0.0.1/admin"})

    response = _client(page_handler=page).post("/api/fetch-page", json={"url": PUBLIC_URL})
    assert response.status_code == 400
    assert response.json()["error"].startswith("Redirect blocked")


def test_ping():
    client = _client()
    assert client.get("/api/openai/ping").status_code == 200
    assert client.get("/api/gemini/ping").status_code == 400
    assert client.get("/api/unknown/ping").status_code == 404


def test_chat_passthrough():
    seen = {}
    upstream_reply = {"choices": [{"message": {"content": "Hi there"}}], "id": "x"}

    def handler(request):
        seen["url"] = str(request.url)
        seen["auth"] = request.headers.get("authorization")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=upstream_reply)

    body = {"model": "gpt-4o-mini", "messages": [{"role": "user", "content": "q"}]}
    response = _client(handler).post("/api/openai", json=body)

    assert response.status_code == 200
    assert response.json() == upstream_reply
    assert seen["url"] == "https://api.openai.com/v1/chat/completions"
    assert seen["auth"] == "Bearer sk-test"
    assert seen["body"] == body


def test_chat_anthropic_headers():
    seen = {}

    def handler(request):
        seen["headers"] = request.headers
        return httpx.Response(200, json={"content": [{"text": "ok"}]})

    client = _client(handler, api_keys={"anthropic": "ak-test"})
    response = client.post("/api/anthropic", json={"messages": []})
    assert response.status_code == 200
    assert seen["headers"]["x-api-key"] == "ak-test"
    assert seen["headers"]["anthropic-version"] == "2023-06-01"


def test_chat_missing_key():
    response = _client(api_keys={}).post("/api/gemini", json={"contents": []})
    assert response.status_code == 400
    assert response.json() == {"error": "Gemini API key not set in environment"}


def test_chat_unknown_provider():
    response = _client().post("/api/mistral", json={})
    assert response.status_code == 404


def test_chat_rejects_non_object_body():
    response = _client().post("/api/openai", json=[1, 2])
    assert response.status_code == 400


def test_chat_upstream_error_status_passed_through():
    def handler(request):
        return httpx.Response(401, json={"error": {"message": "Invalid API key"}})

    response = _client(handler).post("/api/openai", json={"messages": []})
    assert response.status_code == 401
    assert response.json() == {"error": {"message": "Invalid API key"}}


def test_chat_timeout_maps_to_504():
    def handler(request):
        raise httpx.ReadTimeout("slow upstream", request=request)

    response = _client(handler).post("/api/openai", json={"messages": []})
    assert response.status_code == 504
    assert response.json() == {"error": "Request to OpenAI API timed out"}


def test_chat_connection_failure_maps_to_502():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    response = _client(handler).post("/api/openai", json={"messages": []})
    assert response.status_code == 502


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-env")
    monkeypatch.delenv("GROK_API_KEY", raising=False)
    monkeypatch.setenv("PORT", "4000")
    monkeypatch.setenv("PAGECHAT_ALLOWED_ORIGINS", "chrome-extension://abc, https://x.test")
    settings = RelaySettings.from_env()
    assert settings.api_keys["openai"] == "sk-env"
    assert "grok" not in settings.api_keys
    assert settings.port == 4000
    assert settings.allowed_origins == ["chrome-extension://abc", "https://x.test"]
