"""Tests for the page-chat command line."""

import json

import httpx
import pytest

from page_chat import cli
from page_chat.relay.client import RelayClient

URL = "https://example.com/guide"


@pytest.fixture
def relay(monkeypatch):
    """Route the CLI's relay calls to an in-process handler."""
    calls = []
    replies = {
        "/api/fetch-page": (200, {"success": True, "html": "# Page Title\nGuide", "title": "Guide", "originalUrl": URL}),
        "/api/openai": (200, {"choices": [{"message": {"content": "It explains setup."}}]}),
        "/api/openai/ping": (200, None),
    }

    def handler(request):
        calls.append((request.url.path, json.loads(request.content) if request.content else None))
        status, body = replies.get(request.url.path, (400, None))
        return httpx.Response(status, json=body)

    transport = httpx.MockTransport(handler)
    monkeypatch.setattr(cli, "RelayClient", lambda base_url=None: RelayClient("http://relay.test", transport=transport))
    return calls, replies


def test_ask_then_history_then_clear(relay, tmp_path, capsys):
    calls, _ = relay
    db = str(tmp_path / "history.db")

    assert cli.main(["--db", db, "ask", URL, "What is this?"]) == 0
    assert capsys.readouterr().out.strip() == "It explains setup."
    assert [path for path, _ in calls] == ["/api/fetch-page", "/api/openai"]
    assert calls[1][1]["messages"][-1] == {"role": "user", "content": "What is this?"}

    assert cli.main(["--db", db, "history"]) == 0
    assert capsys.readouterr().out.strip() == f"Guide\t2 messages\t{URL}"

    assert cli.main(["--db", db, "clear", URL]) == 0
    assert cli.main(["--db", db, "history"]) == 0
    assert capsys.readouterr().out.strip() == f"Guide\t0 messages\t{URL}"

    assert cli.main(["--db", db, "clear"]) == 0
    assert cli.main(["--db", db, "history"]) == 0
    assert capsys.readouterr().out == ""


def test_ask_reuses_stored_snapshot(relay, tmp_path, capsys):
    calls, _ = relay
    db = str(tmp_path / "history.db")
    cli.main(["--db", db, "ask", URL, "first"])
    cli.main(["--db", db, "ask", URL + "#intro", "second"])

    assert [path for path, _ in calls].count("/api/fetch-page") == 1
    messages = calls[-1][1]["messages"]
    assert [m["content"] for m in messages[1:]] == ["first", "It explains setup.", "second"]


def test_ask_provider_error_exit_code(relay, tmp_path, capsys):
    _, replies = relay
    replies["/api/openai"] = (401, {"error": {"message": "Invalid API key"}})

    assert cli.main(["--db", str(tmp_path / "h.db"), "ask", URL, "q"]) == 1
    assert capsys.readouterr().out.strip() == "Error: API error: Invalid API key"


def test_empty_question_reports_error(relay, tmp_path, capsys):
    assert cli.main(["--db", str(tmp_path / "h.db"), "ask", URL, "  "]) == 1
    assert "Question is required" in capsys.readouterr().err


def test_ping(relay, tmp_path, capsys):
    assert cli.main(["--db", str(tmp_path / "h.db"), "ping"]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert "OpenAI (Connected)" in lines
    assert "Gemini (Disconnected)" in lines
    assert len(lines) == 4
