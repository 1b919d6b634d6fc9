"""Tests for the FastAPI server."""

import json
from unittest.mock import patch

import pytest
from httpx import ASGITransport, AsyncClient

import vibecheck.server as srv
from vibecheck.core import Settings
from vibecheck.server import app


@pytest.fixture(autouse=True)
def reset_server_state():
    """Reset the cached settings and conversation before each test."""
    srv._settings = None
    srv._conversation = None
    srv._http_client = None
    yield
    if srv._conversation is not None:
        srv._conversation.timer.close()
    srv._settings = None
    srv._conversation = None
    srv._http_client = None


@pytest.fixture
def wired(settings, make_provider, reply_with_ritual):
    """Point the server at test settings and a fake completion provider."""
    provider = make_provider(content=reply_with_ritual)
    srv._settings = settings
    srv._http_client = provider.client()
    return provider


def client():
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


@pytest.mark.asyncio
async def test_chat_returns_message(wired):
    async with client() as c:
        resp = await c.post("/api/chat", json={
            "userMessage": "I'm so anxious about the exam",
            "previousMessages": [
                {"id": "a", "type": "user", "content": "hi", "timestamp": "2025-01-15T10:00:00Z"},
                {"id": "b", "type": "assistant", "content": "hello", "timestamp": "2025-01-15T10:00:01Z"},
            ],
            "options": {"model": "gpt-4", "temperature": 0.5, "maxTokens": 200},
        })
    assert resp.status_code == 200
    message = resp.json()["message"]
    assert message["type"] == "assistant"
    assert message["mood"] == "anxious"
    assert [s["type"] for s in message["suggestions"]] == ["action", "music"]
    assert "```" not in message["content"]

    payload = wired.payloads[0]
    assert payload["temperature"] == 0.5
    assert payload["max_tokens"] == 200
    assert [m["content"] for m in payload["messages"][1:]] == ["hi", "hello", "I'm so anxious about the exam"]


@pytest.mark.asyncio
async def test_chat_missing_key_is_400(fake_provider):
    srv._settings = Settings()
    srv._http_client = fake_provider.client()
    async with client() as c:
        resp = await c.post("/api/chat", json={"userMessage": "hi", "options": {"model": "gpt-4"}})
    assert resp.status_code == 400
    assert resp.json() == {"error": "OpenRouter API key not set"}
    assert fake_provider.requests == []


@pytest.mark.asyncio
async def test_chat_request_key(fake_provider):
    srv._settings = Settings()
    srv._http_client = fake_provider.client()
    async with client() as c:
        resp = await c.post("/api/chat", json={"userMessage": "hi", "apiKey": "sk-user"})
    assert resp.status_code == 200
    assert fake_provider.requests[0].headers["Authorization"] == "Bearer sk-user"


@pytest.mark.asyncio
async def test_chat_upstream_failure_is_apology(settings, make_provider):
    provider = make_provider(status=502, body=b"bad gateway")
    srv._settings = settings
    srv._http_client = provider.client()
    async with client() as c:
        resp = await c.post("/api/chat", json={"userMessage": "hi", "options": {"model": "gpt-4"}})
    assert resp.status_code == 200
    message = resp.json()["message"]
    assert message["content"].startswith("I apologize")
    assert "suggestions" not in message


@pytest.mark.asyncio
async def test_chat_ignores_non_object_options(wired):
    async with client() as c:
        resp = await c.post("/api/chat", json={"userMessage": "hi", "options": [1]})
    assert resp.status_code == 200
    assert wired.payloads[0]["model"] == "gpt-4"


@pytest.mark.asyncio
async def test_chat_requires_text(wired):
    async with client() as c:
        resp = await c.post("/api/chat", json={"userMessage": "  "})
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_send_message_updates_log_and_session(wired):
    async with client() as c:
        resp = await c.post("/api/messages", json={"text": "I'm so anxious", "options": {"model": "gpt-4"}})
        assert resp.status_code == 200
        data = resp.json()
        assert data["session"]["mode"] == "running"
        assert data["session"]["title"] == "Box breathing"
        assert data["session"]["sessionId"] == data["message"]["id"]
        assert len(data["visibleSuggestions"]) == 2

        resp = await c.get("/api/messages")
        assert [m["type"] for m in resp.json()["messages"]] == ["user", "assistant"]

        resp = await c.post("/api/session/toggle")
        assert resp.json()["mode"] == "paused"
        resp = await c.post("/api/session/toggle")
        assert resp.json()["mode"] == "running"

        resp = await c.post("/api/session/end")
        assert resp.json()["mode"] == "completed"
        assert resp.json()["progress"] == 1
        assert resp.json()["etaLabel"] == "00:00"

        resp = await c.delete("/api/messages")
        assert resp.json()["session"]["mode"] == "idle"
        resp = await c.get("/api/messages")
        assert resp.json()["messages"] == []


@pytest.mark.asyncio
async def test_session_idle_by_default(wired):
    async with client() as c:
        resp = await c.get("/api/session")
    data = resp.json()
    assert data["mode"] == "idle"
    assert data["progress"] == 0
    assert data["sessionId"] is None


@pytest.mark.asyncio
async def test_models_lists_proxies(wired, proxy):
    async with client() as c:
        resp = await c.get("/api/models")
    data = resp.json()
    assert data["default"] == "gpt-4"
    ids = [m["id"] for m in data["models"]]
    assert "gpt-4" in ids
    assert proxy.id in ids


@pytest.mark.asyncio
async def test_tracks(wired):
    async with client() as c:
        resp = await c.get("/api/tracks?mood=anxious&limit=2")
    data = resp.json()
    assert len(data) == 2
    assert all(t["type"] == "music" for t in data)


@pytest.mark.asyncio
async def test_mood(wired):
    async with client() as c:
        resp = await c.post("/api/mood", json={"text": "I'm so anxious about the exam"})
    assert resp.json() == {"mood": "anxious"}


@pytest.mark.asyncio
async def test_export_formats(wired):
    async with client() as c:
        await c.post("/api/messages", json={"text": "hello", "options": {"model": "gpt-4"}})

        resp = await c.get("/api/export?format=md")
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/markdown")
        assert "## Assistant" in resp.text

        resp = await c.get("/api/export?format=json")
        assert json.loads(resp.text)["message_count"] == 2

        resp = await c.get("/api/export?format=pdf")
        assert resp.status_code == 400


@pytest.mark.asyncio
async def test_settings_loaded_lazily(settings):
    with patch("vibecheck.server.load_settings", return_value=settings) as loader:
        async with client() as c:
            await c.get("/api/models")
            await c.get("/api/models")
    loader.assert_called_once()
