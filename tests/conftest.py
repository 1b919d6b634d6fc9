"""Shared test fixtures for vibecheck."""

import json

import httpx
import pytest

from vibecheck.core import CustomProxy, Settings


def completion(content: str) -> dict:
    """A minimal OpenAI-style completion response body."""
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


class FakeProvider:
    """Records outbound completion requests and answers from a script."""

    def __init__(self, content: str = "Hello there.", status: int = 200, body=None):
        self.content = content
        self.status = status
        self.body = body
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.body is not None:
            return httpx.Response(self.status, content=self.body)
        return httpx.Response(self.status, json=completion(self.content))

    @property
    def payloads(self) -> list[dict]:
        return [json.loads(r.content) for r in self.requests]

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


class FakeClock:
    """Epoch-millisecond clock that only moves when told to."""

    def __init__(self, start: float = 1_700_000_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Keep tests away from real credentials and settings files."""
    monkeypatch.delenv("OPENROUTER_API_KEY", raising=False)
    monkeypatch.delenv("VIBECHECK_DEFAULT_MODEL", raising=False)
    monkeypatch.delenv("VIBECHECK_OPENROUTER_URL", raising=False)
    monkeypatch.delenv("VIBECHECK_BACKFILL_MUSIC", raising=False)
    monkeypatch.setenv("VIBECHECK_SETTINGS_PATH", str(tmp_path / "settings.json"))


@pytest.fixture
def proxy():
    return CustomProxy(
        id="custom-abc123",
        config_name="My DeepSeek Proxy",
        model_name="deepseek/deepseek-r1-0528:free",
        endpoint="https://proxy.example.com/v1/chat/completions",
        api_key="sk-proxy",
        custom_prompt="You are a terse assistant.",
        provider="DeepSeek",
        features=["Reasoning", "Low-latency"],
    )


@pytest.fixture
def settings(proxy):
    return Settings(openrouter_api_key="sk-or-test", custom_proxies=[proxy], default_model="gpt-4")


@pytest.fixture
def fake_provider():
    return FakeProvider()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def reply_with_ritual():
    return (
        "Hey, it's *totally okay* to feel wound up before an exam.\n"
        "```json\n"
        '[{"type":"action","label":"Box breathing","minutes":3},'
        '{"type":"music","title":"Grounding Pad","subtitle":"Grounding • 1.5 min"}]\n'
        "```"
    )


@pytest.fixture
def make_provider():
    """Factory for FakeProvider with a custom status or body."""
    return FakeProvider
