"""Tests for backend selection and dispatch."""

import httpx
import pytest

from vibecheck.backends import ProviderRouter, format_messages
from vibecheck.backends.openrouter import OpenRouterBackend
from vibecheck.backends.proxy import ProxyBackend
from vibecheck.config import OPENROUTER_URL
from vibecheck.core import ChatOptions, Message, Settings
from vibecheck.errors import ConfigurationError, MissingCredentials, TransportFailure


class TestResolve:
    def test_proxy_by_id(self, settings, proxy):
        route = ProviderRouter(settings).resolve("custom-abc123")
        assert isinstance(route.backend, ProxyBackend)
        assert route.backend.get_model() == proxy.model_name
        assert route.backend.get_endpoint() == proxy.endpoint
        assert route.prompt_override == "You are a terse assistant."

    def test_builtin_model(self, settings):
        route = ProviderRouter(settings).resolve("gpt-3.5-turbo")
        assert isinstance(route.backend, OpenRouterBackend)
        assert route.backend.get_model() == "gpt-3.5-turbo"
        assert route.backend.get_endpoint() == OPENROUTER_URL
        assert route.prompt_override is None

    def test_unknown_id_passed_verbatim(self, settings):
        route = ProviderRouter(settings).resolve("mistralai/some-new-model")
        assert isinstance(route.backend, OpenRouterBackend)
        assert route.backend.get_model() == "mistralai/some-new-model"

    def test_none_uses_default_model(self, settings):
        settings.default_model = "claude-3-opus"
        assert ProviderRouter(settings).resolve(None).backend.get_model() == "claude-3-opus"

    def test_missing_credentials(self):
        with pytest.raises(MissingCredentials):
            ProviderRouter(Settings()).resolve("gpt-4")

    def test_missing_credentials_is_configuration_error(self):
        with pytest.raises(ConfigurationError):
            ProviderRouter(Settings()).resolve("gpt-4")

    def test_env_key_fallback(self, monkeypatch):
        monkeypatch.setenv("OPENROUTER_API_KEY", "sk-env")
        route = ProviderRouter(Settings()).resolve("gpt-4")
        assert route.backend.get_headers()["Authorization"] == "Bearer sk-env"

    def test_request_key_beats_settings(self, settings):
        route = ProviderRouter(settings).resolve("gpt-4", api_key="sk-request")
        assert route.backend.get_headers()["Authorization"] == "Bearer sk-request"

    def test_proxy_needs_no_openrouter_key(self, proxy):
        route = ProviderRouter(Settings(custom_proxies=[proxy])).resolve(proxy.id)
        assert route.backend.get_headers()["Authorization"] == "Bearer sk-proxy"

    def test_proxy_without_endpoint(self, proxy):
        proxy.endpoint = ""
        with pytest.raises(ConfigurationError):
            ProviderRouter(Settings(custom_proxies=[proxy])).resolve(proxy.id)

    def test_keyless_proxy_sends_no_auth(self, proxy):
        proxy.api_key = None
        headers = ProviderRouter(Settings(custom_proxies=[proxy])).resolve(proxy.id).backend.get_headers()
        assert "Authorization" not in headers


class TestRoute:
    @pytest.mark.asyncio
    async def test_builtin_request_contract(self, settings, fake_provider):
        router = ProviderRouter(settings, fake_provider.client())
        history = [Message.user("hi"), Message.assistant("hello!")]
        text = await router.route(
            "how are you?", history, ChatOptions(model_id="gpt-4"), system_prompt="SYSTEM",
        )

        assert text == "Hello there."
        assert len(fake_provider.requests) == 1
        request = fake_provider.requests[0]
        assert str(request.url) == OPENROUTER_URL
        assert request.headers["Authorization"] == "Bearer sk-or-test"
        assert request.headers["X-Title"] == "VibeCheck.ai"
        payload = fake_provider.payloads[0]
        assert payload == {
            "model": "gpt-4",
            "messages": [
                {"role": "system", "content": "SYSTEM"},
                {"role": "user", "content": "hi"},
                {"role": "assistant", "content": "hello!"},
                {"role": "user", "content": "how are you?"},
            ],
            "temperature": 0.7,
            "max_tokens": 1000,
        }

    @pytest.mark.asyncio
    async def test_options_forwarded(self, settings, fake_provider):
        router = ProviderRouter(settings, fake_provider.client())
        await router.route("hey", [], ChatOptions(model_id="gpt-4", temperature=0.0, max_tokens=50))
        payload = fake_provider.payloads[0]
        assert payload["temperature"] == 0.0
        assert payload["max_tokens"] == 50

    @pytest.mark.asyncio
    async def test_proxy_prompt_replaces_default(self, settings, proxy, fake_provider):
        router = ProviderRouter(settings, fake_provider.client())
        await router.route("hey", [], ChatOptions(model_id=proxy.id), system_prompt="DEFAULT PROMPT")

        request = fake_provider.requests[0]
        assert str(request.url) == proxy.endpoint
        payload = fake_provider.payloads[0]
        assert payload["model"] == proxy.model_name
        system = [m for m in payload["messages"] if m["role"] == "system"]
        assert system == [{"role": "system", "content": "You are a terse assistant."}]

    @pytest.mark.asyncio
    async def test_proxy_without_prompt_keeps_default(self, settings, proxy, fake_provider):
        proxy.custom_prompt = None
        router = ProviderRouter(settings, fake_provider.client())
        await router.route("hey", [], ChatOptions(model_id=proxy.id), system_prompt="DEFAULT PROMPT")
        assert fake_provider.payloads[0]["messages"][0] == {"role": "system", "content": "DEFAULT PROMPT"}

    @pytest.mark.asyncio
    async def test_missing_credentials_sends_nothing(self, fake_provider):
        router = ProviderRouter(Settings(), fake_provider.client())
        with pytest.raises(MissingCredentials):
            await router.route("hey", [], ChatOptions(model_id="gpt-4"))
        assert fake_provider.requests == []

    @pytest.mark.asyncio
    async def test_non_success_status(self, settings, make_provider):
        provider = make_provider(status=429, body=b'{"error": {"message": "Rate limited"}}')
        router = ProviderRouter(settings, provider.client())
        with pytest.raises(TransportFailure) as exc:
            await router.route("hey", [], ChatOptions(model_id="gpt-4"))
        assert exc.value.status_code == 429
        assert "Rate limited" in str(exc.value)
        assert len(provider.requests) == 1

    @pytest.mark.asyncio
    async def test_non_json_body(self, settings, make_provider):
        provider = make_provider(body=b"<html>oops</html>")
        router = ProviderRouter(settings, provider.client())
        with pytest.raises(TransportFailure):
            await router.route("hey", [], ChatOptions(model_id="gpt-4"))

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [b"{}", b'{"choices": []}', b'{"choices": [{"message": {"content": null}}]}'])
    async def test_unexpected_shape(self, settings, make_provider, body):
        provider = make_provider(body=body)
        router = ProviderRouter(settings, provider.client())
        with pytest.raises(TransportFailure):
            await router.route("hey", [], ChatOptions(model_id="gpt-4"))

    @pytest.mark.asyncio
    async def test_network_error(self, settings):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        router = ProviderRouter(settings, client)
        with pytest.raises(TransportFailure):
            await router.route("hey", [], ChatOptions(model_id="gpt-4"))


class TestListModels:
    def test_builtins_then_proxies(self, settings, proxy):
        models = ProviderRouter(settings).list_models()
        assert models[0]["id"] == "gpt-4"
        assert models[-1]["id"] == proxy.id
        assert models[-1]["custom"] is True
        assert models[-1]["name"] == "My DeepSeek Proxy"
        assert proxy.endpoint in models[-1]["description"]


def test_format_messages_without_system_prompt():
    messages = format_messages("hi", [], None)
    assert messages == [{"role": "user", "content": "hi"}]
