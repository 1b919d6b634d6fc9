"""Pick a completion backend for a model id and dispatch one request."""

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from ..config import DEFAULT_MAX_TOKENS, DEFAULT_TEMPERATURE, get_env_api_key, get_timeout
from ..core import ChatOptions, Message, Settings
from ..errors import ConfigurationError, MissingCredentials, ProviderError, TransportFailure
from ..provider import CompletionBackend
from .openrouter import OpenRouterBackend
from .proxy import ProxyBackend

logger = logging.getLogger(__name__)

BUILTIN_MODELS = [
    {"id": "gpt-4", "name": "GPT-4", "provider": "OpenAI",
     "description": "Most capable model for complex tasks", "features": ["Reasoning", "Code", "Analysis"]},
    {"id": "gpt-3.5-turbo", "name": "GPT-3.5 Turbo", "provider": "OpenAI",
     "description": "Fast and efficient for most tasks", "features": ["Speed", "General", "Cost-effective"]},
    {"id": "claude-3-opus", "name": "Claude 3 Opus", "provider": "Anthropic",
     "description": "Excellent for writing and analysis", "features": ["Writing", "Reasoning", "Creative"]},
    {"id": "claude-3-sonnet", "name": "Claude 3 Sonnet", "provider": "Anthropic",
     "description": "Balanced performance and speed", "features": ["Balanced", "Fast", "Reliable"]},
    {"id": "llama-2-70b", "name": "Llama 2 70B", "provider": "Meta",
     "description": "Open source alternative", "features": ["Open Source", "Privacy", "Local"]},
]


@dataclass
class Route:
    """Where a request goes, and whether its system prompt is overridden."""

    backend: CompletionBackend
    prompt_override: Optional[str] = None


class ProviderRouter:
    """Resolve a model id to a backend and send exactly one request.

    Custom proxies are matched by id first. Anything else is passed to the
    built-in provider verbatim as its model id, including ids that are not
    in BUILTIN_MODELS.
    """

    def __init__(self, settings: Settings, client: httpx.AsyncClient | None = None):
        self.settings = settings
        self._client = client

    def resolve(self, model_id: str | None, api_key: str | None = None) -> Route:
        """Return the Route for ``model_id`` without touching the network.

        Raises MissingCredentials when the built-in provider is selected and
        no key can be found, ConfigurationError for a proxy with no endpoint.
        """
        model_id = model_id or self.settings.default_model
        proxy = self.settings.find_proxy(model_id)
        if proxy is not None:
            backend = ProxyBackend(proxy)
            if not backend.is_available():
                raise ConfigurationError(f"Custom proxy {proxy.id} has no endpoint")
            return Route(backend=backend, prompt_override=proxy.custom_prompt)

        key = api_key or self.settings.openrouter_api_key or get_env_api_key()
        if not key:
            raise MissingCredentials("OpenRouter API key not set")
        return Route(backend=OpenRouterBackend(model_id, key))

    async def route(
        self,
        message: str,
        history: list[Message],
        options: ChatOptions,
        system_prompt: str | None = None,
        api_key: str | None = None,
    ) -> str:
        """Send ``message`` with ``history`` and return the raw assistant text.

        Raises ConfigurationError (MissingCredentials included) or
        TransportFailure; nothing else escapes.
        """
        route = self.resolve(options.model_id, api_key=api_key)
        prompt = route.prompt_override or system_prompt
        messages = format_messages(message, history, prompt)
        temperature = options.temperature if options.temperature is not None else DEFAULT_TEMPERATURE
        max_tokens = options.max_tokens or DEFAULT_MAX_TOKENS

        logger.info(
            "Dispatching to %s (%s) at %s",
            route.backend.name, route.backend.get_model(), route.backend.get_endpoint(),
        )
        try:
            if self._client is not None:
                return await route.backend.complete(self._client, messages, temperature, max_tokens)
            async with httpx.AsyncClient(timeout=get_timeout()) as client:
                return await route.backend.complete(client, messages, temperature, max_tokens)
        except ProviderError as e:
            logger.warning("Completion via %s failed: %s", route.backend.name, e)
            raise
        except Exception as e:
            logger.error("Unexpected error from %s: %s", route.backend.name, e)
            raise TransportFailure(f"{route.backend.name}: {e}") from e

    def list_models(self) -> list[dict]:
        """Return the selectable models: built-ins first, then custom proxies."""
        models = [dict(m, custom=False) for m in BUILTIN_MODELS]
        for proxy in self.settings.custom_proxies:
            models.append({
                "id": proxy.id,
                "name": proxy.config_name,
                "provider": proxy.provider,
                "description": f"{proxy.model_name} ({proxy.endpoint})",
                "features": list(proxy.features),
                "custom": True,
            })
        return models


def format_messages(message: str, history: list[Message], system_prompt: str | None) -> list[dict]:
    """Build the OpenAI-style message list for one request."""
    messages = []
    if system_prompt:
        messages.append({"role": "system", "content": system_prompt})
    for msg in history:
        role = "user" if msg.role == "user" else "assistant"
        messages.append({"role": role, "content": msg.content})
    messages.append({"role": "user", "content": message})
    return messages
