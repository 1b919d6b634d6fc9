"""Built-in backend: OpenRouter's OpenAI-compatible chat completions."""

from ..config import get_openrouter_url
from ..provider import CompletionBackend


class OpenRouterBackend(CompletionBackend):
    """Provider for the built-in model catalog."""

    name = "openrouter"

    def __init__(self, model_id: str, api_key: str, endpoint: str | None = None):
        self.model_id = model_id
        self.api_key = api_key
        self.endpoint = endpoint or get_openrouter_url()

    def get_endpoint(self) -> str:
        return self.endpoint

    def get_model(self) -> str:
        return self.model_id

    def get_headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
            "HTTP-Referer": "https://vibecheck.ai",
            "X-Title": "VibeCheck.ai",
        }

    def is_available(self) -> bool:
        return bool(self.api_key and self.endpoint)
