"""User-defined proxy backend.

A proxy is any OpenAI-compatible chat-completions URL the user registered
in settings. The proxy's own model name is sent upstream, not the id the
user picked in the model list. The API key is optional so that keyless
local gateways work.
"""

from ..core import CustomProxy
from ..provider import CompletionBackend


class ProxyBackend(CompletionBackend):
    """Provider for a single CustomProxy."""

    name = "proxy"

    def __init__(self, proxy: CustomProxy):
        self.proxy = proxy

    def get_endpoint(self) -> str:
        return self.proxy.endpoint

    def get_model(self) -> str:
        return self.proxy.model_name

    def get_headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.proxy.api_key:
            headers["Authorization"] = f"Bearer {self.proxy.api_key}"
        return headers
