"""Abstract base class for completion backends."""

from abc import ABC, abstractmethod

import httpx

from .errors import TransportFailure


class CompletionBackend(ABC):
    """Base class for chat-completion endpoints.

    Each backend (the built-in OpenRouter model, a user-defined proxy)
    speaks the same OpenAI-style request/response contract and differs
    only in where it sends the request and how it authenticates.
    """

    name: str  # "openrouter", "proxy"

    @abstractmethod
    def get_endpoint(self) -> str:
        """Return the chat-completions URL this backend posts to."""
        ...

    @abstractmethod
    def get_model(self) -> str:
        """Return the model identifier sent upstream."""
        ...

    @abstractmethod
    def get_headers(self) -> dict[str, str]:
        """Return request headers, including any auth."""
        ...

    def is_available(self) -> bool:
        """Return True if this backend has what it needs to send a request."""
        return bool(self.get_endpoint())

    def build_payload(self, messages: list[dict], temperature: float, max_tokens: int) -> dict:
        return {
            "model": self.get_model(),
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }

    async def complete(
        self,
        client: httpx.AsyncClient,
        messages: list[dict],
        temperature: float,
        max_tokens: int,
    ) -> str:
        """Send one completion request and return the assistant text.

        Any transport problem, non-success status or unexpected body is
        raised as TransportFailure.
        """
        payload = self.build_payload(messages, temperature, max_tokens)
        try:
            resp = await client.post(self.get_endpoint(), json=payload, headers=self.get_headers())
        except httpx.HTTPError as e:
            raise TransportFailure(f"{self.name}: request failed: {e}") from e

        if not resp.is_success:
            raise TransportFailure(
                f"{self.name}: {_error_detail(resp)}",
                status_code=resp.status_code,
            )

        try:
            data = resp.json()
        except ValueError as e:
            raise TransportFailure(f"{self.name}: response is not JSON", resp.status_code) from e

        return _read_content(data, self.name)


def _read_content(data, source: str) -> str:
    """Pull ``choices[0].message.content`` out of a completion response."""
    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as e:
        raise TransportFailure(f"{source}: unexpected response shape") from e
    if not isinstance(content, str):
        raise TransportFailure(f"{source}: response content is not text")
    return content


def _error_detail(resp: httpx.Response) -> str:
    """Best-effort error message from a failed response."""
    try:
        body = resp.json()
    except ValueError:
        return f"HTTP {resp.status_code}"
    if isinstance(body, dict):
        err = body.get("error")
        if isinstance(err, dict) and err.get("message"):
            return str(err["message"])
        if isinstance(err, str):
            return err
    return f"HTTP {resp.status_code}"
