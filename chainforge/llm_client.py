"""Async clients for the text-generation backends.

Two backends sit behind the same :class:`TextGenerator` protocol:

* :class:`AnthropicClient` talks to the Anthropic Messages API
  (``/v1/messages``).
* :class:`OllamaClient` talks to a local Ollama server (``/api/generate``).

Both raise typed errors instead of returning error objects so the dispatcher
can decide what is worth retrying::

    client = AnthropicClient(api_key="sk-...")
    completion = await client.complete("Write an ERC20 token", model="claude-3-sonnet-20240229")
    print(completion.text)
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

import httpx
from pydantic import BaseModel, Field

from chainforge.config import LLMConfig


class GenerationError(Exception):
    """Base class for every failure while producing generated text."""


class TransportError(GenerationError):
    """The backend could not be reached or answered with an error status."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class EmptyResponseError(GenerationError):
    """The backend answered successfully but produced no text."""


class Completion(BaseModel):
    """Structured result of one generation call."""

    text: str = Field(default="", description="Generated text")
    model: str = Field(default="", description="Model that produced the response")
    stop_reason: str | None = Field(default=None)
    input_tokens: int = Field(default=0)
    output_tokens: int = Field(default=0)


@runtime_checkable
class TextGenerator(Protocol):
    """Anything that can turn a prompt into a :class:`Completion`."""

    async def complete(
        self,
        prompt: str,
        *,
        model: str,
        max_tokens: int = 4000,
        temperature: float = 0.7,
        system: str = "",
    ) -> Completion: ...


class _HttpBackend:
    """Shared ``httpx`` plumbing for both backends."""

    name = "backend"

    def __init__(self, base_url: str, timeout: int = 120) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _client(self) -> httpx.AsyncClient:
        """Return a fresh ``AsyncClient`` configured with our base URL and timeout."""
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.timeout, connect=10.0),
            headers=self._headers(),
        )

    def _headers(self) -> dict[str, str]:
        return {}

    async def _post(self, path: str, payload: dict) -> dict:
        try:
            async with self._client() as client:
                response = await client.post(path, json=payload)
                response.raise_for_status()
                data = response.json()
            if not isinstance(data, dict):
                raise EmptyResponseError(
                    f"{self.name} returned a JSON {type(data).__name__} instead of an object"
                )
            return data
        except httpx.ConnectError as exc:
            raise TransportError(
                f"Cannot connect to {self.name} at {self.base_url}: {exc}"
            ) from exc
        except httpx.TimeoutException as exc:
            raise TransportError(
                f"Request to {self.name} timed out after {self.timeout}s."
            ) from exc
        except httpx.HTTPStatusError as exc:
            raise TransportError(
                f"{self.name} returned HTTP {exc.response.status_code}: "
                f"{exc.response.text[:500]}",
                status_code=exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"HTTP error talking to {self.name}: {exc}") from exc
        except ValueError as exc:
            raise TransportError(f"{self.name} returned a non-JSON body: {exc}") from exc


class AnthropicClient(_HttpBackend):
    """Async client for the Anthropic Messages API."""

    name = "Anthropic"

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.anthropic.com",
        api_version: str = "2023-06-01",
        timeout: int = 120,
    ) -> None:
        super().__init__(base_url, timeout)
        self.api_key = api_key
        self.api_version = api_version

    def _headers(self) -> dict[str, str]:
        return {
            "x-api-key": self.api_key,
            "anthropic-version": self.api_version,
            "content-type": "application/json",
        }

    @staticmethod
    def _extract_text(data: dict) -> str:
        """Join the ``text`` blocks of a Messages API response."""
        blocks = data.get("content")
        if not isinstance(blocks, list):
            return ""
        return "".join(
            block["text"]
            for block in blocks
            if isinstance(block, dict)
            and block.get("type") == "text"
            and isinstance(block.get("text"), str)
        )

    async def complete(
        self,
        prompt: str,
        *,
        model: str,
        max_tokens: int = 4000,
        temperature: float = 0.7,
        system: str = "",
    ) -> Completion:
        """Send a single-turn message and return the assistant's text.

        Raises:
            TransportError: On connection failures, timeouts and non-2xx status.
            EmptyResponseError: When the response carries no text blocks.
        """
        payload: dict = {
            "model": model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [{"role": "user", "content": prompt}],
        }
        if system:
            payload["system"] = system

        data = await self._post("/v1/messages", payload)
        text = self._extract_text(data)
        if not text.strip():
            raise EmptyResponseError(f"{self.name} returned an empty response for model {model}")

        usage = data.get("usage")
        if not isinstance(usage, dict):
            usage = {}
        return Completion(
            text=text,
            model=data.get("model", model),
            stop_reason=data.get("stop_reason"),
            input_tokens=usage.get("input_tokens", 0),
            output_tokens=usage.get("output_tokens", 0),
        )


class OllamaClient(_HttpBackend):
    """Async client for a local Ollama server at localhost:11434."""

    name = "Ollama"

    def __init__(self, base_url: str = "http://localhost:11434", timeout: int = 120) -> None:
        super().__init__(base_url, timeout)

    async def complete(
        self,
        prompt: str,
        *,
        model: str,
        max_tokens: int = 4000,
        temperature: float = 0.7,
        system: str = "",
    ) -> Completion:
        payload: dict = {
            "model": model,
            "prompt": prompt,
            "stream": False,
            "options": {"num_predict": max_tokens, "temperature": temperature},
        }
        if system:
            payload["system"] = system

        data = await self._post("/api/generate", payload)
        text = data.get("response")
        if not isinstance(text, str) or not text.strip():
            raise EmptyResponseError(f"{self.name} returned an empty response for model {model}")
        return Completion(
            text=text,
            model=data.get("model", model),
            stop_reason=data.get("done_reason"),
            input_tokens=data.get("prompt_eval_count", 0),
            output_tokens=data.get("eval_count", 0),
        )


def create_client(config: LLMConfig) -> TextGenerator:
    """Build the backend selected by ``config.provider``."""
    if config.provider == "ollama":
        return OllamaClient(base_url=config.ollama_url, timeout=config.timeout)
    return AnthropicClient(
        api_key=config.api_key,
        base_url=config.anthropic_url,
        api_version=config.anthropic_version,
        timeout=config.timeout,
    )
