"""Shared pytest fixtures for the chainforge test suite.

Provides reusable fixtures for:
- Temporary output, templates and integrations directories
- A scripted text generator standing in for the LLM backends
- A sleep recorder for backoff assertions
- Seeded template stores
- Mocked ``httpx.AsyncClient`` helpers
"""

from __future__ import annotations

from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from chainforge.config import Config, GenerationConfig
from chainforge.llm_client import Completion, EmptyResponseError, TransportError
from chainforge.prompting.dispatcher import PromptDispatcher
from chainforge.scaffolder.store import TemplateStore


# ---------------------------------------------------------------------------
# Paths & Config
# ---------------------------------------------------------------------------


@pytest.fixture
def config(tmp_path: Path) -> Config:
    """Config whose directories all live under ``tmp_path``."""
    return Config(
        output_dir=tmp_path / "output",
        templates_dir=tmp_path / "templates",
        integrations_dir=tmp_path / "integrations",
        generation=GenerationConfig(max_retries=3, retry_delay_ms=1000),
    )


@pytest.fixture
def template_store(config: Config) -> TemplateStore:
    """Template store seeded with the bundled defaults."""
    store = TemplateStore(config.templates_dir)
    store.initialize()
    return store


# ---------------------------------------------------------------------------
# Scripted generator
# ---------------------------------------------------------------------------


class ScriptedGenerator:
    """TextGenerator returning queued responses.

    Each queued item is either a string (returned as completion text) or an
    exception instance (raised). Once the queue is empty the last text
    response repeats. Every call is recorded in ``calls``.
    """

    def __init__(self, *responses: Any) -> None:
        self.responses = list(responses)
        self.calls: list[dict[str, Any]] = []
        self._last = ""

    async def complete(
        self,
        prompt: str,
        *,
        model: str,
        max_tokens: int = 4000,
        temperature: float = 0.7,
        system: str = "",
    ) -> Completion:
        self.calls.append(
            {
                "prompt": prompt,
                "model": model,
                "max_tokens": max_tokens,
                "temperature": temperature,
                "system": system,
            }
        )
        item = self.responses.pop(0) if self.responses else self._last
        if isinstance(item, Exception):
            raise item
        self._last = item
        return Completion(text=item, model=model)

    @property
    def prompts(self) -> list[str]:
        return [call["prompt"] for call in self.calls]


@pytest.fixture
def scripted_generator():
    """Factory for :class:`ScriptedGenerator` instances."""
    return ScriptedGenerator


@pytest.fixture
def sleeps() -> list[float]:
    """List that the ``recording_sleep`` fixture appends to."""
    return []


@pytest.fixture
def recording_sleep(sleeps: list[float]):
    async def _sleep(seconds: float) -> None:
        sleeps.append(seconds)

    return _sleep


@pytest.fixture
def make_dispatcher(recording_sleep):
    """Build a dispatcher around a scripted generator without real sleeping."""

    def _make(*responses: Any, **kwargs: Any) -> tuple[PromptDispatcher, ScriptedGenerator]:
        generator = ScriptedGenerator(*responses)
        generation = kwargs.pop("generation", GenerationConfig(max_retries=3, retry_delay_ms=1000))
        dispatcher = PromptDispatcher(
            generator, generation=generation, sleep=recording_sleep, **kwargs
        )
        return dispatcher, generator

    return _make


@pytest.fixture
def transport_error() -> TransportError:
    return TransportError("Cannot connect to Anthropic at https://api.anthropic.com")


@pytest.fixture
def empty_response_error() -> EmptyResponseError:
    return EmptyResponseError("Anthropic returned an empty response")


# ---------------------------------------------------------------------------
# Mock httpx
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_httpx_client():
    """Return a factory producing a mocked ``httpx.AsyncClient``.

    Usage::

        client = mock_httpx_client(json_body={"response": "hi"})
        with patch("httpx.AsyncClient", return_value=client):
            ...
    """

    def _make(json_body: Any = None, post_side_effect: Exception | None = None) -> AsyncMock:
        mock_response = MagicMock()
        mock_response.json.return_value = json_body if json_body is not None else {}
        mock_response.raise_for_status = MagicMock()

        mock_client = AsyncMock()
        if post_side_effect is not None:
            mock_client.post = AsyncMock(side_effect=post_side_effect)
        else:
            mock_client.post = AsyncMock(return_value=mock_response)
        mock_client.__aenter__ = AsyncMock(return_value=mock_client)
        mock_client.__aexit__ = AsyncMock(return_value=False)
        return mock_client

    return _make
