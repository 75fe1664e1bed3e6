"""chainforge configuration.

Centralised, typed configuration for project generation. All settings use
Pydantic v2 models so they can be validated at construction time and serialised
to/from JSON or environment variables without boiler-plate.

Core classes never read the environment themselves; they receive one of these
models through their constructor. :meth:`Config.from_env` is the single place
where environment variables are consulted.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field


class GenerationConfig(BaseModel):
    """Default call options for every outbound generation request."""

    model: str = Field(default="claude-3-sonnet-20240229")
    max_tokens: int = Field(default=4000, ge=1)
    temperature: float = Field(default=0.7, ge=0.0, le=1.0)
    max_retries: int = Field(default=3, ge=0, description="Retries after the first attempt")
    retry_delay_ms: int = Field(
        default=1000, ge=0, description="Base delay; doubled after every failed attempt"
    )


class LLMConfig(BaseModel):
    """Connection settings for the remote text-generation backend."""

    provider: Literal["anthropic", "ollama"] = Field(default="anthropic")
    api_key: str = Field(default="", repr=False)
    anthropic_url: str = Field(default="https://api.anthropic.com")
    anthropic_version: str = Field(default="2023-06-01")
    ollama_url: str = Field(default="http://localhost:11434")
    timeout: int = Field(default=120, ge=10, description="Per-request timeout in seconds")


class FrameworkCapabilities(BaseModel):
    """Which optional framework integrations are available to generated projects.

    Replaces probing the filesystem from inside prompt construction: whoever
    fetched the integrations decides these flags and hands them in.
    """

    langchain: bool = False
    solana_web3: bool = False

    def for_blockchain(self, blockchain: str) -> list[str]:
        """Return the integration names that apply to *blockchain*."""
        frameworks: list[str] = []
        if blockchain == "ethereum" and self.langchain:
            frameworks.append("langchain")
        elif blockchain == "solana" and self.solana_web3:
            frameworks.append("solana-web3")
        return frameworks


class Config(BaseModel):
    """Global chainforge configuration.

    Instances are typically created once by the caller and then passed to
    ``ProjectGenerator`` and ``PromptDispatcher``.
    """

    output_dir: Path = Field(default=Path("./output"))
    templates_dir: Path = Field(default=Path("./templates"))
    integrations_dir: Path = Field(default=Path("./integrations"))
    default_blockchain: str = Field(default="ethereum")
    use_langchain: bool = Field(default=False)
    use_solana_web3: bool = Field(default=False)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    generation: GenerationConfig = Field(default_factory=GenerationConfig)

    # ------------------------------------------------------------------
    # Derived paths
    # ------------------------------------------------------------------

    def project_path(self, directory_name: str) -> Path:
        """Path of a generated project inside the output directory."""
        return self.output_dir / directory_name

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path) -> Path:
        """Persist the configuration to a JSON file.

        The API key is excluded so saved configs can be shared safely.
        """
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(
            self.model_dump_json(indent=2, exclude={"llm": {"api_key"}}),
            encoding="utf-8",
        )
        return target

    @classmethod
    def load(cls, path: Path) -> "Config":
        """Load a previously-saved configuration from JSON."""
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    @classmethod
    def from_env(cls) -> "Config":
        """Build a ``Config`` from environment variables.

        Recognised variables (all optional):
            ANTHROPIC_API_KEY, CHAINFORGE_PROVIDER, CHAINFORGE_OLLAMA_URL,
            CHAINFORGE_TIMEOUT, CHAINFORGE_MODEL, CHAINFORGE_MAX_TOKENS,
            CHAINFORGE_TEMPERATURE, CHAINFORGE_MAX_RETRIES,
            CHAINFORGE_RETRY_DELAY_MS, CHAINFORGE_OUTPUT_DIR,
            CHAINFORGE_TEMPLATES_DIR, CHAINFORGE_INTEGRATIONS_DIR,
            CHAINFORGE_DEFAULT_BLOCKCHAIN, CHAINFORGE_USE_LANGCHAIN,
            CHAINFORGE_USE_SOLANA_WEB3.
        """
        llm_kwargs: dict[str, Any] = {}
        if os.environ.get("ANTHROPIC_API_KEY"):
            llm_kwargs["api_key"] = os.environ["ANTHROPIC_API_KEY"]
        if os.environ.get("CHAINFORGE_PROVIDER"):
            llm_kwargs["provider"] = os.environ["CHAINFORGE_PROVIDER"]
        if os.environ.get("CHAINFORGE_OLLAMA_URL"):
            llm_kwargs["ollama_url"] = os.environ["CHAINFORGE_OLLAMA_URL"]
        if os.environ.get("CHAINFORGE_TIMEOUT"):
            llm_kwargs["timeout"] = int(os.environ["CHAINFORGE_TIMEOUT"])

        gen_kwargs: dict[str, Any] = {}
        if os.environ.get("CHAINFORGE_MODEL"):
            gen_kwargs["model"] = os.environ["CHAINFORGE_MODEL"]
        if os.environ.get("CHAINFORGE_MAX_TOKENS"):
            gen_kwargs["max_tokens"] = int(os.environ["CHAINFORGE_MAX_TOKENS"])
        if os.environ.get("CHAINFORGE_TEMPERATURE"):
            gen_kwargs["temperature"] = float(os.environ["CHAINFORGE_TEMPERATURE"])
        if os.environ.get("CHAINFORGE_MAX_RETRIES"):
            gen_kwargs["max_retries"] = int(os.environ["CHAINFORGE_MAX_RETRIES"])
        if os.environ.get("CHAINFORGE_RETRY_DELAY_MS"):
            gen_kwargs["retry_delay_ms"] = int(os.environ["CHAINFORGE_RETRY_DELAY_MS"])

        return cls(
            output_dir=Path(os.environ.get("CHAINFORGE_OUTPUT_DIR", "./output")),
            templates_dir=Path(os.environ.get("CHAINFORGE_TEMPLATES_DIR", "./templates")),
            integrations_dir=Path(
                os.environ.get("CHAINFORGE_INTEGRATIONS_DIR", "./integrations")
            ),
            default_blockchain=os.environ.get("CHAINFORGE_DEFAULT_BLOCKCHAIN", "ethereum"),
            use_langchain=_env_flag("CHAINFORGE_USE_LANGCHAIN"),
            use_solana_web3=_env_flag("CHAINFORGE_USE_SOLANA_WEB3"),
            llm=LLMConfig(**llm_kwargs),
            generation=GenerationConfig(**gen_kwargs),
        )

    def ensure_directories(self) -> None:
        """Create the output, templates and integrations directories."""
        for directory in (self.output_dir, self.templates_dir, self.integrations_dir):
            directory.mkdir(parents=True, exist_ok=True)


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in ("1", "true", "yes", "on")
