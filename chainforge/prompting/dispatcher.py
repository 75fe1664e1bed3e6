"""Prompt dispatch with bounded retry and exponential backoff.

:class:`PromptDispatcher` is the single path from a prompt to generated text.
Each call runs up to ``max_retries + 1`` attempts against a
:class:`~chainforge.llm_client.TextGenerator`, sleeping
``retry_delay_ms * 2 ** (attempt - 1)`` milliseconds between attempts. The
dispatcher also owns the higher-level generation operations (contracts,
frontends, project structures, bridge code) that build a prompt, dispatch it,
and post-process the response.
"""

from __future__ import annotations

import asyncio
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Protocol, runtime_checkable

from rich.console import Console

from chainforge.bridge import protocol_config_requirements, select_bridge_protocols
from chainforge.chains import (
    NETWORKS,
    UnsupportedBlockchainError,
    get_contract_type,
    get_network,
)
from chainforge.config import Config, FrameworkCapabilities, GenerationConfig
from chainforge.llm_client import (
    EmptyResponseError,
    GenerationError,
    TextGenerator,
    TransportError,
    create_client,
)
from chainforge.prompting import prompts
from chainforge.prompting.parsing import (
    ParseError,
    extract_code,
    extract_json_block,
    parse_project_structure,
)

console = Console()

CONTRACT_LANGUAGES = ["solidity", "sol", "rust", "rs"]
FRONTEND_LANGUAGES = ["jsx", "tsx", "javascript", "typescript", "js", "ts"]
SCRIPT_LANGUAGES = ["javascript", "typescript", "js", "ts", "solidity"]
BRIDGE_LANGUAGES = ["javascript", "typescript", "js", "ts"]

MAX_WINDOW_MESSAGES = 10


class RetriesExhaustedError(GenerationError):
    """Every attempt of a dispatch failed."""

    def __init__(self, attempts: int, last_error: Exception) -> None:
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"Failed to generate content after {attempts} attempts: {last_error}")


class ConversationWindow:
    """Caller-owned history of recent exchanges, capped at ten messages.

    Messages are stored as ``"User: ..."`` / ``"Assistant: ..."`` strings;
    the oldest are evicted first once the cap is reached.
    """

    def __init__(self, max_messages: int = MAX_WINDOW_MESSAGES) -> None:
        self._messages: deque[str] = deque(maxlen=max_messages)

    def __len__(self) -> int:
        return len(self._messages)

    @property
    def messages(self) -> list[str]:
        return list(self._messages)

    def add_exchange(self, prompt: str, response: str) -> None:
        self._messages.append(f"User: {prompt}")
        self._messages.append(f"Assistant: {response}")

    def render(self) -> str:
        return "\n\n".join(self._messages)

    def clear(self) -> None:
        self._messages.clear()


@dataclass
class DispatchRequest:
    """One prompt plus the call options used to send it."""

    prompt: str
    model: str
    max_tokens: int = 4000
    temperature: float = 0.7
    max_retries: int = 3
    retry_delay_ms: int = 1000
    system: str = ""
    extract_code: bool = False
    code_languages: list[str] | None = None
    window: ConversationWindow | None = None


@dataclass
class DispatchResult:
    """Generated text plus how many attempts it took."""

    text: str
    attempts: int
    model: str = ""
    errors: list[str] = field(default_factory=list)


@runtime_checkable
class ContentGenerator(Protocol):
    """The generation operations that callers compose or decorate."""

    async def generate_contract(
        self,
        description: str,
        contract_type: str,
        blockchain: str | None = None,
        network: str = "devnet",
        additional_requirements: str | None = None,
    ) -> str: ...

    async def generate_frontend(
        self,
        description: str,
        project_type: str,
        blockchain: str | None = None,
        network: str = "devnet",
        framework: str = "react",
        component_name: str | None = None,
        additional_requirements: str | None = None,
    ) -> str: ...

    async def generate_project_structure(
        self, description: str, blockchain: str | None = None
    ) -> dict[str, Any]: ...


Sleep = Callable[[float], Awaitable[Any]]


class PromptDispatcher:
    """Builds prompts, sends them with retry, and post-processes responses.

    Args:
        generator: Backend that turns a prompt into text.
        generation: Default call options for every request.
        capabilities: Optional framework integrations the prompts may mention.
        default_blockchain: Chain used when an operation is not given one.
        sleep: Awaitable taking seconds; replaced in tests to record backoff.
    """

    def __init__(
        self,
        generator: TextGenerator,
        generation: GenerationConfig | None = None,
        capabilities: FrameworkCapabilities | None = None,
        default_blockchain: str = "ethereum",
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.generator = generator
        self.generation = generation or GenerationConfig()
        self.capabilities = capabilities or FrameworkCapabilities()
        self.default_blockchain = default_blockchain
        self._sleep = sleep

    @classmethod
    def from_config(
        cls, config: Config, capabilities: FrameworkCapabilities | None = None
    ) -> "PromptDispatcher":
        """Create a dispatcher backed by the client selected in *config*."""
        return cls(
            create_client(config.llm),
            generation=config.generation,
            capabilities=capabilities,
            default_blockchain=config.default_blockchain,
        )

    def with_capabilities(self, capabilities: FrameworkCapabilities) -> "PromptDispatcher":
        """Return a dispatcher sharing this backend but using *capabilities*."""
        return PromptDispatcher(
            self.generator,
            generation=self.generation,
            capabilities=capabilities,
            default_blockchain=self.default_blockchain,
            sleep=self._sleep,
        )

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def request(self, prompt: str, **overrides: Any) -> DispatchRequest:
        """Build a :class:`DispatchRequest` from the configured defaults."""
        options: dict[str, Any] = {
            "model": self.generation.model,
            "max_tokens": self.generation.max_tokens,
            "temperature": self.generation.temperature,
            "max_retries": self.generation.max_retries,
            "retry_delay_ms": self.generation.retry_delay_ms,
        }
        options.update({k: v for k, v in overrides.items() if v is not None})
        return DispatchRequest(prompt=prompt, **options)

    async def dispatch(self, request: DispatchRequest) -> DispatchResult:
        """Send *request*, retrying transport failures and empty responses.

        Raises:
            RetriesExhaustedError: After ``max_retries + 1`` failed attempts.
        """
        prompt = request.prompt
        if request.window is not None and len(request.window):
            prompt = f"{request.window.render()}\n\n{request.prompt}"

        total = request.max_retries + 1
        errors: list[str] = []
        last_error: Exception | None = None

        for attempt in range(1, total + 1):
            try:
                completion = await self.generator.complete(
                    prompt,
                    model=request.model,
                    max_tokens=request.max_tokens,
                    temperature=request.temperature,
                    system=request.system,
                )
            except (TransportError, EmptyResponseError) as exc:
                last_error = exc
                errors.append(str(exc))
                console.print(f"[yellow]Attempt {attempt}/{total} failed: {exc}[/yellow]")
                if attempt <= request.max_retries:
                    wait_ms = request.retry_delay_ms * 2 ** (attempt - 1)
                    console.print(f"[dim]Retrying in {wait_ms}ms...[/dim]")
                    await self._sleep(wait_ms / 1000)
                continue

            text = completion.text
            if request.extract_code:
                text = extract_code(text, request.code_languages)
            if request.window is not None:
                request.window.add_exchange(request.prompt, text)
            return DispatchResult(
                text=text, attempts=attempt, model=completion.model, errors=errors
            )

        raise RetriesExhaustedError(total, last_error)

    async def send(self, prompt: str, **overrides: Any) -> str:
        """Dispatch *prompt* with default options and return just the text."""
        result = await self.dispatch(self.request(prompt, **overrides))
        return result.text

    # ------------------------------------------------------------------
    # Generation operations
    # ------------------------------------------------------------------

    async def generate_contract(
        self,
        description: str,
        contract_type: str,
        blockchain: str | None = None,
        network: str = "devnet",
        additional_requirements: str | None = None,
    ) -> str:
        """Generate smart contract (or Solana program) source code.

        Raises:
            UnsupportedBlockchainError: If the chain or contract type is unknown.
            RetriesExhaustedError: If the backend keeps failing.
        """
        blockchain = blockchain or self.default_blockchain
        type_info = get_contract_type(blockchain, contract_type)
        prompt = prompts.build_contract_prompt(
            description,
            blockchain,
            type_info,
            network=get_network(blockchain, network),
            additional_requirements=additional_requirements,
            frameworks=self.capabilities.for_blockchain(blockchain),
        )
        return await self.send(prompt, extract_code=True, code_languages=CONTRACT_LANGUAGES)

    async def generate_frontend(
        self,
        description: str,
        project_type: str,
        blockchain: str | None = None,
        network: str = "devnet",
        framework: str = "react",
        component_name: str | None = None,
        additional_requirements: str | None = None,
    ) -> str:
        """Generate a frontend component with wallet integration."""
        blockchain = blockchain or self.default_blockchain
        type_info = get_contract_type(blockchain, project_type)
        prompt = prompts.build_frontend_prompt(
            description,
            blockchain,
            type_info,
            network=get_network(blockchain, network),
            framework=framework,
            component_name=component_name,
            additional_requirements=additional_requirements,
            frameworks=self.capabilities.for_blockchain(blockchain),
        )
        return await self.send(prompt, extract_code=True, code_languages=FRONTEND_LANGUAGES)

    async def generate_project_structure(
        self, description: str, blockchain: str | None = None
    ) -> dict[str, Any]:
        """Ask for a project layout and parse it into a Template Tree.

        Raises:
            ParseError: If the response cannot be parsed unambiguously.
        """
        blockchain = blockchain or self.default_blockchain
        prompt = prompts.build_project_structure_prompt(
            description, blockchain, frameworks=self.capabilities.for_blockchain(blockchain)
        )
        response = await self.send(prompt)
        return parse_project_structure(response)

    async def generate_test_file(
        self, blockchain: str, framework: str, contract_code: str | None = None
    ) -> str:
        prompt = prompts.build_test_file_prompt(blockchain, framework, contract_code)
        return await self.send(prompt, extract_code=True, code_languages=SCRIPT_LANGUAGES)

    async def generate_deployment_script(
        self,
        blockchain: str,
        contract_code: str,
        testnet: str | None = None,
        mainnet: str | None = None,
    ) -> str:
        prompt = prompts.build_deployment_script_prompt(
            blockchain, contract_code, testnet=testnet, mainnet=mainnet
        )
        return await self.send(prompt, extract_code=True, code_languages=SCRIPT_LANGUAGES)

    async def generate_multichain_config(
        self, primary: str, additional: list[str]
    ) -> dict[str, Any]:
        """Generate a multi-chain configuration.

        Returns the parsed ```json block, or the raw response (plus a
        ``parse_error`` when the block was malformed) so callers can still
        show something useful.
        """
        prompt = prompts.build_multichain_config_prompt(primary, additional)
        response = await self.send(prompt)
        fallback: dict[str, Any] = {
            "raw_response": response,
            "primary_blockchain": primary,
            "additional_blockchains": list(additional),
        }
        try:
            parsed = extract_json_block(response)
        except ParseError as exc:
            console.print(f"[red]Failed to parse multi-chain configuration: {exc}[/red]")
            return {**fallback, "parse_error": str(exc)}
        return parsed if parsed is not None else fallback

    async def generate_protocol_config(self, protocol: str, chains: list[str]) -> dict[str, Any]:
        """Generate the JSON configuration for one bridge protocol.

        Raises:
            ValueError: Without a protocol name or with fewer than two chains.
        """
        if not protocol or len(chains) < 2:
            raise ValueError("Protocol name and at least two blockchains are required")
        prompt = prompts.build_protocol_config_prompt(
            protocol, chains, protocol_config_requirements(protocol)
        )
        response = await self.send(prompt)
        try:
            parsed = extract_json_block(response)
        except ParseError as exc:
            console.print(f"[red]Failed to parse {protocol} configuration: {exc}[/red]")
            return {"error": "Configuration parsing failed", "raw_response": response}
        if parsed is None:
            return {"raw_response": response}
        return parsed

    async def generate_bridge_code(self, chains: list[str]) -> str:
        """Generate a cross-chain bridge module for *chains*.

        Per-protocol configuration failures are reported and skipped; the
        bridge prompt is sent with whatever configurations succeeded.

        Raises:
            ValueError: With fewer than two chains.
            UnsupportedBlockchainError: If any chain is unknown.
        """
        chains = list(dict.fromkeys(chains))
        if len(chains) < 2:
            raise ValueError("At least two blockchains are required to generate bridge code")
        for chain in chains:
            if chain not in NETWORKS:
                raise UnsupportedBlockchainError(f"Unsupported blockchain: {chain}")

        selection = select_bridge_protocols(chains)
        protocol_configs: dict[str, dict] = {}
        for protocol in selection.protocols:
            console.print(f"[dim]Generating detailed configuration for {protocol}...[/dim]")
            try:
                protocol_configs[protocol] = await self.generate_protocol_config(
                    protocol, selection.chains
                )
            except GenerationError as exc:
                console.print(
                    f"[yellow]Error generating {protocol} configuration: {exc}[/yellow]"
                )

        prompt = prompts.build_bridge_prompt(
            selection.chains,
            selection.bridge_types,
            selection.protocols,
            selection.packages,
            {pair: cfg.model_dump() for pair, cfg in selection.configurations.items()},
            protocol_configs,
        )
        console.print("[dim]Generating cross-chain bridge code...[/dim]")
        return await self.send(prompt, extract_code=True, code_languages=BRIDGE_LANGUAGES)
