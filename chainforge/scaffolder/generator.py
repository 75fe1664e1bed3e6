"""Main project generation orchestrator.

Takes a :class:`ProjectSpec` and produces a complete Web3 project directory:
integration references, chain-specific dependencies and config files, the
project tree (from a template or generated), the main contract, the wallet
connector component, chain utilities, optional bridge code and a README.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field
from rich.console import Console

from chainforge.bridge import select_bridge_protocols
from chainforge.chains import (
    NETWORKS,
    SUPPORTED_BLOCKCHAINS,
    UnsupportedBlockchainError,
    is_evm,
)
from chainforge.config import Config, FrameworkCapabilities
from chainforge.llm_client import GenerationError
from chainforge.prompting.dispatcher import ContentGenerator, PromptDispatcher
from chainforge.prompting.enhancer import BlockchainEnhancer
from chainforge.prompting.parsing import ParseError
from chainforge.scaffolder.integrations import RepoFetcher
from chainforge.scaffolder.materializer import materialize, substitute_variables
from chainforge.scaffolder.renderer import TemplateRenderer
from chainforge.scaffolder.store import (
    InvalidTemplateError,
    TemplateNotFoundError,
    TemplateStore,
)
from chainforge.utils import (
    load_json,
    print_error,
    print_info,
    print_success,
    print_warning,
    sanitize_name,
    save_json,
    write_text,
)

console = Console()

# Written when neither a template nor generation yields a structure.
BASIC_STRUCTURE: dict[str, Any] = {
    "contracts": {},
    "frontend": {
        "src": {"components": {}, "pages": {}, "styles": {}},
        "public": {},
    },
    "scripts": {},
    "README.md": "",
}

# project type -> (EVM template stem, EVM file, Solana template stem, Solana file)
CONTRACT_FILES: dict[str, tuple[str, str, str, str]] = {
    "token": ("ERC20", "Token.sol", "SPL-Token", "token.rs"),
    "nft": ("ERC721", "NFT.sol", "Metaplex-NFT", "nft.rs"),
}

BASE_DEPENDENCIES: dict[str, dict[str, str]] = {
    "common": {"dotenv": "^16.4.5", "react": "^18.2.0", "react-dom": "^18.2.0"},
    "evm": {"ethers": "^6.13.0", "web3": "^4.10.0", "wagmi": "^2.12.0", "viem": "^2.21.0"},
    "solana": {
        "@solana/web3.js": "^1.95.0",
        "@solana/wallet-adapter-react": "^0.15.35",
        "@solana/wallet-adapter-wallets": "^0.19.32",
        "@solana/wallet-adapter-react-ui": "^0.9.35",
    },
}

TYPE_DEPENDENCIES: dict[tuple[str, str], dict[str, str]] = {
    ("token", "evm"): {"@openzeppelin/contracts": "^5.0.2"},
    ("nft", "evm"): {"@openzeppelin/contracts": "^5.0.2", "ipfs-http-client": "^60.0.1"},
    ("dapp", "evm"): {"@openzeppelin/contracts": "^5.0.2"},
    ("token", "solana"): {"@solana/spl-token": "^0.4.8", "@coral-xyz/anchor": "^0.30.1"},
    ("nft", "solana"): {
        "@metaplex-foundation/js": "^0.20.1",
        "@metaplex-foundation/mpl-token-metadata": "^3.2.1",
        "@coral-xyz/anchor": "^0.30.1",
    },
    ("dapp", "solana"): {
        "@coral-xyz/anchor": "^0.30.1",
        "@solana/buffer-layout": "^4.0.1",
        "borsh": "^2.0.0",
    },
}

DEV_DEPENDENCIES: dict[str, dict[str, str]] = {
    "common": {"eslint": "^8.57.0", "prettier": "^3.3.0"},
    "evm": {"hardhat": "^2.22.0", "@nomicfoundation/hardhat-toolbox": "^5.0.0"},
    "solana": {"@types/bn.js": "^5.1.5"},
}

FRAMEWORK_DEPENDENCIES: dict[str, dict[str, str]] = {
    "langchain": {"langchain": "^0.2.0"},
    "solana-web3": {"@solana/web3.js": "^1.95.0"},
}

SOLIDITY_VERSION = "0.8.20"

# Written in place of content that could not be generated.
CONTRACT_STUB = """\
// SPDX-License-Identifier: MIT
pragma solidity ^{{ solidity_version }};

// Failed to generate contract: {{ reason }}
// Please replace with your contract code
"""

PROGRAM_STUB = """\
// Failed to generate program: {{ reason }}
// Please replace with your Anchor program code
"""

COMPONENT_STUB = """\
// Failed to generate component: {{ reason }}
import React from 'react';

const {{ name | pascal_case }} = () => {
  return <div>{{ name }}</div>;
};

export default {{ name | pascal_case }};
"""


class ProjectGenerationError(Exception):
    """Raised when a generation step fails irrecoverably."""

    def __init__(self, step: str, message: str) -> None:
        self.step = step
        super().__init__(f"{step}: {message}")


class ProjectParams(BaseModel):
    """Optional knobs that end up in bindings and contract templates."""

    token_name: str | None = None
    token_symbol: str | None = None
    network: str = "devnet"
    initial_supply: str = "1000000"
    collection_name: str = "MyNFT"
    max_supply: str = "10000"
    mint_price: str = "10000000000000000"
    base_uri: str = "https://example.com/metadata/"
    additional_requirements: str = ""


class ProjectSpec(BaseModel):
    """Everything needed to generate one project."""

    name: str = Field(..., min_length=1)
    description: str = ""
    type: Literal["token", "nft", "dapp"] = "token"
    blockchain: str | None = None
    params: ProjectParams = Field(default_factory=ProjectParams)
    repos_to_clone: list[str] = Field(default_factory=list)
    bridge_chains: list[str] = Field(default_factory=list)


def _family(blockchain: str) -> str:
    return "solana" if blockchain == "solana" else "evm"


def build_bindings(spec: ProjectSpec, blockchain: str) -> dict[str, str]:
    """Variable bindings for Template Tree content."""
    params = spec.params
    return {
        "ProjectName": spec.name,
        "ProjectDescription": spec.description,
        "TokenName": params.token_name or spec.name,
        "TokenSymbol": params.token_symbol or spec.name[:3].upper(),
        "Network": params.network,
        "Blockchain": blockchain,
    }


def contract_bindings(params: ProjectParams) -> dict[str, str]:
    """Variable bindings for contract templates."""
    return {
        "TokenName": params.token_name or "MyToken",
        "TokenSymbol": params.token_symbol or "MTK",
        "InitialSupply": params.initial_supply,
        "CollectionName": params.collection_name,
        "MaxSupply": params.max_supply,
        "MintPrice": params.mint_price,
        "BaseURI": params.base_uri,
    }


class ProjectGenerator:
    """Generates Web3 projects from a :class:`ProjectSpec`.

    Collaborators are injected; only *config* is required. Contract prompts
    go through a :class:`BlockchainEnhancer` unless *enhance* is false. Without a
    dispatcher every AI step falls back to templates or stubs, and without a
    fetcher integration repositories are skipped.
    """

    def __init__(
        self,
        config: Config,
        dispatcher: PromptDispatcher | None = None,
        store: TemplateStore | None = None,
        fetcher: RepoFetcher | None = None,
        renderer: TemplateRenderer | None = None,
        enhance: bool = True,
    ) -> None:
        self.config = config
        self.dispatcher = dispatcher
        self.store = store or TemplateStore(config.templates_dir)
        self.fetcher = fetcher
        self.renderer = renderer or TemplateRenderer()
        self.enhance = enhance

    def initialize(self) -> None:
        """Prepare directories and seed the template store."""
        self.config.ensure_directories()
        self.store.initialize()

    # -- Public API --------------------------------------------------------

    async def generate(self, spec: ProjectSpec) -> Path:
        """Generate the project and return its root directory.

        Raises:
            ProjectGenerationError: For an unsupported blockchain.
            MaterializationError: If the project tree cannot be written.
        """
        blockchain = spec.blockchain or self.config.default_blockchain
        if blockchain not in SUPPORTED_BLOCKCHAINS:
            raise ProjectGenerationError("validate", f"Unsupported blockchain: {blockchain}")

        project_dir = self.config.project_path(sanitize_name(spec.name))
        await asyncio.to_thread(project_dir.mkdir, parents=True, exist_ok=True)
        console.print(
            f"  Generating [bold]{blockchain}[/bold] {spec.type} project "
            f"[bold]{spec.name}[/bold] in {project_dir}"
        )

        capabilities = await self._fetch_integrations(project_dir, spec, blockchain)
        dispatcher = self.dispatcher.with_capabilities(capabilities) if self.dispatcher else None
        frameworks = capabilities.for_blockchain(blockchain)

        await self._configure_dependencies(project_dir, spec, blockchain, frameworks)
        await self._render_chain_config(project_dir, spec, blockchain)

        content: ContentGenerator | None = dispatcher
        if dispatcher is not None and self.enhance:
            content = BlockchainEnhancer(dispatcher, blockchain)

        structure = await self._resolve_structure(spec, blockchain, content)
        result = await materialize(
            structure,
            project_dir,
            {**contract_bindings(spec.params), **build_bindings(spec, blockchain)},
            self.store,
        )
        console.print(
            f"  [green]+[/green] Wrote {len(result.files)} files, "
            f"{len(result.directories)} directories"
        )

        contract_file = await self._write_contract(project_dir, spec, blockchain, content)
        await self._write_wallet_connector(project_dir, spec, blockchain, content)
        await self._write_chain_utilities(project_dir, spec, blockchain, frameworks)
        bridge = await self._write_bridge(project_dir, spec, dispatcher)

        await self.renderer.render_to_file(
            "README.md.j2",
            project_dir / "README.md",
            {
                "name": spec.name,
                "description": spec.description,
                "type": spec.type,
                "blockchain": blockchain,
                "network": spec.params.network,
                "contract_file": contract_file,
                "frameworks": frameworks,
                "bridge": bridge,
            },
        )
        print_success(f"Project generated at {project_dir}")
        return project_dir

    # -- Integrations ------------------------------------------------------

    def repos_for(self, spec: ProjectSpec, blockchain: str) -> list[str]:
        """Repositories to fetch: the requested ones plus enabled frameworks."""
        repos = list(spec.repos_to_clone)
        if self.config.use_langchain:
            repos.append("langchain")
        if self.config.use_solana_web3 and blockchain == "solana":
            repos.append("solana-web3")
        if spec.type == "dapp" and blockchain == "ethereum" and repos:
            repos.append("scaffold-eth-2")
        return list(dict.fromkeys(repos))

    async def _fetch_integrations(
        self, project_dir: Path, spec: ProjectSpec, blockchain: str
    ) -> FrameworkCapabilities:
        repos = self.repos_for(spec, blockchain)
        if not repos or self.fetcher is None:
            return FrameworkCapabilities()

        print_info(f"Fetching integrations: {', '.join(repos)}")
        report = await self.fetcher.clone_many(repos)
        integrations_dir = project_dir / "integrations"

        for name, path in report.cloned.items():
            await asyncio.to_thread(
                write_text,
                integrations_dir / f"{name}.ref",
                f"Integration Path: {path}\n"
                f"To use this integration, see the documentation in: {path}\n",
            )
        if report.errors:
            await save_json(report.errors, integrations_dir / "clone-errors.log")

        capabilities = FrameworkCapabilities(
            langchain=self.config.use_langchain and "langchain" in report.cloned,
            solana_web3=self.config.use_solana_web3 and "solana-web3" in report.cloned,
        )
        await save_json(capabilities.model_dump(), integrations_dir / "framework-config.json")
        return capabilities

    # -- Dependencies and config files -------------------------------------

    async def _configure_dependencies(
        self,
        project_dir: Path,
        spec: ProjectSpec,
        blockchain: str,
        frameworks: list[str],
    ) -> dict[str, Any]:
        family = _family(blockchain)
        dependencies = {
            **BASE_DEPENDENCIES["common"],
            **BASE_DEPENDENCIES[family],
            **TYPE_DEPENDENCIES.get((spec.type, family), {}),
        }
        for framework in frameworks:
            dependencies.update(FRAMEWORK_DEPENDENCIES.get(framework, {}))
        dev_dependencies = {**DEV_DEPENDENCIES["common"], **DEV_DEPENDENCIES[family]}

        package_path = project_dir / "package.json"
        if package_path.is_file():
            package = load_json(package_path)
        else:
            package = {
                "name": project_dir.name,
                "version": "0.1.0",
                "private": True,
                "description": spec.description,
                "scripts": {"dev": "next dev", "build": "next build", "start": "next start"},
                "keywords": ["web3", blockchain, spec.type],
                "license": "MIT",
            }
        package["dependencies"] = {**package.get("dependencies", {}), **dependencies}
        package["devDependencies"] = {**package.get("devDependencies", {}), **dev_dependencies}
        await save_json(package, package_path)

        console.print(
            f"  [green]+[/green] Added {len(dependencies)} dependencies and "
            f"{len(dev_dependencies)} development dependencies"
        )
        return package

    async def _render_chain_config(
        self, project_dir: Path, spec: ProjectSpec, blockchain: str
    ) -> list[Path]:
        context = self._chain_context(spec, blockchain)
        if blockchain == "solana":
            config_file = await self.renderer.render_to_file(
                "solana-program.config.js.j2", project_dir / "solana-program.config.js", context
            )
        else:
            config_file = await self.renderer.render_to_file(
                "hardhat.config.js.j2", project_dir / "hardhat.config.js", context
            )
        env_file = await self.renderer.render_to_file(
            "env.example.j2", project_dir / ".env.example", context
        )
        return [config_file, env_file]

    def _chain_context(self, spec: ProjectSpec, blockchain: str) -> dict[str, Any]:
        networks = NETWORKS.get(blockchain, {})
        default_network = (
            spec.params.network if spec.params.network in networks else next(iter(networks), "")
        )
        return {
            "blockchain": blockchain,
            "networks": {key: info.model_dump() for key, info in networks.items()},
            "default_network": default_network,
            "solidity_version": SOLIDITY_VERSION,
            "project_name": spec.name,
            "network": spec.params.network,
        }

    # -- Structure ---------------------------------------------------------

    async def _resolve_structure(
        self,
        spec: ProjectSpec,
        blockchain: str,
        generator: ContentGenerator | None,
    ) -> dict[str, Any]:
        template = self.store.select_project_template(spec.type, blockchain)
        if template is not None:
            try:
                console.print(f"  Using project template [bold]{template}[/bold]")
                return self.store.load_project_template(template)
            except (TemplateNotFoundError, InvalidTemplateError) as exc:
                console.print(f"[yellow]Project template unusable: {exc}[/yellow]")

        if generator is not None:
            console.print("  No matching template found, generating project structure...")
            try:
                return await generator.generate_project_structure(
                    f"{spec.type} project: {spec.description}", blockchain
                )
            except (GenerationError, ParseError) as exc:
                print_warning(f"Structure generation failed: {exc}")

        console.print("  [yellow]Falling back to the basic project structure[/yellow]")
        return json.loads(json.dumps(BASIC_STRUCTURE))

    # -- Contract and components -------------------------------------------

    async def _write_contract(
        self,
        project_dir: Path,
        spec: ProjectSpec,
        blockchain: str,
        generator: ContentGenerator | None,
    ) -> str | None:
        if spec.type not in CONTRACT_FILES:
            return None
        evm_stem, evm_file, solana_stem, solana_file = CONTRACT_FILES[spec.type]
        stem, filename = (solana_stem, solana_file) if blockchain == "solana" else (evm_stem, evm_file)

        content = await self._contract_content(spec, blockchain, stem, generator)
        await asyncio.to_thread(write_text, project_dir / "contracts" / filename, content)
        return filename

    async def _contract_content(
        self,
        spec: ProjectSpec,
        blockchain: str,
        stem: str,
        generator: ContentGenerator | None,
    ) -> str:
        template = f"{stem}.sol"
        if is_evm(blockchain) and self.store.has_template("contracts", template):
            content = self.store.get_template_content("contracts", template)
            return substitute_variables(content, contract_bindings(spec.params))

        reason = "no generator configured"
        if generator is not None:
            try:
                return await generator.generate_contract(
                    spec.description,
                    spec.type,
                    blockchain=blockchain,
                    network=spec.params.network,
                    additional_requirements=spec.params.additional_requirements or None,
                )
            except (GenerationError, UnsupportedBlockchainError) as exc:
                reason = str(exc)
                print_error(f"Failed to generate {stem} contract: {exc}")

        stub = PROGRAM_STUB if blockchain == "solana" else CONTRACT_STUB
        return self.renderer.render_string(
            stub, {"reason": reason, "solidity_version": SOLIDITY_VERSION}
        )

    async def _write_wallet_connector(
        self,
        project_dir: Path,
        spec: ProjectSpec,
        blockchain: str,
        generator: ContentGenerator | None,
    ) -> Path:
        name = "WalletConnector"
        content = await self._component_content(name, spec, blockchain, generator)
        target = project_dir / "frontend" / "src" / "components" / f"{name}.jsx"
        await asyncio.to_thread(write_text, target, content)
        return target

    async def _component_content(
        self,
        name: str,
        spec: ProjectSpec,
        blockchain: str,
        generator: ContentGenerator | None,
    ) -> str:
        template = f"{name}.jsx"
        if self.store.has_template("frontend", template):
            content = self.store.get_template_content("frontend", template)
            return substitute_variables(
                content, {"Network": spec.params.network, "Blockchain": blockchain}
            )

        reason = "no generator configured"
        if generator is not None:
            try:
                return await generator.generate_frontend(
                    f"Component: {name}",
                    spec.type,
                    blockchain=blockchain,
                    network=spec.params.network,
                    component_name=name,
                    additional_requirements=spec.params.additional_requirements or None,
                )
            except (GenerationError, UnsupportedBlockchainError) as exc:
                reason = str(exc)
                print_error(f"Failed to generate {name} component: {exc}")

        return self.renderer.render_string(COMPONENT_STUB, {"reason": reason, "name": name})

    async def _write_chain_utilities(
        self,
        project_dir: Path,
        spec: ProjectSpec,
        blockchain: str,
        frameworks: list[str],
    ) -> list[Path]:
        context = self._chain_context(spec, blockchain)
        src_dir = project_dir / "src"
        written = [
            await self.renderer.render_to_file(
                "chain_utils.js.j2", src_dir / "utils" / f"{blockchain}.js", context
            )
        ]
        if "langchain" in frameworks:
            written.append(
                await self.renderer.render_to_file(
                    "langchain-integration.js.j2",
                    src_dir / "ai" / "langchain-integration.js",
                    context,
                )
            )
        if "solana-web3" in frameworks:
            written.append(
                await self.renderer.render_to_file(
                    "solana-web3-integration.js.j2",
                    src_dir / "solana" / "web3-integration.js",
                    context,
                )
            )
        return written

    # -- Bridge ------------------------------------------------------------

    async def _write_bridge(
        self,
        project_dir: Path,
        spec: ProjectSpec,
        dispatcher: PromptDispatcher | None,
    ) -> dict[str, Any] | None:
        if not spec.bridge_chains:
            return None

        selection = select_bridge_protocols(spec.bridge_chains)
        bridge_dir = project_dir / "bridge"
        await save_json(selection.model_dump(), bridge_dir / "bridge-config.json")

        if dispatcher is not None:
            try:
                code = await dispatcher.generate_bridge_code(spec.bridge_chains)
            except (GenerationError, ValueError) as exc:
                print_warning(f"Bridge code generation skipped: {exc}")
            else:
                await asyncio.to_thread(write_text, bridge_dir / "bridge.js", code)
        return {"chains": selection.chains, "protocols": selection.protocols}
