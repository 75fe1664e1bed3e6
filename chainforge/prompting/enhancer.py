"""Blockchain-aware decoration of a :class:`ContentGenerator`.

:class:`BlockchainEnhancer` wraps another generator and enriches contract
requests with design patterns and contract-type guidance before delegating.
It is composed explicitly; the wrapped generator is never modified.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel
from rich.console import Console

from chainforge.chains import is_evm
from chainforge.prompting.dispatcher import ContentGenerator

console = Console()


class DesignPattern(BaseModel):
    name: str
    description: str


_EVM_PATTERNS: dict[str, list[DesignPattern]] = {
    "security": [
        DesignPattern(
            name="Check-Effect-Interaction Mode",
            description=(
                "First perform all checks, then modify state, then interact with "
                "external contracts"
            ),
        ),
        DesignPattern(
            name="Reentrancy Lock",
            description="Prevent reentrancy attacks with locking mechanism",
        ),
    ],
    "optimization": [
        DesignPattern(
            name="Gas Optimization Storage Mode",
            description="Optimize storage layout to reduce gas consumption",
        ),
    ],
    "error_handling": [
        DesignPattern(
            name="Custom Error",
            description="Use custom error instead of require statement to save gas",
        ),
        DesignPattern(
            name="Try-Catch Mode",
            description="Use try-catch to handle external calls",
        ),
    ],
}

_SOLANA_PATTERNS: dict[str, list[DesignPattern]] = {
    "security": [
        DesignPattern(
            name="Account Verification Mode",
            description="Verify ownership and permissions of all incoming accounts",
        ),
    ],
    "optimization": [
        DesignPattern(
            name="Compute Budget Management",
            description="Manage compute budget for Solana transactions",
        ),
    ],
    "error_handling": [
        DesignPattern(
            name="Result Wrapper",
            description="Use Result type to wrap potentially error-prone operations",
        ),
    ],
}

_SECTION_TITLES = {
    "security": "Security Design Patterns",
    "optimization": "Optimization Design Patterns",
    "error_handling": "Error Handling Patterns",
}

_CONTRACT_GUIDANCE: dict[tuple[str, str], str] = {
    ("evm", "token"): (
        "Ensure complete ERC20 interface implementation, including transfer, "
        "authorization, and events."
    ),
    ("solana", "token"): (
        "Ensure following SPL Token standard, implement minting, transferring, and "
        "freezing functionality."
    ),
    ("evm", "nft"): (
        "Ensure complete ERC721 interface implementation, including metadata, transfer, "
        "and authorization functionality."
    ),
    ("solana", "nft"): (
        "Ensure following Metaplex NFT standard, implement metadata and minting functionality."
    ),
}


def _family(blockchain: str) -> str | None:
    if blockchain == "solana":
        return "solana"
    if is_evm(blockchain):
        return "evm"
    return None


def design_patterns(blockchain: str, kind: str) -> list[DesignPattern]:
    """Patterns of *kind* (security, optimization, error_handling) for a chain."""
    family = _family(blockchain)
    if family is None:
        console.print(f"[yellow]Blockchain {blockchain} design pattern not found[/yellow]")
        return []
    table = _SOLANA_PATTERNS if family == "solana" else _EVM_PATTERNS
    return list(table.get(kind, []))


def enhance_requirements(
    requirements: str | None, blockchain: str, contract_type: str
) -> str:
    """Append design patterns and contract-type guidance to *requirements*."""
    sections: list[str] = [requirements] if requirements else []
    for kind, title in _SECTION_TITLES.items():
        patterns = design_patterns(blockchain, kind)
        if patterns:
            lines = "\n".join(f"- {p.name}: {p.description}" for p in patterns)
            sections.append(f"{title}:\n{lines}")

    family = _family(blockchain)
    guidance = _CONTRACT_GUIDANCE.get((family or "", contract_type))
    if guidance:
        sections.append(guidance)
    return "\n\n".join(sections)


class BlockchainEnhancer:
    """Decorator adding blockchain design guidance to contract generation.

    Frontend and structure generation are forwarded untouched.
    """

    def __init__(self, base: ContentGenerator, default_blockchain: str = "ethereum") -> None:
        self.base = base
        self.default_blockchain = default_blockchain

    async def generate_contract(
        self,
        description: str,
        contract_type: str,
        blockchain: str | None = None,
        network: str = "devnet",
        additional_requirements: str | None = None,
    ) -> str:
        blockchain = blockchain or self.default_blockchain
        return await self.base.generate_contract(
            description,
            contract_type,
            blockchain=blockchain,
            network=network,
            additional_requirements=enhance_requirements(
                additional_requirements, blockchain, contract_type
            ),
        )

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
        return await self.base.generate_frontend(
            description,
            project_type,
            blockchain=blockchain,
            network=network,
            framework=framework,
            component_name=component_name,
            additional_requirements=additional_requirements,
        )

    async def generate_project_structure(
        self, description: str, blockchain: str | None = None
    ) -> dict[str, Any]:
        return await self.base.generate_project_structure(description, blockchain=blockchain)
