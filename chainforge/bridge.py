"""Cross-chain bridge protocol selection.

:func:`select_bridge_protocols` is a pure function: given the chains a project
wants to connect, it recommends bridge types, messaging protocols and a
per-pair configuration. It is advisory input for prompt construction and
never rejects its input.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from chainforge.chains import EVM_CHAINS, gas_token

GENERIC_BRIDGE_TYPE = "Generic Cross-Chain Bridge"
GENERIC_PROTOCOL = "Generic Bridge Protocol"
GENERAL_MESSAGING_PROTOCOL = "Chainlink CCIP"

EVM_SOLANA_PROTOCOLS = ("Wormhole", "Chainlink CCIP")
EVM_EVM_PROTOCOLS = ("Axelar Network", "LayerZero", "Hyperlane", "Connext")

# npm packages the generated bridge module should depend on, per protocol.
PROTOCOL_PACKAGES: dict[str, str] = {
    "Axelar Network": "@axelar-network/axelarjs-sdk",
    "LayerZero": "@layerzerolabs/lz-sdk",
    "Wormhole": "@wormhole-foundation/sdk",
    "Chainlink CCIP": "@chainlink/contracts-ccip",
    "Hyperlane": "@hyperlane-xyz/sdk",
    "Connext": "@connext/sdk",
}

# Canonical bridges between ethereum and one of its L2s/sidechains.
# Value: (primary protocol, backup protocol, bridge type, protocol name).
_CANONICAL_BRIDGES: dict[str, tuple[str, str, str, str]] = {
    "polygon": ("Polygon PoS Bridge", "LayerZero", "Polygon PoS Bridge", "Polygon PoS"),
    "arbitrum": ("Arbitrum Bridge", "LayerZero", "Arbitrum Bridge", "Arbitrum Bridge"),
    "avalanche": ("Avalanche Bridge", "Axelar Network", "Avalanche Bridge", "Avalanche Bridge"),
}


class BridgeConfiguration(BaseModel):
    """Recommended settings for bridging one pair of chains."""

    primary_protocol: str
    backup_protocol: str
    gas_token: str
    estimated_fee: str
    confirmation_blocks: int
    time_estimate: str


class BridgeSelection(BaseModel):
    """Everything the selector recommends for a chain set."""

    chains: list[str] = Field(default_factory=list)
    bridge_types: list[str] = Field(default_factory=list)
    protocols: list[str] = Field(default_factory=list)
    configurations: dict[str, BridgeConfiguration] = Field(default_factory=dict)

    @property
    def packages(self) -> list[str]:
        """SDK packages for the selected protocols that have one."""
        return [PROTOCOL_PACKAGES[p] for p in self.protocols if p in PROTOCOL_PACKAGES]


def _unique(items: list[str]) -> list[str]:
    return list(dict.fromkeys(items))


def _confirmations(*chains: str) -> int:
    return 12 if "ethereum" in chains else 5


def _evm_pair_protocols(first: str, second: str) -> tuple[str, str]:
    pair = {first, second}
    if "ethereum" in pair:
        other = (pair - {"ethereum"}).pop() if len(pair) == 2 else ""
        if other in _CANONICAL_BRIDGES:
            primary, backup, _, _ = _CANONICAL_BRIDGES[other]
            return primary, backup
    return "LayerZero", "Axelar Network"


def select_bridge_protocols(chains: list[str]) -> BridgeSelection:
    """Recommend bridge types, protocols and per-pair configuration.

    Duplicate chains are ignored; order of first appearance is kept for pair
    keys. Any input, including an empty list, yields a result: when no known
    combination applies the selection falls back to a generic bridge.
    """
    chains = _unique(list(chains))
    evm_chains = [c for c in chains if c in EVM_CHAINS]
    has_solana = "solana" in chains

    bridge_types: list[str] = []
    protocols: list[str] = []
    configurations: dict[str, BridgeConfiguration] = {}

    if evm_chains and has_solana:
        bridge_types.append("EVM-Solana Bridge")
        protocols.extend(EVM_SOLANA_PROTOCOLS)
        for evm_chain in evm_chains:
            configurations[f"{evm_chain}-solana"] = BridgeConfiguration(
                primary_protocol="Wormhole",
                backup_protocol="Chainlink CCIP",
                gas_token=gas_token(evm_chain),
                estimated_fee="0.001",
                confirmation_blocks=_confirmations(evm_chain),
                time_estimate="10-30 minutes",
            )

    if len(evm_chains) > 1:
        bridge_types.append("EVM-to-EVM Bridge")
        protocols.extend(EVM_EVM_PROTOCOLS)
        for i, first in enumerate(evm_chains):
            for second in evm_chains[i + 1 :]:
                primary, backup = _evm_pair_protocols(first, second)
                configurations[f"{first}-{second}"] = BridgeConfiguration(
                    primary_protocol=primary,
                    backup_protocol=backup,
                    gas_token=gas_token(first),
                    estimated_fee="0.0005",
                    confirmation_blocks=_confirmations(first, second),
                    time_estimate="5-15 minutes",
                )

    if "ethereum" in chains:
        for chain, (_, _, bridge_type, protocol) in _CANONICAL_BRIDGES.items():
            if chain in chains:
                bridge_types.append(bridge_type)
                protocols.append(protocol)

    protocols.append(GENERAL_MESSAGING_PROTOCOL)

    if not bridge_types:
        bridge_types.append(GENERIC_BRIDGE_TYPE)
        protocols.append(GENERIC_PROTOCOL)
        configurations["-".join(chains) or "generic"] = BridgeConfiguration(
            primary_protocol=GENERIC_PROTOCOL,
            backup_protocol=GENERAL_MESSAGING_PROTOCOL,
            gas_token=gas_token(chains[0]) if chains else "ETH",
            estimated_fee="0.001",
            confirmation_blocks=_confirmations(*chains),
            time_estimate="10-30 minutes",
        )

    return BridgeSelection(
        chains=chains,
        bridge_types=bridge_types,
        protocols=_unique(protocols),
        configurations=configurations,
    )


# Configuration items each protocol's JSON config is expected to cover.
PROTOCOL_CONFIG_REQUIREMENTS: dict[str, list[str]] = {
    "Axelar Network": [
        "Gateway contract addresses",
        "Gas service configuration",
        "Supported token mappings",
        "Chain IDs and RPC endpoints",
    ],
    "LayerZero": [
        "Endpoint contract addresses",
        "Chain ID mappings",
        "Application configuration",
        "Gas and fee settings",
    ],
    "Wormhole": [
        "Core bridge contract addresses",
        "Token Bridge configuration",
        "Message passing configuration",
        "Chain ID mappings",
    ],
    "Chainlink CCIP": [
        "Router contract addresses",
        "Chain selector mappings",
        "Supported tokens",
        "Fee calculation configuration",
    ],
    "Polygon PoS": [
        "Root chain contract addresses",
        "Child chain contract addresses",
        "Checkpoint and validator configuration",
        "Predefined token mappings",
    ],
}

GENERIC_CONFIG_REQUIREMENTS = [
    "Contract addresses",
    "Chain ID or identifier mappings",
    "Supported assets and operations",
    "Security and validation parameters",
]


def protocol_config_requirements(protocol: str) -> list[str]:
    """Items a generated configuration for *protocol* must include."""
    return PROTOCOL_CONFIG_REQUIREMENTS.get(protocol, GENERIC_CONFIG_REQUIREMENTS)
