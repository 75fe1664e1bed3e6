"""Known blockchains, their networks, and the project types each supports.

Everything here is static reference data consumed by prompt construction,
bridge selection, and project generation.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class NetworkInfo(BaseModel):
    """Connection details for one network of a blockchain."""

    name: str
    chain_id: int | None = None
    rpc_url: str = ""
    explorer_url: str = ""


class ContractTypeInfo(BaseModel):
    """What a project type (token, nft, dapp) means on a given blockchain."""

    name: str
    description: str = ""
    standards: list[str] = Field(default_factory=list)
    interfaces: list[str] = Field(default_factory=list)
    programs: list[str] = Field(default_factory=list)
    libraries: list[str] = Field(default_factory=list)
    frameworks: list[str] = Field(default_factory=list)
    frontend_libraries: list[str] = Field(default_factory=list)


class UnsupportedBlockchainError(ValueError):
    """Raised when a blockchain or project type is not in the registry."""


# ---------------------------------------------------------------------------
# Chain families
# ---------------------------------------------------------------------------

EVM_CHAINS: tuple[str, ...] = (
    "ethereum",
    "bnbchain",
    "base",
    "polygon",
    "avalanche",
    "arbitrum",
)

NON_EVM_CHAINS: tuple[str, ...] = ("solana",)

SUPPORTED_BLOCKCHAINS: tuple[str, ...] = EVM_CHAINS + NON_EVM_CHAINS

PROJECT_TYPES: tuple[str, ...] = ("token", "nft", "dapp")

GAS_TOKENS: dict[str, str] = {
    "ethereum": "ETH",
    "bnbchain": "BNB",
    "base": "ETH",
    "polygon": "MATIC",
    "avalanche": "AVAX",
    "arbitrum": "ETH",
    "solana": "SOL",
}


def is_evm(blockchain: str) -> bool:
    """Return ``True`` if *blockchain* shares the Ethereum execution model."""
    return blockchain in EVM_CHAINS


def gas_token(blockchain: str) -> str:
    """Native gas token symbol; unknown chains default to ``MATIC``."""
    return GAS_TOKENS.get(blockchain, "MATIC")


# ---------------------------------------------------------------------------
# Networks
# ---------------------------------------------------------------------------

NETWORKS: dict[str, dict[str, NetworkInfo]] = {
    "ethereum": {
        "mainnet": NetworkInfo(
            name="Ethereum Mainnet",
            chain_id=1,
            rpc_url="https://mainnet.infura.io/v3/${INFURA_API_KEY}",
            explorer_url="https://etherscan.io",
        ),
        "sepolia": NetworkInfo(
            name="Sepolia Testnet",
            chain_id=11155111,
            rpc_url="https://sepolia.infura.io/v3/${INFURA_API_KEY}",
            explorer_url="https://sepolia.etherscan.io",
        ),
        "goerli": NetworkInfo(
            name="Goerli Testnet",
            chain_id=5,
            rpc_url="https://goerli.infura.io/v3/${INFURA_API_KEY}",
            explorer_url="https://goerli.etherscan.io",
        ),
    },
    "solana": {
        "mainnet": NetworkInfo(
            name="Solana Mainnet",
            rpc_url="https://api.mainnet-beta.solana.com",
            explorer_url="https://explorer.solana.com",
        ),
        "devnet": NetworkInfo(
            name="Solana Devnet",
            rpc_url="https://api.devnet.solana.com",
            explorer_url="https://explorer.solana.com/?cluster=devnet",
        ),
        "testnet": NetworkInfo(
            name="Solana Testnet",
            rpc_url="https://api.testnet.solana.com",
            explorer_url="https://explorer.solana.com/?cluster=testnet",
        ),
    },
    "bnbchain": {
        "mainnet": NetworkInfo(
            name="BNB Chain Mainnet",
            chain_id=56,
            rpc_url="https://bsc-dataseed.binance.org",
            explorer_url="https://bscscan.com",
        ),
        "testnet": NetworkInfo(
            name="BNB Chain Testnet",
            chain_id=97,
            rpc_url="https://data-seed-prebsc-1-s1.binance.org:8545",
            explorer_url="https://testnet.bscscan.com",
        ),
    },
    "base": {
        "mainnet": NetworkInfo(
            name="Base Mainnet",
            chain_id=8453,
            rpc_url="https://mainnet.base.org",
            explorer_url="https://basescan.org",
        ),
        "sepolia": NetworkInfo(
            name="Base Sepolia Testnet",
            chain_id=84532,
            rpc_url="https://sepolia.base.org",
            explorer_url="https://sepolia.basescan.org",
        ),
    },
    "polygon": {
        "mainnet": NetworkInfo(
            name="Polygon Mainnet",
            chain_id=137,
            rpc_url="https://polygon-rpc.com",
            explorer_url="https://polygonscan.com",
        ),
        "amoy": NetworkInfo(
            name="Polygon Amoy Testnet",
            chain_id=80002,
            rpc_url="https://rpc-amoy.polygon.technology",
            explorer_url="https://amoy.polygonscan.com",
        ),
    },
    "avalanche": {
        "mainnet": NetworkInfo(
            name="Avalanche C-Chain",
            chain_id=43114,
            rpc_url="https://api.avax.network/ext/bc/C/rpc",
            explorer_url="https://snowtrace.io",
        ),
        "fuji": NetworkInfo(
            name="Avalanche Fuji Testnet",
            chain_id=43113,
            rpc_url="https://api.avax-test.network/ext/bc/C/rpc",
            explorer_url="https://testnet.snowtrace.io",
        ),
    },
    "arbitrum": {
        "mainnet": NetworkInfo(
            name="Arbitrum One",
            chain_id=42161,
            rpc_url="https://arb1.arbitrum.io/rpc",
            explorer_url="https://arbiscan.io",
        ),
        "sepolia": NetworkInfo(
            name="Arbitrum Sepolia",
            chain_id=421614,
            rpc_url="https://sepolia-rollup.arbitrum.io/rpc",
            explorer_url="https://sepolia.arbiscan.io",
        ),
    },
}


def get_network(blockchain: str, network: str) -> NetworkInfo | None:
    """Look up a network, returning ``None`` when either name is unknown."""
    return NETWORKS.get(blockchain, {}).get(network)


# ---------------------------------------------------------------------------
# Project types per chain
# ---------------------------------------------------------------------------

_OZ = ["@openzeppelin/contracts"]


def _evm_types(
    label: str,
    token_standard: str,
    nft_standard: str,
    frameworks: list[str],
    extra_frontend: list[str],
) -> dict[str, ContractTypeInfo]:
    frontend = ["ethers.js", "web3.js", "wagmi", *extra_frontend]
    return {
        "token": ContractTypeInfo(
            name=f"{label} {token_standard} Token".strip(),
            description=f"{token_standard} fungible token on {label}",
            standards=[token_standard],
            interfaces=[f"I{token_standard}"],
            libraries=_OZ,
            frontend_libraries=frontend,
        ),
        "nft": ContractTypeInfo(
            name=f"{label} {nft_standard} NFT Collection".strip(),
            description=f"{nft_standard} non-fungible token collection on {label}",
            standards=[nft_standard],
            interfaces=[f"I{nft_standard}", f"I{nft_standard}Metadata"],
            libraries=_OZ,
            frontend_libraries=frontend,
        ),
        "dapp": ContractTypeInfo(
            name=f"{label} dApp",
            description=f"Decentralized application on {label}",
            frameworks=frameworks,
            frontend_libraries=frontend,
        ),
    }


CONTRACT_TYPES: dict[str, dict[str, ContractTypeInfo]] = {
    "ethereum": {
        "token": ContractTypeInfo(
            name="ERC20 Token",
            description="Standard ERC20 fungible token",
            standards=["ERC20"],
            interfaces=["IERC20"],
            libraries=_OZ,
            frontend_libraries=["ethers.js", "web3.js", "wagmi", "useDapp"],
        ),
        "nft": ContractTypeInfo(
            name="ERC721 NFT Collection",
            description="Standard ERC721 non-fungible token collection",
            standards=["ERC721"],
            interfaces=["IERC721", "IERC721Metadata", "IERC721Enumerable"],
            libraries=_OZ,
            frontend_libraries=["ethers.js", "web3.js", "wagmi", "thirdweb"],
        ),
        "dapp": ContractTypeInfo(
            name="Ethereum dApp",
            description="Decentralized application on Ethereum",
            frameworks=["Hardhat", "Truffle"],
            frontend_libraries=["ethers.js", "web3.js", "wagmi", "viem"],
        ),
    },
    "solana": {
        "token": ContractTypeInfo(
            name="SPL Token",
            description="Solana Program Library token",
            standards=["SPL"],
            programs=["Token Program"],
            frameworks=["Anchor"],
            frontend_libraries=[
                "@solana/web3.js",
                "@solana/wallet-adapter",
                "@solana/spl-token",
            ],
        ),
        "nft": ContractTypeInfo(
            name="Metaplex NFT",
            description="Metaplex NFT standard on Solana",
            standards=["Metaplex"],
            programs=["Token Metadata Program"],
            frameworks=["Metaplex", "Anchor"],
            frontend_libraries=[
                "@solana/web3.js",
                "@solana/wallet-adapter",
                "@metaplex-foundation/js",
            ],
        ),
        "dapp": ContractTypeInfo(
            name="Solana dApp",
            description="Decentralized application on Solana",
            frameworks=["Anchor"],
            frontend_libraries=[
                "@solana/web3.js",
                "@solana/wallet-adapter",
                "@coral-xyz/anchor",
            ],
        ),
    },
    "bnbchain": _evm_types("BNB Chain", "BEP20", "BEP721", ["Hardhat", "Truffle"], []),
    "base": _evm_types("Base", "ERC20", "ERC721", ["Hardhat", "Foundry"], ["viem"]),
    "polygon": _evm_types(
        "Polygon", "ERC20", "ERC721", ["Hardhat", "Truffle"], ["@maticnetwork/maticjs"]
    ),
    "avalanche": _evm_types(
        "Avalanche", "ERC20", "ERC721", ["Hardhat", "AvalancheJS"], ["@avalabs/avalanchejs"]
    ),
    "arbitrum": _evm_types(
        "Arbitrum", "ERC20", "ERC721", ["Hardhat", "Foundry"], ["@arbitrum/sdk"]
    ),
}


def get_contract_type(blockchain: str, contract_type: str) -> ContractTypeInfo:
    """Return the registry entry for *contract_type* on *blockchain*.

    Raises:
        UnsupportedBlockchainError: If either the chain or the type is unknown.
    """
    if blockchain not in CONTRACT_TYPES:
        raise UnsupportedBlockchainError(f"Unsupported blockchain: {blockchain}")
    types = CONTRACT_TYPES[blockchain]
    if contract_type not in types:
        raise UnsupportedBlockchainError(
            f"Unsupported contract type '{contract_type}' for blockchain '{blockchain}'"
        )
    return types[contract_type]
