"""Prompt construction for generation requests.

Every builder in this module is pure string concatenation: a preamble chosen
per blockchain, a block of structured facts from the chain registry, optional
additional requirements, closing guidance for the chain family, and a
framework-integration notice when the caller says an integration is
available. Nothing here touches the network or the filesystem.
"""

from __future__ import annotations

import json
import textwrap

from rich.console import Console

from chainforge.chains import ContractTypeInfo, NetworkInfo, is_evm

console = Console()

# ---------------------------------------------------------------------------
# Preambles
# ---------------------------------------------------------------------------

_EVM_BEST_PRACTICES = (
    "Make sure to follow best practices such as the checks-effects-interactions pattern, "
    "reentrancy guards, and proper access control."
)

CONTRACT_PREAMBLES: dict[str, str] = {
    "ethereum": (
        "You are an expert Ethereum developer specializing in smart contract creation. "
        "Generate a secure, gas-optimized Ethereum smart contract based on the following "
        f"requirements. {_EVM_BEST_PRACTICES}\n\n"
    ),
    "solana": (
        "You are an expert Solana developer specializing in program creation. "
        "Generate a secure, optimized Solana program based on the following requirements. "
        "When applicable, use the Anchor framework for improved security and development "
        "experience.\n\n"
    ),
    "bnbchain": (
        "You are an expert BNB Chain developer specializing in smart contract creation. "
        "Generate a secure, gas-optimized BNB Chain smart contract based on the following "
        f"requirements. {_EVM_BEST_PRACTICES} BNB Chain is EVM-compatible and uses similar "
        "patterns to Ethereum but with different gas economics.\n\n"
    ),
    "base": (
        "You are an expert Base developer specializing in smart contract creation. "
        "Generate a secure, gas-optimized Base smart contract based on the following "
        "requirements. Base is an Ethereum L2 built on the OP Stack, so it's fully "
        f"EVM-compatible. {_EVM_BEST_PRACTICES}\n\n"
    ),
    "polygon": (
        "You are an expert Polygon developer specializing in smart contract creation. "
        "Generate a secure, gas-optimized Polygon smart contract based on the following "
        "requirements. Polygon is an Ethereum sidechain with high throughput and low fees. "
        f"{_EVM_BEST_PRACTICES} Consider Polygon's gas optimizations and transaction "
        "throughput when designing your solution.\n\n"
    ),
    "avalanche": (
        "You are an expert Avalanche developer specializing in smart contract creation. "
        "Generate a secure, gas-optimized Avalanche C-Chain smart contract based on the "
        "following requirements. Avalanche C-Chain is EVM-compatible with high throughput "
        f"and fast finality. {_EVM_BEST_PRACTICES} Consider Avalanche's subnet architecture "
        "and consensus mechanism when designing your solution.\n\n"
    ),
    "arbitrum": (
        "You are an expert Arbitrum developer specializing in smart contract creation. "
        "Generate a secure, gas-optimized Arbitrum smart contract based on the following "
        "requirements. Arbitrum is an Ethereum L2 using Optimistic Rollups for high "
        f"throughput and lower fees. {_EVM_BEST_PRACTICES} Consider Arbitrum's L1-to-L2 "
        "messaging system and delayed finality model when designing your solution.\n\n"
    ),
}

FRONTEND_PREAMBLES: dict[str, str] = {
    "ethereum": (
        "You are an expert Web3 frontend developer specializing in Ethereum dApps. "
        "Create a modern, responsive React component that interfaces with Ethereum using "
        "ethers.js/web3.js based on the following specifications:\n\n"
    ),
    "solana": (
        "You are an expert Web3 frontend developer specializing in Solana dApps. "
        "Create a modern, responsive React component that interfaces with Solana using "
        "@solana/web3.js based on the following specifications:\n\n"
    ),
    "bnbchain": (
        "You are an expert Web3 frontend developer specializing in BNB Chain dApps. "
        "Create a modern, responsive React component that interfaces with BNB Chain using "
        "ethers.js/web3.js based on the following specifications:\n\n"
    ),
    "base": (
        "You are an expert Web3 frontend developer specializing in Base dApps. "
        "Create a modern, responsive React component that interfaces with Base using "
        "ethers.js/web3.js/viem based on the following specifications:\n\n"
    ),
    "polygon": (
        "You are an expert Web3 frontend developer specializing in Polygon dApps. "
        "Create a modern, responsive React component that interfaces with Polygon using "
        "ethers.js/web3.js and @maticnetwork/maticjs based on the following specifications. "
        "Consider Polygon's high transaction throughput and low latency when designing your "
        "UI/UX flow.\n\n"
    ),
    "avalanche": (
        "You are an expert Web3 frontend developer specializing in Avalanche dApps. "
        "Create a modern, responsive React component that interfaces with Avalanche C-Chain "
        "using ethers.js/web3.js and @avalabs/avalanchejs based on the following "
        "specifications. Consider Avalanche's fast finality and cross-subnet capabilities "
        "when designing your UI/UX flow.\n\n"
    ),
    "arbitrum": (
        "You are an expert Web3 frontend developer specializing in Arbitrum dApps. "
        "Create a modern, responsive React component that interfaces with Arbitrum using "
        "ethers.js/web3.js and @arbitrum/sdk based on the following specifications. "
        "Consider Arbitrum's L2 characteristics and optimistic rollup confirmation times "
        "when designing your UI/UX flow.\n\n"
    ),
}

GENERIC_CONTRACT_PREAMBLE = (
    "You are an expert Web3 developer specializing in smart contract creation. "
    "Generate a secure, optimized smart contract based on the following requirements:\n\n"
)

GENERIC_FRONTEND_PREAMBLE = (
    "You are an expert Web3 frontend developer. Create a modern, responsive React "
    "component that interfaces with blockchain using the following specifications:\n\n"
)

PROJECT_STRUCTURE_PREAMBLE = (
    "You are an expert in Web3 project architecture. "
    "Create a comprehensive project structure for the following Web3 application:\n\n"
)

TEST_FILE_PREAMBLE = (
    "You are an expert Web3 developer specializing in testing smart contracts. "
    "Generate a comprehensive test file for the following blockchain and test framework. "
    "Include tests for all major functionality, edge cases, and security considerations:\n\n"
)

DEPLOYMENT_SCRIPT_PREAMBLE = (
    "You are an expert Web3 developer specializing in smart contract deployment. "
    "Generate a deployment script for the following blockchain and network. "
    "Include proper error handling, gas optimization, and deployment verification:\n\n"
)

MULTICHAIN_CONFIG_PREAMBLE = (
    "You are an expert Web3 architect specializing in multi-chain applications. "
    "Generate a configuration for a multi-chain application supporting the following "
    "blockchains. Include network configurations, contract addresses, and cross-chain "
    "communication strategies:\n\n"
)

CROSS_CHAIN_PREAMBLE = (
    "You are a professional cross-chain development expert. "
)

_STRUCTURE_FORMAT = textwrap.dedent("""\
    Return the structure as a single JSON object inside a ```json fenced block.
    Directories are objects, files are null (or a short string of initial content).
    Example: {"contracts": {"Token.sol": null}, "README.md": null}
    """)

_BRIDGE_FEATURES = textwrap.dedent("""\
    Please generate a complete bridge module with the following features:
    1. Functions to transfer assets between these blockchains (supporting ERC20, ERC721, and native tokens)
    2. Cross-chain messaging functionality (synchronous and asynchronous modes)
    3. State validation and security checks (including fraud proofs and optimistic rollback mechanisms)
    4. Error handling and recovery mechanisms (including transaction retry and rollback)
    5. Necessary configuration and initialization code
    6. Liquidity management and fee handling
    7. Cross-chain event listening and processing
    """)

_BRIDGE_CLOSING = textwrap.dedent("""\
    The code should be modular and easy to integrate into existing projects. Please provide detailed comments, usage examples, and error handling mechanisms.
    The generated code should include a main bridge class and protocol-specific adapter classes to easily switch between different bridge protocols.
    Also, please include a simple CLI tool for testing and demonstrating bridge functionality.
    """)


def contract_preamble(blockchain: str) -> str:
    """Preamble for contract generation; warns and falls back when none exists."""
    if blockchain in CONTRACT_PREAMBLES:
        return CONTRACT_PREAMBLES[blockchain]
    console.print(
        f"[yellow]No specific template found for {blockchain}, using default template[/yellow]"
    )
    return GENERIC_CONTRACT_PREAMBLE


def frontend_preamble(blockchain: str) -> str:
    if blockchain in FRONTEND_PREAMBLES:
        return FRONTEND_PREAMBLES[blockchain]
    console.print(
        f"[yellow]No specific template found for {blockchain}, using default template[/yellow]"
    )
    return GENERIC_FRONTEND_PREAMBLE


# ---------------------------------------------------------------------------
# Shared fragments
# ---------------------------------------------------------------------------


def framework_notice(blockchain: str, frameworks: list[str]) -> str:
    """Notice appended when optional framework integrations are available."""
    if not frameworks:
        return ""
    notice = (
        "\n\nAdditional Framework Integration:\n"
        "This project should leverage the following integrated frameworks: "
        f"{', '.join(frameworks)}.\n"
    )
    if blockchain == "solana" and "solana-web3" in frameworks:
        notice += (
            "Use @solana/web3.js for Solana blockchain interactions, wallet connectivity, "
            "and transaction handling.\n"
        )
    if "langchain" in frameworks:
        notice += (
            "Use LangChain for enhanced AI capabilities, prompting, and workflow management.\n"
        )
    return notice


def contract_closing(blockchain: str) -> str:
    closing = (
        "\nPlease generate a secure, well-documented smart contract with appropriate error "
        "handling and security best practices. "
    )
    if is_evm(blockchain):
        closing += (
            "Ensure the contract is gas-optimized and follows Ethereum security best practices "
            "including reentrancy protection and proper access control."
        )
    elif blockchain == "solana":
        closing += "Ensure the program follows Solana's account model and security best practices."
    return closing


def frontend_closing(blockchain: str) -> str:
    closing = (
        "\nPlease generate clean, responsive UI components with proper Web3 wallet integration "
        "and robust error handling. "
    )
    if is_evm(blockchain):
        closing += (
            "Include transaction confirmation feedback and gas estimation where appropriate. "
            "Handle network switching and chain ID validation."
        )
    elif blockchain == "solana":
        closing += (
            "Implement proper transaction confirmation and signature verification. "
            "Handle RPC connection errors and network switching."
        )
    return closing


def wallet_integration(blockchain: str) -> str:
    if blockchain == "solana":
        return "Integrate with Phantom, Solflare and other Solana wallets using @solana/wallet-adapter"
    if is_evm(blockchain):
        return "Integrate with MetaMask and other EVM wallets using ethers.js or web3.js"
    return "Integrate with the most common wallets for this blockchain"


def _requirements(additional_requirements: str | None) -> str:
    if not additional_requirements:
        return ""
    return f"\nAdditional Requirements: {additional_requirements}\n"


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def build_contract_prompt(
    description: str,
    blockchain: str,
    contract_type: ContractTypeInfo,
    network: NetworkInfo | None = None,
    additional_requirements: str | None = None,
    frameworks: list[str] | None = None,
) -> str:
    """Assemble the full prompt for smart contract generation."""
    prompt = contract_preamble(blockchain)
    prompt += f"Contract Type: {contract_type.name}\n"
    prompt += f"Blockchain: {blockchain}\n"
    prompt += f"Project Description: {description}\n\n"

    prompt += "Technical Details:\n"
    if contract_type.standards:
        prompt += f"- Standards: {', '.join(contract_type.standards)}\n"
    if contract_type.interfaces:
        prompt += f"- Interfaces: {', '.join(contract_type.interfaces)}\n"
    if contract_type.programs:
        prompt += f"- Programs: {', '.join(contract_type.programs)}\n"
    if contract_type.libraries:
        prompt += f"- Libraries: {', '.join(contract_type.libraries)}\n"
    elif contract_type.frameworks:
        prompt += f"- Frameworks: {', '.join(contract_type.frameworks)}\n"

    if network is not None:
        prompt += f"\nNetwork: {network.name}\n"
        if network.chain_id is not None:
            prompt += f"- Chain ID: {network.chain_id}\n"

    prompt += _requirements(additional_requirements)
    prompt += contract_closing(blockchain)
    prompt += framework_notice(blockchain, frameworks or [])
    return prompt


def build_frontend_prompt(
    description: str,
    blockchain: str,
    project_type: ContractTypeInfo,
    network: NetworkInfo | None = None,
    framework: str = "react",
    component_name: str | None = None,
    additional_requirements: str | None = None,
    frameworks: list[str] | None = None,
) -> str:
    """Assemble the full prompt for frontend component generation."""
    prompt = frontend_preamble(blockchain)
    prompt += f"Project Type: {project_type.name}\n"
    prompt += f"Blockchain: {blockchain}\n"
    prompt += f"Framework: {framework}\n"
    prompt += f"Project Description: {description}\n\n"

    prompt += "Technical Details:\n"
    if project_type.frontend_libraries:
        prompt += f"- Frontend Libraries: {', '.join(project_type.frontend_libraries)}\n"
    prompt += f"- Wallet Integration: {wallet_integration(blockchain)}\n"

    if component_name:
        prompt += f"\nComponent Name: {component_name}\n"

    if network is not None:
        prompt += f"\nNetwork: {network.name}\n"
        if blockchain == "solana":
            prompt += f"- Cluster URL: {network.rpc_url}\n"
        else:
            if network.chain_id is not None:
                prompt += f"- Chain ID: {network.chain_id}\n"
            prompt += f"- RPC URL: {network.rpc_url}\n"
        prompt += f"- Explorer: {network.explorer_url}\n"

    prompt += _requirements(additional_requirements)
    prompt += frontend_closing(blockchain)
    prompt += framework_notice(blockchain, frameworks or [])
    return prompt


def build_project_structure_prompt(
    description: str,
    blockchain: str,
    frameworks: list[str] | None = None,
) -> str:
    prompt = PROJECT_STRUCTURE_PREAMBLE
    prompt += f"Project Description: {description}\n"
    prompt += f"Blockchain: {blockchain}\n\n"
    prompt += (
        "Please provide a comprehensive directory and file structure suitable for this "
        "Web3 project.\n"
    )
    prompt += _STRUCTURE_FORMAT
    prompt += framework_notice(blockchain, frameworks or [])
    return prompt


def build_test_file_prompt(
    blockchain: str, framework: str, contract_code: str | None = None
) -> str:
    prompt = TEST_FILE_PREAMBLE
    prompt += f"Blockchain: {blockchain}\n"
    prompt += f"Test Framework: {framework}\n"
    if contract_code:
        prompt += f"Contract Code:\n```\n{contract_code}\n```\n"
    return prompt


def build_deployment_script_prompt(
    blockchain: str,
    contract_code: str,
    testnet: str | None = None,
    mainnet: str | None = None,
) -> str:
    prompt = DEPLOYMENT_SCRIPT_PREAMBLE
    prompt += f"Blockchain: {blockchain}\n"
    if testnet:
        prompt += f"Testnet: {testnet}\n"
    if mainnet:
        prompt += f"Mainnet: {mainnet}\n"
    prompt += f"Contract Code:\n```\n{contract_code}\n```\n"
    return prompt


def build_multichain_config_prompt(primary: str, additional: list[str]) -> str:
    prompt = MULTICHAIN_CONFIG_PREAMBLE
    prompt += f"Primary Blockchain: {primary}\n"
    prompt += f"Additional Blockchains: {', '.join(additional)}\n"
    return prompt


def build_protocol_config_prompt(
    protocol: str, chains: list[str], requirements: list[str]
) -> str:
    prompt = CROSS_CHAIN_PREAMBLE
    prompt += (
        "Please generate specific configurations for the following protocol and blockchains:\n\n"
    )
    prompt += f"Protocol: {protocol}\n"
    prompt += f"Blockchains: {', '.join(chains)}\n\n"
    prompt += f"Please generate detailed configuration for {protocol}, including:\n"
    for index, item in enumerate(requirements, start=1):
        prompt += f"{index}. {item}\n"
    prompt += "\nPlease return the configuration in JSON format.\n"
    return prompt


def build_bridge_prompt(
    chains: list[str],
    bridge_types: list[str],
    protocols: list[str],
    packages: list[str],
    configurations: dict[str, dict],
    protocol_configs: dict[str, dict],
) -> str:
    """Assemble the prompt for a cross-chain bridge module."""
    prompt = CROSS_CHAIN_PREAMBLE
    prompt += "Please generate cross-chain bridge code for the following blockchains:\n\n"
    prompt += f"Blockchains: {', '.join(chains)}\n\n"
    prompt += f"Bridge types: {', '.join(bridge_types)}\n\n"
    prompt += f"Protocols: {', '.join(protocols)}\n\n"
    prompt += _BRIDGE_FEATURES

    if packages:
        prompt += "\nPlease use the following cross-chain bridge libraries and protocols:\n"
        for package in packages:
            prompt += f"- {package}\n"

    prompt += "\nBasic bridge configuration information:\n"
    for pair, config in configurations.items():
        prompt += f"- {pair}: {json.dumps(config)}\n"

    if protocol_configs:
        prompt += "\nDetailed protocol configuration:\n"
        for protocol, config in protocol_configs.items():
            prompt += f"- {protocol}: {json.dumps(config)}\n"

    prompt += "\n" + _BRIDGE_CLOSING
    return prompt
