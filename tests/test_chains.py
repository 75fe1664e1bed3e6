"""Unit tests for the chain registry (chainforge.chains).

Tests cover:
- Chain families and is_evm
- gas_token lookup and default
- get_network
- get_contract_type (known, unknown chain, unknown type)
"""

from __future__ import annotations

import pytest

from chainforge.chains import (
    CONTRACT_TYPES,
    EVM_CHAINS,
    NETWORKS,
    PROJECT_TYPES,
    SUPPORTED_BLOCKCHAINS,
    UnsupportedBlockchainError,
    gas_token,
    get_contract_type,
    get_network,
    is_evm,
)


class TestChainFamilies:
    @pytest.mark.unit
    def test_solana_is_not_evm(self):
        assert is_evm("solana") is False

    @pytest.mark.unit
    @pytest.mark.parametrize("chain", EVM_CHAINS)
    def test_evm_chains(self, chain: str):
        assert is_evm(chain) is True

    @pytest.mark.unit
    def test_every_supported_chain_is_registered(self):
        for chain in SUPPORTED_BLOCKCHAINS:
            assert chain in NETWORKS
            assert set(CONTRACT_TYPES[chain]) == set(PROJECT_TYPES)


class TestGasToken:
    @pytest.mark.unit
    @pytest.mark.parametrize(
        "chain, token",
        [
            ("ethereum", "ETH"),
            ("bnbchain", "BNB"),
            ("polygon", "MATIC"),
            ("avalanche", "AVAX"),
            ("solana", "SOL"),
        ],
    )
    def test_known(self, chain: str, token: str):
        assert gas_token(chain) == token

    @pytest.mark.unit
    def test_unknown_defaults_to_matic(self):
        assert gas_token("unknown-chain") == "MATIC"


class TestGetNetwork:
    @pytest.mark.unit
    def test_ethereum_mainnet(self):
        network = get_network("ethereum", "mainnet")
        assert network is not None
        assert network.chain_id == 1

    @pytest.mark.unit
    def test_solana_devnet_has_no_chain_id(self):
        network = get_network("solana", "devnet")
        assert network is not None
        assert network.chain_id is None
        assert "devnet" in network.rpc_url

    @pytest.mark.unit
    def test_unknown_network(self):
        assert get_network("ethereum", "devnet") is None
        assert get_network("unknown", "mainnet") is None


class TestGetContractType:
    @pytest.mark.unit
    def test_ethereum_token(self):
        info = get_contract_type("ethereum", "token")
        assert info.standards == ["ERC20"]
        assert "@openzeppelin/contracts" in info.libraries

    @pytest.mark.unit
    def test_solana_nft(self):
        info = get_contract_type("solana", "nft")
        assert info.name == "Metaplex NFT"
        assert "Token Metadata Program" in info.programs

    @pytest.mark.unit
    def test_bnbchain_uses_bep20(self):
        assert get_contract_type("bnbchain", "token").standards == ["BEP20"]

    @pytest.mark.unit
    def test_unknown_chain(self):
        with pytest.raises(UnsupportedBlockchainError, match="Unsupported blockchain"):
            get_contract_type("dogechain", "token")

    @pytest.mark.unit
    def test_unknown_type(self):
        with pytest.raises(UnsupportedBlockchainError, match="game"):
            get_contract_type("ethereum", "game")

    @pytest.mark.unit
    def test_error_is_value_error(self):
        with pytest.raises(ValueError):
            get_contract_type("dogechain", "token")
