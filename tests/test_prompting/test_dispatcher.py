"""Unit tests for PromptDispatcher (chainforge.prompting.dispatcher).

Tests cover:
- Retry with exponential backoff (recorded sleeps, attempt counts)
- RetriesExhaustedError after max_retries + 1 attempts
- Non-retryable errors propagate immediately
- Code extraction and conversation window handling
- ConversationWindow eviction
- Generation operations (contract, frontend, structure, multichain config,
  protocol config, bridge code)
"""

from __future__ import annotations

from unittest.mock import patch

import pytest

from chainforge.chains import UnsupportedBlockchainError
from chainforge.config import Config, FrameworkCapabilities, GenerationConfig
from chainforge.llm_client import AnthropicClient, EmptyResponseError
from chainforge.prompting.dispatcher import (
    ContentGenerator,
    ConversationWindow,
    PromptDispatcher,
    RetriesExhaustedError,
)
from chainforge.prompting.parsing import ParseError


# ---------------------------------------------------------------------------
# Retry and backoff
# ---------------------------------------------------------------------------


class TestRetry:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_success_first_attempt(self, make_dispatcher, sleeps):
        dispatcher, generator = make_dispatcher("hello")
        result = await dispatcher.dispatch(dispatcher.request("hi"))
        assert result.text == "hello"
        assert result.attempts == 1
        assert sleeps == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_fail_twice_then_succeed(self, make_dispatcher, sleeps, transport_error):
        dispatcher, generator = make_dispatcher(transport_error, transport_error, "finally")
        result = await dispatcher.dispatch(dispatcher.request("hi"))
        assert result.text == "finally"
        assert result.attempts == 3
        assert len(result.errors) == 2
        assert sleeps == [1.0, 2.0]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_backoff_doubles_until_exhausted(
        self, make_dispatcher, sleeps, transport_error
    ):
        dispatcher, generator = make_dispatcher(*[transport_error] * 4)
        with pytest.raises(RetriesExhaustedError) as exc_info:
            await dispatcher.dispatch(dispatcher.request("hi"))

        assert exc_info.value.attempts == 4
        assert exc_info.value.last_error is transport_error
        assert len(generator.calls) == 4
        assert sleeps == [1.0, 2.0, 4.0]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_empty_response_is_retried(
        self, make_dispatcher, sleeps, empty_response_error
    ):
        dispatcher, _ = make_dispatcher(empty_response_error, "ok")
        assert await dispatcher.send("hi") == "ok"
        assert sleeps == [1.0]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_zero_retries(self, make_dispatcher, sleeps, transport_error):
        dispatcher, generator = make_dispatcher(
            transport_error, generation=GenerationConfig(max_retries=0)
        )
        with pytest.raises(RetriesExhaustedError) as exc_info:
            await dispatcher.send("hi")
        assert exc_info.value.attempts == 1
        assert sleeps == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_non_object_body_exhausts_retries(
        self, mock_httpx_client, recording_sleep, sleeps
    ):
        mock_client = mock_httpx_client(json_body=["not", "an", "object"])
        dispatcher = PromptDispatcher(
            AnthropicClient(api_key="sk-test"),
            generation=GenerationConfig(max_retries=3, retry_delay_ms=1000),
            sleep=recording_sleep,
        )
        with patch("httpx.AsyncClient", return_value=mock_client):
            with pytest.raises(RetriesExhaustedError) as exc_info:
                await dispatcher.send("hi")

        assert exc_info.value.attempts == 4
        assert isinstance(exc_info.value.last_error, EmptyResponseError)
        assert mock_client.post.await_count == 4
        assert sleeps == [1.0, 2.0, 4.0]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_custom_delay(self, make_dispatcher, sleeps, transport_error):
        dispatcher, _ = make_dispatcher(
            transport_error,
            transport_error,
            "ok",
            generation=GenerationConfig(max_retries=2, retry_delay_ms=250),
        )
        await dispatcher.send("hi")
        assert sleeps == [0.25, 0.5]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_other_errors_not_retried(self, make_dispatcher, sleeps):
        dispatcher, generator = make_dispatcher(RuntimeError("bug"), "never")
        with pytest.raises(RuntimeError):
            await dispatcher.send("hi")
        assert len(generator.calls) == 1
        assert sleeps == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_request_options_forwarded(self, make_dispatcher):
        dispatcher, generator = make_dispatcher("ok")
        await dispatcher.send("hi", model="claude-x", max_tokens=10, temperature=0.1)
        call = generator.calls[0]
        assert call["model"] == "claude-x"
        assert call["max_tokens"] == 10
        assert call["temperature"] == 0.1

    @pytest.mark.unit
    def test_request_none_overrides_keep_defaults(self, make_dispatcher):
        dispatcher, _ = make_dispatcher()
        request = dispatcher.request("hi", model=None)
        assert request.model == "claude-3-sonnet-20240229"


# ---------------------------------------------------------------------------
# Response handling
# ---------------------------------------------------------------------------


class TestResponseHandling:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_extract_code(self, make_dispatcher):
        dispatcher, _ = make_dispatcher("Here:\n```solidity\ncontract A {}\n```\nDone.")
        text = await dispatcher.send("hi", extract_code=True, code_languages=["solidity"])
        assert text == "contract A {}"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_extract_code_without_blocks_returns_text(self, make_dispatcher):
        dispatcher, _ = make_dispatcher("plain text")
        assert await dispatcher.send("hi", extract_code=True) == "plain text"

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_window_prefixes_prompt_and_records_exchange(self, make_dispatcher):
        dispatcher, generator = make_dispatcher("first answer", "second answer")
        window = ConversationWindow()

        await dispatcher.send("first question", window=window)
        assert generator.prompts[0] == "first question"
        assert window.messages == ["User: first question", "Assistant: first answer"]

        await dispatcher.send("second question", window=window)
        assert generator.prompts[1] == (
            "User: first question\n\nAssistant: first answer\n\nsecond question"
        )
        assert len(window) == 4


class TestConversationWindow:
    @pytest.mark.unit
    def test_evicts_oldest(self):
        window = ConversationWindow()
        for i in range(6):
            window.add_exchange(f"q{i}", f"a{i}")
        assert len(window) == 10
        assert window.messages[0] == "User: q1"
        assert window.messages[-1] == "Assistant: a5"

    @pytest.mark.unit
    def test_clear(self):
        window = ConversationWindow()
        window.add_exchange("q", "a")
        window.clear()
        assert len(window) == 0
        assert window.render() == ""


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


class TestConstruction:
    @pytest.mark.unit
    def test_from_config(self, config: Config):
        dispatcher = PromptDispatcher.from_config(config)
        assert isinstance(dispatcher.generator, AnthropicClient)
        assert dispatcher.generation is config.generation
        assert dispatcher.default_blockchain == "ethereum"

    @pytest.mark.unit
    def test_with_capabilities_shares_backend(self, make_dispatcher):
        dispatcher, generator = make_dispatcher()
        caps = FrameworkCapabilities(langchain=True)
        derived = dispatcher.with_capabilities(caps)
        assert derived is not dispatcher
        assert derived.generator is generator
        assert derived.capabilities is caps
        assert dispatcher.capabilities.langchain is False

    @pytest.mark.unit
    def test_satisfies_content_generator(self, make_dispatcher):
        dispatcher, _ = make_dispatcher()
        assert isinstance(dispatcher, ContentGenerator)


# ---------------------------------------------------------------------------
# Generation operations
# ---------------------------------------------------------------------------


class TestGenerateContract:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_extracts_solidity(self, make_dispatcher):
        dispatcher, generator = make_dispatcher(
            "```solidity\npragma solidity ^0.8.20;\ncontract Token {}\n```"
        )
        code = await dispatcher.generate_contract("A token", "token", blockchain="ethereum")
        assert code == "pragma solidity ^0.8.20;\ncontract Token {}"
        assert "Contract Type: ERC20 Token" in generator.prompts[0]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_uses_default_blockchain(self, make_dispatcher):
        dispatcher, generator = make_dispatcher("code", default_blockchain="solana")
        await dispatcher.generate_contract("Points", "token")
        assert "Blockchain: solana" in generator.prompts[0]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_capabilities_reach_prompt(self, make_dispatcher):
        dispatcher, generator = make_dispatcher(
            "code", capabilities=FrameworkCapabilities(langchain=True)
        )
        await dispatcher.generate_contract("A token", "token", blockchain="ethereum")
        assert "LangChain" in generator.prompts[0]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unknown_chain(self, make_dispatcher):
        dispatcher, generator = make_dispatcher("code")
        with pytest.raises(UnsupportedBlockchainError):
            await dispatcher.generate_contract("A token", "token", blockchain="cosmos")
        assert generator.calls == []


class TestGenerateFrontend:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_extracts_jsx(self, make_dispatcher):
        dispatcher, generator = make_dispatcher(
            "```jsx\nexport default function App() {}\n```"
        )
        code = await dispatcher.generate_frontend(
            "Wallet", "token", blockchain="ethereum", component_name="WalletConnector"
        )
        assert code == "export default function App() {}"
        assert "Component Name: WalletConnector" in generator.prompts[0]


class TestGenerateProjectStructure:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_parses_json(self, make_dispatcher):
        dispatcher, _ = make_dispatcher(
            '```json\n{"contracts": {"Token.sol": null}, "README.md": null}\n```'
        )
        tree = await dispatcher.generate_project_structure("token", "ethereum")
        assert tree == {"contracts": {"Token.sol": None}, "README.md": None}

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_parse_error_surfaces(self, make_dispatcher):
        dispatcher, _ = make_dispatcher("```json\n{not json\n```")
        with pytest.raises(ParseError):
            await dispatcher.generate_project_structure("token", "ethereum")


class TestScriptGeneration:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_test_file(self, make_dispatcher):
        dispatcher, generator = make_dispatcher(
            "Here are the tests:\n```javascript\ndescribe('Token', () => {});\n```"
        )
        code = await dispatcher.generate_test_file("ethereum", "hardhat", "contract A {}")
        assert code == "describe('Token', () => {});"
        assert "Test Framework: hardhat" in generator.prompts[0]
        assert "contract A {}" in generator.prompts[0]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_deployment_script(self, make_dispatcher):
        dispatcher, generator = make_dispatcher("```js\nasync function main() {}\n```")
        code = await dispatcher.generate_deployment_script(
            "polygon", "contract A {}", testnet="amoy"
        )
        assert code == "async function main() {}"
        assert "Testnet: amoy" in generator.prompts[0]
        assert "Mainnet:" not in generator.prompts[0]


class TestGenerateMultichainConfig:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_parsed(self, make_dispatcher):
        dispatcher, _ = make_dispatcher('```json\n{"networks": ["ethereum"]}\n```')
        config = await dispatcher.generate_multichain_config("ethereum", ["base"])
        assert config == {"networks": ["ethereum"]}

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_no_block_returns_raw(self, make_dispatcher):
        dispatcher, _ = make_dispatcher("no json here")
        config = await dispatcher.generate_multichain_config("ethereum", ["base", "solana"])
        assert config == {
            "raw_response": "no json here",
            "primary_blockchain": "ethereum",
            "additional_blockchains": ["base", "solana"],
        }

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_malformed_block_reports_parse_error(self, make_dispatcher):
        dispatcher, _ = make_dispatcher("```json\n{oops\n```")
        config = await dispatcher.generate_multichain_config("ethereum", ["base"])
        assert "parse_error" in config
        assert config["primary_blockchain"] == "ethereum"


class TestGenerateProtocolConfig:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_requires_two_chains(self, make_dispatcher):
        dispatcher, _ = make_dispatcher()
        with pytest.raises(ValueError):
            await dispatcher.generate_protocol_config("LayerZero", ["ethereum"])

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_parsed(self, make_dispatcher):
        dispatcher, generator = make_dispatcher('```json\n{"endpoint": "0x1"}\n```')
        config = await dispatcher.generate_protocol_config("LayerZero", ["ethereum", "base"])
        assert config == {"endpoint": "0x1"}
        assert "Endpoint contract addresses" in generator.prompts[0]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_malformed(self, make_dispatcher):
        dispatcher, _ = make_dispatcher("```json\n{bad\n```")
        config = await dispatcher.generate_protocol_config("LayerZero", ["ethereum", "base"])
        assert config["error"] == "Configuration parsing failed"
        assert "raw_response" in config

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_no_block(self, make_dispatcher):
        dispatcher, _ = make_dispatcher("just prose")
        config = await dispatcher.generate_protocol_config("LayerZero", ["ethereum", "base"])
        assert config == {"raw_response": "just prose"}


class TestGenerateBridgeCode:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_requires_two_distinct_chains(self, make_dispatcher):
        dispatcher, _ = make_dispatcher()
        with pytest.raises(ValueError):
            await dispatcher.generate_bridge_code(["ethereum", "ethereum"])

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_unknown_chain(self, make_dispatcher):
        dispatcher, generator = make_dispatcher()
        with pytest.raises(UnsupportedBlockchainError):
            await dispatcher.generate_bridge_code(["ethereum", "cosmos"])
        assert generator.calls == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_configs_then_bridge(self, make_dispatcher):
        dispatcher, generator = make_dispatcher(
            '```json\n{"wormhole": true}\n```',
            '```json\n{"ccip": true}\n```',
            "```javascript\nclass Bridge {}\n```",
        )
        code = await dispatcher.generate_bridge_code(["ethereum", "solana"])

        assert code == "class Bridge {}"
        assert len(generator.calls) == 3
        assert "Protocol: Wormhole" in generator.prompts[0]
        assert "Protocol: Chainlink CCIP" in generator.prompts[1]
        bridge_prompt = generator.prompts[2]
        assert '- Wormhole: {"wormhole": true}' in bridge_prompt
        assert "- @wormhole-foundation/sdk" in bridge_prompt

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_failed_protocol_config_is_skipped(
        self, make_dispatcher, transport_error
    ):
        dispatcher, generator = make_dispatcher(
            transport_error,
            '```json\n{"ccip": true}\n```',
            "```js\nclass Bridge {}\n```",
            generation=GenerationConfig(max_retries=0),
        )
        code = await dispatcher.generate_bridge_code(["ethereum", "solana"])

        assert code == "class Bridge {}"
        bridge_prompt = generator.prompts[-1]
        assert "- Wormhole:" not in bridge_prompt
        assert '- Chainlink CCIP: {"ccip": true}' in bridge_prompt
