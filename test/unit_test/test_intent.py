"""
Test Intent Resolver

Natural-language resolution with a stubbed completion service, and the
completion HTTP client against httpx.MockTransport (no network).
"""

import json
import sys
from decimal import Decimal
from pathlib import Path
from unittest.mock import Mock

import httpx
import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from amm_adapter.protocols.nlp import CompletionAPI, IntentResolver, ParsedIntent
from amm_adapter.types import Operation, Token, TokenRegistry
from amm_adapter.errors import (
    CompletionServiceError,
    ConfigurationError,
    ErrorCode,
    InvalidInput,
    UnresolvedIntent,
)

WETH = "0x" + "1a" * 20
TEST = "0x" + "2b" * 20


@pytest.fixture
def registry():
    return TokenRegistry([Token(WETH, "WETH"), Token(TEST, "TEST")], weth_address=WETH)


def resolver_replying(reply: dict) -> IntentResolver:
    api = Mock(spec=CompletionAPI)
    api.complete_json.return_value = json.dumps(reply)
    return IntentResolver(api)


class TestResolve:
    def test_swap(self, registry):
        """'swap 10 WETH for TEST'"""
        print("Testing swap intent...")

        resolver = resolver_replying({
            "operation": "swap",
            "tokens": [{"symbol": "WETH", "amount": 10}, {"symbol": "TEST"}],
        })

        intent = resolver.resolve("swap 10 WETH for TEST", registry)

        assert intent.operation == Operation.SWAP
        assert [t.address for t in intent.tokens] == [WETH, TEST]
        assert intent.tokens[0].amount == Decimal("10")
        assert intent.tokens[1].amount is None

        pending = intent.to_pending()
        assert pending.amounts == ("10", None)

        print("  Swap intent: PASSED")

    def test_redeem_percentage(self, registry):
        """'redeem 50% of my WETH-TEST position'"""
        resolver = resolver_replying({
            "operation": "redeem",
            "tokens": [{"symbol": "WETH", "amount": 50}, {"symbol": "TEST"}],
        })

        intent = resolver.resolve("redeem 50% of my WETH-TEST position", registry)

        assert intent.operation == Operation.REDEEM
        assert intent.to_pending().percentage == Decimal("50")

    def test_redeem_fraction(self, registry):
        resolver = resolver_replying({
            "operation": "redeem",
            "tokens": [{"symbol": "WETH", "amount": 0.5}, {"symbol": "TEST"}],
        })
        assert resolver.resolve("redeem half", registry).to_pending().percentage == Decimal("50")

    def test_redeem_without_amount(self, registry):
        resolver = resolver_replying({"operation": "redeem", "tokens": [{"symbol": "WETH"}, {"symbol": "TEST"}]})
        assert resolver.resolve("redeem WETH TEST", registry).to_pending().percentage is None

    def test_unknown_symbol(self, registry):
        resolver = resolver_replying({
            "operation": "swap",
            "tokens": [{"symbol": "DOGE", "amount": 1}, {"symbol": "TEST"}],
        })

        with pytest.raises(UnresolvedIntent) as exc_info:
            resolver.resolve("swap 1 DOGE for TEST", registry)
        assert exc_info.value.missing == "address:DOGE"

    def test_eth_maps_to_weth(self, registry):
        resolver = resolver_replying({
            "operation": "swap",
            "tokens": [{"symbol": "TEST", "amount": 100}, {"symbol": "eth"}],
        })
        intent = resolver.resolve("swap 100 test for eth", registry)
        assert intent.tokens[1].symbol == "WETH"
        assert intent.tokens[1].address == WETH

    def test_eth_maps_to_weth_by_symbol(self):
        """Injected registry without a configured WETH address"""
        registry = TokenRegistry([Token(WETH, "WETH"), Token(TEST, "TEST")])
        resolver = resolver_replying({
            "operation": "swap",
            "tokens": [{"symbol": "eth", "amount": 5}, {"symbol": "TEST"}],
        })
        intent = resolver.resolve("swap 5 eth for test", registry)
        assert intent.tokens[0].address == WETH
        assert intent.tokens[0].amount == Decimal("5")

    def test_deposit_needs_both_amounts(self, registry):
        resolver = resolver_replying({
            "operation": "deposit",
            "tokens": [{"symbol": "WETH", "amount": 5}, {"symbol": "TEST"}],
        })
        with pytest.raises(UnresolvedIntent) as exc_info:
            resolver.resolve("deposit 5 WETH and some TEST", registry)
        assert "TEST" in exc_info.value.missing

    def test_swap_needs_amount(self, registry):
        resolver = resolver_replying({"operation": "swap", "tokens": [{"symbol": "WETH"}, {"symbol": "TEST"}]})
        with pytest.raises(UnresolvedIntent):
            resolver.resolve("swap WETH for TEST", registry)

    def test_needs_two_tokens(self, registry):
        resolver = resolver_replying({"operation": "swap", "tokens": [{"symbol": "WETH", "amount": 1}]})
        with pytest.raises(UnresolvedIntent):
            resolver.resolve("swap 1 WETH", registry)

    def test_same_token_twice(self, registry):
        resolver = resolver_replying({
            "operation": "swap",
            "tokens": [{"symbol": "WETH", "amount": 1}, {"symbol": "ETH"}],
        })
        with pytest.raises(UnresolvedIntent):
            resolver.resolve("swap 1 WETH for ETH", registry)

    def test_redeem_amount_over_100(self, registry):
        resolver = resolver_replying({
            "operation": "redeem",
            "tokens": [{"symbol": "WETH", "amount": 150}, {"symbol": "TEST"}],
        })
        with pytest.raises(UnresolvedIntent):
            resolver.resolve("redeem 150 WETH TEST", registry)

    def test_slippage(self, registry):
        resolver = resolver_replying({
            "operation": "swap",
            "tokens": [{"symbol": "WETH", "amount": 1}, {"symbol": "TEST"}],
            "slippage": 1.5,
        })
        assert resolver.resolve("swap 1 WETH for TEST with 1.5% slippage", registry).slippage_bps == 150

    def test_empty_text_skips_service(self, registry):
        api = Mock(spec=CompletionAPI)
        with pytest.raises(InvalidInput):
            IntentResolver(api).resolve("   ", registry)
        api.complete_json.assert_not_called()

    def test_reply_outside_schema(self, registry):
        resolver = resolver_replying({"operation": "stake", "tokens": []})
        with pytest.raises(CompletionServiceError):
            resolver.resolve("stake 5 WETH", registry)

    def test_prompt_lists_registry_symbols(self, registry):
        resolver = resolver_replying({
            "operation": "swap",
            "tokens": [{"symbol": "WETH", "amount": 1}, {"symbol": "TEST"}],
        })
        resolver.resolve("swap 1 WETH for TEST", registry)

        system_prompt, user_text, schema_name, schema = resolver._api.complete_json.call_args[0]
        assert "- WETH" in system_prompt and "- TEST" in system_prompt
        assert user_text == "swap 1 WETH for TEST"
        assert schema == ParsedIntent.model_json_schema()


def chat_reply(content, status_code=200):
    body = {"choices": [{"message": {"role": "assistant", "content": content}}]}
    return httpx.Response(status_code, json=body)


class TestCompletionAPI:
    def test_missing_key(self, monkeypatch):
        from amm_adapter.protocols.nlp import api as api_module
        monkeypatch.setattr(api_module.global_config.nlp, "api_key", None)
        with pytest.raises(ConfigurationError):
            CompletionAPI()

    def test_request_shape(self):
        captured = {}

        def handler(request):
            captured["url"] = str(request.url)
            captured["auth"] = request.headers["Authorization"]
            captured["body"] = json.loads(request.content)
            return chat_reply('{"operation": "swap", "tokens": []}')

        api = CompletionAPI(
            api_key="sk-test",
            base_url="https://llm.example/v1/",
            model="test-model",
            transport=httpx.MockTransport(handler),
        )
        content = api.complete_json("system", "swap", "amm_intent", {"type": "object"})
        api.close()

        assert content == '{"operation": "swap", "tokens": []}'
        assert captured["url"] == "https://llm.example/v1/chat/completions"
        assert captured["auth"] == "Bearer sk-test"
        body = captured["body"]
        assert body["model"] == "test-model"
        assert body["messages"][1] == {"role": "user", "content": "swap"}
        assert body["response_format"]["json_schema"]["name"] == "amm_intent"

    def test_http_error(self):
        def handler(request):
            return httpx.Response(401, json={"error": {"message": "Invalid API key"}})

        api = CompletionAPI(api_key="sk-bad", transport=httpx.MockTransport(handler))
        with pytest.raises(CompletionServiceError) as exc_info:
            api.complete_json("s", "u", "n", {})
        assert exc_info.value.status_code == 401
        assert "Invalid API key" in exc_info.value.message
        assert exc_info.value.recoverable is False

    def test_server_error_is_recoverable(self):
        api = CompletionAPI(api_key="sk", transport=httpx.MockTransport(lambda r: httpx.Response(503, text="busy")))
        with pytest.raises(CompletionServiceError) as exc_info:
            api.complete_json("s", "u", "n", {})
        assert exc_info.value.recoverable is True

    def test_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        api = CompletionAPI(api_key="sk", timeout=5, transport=httpx.MockTransport(handler))
        with pytest.raises(CompletionServiceError) as exc_info:
            api.complete_json("s", "u", "n", {})
        assert exc_info.value.code == ErrorCode.COMPLETION_TIMEOUT

    def test_connection_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        api = CompletionAPI(api_key="sk", transport=httpx.MockTransport(handler))
        with pytest.raises(CompletionServiceError):
            api.complete_json("s", "u", "n", {})

    def test_empty_content(self):
        api = CompletionAPI(api_key="sk", transport=httpx.MockTransport(lambda r: chat_reply(None)))
        with pytest.raises(CompletionServiceError):
            api.complete_json("s", "u", "n", {})

    def test_unexpected_shape(self):
        api = CompletionAPI(api_key="sk", transport=httpx.MockTransport(lambda r: httpx.Response(200, json={"x": 1})))
        with pytest.raises(CompletionServiceError):
            api.complete_json("s", "u", "n", {})

    def test_end_to_end_resolve(self, registry):
        reply = json.dumps({
            "operation": "deposit",
            "tokens": [{"symbol": "WETH", "amount": 5}, {"symbol": "TEST", "amount": 20}],
        })
        api = CompletionAPI(api_key="sk", transport=httpx.MockTransport(lambda r: chat_reply(reply)))

        pending = IntentResolver(api).resolve_pending("deposit 5 WETH and 20 TEST", registry)

        assert pending.operation == Operation.DEPOSIT
        assert pending.amounts == ("5", "20")
