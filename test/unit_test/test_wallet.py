"""
Wallet Module Unit Tests

Balances, token registry and WETH wrapping against the fake chain.
"""

import sys
from pathlib import Path
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from amm_adapter.modules.wallet import WalletModule
from amm_adapter.protocols.uniswap_v2.api import ZERO_ADDRESS
from amm_adapter.errors import ContractCallFailed, SignerError

from conftest import ACCOUNT, TEST, TEST2, WETH

E18 = 10 ** 18


@pytest.fixture
def wallet(chain, account_state):
    chain.web3 = MagicMock()
    chain.web3.eth.get_balance.return_value = 3 * E18
    chain.weth.build_deposit.return_value = {"kind": "wrap"}
    chain.weth.build_withdraw.return_value = {"kind": "unwrap"}
    return WalletModule(chain, account_state)


class TestBalances:
    def test_native_balance(self, wallet, chain):
        assert wallet.native_balance() == Decimal("3")
        chain.web3.eth.get_balance.assert_called_once_with(ACCOUNT)

    def test_token_balance_uses_decimals(self, wallet, chain):
        chain.add_token(TEST2, "TEST2", decimals=6, balance=2_500_000)
        assert wallet.balance(TEST2) == Decimal("2.5")
        assert wallet.balance_raw(TEST2) == 2_500_000

    def test_no_account(self, wallet, account_state):
        account_state.clear()
        with pytest.raises(SignerError):
            wallet.balance(TEST)

    def test_balances_skip_unreadable(self, wallet, chain):
        chain.token(WETH).balance_of.return_value = E18
        registry = wallet.token_registry([WETH, TEST])
        chain.token(TEST).balance_of.side_effect = ContractCallFailed("node down")

        balances = wallet.balances(registry)

        assert balances == {"WETH": Decimal("1")}


class TestTokenRegistry:
    def test_registry_from_addresses(self, wallet):
        print("Testing token registry...")

        registry = wallet.token_registry([WETH, TEST, TEST2])

        assert registry.symbols == ["WETH", "TEST", "TEST2"]
        assert registry.weth.address == WETH
        assert registry.find_by_symbol("test2").address == TEST2

        print("  Token registry: PASSED")

    def test_skips_zero_and_unreadable(self, wallet, chain):
        broken = "0x" + "99" * 20
        chain.token(broken).symbol.side_effect = ContractCallFailed("not a token")

        registry = wallet.token_registry([WETH, ZERO_ADDRESS, "", broken, TEST])

        assert registry.symbols == ["WETH", "TEST"]


class TestWeth:
    def test_wrap(self, wallet, chain):
        result = wallet.wrap("1.5")

        assert result.is_success
        value, params = chain.weth.build_deposit.call_args[0]
        assert value == 15 * E18 // 10
        assert params["from"] == ACCOUNT
        assert chain.sent == [({"kind": "wrap"}, "wrap")]

    def test_wrap_more_than_balance(self, wallet, chain):
        result = wallet.wrap("5")
        assert result.is_failed
        assert "ETH" in result.error
        assert chain.sent == []

    def test_wrap_invalid_amount(self, wallet, chain):
        assert wallet.wrap("0").is_failed
        assert wallet.wrap("abc").is_failed
        assert chain.sent == []

    def test_unwrap(self, wallet, chain):
        chain.weth.balance_of.return_value = 2 * E18

        result = wallet.unwrap("2")

        assert result.is_success
        chain.weth.build_withdraw.assert_called_once()
        assert chain.weth.build_withdraw.call_args[0][0] == 2 * E18

    def test_unwrap_more_than_balance(self, wallet, chain):
        chain.weth.balance_of.return_value = E18
        result = wallet.unwrap("2")
        assert result.is_failed
        assert "WETH" in result.error
