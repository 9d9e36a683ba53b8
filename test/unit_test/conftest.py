"""
Shared fixtures for unit tests.

FakeChain stands in for ContractGateway: every token / pair address maps to
one MagicMock contract, the factory resolves pairs registered with add_pair,
and send() records transactions. A successful approval raises the token's
allowance to the unlimited maximum, like the real chain would.
"""

import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from amm_adapter.infra.account import AccountState
from amm_adapter.infra.handoff import OperationMailbox
from amm_adapter.infra.notifier import Notifier
from amm_adapter.protocols.uniswap_v2.api import MAX_UINT256
from amm_adapter.types import Token, TxResult


ACCOUNT = "0x" + "aa" * 20
OTHER_ACCOUNT = "0x" + "bb" * 20
WETH = "0x" + "11" * 20
TEST = "0x" + "22" * 20
TEST2 = "0x" + "33" * 20
PAIR = "0x" + "44" * 20
ROUTER = "0x" + "55" * 20
TX_HASH = "0x" + "ab" * 32


class FakeChain:
    """In-memory stand-in for ContractGateway"""

    def __init__(self):
        self.router_address = ROUTER
        self.weth_address = WETH
        self.contracts = {}
        self.pairs = {}
        self.sent = []
        self.send_result = TxResult.success(TX_HASH, block_number=1, gas_used=21000)

        self.factory = MagicMock(name="factory")
        self.factory.get_pair.side_effect = self._get_pair

        self.router = MagicMock(name="router")
        self.router.build_swap_exact_tokens_for_tokens.return_value = {"kind": "swap"}
        self.router.build_add_liquidity.return_value = {"kind": "add_liquidity"}
        self.router.build_remove_liquidity.return_value = {"kind": "remove_liquidity"}

        self.weth = self.add_token(WETH, "WETH")

    def _get_pair(self, token_a, token_b):
        return self.pairs.get(frozenset((token_a.lower(), token_b.lower())))

    def _contract(self, address):
        key = address.lower()
        if key not in self.contracts:
            contract = MagicMock(name=f"contract {address[:6]}")
            contract.address = address
            contract.allowance.return_value = 0
            contract.balance_of.return_value = 0
            contract.decimals.return_value = 18
            contract.build_approve.return_value = {"kind": "approve", "token": address}
            self.contracts[key] = contract
        return self.contracts[key]

    def token(self, address):
        return self._contract(address)

    def pair(self, address):
        return self._contract(address)

    def add_token(self, address, symbol, decimals=18, balance=0):
        contract = self._contract(address)
        contract.symbol.return_value = symbol
        contract.decimals.return_value = decimals
        contract.balance_of.return_value = balance
        return contract

    def add_pair(self, address, token0, token1, reserve0, reserve1, total_supply=0, lp_balance=0):
        contract = self._contract(address)
        contract.token0.return_value = token0
        contract.token1.return_value = token1
        contract.get_reserves.return_value = (reserve0, reserve1)
        contract.total_supply.return_value = total_supply
        contract.balance_of.return_value = lp_balance
        self.pairs[frozenset((token0.lower(), token1.lower()))] = address
        return contract

    def deadline(self):
        return 1_700_001_200

    def tx_params(self, gas):
        return {"from": ACCOUNT, "gas": gas}

    def send(self, tx, label):
        self.sent.append((tx, label))
        if self.send_result.is_success and tx.get("kind") == "approve":
            self._contract(tx["token"]).allowance.return_value = MAX_UINT256
        return self.send_result


@pytest.fixture
def chain():
    """Fake chain with WETH, TEST and TEST2 registered (no pairs)"""
    fake = FakeChain()
    fake.add_token(TEST, "TEST")
    fake.add_token(TEST2, "TEST2")
    return fake


@pytest.fixture
def account_state():
    return AccountState(ACCOUNT)


@pytest.fixture
def notifier():
    return Notifier()


@pytest.fixture
def mailbox():
    return OperationMailbox()


@pytest.fixture
def weth():
    return Token(WETH, "WETH")


@pytest.fixture
def test_token():
    return Token(TEST, "TEST")
