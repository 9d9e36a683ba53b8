"""
Typed Uniswap V2 contract roles

Each role wraps a web3 contract with the few methods the client uses.
Reads return plain Python values and raise ContractCallFailed on any
node or decoding failure. ``build_*`` methods return unsigned
transaction dicts for ContractGateway.send().
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from web3 import Web3

from ...errors import ContractCallFailed, ErrorCode, InvalidInput
from .api import ERC20_ABI, WETH_ABI, PAIR_ABI, FACTORY_ABI, ROUTER_ABI, ZERO_ADDRESS

logger = logging.getLogger(__name__)


def to_checksum(address: str) -> str:
    """Checksum an address, InvalidInput if it is not a 20-byte hex address"""
    try:
        return Web3.to_checksum_address(address)
    except (ValueError, TypeError) as e:
        raise InvalidInput(
            f"Invalid address: {address!r}",
            field_name="address",
            value=address,
            code=ErrorCode.INVALID_ADDRESS,
        ) from e


class ContractRole:
    """Base class binding an ABI to an address"""

    abi: List[Dict[str, Any]] = []
    role = "contract"

    def __init__(self, web3: Web3, address: str):
        self._web3 = web3
        self.address = to_checksum(address)
        self._contract = web3.eth.contract(address=self.address, abi=self.abi)

    def _call(self, method: str, *args) -> Any:
        try:
            return getattr(self._contract.functions, method)(*args).call()
        except Exception as e:
            raise ContractCallFailed.read(f"{self.role} {self.address}", method, e) from e

    def _build(self, method: str, args: Tuple, tx_params: Dict[str, Any]) -> Dict[str, Any]:
        try:
            return getattr(self._contract.functions, method)(*args).build_transaction(tx_params)
        except Exception as e:
            raise ContractCallFailed(
                f"Failed to build {method} on {self.role} {self.address}: {e}",
                code=ErrorCode.TX_SEND_FAILED,
                contract=self.address,
                method=method,
                original_error=e,
            ) from e

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.address})"


class TokenContract(ContractRole):
    """ERC20 token"""

    abi = ERC20_ABI
    role = "token"

    def symbol(self) -> str:
        return self._call("symbol")

    def name(self) -> str:
        return self._call("name")

    def decimals(self) -> int:
        return int(self._call("decimals"))

    def total_supply(self) -> int:
        return int(self._call("totalSupply"))

    def balance_of(self, owner: str) -> int:
        return int(self._call("balanceOf", to_checksum(owner)))

    def allowance(self, owner: str, spender: str) -> int:
        return int(self._call("allowance", to_checksum(owner), to_checksum(spender)))

    def build_approve(self, spender: str, amount: int, tx_params: Dict[str, Any]) -> Dict[str, Any]:
        return self._build("approve", (to_checksum(spender), amount), tx_params)

    def build_transfer(self, to: str, amount: int, tx_params: Dict[str, Any]) -> Dict[str, Any]:
        return self._build("transfer", (to_checksum(to), amount), tx_params)


class WethContract(TokenContract):
    """Wrapped native token (WETH9)"""

    abi = WETH_ABI
    role = "weth"

    def build_deposit(self, value: int, tx_params: Dict[str, Any]) -> Dict[str, Any]:
        return self._build("deposit", (), {**tx_params, "value": value})

    def build_withdraw(self, amount: int, tx_params: Dict[str, Any]) -> Dict[str, Any]:
        return self._build("withdraw", (amount,), tx_params)


class PairContract(TokenContract):
    """Pair contract; also the LP token"""

    abi = PAIR_ABI
    role = "pair"

    def token0(self) -> str:
        return self._call("token0")

    def token1(self) -> str:
        return self._call("token1")

    def get_reserves(self) -> Tuple[int, int]:
        reserve0, reserve1, _timestamp = self._call("getReserves")
        return int(reserve0), int(reserve1)


class FactoryContract(ContractRole):
    abi = FACTORY_ABI
    role = "factory"

    def all_pairs_length(self) -> int:
        return int(self._call("allPairsLength"))

    def all_pairs(self, index: int) -> str:
        return self._call("allPairs", index)

    def get_pair(self, token_a: str, token_b: str) -> Optional[str]:
        """Pair address, or None when the pair has not been created"""
        pair = self._call("getPair", to_checksum(token_a), to_checksum(token_b))
        if not pair or pair.lower() == ZERO_ADDRESS:
            return None
        return pair


class RouterContract(ContractRole):
    """Router02. Every write carries a unix-seconds deadline."""

    abi = ROUTER_ABI
    role = "router"

    def get_amounts_out(self, amount_in: int, path: List[str]) -> List[int]:
        amounts = self._call("getAmountsOut", amount_in, [to_checksum(p) for p in path])
        return [int(a) for a in amounts]

    def build_add_liquidity(
        self,
        token_a: str,
        token_b: str,
        amount_a_desired: int,
        amount_b_desired: int,
        amount_a_min: int,
        amount_b_min: int,
        to: str,
        deadline: int,
        tx_params: Dict[str, Any],
    ) -> Dict[str, Any]:
        return self._build(
            "addLiquidity",
            (
                to_checksum(token_a),
                to_checksum(token_b),
                amount_a_desired,
                amount_b_desired,
                amount_a_min,
                amount_b_min,
                to_checksum(to),
                deadline,
            ),
            tx_params,
        )

    def build_remove_liquidity(
        self,
        token_a: str,
        token_b: str,
        liquidity: int,
        amount_a_min: int,
        amount_b_min: int,
        to: str,
        deadline: int,
        tx_params: Dict[str, Any],
    ) -> Dict[str, Any]:
        return self._build(
            "removeLiquidity",
            (
                to_checksum(token_a),
                to_checksum(token_b),
                liquidity,
                amount_a_min,
                amount_b_min,
                to_checksum(to),
                deadline,
            ),
            tx_params,
        )

    def build_swap_exact_tokens_for_tokens(
        self,
        amount_in: int,
        amount_out_min: int,
        path: List[str],
        to: str,
        deadline: int,
        tx_params: Dict[str, Any],
    ) -> Dict[str, Any]:
        return self._build(
            "swapExactTokensForTokens",
            (
                amount_in,
                amount_out_min,
                [to_checksum(p) for p in path],
                to_checksum(to),
                deadline,
            ),
            tx_params,
        )
