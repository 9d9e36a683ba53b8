"""
Pool type definitions
"""

from dataclasses import dataclass
from typing import Any, Dict, Tuple

from .common import same_address
from ..errors import InvalidInput


@dataclass
class Pool:
    """
    Constant-product pair snapshot

    token0/token1 follow the ordering reported by the pair contract, which
    is not necessarily the order the user picked them in.

    Attributes:
        address: Pair contract address
        token0: Pair token0 address
        token1: Pair token1 address
        token0_symbol: Symbol of token0
        token1_symbol: Symbol of token1
        reserve0: Reserve of token0 (base units)
        reserve1: Reserve of token1 (base units)
    """
    address: str
    token0: str
    token1: str
    token0_symbol: str
    token1_symbol: str
    reserve0: int = 0
    reserve1: int = 0

    @property
    def pair_name(self) -> str:
        return f"{self.token0_symbol}/{self.token1_symbol}"

    @property
    def has_liquidity(self) -> bool:
        return self.reserve0 > 0 and self.reserve1 > 0

    def __str__(self) -> str:
        return self.pair_name

    def __repr__(self) -> str:
        return f"Pool({self.pair_name}, {self.address[:10]}...)"

    def contains(self, token_address: str) -> bool:
        return same_address(self.token0, token_address) or same_address(self.token1, token_address)

    def other(self, token_address: str) -> str:
        """Address of the pair token that is not ``token_address``"""
        if same_address(self.token0, token_address):
            return self.token1
        if same_address(self.token1, token_address):
            return self.token0
        raise InvalidInput(
            f"Token {token_address} is not part of pool {self.pair_name}",
            field_name="token",
            value=token_address,
        )

    def symbol_of(self, token_address: str) -> str:
        if same_address(self.token0, token_address):
            return self.token0_symbol
        if same_address(self.token1, token_address):
            return self.token1_symbol
        raise InvalidInput(
            f"Token {token_address} is not part of pool {self.pair_name}",
            field_name="token",
            value=token_address,
        )

    def reserves_for(self, token_in: str) -> Tuple[int, int]:
        """
        (reserve_in, reserve_out) for a trade starting from ``token_in``

        Mapped by address, never by the user's selection order.
        """
        if same_address(self.token0, token_in):
            return self.reserve0, self.reserve1
        if same_address(self.token1, token_in):
            return self.reserve1, self.reserve0
        raise InvalidInput(
            f"Token {token_in} is not part of pool {self.pair_name}",
            field_name="token_in",
            value=token_in,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "token0": self.token0,
            "token1": self.token1,
            "token0_symbol": self.token0_symbol,
            "token1_symbol": self.token1_symbol,
            "reserve0": str(self.reserve0),
            "reserve1": str(self.reserve1),
            "pair_name": self.pair_name,
        }
