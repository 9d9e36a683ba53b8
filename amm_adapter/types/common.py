"""
Common type definitions
"""

from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Optional

# Accepted in place of WETH when resolving symbols
NATIVE_ALIASES = frozenset({"eth"})


def same_address(a: Optional[str], b: Optional[str]) -> bool:
    """Case-insensitive address comparison (None never matches)"""
    if not a or not b:
        return False
    return a.lower() == b.lower()


@dataclass(frozen=True, eq=False)
class Token:
    """
    Token information

    Attributes:
        address: ERC20 contract address (any casing)
        symbol: Token symbol (e.g., "WETH", "TEST")
        decimals: Number of decimal places
        balance: Last known balance of the connected account (base units)
    """
    address: str
    symbol: str
    decimals: int = 18
    balance: Optional[int] = None

    @property
    def key(self) -> str:
        """Identity key (lower-cased address)"""
        return self.address.lower()

    def __eq__(self, other) -> bool:
        if not isinstance(other, Token):
            return NotImplemented
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key)

    def __str__(self) -> str:
        return self.symbol

    def __repr__(self) -> str:
        return f"Token({self.symbol}, {self.address[:10]}...)"

    def with_balance(self, balance: int) -> "Token":
        return Token(self.address, self.symbol, self.decimals, balance)


@dataclass
class TokenRegistry:
    """
    Ordered set of tokens known to the client

    Lookups are case-insensitive by symbol and by address. The first token
    whose address matches ``weth_address`` is the wrapped-native entry;
    without one, the entry with symbol WETH stands in.

    Usage:
        registry = TokenRegistry([weth, test], weth_address=weth.address)
        registry.find_by_symbol("weth")
        registry.resolve_symbol("eth")  # -> WETH entry
    """
    tokens: List[Token] = field(default_factory=list)
    weth_address: Optional[str] = None

    def __post_init__(self):
        unique: List[Token] = []
        for token in self.tokens:
            if token not in unique:
                unique.append(token)
        self.tokens = unique

    def __iter__(self) -> Iterator[Token]:
        return iter(self.tokens)

    def __len__(self) -> int:
        return len(self.tokens)

    def __contains__(self, address: str) -> bool:
        return self.find_by_address(address) is not None

    @classmethod
    def from_tokens(cls, tokens: Iterable[Token], weth_address: Optional[str] = None) -> "TokenRegistry":
        return cls(list(tokens), weth_address=weth_address)

    @property
    def weth(self) -> Optional[Token]:
        """Wrapped-native token entry, if registered"""
        if not self.weth_address:
            return self.find_by_symbol("weth")
        return self.find_by_address(self.weth_address)

    @property
    def symbols(self) -> List[str]:
        return [t.symbol for t in self.tokens]

    def find_by_symbol(self, symbol: str) -> Optional[Token]:
        """First token with a case-insensitively equal symbol"""
        wanted = symbol.strip().lower()
        for token in self.tokens:
            if token.symbol.lower() == wanted:
                return token
        return None

    def find_by_address(self, address: str) -> Optional[Token]:
        for token in self.tokens:
            if same_address(token.address, address):
                return token
        return None

    def resolve_symbol(self, symbol: str) -> Optional[Token]:
        """
        Symbol lookup that also maps the bare native symbol to WETH

        An exact registry match wins over the alias.
        """
        token = self.find_by_symbol(symbol)
        if token is not None:
            return token
        if symbol.strip().lower() in NATIVE_ALIASES:
            return self.weth
        return None
