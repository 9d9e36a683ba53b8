"""
Operation intent and cross-screen handoff types
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import List, Optional, Tuple

from .common import Token
from .pool import Pool
from .units import BPS_DENOMINATOR
from ..errors import InvalidSlippage, UnresolvedIntent


class Operation(Enum):
    """User-facing operation kinds"""
    SWAP = "swap"
    DEPOSIT = "deposit"
    REDEEM = "redeem"

    @classmethod
    def from_string(cls, value: str) -> "Operation":
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise UnresolvedIntent(
                f"Unknown operation '{value}'. Supported: swap, deposit, redeem",
                missing="operation",
            )


def redeem_percentage(amount: Decimal) -> Decimal:
    """
    Interpret a redeem amount as a percentage of the LP position

    Values in (0, 1] are fractions ("0.5" -> 50%), values in (1, 100] are
    already percentages ("50" -> 50%).
    """
    if amount <= 0:
        raise UnresolvedIntent(
            f"Redeem amount must be positive, got {amount}",
            missing="percentage",
            operation=Operation.REDEEM.value,
        )
    if amount <= 1:
        return amount * 100
    if amount <= 100:
        return amount
    raise UnresolvedIntent(
        f"Redeem amount {amount} is neither a fraction nor a percentage",
        missing="percentage",
        operation=Operation.REDEEM.value,
    )


def slippage_percent_to_bps(percent: Decimal) -> int:
    """Slippage percent (0.5) to basis points (50), truncated"""
    bps = int(Decimal(percent) * 100)
    if bps < 0 or bps >= BPS_DENOMINATOR:
        raise InvalidSlippage(bps)
    return bps


@dataclass(frozen=True)
class IntentToken:
    """Token mentioned in a command, resolved against the registry"""
    symbol: str
    address: str
    amount: Optional[Decimal] = None

    @property
    def token(self) -> Token:
        return Token(self.address, self.symbol)


@dataclass
class Intent:
    """
    Structured operation extracted from free text

    Attributes:
        operation: swap | deposit | redeem
        tokens: Resolved tokens in the order they were mentioned
        slippage: Slippage tolerance in percent (0.5 = 0.5%), if stated
    """
    operation: Operation
    tokens: List[IntentToken] = field(default_factory=list)
    slippage: Optional[Decimal] = None

    @property
    def slippage_bps(self) -> Optional[int]:
        if self.slippage is None:
            return None
        return slippage_percent_to_bps(self.slippage)

    def to_pending(self) -> "PendingOperation":
        """Build the handoff record for the target screen"""
        token0, token1 = self.tokens[0], self.tokens[1]
        amounts: Tuple[Optional[str], Optional[str]] = (None, None)
        percentage = None

        if self.operation == Operation.SWAP:
            amounts = (_amount_text(token0.amount), None)
        elif self.operation == Operation.DEPOSIT:
            amounts = (_amount_text(token0.amount), _amount_text(token1.amount))
        else:
            stated = token0.amount if token0.amount is not None else token1.amount
            if stated is not None:
                percentage = redeem_percentage(stated)

        return PendingOperation(
            operation=self.operation,
            token0=token0.token,
            token1=token1.token,
            amounts=amounts,
            percentage=percentage,
            slippage_bps=self.slippage_bps,
        )


def _amount_text(amount: Optional[Decimal]) -> Optional[str]:
    if amount is None:
        return None
    return format(amount, "f")


@dataclass(frozen=True)
class PendingOperation:
    """
    Pre-filled operation handed to the next screen

    Attributes:
        operation: Target orchestrator kind
        token0: First token in user order
        token1: Second token in user order
        amounts: Decimal-string amounts (token0, token1), None where unset
        percentage: Share of the LP position to redeem, in percent
        pool: Pool selected in the directory, if any
        slippage_bps: Requested slippage, if any
    """
    operation: Operation
    token0: Token
    token1: Token
    amounts: Tuple[Optional[str], Optional[str]] = (None, None)
    percentage: Optional[Decimal] = None
    pool: Optional[Pool] = None
    slippage_bps: Optional[int] = None

    @classmethod
    def from_pool(cls, pool: Pool, operation: Operation) -> "PendingOperation":
        return cls(
            operation=operation,
            token0=Token(pool.token0, pool.token0_symbol),
            token1=Token(pool.token1, pool.token1_symbol),
            pool=pool,
        )
