"""
Result type definitions for transactions and quotes
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional


class TxStatus(Enum):
    """Transaction status"""
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"  # Nothing was submitted (e.g., action disabled)


@dataclass
class TxResult:
    """
    Transaction execution result

    Attributes:
        status: Transaction status
        tx_hash: Transaction hash (hex)
        error: Error message if failed
        recoverable: Whether the user may simply try again
        error_code: Error code for programmatic handling
        block_number: Block the transaction was mined in
        gas_used: Gas consumed by the transaction
    """
    status: TxStatus
    tx_hash: Optional[str] = None
    error: Optional[str] = None
    recoverable: bool = False
    error_code: Optional[str] = None
    block_number: Optional[int] = None
    gas_used: Optional[int] = None

    @property
    def is_success(self) -> bool:
        return self.status == TxStatus.SUCCESS

    @property
    def is_failed(self) -> bool:
        return self.status == TxStatus.FAILED

    @property
    def is_skipped(self) -> bool:
        return self.status == TxStatus.SKIPPED

    @classmethod
    def success(cls, tx_hash: str, **kwargs) -> "TxResult":
        """Create successful result"""
        return cls(status=TxStatus.SUCCESS, tx_hash=tx_hash, **kwargs)

    @classmethod
    def failed(cls, error: str, tx_hash: str = None, **kwargs) -> "TxResult":
        """Create failed result"""
        return cls(status=TxStatus.FAILED, tx_hash=tx_hash, error=error, **kwargs)

    @classmethod
    def skipped(cls, reason: str = "No action needed", **kwargs) -> "TxResult":
        """Create skipped result (no transaction was sent)"""
        return cls(status=TxStatus.SKIPPED, tx_hash=None, error=reason, **kwargs)

    def __str__(self) -> str:
        if self.is_success:
            hash_display = f"{self.tx_hash[:16]}..." if self.tx_hash else "no hash"
            return f"TxResult(SUCCESS, {hash_display})"
        return f"TxResult({self.status.value}, error={self.error})"


@dataclass(frozen=True)
class Quote:
    """
    Swap quote derived from pool reserves

    Attributes:
        amount_in: Input amount (base units)
        amount_out: Expected output (base units)
        amount_out_min: Minimum acceptable output after slippage
        slippage_bps: Applied slippage in basis points
    """
    amount_in: int
    amount_out: int
    amount_out_min: int
    slippage_bps: int

    @property
    def exchange_rate(self) -> Decimal:
        """Output per input"""
        if self.amount_in == 0:
            return Decimal(0)
        return Decimal(self.amount_out) / Decimal(self.amount_in)

    def __str__(self) -> str:
        return f"Quote({self.amount_in} -> {self.amount_out}, min={self.amount_out_min})"
