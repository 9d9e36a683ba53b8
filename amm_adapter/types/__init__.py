"""
Type definitions for AMM Adapter
"""

from .common import Token, TokenRegistry, same_address
from .pool import Pool
from .result import TxResult, TxStatus, Quote
from .units import (
    to_base_units,
    from_base_units,
    normalize_amount,
    is_valid_amount,
    is_positive_amount,
    parse_percentage,
    BPS_DENOMINATOR,
)
from .intent import Operation, Intent, IntentToken, PendingOperation

__all__ = [
    # Common
    "Token",
    "TokenRegistry",
    "same_address",
    # Pool
    "Pool",
    # Results
    "TxResult",
    "TxStatus",
    "Quote",
    # Units
    "to_base_units",
    "from_base_units",
    "normalize_amount",
    "is_valid_amount",
    "is_positive_amount",
    "parse_percentage",
    "BPS_DENOMINATOR",
    # Intents
    "Operation",
    "Intent",
    "IntentToken",
    "PendingOperation",
]
