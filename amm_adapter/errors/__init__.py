"""
Error definitions for AMM Adapter
"""

from .exceptions import (
    ErrorCode,
    AmmAdapterError,
    InvalidInput,
    NoLiquidity,
    NoSupply,
    InvalidSlippage,
    InsufficientFunds,
    ContractCallFailed,
    StaleResponse,
    UnresolvedIntent,
    CompletionServiceError,
    SignerError,
    ConfigurationError,
)

__all__ = [
    "ErrorCode",
    "AmmAdapterError",
    "InvalidInput",
    "NoLiquidity",
    "NoSupply",
    "InvalidSlippage",
    "InsufficientFunds",
    "ContractCallFailed",
    "StaleResponse",
    "UnresolvedIntent",
    "CompletionServiceError",
    "SignerError",
    "ConfigurationError",
]
