"""
Exception definitions for AMM Adapter
"""

from enum import Enum
from typing import Optional


class ErrorCode(Enum):
    """
    Unified error codes for AMM operations

    1xxx - Input errors
    2xxx - Contract/Transaction errors
    3xxx - Quote/Slippage errors
    6xxx - Signer errors
    7xxx - Operation errors
    8xxx - Intent errors
    9xxx - Configuration errors
    """
    # Input errors
    INVALID_AMOUNT = "1001"
    INVALID_ADDRESS = "1002"
    INVALID_INPUT = "1003"

    # Contract/Transaction errors
    CONTRACT_CALL_FAILED = "2001"
    TX_SEND_FAILED = "2002"
    TX_CONFIRMATION_FAILED = "2003"
    TX_INSUFFICIENT_FUNDS = "2004"
    RPC_CONNECTION_FAILED = "2005"
    RPC_TIMEOUT = "2006"
    RPC_RATE_LIMITED = "2007"

    # Quote/Slippage errors
    SLIPPAGE_EXCEEDED = "3001"
    SLIPPAGE_INVALID = "3002"
    LIQUIDITY_INSUFFICIENT = "3003"
    SUPPLY_ZERO = "3004"

    # Signer errors
    SIGNER_NOT_CONFIGURED = "6001"
    SIGNER_FAILED = "6002"

    # Operation errors
    OPERATION_FAILED = "7001"
    STALE_RESPONSE = "7002"

    # Intent errors
    INTENT_UNRESOLVED = "8001"
    COMPLETION_FAILED = "8002"
    COMPLETION_TIMEOUT = "8003"

    # Configuration errors
    CONFIG_INVALID = "9001"
    CONFIG_MISSING = "9002"


class AmmAdapterError(Exception):
    """
    Base exception for all AMM adapter errors

    Attributes:
        message: Human-readable error message
        code: Error code for programmatic handling
        recoverable: Whether the error might succeed if the user tries again
        original_error: The underlying exception if any
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode,
        recoverable: bool = False,
        original_error: Optional[Exception] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.recoverable = recoverable
        self.original_error = original_error
        self.details = details or {}

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.message}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code.value}, message={self.message!r})"


class InvalidInput(AmmAdapterError):
    """
    Malformed or out-of-range user input

    Raised when:
    - An amount string is not a plain decimal number
    - An amount is zero or negative where a positive one is required
    - An LP amount exceeds the pool's total supply
    """

    def __init__(
        self,
        message: str,
        field_name: Optional[str] = None,
        value: Optional[object] = None,
        code: ErrorCode = ErrorCode.INVALID_INPUT,
    ):
        super().__init__(
            message,
            code,
            recoverable=False,
            details={"field": field_name, "value": repr(value) if value is not None else None},
        )
        self.field_name = field_name
        self.value = value

    @classmethod
    def amount(cls, value: object, reason: str = "not a decimal number") -> "InvalidInput":
        return cls(
            f"Invalid amount {value!r}: {reason}",
            field_name="amount",
            value=value,
            code=ErrorCode.INVALID_AMOUNT,
        )

    @classmethod
    def non_positive(cls, field_name: str, value: object) -> "InvalidInput":
        return cls(
            f"{field_name} must be greater than zero, got {value}",
            field_name=field_name,
            value=value,
            code=ErrorCode.INVALID_AMOUNT,
        )


class NoLiquidity(AmmAdapterError):
    """
    Pool has an empty reserve, no price can be derived
    """

    def __init__(self, message: str, reserve_in: Optional[int] = None, reserve_out: Optional[int] = None):
        super().__init__(
            message,
            ErrorCode.LIQUIDITY_INSUFFICIENT,
            recoverable=False,
            details={"reserve_in": reserve_in, "reserve_out": reserve_out},
        )
        self.reserve_in = reserve_in
        self.reserve_out = reserve_out

    @classmethod
    def empty_reserves(cls, reserve_in: int, reserve_out: int) -> "NoLiquidity":
        return cls(
            f"Pool has no liquidity (reserves {reserve_in}/{reserve_out})",
            reserve_in=reserve_in,
            reserve_out=reserve_out,
        )


class NoSupply(AmmAdapterError):
    """
    Pair has zero LP total supply, shares cannot be redeemed
    """

    def __init__(self, message: str = "Pool has zero LP supply"):
        super().__init__(message, ErrorCode.SUPPLY_ZERO, recoverable=False)


class InvalidSlippage(AmmAdapterError):
    """
    Slippage tolerance outside [0, 10000) basis points
    """

    def __init__(self, slippage_bps: object):
        super().__init__(
            f"Slippage must be an integer in [0, 10000) bps, got {slippage_bps!r}",
            ErrorCode.SLIPPAGE_INVALID,
            recoverable=False,
            details={"slippage_bps": slippage_bps},
        )
        self.slippage_bps = slippage_bps


class InsufficientFunds(AmmAdapterError):
    """
    Insufficient balance - not recoverable without deposit

    Raised when:
    - Wallet doesn't hold enough of the input token
    - LP amount to redeem exceeds the LP balance
    """

    def __init__(
        self,
        message: str,
        token: Optional[str] = None,
        required: Optional[int] = None,
        available: Optional[int] = None,
    ):
        super().__init__(
            message,
            ErrorCode.TX_INSUFFICIENT_FUNDS,
            recoverable=False,
            details={
                "token": token,
                "required": required,
                "available": available,
            },
        )
        self.token = token
        self.required = required
        self.available = available

    @classmethod
    def token_balance(cls, token: str, required: int, available: int) -> "InsufficientFunds":
        return cls(
            f"Insufficient {token} balance: need {required}, have {available}",
            token=token,
            required=required,
            available=available,
        )


class ContractCallFailed(AmmAdapterError):
    """
    A contract read or write failed

    Raised when:
    - The RPC node rejects or cannot serve a view call
    - A transaction fails to send or reverts
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.CONTRACT_CALL_FAILED,
        contract: Optional[str] = None,
        method: Optional[str] = None,
        original_error: Optional[Exception] = None,
        recoverable: bool = True,
    ):
        super().__init__(
            message,
            code,
            recoverable=recoverable,
            original_error=original_error,
            details={"contract": contract, "method": method},
        )
        self.contract = contract
        self.method = method

    @classmethod
    def read(cls, contract: str, method: str, error: Exception) -> "ContractCallFailed":
        return cls(
            f"Call {method}() on {contract} failed: {error}",
            contract=contract,
            method=method,
            original_error=error,
        )

    @classmethod
    def reverted(cls, method: str, tx_hash: Optional[str] = None) -> "ContractCallFailed":
        return cls(
            f"Transaction {method} reverted" + (f" ({tx_hash})" if tx_hash else ""),
            code=ErrorCode.TX_CONFIRMATION_FAILED,
            method=method,
            recoverable=False,
        )


class StaleResponse(AmmAdapterError):
    """
    A remote result arrived after its inputs changed and must be dropped
    """

    def __init__(self, label: str = "response"):
        super().__init__(
            f"Discarded stale {label}",
            ErrorCode.STALE_RESPONSE,
            recoverable=True,
        )
        self.label = label


class UnresolvedIntent(AmmAdapterError):
    """
    Free-text command could not be mapped to a complete operation

    Raised when:
    - A token symbol is not in the registry
    - A required token or amount is missing
    """

    def __init__(self, message: str, missing: Optional[str] = None, operation: Optional[str] = None):
        super().__init__(
            message,
            ErrorCode.INTENT_UNRESOLVED,
            recoverable=False,
            details={"missing": missing, "operation": operation},
        )
        self.missing = missing
        self.operation = operation

    @classmethod
    def unknown_token(cls, symbol: str, operation: Optional[str] = None) -> "UnresolvedIntent":
        return cls(
            f"Could not find address for token '{symbol}'",
            missing=f"address:{symbol}",
            operation=operation,
        )

    @classmethod
    def missing_field(cls, what: str, operation: str) -> "UnresolvedIntent":
        return cls(
            f"Missing {what} for {operation}",
            missing=what,
            operation=operation,
        )


class CompletionServiceError(AmmAdapterError):
    """
    Chat-completion service call failed (network, HTTP status, or malformed reply)
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.COMPLETION_FAILED,
        status_code: Optional[int] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(
            message,
            code,
            recoverable=code == ErrorCode.COMPLETION_TIMEOUT or (status_code or 0) >= 500,
            original_error=original_error,
            details={"status_code": status_code},
        )
        self.status_code = status_code

    @classmethod
    def timeout(cls, timeout_seconds: float) -> "CompletionServiceError":
        return cls(
            f"Completion service timed out after {timeout_seconds}s",
            ErrorCode.COMPLETION_TIMEOUT,
        )


class SignerError(AmmAdapterError):
    """
    Signing-related errors
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.SIGNER_FAILED,
        recoverable: bool = False,
    ):
        super().__init__(message, code, recoverable=recoverable)

    @classmethod
    def not_configured(cls) -> "SignerError":
        return cls(
            "No signer configured. Provide a private key or set EVM_PRIVATE_KEY.",
            ErrorCode.SIGNER_NOT_CONFIGURED,
        )

    @classmethod
    def failed(cls, reason: str) -> "SignerError":
        return cls(f"Signing failed: {reason}", ErrorCode.SIGNER_FAILED)


class ConfigurationError(AmmAdapterError):
    """
    Configuration-related errors

    Raised when:
    - Required configuration is missing
    - Configuration values are invalid
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.CONFIG_INVALID,
    ):
        super().__init__(message, code, recoverable=False)

    @classmethod
    def missing(cls, param: str) -> "ConfigurationError":
        return cls(f"Missing required configuration: {param}", ErrorCode.CONFIG_MISSING)

    @classmethod
    def invalid(cls, param: str, reason: str) -> "ConfigurationError":
        return cls(f"Invalid configuration '{param}': {reason}", ErrorCode.CONFIG_INVALID)
