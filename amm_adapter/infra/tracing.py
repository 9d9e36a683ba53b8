"""
Operation tracing helpers

Correlation IDs for grouping the log lines of one user operation, and
error classification for failures surfaced to the user. Operations are
never retried automatically; classification only decides whether the
user is told they can simply try again.
"""

import logging
import uuid
import contextvars
from typing import Optional, Tuple, Union

from ..types.result import TxResult
from ..errors import AmmAdapterError, ErrorCode

logger = logging.getLogger(__name__)

_correlation_id: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    'correlation_id', default=None
)


def generate_correlation_id() -> str:
    return uuid.uuid4().hex[:12]


def get_correlation_id() -> Optional[str]:
    return _correlation_id.get()


def set_correlation_id(correlation_id: Optional[str]) -> contextvars.Token:
    """Set the correlation ID in context. Returns token for reset."""
    return _correlation_id.set(correlation_id)


class CorrelationContext:
    """
    Context manager for correlation ID scoping.

    Usage:
        with CorrelationContext("swap") as cid:
            log_operation(logging.INFO, "submitting", "swap")
    """

    def __init__(self, prefix: Optional[str] = None):
        self.correlation_id = generate_correlation_id()
        if prefix:
            self.correlation_id = f"{prefix}_{self.correlation_id}"
        self._token: Optional[contextvars.Token] = None

    def __enter__(self) -> str:
        self._token = set_correlation_id(self.correlation_id)
        return self.correlation_id

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._token is not None:
            _correlation_id.reset(self._token)


def log_operation(
    level: int,
    message: str,
    operation_name: str,
    **extra
):
    """
    Log message prefixed with the current correlation ID and operation name.

    Extra keyword arguments are attached to the record for structured handlers.
    """
    cid = get_correlation_id()

    parts = []
    if cid:
        parts.append(f"[{cid}]")
    parts.append(f"[{operation_name}]")
    parts.append(message)

    logger.log(level, " ".join(parts), extra={
        "correlation_id": cid,
        "operation": operation_name,
        **extra
    })


RECOVERABLE_KEYWORDS = [
    "timeout", "timed out", "connection", "network", "rate limit",
    "too many requests", "503", "502", "504",
    "temporarily unavailable", "service unavailable",
    "econnreset", "enotfound", "etimedout",
    "request failed", "expired", "nonce too low",
]

# Router revert reasons for minimum-amount checks
SLIPPAGE_KEYWORDS = [
    "slippage", "insufficient_output_amount", "insufficient_a_amount",
    "insufficient_b_amount", "price moved", "amount out less than minimum",
]


def classify_error(error: Union[Exception, str]) -> Tuple[bool, bool, Optional[ErrorCode]]:
    """
    Classify an error to determine if it's recoverable or slippage-related.

    Returns:
        Tuple of (is_recoverable, is_slippage, error_code)
    """
    if isinstance(error, AmmAdapterError):
        return error.recoverable, error.code == ErrorCode.SLIPPAGE_EXCEEDED, error.code

    error_str = str(error).lower()

    if any(keyword in error_str for keyword in SLIPPAGE_KEYWORDS):
        return True, True, ErrorCode.SLIPPAGE_EXCEEDED

    is_recoverable = any(keyword in error_str for keyword in RECOVERABLE_KEYWORDS)

    error_code = None
    if is_recoverable:
        if "timeout" in error_str or "timed out" in error_str:
            error_code = ErrorCode.RPC_TIMEOUT
        elif any(kw in error_str for kw in ["connection", "network", "econnreset", "enotfound"]):
            error_code = ErrorCode.RPC_CONNECTION_FAILED
        elif "rate limit" in error_str or "too many requests" in error_str:
            error_code = ErrorCode.RPC_RATE_LIMITED
        else:
            error_code = ErrorCode.TX_SEND_FAILED

    return is_recoverable, False, error_code


def failed_result(error: Union[Exception, str], operation_name: str, tx_hash: Optional[str] = None) -> TxResult:
    """Log a failure and convert it into a classified TxResult"""
    is_recoverable, is_slippage, error_code = classify_error(error)
    log_operation(
        logging.ERROR,
        f"Failed: {error}",
        operation_name,
        error_type="slippage" if is_slippage else ("recoverable" if is_recoverable else "fatal"),
    )
    message = error.message if isinstance(error, AmmAdapterError) else str(error)
    return TxResult.failed(
        message,
        tx_hash=tx_hash,
        recoverable=is_recoverable,
        error_code=error_code.value if error_code else None,
    )
