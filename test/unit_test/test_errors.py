"""
Test Errors Module

Tests for amm_adapter.errors package and error classification.
"""

import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from amm_adapter.errors import (
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
from amm_adapter.infra.tracing import classify_error, failed_result


def test_error_code():
    """Test ErrorCode enum"""
    print("Testing ErrorCode...")

    assert ErrorCode.INVALID_AMOUNT.value == "1001"
    assert ErrorCode.CONTRACT_CALL_FAILED.value == "2001"
    assert ErrorCode.SLIPPAGE_INVALID.value == "3002"
    assert ErrorCode.INTENT_UNRESOLVED.value == "8001"
    assert ErrorCode.CONFIG_MISSING.value == "9002"

    print("  ErrorCode: PASSED")


def test_base_error():
    """Test AmmAdapterError base class"""
    error = AmmAdapterError(
        message="Test error",
        code=ErrorCode.OPERATION_FAILED,
        recoverable=True,
    )

    # __str__ returns "[code] message" format
    assert str(error) == "[7001] Test error"
    assert error.code == ErrorCode.OPERATION_FAILED
    assert error.recoverable is True
    assert error.details == {}


def test_all_errors_share_base():
    errors = [
        InvalidInput("bad"),
        NoLiquidity.empty_reserves(0, 1),
        NoSupply(),
        InvalidSlippage(10_000),
        InsufficientFunds.token_balance("WETH", 2, 1),
        ContractCallFailed("boom"),
        StaleResponse("quote"),
        UnresolvedIntent("what"),
        CompletionServiceError("down"),
        SignerError.not_configured(),
        ConfigurationError.missing("ROUTER_ADDRESS"),
    ]
    for error in errors:
        assert isinstance(error, AmmAdapterError)
        assert str(error).startswith(f"[{error.code.value}]")


def test_invalid_input_factories():
    error = InvalidInput.amount("1.2.3")
    assert error.code == ErrorCode.INVALID_AMOUNT
    assert error.field_name == "amount"
    assert "1.2.3" in error.message

    error = InvalidInput.non_positive("amount_in", 0)
    assert error.field_name == "amount_in"
    assert error.recoverable is False


def test_insufficient_funds():
    error = InsufficientFunds.token_balance("TEST", required=100, available=40)
    assert error.code == ErrorCode.TX_INSUFFICIENT_FUNDS
    assert error.required == 100
    assert error.available == 40
    assert error.details["token"] == "TEST"


def test_contract_call_failed():
    cause = ValueError("execution reverted")
    error = ContractCallFailed.read("pair 0xabc", "getReserves", cause)
    assert error.recoverable is True
    assert error.method == "getReserves"
    assert error.original_error is cause

    reverted = ContractCallFailed.reverted("swap", "0xdead")
    assert reverted.code == ErrorCode.TX_CONFIRMATION_FAILED
    assert reverted.recoverable is False
    assert "0xdead" in reverted.message


def test_unresolved_intent():
    error = UnresolvedIntent.unknown_token("DOGE", "swap")
    assert error.missing == "address:DOGE"
    assert error.operation == "swap"
    assert "DOGE" in str(error)

    error = UnresolvedIntent.missing_field("amount of WETH", "deposit")
    assert error.missing == "amount of WETH"


def test_completion_service_error_recoverable():
    assert CompletionServiceError.timeout(30).recoverable is True
    assert CompletionServiceError("server", status_code=503).recoverable is True
    assert CompletionServiceError("client", status_code=401).recoverable is False
    assert CompletionServiceError("no content").recoverable is False


def test_signer_and_config_errors():
    assert SignerError.not_configured().code == ErrorCode.SIGNER_NOT_CONFIGURED
    assert SignerError.failed("bad key").code == ErrorCode.SIGNER_FAILED
    assert ConfigurationError.invalid("AMM_FEE_BPS", "negative").code == ErrorCode.CONFIG_INVALID


class TestClassifyError:
    """Tests for classify_error"""

    def test_adapter_error_uses_own_fields(self):
        recoverable, is_slippage, code = classify_error(InvalidSlippage(-1))
        assert recoverable is False
        assert is_slippage is False
        assert code == ErrorCode.SLIPPAGE_INVALID

    def test_router_revert_is_slippage(self):
        recoverable, is_slippage, code = classify_error(
            "execution reverted: UniswapV2Router: INSUFFICIENT_OUTPUT_AMOUNT"
        )
        assert is_slippage is True
        assert code == ErrorCode.SLIPPAGE_EXCEEDED

    def test_timeout(self):
        recoverable, _, code = classify_error(TimeoutError("Request timed out"))
        assert recoverable is True
        assert code == ErrorCode.RPC_TIMEOUT

    def test_connection(self):
        recoverable, _, code = classify_error("Connection refused")
        assert recoverable is True
        assert code == ErrorCode.RPC_CONNECTION_FAILED

    def test_unknown_is_fatal(self):
        assert classify_error("something odd") == (False, False, None)

    def test_failed_result(self):
        result = failed_result(InsufficientFunds.token_balance("WETH", 2, 1), "swap")
        assert result.is_failed
        assert result.error.startswith("Insufficient WETH balance")
        assert result.error_code == ErrorCode.TX_INSUFFICIENT_FUNDS.value
        assert result.recoverable is False
