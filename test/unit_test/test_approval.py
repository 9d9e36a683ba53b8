"""
Test Approval Tracker

Allowance state machine against the fake chain from conftest.
"""

import sys
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from amm_adapter.modules.approval import ApprovalState, ApprovalTracker
from amm_adapter.protocols.uniswap_v2.api import MAX_UINT256
from amm_adapter.types import TxResult
from amm_adapter.errors import ContractCallFailed

from conftest import ACCOUNT, OTHER_ACCOUNT, ROUTER, TEST


@pytest.fixture
def tracker(chain, account_state):
    return ApprovalTracker(chain, TEST, ROUTER, account_state)


def test_zero_allowance_is_insufficient(chain, tracker):
    """Allowance 0, required 5 -> not sufficient"""
    print("Testing insufficient allowance...")

    assert tracker.state == ApprovalState.UNKNOWN
    assert tracker.is_sufficient(5) is False
    assert tracker.state == ApprovalState.INSUFFICIENT
    assert tracker.allowance == 0
    chain.token(TEST).allowance.assert_called_with(ACCOUNT, ROUTER)

    print("  Insufficient allowance: PASSED")


def test_exact_allowance_is_sufficient(chain, tracker):
    chain.token(TEST).allowance.return_value = 5
    assert tracker.check(5) == ApprovalState.SUFFICIENT
    assert tracker.check(6) == ApprovalState.INSUFFICIENT


def test_every_check_reads_chain(chain, tracker):
    tracker.check(1)
    tracker.check(1)
    tracker.check(2)
    assert chain.token(TEST).allowance.call_count == 3


def test_approve_requeries_allowance(chain, tracker):
    """After an unlimited approval the tracker re-reads chain state"""
    print("Testing approve + re-query...")

    allowance = chain.token(TEST).allowance
    assert not tracker.is_sufficient(5)
    calls_before = allowance.call_count

    result = tracker.approve()

    assert result.is_success
    chain.token(TEST).build_approve.assert_called_once()
    spender, amount, _params = chain.token(TEST).build_approve.call_args[0]
    assert spender == ROUTER
    assert amount == MAX_UINT256
    assert allowance.call_count == calls_before + 1
    assert tracker.state == ApprovalState.SUFFICIENT
    assert tracker.allowance == MAX_UINT256

    print("  Approve + re-query: PASSED")


def test_approve_exact_amount(chain, tracker):
    tracker.approve(42)
    _spender, amount, _params = chain.token(TEST).build_approve.call_args[0]
    assert amount == 42


def test_failed_approval_reverts_state(chain, tracker):
    chain.send_result = TxResult.failed("execution reverted")
    tracker.check(5)

    result = tracker.approve()
    assert result.is_failed
    assert tracker.state == ApprovalState.INSUFFICIENT


def test_failed_approval_without_check_is_unknown(chain, tracker):
    chain.send_result = TxResult.failed("user rejected")
    tracker.approve()
    assert tracker.state == ApprovalState.UNKNOWN


def test_read_failure_returns_to_unknown(chain, tracker):
    chain.token(TEST).allowance.side_effect = ContractCallFailed("node down")
    with pytest.raises(ContractCallFailed):
        tracker.check(5)
    assert tracker.state == ApprovalState.UNKNOWN


def test_no_account_is_unknown(chain, account_state, tracker):
    account_state.clear()
    assert tracker.check(5) == ApprovalState.UNKNOWN
    chain.token(TEST).allowance.assert_not_called()


def test_account_change_resets(chain, account_state, tracker):
    chain.token(TEST).allowance.return_value = 10
    tracker.check(5)
    assert tracker.state == ApprovalState.SUFFICIENT

    account_state.set(OTHER_ACCOUNT)
    assert tracker.state == ApprovalState.UNKNOWN
    assert tracker.allowance is None

    tracker.check(5)
    chain.token(TEST).allowance.assert_called_with(OTHER_ACCOUNT, ROUTER)


def test_close_stops_listening(chain, account_state, tracker):
    chain.token(TEST).allowance.return_value = 10
    tracker.check(5)
    tracker.close()
    account_state.set(OTHER_ACCOUNT)
    assert tracker.state == ApprovalState.SUFFICIENT
