"""
Test Infrastructure Module

Tests for account state, stale-response guard, handoff mailbox,
notifier and correlation tracing.
"""

import logging
import sys
from pathlib import Path
from unittest.mock import Mock

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from amm_adapter.infra.account import AccountState, RelevanceGuard, get_account_state
from amm_adapter.infra.handoff import OperationMailbox
from amm_adapter.infra.notifier import Notifier, NotificationLevel
from amm_adapter.infra.tracing import CorrelationContext, get_correlation_id, log_operation
from amm_adapter.types import Operation, PendingOperation, Token
from amm_adapter.errors import StaleResponse

ALICE = "0x" + "aa" * 20
BOB = "0x" + "bb" * 20


class TestAccountState:
    def test_set_notifies_and_bumps_epoch(self):
        state = AccountState()
        listener = Mock()
        state.subscribe(listener)

        state.set(ALICE)
        assert state.current == ALICE
        assert state.epoch == 1
        assert state.is_connected
        listener.assert_called_once_with(ALICE)

    def test_same_address_is_noop(self):
        state = AccountState(ALICE)
        listener = Mock()
        state.subscribe(listener)

        state.set(ALICE.upper().replace("0X", "0x"))
        assert state.epoch == 0
        listener.assert_not_called()

    def test_unsubscribe(self):
        state = AccountState(ALICE)
        listener = Mock()
        unsubscribe = state.subscribe(listener)
        unsubscribe()
        unsubscribe()

        state.set(BOB)
        listener.assert_not_called()

    def test_failing_listener_does_not_block_others(self):
        state = AccountState()
        state.subscribe(Mock(side_effect=RuntimeError("listener bug")))
        second = Mock()
        state.subscribe(second)

        state.set(BOB)
        second.assert_called_once_with(BOB)

    def test_clear(self):
        state = AccountState(ALICE)
        state.clear()
        assert state.current is None
        assert not state.is_connected

    def test_process_wide_instance(self):
        assert get_account_state() is get_account_state()


class TestRelevanceGuard:
    """Stale results must never be committed"""

    def test_commit_current_ticket(self):
        guard = RelevanceGuard(AccountState(ALICE), "quote")
        ticket = guard.issue(("WETH", "1"))
        committed = []
        with guard.commit(ticket, ("WETH", "1")):
            committed.append(True)
        assert committed == [True]

    def test_input_change_makes_ticket_stale(self):
        guard = RelevanceGuard(AccountState(ALICE), "quote")
        ticket = guard.issue(("WETH", "1"))
        guard.invalidate()

        assert not guard.is_current(ticket)
        with pytest.raises(StaleResponse):
            with guard.commit(ticket):
                pytest.fail("stale result committed")

    def test_snapshot_mismatch_is_stale(self):
        guard = RelevanceGuard(AccountState(ALICE))
        ticket = guard.issue(("WETH", "1"))
        assert not guard.is_current(ticket, ("WETH", "2"))

    def test_account_change_makes_ticket_stale(self):
        """Response for the old account arrives after the switch and is dropped"""
        print("Testing account switch mid-flight...")

        state = AccountState(ALICE)
        guard = RelevanceGuard(state, "allowance")
        ticket = guard.issue()

        state.set(BOB)

        with pytest.raises(StaleResponse) as exc_info:
            with guard.commit(ticket):
                pass
        assert "allowance" in exc_info.value.message

        print("  Account switch: PASSED")


class TestOperationMailbox:
    @pytest.fixture
    def pending(self):
        return PendingOperation(
            Operation.SWAP,
            Token("0x" + "11" * 20, "WETH"),
            Token("0x" + "22" * 20, "TEST"),
            amounts=("1", None),
        )

    def test_take_consumes_once(self, pending):
        mailbox = OperationMailbox()
        mailbox.post(pending)
        assert mailbox.peek() is pending
        assert mailbox.take(Operation.SWAP) is pending
        assert mailbox.take(Operation.SWAP) is None
        assert mailbox.peek() is None

    def test_other_operation_left_in_place(self, pending):
        mailbox = OperationMailbox()
        mailbox.post(pending)
        assert mailbox.take(Operation.DEPOSIT) is None
        assert mailbox.peek() is pending

    def test_last_write_wins(self, pending):
        mailbox = OperationMailbox()
        mailbox.post(pending)
        redeem = PendingOperation(Operation.REDEEM, pending.token0, pending.token1)
        mailbox.post(redeem)
        assert mailbox.take(Operation.SWAP) is None
        assert mailbox.take(Operation.REDEEM) is redeem

    def test_clear(self, pending):
        mailbox = OperationMailbox()
        mailbox.post(pending)
        mailbox.clear()
        assert mailbox.peek() is None


class TestNotifier:
    def test_history_and_sink(self):
        sink = Mock()
        notifier = Notifier(sink=sink, history_size=2)

        notifier.info("one")
        notifier.success("two", "ok", tx_hash="0xabc")
        notifier.error("three", "bad")

        assert [n.title for n in notifier.history] == ["two", "three"]
        assert notifier.last.level == NotificationLevel.ERROR
        assert sink.call_count == 3
        assert sink.call_args_list[1][0][0].tx_hash == "0xabc"


class TestTracing:
    def test_correlation_context(self):
        assert get_correlation_id() is None
        with CorrelationContext("swap") as cid:
            assert cid.startswith("swap_")
            assert get_correlation_id() == cid
        assert get_correlation_id() is None

    def test_log_operation_prefix(self, caplog):
        with caplog.at_level(logging.INFO, logger="amm_adapter.infra.tracing"):
            with CorrelationContext("deposit") as cid:
                log_operation(logging.INFO, "Submitted", "deposit")
        assert f"[{cid}] [deposit] Submitted" in caplog.text
