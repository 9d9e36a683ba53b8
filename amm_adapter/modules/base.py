"""
Shared behaviour of the operation screens (swap, add liquidity, remove liquidity)
"""

import logging
from enum import Enum
from typing import Dict, List, Optional, Tuple

from ..types.intent import Operation, PendingOperation
from ..types.result import TxResult
from ..infra.account import AccountState, RelevanceGuard
from ..infra.handoff import OperationMailbox
from ..infra.notifier import Notifier
from ..infra.tracing import CorrelationContext, failed_result, log_operation
from ..protocols.uniswap_v2.gateway import ContractGateway
from ..errors import (
    AmmAdapterError,
    ConfigurationError,
    ContractCallFailed,
    StaleResponse,
)
from .approval import ApprovalState, ApprovalTracker

logger = logging.getLogger(__name__)


class ActionState(Enum):
    """Which primary action the screen currently offers"""
    DISABLED = "disabled"
    APPROVE = "approve"
    EXECUTE = "execute"


class OperationModule:
    """
    Base class for stateful operation orchestrators

    Subclasses implement ``_refresh`` (validate, quote, check approvals and
    return the next ActionState), ``_execute`` (build and send the write),
    ``_apply_pending`` and ``_reset_amounts``.

    refresh() never raises for input or remote problems; it reports them
    through ``action`` and ``error``. execute() and approve() never raise;
    failures become a failed TxResult plus an error notification.
    """

    operation: Operation
    label = "operation"

    def __init__(
        self,
        gateway: ContractGateway,
        account_state: AccountState,
        notifier: Optional[Notifier] = None,
        mailbox: Optional[OperationMailbox] = None,
    ):
        self._gateway = gateway
        self._account_state = account_state
        self._notifier = notifier or Notifier()
        self._mailbox = mailbox
        self._guard = RelevanceGuard(account_state, self.label)
        self._trackers: Dict[str, ApprovalTracker] = {}
        self._pending_approvals: List[ApprovalTracker] = []

        self._action = ActionState.DISABLED
        self.error: Optional[str] = None
        self._unsubscribe = account_state.subscribe(self._on_account_changed)

    @property
    def action(self) -> ActionState:
        return self._action

    @property
    def account(self) -> Optional[str]:
        return self._account_state.current

    @property
    def notifier(self) -> Notifier:
        return self._notifier

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def _on_account_changed(self, _address: Optional[str]) -> None:
        self._guard.invalidate()
        self._action = ActionState.DISABLED

    def _input_changed(self) -> None:
        """Call from every setter before mutating inputs"""
        self._guard.invalidate()
        self.error = None

    def load_pending(self) -> Optional[PendingOperation]:
        """Consume a pending operation for this screen, if one was posted"""
        if self._mailbox is None:
            return None
        pending = self._mailbox.take(self.operation)
        if pending is None:
            return None
        logger.info(f"Loaded pending {pending.operation.value}: {pending.token0}/{pending.token1}")
        self._input_changed()
        self._apply_pending(pending)
        self.refresh()
        return pending

    def refresh(self) -> ActionState:
        """Re-derive quote and approval state from current inputs and chain state"""
        self._pending_approvals = []
        try:
            self._action = self._refresh()
        except StaleResponse as e:
            logger.debug(f"{self.label}: {e.message}")
        except (ContractCallFailed, ConfigurationError) as e:
            logger.warning(f"{self.label} refresh failed: {e}")
            self.error = e.message
            self._action = ActionState.DISABLED
        except AmmAdapterError as e:
            self.error = e.message
            self._action = ActionState.DISABLED
        return self._action

    def close(self) -> None:
        self._unsubscribe()
        for tracker in self._trackers.values():
            tracker.close()
        self._trackers.clear()

    # =========================================================================
    # Actions
    # =========================================================================

    def approve(self) -> TxResult:
        """Approve the first token whose allowance is short (unlimited allowance)"""
        tracker = self._approval_target()
        if tracker is None:
            return TxResult.skipped("Nothing to approve")

        with CorrelationContext(f"{self.label}_approve"):
            log_operation(logging.INFO, f"Approving {tracker.token_address}", self.label)
            result = tracker.approve()

        if result.is_success:
            self._notifier.success("Approval successful", f"Token {tracker.token_address} approved", result.tx_hash)
        else:
            self._notifier.error("Approval failed", result.error or "", result.tx_hash)
        self.refresh()
        return result

    def execute(self) -> TxResult:
        """Submit the operation if, after a fresh refresh, it is executable"""
        if self.refresh() != ActionState.EXECUTE:
            return TxResult.skipped(self.error or f"{self.label} is not ready")

        with CorrelationContext(self.label):
            try:
                result = self._execute()
            except Exception as e:
                result = failed_result(e, self.label)

            if result.is_success:
                log_operation(logging.INFO, f"Confirmed {result.tx_hash}", self.label)
            else:
                log_operation(logging.WARNING, f"Not confirmed: {result.error}", self.label)

        if result.is_success:
            self._notifier.success(f"{self.label.capitalize()} successful", self._success_message(), result.tx_hash)
            self._input_changed()
            self._reset_amounts()
            self._action = ActionState.DISABLED
        else:
            self._notifier.error(f"{self.label.capitalize()} failed", result.error or "", result.tx_hash)
        return result

    # =========================================================================
    # Helpers for subclasses
    # =========================================================================

    def _tracker(self, token_address: str) -> ApprovalTracker:
        """Router approval tracker for ``token_address`` (one per token)"""
        key = token_address.lower()
        if key not in self._trackers:
            self._trackers[key] = ApprovalTracker(
                self._gateway,
                token_address,
                self._gateway.router_address,
                self._account_state,
                label=f"approve {token_address[:10]}",
            )
        return self._trackers[key]

    def _approval_action(self, *requirements: Tuple[str, int]) -> ActionState:
        """APPROVE if any (token, amount) pair lacks allowance for the router, else EXECUTE"""
        self._pending_approvals = []
        for token_address, amount in requirements:
            tracker = self._tracker(token_address)
            if tracker.check(amount) != ApprovalState.SUFFICIENT:
                self._pending_approvals.append(tracker)
        return ActionState.APPROVE if self._pending_approvals else ActionState.EXECUTE

    def _approval_target(self) -> Optional[ApprovalTracker]:
        if self._pending_approvals:
            return self._pending_approvals[0]
        return self._primary_tracker()

    def _primary_tracker(self) -> Optional[ApprovalTracker]:
        return None

    def _apply_pending(self, pending: PendingOperation) -> None:
        raise NotImplementedError

    def _refresh(self) -> ActionState:
        raise NotImplementedError

    def _execute(self) -> TxResult:
        raise NotImplementedError

    def _reset_amounts(self) -> None:
        raise NotImplementedError

    def _success_message(self) -> str:
        return ""
