"""
Approval Tracker

Tracks whether ``owner`` has allowed ``spender`` to move enough of ``token``.
Every check is a fresh chain read; nothing is cached between amount changes.
"""

import logging
from enum import Enum
from typing import Optional

from ..types.result import TxResult
from ..infra.account import AccountState, RelevanceGuard
from ..infra.tracing import failed_result
from ..protocols.uniswap_v2.api import MAX_UINT256
from ..protocols.uniswap_v2.gateway import ContractGateway
from ..errors import AmmAdapterError, ContractCallFailed
from ..config import config as global_config

logger = logging.getLogger(__name__)


class ApprovalState(Enum):
    UNKNOWN = "unknown"
    CHECKING = "checking"
    SUFFICIENT = "sufficient"
    INSUFFICIENT = "insufficient"
    APPROVAL_PENDING = "approval_pending"


class ApprovalTracker:
    """
    Allowance state machine for one (owner, spender, token) triple

    The owner is always the currently connected account; an account change
    resets the state to UNKNOWN.

    Usage:
        tracker = ApprovalTracker(gateway, token_address, gateway.router_address, account_state)
        if not tracker.is_sufficient(amount):
            tracker.approve()            # unlimited
    """

    def __init__(
        self,
        gateway: ContractGateway,
        token_address: str,
        spender: str,
        account_state: AccountState,
        label: Optional[str] = None,
    ):
        self._gateway = gateway
        self._token_address = token_address
        self._spender = spender
        self._account_state = account_state
        self._label = label or f"approve {token_address[:10]}"
        self._guard = RelevanceGuard(account_state, "allowance")

        self._state = ApprovalState.UNKNOWN
        self._allowance: Optional[int] = None
        self._required: Optional[int] = None
        self._unsubscribe = account_state.subscribe(self._on_account_changed)

    @property
    def state(self) -> ApprovalState:
        return self._state

    @property
    def allowance(self) -> Optional[int]:
        """Allowance from the last completed read"""
        return self._allowance

    @property
    def token_address(self) -> str:
        return self._token_address

    @property
    def spender(self) -> str:
        return self._spender

    def _on_account_changed(self, _address: Optional[str]) -> None:
        self.reset()

    def reset(self) -> None:
        self._guard.invalidate()
        self._state = ApprovalState.UNKNOWN
        self._allowance = None
        self._required = None

    def check(self, amount: int) -> ApprovalState:
        """
        Read the allowance and compare with ``amount``

        Raises:
            ContractCallFailed: allowance read failed (state returns to UNKNOWN)
            StaleResponse: the account changed during the read
        """
        owner = self._account_state.current
        if owner is None:
            self._state = ApprovalState.UNKNOWN
            return self._state

        ticket = self._guard.issue((owner.lower(), amount))
        self._state = ApprovalState.CHECKING
        self._required = amount

        try:
            allowance = self._gateway.token(self._token_address).allowance(owner, self._spender)
        except ContractCallFailed:
            self._state = ApprovalState.UNKNOWN
            raise

        with self._guard.commit(ticket):
            self._allowance = allowance
            self._state = ApprovalState.SUFFICIENT if allowance >= amount else ApprovalState.INSUFFICIENT
            logger.debug(
                f"Allowance {self._token_address[:10]}... -> {self._spender[:10]}...: "
                f"{allowance} vs required {amount} ({self._state.value})"
            )
        return self._state

    def is_sufficient(self, amount: int) -> bool:
        """Fresh allowance read; True iff allowance >= amount"""
        return self.check(amount) == ApprovalState.SUFFICIENT

    def approve(self, amount: Optional[int] = None) -> TxResult:
        """
        Send an approval and re-read the allowance once it is mined

        Args:
            amount: Allowance to grant; None grants the unlimited maximum

        Returns:
            TxResult of the approval transaction
        """
        previous = self._state
        value = MAX_UINT256 if amount is None else amount
        self._state = ApprovalState.APPROVAL_PENDING

        try:
            token = self._gateway.token(self._token_address)
            tx = token.build_approve(
                self._spender,
                value,
                self._gateway.tx_params(global_config.evm.approve_gas_limit),
            )
            logger.info(f"Approving {self._token_address} for {self._spender}...")
            result = self._gateway.send(tx, self._label)
        except AmmAdapterError as e:
            result = failed_result(e, self._label)

        if not result.is_success:
            self._state = ApprovalState.UNKNOWN if previous == ApprovalState.UNKNOWN else ApprovalState.INSUFFICIENT
            return result

        self._state = ApprovalState.SUFFICIENT
        required = self._required if self._required is not None else value
        try:
            self.check(required)
        except AmmAdapterError as e:
            logger.warning(f"Allowance re-check after approval failed: {e}")
        return result

    def close(self) -> None:
        """Stop listening for account changes"""
        self._unsubscribe()

    def __repr__(self) -> str:
        return f"ApprovalTracker({self._token_address[:10]}..., {self._state.value})"
