"""
Infrastructure layer for AMM Adapter

Provides:
- EVMSigner: EVM transaction signing using web3.py
- AccountState / RelevanceGuard: connected account and stale-result dropping
- OperationMailbox: one-shot handoff of pre-filled operations
- Notifier: user-facing notifications
- CorrelationContext / classify_error: operation tracing
"""

from .evm_signer import (
    EVMSigner,
    NonceManager,
    create_web3,
    create_evm_signer,
)
from .account import AccountState, RelevanceGuard, Ticket, get_account_state
from .handoff import OperationMailbox
from .notifier import Notifier, Notification, NotificationLevel
from .tracing import CorrelationContext, classify_error, failed_result, log_operation

__all__ = [
    # Signing
    "EVMSigner",
    "NonceManager",
    "create_web3",
    "create_evm_signer",
    # Account state
    "AccountState",
    "RelevanceGuard",
    "Ticket",
    "get_account_state",
    # Handoff
    "OperationMailbox",
    # Notifications
    "Notifier",
    "Notification",
    "NotificationLevel",
    # Tracing
    "CorrelationContext",
    "classify_error",
    "failed_result",
    "log_operation",
]
