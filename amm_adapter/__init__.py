"""
AMM Adapter - Client core for Uniswap-V2 style constant-product AMMs

Provides:
- Swaps, liquidity deposits and LP redemption against Router/Factory/Pair contracts
- Client-side quotes mirroring the router's integer math
- ERC20 approval tracking
- Pool directory with selection handoff to the operation screens
- Natural-language commands resolved through a chat-completion service
"""

from .client import AmmClient
from .types import (
    Token,
    TokenRegistry,
    Pool,
    Quote,
    TxResult,
    TxStatus,
    Operation,
    Intent,
    PendingOperation,
    to_base_units,
    from_base_units,
)
from .errors import (
    AmmAdapterError,
    ErrorCode,
    InvalidInput,
    NoLiquidity,
    NoSupply,
    InvalidSlippage,
    InsufficientFunds,
    ContractCallFailed,
    UnresolvedIntent,
    CompletionServiceError,
)
from .modules import (
    ActionState,
    ApprovalState,
    ApprovalTracker,
    WalletModule,
    MarketModule,
    SwapModule,
    AddLiquidityModule,
    RemoveLiquidityModule,
)
from .infra import AccountState, EVMSigner, Notifier, OperationMailbox, create_web3, create_evm_signer
from .protocols.uniswap_v2 import ContractGateway
from .protocols.nlp import CompletionAPI, IntentResolver

__version__ = "0.1.0"

__all__ = [
    # Client
    "AmmClient",
    # Types
    "Token",
    "TokenRegistry",
    "Pool",
    "Quote",
    "TxResult",
    "TxStatus",
    "Operation",
    "Intent",
    "PendingOperation",
    "to_base_units",
    "from_base_units",
    # Errors
    "AmmAdapterError",
    "ErrorCode",
    "InvalidInput",
    "NoLiquidity",
    "NoSupply",
    "InvalidSlippage",
    "InsufficientFunds",
    "ContractCallFailed",
    "UnresolvedIntent",
    "CompletionServiceError",
    # Modules
    "ActionState",
    "ApprovalState",
    "ApprovalTracker",
    "WalletModule",
    "MarketModule",
    "SwapModule",
    "AddLiquidityModule",
    "RemoveLiquidityModule",
    # Infrastructure
    "AccountState",
    "EVMSigner",
    "Notifier",
    "OperationMailbox",
    "create_web3",
    "create_evm_signer",
    "ContractGateway",
    # Natural language
    "CompletionAPI",
    "IntentResolver",
]
