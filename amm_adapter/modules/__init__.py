"""
Functional modules for AmmClient

Provides high-level operations:
- WalletModule: Balances, token registry, WETH wrap/unwrap
- MarketModule: Pool directory and selection handoff
- SwapModule: Exact-input swaps
- AddLiquidityModule / RemoveLiquidityModule: LP deposit and redemption
- ApprovalTracker: ERC20 allowance state per (owner, spender, token)
"""

from .approval import ApprovalState, ApprovalTracker
from .base import ActionState, OperationModule
from .wallet import WalletModule
from .market import MarketModule
from .swap import SwapModule
from .liquidity import AddLiquidityModule, RemoveLiquidityModule

__all__ = [
    # Core modules
    "WalletModule",
    "MarketModule",
    "SwapModule",
    "AddLiquidityModule",
    "RemoveLiquidityModule",
    # Shared state
    "ActionState",
    "OperationModule",
    "ApprovalState",
    "ApprovalTracker",
]
