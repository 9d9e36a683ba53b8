"""
Uniswap V2 protocol support: ABIs, typed contract roles, gateway and quote math
"""

from .api import MAX_UINT256, ZERO_ADDRESS, DEFAULT_FEE_BPS
from .contracts import (
    ContractRole,
    TokenContract,
    WethContract,
    PairContract,
    FactoryContract,
    RouterContract,
    to_checksum,
)
from .gateway import ContractGateway
from .math import (
    quote_counterpart,
    quote_liquidity,
    quote_deposit,
    apply_slippage,
    quote_redeem_shares,
    share_of,
    build_swap_quote,
)

__all__ = [
    "MAX_UINT256",
    "ZERO_ADDRESS",
    "DEFAULT_FEE_BPS",
    "ContractRole",
    "TokenContract",
    "WethContract",
    "PairContract",
    "FactoryContract",
    "RouterContract",
    "to_checksum",
    "ContractGateway",
    "quote_counterpart",
    "quote_liquidity",
    "quote_deposit",
    "apply_slippage",
    "quote_redeem_shares",
    "share_of",
    "build_swap_quote",
]
