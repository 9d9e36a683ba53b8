"""
Swap Module

Exact-input token swaps through the router against a single pair.
Quotes are computed client-side from live pair reserves with the same
formula the router applies.
"""

from __future__ import annotations

import logging
from typing import Optional

from ..types.common import Token, same_address
from ..types.pool import Pool
from ..types.result import Quote, TxResult
from ..types.intent import Operation, PendingOperation
from ..types.units import from_base_units, is_positive_amount, to_base_units
from ..protocols.uniswap_v2.math import build_swap_quote
from ..errors import InsufficientFunds, InvalidSlippage, NoLiquidity
from ..config import config
from .approval import ApprovalTracker
from .base import ActionState, OperationModule

logger = logging.getLogger(__name__)


class SwapModule(OperationModule):
    """
    Swap screen state

    Usage:
        swap = client.swap
        swap.set_tokens(weth, test)
        swap.set_amount_in("1.5")
        if swap.refresh() == ActionState.APPROVE:
            swap.approve()
        result = swap.execute()
    """

    operation = Operation.SWAP
    label = "swap"

    def __init__(self, *args, fee_bps: Optional[int] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self._fee_bps = fee_bps if fee_bps is not None else config.trading.fee_bps

        self.token_in: Optional[Token] = None
        self.token_out: Optional[Token] = None
        self.amount_in: str = ""
        self.slippage_bps: int = config.trading.default_slippage_bps
        self.pool: Optional[Pool] = None
        self.quote: Optional[Quote] = None

    # =========================================================================
    # Inputs
    # =========================================================================

    def select_pool(self, pool: Pool) -> None:
        """Trade token0 -> token1 of ``pool``"""
        self._input_changed()
        self.pool = pool
        self.token_in = Token(pool.token0, pool.token0_symbol)
        self.token_out = Token(pool.token1, pool.token1_symbol)
        self.quote = None

    def set_tokens(self, token_in: Token, token_out: Token) -> None:
        self._input_changed()
        self.token_in = token_in
        self.token_out = token_out
        if self.pool is not None and not (self.pool.contains(token_in.address) and self.pool.contains(token_out.address)):
            self.pool = None
        self.quote = None

    def set_amount_in(self, amount: str) -> None:
        self._input_changed()
        self.amount_in = amount.strip()
        self.quote = None

    def set_slippage_bps(self, slippage_bps: int) -> None:
        if isinstance(slippage_bps, bool) or not isinstance(slippage_bps, int) or not 0 <= slippage_bps < 10_000:
            raise InvalidSlippage(slippage_bps)
        self._input_changed()
        self.slippage_bps = slippage_bps

    def switch_tokens(self) -> None:
        """Reverse direction; amounts are cleared"""
        self._input_changed()
        self.token_in, self.token_out = self.token_out, self.token_in
        self.amount_in = ""
        self.quote = None

    @property
    def amount_out(self) -> str:
        """Expected output as a decimal string ("" when there is no quote)"""
        if self.quote is None or self.token_out is None:
            return ""
        return from_base_units(self.quote.amount_out, self.token_out.decimals)

    def _apply_pending(self, pending: PendingOperation) -> None:
        self.token_in = pending.token0
        self.token_out = pending.token1
        self.pool = pending.pool
        self.amount_in = pending.amounts[0] or ""
        if pending.slippage_bps is not None:
            self.slippage_bps = pending.slippage_bps
        self.quote = None

    def _reset_amounts(self) -> None:
        self.amount_in = ""
        self.quote = None

    def _snapshot(self):
        return (
            self.token_in.key if self.token_in else None,
            self.token_out.key if self.token_out else None,
            self.amount_in,
            self.slippage_bps,
        )

    # =========================================================================
    # Derivation
    # =========================================================================

    def _load_pool(self) -> Optional[Pool]:
        """Fresh reserves for the (token_in, token_out) pair, None if no pair exists"""
        address = self.pool.address if self.pool is not None else None
        if address is None:
            address = self._gateway.factory.get_pair(self.token_in.address, self.token_out.address)
            if address is None:
                return None

        pair = self._gateway.pair(address)
        token0 = pair.token0()
        reserve0, reserve1 = pair.get_reserves()
        if same_address(token0, self.token_in.address):
            first, second = self.token_in, self.token_out
        else:
            first, second = self.token_out, self.token_in
        return Pool(
            address=address,
            token0=first.address,
            token1=second.address,
            token0_symbol=first.symbol,
            token1_symbol=second.symbol,
            reserve0=reserve0,
            reserve1=reserve1,
        )

    def _refresh(self) -> ActionState:
        self.quote = None
        if self.token_in is None or self.token_out is None:
            return ActionState.DISABLED
        if self.token_in == self.token_out:
            self.error = "Select two different tokens"
            return ActionState.DISABLED
        if not is_positive_amount(self.amount_in) or self.account is None:
            return ActionState.DISABLED

        snapshot = self._snapshot()
        ticket = self._guard.issue(snapshot)

        amount_in = to_base_units(self.amount_in, self.token_in.decimals)
        pool = self._load_pool()
        if pool is None:
            self.error = f"No pool for {self.token_in.symbol}/{self.token_out.symbol}"
            return ActionState.DISABLED

        reserve_in, reserve_out = pool.reserves_for(self.token_in.address)
        try:
            quote = build_swap_quote(amount_in, reserve_in, reserve_out, self.slippage_bps, self._fee_bps)
        except NoLiquidity as e:
            self.error = e.message
            return ActionState.DISABLED

        if quote.amount_out == 0:
            with self._guard.commit(ticket, self._snapshot()):
                self.pool = pool
                self.quote = quote
                self.error = f"Amount too small: {self.amount_in} {self.token_in.symbol} returns no {self.token_out.symbol}"
            return ActionState.DISABLED

        action = self._approval_action((self.token_in.address, amount_in))

        with self._guard.commit(ticket, self._snapshot()):
            self.pool = pool
            self.quote = quote
        return action

    def onchain_quote(self) -> Optional[int]:
        """Router getAmountsOut for the current input (cross-check of the local quote)"""
        if self.token_in is None or self.token_out is None or not is_positive_amount(self.amount_in):
            return None
        amount_in = to_base_units(self.amount_in, self.token_in.decimals)
        amounts = self._gateway.router.get_amounts_out(amount_in, [self.token_in.address, self.token_out.address])
        return amounts[-1]

    def _primary_tracker(self) -> Optional[ApprovalTracker]:
        if self.token_in is None:
            return None
        return self._tracker(self.token_in.address)

    # =========================================================================
    # Execution
    # =========================================================================

    def _execute(self) -> TxResult:
        quote = self.quote
        account = self.account
        token_in, token_out = self.token_in, self.token_out

        balance = self._gateway.token(token_in.address).balance_of(account)
        if balance < quote.amount_in:
            raise InsufficientFunds.token_balance(token_in.symbol, quote.amount_in, balance)

        logger.info(
            f"Swapping {self.amount_in} {token_in.symbol} for >= "
            f"{from_base_units(quote.amount_out_min, token_out.decimals)} {token_out.symbol}"
        )
        tx = self._gateway.router.build_swap_exact_tokens_for_tokens(
            quote.amount_in,
            quote.amount_out_min,
            [token_in.address, token_out.address],
            account,
            self._gateway.deadline(),
            self._gateway.tx_params(config.evm.swap_gas_limit),
        )
        return self._gateway.send(tx, self.label)

    def _success_message(self) -> str:
        return f"Swapped {self.amount_in} {self.token_in.symbol} for ~{self.amount_out} {self.token_out.symbol}"
