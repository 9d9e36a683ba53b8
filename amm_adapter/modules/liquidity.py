"""
Liquidity Module

Add liquidity to a pair (existing or new) and redeem LP tokens.
"""

from __future__ import annotations

import logging
from typing import Optional, Tuple

from ..types.common import Token, same_address
from ..types.pool import Pool
from ..types.result import TxResult
from ..types.intent import Operation, PendingOperation
from ..types.units import BPS_DENOMINATOR, from_base_units, is_positive_amount, parse_percentage, to_base_units
from ..protocols.uniswap_v2.math import apply_slippage, quote_liquidity, quote_redeem_shares, share_of
from ..errors import InsufficientFunds, InvalidInput, InvalidSlippage
from ..config import config
from .approval import ApprovalTracker
from .base import ActionState, OperationModule

logger = logging.getLogger(__name__)


def _check_slippage(slippage_bps: int) -> None:
    if isinstance(slippage_bps, bool) or not isinstance(slippage_bps, int) or not 0 <= slippage_bps < BPS_DENOMINATOR:
        raise InvalidSlippage(slippage_bps)


class AddLiquidityModule(OperationModule):
    """
    Deposit screen state

    Sides follow the user's order (token0 is whatever was picked first). For
    an existing pool the side typed last drives the other through the reserve
    ratio; a new pool takes both amounts as typed since the first deposit
    sets the price.

    Usage:
        deposit = client.add_liquidity
        deposit.set_tokens(weth, test)
        deposit.set_amount0("1")
        deposit.refresh()             # amount1 derived from reserves
        while deposit.action == ActionState.APPROVE:
            deposit.approve()
        deposit.execute()
    """

    operation = Operation.DEPOSIT
    label = "deposit"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.token0: Optional[Token] = None
        self.token1: Optional[Token] = None
        self.amount0: str = ""
        self.amount1: str = ""
        self.slippage_bps: int = config.trading.default_slippage_bps
        self.pool: Optional[Pool] = None
        self.is_new_pool: bool = False
        self._driver = 0
        self._desired: Optional[Tuple[int, int]] = None

    # =========================================================================
    # Inputs
    # =========================================================================

    def set_tokens(self, token0: Token, token1: Token) -> None:
        self._input_changed()
        self.token0 = token0
        self.token1 = token1
        self.pool = None

    def set_token0(self, token: Token) -> None:
        """Pick the first side; picking the other side's token swaps the sides"""
        self._input_changed()
        if self.token1 is not None and token == self.token1:
            self.token1 = self.token0
            self.amount0, self.amount1 = self.amount1, self.amount0
        self.token0 = token
        self.pool = None

    def set_token1(self, token: Token) -> None:
        self._input_changed()
        if self.token0 is not None and token == self.token0:
            self.token0 = self.token1
            self.amount0, self.amount1 = self.amount1, self.amount0
        self.token1 = token
        self.pool = None

    def set_amount0(self, amount: str) -> None:
        self._input_changed()
        self.amount0 = amount.strip()
        self._driver = 0

    def set_amount1(self, amount: str) -> None:
        self._input_changed()
        self.amount1 = amount.strip()
        self._driver = 1

    def set_slippage_bps(self, slippage_bps: int) -> None:
        _check_slippage(slippage_bps)
        self._input_changed()
        self.slippage_bps = slippage_bps

    def _apply_pending(self, pending: PendingOperation) -> None:
        self.token0 = pending.token0
        self.token1 = pending.token1
        self.pool = pending.pool
        self.amount0 = pending.amounts[0] or ""
        self.amount1 = pending.amounts[1] or ""
        self._driver = 0
        if pending.slippage_bps is not None:
            self.slippage_bps = pending.slippage_bps

    def _reset_amounts(self) -> None:
        self.amount0 = ""
        self.amount1 = ""
        self._desired = None

    def _snapshot(self):
        return (
            self.token0.key if self.token0 else None,
            self.token1.key if self.token1 else None,
            self.amount0,
            self.amount1,
            self._driver,
            self.slippage_bps,
        )

    # =========================================================================
    # Derivation
    # =========================================================================

    def _load_pool(self) -> Optional[Pool]:
        address = self.pool.address if self.pool is not None else None
        if address is None:
            address = self._gateway.factory.get_pair(self.token0.address, self.token1.address)
            if address is None:
                return None

        pair = self._gateway.pair(address)
        pair_token0 = pair.token0()
        reserve0, reserve1 = pair.get_reserves()
        if same_address(pair_token0, self.token0.address):
            first, second = self.token0, self.token1
        else:
            first, second = self.token1, self.token0
        return Pool(address, first.address, second.address, first.symbol, second.symbol, reserve0, reserve1)

    def _derive(self, pool: Optional[Pool]) -> Optional[Tuple[int, int, Optional[str]]]:
        """
        (amount0, amount1, derived_text) in user order, or None when not enough is entered

        derived_text is the counterpart amount computed from the reserves, None
        for a new pool.
        """
        if pool is None or not pool.has_liquidity:
            if not (is_positive_amount(self.amount0) and is_positive_amount(self.amount1)):
                return None
            return (
                to_base_units(self.amount0, self.token0.decimals),
                to_base_units(self.amount1, self.token1.decimals),
                None,
            )

        sides = [(self.token0, self.amount0), (self.token1, self.amount1)]
        driver_token, driver_amount = sides[self._driver]
        other_token = sides[1 - self._driver][0]
        if not is_positive_amount(driver_amount):
            return None

        driver_base = to_base_units(driver_amount, driver_token.decimals)
        reserve_driver, reserve_other = pool.reserves_for(driver_token.address)
        other_base = quote_liquidity(driver_base, reserve_driver, reserve_other)
        other_text = from_base_units(other_base, other_token.decimals)
        if self._driver == 0:
            return driver_base, other_base, other_text
        return other_base, driver_base, other_text

    def _refresh(self) -> ActionState:
        self._desired = None
        if self.token0 is None or self.token1 is None or self.account is None:
            return ActionState.DISABLED
        if self.token0 == self.token1:
            self.error = "Select two different tokens"
            return ActionState.DISABLED

        ticket = self._guard.issue(self._snapshot())

        pool = self._load_pool()
        derived = self._derive(pool)
        if derived is None:
            return ActionState.DISABLED

        desired = derived[:2]
        derived_text = derived[2]
        if 0 in desired:
            with self._guard.commit(ticket, self._snapshot()):
                self.pool = pool
                self.is_new_pool = pool is None or not pool.has_liquidity
                self._store_derived(derived_text)
                self.error = "Deposit amount too small for the pool ratio"
            return ActionState.DISABLED

        action = self._approval_action(
            (self.token0.address, desired[0]),
            (self.token1.address, desired[1]),
        )

        with self._guard.commit(ticket, self._snapshot()):
            self.pool = pool
            self.is_new_pool = pool is None or not pool.has_liquidity
            self._desired = desired
            self._store_derived(derived_text)
        return action

    def _store_derived(self, derived_text: Optional[str]) -> None:
        if derived_text is None:
            return
        if self._driver == 0:
            self.amount1 = derived_text
        else:
            self.amount0 = derived_text

    @property
    def desired_amounts(self) -> Optional[Tuple[int, int]]:
        """Base-unit deposit amounts (token0, token1) from the last refresh"""
        return self._desired

    @property
    def minimum_amounts(self) -> Optional[Tuple[int, int]]:
        if self._desired is None:
            return None
        return (
            apply_slippage(self._desired[0], self.slippage_bps),
            apply_slippage(self._desired[1], self.slippage_bps),
        )

    def _primary_tracker(self) -> Optional[ApprovalTracker]:
        if self.token0 is None:
            return None
        return self._tracker(self.token0.address)

    # =========================================================================
    # Execution
    # =========================================================================

    def _execute(self) -> TxResult:
        account = self.account
        amount0, amount1 = self._desired
        min0, min1 = self.minimum_amounts

        for token, amount in ((self.token0, amount0), (self.token1, amount1)):
            balance = self._gateway.token(token.address).balance_of(account)
            if balance < amount:
                raise InsufficientFunds.token_balance(token.symbol, amount, balance)

        kind = "new pool" if self.is_new_pool else "pool"
        logger.info(
            f"Adding liquidity to {kind} {self.token0.symbol}/{self.token1.symbol}: "
            f"{self.amount0} + {self.amount1}"
        )
        tx = self._gateway.router.build_add_liquidity(
            self.token0.address,
            self.token1.address,
            amount0,
            amount1,
            min0,
            min1,
            account,
            self._gateway.deadline(),
            self._gateway.tx_params(config.evm.lp_gas_limit),
        )
        return self._gateway.send(tx, self.label)

    def _success_message(self) -> str:
        return f"Added {self.amount0} {self.token0.symbol} and {self.amount1} {self.token1.symbol}"


class RemoveLiquidityModule(OperationModule):
    """
    Redeem screen state

    The LP amount is entered directly, as a percentage of the balance, or
    with max(). The pair contract itself is the LP token and must be
    approved for the router.

    Usage:
        redeem = client.remove_liquidity
        redeem.select_pool(pool)
        redeem.set_percentage(50)
        if redeem.refresh() == ActionState.APPROVE:
            redeem.approve()
        redeem.execute()
    """

    operation = Operation.REDEEM
    label = "redeem"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.pool: Optional[Pool] = None
        self.slippage_bps: int = config.trading.default_slippage_bps
        self.lp_balance: Optional[int] = None
        self.total_supply: Optional[int] = None
        self.preview: Optional[Tuple[int, int]] = None
        self._lp_amount: Optional[int] = None
        self._percentage_bps: Optional[int] = None
        self._pair_tokens: Optional[Tuple[Token, Token]] = None

    # =========================================================================
    # Inputs
    # =========================================================================

    def select_pool(self, pool: Pool) -> None:
        self._input_changed()
        self.pool = pool
        self._pair_tokens = None
        self._clear_amount()

    def set_tokens(self, token0: Token, token1: Token) -> None:
        """Select the pool of a token pair; it is looked up on the next refresh"""
        self._input_changed()
        self.pool = None
        self._pair_tokens = (token0, token1)
        self._clear_amount()

    def set_lp_amount(self, amount: str) -> None:
        """LP tokens to burn, as a decimal string (18 decimals)"""
        self._input_changed()
        self._percentage_bps = None
        self._lp_amount = to_base_units(amount.strip()) if is_positive_amount(amount.strip()) else None

    def set_percentage(self, percent) -> None:
        """Share of the LP balance to burn, in percent (0, 100]"""
        percentage_bps = parse_percentage(percent)
        if percentage_bps == 0:
            raise InvalidInput(f"Percentage must be in (0, 100], got {percent}", field_name="percentage", value=percent)
        self._input_changed()
        self._lp_amount = None
        self._percentage_bps = percentage_bps

    def max(self) -> None:
        self.set_percentage(100)

    def set_slippage_bps(self, slippage_bps: int) -> None:
        _check_slippage(slippage_bps)
        self._input_changed()
        self.slippage_bps = slippage_bps

    def _clear_amount(self) -> None:
        self._lp_amount = None
        self._percentage_bps = None
        self.preview = None

    def _apply_pending(self, pending: PendingOperation) -> None:
        self.pool = pending.pool
        self._pair_tokens = None if pending.pool is not None else (pending.token0, pending.token1)
        self._clear_amount()
        if pending.percentage is not None:
            self._percentage_bps = int(pending.percentage * 100)
        if pending.slippage_bps is not None:
            self.slippage_bps = pending.slippage_bps

    def _reset_amounts(self) -> None:
        self._clear_amount()

    @property
    def lp_amount(self) -> Optional[int]:
        """LP amount to burn in base units (resolved from the percentage once the balance is known)"""
        if self._lp_amount is not None:
            return self._lp_amount
        if self._percentage_bps is not None and self.lp_balance is not None:
            return share_of(self.lp_balance, self._percentage_bps)
        return None

    def _snapshot(self):
        tokens = None
        if self._pair_tokens is not None:
            tokens = (self._pair_tokens[0].key, self._pair_tokens[1].key)
        return (
            self.pool.address.lower() if self.pool else None,
            tokens,
            self._lp_amount,
            self._percentage_bps,
            self.slippage_bps,
        )

    # =========================================================================
    # Derivation
    # =========================================================================

    def _pool_address(self) -> Optional[str]:
        if self.pool is not None:
            return self.pool.address
        if self._pair_tokens is None:
            return None
        token0, token1 = self._pair_tokens
        return self._gateway.factory.get_pair(token0.address, token1.address)

    def _refresh(self) -> ActionState:
        self.preview = None
        if self.account is None:
            return ActionState.DISABLED

        ticket = self._guard.issue(self._snapshot())

        address = self._pool_address()
        if address is None:
            if self._pair_tokens is not None:
                self.error = f"No pool for {self._pair_tokens[0].symbol}/{self._pair_tokens[1].symbol}"
            return ActionState.DISABLED

        pair = self._gateway.pair(address)
        token0, token1 = pair.token0(), pair.token1()
        reserve0, reserve1 = pair.get_reserves()
        total_supply = pair.total_supply()
        lp_balance = pair.balance_of(self.account)

        pool = Pool(
            address,
            token0,
            token1,
            self._symbol(token0),
            self._symbol(token1),
            reserve0,
            reserve1,
        )

        lp_amount = self._lp_amount
        if lp_amount is None and self._percentage_bps is not None:
            lp_amount = share_of(lp_balance, self._percentage_bps)

        action = ActionState.DISABLED
        preview = None
        error = None
        if lp_amount is not None and lp_amount > lp_balance:
            error = f"LP amount {from_base_units(lp_amount)} exceeds balance {from_base_units(lp_balance)}"
        elif lp_amount:
            preview = quote_redeem_shares(lp_amount, total_supply, reserve0, reserve1)
            if 0 in preview:
                error = f"LP amount {from_base_units(lp_amount)} is too small to return both tokens"
            else:
                action = self._approval_action((address, lp_amount))

        with self._guard.commit(ticket, self._snapshot()):
            self.pool = pool
            self.lp_balance = lp_balance
            self.total_supply = total_supply
            self.preview = preview
            if error:
                self.error = error
        return action

    def _symbol(self, token_address: str) -> str:
        """Symbol from the pre-selected pool or pair tokens, else read on-chain"""
        if self.pool is not None and self.pool.contains(token_address):
            return self.pool.symbol_of(token_address)
        for token in self._pair_tokens or ():
            if same_address(token.address, token_address):
                return token.symbol
        return self._gateway.token(token_address).symbol()

    @property
    def minimum_amounts(self) -> Optional[Tuple[int, int]]:
        if self.preview is None:
            return None
        return (
            apply_slippage(self.preview[0], self.slippage_bps),
            apply_slippage(self.preview[1], self.slippage_bps),
        )

    def _primary_tracker(self) -> Optional[ApprovalTracker]:
        if self.pool is None:
            return None
        return self._tracker(self.pool.address)

    # =========================================================================
    # Execution
    # =========================================================================

    def _execute(self) -> TxResult:
        pool = self.pool
        lp_amount = self.lp_amount
        min0, min1 = self.minimum_amounts

        logger.info(f"Removing {from_base_units(lp_amount)} LP from {pool.pair_name}")
        tx = self._gateway.router.build_remove_liquidity(
            pool.token0,
            pool.token1,
            lp_amount,
            min0,
            min1,
            self.account,
            self._gateway.deadline(),
            self._gateway.tx_params(config.evm.lp_gas_limit),
        )
        return self._gateway.send(tx, self.label)

    def _success_message(self) -> str:
        return f"Removed liquidity from {self.pool.pair_name}"
