"""
Constant-product (Uniswap V2) quote math

Integer-only mirrors of the router library formulas, so the client shows
exactly what the router will accept.
"""

from typing import Tuple

from ...types.result import Quote
from ...types.units import BPS_DENOMINATOR
from ...errors import InvalidInput, InvalidSlippage, NoLiquidity, NoSupply
from .api import DEFAULT_FEE_BPS


def _check_amount(name: str, amount: int) -> None:
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidInput(f"{name} must be an int, got {type(amount).__name__}", field_name=name, value=amount)
    if amount <= 0:
        raise InvalidInput.non_positive(name, amount)


def _check_reserves(reserve_in: int, reserve_out: int) -> None:
    if reserve_in <= 0 or reserve_out <= 0:
        raise NoLiquidity.empty_reserves(reserve_in, reserve_out)


def quote_counterpart(
    amount_in: int,
    reserve_in: int,
    reserve_out: int,
    fee_bps: int = DEFAULT_FEE_BPS,
) -> int:
    """
    Output amount for an exact-input swap (router getAmountOut)

    Args:
        amount_in: Input amount (base units)
        reserve_in: Pool reserve of the input token
        reserve_out: Pool reserve of the output token
        fee_bps: Pair swap fee in basis points (30 = 0.3%)

    Returns:
        Output amount (base units), rounded down

    Raises:
        InvalidInput: amount_in <= 0
        NoLiquidity: either reserve <= 0
    """
    _check_amount("amount_in", amount_in)
    _check_reserves(reserve_in, reserve_out)
    if not 0 <= fee_bps < BPS_DENOMINATOR:
        raise InvalidInput(f"fee_bps out of range: {fee_bps}", field_name="fee_bps", value=fee_bps)

    amount_in_with_fee = amount_in * (BPS_DENOMINATOR - fee_bps)
    numerator = amount_in_with_fee * reserve_out
    denominator = reserve_in * BPS_DENOMINATOR + amount_in_with_fee
    return numerator // denominator


def quote_liquidity(amount_a: int, reserve_a: int, reserve_b: int) -> int:
    """
    Amount of B matching ``amount_a`` at the current pool ratio (router quote)
    """
    _check_amount("amount_a", amount_a)
    _check_reserves(reserve_a, reserve_b)
    return amount_a * reserve_b // reserve_a


def quote_deposit(
    amount0: int,
    amount1: int,
    reserve0: int,
    reserve1: int,
    new_pool: bool,
) -> Tuple[int, int]:
    """
    Deposit amounts for (token0, token1)

    A new pool takes both amounts as given; the first deposit sets the price.
    An existing pool derives amount1 from amount0 and the reserves.
    """
    if new_pool:
        return amount0, amount1
    return amount0, quote_liquidity(amount0, reserve0, reserve1)


def apply_slippage(amount: int, slippage_bps: int) -> int:
    """
    Minimum acceptable amount after slippage, rounded down

    apply_slippage(amount, 0) == amount.

    Raises:
        InvalidSlippage: slippage_bps not an int in [0, 10000)
        InvalidInput: negative amount
    """
    if isinstance(slippage_bps, bool) or not isinstance(slippage_bps, int):
        raise InvalidSlippage(slippage_bps)
    if not 0 <= slippage_bps < BPS_DENOMINATOR:
        raise InvalidSlippage(slippage_bps)
    if amount < 0:
        raise InvalidInput(f"amount must not be negative, got {amount}", field_name="amount", value=amount)
    return amount * (BPS_DENOMINATOR - slippage_bps) // BPS_DENOMINATOR


def quote_redeem_shares(
    lp_amount: int,
    total_supply: int,
    reserve0: int,
    reserve1: int,
) -> Tuple[int, int]:
    """
    Tokens returned for burning ``lp_amount`` LP tokens

    Returns:
        (amount0, amount1) pro-rata to the pair reserves

    Raises:
        NoSupply: total_supply == 0
        InvalidInput: lp_amount outside [0, total_supply]
    """
    if total_supply <= 0:
        raise NoSupply()
    if lp_amount < 0 or lp_amount > total_supply:
        raise InvalidInput(
            f"LP amount {lp_amount} outside [0, {total_supply}]",
            field_name="lp_amount",
            value=lp_amount,
        )
    return lp_amount * reserve0 // total_supply, lp_amount * reserve1 // total_supply


def share_of(balance: int, bps: int) -> int:
    """Portion of ``balance`` for a percentage given in basis points"""
    if not 0 <= bps <= BPS_DENOMINATOR:
        raise InvalidInput(f"Share must be within [0, 10000] bps, got {bps}", field_name="bps", value=bps)
    return balance * bps // BPS_DENOMINATOR


def build_swap_quote(
    amount_in: int,
    reserve_in: int,
    reserve_out: int,
    slippage_bps: int,
    fee_bps: int = DEFAULT_FEE_BPS,
) -> Quote:
    """Quote plus minimum output; both derived from the same amount_out"""
    amount_out = quote_counterpart(amount_in, reserve_in, reserve_out, fee_bps)
    return Quote(
        amount_in=amount_in,
        amount_out=amount_out,
        amount_out_min=apply_slippage(amount_out, slippage_bps),
        slippage_bps=slippage_bps,
    )
