"""
Decimal string <-> base unit conversion

All on-chain amounts are integers in the token's smallest unit. User
amounts are plain decimal strings; nothing in this module goes through
binary floating point.
"""

import re
from decimal import Decimal, InvalidOperation
from typing import Tuple, Union

from ..errors import InvalidInput

DEFAULT_DECIMALS = 18
BPS_DENOMINATOR = 10_000

# Digits with at most one decimal point and at least one digit
_AMOUNT_RE = re.compile(r"^(?:\d+(?:\.\d*)?|\.\d+)$")

AmountLike = Union[str, int, Decimal]


def _as_text(value: AmountLike) -> str:
    if isinstance(value, bool) or isinstance(value, float):
        # bool is an int subclass, float loses precision
        raise InvalidInput.amount(value, "expected a decimal string, int or Decimal")
    if isinstance(value, int):
        return str(value)
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise InvalidInput.amount(value, "not a finite number")
        return format(value, "f")
    if isinstance(value, str):
        return value.strip()
    raise InvalidInput.amount(value, f"unsupported type {type(value).__name__}")


def _split(value: AmountLike) -> Tuple[str, str]:
    text = _as_text(value)
    if not _AMOUNT_RE.match(text):
        raise InvalidInput.amount(value)
    whole, _, fraction = text.partition(".")
    return whole, fraction


def is_valid_amount(value: AmountLike) -> bool:
    """True if ``value`` parses as a non-negative decimal amount"""
    try:
        _split(value)
    except InvalidInput:
        return False
    return True


def is_positive_amount(value: AmountLike) -> bool:
    """True if ``value`` parses and is strictly greater than zero"""
    try:
        whole, fraction = _split(value)
    except InvalidInput:
        return False
    return any(ch != "0" for ch in whole + fraction)


def to_base_units(value: AmountLike, decimals: int = DEFAULT_DECIMALS) -> int:
    """
    Convert a decimal amount to integer base units

    Fraction digits beyond ``decimals`` are truncated, never rounded.

    Args:
        value: Decimal string ("1.5", ".5", "10"), int or Decimal
        decimals: Token decimals

    Returns:
        Amount in base units

    Raises:
        InvalidInput: If value is not a plain non-negative decimal
    """
    whole, fraction = _split(value)
    fraction = fraction[:decimals].ljust(decimals, "0")
    return int(whole or "0") * 10 ** decimals + int(fraction or "0")


def from_base_units(amount: int, decimals: int = DEFAULT_DECIMALS) -> str:
    """
    Convert integer base units to a canonical decimal string

    Canonical form keeps at least one fraction digit: 10**18 -> "1.0",
    5 * 10**17 -> "0.5".
    """
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidInput.amount(amount, "base units must be an int")
    if amount < 0:
        raise InvalidInput.amount(amount, "negative amount")
    whole, fraction = divmod(amount, 10 ** decimals)
    fraction_text = str(fraction).rjust(decimals, "0").rstrip("0") if decimals else ""
    return f"{whole}.{fraction_text or '0'}"


def normalize_amount(value: AmountLike) -> str:
    """Canonical decimal string for a valid amount ("007.50" -> "7.5")"""
    whole, fraction = _split(value)
    whole = whole.lstrip("0") or "0"
    fraction = fraction.rstrip("0") or "0"
    return f"{whole}.{fraction}"


def parse_percentage(value: Union[AmountLike, float]) -> int:
    """
    Percentage to basis points in [0, 10000]

    "50" -> 5000, "0.5" -> 50, "12.345%" -> 1234 (truncated).
    """
    text = str(value).strip()
    if text.endswith("%"):
        text = text[:-1].strip()
    try:
        percent = Decimal(text)
    except InvalidOperation:
        raise InvalidInput(f"Invalid percentage {value!r}", field_name="percentage", value=value)
    if not percent.is_finite() or percent < 0 or percent > 100:
        raise InvalidInput(
            f"Percentage must be between 0 and 100, got {value!r}",
            field_name="percentage",
            value=value,
        )
    return int(percent * 100)
