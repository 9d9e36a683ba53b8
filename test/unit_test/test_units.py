"""
Test Units Module

Tests for decimal string <-> base unit conversion.
"""

import sys
from decimal import Decimal
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from amm_adapter.types.units import (
    to_base_units,
    from_base_units,
    normalize_amount,
    is_valid_amount,
    is_positive_amount,
    parse_percentage,
)
from amm_adapter.errors import ErrorCode, InvalidInput


class TestToBaseUnits:
    """to_base_units parsing and truncation"""

    def test_whole_and_fraction(self):
        assert to_base_units("1") == 10 ** 18
        assert to_base_units("1.5") == 15 * 10 ** 17
        assert to_base_units(".5") == 5 * 10 ** 17
        assert to_base_units("10.") == 10 * 10 ** 18

    def test_custom_decimals(self):
        assert to_base_units("1.25", 6) == 1_250_000
        assert to_base_units("3", 0) == 3

    def test_truncates_extra_digits(self):
        assert to_base_units("1.1234567", 6) == 1_123_456
        assert to_base_units("0.0000000000000000019") == 1

    def test_accepts_int_and_decimal(self):
        assert to_base_units(2) == 2 * 10 ** 18
        assert to_base_units(Decimal("0.25")) == 25 * 10 ** 16

    def test_whitespace_is_stripped(self):
        assert to_base_units("  2.5 ") == 25 * 10 ** 17

    @pytest.mark.parametrize("value", ["", ".", "abc", "1.2.3", "-1", "1e18", "1,5", "0x10"])
    def test_rejects_malformed(self, value):
        with pytest.raises(InvalidInput) as exc_info:
            to_base_units(value)
        assert exc_info.value.code == ErrorCode.INVALID_AMOUNT

    def test_rejects_float_and_bool(self):
        with pytest.raises(InvalidInput):
            to_base_units(1.5)
        with pytest.raises(InvalidInput):
            to_base_units(True)

    def test_rejects_non_finite_decimal(self):
        with pytest.raises(InvalidInput):
            to_base_units(Decimal("NaN"))


class TestFromBaseUnits:
    """from_base_units canonical formatting"""

    def test_canonical_form(self):
        assert from_base_units(10 ** 18) == "1.0"
        assert from_base_units(5 * 10 ** 17) == "0.5"
        assert from_base_units(0) == "0.0"
        assert from_base_units(1) == "0.000000000000000001"
        assert from_base_units(1_234_500, 6) == "1.2345"

    def test_zero_decimals(self):
        assert from_base_units(42, 0) == "42.0"

    def test_rejects_negative(self):
        with pytest.raises(InvalidInput):
            from_base_units(-1)

    def test_rejects_non_int(self):
        with pytest.raises(InvalidInput):
            from_base_units("100")


def test_round_trip_law():
    """to_base_units(from_base_units(x)) == x for canonical strings"""
    print("Testing round trip...")

    for text in ["0.0", "1.0", "0.5", "123.456", "0.000000000000000001", "99999999.999999999999999999"]:
        assert from_base_units(to_base_units(text)) == text

    for amount in [0, 1, 10 ** 18, 123456789012345678901234567890]:
        assert to_base_units(from_base_units(amount)) == amount

    print("  Round trip: PASSED")


def test_normalize_amount():
    assert normalize_amount("007.50") == "7.5"
    assert normalize_amount(".5") == "0.5"
    assert normalize_amount("3") == "3.0"


def test_amount_predicates():
    assert is_valid_amount("0")
    assert is_valid_amount("1.5")
    assert not is_valid_amount("1.5x")
    assert not is_valid_amount("")

    assert is_positive_amount("0.001")
    assert not is_positive_amount("0")
    assert not is_positive_amount("0.000")
    assert not is_positive_amount("abc")


class TestParsePercentage:
    def test_percent_to_bps(self):
        assert parse_percentage("50") == 5000
        assert parse_percentage("0.5") == 50
        assert parse_percentage("12.345%") == 1234
        assert parse_percentage(100) == 10_000

    @pytest.mark.parametrize("value", ["101", "-1", "abc", "Infinity"])
    def test_out_of_range(self, value):
        with pytest.raises(InvalidInput):
            parse_percentage(value)
