from decimal import Decimal

import pytest

from yield_farm.core.utils.units import (
    ParseError,
    fractional_digits,
    is_decimal_string,
    to_decimal,
    to_decimal_string,
    to_fixed_point,
)


class TestIsDecimalString:
    @pytest.mark.parametrize("value", ["1", "1.5", ".5", "2.", "007", "0.000001"])
    def test_accepts_plain_decimals(self, value):
        assert is_decimal_string(value)

    @pytest.mark.parametrize(
        "value", ["", ".", "-1", "+1", "1e5", "abc", "1.2.3", "1,5", " "]
    )
    def test_rejects_everything_else(self, value):
        assert not is_decimal_string(value)


class TestFractionalDigits:
    def test_counts_digits_after_point(self):
        assert fractional_digits("1.250") == 3
        assert fractional_digits("3") == 0
        assert fractional_digits("3.") == 0

    def test_invalid_raises(self):
        with pytest.raises(ParseError):
            fractional_digits("nope")


class TestToFixedPoint:
    def test_scales_by_decimals(self):
        assert to_fixed_point("3.5", 18) == 3_500_000_000_000_000_000
        assert to_fixed_point("1", 6) == 1_000_000
        assert to_fixed_point(".5", 2) == 50
        assert to_fixed_point("2.", 2) == 200

    def test_zero_decimals(self):
        assert to_fixed_point("42", 0) == 42

    def test_smallest_unit(self):
        assert to_fixed_point("0.000000000000000001", 18) == 1

    def test_rejects_excess_precision_instead_of_rounding(self):
        with pytest.raises(ParseError, match="more than 6 fractional digits"):
            to_fixed_point("1.0000001", 6)

    def test_rejects_negative_decimals(self):
        with pytest.raises(ParseError):
            to_fixed_point("1", -1)

    def test_is_exact_for_large_values(self):
        value = "123456789012345678901234567890.123456789012345678"
        assert to_fixed_point(value, 18) == int(
            "123456789012345678901234567890123456789012345678"
        )

    def test_converts_past_int_string_digit_limit(self):
        result = to_fixed_point("9" * 4300, 18)
        assert result == (10**4300 - 1) * 10**18


class TestToDecimal:
    def test_returns_decimal(self):
        assert to_decimal(".5") == Decimal("0.5")
        assert to_decimal("0") == Decimal(0)


class TestToDecimalString:
    def test_trims_trailing_zeros(self):
        assert to_decimal_string(3_500_000_000_000_000_000, 18) == "3.5"
        assert to_decimal_string(10 * 10**18, 18) == "10"

    def test_small_amounts_keep_leading_zeros(self):
        assert to_decimal_string(1, 18) == "0.000000000000000001"

    def test_zero_decimals(self):
        assert to_decimal_string(7, 0) == "7"

    def test_inverts_to_fixed_point(self):
        assert to_fixed_point(to_decimal_string(123_456, 4), 4) == 123_456
