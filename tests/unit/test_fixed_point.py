"""
Unit tests for fixed-point helpers.
"""
from decimal import Decimal

import pytest
from tiles.errors import ArithmeticOverflow, ArithmeticUnderflow, InvalidAmount
from tiles.fixed_point import (
    MAX_UINT,
    WAD,
    checked_add,
    checked_sub,
    format_wad,
    from_wad,
    mul_div,
    to_wad,
    wad_div,
    wad_mul,
)


class TestMulDiv:
    """Test mul_div truncation and range checks."""

    def test_exact_division(self) -> None:
        assert mul_div(100, 2 * WAD, WAD) == 200

    def test_truncates_toward_zero(self) -> None:
        """Fractional results are floored."""
        assert mul_div(10, 1, 3) == 3
        assert mul_div(2, 1, 3) == 0

    def test_wide_intermediate_product(self) -> None:
        """Products wider than 256 bits are fine if the result fits."""
        assert mul_div(MAX_UINT, MAX_UINT, MAX_UINT) == MAX_UINT

    def test_result_overflow_raises(self) -> None:
        with pytest.raises(ArithmeticOverflow):
            mul_div(MAX_UINT, 2, 1)

    def test_zero_denominator_raises(self) -> None:
        with pytest.raises(ArithmeticOverflow, match="division by zero"):
            mul_div(1, 1, 0)

    def test_negative_operand_raises(self) -> None:
        with pytest.raises(ArithmeticUnderflow):
            mul_div(-1, 1, 1)

    def test_operand_above_word_raises(self) -> None:
        with pytest.raises(ArithmeticOverflow):
            mul_div(MAX_UINT + 1, 1, 1)

    def test_non_integer_rejected(self) -> None:
        with pytest.raises(TypeError):
            mul_div(1.5, 1, 1)


class TestWadHelpers:
    """Test wad conversions and checked arithmetic."""

    def test_wad_mul_and_div(self) -> None:
        assert wad_mul(3 * WAD, WAD // 2) == 3 * WAD // 2
        assert wad_div(WAD, 4 * WAD) == WAD // 4

    def test_checked_sub_underflow(self) -> None:
        with pytest.raises(ArithmeticUnderflow):
            checked_sub(1, 2)

    def test_checked_add_overflow(self) -> None:
        with pytest.raises(ArithmeticOverflow):
            checked_add(MAX_UINT, 1)

    def test_to_wad_from_float_is_exact(self) -> None:
        assert to_wad(0.01) == 10 ** 16
        assert to_wad("1.5") == 15 * 10 ** 17
        assert to_wad(2) == 2 * WAD

    def test_to_wad_rejects_too_many_decimals(self) -> None:
        with pytest.raises(InvalidAmount):
            to_wad("0.0000000000000000001")

    @pytest.mark.parametrize("value", ["abc", "", "inf", "nan", float("inf")])
    def test_to_wad_rejects_non_numbers(self, value) -> None:
        """Unparsable or infinite input is a validation error, not a decimal one."""
        with pytest.raises(InvalidAmount):
            to_wad(value)

    def test_from_wad_and_format(self) -> None:
        assert from_wad(WAD // 4) == Decimal("0.25")
        assert format_wad(2 * WAD, places=2) == "2.00"
