"""
Module 03 - Amount Parsing Tests
Tests for core/claims/amounts.py

Amounts are exact decimals converted to integer smallest units with
round-half-up; floats are never involved.
"""
from decimal import Decimal

import pytest

from core.claims.amounts import (
    check_total_allocation,
    from_smallest_unit,
    parse_amount,
    parse_decimal,
    to_smallest_unit,
)
from core.schemas.claims import MAX_UINT256
from core.schemas.errors import (
    AllocationOverflowException,
    InvalidAmountException,
    MalformedRecordException,
)


class TestParseDecimal:
    """Parsing amount text."""

    def test_plain_values(self):
        assert parse_decimal("500.50") == Decimal("500.50")
        assert parse_decimal(" 1001 ") == Decimal("1001")

    def test_exponent_notation(self):
        assert parse_decimal("1e3") == Decimal("1000")

    @pytest.mark.parametrize("text", ["abc", "", "   ", "1,000", "NaN", "Infinity", "-inf"])
    def test_non_numeric_rejected(self, text):
        with pytest.raises(InvalidAmountException):
            parse_decimal(text)

    @pytest.mark.parametrize("text", ["1_000", "\uff15", "+5", "\u0661\u0662", "1.5.0", "0x10", "5 5"])
    def test_only_plain_ascii_decimals(self, text):
        """Digit separators, non-ASCII digits and a leading plus are not amounts."""
        with pytest.raises(InvalidAmountException, match="Invalid amount"):
            parse_decimal(text)

    def test_accepted_forms(self):
        assert parse_decimal(".5") == Decimal("0.5")
        assert parse_decimal("2.") == Decimal("2")
        assert parse_decimal("1.5E-2") == Decimal("0.015")

    @pytest.mark.parametrize("text", ["0", "0.000", "-5", "-0.01"])
    def test_non_positive_rejected(self, text):
        with pytest.raises(InvalidAmountException, match="positive"):
            parse_decimal(text)

    def test_missing_field_is_malformed(self):
        with pytest.raises(MalformedRecordException):
            parse_decimal(None)

    def test_absurd_exponent_rejected(self):
        with pytest.raises(InvalidAmountException, match="range"):
            parse_decimal("1e500")


class TestToSmallestUnit:
    """Scaling to integer units."""

    def test_exact_scaling(self):
        """500.50 at 6 decimals is 500500000 units."""
        assert to_smallest_unit(Decimal("500.50"), 6) == 500_500_000
        assert to_smallest_unit(Decimal("1001.00"), 6) == 1_001_000_000

    def test_round_half_up(self):
        """Excess precision rounds half up."""
        assert to_smallest_unit(Decimal("1.0000005"), 6) == 1_000_001
        assert to_smallest_unit(Decimal("1.0000004"), 6) == 1_000_000
        assert to_smallest_unit(Decimal("2.5"), 0) == 3

    def test_strict_rejects_rounding(self):
        """Strict precision refuses values that would need rounding."""
        with pytest.raises(InvalidAmountException, match="decimal places"):
            to_smallest_unit(Decimal("1.0000005"), 6, strict=True)

    def test_strict_accepts_trailing_zeros(self):
        assert to_smallest_unit(Decimal("1.50000000"), 6, strict=True) == 1_500_000

    def test_rounds_to_zero_rejected(self):
        """A positive amount below half a unit is not a valid claim."""
        with pytest.raises(InvalidAmountException, match="zero"):
            to_smallest_unit(Decimal("0.0000001"), 6)

    def test_uint256_bound(self):
        """Largest uint256 is accepted, one more is rejected."""
        assert to_smallest_unit(Decimal(MAX_UINT256), 0) == MAX_UINT256
        with pytest.raises(InvalidAmountException, match="uint256"):
            to_smallest_unit(Decimal(MAX_UINT256 + 1), 0)

    def test_eighteen_decimals(self):
        assert to_smallest_unit(Decimal("1.5"), 18) == 1_500_000_000_000_000_000


class TestParseAmount:
    """parse_amount combines parsing and scaling."""

    def test_returns_units_and_value(self):
        units, value = parse_amount("500.50", 6)
        assert units == 500_500_000
        assert value == Decimal("500.50")

    def test_no_float_drift(self):
        """0.1 + 0.2 style values stay exact."""
        total = sum(parse_amount("0.1", 6)[0] for _ in range(3))
        assert total == 300_000


class TestFromSmallestUnit:
    """Converting back to human units."""

    def test_conversion(self):
        assert from_smallest_unit(1_501_500_000, 6) == Decimal("1501.5")
        assert str(from_smallest_unit(1_501_500_000, 6)) == "1501.500000"

    def test_zero_decimals(self):
        assert from_smallest_unit(42, 0) == Decimal(42)


class TestCheckTotalAllocation:
    """Summed allocations must still fit a uint256."""

    def test_max_allowed(self):
        assert check_total_allocation(MAX_UINT256) == MAX_UINT256

    def test_overflow(self):
        with pytest.raises(AllocationOverflowException) as exc_info:
            check_total_allocation(MAX_UINT256 + 1)
        assert exc_info.value.details["total_allocation"] == str(MAX_UINT256 + 1)
