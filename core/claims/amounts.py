"""
Module 03 - Claim Ingestion
File: amounts.py

Purpose: Exact decimal amount parsing and conversion to smallest units.

All arithmetic uses decimal.Decimal under a dedicated context wide enough
for any uint256 value. Floats are never involved, so large recipient sets
cannot accumulate rounding drift.
"""
from __future__ import annotations

import re
from decimal import ROUND_HALF_UP, Context, Decimal, InvalidOperation, localcontext

from core.schemas.claims import MAX_UINT256
from core.schemas.errors import (
    AllocationOverflowException,
    InvalidAmountException,
    MalformedRecordException,
)


# uint256 has 78 decimal digits; leave headroom for fractional digits
AMOUNT_CONTEXT = Context(prec=160, rounding=ROUND_HALF_UP)

# Upper bound on token precision accepted from configuration
MAX_DECIMALS = 77

# Reject absurd exponents before doing any scaled arithmetic
_MAX_ADJUSTED_EXPONENT = 80

# Plain ASCII decimal with optional exponent; no sign other than "-", no
# digit separators
AMOUNT_PATTERN = re.compile(r"^-?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$", re.ASCII)


def parse_decimal(text: str | None) -> Decimal:
    """
    Parse amount text into a positive, finite Decimal.

    Raises:
        MalformedRecordException: If the field is missing entirely
        InvalidAmountException: If the text is empty, non-numeric,
            non-finite, zero or negative
    """
    if text is None:
        raise MalformedRecordException("Missing amount field")

    raw = text.strip()
    if not raw:
        raise InvalidAmountException("Missing amount", raw_value=text)

    if not AMOUNT_PATTERN.match(raw):
        raise InvalidAmountException(f"Invalid amount: {raw}", raw_value=raw)

    try:
        value = Decimal(raw)
    except InvalidOperation:
        raise InvalidAmountException(f"Invalid amount: {raw}", raw_value=raw) from None

    if not value.is_finite():
        raise InvalidAmountException(f"Invalid amount: {raw}", raw_value=raw)

    if value <= 0:
        raise InvalidAmountException(f"Amount must be positive: {raw}", raw_value=raw)

    if value.adjusted() > _MAX_ADJUSTED_EXPONENT:
        raise InvalidAmountException(f"Amount out of range: {raw}", raw_value=raw)

    return value


def to_smallest_unit(value: Decimal, decimals: int, *, strict: bool = False) -> int:
    """
    Convert a decimal amount to an integer count of smallest units.

    units = round(value * 10**decimals), rounding half up.

    Args:
        value: Positive decimal amount
        decimals: Token precision
        strict: Reject values with more fractional digits than ``decimals``
            instead of rounding them

    Raises:
        InvalidAmountException: If the result is zero, exceeds uint256, or
            (strict) would need rounding
    """
    with localcontext(AMOUNT_CONTEXT):
        scaled = value.scaleb(decimals)
        integral = scaled.quantize(Decimal(1), rounding=ROUND_HALF_UP)

    raw = format(value, "f")
    if strict and integral != scaled:
        raise InvalidAmountException(
            f"Amount has more than {decimals} decimal places: {raw}",
            raw_value=raw,
        )

    units = int(integral)
    if units <= 0:
        raise InvalidAmountException(
            f"Amount rounds to zero at {decimals} decimals: {raw}",
            raw_value=raw,
        )
    if units > MAX_UINT256:
        raise InvalidAmountException(f"Amount exceeds uint256: {raw}", raw_value=raw)

    return units


def check_total_allocation(total: int) -> int:
    """
    Reject a summed allocation the distributor contract cannot hold.

    Raises:
        AllocationOverflowException: If total exceeds uint256
    """
    if total > MAX_UINT256:
        raise AllocationOverflowException(total)
    return total


def parse_amount(
    text: str | None,
    decimals: int,
    *,
    strict: bool = False,
) -> tuple[int, Decimal]:
    """
    Parse amount text into (smallest units, decimal value).

    Example:
        >>> parse_amount("500.50", 6)
        (500500000, Decimal('500.50'))
    """
    value = parse_decimal(text)
    return to_smallest_unit(value, decimals, strict=strict), value


def from_smallest_unit(units: int, decimals: int) -> Decimal:
    """
    Convert smallest units back to an exact decimal amount.

    Example:
        >>> from_smallest_unit(1501500000, 6)
        Decimal('1501.500000')
    """
    with localcontext(AMOUNT_CONTEXT):
        return Decimal(units).scaleb(-decimals)
