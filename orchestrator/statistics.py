"""
Module 05 - Distribution Statistics

Summary figures printed after a build and stored alongside the
deployment info: recipient count, total, average, median, min and max
reward, all in human token units.

Computed from smallest-unit integers with Decimal, so the totals match
the manifest exactly.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Any, Iterable

from core.claims.amounts import AMOUNT_CONTEXT, from_smallest_unit
from core.schemas.canonical import format_decimal
from core.schemas.claims import ClaimSet


@dataclass(frozen=True)
class DistributionStatistics:
    """Reward distribution summary in human token units."""
    total_recipients: int
    total: Decimal
    average: Decimal
    median: Decimal
    min_reward: Decimal
    max_reward: Decimal
    decimals: int

    @classmethod
    def from_amounts(cls, amounts: Iterable[int], decimals: int) -> "DistributionStatistics":
        """
        Compute statistics from smallest-unit amounts.

        Average and median are rounded half up to the token precision.

        Raises:
            ValueError: If there are no amounts
        """
        units = sorted(amounts)
        if not units:
            raise ValueError("Cannot compute statistics for an empty distribution")

        count = len(units)
        total_units = sum(units)
        mid = count // 2
        quantum = Decimal(1).scaleb(-decimals)

        with localcontext(AMOUNT_CONTEXT):
            if count % 2 == 0:
                median_units = Decimal(units[mid - 1] + units[mid]) / 2
            else:
                median_units = Decimal(units[mid])
            average_units = Decimal(total_units) / count

            average = average_units.scaleb(-decimals).quantize(quantum, rounding=ROUND_HALF_UP)
            median = median_units.scaleb(-decimals).quantize(quantum, rounding=ROUND_HALF_UP)

        return cls(
            total_recipients=count,
            total=from_smallest_unit(total_units, decimals),
            average=average,
            median=median,
            min_reward=from_smallest_unit(units[0], decimals),
            max_reward=from_smallest_unit(units[-1], decimals),
            decimals=decimals,
        )

    @classmethod
    def from_claims(cls, claims: ClaimSet, decimals: int) -> "DistributionStatistics":
        return cls.from_amounts((claim.amount for claim in claims), decimals)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_recipients": self.total_recipients,
            "total": format_decimal(self.total),
            "average": format_decimal(self.average),
            "median": format_decimal(self.median),
            "min": format_decimal(self.min_reward),
            "max": format_decimal(self.max_reward),
        }

    def summary_lines(self, symbol: str = "") -> list[str]:
        """Human-readable lines, one figure per line."""
        unit = f" {symbol}" if symbol else ""
        return [
            f"Total recipients: {self.total_recipients:,}",
            f"Total: {format_decimal(self.total)}{unit}",
            f"Average reward: {format_decimal(self.average)}{unit}",
            f"Median reward: {format_decimal(self.median)}{unit}",
            f"Min reward: {format_decimal(self.min_reward)}{unit}",
            f"Max reward: {format_decimal(self.max_reward)}{unit}",
        ]


__all__ = ["DistributionStatistics"]
