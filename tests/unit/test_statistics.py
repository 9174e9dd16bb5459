"""
Module 05 - Distribution Statistics Tests
Tests for orchestrator/statistics.py
"""
from decimal import Decimal

import pytest

from orchestrator.statistics import DistributionStatistics

from fixtures.claims import make_claim_set


class TestFromAmounts:
    """Statistics from smallest-unit integers."""

    def test_worked_example(self):
        stats = DistributionStatistics.from_amounts([500_500_000, 1_001_000_000], 6)
        assert stats.total_recipients == 2
        assert stats.total == Decimal("1501.5")
        assert stats.average == Decimal("750.750000")
        assert stats.median == Decimal("750.750000")
        assert stats.min_reward == Decimal("500.5")
        assert stats.max_reward == Decimal("1001")

    def test_odd_count_median(self):
        stats = DistributionStatistics.from_amounts([3, 1, 2], 0)
        assert stats.median == Decimal(2)
        assert stats.min_reward == Decimal(1)
        assert stats.max_reward == Decimal(3)

    def test_average_rounds_half_up(self):
        """1 + 2 units over 2 recipients at 0 decimals is 1.5 -> 2."""
        stats = DistributionStatistics.from_amounts([1, 2], 0)
        assert stats.average == Decimal(2)
        assert stats.median == Decimal(2)

    def test_average_quantized_to_precision(self):
        stats = DistributionStatistics.from_amounts([1, 1, 2], 6)
        assert stats.average == Decimal("0.000001")
        assert str(stats.average) == "0.000001"

    def test_empty_rejected(self):
        with pytest.raises(ValueError, match="empty"):
            DistributionStatistics.from_amounts([], 6)

    def test_total_exact_for_large_sets(self):
        """10,000 recipients of 0.000001 sum to exactly 0.01."""
        stats = DistributionStatistics.from_amounts([1] * 10_000, 6)
        assert stats.total == Decimal("0.01")


class TestFromClaims:
    """Statistics from a claim set."""

    def test_matches_claim_total(self):
        claims = make_claim_set(4)
        stats = DistributionStatistics.from_claims(claims, 6)
        assert stats.total == Decimal(claims.total_allocation).scaleb(-6)
        assert stats.total_recipients == 4


class TestRendering:
    """Serialized and printed forms."""

    def test_to_dict_strings(self):
        stats = DistributionStatistics.from_amounts([500_500_000, 1_001_000_000], 6)
        assert stats.to_dict() == {
            "total_recipients": 2,
            "total": "1501.500000",
            "average": "750.750000",
            "median": "750.750000",
            "min": "500.500000",
            "max": "1001.000000",
        }

    def test_summary_lines_with_symbol(self):
        stats = DistributionStatistics.from_amounts([1_000_000] * 1500, 6)
        lines = stats.summary_lines("USDC")
        assert lines[0] == "Total recipients: 1,500"
        assert lines[1] == "Total: 1500.000000 USDC"

    def test_summary_lines_without_symbol(self):
        stats = DistributionStatistics.from_amounts([5], 0)
        assert stats.summary_lines()[2] == "Average reward: 5"
