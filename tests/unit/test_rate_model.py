"""Unit tests for the kinked rate curve and rate formatting."""
from __future__ import annotations

import pytest

from infrafi.models import InterestRateModel
from infrafi.rate_model import (
    borrow_rate,
    describe_model,
    format_apy,
    format_utilization,
    rate_curve,
    supply_rate,
    utilization_rate,
)

WAD = 10**18


class TestFormatting:
    def test_format_apy(self) -> None:
        assert format_apy(300) == "3.00%"
        assert format_apy(1940) == "19.40%"

    def test_format_utilization(self) -> None:
        assert format_utilization(8000) == "80.0%"
        assert format_utilization(1234) == "12.3%"


class TestUtilizationRate:
    def test_basic(self) -> None:
        assert utilization_rate(100 * WAD, 75 * WAD) == 7500

    def test_nothing_supplied(self) -> None:
        assert utilization_rate(0, 5 * WAD) == 0

    def test_capped_at_full(self) -> None:
        assert utilization_rate(100, 150) == 10_000

    def test_malformed(self) -> None:
        assert utilization_rate("bad", 5) == 0


class TestBorrowRate:
    def test_zero_utilization_is_base(self, sample_rate_model: InterestRateModel) -> None:
        assert borrow_rate(sample_rate_model, 0) == 300

    def test_below_kink(self, sample_rate_model: InterestRateModel) -> None:
        assert borrow_rate(sample_rate_model, 5000) == 700

    def test_at_kink(self, sample_rate_model: InterestRateModel) -> None:
        assert borrow_rate(sample_rate_model, 8000) == 940

    def test_above_kink_uses_jump(self, sample_rate_model: InterestRateModel) -> None:
        assert borrow_rate(sample_rate_model, 9000) == 1440
        assert borrow_rate(sample_rate_model, 10_000) == 1940

    def test_slope_steepens_after_kink(self, sample_rate_model: InterestRateModel) -> None:
        before = borrow_rate(sample_rate_model, 7000) - borrow_rate(sample_rate_model, 6000)
        after = borrow_rate(sample_rate_model, 10_000) - borrow_rate(sample_rate_model, 9000)
        assert after > before


class TestSupplyRate:
    def test_lender_share_of_paid_interest(
        self, sample_rate_model: InterestRateModel
    ) -> None:
        # 7.00% borrow APY * 50% utilization * 80% lender share
        assert supply_rate(sample_rate_model, 5000, 80.0) == 280

    def test_idle_pool_pays_nothing(self, sample_rate_model: InterestRateModel) -> None:
        assert supply_rate(sample_rate_model, 0) == 0


class TestRateCurve:
    def test_spans_full_range(self, sample_rate_model: InterestRateModel) -> None:
        curve = rate_curve(sample_rate_model)
        assert curve[0] == (0, 300)
        assert curve[-1] == (10_000, 1940)
        assert len(curve) == 21

    def test_includes_kink(self) -> None:
        model = InterestRateModel(kink=8000)
        utilizations = [u for u, _ in rate_curve(model, step_bp=3000)]
        assert utilizations == [0, 3000, 6000, 8000, 9000, 10_000]

    def test_non_decreasing(self, sample_rate_model: InterestRateModel) -> None:
        rates = [rate for _, rate in rate_curve(sample_rate_model, step_bp=100)]
        assert rates == sorted(rates)

    def test_invalid_step(self, sample_rate_model: InterestRateModel) -> None:
        with pytest.raises(ValueError):
            rate_curve(sample_rate_model, step_bp=0)


class TestDescribeModel:
    def test_lines(self, sample_rate_model: InterestRateModel) -> None:
        text = "\n".join(describe_model(sample_rate_model))
        assert "Base Rate:   3.00%" in text
        assert "Kink Point:  80%" in text
        assert "Jump Rate:   50%" in text
