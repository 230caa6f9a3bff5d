"""Unit tests for data models."""
from __future__ import annotations

import pytest

from infrafi.models import (
    EventType,
    InterestRateModel,
    Position,
    TimelinePoint,
    TimeSeriesPoint,
    ValidationResult,
)

WAD = 10**18


class TestPosition:
    def test_debt_includes_interest(self, sample_position: Position) -> None:
        assert sample_position.debt == 50 * WAD

    def test_frozen(self, sample_position: Position) -> None:
        with pytest.raises(AttributeError):
            sample_position.principal = 0  # type: ignore[misc]

    def test_equality(self) -> None:
        assert Position(1, 2, 3) == Position(1, 2, 3)


class TestInterestRateModel:
    def test_defaults(self) -> None:
        model = InterestRateModel()
        assert (model.base_rate, model.multiplier, model.jump, model.kink) == (
            300, 800, 5000, 8000,
        )


class TestTimeSeriesPoint:
    def test_event_type_values_match_subgraph_names(self) -> None:
        assert EventType("nodeDeposit") is EventType.NODE_DEPOSIT
        assert EventType.NODE_WITHDRAWAL.value == "nodeWithdrawal"

    def test_frozen(self) -> None:
        point = TimeSeriesPoint(timestamp_seconds=1, event_type=EventType.SUPPLY, amount=5)
        with pytest.raises(AttributeError):
            point.amount = 6  # type: ignore[misc]


class TestValidationResult:
    def test_defaults(self) -> None:
        result = ValidationResult(is_valid=True)
        assert result.error is None


class TestTimelinePoint:
    def test_derived_values(self) -> None:
        point = TimelinePoint(
            label="Jan 1",
            timestamp=0,
            supplied=100.0,
            borrowed=40.0,
            collateral=200.0,
            supply_interest=4.0,
            borrow_interest=2.0,
        )
        assert point.total_supply_value == 104.0
        assert point.total_debt_value == 42.0
        assert point.net_position == 262.0
