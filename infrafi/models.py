"""Data models — all frozen (immutable)."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class EventType(str, Enum):
    """Kinds of indexed protocol events, named as the subgraph names them."""

    SUPPLY = "supply"
    WITHDRAW = "withdraw"
    BORROW = "borrow"
    REPAY = "repay"
    NODE_DEPOSIT = "nodeDeposit"
    NODE_WITHDRAWAL = "nodeWithdrawal"


class PositionStatus(str, Enum):
    HEALTHY = "HEALTHY"
    AT_RISK = "AT_RISK"
    LIQUIDATABLE = "LIQUIDATABLE"
    INSOLVENT = "INSOLVENT"


@dataclass(frozen=True)
class InterestRateModel:
    """Kinked rate curve parameters, all in basis points."""

    base_rate: int = 300
    multiplier: int = 800
    jump: int = 5000
    kink: int = 8000


@dataclass(frozen=True)
class Position:
    """Snapshot of a user's debt and collateral (18-decimal raw integers)."""

    principal: int
    accrued_interest: int
    collateral_value: int

    @property
    def debt(self) -> int:
        return self.principal + self.accrued_interest


@dataclass(frozen=True)
class TimeSeriesPoint:
    """A single historical event."""

    timestamp_seconds: int
    event_type: EventType
    amount: int


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    error: str | None = None


@dataclass(frozen=True)
class TimelinePoint:
    """One point of a user's performance chart, values in whole tokens."""

    label: str
    timestamp: int
    supplied: float
    borrowed: float
    collateral: float
    supply_interest: float
    borrow_interest: float

    @property
    def total_supply_value(self) -> float:
        return self.supplied + self.supply_interest

    @property
    def total_debt_value(self) -> float:
        return self.borrowed + self.borrow_interest

    @property
    def net_position(self) -> float:
        return (
            self.supplied
            + self.collateral
            + self.supply_interest
            - self.borrowed
            - self.borrow_interest
        )


@dataclass(frozen=True)
class PositionReport:
    """Derived risk figures for a position."""

    position: Position
    ltv: float
    health_factor: float
    liquidation_threshold: float
    status: PositionStatus
    max_borrow: int


@dataclass(frozen=True)
class UserSummary:
    net_interest: int
    net_worth: int
    supply_apy: float
    borrow_apy: float
    days_active: int


@dataclass(frozen=True)
class UserPositionRecord:
    """Indexed per-user aggregates (raw 18-decimal integers)."""

    total_supplied: int = 0
    total_borrowed: int = 0
    collateral_value: int = 0
    total_supply_interest: int = 0
    total_borrow_interest: int = 0
    first_interaction_timestamp: int = 0


@dataclass(frozen=True)
class UserHistory:
    position: UserPositionRecord | None = None
    events: tuple[TimeSeriesPoint, ...] = ()
