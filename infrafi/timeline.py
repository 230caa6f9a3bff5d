"""User performance timeline built from indexed events.

Running balances come from replaying supply/withdraw/borrow/repay and node
events. Interest is only known as a current total, so the amount shown at each
earlier event is a linear estimate over the event span. The estimate smooths
the chart; it is not an accounting of what actually accrued.
"""
from __future__ import annotations

import logging
from fractions import Fraction
from typing import Iterable

from .charts import NOW_POINT_MIN_AGE, format_date_label, now_timestamp
from .fixed_point import (
    WAD_DECIMALS,
    coerce_amount,
    interpolate_time_weighted_interest,
    to_decimal_number,
)
from .models import EventType, TimelinePoint, TimeSeriesPoint

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86_400
DAYS_PER_YEAR = 365


def _apply(
    event: TimeSeriesPoint, supplied: int, borrowed: int, collateral: int
) -> tuple[int, int, int]:
    """Apply one event to (supplied, borrowed, collateral); balances floor at 0."""
    if event.event_type is EventType.SUPPLY:
        supplied += event.amount
    elif event.event_type is EventType.WITHDRAW:
        supplied = max(supplied - event.amount, 0)
    elif event.event_type is EventType.BORROW:
        borrowed += event.amount
    elif event.event_type is EventType.REPAY:
        borrowed = max(borrowed - event.amount, 0)
    elif event.event_type is EventType.NODE_DEPOSIT:
        collateral += event.amount
    elif event.event_type is EventType.NODE_WITHDRAWAL:
        # withdrawals are indexed without the node's value
        collateral = 0
    return supplied, borrowed, collateral


def build_performance_timeline(
    events: Iterable[TimeSeriesPoint],
    supply_interest: object = 0,
    borrow_interest: object = 0,
    now: int | None = None,
    decimals: int = WAD_DECIMALS,
    include_now: bool = True,
) -> list[TimelinePoint]:
    """One point per event, plus a trailing "Now" point when the last event is stale.

    ``include_now=False`` suppresses the "Now" point, used when there is no
    current position to report.
    """
    ordered = sorted(events, key=lambda e: e.timestamp_seconds)
    if not ordered:
        return []

    total_supply_interest = coerce_amount(supply_interest) or 0
    total_borrow_interest = coerce_amount(borrow_interest) or 0

    first = ordered[0].timestamp_seconds
    span = ordered[-1].timestamp_seconds - first or 1

    supplied = borrowed = collateral = 0
    points: list[TimelinePoint] = []
    for event in ordered:
        supplied, borrowed, collateral = _apply(event, supplied, borrowed, collateral)
        elapsed = event.timestamp_seconds - first
        points.append(
            TimelinePoint(
                label=format_date_label(event.timestamp_seconds, with_time=True),
                timestamp=event.timestamp_seconds,
                supplied=to_decimal_number(supplied, decimals),
                borrowed=to_decimal_number(borrowed, decimals),
                collateral=to_decimal_number(collateral, decimals),
                supply_interest=to_decimal_number(
                    interpolate_time_weighted_interest(
                        total_supply_interest, elapsed, span
                    ),
                    decimals,
                ),
                borrow_interest=to_decimal_number(
                    interpolate_time_weighted_interest(
                        total_borrow_interest, elapsed, span
                    ),
                    decimals,
                ),
            )
        )

    now = now_timestamp() if now is None else now
    last = points[-1]
    if include_now and now - last.timestamp > NOW_POINT_MIN_AGE:
        points.append(
            TimelinePoint(
                label="Now",
                timestamp=now,
                supplied=last.supplied,
                borrowed=last.borrowed,
                collateral=last.collateral,
                supply_interest=to_decimal_number(total_supply_interest, decimals),
                borrow_interest=to_decimal_number(total_borrow_interest, decimals),
            )
        )

    logger.debug("Built timeline with %d points from %d events", len(points), len(ordered))
    return points


def days_since(timestamp: int, now: int | None = None) -> int:
    """Whole days elapsed since ``timestamp``; 0 when unknown or in the future."""
    if not timestamp:
        return 0
    now = now_timestamp() if now is None else now
    return max((now - int(timestamp)) // SECONDS_PER_DAY, 0)


def effective_apy(interest: object, principal: object, days: int) -> float:
    """Annualise interest over ``days``: interest / principal * 365 / days, in %."""
    earned = coerce_amount(interest) or 0
    base = coerce_amount(principal) or 0
    if base == 0 or days <= 0:
        return 0.0
    return float(Fraction(earned, base) * DAYS_PER_YEAR / days * 100)
