"""Pure parsing of indexed history records — no I/O.

Subgraph payloads are loosely shaped JSON. Every record is checked here,
once, and converted into typed models; malformed records are dropped with a
warning so downstream code never has to guess at field presence.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from .fixed_point import coerce_amount
from .models import EventType, TimeSeriesPoint, UserHistory, UserPositionRecord

logger = logging.getLogger(__name__)

# payload key → (event type, amount field). Node withdrawals carry no value.
EVENT_SOURCES: dict[str, tuple[EventType, str | None]] = {
    "supplyEvents": (EventType.SUPPLY, "amount"),
    "withdrawEvents": (EventType.WITHDRAW, "amount"),
    "borrowEvents": (EventType.BORROW, "amount"),
    "repayEvents": (EventType.REPAY, "amount"),
    "nodeDeposits": (EventType.NODE_DEPOSIT, "assetValue"),
    "nodeWithdrawals": (EventType.NODE_WITHDRAWAL, None),
}

_POSITION_FIELDS = {
    "total_supplied": "totalSupplied",
    "total_borrowed": "totalBorrowed",
    "collateral_value": "collateralValue",
    "total_supply_interest": "totalSupplyInterest",
    "total_borrow_interest": "totalBorrowInterest",
    "first_interaction_timestamp": "firstInteractionTimestamp",
}


def _representable(timestamp: int) -> bool:
    try:
        datetime.fromtimestamp(timestamp, tz=timezone.utc)
    except (OverflowError, ValueError, OSError):
        return False
    return True


def amount_field(event_type: EventType) -> str | None:
    """Name of the value-carrying field for an event type."""
    for source_type, field_name in EVENT_SOURCES.values():
        if source_type is event_type:
            return field_name
    return None


def parse_event(event_type: EventType, record: Any) -> TimeSeriesPoint | None:
    """Convert one subgraph event record, or return None if it is malformed.

    A missing amount counts as zero; an amount that is present but not a
    non-negative integer rejects the record.
    """
    if not isinstance(record, dict):
        logger.warning("Dropping %s event: not an object (%r)", event_type.value, record)
        return None

    timestamp = coerce_amount(record.get("timestamp"))
    if timestamp is None or not _representable(timestamp):
        logger.warning(
            "Dropping %s event %s: bad timestamp %r",
            event_type.value, record.get("id", "?"), record.get("timestamp"),
        )
        return None

    field_name = amount_field(event_type)
    amount = 0
    if field_name is not None and record.get(field_name) is not None:
        parsed = coerce_amount(record[field_name])
        if parsed is None:
            logger.warning(
                "Dropping %s event %s: bad %s %r",
                event_type.value, record.get("id", "?"), field_name, record[field_name],
            )
            return None
        amount = parsed

    return TimeSeriesPoint(
        timestamp_seconds=timestamp, event_type=event_type, amount=amount
    )


def collect_events(payload: dict[str, Any]) -> list[TimeSeriesPoint]:
    """Merge every event list in a history payload, oldest first."""
    events: list[TimeSeriesPoint] = []
    for key, (event_type, _) in EVENT_SOURCES.items():
        records = payload.get(key) or []
        if not isinstance(records, list):
            logger.warning("Ignoring '%s': expected a list", key)
            continue
        for record in records:
            point = parse_event(event_type, record)
            if point is not None:
                events.append(point)

    # sorted() is stable, equal timestamps keep payload order
    return sorted(events, key=lambda e: e.timestamp_seconds)


def parse_user_position(record: Any) -> UserPositionRecord | None:
    """Convert a subgraph ``userPosition`` record; invalid fields become 0."""
    if not isinstance(record, dict):
        return None

    values: dict[str, int] = {}
    for attr, key in _POSITION_FIELDS.items():
        raw = record.get(key)
        parsed = coerce_amount(raw)
        if parsed is None:
            if raw is not None:
                logger.warning("userPosition.%s is malformed (%r), using 0", key, raw)
            parsed = 0
        values[attr] = parsed
    return UserPositionRecord(**values)


def parse_user_history(payload: Any) -> UserHistory:
    """Build a ``UserHistory`` from a raw query result (or a saved JSON file)."""
    if not isinstance(payload, dict):
        logger.warning("History payload is not an object, treating as empty")
        return UserHistory()

    return UserHistory(
        position=parse_user_position(payload.get("userPosition")),
        events=tuple(collect_events(payload)),
    )
