"""Chart series shaping for protocol-wide daily snapshots.

Snapshots come newest first from the subgraph; every series is returned
oldest first. A snapshot that cannot be converted is skipped with a warning
instead of breaking the whole series.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable

from .fixed_point import WAD, basis_points_to_percent, coerce_amount, to_decimal_number

logger = logging.getLogger(__name__)

# A live "Now" point is only appended when the newest snapshot is older than this.
NOW_POINT_MIN_AGE = 3600


def now_timestamp() -> int:
    return int(datetime.now(timezone.utc).timestamp())


def format_date_label(timestamp: int, with_time: bool = False) -> str:
    """Unix timestamp → "Jan 5" or "Jan 5, 03:00 PM" (UTC)."""
    dt = datetime.fromtimestamp(int(timestamp), tz=timezone.utc)
    label = f"{dt:%b} {dt.day}"
    if with_time:
        label += f", {dt:%I:%M %p}"
    return label


def _bp_percent(value: Any) -> float:
    try:
        return basis_points_to_percent(float(value or 0))
    except (TypeError, ValueError):
        return 0.0


def _timestamp(snapshot: dict[str, Any]) -> int:
    raw = snapshot.get("date", snapshot.get("timestamp"))
    ts = coerce_amount(raw)
    if ts is None:
        raise ValueError(f"bad timestamp {raw!r}")
    return ts


def _shape(
    snapshots: list[dict[str, Any]] | None,
    convert: Callable[[dict[str, Any]], dict[str, Any]],
    name: str,
    with_time: bool = False,
) -> list[dict[str, Any]]:
    rows: list[dict[str, Any]] = []
    for snapshot in snapshots or []:
        try:
            ts = _timestamp(snapshot)
            row = {
                "date": format_date_label(ts, with_time=with_time),
                "timestamp": ts,
            }
            row.update(convert(snapshot))
        except (AttributeError, TypeError, ValueError, OverflowError) as e:
            logger.warning("Skipping %s snapshot %r: %s", name, snapshot, e)
            continue
        rows.append(row)
    rows.reverse()
    return rows


def _append_now(
    rows: list[dict[str, Any]],
    current: dict[str, Any] | None,
    convert: Callable[[dict[str, Any]], dict[str, Any]],
    now: int | None,
) -> list[dict[str, Any]]:
    """Add the live protocol state as the newest point when snapshots are stale."""
    if not current:
        return rows

    now = now_timestamp() if now is None else now
    if not rows:
        row = {"date": format_date_label(now), "timestamp": now}
        row.update(convert(current))
        return [row]

    if now - rows[-1]["timestamp"] > NOW_POINT_MIN_AGE:
        row = {"date": "Now", "timestamp": now}
        row.update(convert(current))
        rows.append(row)
    return rows


# ---------------------------------------------------------------------------
# Converters
# ---------------------------------------------------------------------------


def _tvl_values(snapshot: dict[str, Any]) -> dict[str, Any]:
    return {
        "total_supplied": to_decimal_number(snapshot.get("totalSupplied")),
        "total_borrowed": to_decimal_number(snapshot.get("totalBorrowed")),
        "total_collateral": to_decimal_number(snapshot.get("totalCollateralValue")),
    }


def _apy_values(snapshot: dict[str, Any]) -> dict[str, Any]:
    return {
        "supply_apy": _bp_percent(snapshot.get("supplyAPY")),
        "borrow_apy": _bp_percent(snapshot.get("borrowAPY")),
        "utilization": _bp_percent(snapshot.get("utilizationRate")),
    }


def _activity_values(snapshot: dict[str, Any]) -> dict[str, Any]:
    return {
        "supplies": int(snapshot.get("suppliesCount") or 0),
        "withdrawals": int(snapshot.get("withdrawalsCount") or 0),
        "borrows": int(snapshot.get("borrowsCount") or 0),
        "repays": int(snapshot.get("repaysCount") or 0),
        "node_deposits": int(snapshot.get("nodeDepositsCount") or 0),
        "node_withdrawals": int(snapshot.get("nodeWithdrawalsCount") or 0),
    }


def _volume_values(snapshot: dict[str, Any]) -> dict[str, Any]:
    return {
        "supply_volume": to_decimal_number(snapshot.get("supplyVolume")),
        "withdraw_volume": to_decimal_number(snapshot.get("withdrawVolume")),
        "borrow_volume": to_decimal_number(snapshot.get("borrowVolume")),
        "repay_volume": to_decimal_number(snapshot.get("repayVolume")),
    }


def _index_values(snapshot: dict[str, Any]) -> dict[str, Any]:
    borrow_index = coerce_amount(snapshot.get("borrowIndex"))
    supply_index = coerce_amount(snapshot.get("supplyIndex"))
    if borrow_index is None or supply_index is None:
        raise ValueError("missing index")
    return {
        "borrow_index": borrow_index / WAD,
        "supply_index": supply_index / WAD,
    }


# ---------------------------------------------------------------------------
# Public series
# ---------------------------------------------------------------------------


def tvl_series(
    snapshots: list[dict[str, Any]] | None,
    current: dict[str, Any] | None = None,
    now: int | None = None,
) -> list[dict[str, Any]]:
    rows = _shape(snapshots, _tvl_values, "TVL")
    return _append_now(rows, current, _tvl_values, now)


def apy_series(
    snapshots: list[dict[str, Any]] | None,
    current: dict[str, Any] | None = None,
    now: int | None = None,
) -> list[dict[str, Any]]:
    rows = _shape(snapshots, _apy_values, "APY")
    return _append_now(rows, current, _apy_values, now)


def activity_series(snapshots: list[dict[str, Any]] | None) -> list[dict[str, Any]]:
    return _shape(snapshots, _activity_values, "activity")


def volume_series(snapshots: list[dict[str, Any]] | None) -> list[dict[str, Any]]:
    return _shape(snapshots, _volume_values, "volume")


def index_series(
    snapshots: list[dict[str, Any]] | None,
    start_time: int | None = None,
) -> list[dict[str, Any]]:
    """Borrow/supply indices as plain ratios (1.05e18 → 1.05)."""
    selected = snapshots or []
    if start_time:
        selected = [
            s for s in selected
            if isinstance(s, dict)
            and (coerce_amount(s.get("timestamp")) or 0) >= start_time
        ]
    return _shape(selected, _index_values, "index", with_time=True)
