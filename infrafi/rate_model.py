"""Kinked interest rate curve and rate display helpers.

The protocol computes the live rates on-chain; these functions reproduce the
published curve so it can be displayed and plotted. All rates are basis
points (10000 = 100%).
"""
from __future__ import annotations

from .fixed_point import BPS_SCALE, basis_points_to_percent, coerce_amount
from .models import InterestRateModel


def format_apy(bp: int | float) -> str:
    """300 → "3.00%" """
    return f"{basis_points_to_percent(bp):.2f}%"


def format_utilization(bp: int | float) -> str:
    """8000 → "80.0%" """
    return f"{basis_points_to_percent(bp):.1f}%"


def utilization_rate(total_supplied: object, total_borrowed: object) -> int:
    """Share of supplied liquidity that is borrowed, in bp (capped at 100%)."""
    supplied = coerce_amount(total_supplied) or 0
    borrowed = coerce_amount(total_borrowed) or 0
    if supplied == 0:
        return 0
    return min(borrowed * BPS_SCALE // supplied, BPS_SCALE)


def borrow_rate(model: InterestRateModel, utilization_bp: int) -> int:
    """Borrow APY at a utilization.

    U <= kink: base + multiplier * U
    U >  kink: base + multiplier * kink + jump * (U - kink)
    """
    utilization = max(int(utilization_bp), 0)
    if utilization <= model.kink:
        return model.base_rate + model.multiplier * utilization // BPS_SCALE

    normal = model.base_rate + model.multiplier * model.kink // BPS_SCALE
    excess = utilization - model.kink
    return normal + model.jump * excess // BPS_SCALE


def supply_rate(
    model: InterestRateModel,
    utilization_bp: int,
    lender_share_percent: float = 80.0,
) -> int:
    """Supply APY: the lenders' share of interest paid on borrowed funds."""
    utilization = max(int(utilization_bp), 0)
    paid = borrow_rate(model, utilization) * utilization // BPS_SCALE
    return int(paid * lender_share_percent // 100)


def rate_curve(
    model: InterestRateModel, step_bp: int = 500
) -> list[tuple[int, int]]:
    """(utilization, borrow rate) pairs from 0% to 100%, including the kink."""
    if step_bp <= 0:
        raise ValueError("step_bp must be positive")

    points = set(range(0, BPS_SCALE + 1, step_bp))
    points.add(BPS_SCALE)
    if 0 <= model.kink <= BPS_SCALE:
        points.add(model.kink)
    return [(u, borrow_rate(model, u)) for u in sorted(points)]


def describe_model(model: InterestRateModel) -> list[str]:
    """Human-readable lines describing the curve."""
    kink = f"{basis_points_to_percent(model.kink):.0f}%"
    return [
        f"Base Rate:   {format_apy(model.base_rate)}",
        f"Multiplier:  {format_apy(model.multiplier)}",
        f"Kink Point:  {kink}",
        f"Jump Rate:   {basis_points_to_percent(model.jump):.0f}%",
        f"If Utilization <= {kink}: Rate = Base + Multiplier x Utilization",
        f"If Utilization >  {kink}: Rate = Base + Multiplier x Kink"
        f" + Jump x (Utilization - {kink})",
    ]
