"""Fixed-point finance math and position analytics for the InfraFi lending protocol."""
from .fixed_point import (
    basis_points_to_percent,
    compute_health_factor,
    compute_ltv,
    interpolate_time_weighted_interest,
    parse_decimal_string,
    to_abbreviated_string,
    to_decimal_string,
    validate_amount,
)

__all__ = [
    "basis_points_to_percent",
    "compute_health_factor",
    "compute_ltv",
    "interpolate_time_weighted_interest",
    "parse_decimal_string",
    "to_abbreviated_string",
    "to_decimal_string",
    "validate_amount",
]
