"""Fixed-point conversions and risk ratios for 18-decimal token amounts.

Raw amounts arrive as non-negative integers (or their decimal-string
encoding) scaled by ``10**decimals``. Display helpers never raise: malformed
input degrades to a zero value and the caller surfaces upstream errors.
``validate_amount`` sits on the input path instead and reports failures as a
tagged ``ValidationResult``.
"""
from __future__ import annotations

import logging
import math
import re
from fractions import Fraction
from typing import Any

from .models import ValidationResult

logger = logging.getLogger(__name__)

WAD_DECIMALS = 18
WAD = 10**WAD_DECIMALS
BPS_SCALE = 10_000

ABBREVIATION_DIGITS = 2
_ABBREVIATIONS = ((1_000_000, "M"), (1_000, "K"))

_DIGITS_RE = re.compile(r"[0-9]+")
_DECIMAL_RE = re.compile(r"([0-9]*)(?:\.([0-9]*))?")

ERROR_NOT_POSITIVE = "Amount must be greater than 0"
ERROR_INVALID_FORMAT = "Invalid amount format"
ERROR_EXCEEDS_MAX = "Amount exceeds maximum"


# ---------------------------------------------------------------------------
# Coercion
# ---------------------------------------------------------------------------


def coerce_amount(value: Any) -> int | None:
    """Return ``value`` as a non-negative int, or None if it is not one.

    Accepts ints and plain digit strings (the subgraph encodes 256-bit
    integers as strings). Booleans, negatives, floats and anything else are
    rejected.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value >= 0 else None
    if isinstance(value, str):
        text = value.strip()
        if _DIGITS_RE.fullmatch(text):
            return int(text)
    return None


def _zero_string(decimals: int) -> str:
    return "0." + "0" * decimals if decimals > 0 else "0"


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------


def to_decimal_string(value: Any, decimals: int = WAD_DECIMALS) -> str:
    """Render a scaled integer with exactly ``decimals`` fractional digits.

    Examples:
        1500000000000000000 → "1.500000000000000000"
        "abc" → "0.000000000000000000"
    """
    amount = coerce_amount(value)
    if amount is None:
        return _zero_string(decimals)
    if decimals <= 0:
        return str(amount)
    whole, fraction = divmod(amount, 10**decimals)
    return f"{whole}.{fraction:0{decimals}d}"


def to_abbreviated_string(value: Any, decimals: int = WAD_DECIMALS) -> str:
    """Compact rendering: ``1.50M`` / ``12.35K`` for large whole parts.

    Below one thousand whole tokens the full-precision rendering of
    ``to_decimal_string`` is returned. The abbreviated forms lose precision
    and are for display only.
    """
    amount = coerce_amount(value)
    if amount is None:
        return _zero_string(decimals)

    scale = 10 ** max(decimals, 0)
    whole = amount // scale
    for threshold, suffix in _ABBREVIATIONS:
        if whole >= threshold:
            unit = 10**ABBREVIATION_DIGITS
            # round() on a Fraction is half-even and exact
            rounded = round(Fraction(amount * unit, scale * threshold))
            head, tail = divmod(rounded, unit)
            return f"{head}.{tail:0{ABBREVIATION_DIGITS}d}{suffix}"
    return to_decimal_string(amount, decimals)


def to_decimal_number(value: Any, decimals: int = WAD_DECIMALS) -> float:
    """Scaled integer → float in whole tokens (0.0 for malformed input)."""
    amount = coerce_amount(value)
    if amount is None:
        return 0.0
    return float(Fraction(amount, 10 ** max(decimals, 0)))


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def parse_amount(text: Any, decimals: int = WAD_DECIMALS) -> int:
    """Strict form of ``parse_decimal_string``: raises ValueError when malformed."""
    if not isinstance(text, str):
        raise ValueError(f"Expected a string, got {type(text).__name__}")

    cleaned = text.strip().replace(",", "")
    match = _DECIMAL_RE.fullmatch(cleaned)
    if match is None:
        raise ValueError(f"Invalid amount: {text!r}")

    whole, fraction = match.group(1), match.group(2) or ""
    if not whole and not fraction:
        raise ValueError(f"Invalid amount: {text!r}")

    decimals = max(decimals, 0)
    fraction = fraction[:decimals].ljust(decimals, "0")
    return int(whole or "0") * 10**decimals + int(fraction or "0")


def parse_decimal_string(text: Any, decimals: int = WAD_DECIMALS) -> int:
    """Parse ``"1,234.5"`` into its scaled integer; 0 for anything malformed.

    Fractional digits beyond ``decimals`` are truncated.
    """
    if not text:
        return 0
    try:
        return parse_amount(text, decimals)
    except ValueError:
        logger.debug("Unparseable amount %r, using 0", text)
        return 0


# ---------------------------------------------------------------------------
# Rates and ratios
# ---------------------------------------------------------------------------


def basis_points_to_percent(bp: int | float) -> float:
    """8000 → 80.0"""
    return bp / 100


def compute_ltv(collateral_value: Any, debt_value: Any) -> float:
    """Debt as a percentage of collateral.

    Zero collateral reports 0% rather than infinity; callers that need to
    detect insolvency check ``debt > 0 and collateral == 0`` themselves.
    """
    collateral = coerce_amount(collateral_value) or 0
    debt = coerce_amount(debt_value) or 0
    if collateral == 0 or debt == 0:
        return 0.0
    try:
        return debt * 100 / collateral
    except OverflowError:
        return math.inf


def compute_health_factor(
    collateral_value: Any,
    debt_value: Any,
    liquidation_threshold_percent: Any,
) -> float:
    """Calculate health factor.

    health_factor = (collateral * liquidation_threshold%) / debt

    Evaluated on exact rationals, so a position sitting exactly on the
    liquidation boundary yields 1.0. No debt yields ``math.inf``.
    """
    debt = coerce_amount(debt_value) or 0
    if debt == 0:
        return math.inf

    collateral = coerce_amount(collateral_value) or 0
    try:
        threshold = Fraction(liquidation_threshold_percent)
    except (TypeError, ValueError, OverflowError):
        logger.debug(
            "Invalid liquidation threshold %r", liquidation_threshold_percent
        )
        return 0.0
    try:
        return float(collateral * threshold / 100 / debt)
    except OverflowError:
        return math.inf


def interpolate_time_weighted_interest(
    total_interest: Any,
    elapsed_seconds: int,
    total_time_span_seconds: int,
) -> int:
    """Estimate the share of ``total_interest`` accrued after ``elapsed_seconds``.

    Linear interpolation for chart smoothing only. Real accrual depends on
    the sequence of events and the rate curve at each moment; this is not a
    ledger replay. Integer arithmetic, remainder truncated. ``elapsed_seconds``
    is clamped to ``[0, total_time_span_seconds]``.
    """
    total = coerce_amount(total_interest) or 0
    span = int(total_time_span_seconds)
    if total == 0 or span <= 0:
        return 0
    elapsed = min(max(int(elapsed_seconds), 0), span)
    return total * elapsed // span


# ---------------------------------------------------------------------------
# Input validation
# ---------------------------------------------------------------------------


def validate_amount(
    text: Any, max_amount: Any, decimals: int = WAD_DECIMALS
) -> ValidationResult:
    """Check a user-typed amount against an upper bound (balance, capacity).

    An amount equal to ``max_amount`` is valid so "max" actions work exactly.
    """
    if not text or text == "0":
        return ValidationResult(is_valid=False, error=ERROR_NOT_POSITIVE)

    try:
        parsed = parse_amount(text, decimals)
    except ValueError:
        return ValidationResult(is_valid=False, error=ERROR_INVALID_FORMAT)

    limit = coerce_amount(max_amount) or 0
    if parsed > limit:
        return ValidationResult(is_valid=False, error=ERROR_EXCEEDS_MAX)
    return ValidationResult(is_valid=True)
