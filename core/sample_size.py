# =============================================================================
# core/sample_size.py  —  Sample-Size Estimation (the statistical core)
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Given a baseline conversion rate, a relative minimum detectable effect
#   (MDE) and a significance level, estimates how many visitors EACH variant
#   of an A/B test needs.  It uses a variance-based closed form for a binary
#   (converted / not converted) metric, not an exact power calculation.
#
# THE FORMULA:
#   absolute_effect = baseline × relative_effect
#   c1 = baseline,  c2 = baseline − absolute_effect,  c3 = baseline + absolute_effect
#   theta = |absolute_effect|
#
#   variance1 = c1(1−c1) + c2(1−c2)        ← comparison arm shifts DOWN
#   variance2 = c1(1−c1) + c3(1−c3)        ← comparison arm shifts UP
#
#   estimate  = 2 · confidence · v · ln(1 + √v / theta) / theta²
#
#   The two variances differ because a Bernoulli variance is not symmetric
#   around the baseline.  The estimator reports the larger of the two
#   candidates so the test is never under-sized.
#
# SIGNIFICANCE CONVENTION:
#   The public functions take the significance level as a PERCENTAGE in the
#   open interval (0, 100), e.g. 95.  confidence_factor() converts it once,
#   at the boundary, into the fraction the formula multiplies by.
#
# FAILURE IS A VALUE:
#   estimate_sample_size() never raises for numeric input.  A zero effect,
#   a baseline outside (0, 1), a significance outside (0, 100) or any input
#   that makes the arithmetic non-finite returns None ("no result").
#   Python raises on sqrt(-x) and x / 0 where other runtimes quietly produce
#   NaN and Infinity, so those cases are mapped explicitly below.
# =============================================================================

import math
import numbers
from typing import Optional

from core.models import EstimationInput


SIGNIFICANT_DIGITS = 3

# Defaults used when user input cannot be used as-is (validate_parameter).
DEFAULT_VALUES: dict[str, float] = {
    "conversion": 0.03,
    "effect": 0.2,
    "significance": 95,
}

# Accepted significance range for user input, in percent.
_SIGNIFICANCE_INPUT_RANGE = (80, 99)

# Smallest fraction validate_parameter lets through for conversion/effect.
_MIN_FRACTION = 1e-6
_FRACTION_FLOOR = 0.0001


def _is_real(value) -> bool:
    """True for int/float-like values; bools are not numbers here."""
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves toward +infinity.

    Python's round() rounds halves to even (round(12.5) == 12).  The
    calculator's published numbers round halves up, so 12.5 → 13.
    """
    return math.floor(value + 0.5)


def confidence_factor(significance_percent: float) -> float:
    """Convert a significance percentage into the formula's confidence factor.

    The arithmetic is kept as 1 − (1 − p/100) rather than simplified to
    p/100 so results match the published calculator bit for bit.
    """
    one_minus_confidence = 1 - significance_percent / 100
    return 1 - one_minus_confidence


def _candidate(variance: float, theta: float, confidence: float) -> float:
    """One closed-form estimate; NaN or infinity where the math is undefined."""
    if variance < 0:
        return math.nan
    try:
        return (
            2 * confidence * variance * math.log(1 + math.sqrt(variance) / theta)
        ) / (theta * theta)
    except (ZeroDivisionError, OverflowError):
        # theta == 0, or theta so small that theta² underflows to zero
        return math.inf


def sample_size_candidates(
    baseline_rate: float,
    relative_effect: float,
    confidence: float,
) -> tuple[float, float]:
    """Return both candidate estimates (down-shift, up-shift), unrounded.

    `confidence` is the factor from confidence_factor(), not a percentage.
    Either value may be NaN or infinite for degenerate inputs.
    """
    absolute_effect = baseline_rate * relative_effect
    c1 = baseline_rate
    c2 = baseline_rate - absolute_effect
    c3 = baseline_rate + absolute_effect
    theta = abs(absolute_effect)

    variance1 = c1 * (1 - c1) + c2 * (1 - c2)
    variance2 = c1 * (1 - c1) + c3 * (1 - c3)

    return (
        _candidate(variance1, theta, confidence),
        _candidate(variance2, theta, confidence),
    )


def raw_sample_size(
    baseline_rate: float,
    relative_effect: float,
    significance_percent: float,
) -> Optional[float]:
    """Return the selected (larger) candidate before rounding, or None."""
    if not all(_is_real(v) for v in (baseline_rate, relative_effect, significance_percent)):
        return None
    if not 0 < baseline_rate < 1:
        return None
    if not 0 < significance_percent < 100:
        return None

    estimate1, estimate2 = sample_size_candidates(
        baseline_rate, relative_effect, confidence_factor(significance_percent)
    )
    # Any comparison with NaN is False, so a NaN estimate1 yields estimate2
    estimate = estimate1 if abs(estimate1) >= abs(estimate2) else estimate2
    if not math.isfinite(estimate) or estimate < 0:
        return None
    return estimate


def round_to_sig_figs(value: float, digits: int = SIGNIFICANT_DIGITS) -> int:
    """Round a non-negative value to `digits` significant figures.

    Two-stage procedure: round to a whole number first, then scale by a power
    of ten so exactly `digits` digits sit left of the decimal point, round
    again and scale back.

        >>> round_to_sig_figs(12345)
        12300
        >>> round_to_sig_figs(87)
        87
    """
    whole = round_half_up(value)
    if whole < 0:
        raise ValueError("round_to_sig_figs requires a non-negative value")
    if whole == 0:
        # log10(0) is undefined; an estimate under 0.5 rounds to zero
        return 0
    scale = 10 ** (digits - math.floor(math.log10(whole)) - 1)
    return int(round_half_up(round_half_up(whole * scale) / scale))


def estimate_sample_size(
    baseline_rate: float,
    relative_effect: float,
    significance_percent: float,
) -> Optional[int]:
    """Estimate the sample size needed PER VARIANT.

    Args:
        baseline_rate: Expected control conversion rate, in (0, 1).
        relative_effect: Relative change to detect (0.05 = 5%).  Sign is
            ignored by the formula apart from which variance comes first.
        significance_percent: Significance level as a percentage, e.g. 95.

    Returns:
        The sample size rounded to three significant figures, or None when
        the inputs do not admit a finite, non-negative estimate.
    """
    estimate = raw_sample_size(baseline_rate, relative_effect, significance_percent)
    if estimate is None:
        return None
    return round_to_sig_figs(estimate)


def estimate(inputs: EstimationInput) -> Optional[int]:
    """estimate_sample_size() for an EstimationInput."""
    return estimate_sample_size(
        inputs.baseline_rate, inputs.relative_effect, inputs.significance_percent
    )


# =============================================================================
# Input normalisation (for raw, user-typed values)
# =============================================================================
def validate_parameter(value, parameter: str) -> float:
    """Normalise a raw user value for one of the calculator's inputs.

    - conversion / effect: non-numbers, NaN and values ≤ 0 become the
      default; positive fractions below 1e-6 are floored to 0.0001.
    - significance: anything outside 80–99 (percent) becomes 95.

    Raises:
        ValueError: if `parameter` is not one of DEFAULT_VALUES.
    """
    if parameter not in DEFAULT_VALUES:
        raise ValueError(f"Invalid parameter: {parameter}")
    default = DEFAULT_VALUES[parameter]
    if not _is_real(value) or math.isnan(value):
        return default

    if parameter in ("conversion", "effect"):
        if value <= 0:
            return default
        if value < _MIN_FRACTION:
            return _FRACTION_FLOOR
        return value

    low, high = _SIGNIFICANCE_INPUT_RANGE
    if value < low or value > high:
        return default
    return value


def add_thousands_delim(value: int) -> str:
    """Format a sample size for display: 12300 → '12,300'."""
    return f"{value:,}"
