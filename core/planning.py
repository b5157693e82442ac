# =============================================================================
# core/planning.py  —  From a per-variant estimate to a test plan
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Wraps the sample-size estimator with the arithmetic a marketer actually
#   asks about: "how many visitors in total, and how long will it run?"
#
#   1. Estimate the per-variant sample size (core/sample_size.py)
#   2. Apply a variant multiplier for A/B/n tests (more than two variants)
#   3. Convert the visitor volume (monthly / weekly / daily) into visitors
#      per day, split evenly across variants
#   4. Divide to get days, weeks and months to run
#
# Everything here is plain unit conversion; the statistics live in
# sample_size.py.
# =============================================================================

from importlib.metadata import PackageNotFoundError, version as _version
from typing import Optional

from core.models import EstimationInput, ExperimentPlan
from core.sample_size import round_half_up, estimate


NO_RESULT_MESSAGE = "Invalid calculation parameters - unable to compute sample size"

DISTRIBUTION_NAME = "experiment-tools"
_FALLBACK_VERSION = "1.0.0"

# Days covered by one unit of each supported visitor frequency.
_DAYS_PER_PERIOD: dict[str, int] = {
    "monthly": 30,
    "weekly": 7,
    "daily": 1,
}


def formula_version() -> str:
    """Version of the installed distribution, used to label the formula."""
    try:
        return _version(DISTRIBUTION_NAME)
    except PackageNotFoundError:
        return _FALLBACK_VERSION


def visitors_per_day(visitors: float, frequency: str) -> float:
    """Convert a visitor count for the given period into visitors per day.

    Raises:
        ValueError: for a frequency other than monthly, weekly or daily.
    """
    period = frequency.lower()
    if period not in _DAYS_PER_PERIOD:
        raise ValueError(
            f"Unsupported visitor frequency '{frequency}' "
            f"(expected one of: {', '.join(_DAYS_PER_PERIOD)})"
        )
    return visitors / _DAYS_PER_PERIOD[period]


def plan_experiment(
    baseline_rate: float,
    mde: float,
    significance: float,
    variants: int = 2,
    visitors: int = 10000,
    frequency: str = "monthly",
) -> Optional[ExperimentPlan]:
    """Build a full test plan, or return None if no sample size exists.

    Args:
        baseline_rate: Control conversion rate, in (0, 1).
        mde: Relative minimum detectable effect (0.05 = 5%).
        significance: Significance level as a percentage, e.g. 95.
        variants: Number of arms, control included.
        visitors: Visitor volume per `frequency` period.
        frequency: "monthly", "weekly" or "daily" (any case).

    Raises:
        ValueError: for variants < 1, visitors <= 0 or an unknown frequency.
    """
    if variants < 1:
        raise ValueError("variants must be at least 1")
    if visitors <= 0:
        raise ValueError("visitors must be greater than 0")
    daily_visitors = visitors_per_day(visitors, frequency)

    sample_size = estimate(EstimationInput(baseline_rate, mde, significance))
    if sample_size is None:
        return None

    variant_multiplier = variants if variants > 2 else 1
    adjusted_sample_size = sample_size * variant_multiplier
    total_sample_size = adjusted_sample_size * variants

    # Traffic is assumed to be split evenly between the variants
    daily_visitors_per_variant = daily_visitors / variants
    days_to_run = adjusted_sample_size / daily_visitors_per_variant

    return ExperimentPlan(
        sample_size_per_variant=adjusted_sample_size,
        total_sample_size=round_half_up(total_sample_size),
        days_to_run=round_half_up(days_to_run),
        weeks_to_run=round_half_up(days_to_run / 7),
        months_to_run=round_half_up(days_to_run / 30),
        variant_multiplier=variant_multiplier,
        visitors_count=round_half_up(visitors),
        visitors_frequency=frequency[:1].upper() + frequency[1:],
        visitors_count_days=round_half_up(daily_visitors),
        baseline_rate=baseline_rate,
        expected_lift=mde,
        significance=significance,
        variants=variants,
        formula=f"Sample Size Calculator Tool Formula Version {formula_version()}",
    )
