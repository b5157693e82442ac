# =============================================================================
# core/models.py  —  Data Models (the "nouns" of the system)
# =============================================================================
#
# These dataclasses define the shape of the information that flows between
# core/ and the tool layer.  They carry no behavior beyond small conversion
# helpers.
#
# Board API results are NOT modelled here: the monday.com client returns the
# API's own JSON wrapped in {"success": True, "data": ...} records, which the
# tools hand straight back to the agent.
# =============================================================================

from dataclasses import dataclass, field
from typing import Optional


# -----------------------------------------------------------------------------
# EstimationInput — the three numbers the sample-size formula needs
# -----------------------------------------------------------------------------
# Constructed fresh per call and thrown away afterwards.  The significance is
# a PERCENTAGE (95 means 95%); the estimator converts it at the boundary.
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class EstimationInput:
    """Inputs of one sample-size estimate."""

    baseline_rate: float               # Control conversion rate, in (0, 1)
    relative_effect: float             # Relative MDE, e.g. 0.05 for a 5% lift
    significance_percent: float        # e.g. 95


# -----------------------------------------------------------------------------
# ExperimentPlan — what the calculate_sample_size tool reports
# -----------------------------------------------------------------------------
@dataclass
class ExperimentPlan:
    """Sample sizes and estimated run time for an A/B(/n) test."""

    sample_size_per_variant: int       # Estimate × variant multiplier
    total_sample_size: int             # Per-variant size × number of variants
    days_to_run: int
    weeks_to_run: int
    months_to_run: int
    variant_multiplier: int            # 1 for A/B, n for n > 2 variants
    visitors_count: int
    visitors_frequency: str            # "Monthly", "Weekly" or "Daily"
    visitors_count_days: int           # Visitors per day across all variants
    baseline_rate: float
    expected_lift: float
    significance: float
    variants: int
    formula: str = ""

    def to_payload(self) -> dict:
        """Return the tool payload with the platform's camelCase field names."""
        return {
            "sampleSizePerVariant": self.sample_size_per_variant,
            "totalSampleSize": self.total_sample_size,
            "daysToRun": self.days_to_run,
            "weeksToRun": self.weeks_to_run,
            "monthsToRun": self.months_to_run,
            "variantMultiplier": self.variant_multiplier,
            "visitorsCount": self.visitors_count,
            "visitorsFrequency": self.visitors_frequency,
            "visitorsCountDays": self.visitors_count_days,
            "baselineRate": self.baseline_rate,
            "expectedLift": self.expected_lift,
            "significance": self.significance,
            "variants": self.variants,
            "formula": self.formula,
        }


# -----------------------------------------------------------------------------
# Lifecycle results
# -----------------------------------------------------------------------------
# Install/upgrade hooks report success or a retryable failure.  The settings
# form handler reports a list of toasts, the way a settings UI shows them.
# -----------------------------------------------------------------------------
@dataclass
class LifecycleResult:
    """Outcome of an install, upgrade or uninstall hook."""

    success: bool
    retryable: bool = False
    message: Optional[str] = None


@dataclass
class Toast:
    """A short message shown to whoever submitted the settings form."""

    intent: str                        # "success", "info", "warning", "danger"
    message: str


@dataclass
class SettingsFormResult:
    """Toasts produced while handling one settings-form submission."""

    toasts: list[Toast] = field(default_factory=list)

    def add_toast(self, intent: str, message: str) -> "SettingsFormResult":
        self.toasts.append(Toast(intent=intent, message=message))
        return self
