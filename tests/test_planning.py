# tests/test_planning.py
import pytest

from core.planning import plan_experiment, visitors_per_day


def test_plan_for_default_inputs():
    plan = plan_experiment(0.1, 0.05, 95)
    payload = plan.to_payload()

    assert payload["sampleSizePerVariant"] == 62400
    assert payload["totalSampleSize"] == 124800
    assert payload["variantMultiplier"] == 1
    assert payload["visitorsCount"] == 10000
    assert payload["visitorsFrequency"] == "Monthly"
    assert payload["visitorsCountDays"] == 333
    assert payload["daysToRun"] == 374
    assert payload["weeksToRun"] == 53
    assert payload["monthsToRun"] == 12
    assert payload["baselineRate"] == 0.1
    assert payload["expectedLift"] == 0.05
    assert payload["significance"] == 95
    assert payload["variants"] == 2
    assert payload["formula"].startswith("Sample Size Calculator Tool Formula Version ")


def test_more_than_two_variants_scales_sample_size():
    plan = plan_experiment(0.1, 0.05, 95, variants=3)

    assert plan.variant_multiplier == 3
    assert plan.sample_size_per_variant == 62400 * 3
    assert plan.total_sample_size == 62400 * 3 * 3
    assert plan.days_to_run == 1685


def test_weekly_traffic():
    plan = plan_experiment(0.1, 0.05, 95, visitors=7000, frequency="weekly")

    # 1000 visitors a day, 500 per variant
    assert plan.visitors_count_days == 1000
    assert plan.days_to_run == 125
    assert plan.weeks_to_run == 18
    assert plan.months_to_run == 4
    assert plan.visitors_frequency == "Weekly"


def test_frequency_is_case_insensitive():
    assert visitors_per_day(300, "Monthly") == 10
    assert visitors_per_day(70, "WEEKLY") == 10
    assert visitors_per_day(10, "daily") == 10


def test_unknown_frequency_is_rejected():
    with pytest.raises(ValueError, match="Unsupported visitor frequency"):
        plan_experiment(0.1, 0.05, 95, frequency="yearly")


@pytest.mark.parametrize("kwargs", [{"variants": 0}, {"visitors": 0}, {"visitors": -5}])
def test_invalid_traffic_settings_are_rejected(kwargs):
    with pytest.raises(ValueError):
        plan_experiment(0.1, 0.05, 95, **kwargs)


def test_no_sample_size_means_no_plan():
    assert plan_experiment(0.1, 0.0, 95) is None
    assert plan_experiment(1.2, 0.05, 95) is None
