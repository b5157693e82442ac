# tests/test_research.py
import pytest

from core.research import transform_research_data

COLUMNS = [
    {"id": "status", "title": "Status", "type": "status"},
    {"id": "text_hyp", "title": "Hypothesis", "type": "long_text"},
    {"id": "numbers_1", "title": "Sample Size", "type": "numbers"},
    {"id": "owner", "title": "Owner", "type": "people"},
    {"id": "text_out", "title": "Outcome", "type": "text"},
    {"id": "text_rec", "title": "Recommendation", "type": "long_text"},
    {"id": "numbers_2", "title": "Score", "type": "numbers"},
    {"id": "text_find", "title": "Findings", "type": "long_text"},
]


@pytest.mark.parametrize("research_type", ["experiment_plan", "experiment", "EXPERIMENT_PLAN"])
def test_experiment_plan_fields_map_to_columns(research_type):
    data = {
        "status": "Planned",
        "hypothesis": "Shorter checkout lifts conversion",
        "sample_size": 12700,
        "owner": "42",
        "unrelated": "ignored",
    }
    values = transform_research_data(research_type, data, COLUMNS)
    assert values == {
        "status": "Planned",
        "text_hyp": "Shorter checkout lifts conversion",
        "numbers_1": 12700,
        "owner": "42",
    }


def test_results_fields_map_to_columns():
    values = transform_research_data(
        "results", {"outcome": "Winner: B", "recommendation": "Ship B"}, COLUMNS
    )
    assert values == {"text_out": "Winner: B", "text_rec": "Ship B"}


def test_audit_fields_map_to_columns():
    values = transform_research_data("audit", {"score": 87, "findings": "Slow LCP"}, COLUMNS)
    assert values == {"numbers_2": 87, "text_find": "Slow LCP"}


def test_falsy_typed_fields_are_skipped():
    # "sample_size" only reaches the "Sample Size" column through the typed mapping
    values = transform_research_data("experiment_plan", {"sample_size": 0}, COLUMNS)
    assert values == {}


def test_generic_pass_does_not_overwrite_typed_mapping():
    values = transform_research_data(
        "experiment_plan", {"status": "Planned", "Status": "Other"}, COLUMNS
    )
    assert values == {"status": "Planned"}


def test_unknown_type_uses_generic_matching_by_title_and_id():
    values = transform_research_data(
        "survey", {"Outcome": "Mixed", "numbers_2": 5, "hypothesis": "H"}, COLUMNS
    )
    assert values == {"text_out": "Mixed", "numbers_2": 5, "text_hyp": "H"}
