# =============================================================================
# core/research.py  —  Research Data → Board Column Values
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Research tools produce structured records (an experiment plan, a results
#   summary, an audit report).  To track one on a monday.com board, its
#   fields must land in the board's columns.  transform_research_data()
#   matches record fields to columns by title or id.
#
# TWO PASSES:
#   1. Typed mappings for the known research types pick well-known fields
#      (e.g. an experiment plan's sample_size → the "Sample Size" column).
#   2. A generic pass maps any other field whose name equals a column title
#      or id.  It never overwrites a value set by pass 1.
#
# The values are passed through raw.  Shaping them for each column type is
# format_column_values()'s job when the item is created.
# =============================================================================

from typing import Any


# research type → [(field in the record, column title on the board)]
_TYPED_MAPPINGS: dict[str, list[tuple[str, str]]] = {
    "experiment_plan": [
        ("status", "status"),
        ("hypothesis", "hypothesis"),
        ("sample_size", "sample size"),
    ],
    "experiment_results": [
        ("outcome", "outcome"),
        ("recommendation", "recommendation"),
    ],
    "audit_report": [
        ("score", "score"),
        ("findings", "findings"),
    ],
}

# Short aliases accepted for each research type
_TYPE_ALIASES = {
    "experiment": "experiment_plan",
    "results": "experiment_results",
    "audit": "audit_report",
}

RESEARCH_TYPES = tuple(_TYPED_MAPPINGS) + tuple(_TYPE_ALIASES)


def _column_lookup(board_columns: list[dict]) -> dict[str, str]:
    """Map lower-cased column titles, and column ids, to column ids."""
    lookup = {}
    for column in board_columns:
        lookup[str(column.get("title", "")).lower()] = column["id"]
        lookup[column["id"]] = column["id"]
    return lookup


def transform_research_data(
    research_type: str,
    research_data: dict[str, Any],
    board_columns: list[dict],
) -> dict[str, Any]:
    """Build a {column_id: value} mapping from a research record.

    Args:
        research_type: "experiment_plan", "experiment_results", "audit_report"
            or one of their short forms.  Other types only get the generic
            pass.
        research_data: The record's fields.
        board_columns: The board's columns, as dicts with "id" and "title".

    Returns:
        Raw column values keyed by column id.
    """
    columns = _column_lookup(board_columns)
    column_values: dict[str, Any] = {}

    kind = research_type.lower()
    kind = _TYPE_ALIASES.get(kind, kind)
    for field_name, column_title in _TYPED_MAPPINGS.get(kind, []):
        value = research_data.get(field_name)
        if value and column_title in columns:
            column_values[columns[column_title]] = value

    for key, value in research_data.items():
        column_id = columns.get(key.lower())
        if column_id and column_id not in column_values:
            column_values[column_id] = value

    return column_values
