# =============================================================================
# core/column_values.py  —  Column-Value Formatting for monday.com
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Every monday.com column type expects its value in a specific JSON shape:
#   a status wants {"label": ...}, a date wants {"date": "YYYY-MM-DD"}, a
#   people column wants {"personsAndTeams": [...]}, and so on.  The agent
#   sends loose values ("Done", 42, ["123", "456"]).  This module maps the
#   loose value onto the shape the column type expects.
#
# HOW THE COLUMN TYPE IS FOUND:
#   1. From the board's column list ({column_id: type}), when available
#   2. Otherwise inferred from the column id prefix ("status_1" → status)
#   3. Otherwise a generic fallback that leaves strings alone
#
# Values that already look formatted (a dict with one of the recognised
# keys) are passed through untouched.
# =============================================================================

import datetime
import json
import logging
import math
from typing import Any, Callable, Optional

from core.sample_size import round_half_up

logger = logging.getLogger(__name__)


# Keys that mark a dict as already being in monday.com's format.
_FORMATTED_KEYS = (
    "label", "date", "personsAndTeams", "tag_ids", "ids", "rating",
    "checked", "number", "from", "url", "address",
)

# Column id prefixes → column type.
_ID_PREFIXES: list[tuple[tuple[str, ...], str]] = [
    (("numeric_", "numbers_"), "numeric"),
    (("text_",), "text"),
    (("long_text_",), "long_text"),
    (("status_",), "status"),
    (("date_",), "date"),
    (("people_",), "people"),
    (("tags_",), "tags"),
    (("dropdown_",), "dropdown"),
    (("rating_",), "rating"),
    (("checkbox_",), "checkbox"),
]

_TRUTHY_STRINGS = ("true", "1", "yes")


def infer_column_type(column_id: str) -> Optional[str]:
    """Guess a column's type from its id, e.g. "status_12" → "status"."""
    id_lower = column_id.lower()
    for prefixes, column_type in _ID_PREFIXES:
        if id_lower.startswith(prefixes):
            return column_type
    return None


# =============================================================================
# Small helpers
# =============================================================================
def _to_number(value: Any) -> Optional[float]:
    """Best-effort numeric conversion; None when the value is not a number.

    Empty strings and None count as 0 and booleans as 0/1, the way a loosely
    typed caller expects them to.
    """
    if isinstance(value, bool):
        return float(value)
    if value is None:
        return 0.0
    if isinstance(value, (int, float)):
        return None if math.isnan(value) else value
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0.0
        try:
            number = float(text)
        except ValueError:
            return None
        return None if math.isnan(number) else number
    return None


def _clamped_int(value: float, low: int, high: int) -> int:
    # Clamp before rounding so infinities land on a bound
    return round_half_up(max(low, min(high, value)))


def _plain_number(number: float):
    """Return ints as ints so 42.0 is sent as 42."""
    if isinstance(number, float) and number.is_integer():
        return int(number)
    return number


def _as_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    return str(value)


def _parse_label_json(text: str) -> Optional[dict]:
    """Decode strings like '{"label": "Done"}'; None if it isn't one."""
    if text.startswith("{") and "label" in text:
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            return None
    return None


# =============================================================================
# Per-type formatters
# =============================================================================
def _format_status(value):
    if isinstance(value, str):
        parsed = _parse_label_json(value)
        return parsed if parsed is not None else {"label": value}
    if isinstance(value, dict) and "label" in value:
        return value
    return {"label": _as_text(value)}


def _format_date(value):
    if isinstance(value, str):
        return {"date": value}
    if isinstance(value, dict) and "date" in value:
        return value
    if isinstance(value, (datetime.date, datetime.datetime)):
        return {"date": value.isoformat()[:10]}
    return {"date": _as_text(value)}


def _format_people(value):
    if isinstance(value, list):
        people = []
        for entry in value:
            if isinstance(entry, dict) and "id" in entry:
                people.append({"id": str(entry["id"]), "kind": entry.get("kind") or "person"})
            else:
                people.append({"id": _as_text(entry), "kind": "person"})
        return {"personsAndTeams": people}
    if isinstance(value, dict) and "personsAndTeams" in value:
        return value
    return {"personsAndTeams": [{"id": _as_text(value), "kind": "person"}]}


def _id_list_formatter(key: str) -> Callable[[Any], dict]:
    """Formatter for columns that hold a list of ids (tags, dropdown)."""

    def _format(value):
        if isinstance(value, list):
            return {key: [_as_text(v) for v in value]}
        if isinstance(value, dict) and key in value:
            return value
        return {key: [_as_text(value)]}

    return _format


def _format_rating(value):
    number = _to_number(value)
    if number is not None:
        return {"rating": _clamped_int(number, 0, 5)}
    if isinstance(value, dict) and "rating" in value:
        return value
    return {"rating": 0}


def _format_checkbox(value):
    if isinstance(value, bool):
        return {"checked": "true" if value else "false"}
    if isinstance(value, str):
        return {"checked": "true" if value.lower() in _TRUTHY_STRINGS else "false"}
    if isinstance(value, dict) and "checked" in value:
        return value
    return {"checked": "false"}


def _format_numeric(value):
    # Numbers columns take the bare number, not a wrapped object
    number = _to_number(value)
    if number is not None:
        return _plain_number(number)
    if isinstance(value, dict):
        for key in ("value", "number"):
            if key in value:
                inner = _to_number(value[key])
                return 0 if inner is None else _plain_number(inner)
    return 0


def _format_timeline(value):
    if isinstance(value, dict):
        if "from" in value and "to" in value:
            return value
        if "start" in value and "end" in value:
            return {"from": str(value["start"]), "to": str(value["end"])}
        return value
    return {}


def _format_link(value):
    if isinstance(value, str):
        return {"url": value, "text": value}
    if isinstance(value, dict):
        if "url" in value:
            url = str(value["url"])
            return {"url": url, "text": str(value["text"]) if value.get("text") else url}
        return value
    return {"url": "", "text": ""}


def _format_location(value):
    if isinstance(value, str):
        return {"address": value, "lat": None, "lng": None}
    if isinstance(value, dict):
        lat = value.get("lat")
        lng = value.get("lng")
        return {
            "address": str(value["address"]) if value.get("address") else "",
            "lat": _to_number(lat) if lat is not None else None,
            "lng": _to_number(lng) if lng is not None else None,
        }
    return {"address": "", "lat": None, "lng": None}


def _format_long_text(value):
    if isinstance(value, dict):
        if "text" in value:
            return {"text": _as_text(value["text"])}
        # Keys sometimes arrive with stray quotes, e.g. '"text"'
        for key in value:
            if "text" in key:
                return {"text": _as_text(value[key])}
        values = list(value.values())
        if len(values) == 1 and isinstance(values[0], str):
            return {"text": values[0]}
    if isinstance(value, str):
        return {"text": value}
    return {"text": _as_text(value)}


def _format_hour(value):
    if isinstance(value, dict) and "hour" in value:
        return value
    return {"hour": 0, "minute": 0}


def _format_week(value):
    if isinstance(value, dict) and "week" in value:
        return value
    return {"week": 1, "year": datetime.date.today().year}


def _format_progress(value):
    number = _to_number(value)
    if number is not None:
        return {"percentage": _clamped_int(number, 0, 100)}
    if isinstance(value, dict) and "percentage" in value:
        return value
    return {"percentage": 0}


_FORMATTERS: dict[str, Callable[[Any], Any]] = {
    "status": _format_status,
    "date": _format_date,
    "people": _format_people,
    "tags": _id_list_formatter("tag_ids"),
    "dropdown": _id_list_formatter("ids"),
    "rating": _format_rating,
    "checkbox": _format_checkbox,
    "numeric": _format_numeric,
    "numbers": _format_numeric,
    "timeline": _format_timeline,
    "link": _format_link,
    "location": _format_location,
    "text": _as_text,
    "email": _as_text,
    "phone": _as_text,
    "long_text": _format_long_text,
    "hour": _format_hour,
    "week": _format_week,
    "progress_tracking": _format_progress,
}


def _format_untyped(value):
    """Generic formatting when the column type is unknown."""
    if isinstance(value, str):
        parsed = _parse_label_json(value)
        return parsed if parsed is not None else value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, list):
        return json.dumps(value, separators=(",", ":"))
    if isinstance(value, dict):
        return value
    return _as_text(value)


# =============================================================================
# Public API
# =============================================================================
def format_column_value(value: Any, column_type: Optional[str] = None) -> Any:
    """Shape `value` the way a column of `column_type` expects it.

    Args:
        value: Whatever the caller sent (string, number, list, dict, ...).
        column_type: monday.com column type ("status", "date", ...), or None
            when it is not known.

    Returns:
        A JSON-serialisable value ready to go into a column_values payload.
    """
    logger.debug("[Monday API] formatting %r for column type %s", value, column_type or "unknown")

    if isinstance(value, dict) and any(key in value for key in _FORMATTED_KEYS):
        return value

    if column_type:
        formatter = _FORMATTERS.get(column_type.lower())
        if formatter is not None:
            return formatter(value)
        # Unknown type: keep dicts, stringify everything else
        return value if isinstance(value, dict) else _as_text(value)

    return _format_untyped(value)


def format_column_values(values: dict, column_types: dict) -> dict:
    """Format a {column_id: value} mapping for one board.

    `column_types` is the board's {column_id: type} map.  Columns missing
    from it have their type inferred from the id.
    """
    formatted = {}
    for column_id, value in values.items():
        column_type = column_types.get(column_id) or infer_column_type(column_id)
        formatted[column_id] = format_column_value(value, column_type)
    return formatted
