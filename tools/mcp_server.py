# =============================================================================
# tools/mcp_server.py  —  FastMCP Tool Server (ALL tools in one place)
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Defines ALL MCP tools that the agent can call.  Each tool is a thin
#   wrapper around a core/ function: it applies defaults, calls core/, and
#   turns the outcome into a plain dict.
#
# HOW IT WORKS (the flow):
#   1. The Google ADK agent decides it needs something (e.g., a sample size)
#   2. It calls a tool by name via MCP (e.g., "calculate_sample_size")
#   3. FastMCP routes the call to the decorated function below
#   4. The function calls core/ logic and returns a dict
#   5. The agent receives {"success": True, "data": ...} or
#      {"success": False, "message": "Error <doing X>: <reason>"}
#
# TOOL NAMING CONVENTIONS:
#   - calculate_*        → pure computation (idempotent, safe to retry)
#   - monday_get_* / list → read-only board queries (safe to retry)
#   - monday_create_* / update / configure → WRITES to monday.com or settings.
#     These are not idempotent: calling monday_create_item twice creates two
#     items.
#
# ERRORS NEVER ESCAPE A TOOL:
#   A raised exception would surface to the LLM as a protocol error with no
#   useful text.  Every tool catches the failures core/ can raise and returns
#   a failure record the agent can read and explain.
#
# RUNNING THIS SERVER:
#     a) Run standalone:  python -m tools.mcp_server
#     b) Connected to the Google ADK agent via stdio transport
# =============================================================================

import json
import logging
import os
import sys
from typing import Any, Callable, Optional

from dotenv import load_dotenv
from fastmcp import FastMCP

# --- Import core logic ---
# The tools layer depends on core/ and nothing else.
from core.lifecycle import SAVE_TOKEN, VALIDATE_TOKEN, on_install, on_settings_form
from core.monday_client import MondayAPIError, MondayClient
from core.planning import NO_RESULT_MESSAGE, plan_experiment
from core.research import transform_research_data
from core.settings import AUTH_SECTION, SettingsError, default_store, get_api_token

load_dotenv()

# =============================================================================
# Logging Setup
# =============================================================================
# We log to STDERR because the MCP server communicates with the agent via
# STDOUT (stdin/stdout is the MCP transport).  Logging to stdout would
# corrupt the MCP JSON protocol.
#
# ANSI COLOR CODES:
#     - CYAN for incoming requests (tool name + parameters)
#     - GREEN for response JSON
#     - YELLOW for intermediate status/progress messages
# =============================================================================

# ANSI color codes for terminal output
_CYAN = "\033[36m"     # Requests (tool calls with params)
_GREEN = "\033[32m"    # Responses (JSON output)
_YELLOW = "\033[33m"   # Status/progress messages
_RESET = "\033[0m"     # Reset to default terminal color

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s [MCP] %(message)s",
    datefmt="%H:%M:%S",
    stream=sys.stderr,
)


def _log_request(tool_name: str, **params) -> None:
    """Log an incoming tool call with its parameters in CYAN."""
    param_str = ", ".join(f"{k}={v!r}" for k, v in params.items())
    logging.info(f"{_CYAN}{tool_name} called with: {param_str}{_RESET}")


def _log_status(message: str) -> None:
    """Log an intermediate status message in YELLOW."""
    logging.info(f"{_YELLOW}  → {message}{_RESET}")


def _log_response(tool_name: str, result: dict) -> dict:
    """Log the tool response as compact JSON in GREEN, then return it."""
    logging.info(
        f"{_GREEN}  ← {tool_name} response: "
        f"{json.dumps(result, separators=(',', ':'), default=str)}{_RESET}"
    )
    return result


# Failures core/ can raise; anything in this tuple becomes a failure record.
_TOOL_ERRORS = (MondayAPIError, SettingsError, ValueError, TypeError)


def _failure(action: str, error: Exception) -> dict:
    return {"success": False, "message": f"Error {action}: {error}"}


def _get_client() -> MondayClient:
    """Build a monday.com client from the stored (or .env) API token."""
    return MondayClient(get_api_token(default_store()))


def _board_call(tool_name: str, action: str, call: Callable[[MondayClient], dict], **params) -> dict:
    """Run one board operation with the standard logging and error handling.

    `action` completes the failure message "Error <action>: ...", e.g.
    "listing boards".
    """
    _log_request(tool_name, **params)
    try:
        result = call(_get_client())
    except _TOOL_ERRORS as e:
        _log_status(f"Failed: {e}")
        return _log_response(tool_name, _failure(action, e))
    return _log_response(tool_name, result)


# =============================================================================
# Create the FastMCP server instance
# =============================================================================
# The name "experiment-tools" becomes the server identity in MCP.
mcp = FastMCP("experiment-tools")


# =============================================================================
# TOOL 1: calculate_sample_size
# =============================================================================
# The only pure-computation tool.  Falsy arguments (missing, 0, "") fall
# back to the calculator's defaults, so an agent can call it with nothing
# but a baseline rate.
# =============================================================================
@mcp.tool()
def calculate_sample_size(
    baseline_rate: Optional[float] = None,
    mde: Optional[float] = None,
    significance: Optional[float] = None,
    variants: Optional[int] = None,
    visitors: Optional[int] = None,
    frequency: Optional[str] = None,
) -> dict:
    """Calculate the sample size and run time of an A/B test or experiment.

    WHEN TO CALL THIS: Whenever the user asks how many visitors a test needs
    or how long it will take to run.

    Args:
        baseline_rate: Baseline conversion rate as a fraction (default: 0.1).
        mde: Minimum detectable effect as a relative value, 0.05 = 5% lift
             (default: 0.05).
        significance: Significance level as a percentage (default: 95).
        variants: Number of variants in the test, control included (default: 2).
        visitors: Number of visitors per `frequency` period (default: 10000).
        frequency: "monthly", "weekly" or "daily" (default: monthly).

    Returns:
        {"success": True, "data": {...}} with sampleSizePerVariant,
        totalSampleSize, daysToRun, weeksToRun, monthsToRun,
        variantMultiplier, visitorsCount, visitorsFrequency,
        visitorsCountDays, baselineRate, expectedLift, significance,
        variants and formula.  {"success": False, "message": ...} when the
        inputs admit no sample size.
    """
    _log_request("calculate_sample_size",
                 baseline_rate=baseline_rate, mde=mde, significance=significance,
                 variants=variants, visitors=visitors, frequency=frequency)

    try:
        plan = plan_experiment(
            baseline_rate or 0.1,
            mde or 0.05,
            significance or 95,
            variants=variants or 2,
            visitors=visitors or 10000,
            frequency=frequency or "monthly",
        )
    except (ValueError, TypeError) as e:
        return _log_response("calculate_sample_size", _failure("calculating sample size", e))

    if plan is None:
        _log_status("No sample size for these inputs")
        return _log_response("calculate_sample_size", {"success": False, "message": NO_RESULT_MESSAGE})

    _log_status(f"Per variant: {plan.sample_size_per_variant}, days to run: {plan.days_to_run}")
    return _log_response("calculate_sample_size", {"success": True, "data": plan.to_payload()})


# =============================================================================
# TOOLS 2-4: Boards
# =============================================================================
@mcp.tool()
def monday_list_boards(limit: int = 50) -> dict:
    """List the Monday.com boards the configured token can see.

    Args:
        limit: Maximum number of boards to return (default: 50).

    Returns:
        {"success": True, "data": [{id, name, description, board_kind,
        state, workspace}, ...]}
    """
    return _board_call("monday_list_boards", "listing boards",
                       lambda client: client.list_boards(limit or 50), limit=limit)


@mcp.tool()
def monday_get_board(board_id: str) -> dict:
    """Get a Monday.com board with its columns, groups and items.

    WHEN TO CALL THIS: Before creating items, to learn the board's column ids
    and types and its group ids.

    Args:
        board_id: The ID of the board to retrieve.
    """
    return _board_call("monday_get_board", "getting board",
                       lambda client: client.get_board(board_id), board_id=board_id)


@mcp.tool()
def monday_get_board_groups(board_id: str) -> dict:
    """Get the groups (sections) of a Monday.com board.

    Args:
        board_id: The ID of the board.

    Returns:
        {"success": True, "data": [{id, title, position}, ...]}
    """
    return _board_call("monday_get_board_groups", "getting board groups",
                       lambda client: client.get_board_groups(board_id), board_id=board_id)


# =============================================================================
# TOOLS 5-8: Items
# =============================================================================
# Column values may be passed loosely ("Done", 42, ["123"]).  The client
# reads the board's column types and shapes each value before sending it.
# =============================================================================
@mcp.tool()
def monday_create_item(
    board_id: str,
    item_name: str,
    group_id: Optional[str] = None,
    column_values: Optional[dict[str, Any]] = None,
) -> dict:
    """Create a new item on a Monday.com board.

    Args:
        board_id: The ID of the board to create the item on.
        item_name: Name of the new item.
        group_id: Optional group to place the item in.
        column_values: Optional {column_id: value} mapping.  Values are
            formatted for each column's type automatically.

    Returns:
        {"success": True, "data": {id, name, board, group}}
    """
    return _board_call(
        "monday_create_item", "creating item",
        lambda client: client.create_item(board_id, item_name, group_id, column_values),
        board_id=board_id, item_name=item_name, group_id=group_id, column_values=column_values,
    )


@mcp.tool()
def monday_update_item_column(board_id: str, item_id: str, column_id: str, value: Any) -> dict:
    """Update one column value of a Monday.com item.

    Args:
        board_id: The ID of the board the item is on.
        item_id: The ID of the item to update.
        column_id: The ID of the column to change.
        value: The new value; formatted for the column's type automatically.
    """
    return _board_call(
        "monday_update_item_column", "updating item column",
        lambda client: client.update_item_column_value(board_id, item_id, column_id, value),
        board_id=board_id, item_id=item_id, column_id=column_id, value=value,
    )


@mcp.tool()
def monday_get_item(item_id: str) -> dict:
    """Get a Monday.com item with all of its column values.

    Args:
        item_id: The ID of the item to retrieve.
    """
    return _board_call("monday_get_item", "getting item",
                       lambda client: client.get_item(item_id), item_id=item_id)


@mcp.tool()
def monday_create_items_batch(board_id: str, items: list[dict[str, Any]]) -> dict:
    """Create several items on a Monday.com board, one after another.

    A failed item does not stop the batch.

    Args:
        board_id: The ID of the board.
        items: List of {"name": ..., "groupId": ..., "columnValues": {...}};
            only "name" is required.

    Returns:
        {"success": True, "data": {"created": [...], "failed": [...]}}
    """
    return _board_call(
        "monday_create_items_batch", "creating items batch",
        lambda client: client.create_items_batch(board_id, items),
        board_id=board_id, items=len(items),
    )


# =============================================================================
# TOOL 9: monday_create_research_item
# =============================================================================
# Combines three steps so the agent does not have to map fields itself:
#   1. read the board's columns
#   2. map the research record onto them (core/research.py)
#   3. create the item with the mapped values
# =============================================================================
@mcp.tool()
def monday_create_research_item(
    board_id: str,
    item_name: str,
    research_type: str,
    research_data: dict[str, Any],
    group_id: Optional[str] = None,
) -> dict:
    """Create a Monday.com item from a research record.

    WHEN TO CALL THIS: After planning an experiment (for example with
    calculate_sample_size), reporting its results, or finishing an audit,
    to track it on a board.

    Args:
        board_id: The ID of the board.
        item_name: Name of the new item.
        research_type: "experiment_plan", "experiment_results" or
            "audit_report" (short forms "experiment", "results", "audit").
        research_data: The record's fields, e.g. {"hypothesis": ...,
            "sample_size": 12700, "status": "Planned"}.  Fields whose names
            match a column title or id are mapped onto that column.
        group_id: Optional group to place the item in.

    Returns:
        {"success": True, "data": {...item..., "researchType": ...,
        "transformedColumns": [column ids that received values]}}
    """
    def create(client: MondayClient) -> dict:
        columns = client.get_board(board_id)["data"].get("columns") or []
        column_values = transform_research_data(research_type, research_data, columns)
        _log_status(f"Mapped {len(column_values)} research fields onto board columns")
        result = client.create_item(
            board_id, item_name, group_id, column_values,
            column_types={column["id"]: column["type"] for column in columns},
        )
        data = dict(result.get("data") or {})
        data["researchType"] = research_type
        data["transformedColumns"] = list(column_values)
        return {"success": True, "data": data}

    return _board_call(
        "monday_create_research_item", "creating research item", create,
        board_id=board_id, item_name=item_name, research_type=research_type,
        group_id=group_id,
    )


# =============================================================================
# TOOLS 10-13: Tags
# =============================================================================
@mcp.tool()
def monday_create_or_get_tag(board_id: str, tag_name: str) -> dict:
    """Create a tag on a board, or get it if a tag with that name exists.

    Args:
        board_id: The ID of the board the tag belongs to.
        tag_name: Name of the tag.

    Returns:
        {"success": True, "data": {id, name, color}}
    """
    return _board_call(
        "monday_create_or_get_tag", "creating or getting tag",
        lambda client: client.create_or_get_tag(board_id, tag_name),
        board_id=board_id, tag_name=tag_name,
    )


@mcp.tool()
def monday_get_board_tags(board_id: str) -> dict:
    """Get all tags available on a board.

    Args:
        board_id: The ID of the board.
    """
    return _board_call("monday_get_board_tags", "getting board tags",
                       lambda client: client.get_board_tags(board_id), board_id=board_id)


@mcp.tool()
def monday_get_item_tags(item_id: str, column_id: Optional[str] = None) -> dict:
    """Get the tag ids assigned to an item.

    Args:
        item_id: The ID of the item.
        column_id: Optional tags column to read; every tags column is read
            when omitted.

    Returns:
        {"success": True, "data": {itemId, itemName, tagIds, columns}}
    """
    return _board_call(
        "monday_get_item_tags", "getting item tags",
        lambda client: client.get_item_tags(item_id, column_id),
        item_id=item_id, column_id=column_id,
    )


@mcp.tool()
def monday_get_items_by_tag(board_id: str, tag_id: str, column_id: str = "tags") -> dict:
    """Get the items on a board that carry a given tag.

    Args:
        board_id: The ID of the board to search.
        tag_id: The ID of the tag to filter by.
        column_id: The tags column to match on (default: "tags").
    """
    return _board_call(
        "monday_get_items_by_tag", "getting items by tag",
        lambda client: client.get_items_by_tag(board_id, tag_id, column_id or "tags"),
        board_id=board_id, tag_id=tag_id, column_id=column_id,
    )


# =============================================================================
# TOOLS 14-15: Files (metadata only)
# =============================================================================
@mcp.tool()
def monday_get_file(file_id: str) -> dict:
    """Get metadata (name, url, size, extension) of a file on Monday.com.

    Args:
        file_id: The ID of the file (asset).
    """
    return _board_call("monday_get_file", "getting file",
                       lambda client: client.get_file(file_id), file_id=file_id)


@mcp.tool()
def monday_get_item_files(item_id: str) -> dict:
    """Get metadata of all files attached to an item.

    Args:
        item_id: The ID of the item.
    """
    return _board_call("monday_get_item_files", "getting item files",
                       lambda client: client.get_item_files(item_id), item_id=item_id)


# =============================================================================
# TOOL 16: monday_configure_token
# =============================================================================
# The settings-form flow, exposed as a tool so the token can be set from the
# chat.  The token itself is never logged.
# =============================================================================
@mcp.tool()
def monday_configure_token(api_token: str, validate: bool = True) -> dict:
    """Save the Monday.com API token used by the other monday_* tools.

    Args:
        api_token: A Monday.com personal API token.
        validate: Check the token against Monday.com before saving it
            (default: True).

    Returns:
        {"success": bool, "messages": [{"intent": ..., "message": ...}]}
    """
    _log_request("monday_configure_token", validate=validate)
    action = VALIDATE_TOKEN if validate else SAVE_TOKEN
    result = on_settings_form(default_store(), AUTH_SECTION, action, {"api_token": api_token})
    messages = [{"intent": toast.intent, "message": toast.message} for toast in result.toasts]
    success = bool(messages) and all(m["intent"] == "success" for m in messages)
    return _log_response("monday_configure_token", {"success": success, "messages": messages})


TOOL_NAMES = [
    "calculate_sample_size",
    "monday_list_boards",
    "monday_get_board",
    "monday_get_board_groups",
    "monday_create_item",
    "monday_update_item_column",
    "monday_get_item",
    "monday_create_items_batch",
    "monday_create_research_item",
    "monday_create_or_get_tag",
    "monday_get_board_tags",
    "monday_get_item_tags",
    "monday_get_items_by_tag",
    "monday_get_file",
    "monday_get_item_files",
    "monday_configure_token",
]


# =============================================================================
# Server entry point
# =============================================================================
# When run directly (python -m tools.mcp_server), record the install
# instructions and start the MCP server.  The agent connects via stdio.
# =============================================================================
if __name__ == "__main__":
    install = on_install(default_store(), TOOL_NAMES)
    if not install.success:
        logging.warning(install.message)
    mcp.run()
