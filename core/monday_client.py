# =============================================================================
# core/monday_client.py  —  monday.com GraphQL API Client
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Talks to monday.com's GraphQL endpoint: list and read boards, create and
#   update items, manage tags, and read file (asset) metadata.
#
# HOW A CALL WORKS:
#   1. A public method builds a GraphQL query/mutation and its variables
#   2. execute_graphql() POSTs it as JSON with the token and API version
#   3. HTTP failures and GraphQL "errors" become MondayAPIError
#   4. The method unwraps the data and returns {"success": True, "data": ...}
#
# WRITING COLUMN VALUES:
#   create_item() and update_item_column_value() first read the board's
#   column types, then shape each value with core/column_values.py so
#   monday.com accepts it.
#
# HTTP:
#   Plain urllib, the same as the rest of core/.  The `opener` argument is
#   urllib.request.urlopen by default; tests pass a fake one instead.
# =============================================================================

import json
import logging
import os
import re
import time
import urllib.error
import urllib.request
from typing import Any, Callable, Optional

from core.column_values import format_column_value, format_column_values, infer_column_type

logger = logging.getLogger(__name__)


DEFAULT_API_URL = "https://api.monday.com/v2"
DEFAULT_API_VERSION = "2024-01"
DEFAULT_TIMEOUT_SECONDS = 30.0

_BOARD_ITEMS_LIMIT = 50

_ASSET_FIELDS = """
    id
    name
    url
    public_url
    file_extension
    file_size
    created_at
"""


class MondayAPIError(Exception):
    """Raised when monday.com rejects a request or cannot be reached."""


def _operation_name(query: str) -> str:
    """Best-effort label for a query, used in log lines."""
    match = re.search(r"(?:mutation|query)\s+(\w+)", query)
    if match:
        return match.group(1)
    # Anonymous operation: use the first field that takes arguments
    match = re.search(r"(\w+)\s*\(", query.split("{", 1)[-1])
    if match:
        return match.group(1)
    return "unknown_operation"


def _success(data: Any) -> dict:
    return {"success": True, "data": data}


class MondayClient:
    """Synchronous client for the monday.com GraphQL API."""

    def __init__(
        self,
        api_token: str,
        api_url: Optional[str] = None,
        api_version: Optional[str] = None,
        timeout: Optional[float] = None,
        opener: Callable = urllib.request.urlopen,
    ):
        if not api_token or not api_token.strip():
            raise ValueError("Monday.com API token is required")
        self.api_token = api_token
        self.api_url = api_url or os.environ.get("MONDAY_API_URL", DEFAULT_API_URL)
        self.api_version = api_version or os.environ.get("MONDAY_API_VERSION", DEFAULT_API_VERSION)
        if timeout is None:
            timeout = float(os.environ.get("MONDAY_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS))
        self.timeout = timeout
        self._opener = opener

    # =========================================================================
    # Transport
    # =========================================================================
    def execute_graphql(self, query: str, variables: Optional[dict] = None) -> dict:
        """Run one GraphQL request and return its "data" object.

        Raises:
            MondayAPIError: on HTTP or network failure, an unreadable response,
                or a response that carries GraphQL errors.
        """
        operation_type = "mutation" if query.strip().startswith("mutation") else "query"
        operation = _operation_name(query)
        logger.info("[Monday API] Starting %s: %s", operation_type, operation)
        logger.debug("[Monday API] Variables: %s", json.dumps(variables or {}))

        body = json.dumps({"query": query, "variables": variables or {}}).encode("utf-8")
        request = urllib.request.Request(
            self.api_url,
            data=body,
            method="POST",
            headers={
                "Authorization": self.api_token,
                "Content-Type": "application/json",
                "API-Version": self.api_version,
            },
        )

        started = time.monotonic()
        try:
            with self._opener(request, timeout=self.timeout) as response:
                raw = response.read().decode("utf-8")
        except urllib.error.HTTPError as e:
            elapsed_ms = (time.monotonic() - started) * 1000
            detail = e.read().decode("utf-8", errors="replace") if e.fp else ""
            logger.error(
                "[Monday API] HTTP Error %s in %s after %.0fms: %s",
                e.code, operation, elapsed_ms, detail,
            )
            raise MondayAPIError(
                f"Monday.com API error: {e.code} {e.reason} - {detail}"
            ) from e
        except (urllib.error.URLError, OSError) as e:
            elapsed_ms = (time.monotonic() - started) * 1000
            logger.error("[Monday API] Request failed after %.0fms: %s", elapsed_ms, e)
            raise MondayAPIError(f"Monday.com request failed: {e}") from e

        elapsed_ms = (time.monotonic() - started) * 1000
        logger.info("[Monday API] Response received in %.0fms", elapsed_ms)

        try:
            result = json.loads(raw)
        except json.JSONDecodeError as e:
            raise MondayAPIError(f"Monday.com returned invalid JSON: {e}") from e
        if not isinstance(result, dict):
            raise MondayAPIError(
                f"Monday.com returned an unexpected response: {type(result).__name__}"
            )

        errors = result.get("errors") or []
        if errors:
            messages = []
            for error in errors:
                message = error.get("message") or "Unknown error"
                if error.get("locations") or error.get("path"):
                    message = (
                        f"{message} (locations: {json.dumps(error.get('locations'))}, "
                        f"path: {json.dumps(error.get('path'))})"
                    )
                messages.append(message)
            logger.error("[Monday API] GraphQL errors in %s: %s", operation, json.dumps(errors))
            raise MondayAPIError(f"Monday.com GraphQL errors: {', '.join(messages)}")

        logger.info(
            "[Monday API] %s %s completed successfully in %.0fms",
            operation_type, operation, elapsed_ms,
        )
        return result.get("data") or {}

    # =========================================================================
    # Boards
    # =========================================================================
    def list_boards(self, limit: int = 50) -> dict:
        """Boards visible to the token's user, newest first."""
        logger.info("[Monday API] list_boards called with limit: %s", limit)
        query = """
            query ($limit: Int!) {
              boards(limit: $limit, order_by: created_at) {
                id
                name
                description
                board_kind
                state
                workspace { id name }
              }
            }
        """
        data = self.execute_graphql(query, {"limit": limit})
        boards = data.get("boards") or []
        logger.info("[Monday API] list_boards found %d boards", len(boards))
        return _success(boards)

    def get_board(self, board_id) -> dict:
        """A board with its groups, columns and first page of items."""
        logger.info("[Monday API] get_board called for board %s", board_id)
        query = f"""
            query ($boardId: [ID!]!) {{
              boards(ids: $boardId) {{
                id
                name
                description
                board_kind
                state
                workspace {{ id name }}
                groups {{ id title position }}
                columns {{ id title description type settings_str }}
                items_page(limit: {_BOARD_ITEMS_LIMIT}) {{
                  items {{
                    id
                    name
                    group {{ id title }}
                    column_values {{ id text value type }}
                  }}
                }}
              }}
            }}
        """
        board = self._first(query, {"boardId": [str(board_id)]}, "boards", f"Board with ID {board_id} not found")
        logger.info(
            "[Monday API] get_board completed for board \"%s\" (%s): %d columns",
            board.get("name"), board.get("id"), len(board.get("columns") or []),
        )
        return _success(board)

    def get_board_groups(self, board_id) -> dict:
        logger.info("[Monday API] get_board_groups called for board %s", board_id)
        query = """
            query ($boardId: [ID!]!) {
              boards(ids: $boardId) {
                id
                name
                groups { id title position }
              }
            }
        """
        board = self._first(query, {"boardId": [str(board_id)]}, "boards", f"Board with ID {board_id} not found")
        groups = board.get("groups") or []
        logger.info("[Monday API] get_board_groups found %d groups", len(groups))
        return _success(groups)

    def get_board_column_types(self, board_id) -> dict:
        """Return {"success": True, "data": {column_id: column_type}}."""
        board = self.get_board(board_id)["data"]
        columns = board.get("columns") or []
        if not columns:
            logger.warning(
                "[Monday API] No columns found on board %s, column types will be inferred from ids",
                board_id,
            )
        return _success({column["id"]: column["type"] for column in columns})

    # =========================================================================
    # Items
    # =========================================================================
    def create_item(
        self,
        board_id,
        item_name: str,
        group_id: Optional[str] = None,
        column_values: Optional[dict] = None,
        column_types: Optional[dict] = None,
    ) -> dict:
        """Create an item, shaping column values for the board's column types.

        Pass `column_types` ({column_id: type}) when the board is already
        loaded; otherwise it is fetched from the board.
        """
        logger.info(
            "[Monday API] create_item called: board=%s name=%r group=%s columns=%d",
            board_id, item_name, group_id or "none", len(column_values or {}),
        )
        column_values_json = "{}"
        if column_values:
            if column_types is None:
                column_types = self.get_board_column_types(board_id)["data"]
            formatted = format_column_values(column_values, column_types)
            logger.info("[Monday API] Formatted column values: %s", json.dumps(formatted))
            column_values_json = json.dumps(formatted)

        mutation = """
            mutation ($boardId: ID!, $itemName: String!, $groupId: String, $columnValues: JSON) {
              create_item(
                board_id: $boardId
                item_name: $itemName
                group_id: $groupId
                column_values: $columnValues
              ) {
                id
                name
                board { id name }
                group { id title }
              }
            }
        """
        variables = {
            "boardId": str(board_id),
            "itemName": item_name,
            "columnValues": column_values_json,
        }
        if group_id:
            variables["groupId"] = group_id

        data = self.execute_graphql(mutation, variables)
        item = data.get("create_item")
        logger.info("[Monday API] create_item created item %s", (item or {}).get("id"))
        return _success(item)

    def update_item_column_value(self, board_id, item_id, column_id: str, value: Any) -> dict:
        logger.info(
            "[Monday API] update_item_column_value called: board=%s item=%s column=%s",
            board_id, item_id, column_id,
        )
        column_types = self.get_board_column_types(board_id)["data"]
        column_type = column_types.get(column_id)
        if not column_type:
            column_type = infer_column_type(column_id)
            logger.warning(
                "[Monday API] Column type not found for column %s, inferred type: %s",
                column_id, column_type,
            )
        formatted = format_column_value(value, column_type)

        mutation = """
            mutation ($boardId: ID!, $itemId: ID!, $columnId: String!, $value: JSON!) {
              change_column_value(
                board_id: $boardId
                item_id: $itemId
                column_id: $columnId
                value: $value
              ) {
                id
                name
              }
            }
        """
        data = self.execute_graphql(mutation, {
            "boardId": str(board_id),
            "itemId": str(item_id),
            "columnId": column_id,
            "value": json.dumps(formatted),
        })
        return _success(data.get("change_column_value"))

    def get_item(self, item_id) -> dict:
        logger.info("[Monday API] get_item called for item %s", item_id)
        query = """
            query ($itemId: [ID!]!) {
              items(ids: $itemId) {
                id
                name
                board { id name }
                group { id title }
                column_values {
                  id
                  text
                  value
                  type
                  column { id title description type }
                }
                created_at
                updated_at
              }
            }
        """
        item = self._first(query, {"itemId": [str(item_id)]}, "items", f"Item with ID {item_id} not found")
        return _success(item)

    def create_items_batch(self, board_id, items: list[dict]) -> dict:
        """Create items one after another.

        Each entry has "name" and optionally "groupId" and "columnValues".
        A failed item is recorded and the batch carries on.

        Returns:
            {"success": True, "data": {"created": [...], "failed": [...]}}
            where each failure is {"success": False, "error": ..., "itemName": ...}.
        """
        logger.info("[Monday API] create_items_batch called: board=%s items=%d", board_id, len(items))
        created, failed = [], []
        started = time.monotonic()

        for index, item in enumerate(items, start=1):
            name = item.get("name")
            try:
                result = self.create_item(
                    board_id, name, item.get("groupId"), item.get("columnValues")
                )
            except (MondayAPIError, ValueError, TypeError) as e:
                logger.error(
                    "[Monday API] Failed to create item %d/%d %r: %s",
                    index, len(items), name, e,
                )
                failed.append({"success": False, "error": str(e), "itemName": name})
            else:
                created.append(result)

        elapsed_ms = (time.monotonic() - started) * 1000
        logger.info(
            "[Monday API] create_items_batch completed in %.0fms: %d created, %d failed",
            elapsed_ms, len(created), len(failed),
        )
        return _success({"created": created, "failed": failed})

    # =========================================================================
    # Tags
    # =========================================================================
    def create_or_get_tag(self, board_id, tag_name: str) -> dict:
        """Return the board's tag called `tag_name`, creating it if needed."""
        logger.info("[Monday API] create_or_get_tag called: board=%s tag=%r", board_id, tag_name)
        mutation = """
            mutation ($tagName: String!, $boardId: ID!) {
              create_or_get_tag(tag_name: $tagName, board_id: $boardId) {
                id
                name
                color
              }
            }
        """
        data = self.execute_graphql(mutation, {"tagName": tag_name, "boardId": str(board_id)})
        return _success(data.get("create_or_get_tag"))

    def get_board_tags(self, board_id) -> dict:
        query = """
            query ($boardId: [ID!]!) {
              boards(ids: $boardId) {
                id
                name
                tags { id name color }
              }
            }
        """
        board = self._first(query, {"boardId": [str(board_id)]}, "boards", f"Board with ID {board_id} not found")
        return _success({
            "boardId": board.get("id"),
            "boardName": board.get("name"),
            "tags": board.get("tags") or [],
        })

    def get_item_tags(self, item_id, column_id: Optional[str] = None) -> dict:
        """Tag ids on an item, read from its tags column(s).

        With `column_id`, only that column is read; otherwise every column of
        type "tags" is.
        """
        query = """
            query ($itemId: [ID!]!) {
              items(ids: $itemId) {
                id
                name
                column_values { id type value text }
              }
            }
        """
        item = self._first(query, {"itemId": [str(item_id)]}, "items", f"Item with ID {item_id} not found")

        tag_columns = []
        tag_ids: list[str] = []
        for column in item.get("column_values") or []:
            if column_id is not None:
                if column.get("id") != column_id:
                    continue
            elif column.get("type") != "tags":
                continue
            ids = _parse_tag_ids(column.get("value"))
            tag_columns.append({"columnId": column.get("id"), "tagIds": ids, "text": column.get("text")})
            tag_ids.extend(i for i in ids if i not in tag_ids)

        return _success({
            "itemId": item.get("id"),
            "itemName": item.get("name"),
            "tagIds": tag_ids,
            "columns": tag_columns,
        })

    def get_items_by_tag(self, board_id, tag_id, column_id: str = "tags") -> dict:
        query = f"""
            query ($boardId: ID!, $columnId: String!, $tagId: String!) {{
              items_page_by_column_values(
                board_id: $boardId
                limit: {_BOARD_ITEMS_LIMIT}
                columns: [{{column_id: $columnId, column_values: [$tagId]}}]
              ) {{
                items {{
                  id
                  name
                  group {{ id title }}
                }}
              }}
            }}
        """
        data = self.execute_graphql(query, {
            "boardId": str(board_id),
            "columnId": column_id,
            "tagId": str(tag_id),
        })
        page = data.get("items_page_by_column_values") or {}
        return _success({"tagId": str(tag_id), "items": page.get("items") or []})

    # =========================================================================
    # Files
    # =========================================================================
    def get_file(self, file_id) -> dict:
        query = f"""
            query ($fileId: [ID!]!) {{
              assets(ids: $fileId) {{ {_ASSET_FIELDS} }}
            }}
        """
        asset = self._first(query, {"fileId": [str(file_id)]}, "assets", f"File with ID {file_id} not found")
        return _success(asset)

    def get_item_files(self, item_id) -> dict:
        query = f"""
            query ($itemId: [ID!]!) {{
              items(ids: $itemId) {{
                id
                name
                assets {{ {_ASSET_FIELDS} }}
              }}
            }}
        """
        item = self._first(query, {"itemId": [str(item_id)]}, "items", f"Item with ID {item_id} not found")
        return _success({
            "itemId": item.get("id"),
            "itemName": item.get("name"),
            "files": item.get("assets") or [],
        })

    # =========================================================================
    # Account
    # =========================================================================
    def whoami(self) -> dict:
        """The token's user.  A cheap call to check that a token works."""
        data = self.execute_graphql("query { me { id name email } }")
        me = data.get("me")
        if not me:
            raise MondayAPIError("Monday.com did not return the current user")
        return _success(me)

    # -------------------------------------------------------------------------
    def _first(self, query: str, variables: dict, key: str, not_found: str) -> dict:
        """Run `query` and return the first element of data[key]."""
        records = self.execute_graphql(query, variables).get(key) or []
        if not records:
            logger.error("[Monday API] %s", not_found)
            raise MondayAPIError(not_found)
        return records[0]


def _parse_tag_ids(raw_value) -> list[str]:
    """Pull tag ids out of a tags column's JSON value ('{"tag_ids": [1, 2]}')."""
    if not raw_value:
        return []
    try:
        value = json.loads(raw_value) if isinstance(raw_value, str) else raw_value
    except json.JSONDecodeError:
        return []
    if not isinstance(value, dict):
        return []
    return [str(tag_id) for tag_id in value.get("tag_ids") or []]
