# tests/test_mcp_tools.py
import json

import pytest

from core.monday_client import MondayClient
from core.settings import SettingsStore, TOKEN_NOT_CONFIGURED
from tests.conftest import FakeOpener, board_response, call_tool
from tools import mcp_server


@pytest.fixture
def fake_client(monkeypatch):
    """Route the tools' monday.com client through a FakeOpener."""

    def _install(*responses):
        opener = FakeOpener(*responses)
        monkeypatch.setattr(mcp_server, "_get_client", lambda: MondayClient("t", opener=opener))
        return opener

    return _install


# --- calculate_sample_size ---------------------------------------------------

def test_calculate_sample_size_with_defaults():
    result = call_tool(mcp_server.calculate_sample_size)
    assert result["success"] is True
    data = result["data"]
    assert data["sampleSizePerVariant"] == 62400
    assert data["totalSampleSize"] == 124800
    assert data["daysToRun"] == 374
    assert data["visitorsFrequency"] == "Monthly"


def test_calculate_sample_size_treats_zero_as_missing():
    result = call_tool(mcp_server.calculate_sample_size, baseline_rate=0, mde=0, variants=0)
    assert result["data"]["sampleSizePerVariant"] == 62400


def test_calculate_sample_size_for_given_inputs():
    result = call_tool(mcp_server.calculate_sample_size, baseline_rate=0.03, mde=0.2, significance=95)
    assert result["data"]["sampleSizePerVariant"] == 12700


def test_calculate_sample_size_without_result():
    result = call_tool(mcp_server.calculate_sample_size, baseline_rate=1.5)
    assert result == {
        "success": False,
        "message": "Invalid calculation parameters - unable to compute sample size",
    }


def test_calculate_sample_size_bad_frequency():
    result = call_tool(mcp_server.calculate_sample_size, frequency="yearly")
    assert result["success"] is False
    assert result["message"].startswith("Error calculating sample size: Unsupported visitor frequency")


# --- board tools -------------------------------------------------------------

def test_board_tool_without_token_reports_failure():
    result = call_tool(mcp_server.monday_list_boards)
    assert result == {"success": False, "message": f"Error listing boards: {TOKEN_NOT_CONFIGURED}"}


def test_board_tool_uses_stored_token(monkeypatch, tmp_path):
    store = SettingsStore(tmp_path / "settings.json")
    store.put("monday_auth", {"api_token": "stored"})
    monkeypatch.setattr(mcp_server, "default_store", lambda: store)
    assert mcp_server._get_client().api_token == "stored"


def test_list_boards(fake_client):
    fake_client({"data": {"boards": [{"id": "1", "name": "Experiments"}]}})
    result = call_tool(mcp_server.monday_list_boards, limit=5)
    assert result == {"success": True, "data": [{"id": "1", "name": "Experiments"}]}


def test_get_board_failure_is_reported(fake_client):
    fake_client({"data": {"boards": []}})
    result = call_tool(mcp_server.monday_get_board, board_id="404")
    assert result == {"success": False, "message": "Error getting board: Board with ID 404 not found"}


def test_get_item_graphql_error_is_reported(fake_client):
    fake_client({"errors": [{"message": "Not Authenticated"}]})
    result = call_tool(mcp_server.monday_get_item, item_id="1")
    assert result["success"] is False
    assert result["message"] == "Error getting item: Monday.com GraphQL errors: Not Authenticated"


def test_create_item(fake_client):
    opener = fake_client({"data": {"create_item": {"id": "9", "name": "Test"}}})
    result = call_tool(mcp_server.monday_create_item, board_id="111", item_name="Test")
    assert result["data"]["id"] == "9"
    assert opener.bodies[0]["variables"]["itemName"] == "Test"


def test_create_items_batch(fake_client):
    fake_client(
        {"data": {"create_item": {"id": "1", "name": "A"}}},
        {"errors": [{"message": "boom"}]},
    )
    result = call_tool(mcp_server.monday_create_items_batch, board_id="111",
                       items=[{"name": "A"}, {"name": "B"}])
    assert len(result["data"]["created"]) == 1
    assert result["data"]["failed"][0]["itemName"] == "B"


def test_create_research_item_maps_fields(fake_client):
    columns = [
        {"id": "status", "title": "Status", "type": "status"},
        {"id": "numbers_1", "title": "Sample Size", "type": "numbers"},
    ]
    opener = fake_client(
        board_response(columns),
        {"data": {"create_item": {"id": "9", "name": "Checkout test"}}},
    )
    result = call_tool(
        mcp_server.monday_create_research_item,
        board_id="111",
        item_name="Checkout test",
        research_type="experiment_plan",
        research_data={"status": "Planned", "sample_size": 12700},
    )

    assert result["success"] is True
    assert result["data"]["id"] == "9"
    assert result["data"]["researchType"] == "experiment_plan"
    assert result["data"]["transformedColumns"] == ["status", "numbers_1"]
    # The board is read once; its column types are reused for the create
    assert len(opener.requests) == 2
    assert json.loads(opener.bodies[1]["variables"]["columnValues"])["status"] == {"label": "Planned"}


def test_tag_tools(fake_client):
    tag = {"id": "77", "name": "q3", "color": "#00c875"}
    fake_client(
        {"data": {"create_or_get_tag": tag}},
        {"data": {"items_page_by_column_values": {"items": [{"id": "9"}]}}},
    )
    assert call_tool(mcp_server.monday_create_or_get_tag, board_id="111", tag_name="q3")["data"] == tag
    result = call_tool(mcp_server.monday_get_items_by_tag, board_id="111", tag_id="77")
    assert result["data"]["items"] == [{"id": "9"}]


def test_file_tools(fake_client):
    asset = {"id": "5", "name": "plan.pdf"}
    fake_client({"data": {"assets": []}}, {"data": {"items": [{"id": "9", "assets": [asset]}]}})
    assert call_tool(mcp_server.monday_get_file, file_id="5") == {
        "success": False,
        "message": "Error getting file: File with ID 5 not found",
    }
    assert call_tool(mcp_server.monday_get_item_files, item_id="9")["data"]["files"] == [asset]


# --- monday_configure_token --------------------------------------------------

def test_configure_token_without_validation(monkeypatch, tmp_path):
    store = SettingsStore(tmp_path / "settings.json")
    monkeypatch.setattr(mcp_server, "default_store", lambda: store)

    result = call_tool(mcp_server.monday_configure_token, api_token="abc", validate=False)

    assert result["success"] is True
    assert result["messages"] == [{"intent": "success", "message": "Monday.com API token saved successfully!"}]
    assert store.get("monday_auth") == {"api_token": "abc"}


def test_configure_blank_token(monkeypatch, tmp_path):
    store = SettingsStore(tmp_path / "settings.json")
    monkeypatch.setattr(mcp_server, "default_store", lambda: store)

    result = call_tool(mcp_server.monday_configure_token, api_token="")

    assert result["success"] is False
    assert result["messages"][0]["intent"] == "warning"


def test_tool_names_match_registered_functions():
    for name in mcp_server.TOOL_NAMES:
        assert hasattr(mcp_server, name)


def test_unexpected_response_shape_is_reported(fake_client):
    fake_client([{"boards": []}])
    result = call_tool(mcp_server.monday_list_boards)
    assert result == {
        "success": False,
        "message": "Error listing boards: Monday.com returned an unexpected response: list",
    }
