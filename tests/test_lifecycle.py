# tests/test_lifecycle.py
import urllib.error

import pytest

from core.lifecycle import (
    MSG_TOKEN_INVALID,
    MSG_TOKEN_MISSING,
    MSG_TOKEN_SAVED,
    MSG_TOKEN_VALID,
    MSG_UNEXPECTED,
    MSG_VALIDATION_FAILED,
    check_token,
    on_install,
    on_settings_form,
    on_uninstall,
    on_upgrade,
)
from core.monday_client import MondayAPIError
from core.settings import SettingsStore

TOOLS = ["calculate_sample_size", "monday_list_boards"]


def _toasts(result):
    return [(t.intent, t.message) for t in result.toasts]


def test_install_records_instructions(store):
    result = on_install(store, TOOLS, tool_url="stdio://test")
    assert result.success
    assert store.get("instructions") == {"tool_url": "stdio://test", "tools": TOOLS}


def test_upgrade_refreshes_instructions(store):
    on_install(store, ["calculate_sample_size"])
    assert on_upgrade(store, "0.9.0", TOOLS).success
    assert store.get("instructions")["tools"] == TOOLS


def test_install_failure_is_retryable(tmp_path):
    # The settings path is a directory, so it can be neither read nor written
    result = on_install(SettingsStore(tmp_path), TOOLS)
    assert not result.success
    assert result.retryable
    assert result.message.startswith("Error during installation:")


def test_save_token(store):
    result = on_settings_form(store, "monday_auth", "save_token", {"api_token": "abc"})
    assert _toasts(result) == [("success", MSG_TOKEN_SAVED)]
    assert store.get("monday_auth") == {"api_token": "abc"}


def test_validate_blank_token(store):
    result = on_settings_form(store, "monday_auth", "validate_token", {"api_token": " "},
                              validator=lambda token: True)
    assert _toasts(result) == [("warning", MSG_TOKEN_MISSING)]
    assert store.get("monday_auth") == {}


def test_validate_good_token_saves_it(store):
    seen = []
    result = on_settings_form(store, "monday_auth", "validate_token", {"api_token": "abc"},
                              validator=lambda token: seen.append(token) or True)
    assert seen == ["abc"]
    assert _toasts(result) == [("success", MSG_TOKEN_VALID)]
    assert store.get("monday_auth") == {"api_token": "abc"}


def test_validate_rejected_token(store):
    result = on_settings_form(store, "monday_auth", "validate_token", {"api_token": "abc"},
                              validator=lambda token: False)
    assert _toasts(result) == [("warning", MSG_TOKEN_INVALID)]
    assert store.get("monday_auth") == {}


def test_validation_that_cannot_reach_monday(store):
    def validator(token):
        raise MondayAPIError("Monday.com request failed: timed out")

    result = on_settings_form(store, "monday_auth", "validate_token", {"api_token": "abc"},
                              validator=validator)
    assert _toasts(result) == [("warning", MSG_VALIDATION_FAILED)]


def test_unexpected_error_becomes_danger_toast(store):
    def validator(token):
        raise RuntimeError("boom")

    result = on_settings_form(store, "monday_auth", "validate_token", {"api_token": "abc"},
                              validator=validator)
    assert _toasts(result) == [("danger", MSG_UNEXPECTED)]


def test_other_sections_are_ignored(store):
    result = on_settings_form(store, "appearance", "save_token", {"api_token": "abc"})
    assert result.toasts == []
    assert store.sections() == []


def test_uninstall_removes_stored_sections(store):
    store.put("monday_auth", {"api_token": "abc"})
    on_install(store, TOOLS)
    assert on_uninstall(store).success
    assert store.sections() == []


# --- check_token -------------------------------------------------------------

class _Client:
    def __init__(self, error=None):
        self.error = error

    def whoami(self):
        if self.error:
            raise self.error
        return {"success": True, "data": {"id": "1"}}


def _raised_from(cause):
    try:
        raise MondayAPIError("failed") from cause
    except MondayAPIError as e:
        return e


def test_check_token_accepts_working_token():
    assert check_token("abc", client_factory=lambda token: _Client())


def test_check_token_rejects_on_graphql_or_http_error():
    assert not check_token("abc", client_factory=lambda token: _Client(MondayAPIError("Not Authenticated")))
    http_error = urllib.error.HTTPError("https://api.monday.com/v2", 401, "Unauthorized", None, None)
    assert not check_token("abc", client_factory=lambda token: _Client(_raised_from(http_error)))


def test_check_token_reraises_network_errors():
    error = _raised_from(urllib.error.URLError("no route to host"))
    with pytest.raises(MondayAPIError):
        check_token("abc", client_factory=lambda token: _Client(error))
