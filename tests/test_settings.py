# tests/test_settings.py
import pytest

from core.settings import (
    TOKEN_NOT_CONFIGURED,
    SettingsError,
    SettingsStore,
    default_store,
    get_api_token,
    is_ready,
)


def test_missing_file_reads_as_empty(store):
    assert store.get("monday_auth") == {}
    assert store.sections() == []


def test_put_get_and_delete(store):
    store.put("monday_auth", {"api_token": "abc"})
    store.put("instructions", {"tools": ["calculate_sample_size"]})

    assert store.get("monday_auth") == {"api_token": "abc"}
    assert sorted(store.sections()) == ["instructions", "monday_auth"]

    store.delete("monday_auth")
    assert store.get("monday_auth") == {}
    assert store.sections() == ["instructions"]


def test_store_persists_to_disk(store):
    store.put("monday_auth", {"api_token": "abc"})
    assert SettingsStore(store.path).get("monday_auth") == {"api_token": "abc"}


def test_corrupt_file_raises(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text("[1, 2]")
    with pytest.raises(SettingsError):
        SettingsStore(path).get("monday_auth")


def test_default_store_follows_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("EXPERIMENT_TOOLS_SETTINGS", str(tmp_path / "custom.json"))
    assert default_store().path == tmp_path / "custom.json"


def test_token_from_store_wins_over_environment(store, monkeypatch):
    monkeypatch.setenv("MONDAY_API_TOKEN", "from-env")
    store.put("monday_auth", {"api_token": "from-store"})
    assert get_api_token(store) == "from-store"


def test_token_falls_back_to_environment(store, monkeypatch):
    monkeypatch.setenv("MONDAY_API_TOKEN", "from-env")
    assert get_api_token(store) == "from-env"
    assert is_ready(store)


def test_missing_token_raises(store):
    store.put("monday_auth", {"api_token": "  "})
    with pytest.raises(SettingsError) as excinfo:
        get_api_token(store)
    assert str(excinfo.value) == TOKEN_NOT_CONFIGURED
    assert not is_ready(store)
