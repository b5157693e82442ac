# =============================================================================
# core/settings.py  —  Persisted Settings (API token, install instructions)
# =============================================================================
#
# Settings live in one small JSON file made of named SECTIONS:
#
#   {
#     "monday_auth":  {"api_token": "..."},
#     "instructions": {"tool_url": "...", "tools": [...]}
#   }
#
# The file path comes from EXPERIMENT_TOOLS_SETTINGS and defaults to
# ~/.experiment_tools/settings.json.  A missing file reads as empty.
#
# The monday.com token is looked up in the "monday_auth" section first and
# then in the MONDAY_API_TOKEN environment variable (loaded from .env by
# python-dotenv at startup).
# =============================================================================

import json
import logging
import os
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


AUTH_SECTION = "monday_auth"
TOKEN_KEY = "api_token"
DEFAULT_SETTINGS_PATH = Path.home() / ".experiment_tools" / "settings.json"

TOKEN_NOT_CONFIGURED = (
    "Monday.com API token not configured. Please configure it in the app settings."
)


class SettingsError(Exception):
    """Raised when a required setting is missing or the store is unusable."""


class SettingsStore:
    """Sectioned settings backed by a JSON file."""

    def __init__(self, path):
        self.path = Path(path)

    def _load(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except (OSError, json.JSONDecodeError) as e:
            raise SettingsError(f"Cannot read settings file {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise SettingsError(f"Settings file {self.path} does not hold a JSON object")
        return data

    def _save(self, data: dict) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        except OSError as e:
            raise SettingsError(f"Cannot write settings file {self.path}: {e}") from e

    def get(self, section: str) -> dict:
        """Return a section's values; an unknown section is an empty dict."""
        return dict(self._load().get(section) or {})

    def put(self, section: str, values: dict) -> None:
        """Replace a section's values."""
        data = self._load()
        data[section] = dict(values)
        self._save(data)
        logger.info("Saved settings section '%s'", section)

    def delete(self, section: str) -> None:
        data = self._load()
        if data.pop(section, None) is not None:
            self._save(data)
            logger.info("Deleted settings section '%s'", section)

    def sections(self) -> list[str]:
        return list(self._load())


def default_store() -> SettingsStore:
    """The store at EXPERIMENT_TOOLS_SETTINGS, or the default path."""
    path = os.environ.get("EXPERIMENT_TOOLS_SETTINGS")
    return SettingsStore(Path(path).expanduser() if path else DEFAULT_SETTINGS_PATH)


def _stored_token(store: SettingsStore) -> Optional[str]:
    token = store.get(AUTH_SECTION).get(TOKEN_KEY)
    if token and str(token).strip():
        return str(token)
    return None


def get_api_token(store: SettingsStore) -> str:
    """Return the monday.com API token.

    Raises:
        SettingsError: when neither the store nor MONDAY_API_TOKEN has one.
    """
    token = _stored_token(store)
    if token:
        return token
    env_token = os.environ.get("MONDAY_API_TOKEN", "").strip()
    if env_token:
        return env_token
    raise SettingsError(TOKEN_NOT_CONFIGURED)


def is_ready(store: SettingsStore) -> bool:
    """True when a monday.com token is available."""
    try:
        get_api_token(store)
    except SettingsError:
        return False
    return True
