# =============================================================================
# core/lifecycle.py  —  Install / Upgrade / Settings-Form / Uninstall Hooks
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   The host that runs the tool server calls these hooks at fixed moments:
#
#     on_install        first start: record where the tools live
#     on_upgrade        new version: refresh that record
#     on_settings_form  the user saved or validated the monday.com token
#     on_uninstall      remove everything this package stored
#
#   Install and upgrade report a LifecycleResult (a failure is retryable).
#   The settings form reports toasts instead of raising, since a person is
#   looking at the result.
# =============================================================================

import logging
import urllib.error
from typing import Callable, Optional

from core.models import LifecycleResult, SettingsFormResult
from core.monday_client import MondayAPIError, MondayClient
from core.settings import AUTH_SECTION, TOKEN_KEY, SettingsError, SettingsStore

logger = logging.getLogger(__name__)


INSTRUCTIONS_SECTION = "instructions"
DEFAULT_TOOL_URL = "stdio://experiment-tools"

SAVE_TOKEN = "save_token"
VALIDATE_TOKEN = "validate_token"

MSG_TOKEN_SAVED = "Monday.com API token saved successfully!"
MSG_TOKEN_MISSING = "Please enter a Monday.com API token."
MSG_TOKEN_VALID = "API token validated successfully!"
MSG_TOKEN_INVALID = "Invalid API token. Please check your token and try again."
MSG_VALIDATION_FAILED = "Failed to validate token. Please check your connection and try again."
MSG_UNEXPECTED = "Sorry, an unexpected error occurred. Please try again in a moment."


def check_token(api_token: str, client_factory: Callable = MondayClient) -> bool:
    """Ask monday.com who owns `api_token`.

    Returns False when monday.com rejects the token.  Network failures are
    re-raised, since they say nothing about the token itself.
    """
    try:
        client_factory(api_token).whoami()
    except MondayAPIError as e:
        cause = e.__cause__
        if cause is None or isinstance(cause, urllib.error.HTTPError):
            logger.warning("Token rejected by monday.com: %s", e)
            return False
        raise
    return True


def _store_instructions(store: SettingsStore, tool_names: list[str], tool_url: str) -> None:
    store.put(INSTRUCTIONS_SECTION, {"tool_url": tool_url, "tools": list(tool_names)})


def on_install(
    store: SettingsStore,
    tool_names: list[str],
    tool_url: str = DEFAULT_TOOL_URL,
) -> LifecycleResult:
    logger.info("Performing experiment-tools install")
    try:
        _store_instructions(store, tool_names, tool_url)
    except SettingsError as e:
        logger.error("Error during installation: %s", e)
        return LifecycleResult(success=False, retryable=True, message=f"Error during installation: {e}")
    return LifecycleResult(success=True)


def on_upgrade(
    store: SettingsStore,
    from_version: str,
    tool_names: list[str],
    tool_url: str = DEFAULT_TOOL_URL,
) -> LifecycleResult:
    logger.info("Upgrading experiment-tools from version %s", from_version)
    try:
        _store_instructions(store, tool_names, tool_url)
    except SettingsError as e:
        logger.error("Error during upgrade: %s", e)
        return LifecycleResult(success=False, retryable=True, message=f"Error during upgrade: {e}")
    return LifecycleResult(success=True)


def on_settings_form(
    store: SettingsStore,
    section: str,
    action: str,
    form_data: dict,
    validator: Optional[Callable[[str], bool]] = None,
) -> SettingsFormResult:
    """Handle a submitted settings form and report what happened as toasts.

    Args:
        store: Where the token is persisted.
        section: Form section; only "monday_auth" is handled.
        action: "save_token" or "validate_token".
        form_data: The submitted fields ("api_token").
        validator: Token check, check_token() by default.  Returns False for
            a rejected token; raising means the check itself failed.
    """
    validator = validator or check_token
    result = SettingsFormResult()
    if section != AUTH_SECTION:
        return result

    try:
        if action == SAVE_TOKEN:
            store.put(section, form_data)
            result.add_toast("success", MSG_TOKEN_SAVED)

        elif action == VALIDATE_TOKEN:
            api_token = str(form_data.get(TOKEN_KEY) or "")
            if not api_token.strip():
                return result.add_toast("warning", MSG_TOKEN_MISSING)
            try:
                valid = validator(api_token)
            except (MondayAPIError, OSError) as e:
                logger.error("Token validation error: %s", e)
                return result.add_toast("warning", MSG_VALIDATION_FAILED)
            if valid:
                store.put(section, form_data)
                result.add_toast("success", MSG_TOKEN_VALID)
            else:
                result.add_toast("warning", MSG_TOKEN_INVALID)
    except Exception:
        logger.exception("Error in settings form handler")
        return result.add_toast("danger", MSG_UNEXPECTED)

    return result


def on_uninstall(store: SettingsStore) -> LifecycleResult:
    for section in (AUTH_SECTION, INSTRUCTIONS_SECTION):
        store.delete(section)
    logger.info("Removed stored experiment-tools settings")
    return LifecycleResult(success=True)
