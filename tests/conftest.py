# tests/conftest.py
import json

import pytest

from core.monday_client import MondayClient
from core.settings import SettingsStore


_ENV_VARS = (
    "MONDAY_API_TOKEN",
    "MONDAY_API_URL",
    "MONDAY_API_VERSION",
    "MONDAY_TIMEOUT_SECONDS",
)


class FakeResponse:
    def __init__(self, payload):
        self._body = json.dumps(payload).encode("utf-8")

    def read(self):
        return self._body

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


class FakeOpener:
    """Stands in for urllib.request.urlopen.

    Each call pops the next queued response: a dict is returned as the JSON
    body, an exception is raised.
    """

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []
        self.bodies = []

    def __call__(self, request, timeout=None):
        self.requests.append(request)
        self.bodies.append(json.loads(request.data.decode("utf-8")))
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return FakeResponse(response)


def board_response(columns=None, name="Experiments", board_id="111"):
    return {"data": {"boards": [{
        "id": board_id,
        "name": name,
        "columns": columns or [],
        "groups": [{"id": "topics", "title": "Topics", "position": "1"}],
    }]}}


def call_tool(tool, **kwargs):
    """Call a FastMCP tool's underlying function."""
    return getattr(tool, "fn", tool)(**kwargs)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("EXPERIMENT_TOOLS_SETTINGS", str(tmp_path / "settings.json"))


@pytest.fixture
def store(tmp_path):
    return SettingsStore(tmp_path / "store" / "settings.json")


@pytest.fixture
def make_client():
    def _make(*responses):
        opener = FakeOpener(*responses)
        return MondayClient("secret-token", opener=opener), opener

    return _make
