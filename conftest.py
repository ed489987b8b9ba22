"""Shared pytest plumbing for the flat module layout and live-site tests."""

import sys
from pathlib import Path

import pytest

_PROJECT_ROOT = str(Path(__file__).parent)
if _PROJECT_ROOT not in sys.path:
    sys.path.insert(0, _PROJECT_ROOT)

# Read by config on every call, so a developer's .env (loaded when run.py is
# imported) would otherwise leak into unrelated tests.
_RUNTIME_SWITCHES = ("IMDB_USER_AGENT", "IMDB_LOG_HTTP")


def pytest_configure(config):
    config.addinivalue_line(
        "markers",
        "integration: fetches live imdb.com pages (skipped unless selected with -m integration)",
    )


def pytest_collection_modifyitems(config, items):
    if config.getoption("-m"):
        return
    live = [item for item in items if item.get_closest_marker("integration")]
    if not live:
        return
    skip_live = pytest.mark.skip(reason="live imdb.com test; select with -m integration")
    for item in live:
        item.add_marker(skip_live)


@pytest.fixture(autouse=True)
def _isolate_runtime_switches(monkeypatch):
    for name in _RUNTIME_SWITCHES:
        monkeypatch.delenv(name, raising=False)
