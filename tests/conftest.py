"""Pytest configuration and fixtures for appstore-watch tests."""

import pytest
from pathlib import Path


class MemoryStateStore:
    """In-memory stand-in for FileStateStore that records every save."""

    def __init__(self, blob: str | None = None):
        self.blob = blob
        self.saves: list[str] = []

    def load(self) -> str | None:
        return self.blob

    def save(self, blob: str) -> None:
        self.blob = blob
        self.saves.append(blob)


class RecordingNotifier:
    """Notifier that keeps posted notifications for assertions."""

    def __init__(self):
        self.posted = []

    def post(self, notification) -> None:
        self.posted.append(notification)


class FakeLookup:
    """
    Catalog lookup backed by a {(region, app_id): result} table.

    Records every (region, app_id) probe in call order.
    """

    def __init__(self, catalog: dict[tuple[str, str], dict]):
        self.catalog = catalog
        self.calls: list[tuple[str, str]] = []

    def __call__(self, region: str, app_id: str) -> dict | None:
        self.calls.append((region, app_id))
        return self.catalog.get((region, app_id))


def make_app(name: str = "Example App", version: str = "1.0", **extra) -> dict:
    """Build a result object as returned by the iTunes lookup API."""
    app = {
        "trackName": name,
        "version": version,
        "releaseNotes": "Bug fixes and improvements.",
        "currentVersionReleaseDate": "2024-05-01T07:00:00Z",
    }
    app.update(extra)
    return app


@pytest.fixture
def tmp_state_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for state files."""
    state_dir = tmp_path / "state"
    state_dir.mkdir()
    return state_dir


@pytest.fixture
def app_factory():
    """Factory for iTunes lookup result objects."""
    return make_app


@pytest.fixture
def make_store():
    return MemoryStateStore


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def make_lookup():
    return FakeLookup


@pytest.fixture
def sample_lookup_response() -> dict:
    """Sample response from the iTunes lookup endpoint."""
    return {
        "resultCount": 1,
        "results": [make_app("WeChat", "8.0.50")],
    }


@pytest.fixture
def sample_state() -> dict:
    """Sample saved state for comparison tests."""
    return {
        "414478124": {"version": "8.0.49", "region": "cn", "name": "WeChat"},
        "444934666": {"version": "9.0.5", "region": "us", "name": "QQ"},
    }
