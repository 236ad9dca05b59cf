"""Global pytest fixtures for the test suite."""

import sys
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

# Add parent directory to path for module imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from ios_scale.db import PreferenceStore, SessionRepository, get_engine, init_db  # noqa: E402


class FakePreferences:
    """In-memory stand-in for PreferenceStore."""

    def __init__(self, values=None):
        self.values = dict(values or {})

    def get(self, key, default=None):
        return self.values.get(key, default)

    def set_many(self, values):
        self.values.update(values)


@pytest.fixture
def engine():
    """In-memory SQLite engine with the schema created."""
    engine = get_engine("sqlite://")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def file_engine(tmp_path):
    """File-backed SQLite engine for tests that use several threads."""
    engine = get_engine(f"sqlite:///{tmp_path / 'ios_scale_test.db'}")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def repository(engine):
    return SessionRepository(engine)


@pytest.fixture
def preferences(engine):
    return PreferenceStore(engine)


@pytest.fixture
def fake_preferences():
    return FakePreferences()


@pytest.fixture
def fixed_now():
    return datetime(2025, 1, 31, 14, 25, 1, tzinfo=UTC)


@pytest.fixture
def make_timestamps(fixed_now):
    """Return ``count`` increasing timestamps, one second apart."""

    def _make(count):
        return [fixed_now + timedelta(seconds=i) for i in range(count)]

    return _make
