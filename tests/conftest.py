"""Shared pytest fixtures and utilities for all tests."""

import pytest
from datetime import timedelta

from smartmeet.store import SessionStore
from smartmeet.store.schemas import SessionCreate, ParticipantCreate
from smartmeet.utils.date_utils import utcnow


@pytest.fixture
def database_url(tmp_path):
    """SQLite file in a per-test directory (WAL needs a real file)."""
    return f"sqlite:///{tmp_path / 'smartmeet.db'}"


@pytest.fixture
def store(database_url):
    """Initialized store, closed after the test."""
    with SessionStore(database_url) as s:
        yield s


@pytest.fixture
def make_session(store):
    """Create a session with sensible defaults; keyword overrides win."""
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        data = {
            "id": f"session-{counter['n']}",
            "platform": "zoom",
            "meeting_link": f"https://zoom.us/j/{1000 + counter['n']}",
            "status": "provisioning",
        }
        if "age_days" in overrides:
            data["created_at"] = utcnow() - timedelta(days=overrides.pop("age_days"))
        data.update(overrides)
        return store.create_session(SessionCreate(**data))

    return _make


@pytest.fixture
def jane():
    return ParticipantCreate(name="Jane", email="jane@x.com")
