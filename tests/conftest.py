"""
Pytest configuration and shared fixtures for agent_feedback tests.
"""

from datetime import datetime, timedelta, timezone

import pytest

from agent_feedback.lib.catalog import StaticSubjectCatalog
from agent_feedback.lib.feedback.models import AgentIdentity
from agent_feedback.lib.store.file_store import JsonFileDurableStore
from agent_feedback.lib.store.sql_store import SqlDurableStore


class FakeClock:
    """Deterministic UTC clock; advances only when told to."""

    def __init__(self, start: datetime = datetime(2026, 2, 5, 0, 0, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def alice():
    return AgentIdentity(agent_id="agt_alice", handle="alice", display_name="Alice")


@pytest.fixture
def bob():
    return AgentIdentity(agent_id="agt_bob", handle="bob", display_name="Bob")


@pytest.fixture
def catalog():
    return StaticSubjectCatalog({"art_1": "carol", "art_2": "carol", "skill_1": None})


@pytest.fixture
def file_store(tmp_path):
    return JsonFileDurableStore(tmp_path / "data")


@pytest.fixture
def sql_store():
    store = SqlDurableStore.from_url("sqlite://")
    yield store
    store.engine.dispose()


@pytest.fixture(params=["file", "sql"])
def store(request, tmp_path):
    """Run the test once per store backend."""
    if request.param == "file":
        yield JsonFileDurableStore(tmp_path / "data")
    else:
        sql = SqlDurableStore.from_url("sqlite://")
        yield sql
        sql.engine.dispose()
