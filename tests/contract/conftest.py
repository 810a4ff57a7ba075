"""Shared fixtures for API contract tests.

Every test gets its own app with a fresh file store, rate limiter and token
table, so no state leaks between tests.
"""

import pytest
from fastapi.testclient import TestClient

from agent_feedback.app import create_app
from agent_feedback.lib.feedback.models import AgentIdentity
from agent_feedback.lib.identity import StaticTokenIdentityProvider
from agent_feedback.lib.rate_limit import RateLimiter
from agent_feedback.lib.store.file_store import JsonFileDurableStore

TOKENS = {
    "token-alice": AgentIdentity(agent_id="agt_alice", handle="alice", display_name="Alice"),
    "token-bob": AgentIdentity(agent_id="agt_bob", handle="bob", display_name="Bob"),
    "token-carol": AgentIdentity(agent_id="agt_carol", handle="carol", display_name="Carol"),
    "token-nohandle": AgentIdentity(agent_id="agt_anon"),
}


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def data_store(tmp_path):
    return JsonFileDurableStore(tmp_path / "data")


@pytest.fixture
def rate_limiter():
    return RateLimiter()


@pytest.fixture
def app(data_store, rate_limiter, catalog):
    return create_app(
        store=data_store,
        rate_limiter=rate_limiter,
        identity_provider=StaticTokenIdentityProvider(TOKENS),
        catalog=catalog,
    )


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def alice_headers():
    return auth("token-alice")


@pytest.fixture
def bob_headers():
    return auth("token-bob")


@pytest.fixture
def carol_headers():
    return auth("token-carol")
