"""Unit tests for bearer token identity resolution."""

import pytest

from agent_feedback.config import ConfigurationError
from agent_feedback.lib.exceptions import AuthError
from agent_feedback.lib.feedback.models import AgentIdentity
from agent_feedback.lib.identity import (
    StaticTokenIdentityProvider,
    load_identity_provider,
)


TOKENS_YAML = """\
tokens:
  token-alice:
    agent_id: agt_alice
    handle: "@alice"
    display_name: Alice
  token-anon:
    agent_id: agt_anon
"""


@pytest.fixture
def tokens_file(tmp_path):
    path = tmp_path / "agent_tokens.yaml"
    path.write_text(TOKENS_YAML, encoding="utf-8")
    return path


class TestStaticTokenIdentityProvider:

    def test_resolves_known_token(self, tokens_file):
        provider = StaticTokenIdentityProvider.from_yaml(tokens_file)

        identity = provider.resolve("token-alice")

        assert identity == AgentIdentity(agent_id="agt_alice", handle="alice", display_name="Alice")

    def test_identity_without_handle(self, tokens_file):
        provider = StaticTokenIdentityProvider.from_yaml(tokens_file)

        identity = provider.resolve("token-anon")

        assert identity.agent_id == "agt_anon"
        assert identity.handle is None

    def test_missing_token(self, tokens_file):
        provider = StaticTokenIdentityProvider.from_yaml(tokens_file)

        with pytest.raises(AuthError, match="Missing"):
            provider.resolve(None)
        with pytest.raises(AuthError, match="Missing"):
            provider.resolve("")

    def test_unknown_token(self, tokens_file):
        provider = StaticTokenIdentityProvider.from_yaml(tokens_file)

        with pytest.raises(AuthError, match="Invalid"):
            provider.resolve("token-mallory")

    def test_top_level_mapping_accepted(self, tmp_path):
        path = tmp_path / "agent_tokens.yaml"
        path.write_text("tok:\n  agent_id: agt_x\n", encoding="utf-8")

        provider = StaticTokenIdentityProvider.from_yaml(path)

        assert provider.resolve("tok").agent_id == "agt_x"

    def test_identity_requires_agent_id(self, tmp_path):
        path = tmp_path / "agent_tokens.yaml"
        path.write_text("tokens:\n  tok:\n    handle: nobody\n", encoding="utf-8")

        with pytest.raises(ConfigurationError, match="Invalid identity"):
            StaticTokenIdentityProvider.from_yaml(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            StaticTokenIdentityProvider.from_yaml(tmp_path / "nope.yaml")


class TestLoadIdentityProvider:

    def test_rejects_everything_when_unconfigured(self, monkeypatch):
        monkeypatch.delenv("FEEDBACK_AGENT_TOKENS_PATH", raising=False)

        provider = load_identity_provider()

        with pytest.raises(AuthError):
            provider.resolve("token-alice")

    def test_path_from_environment(self, monkeypatch, tokens_file):
        monkeypatch.setenv("FEEDBACK_AGENT_TOKENS_PATH", str(tokens_file))

        provider = load_identity_provider()

        assert provider.resolve("token-alice").handle == "alice"
