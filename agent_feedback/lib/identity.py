"""Identity providers: resolve a bearer credential to an ``AgentIdentity``.

The static provider reads a YAML file of tokens::

    tokens:
      s3cr3t-token:
        agent_id: agt_alice
        handle: alice
        display_name: Alice
"""

import hmac
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional

import yaml
from pydantic import ValidationError as PydanticValidationError

from agent_feedback.config import ConfigurationError, get_agent_tokens_path
from agent_feedback.lib.exceptions import AuthError
from agent_feedback.lib.feedback.models import AgentIdentity

logger = logging.getLogger(__name__)


class IdentityProvider(ABC):
    """Resolves credentials. The returned identity is trusted verbatim."""

    @abstractmethod
    def resolve(self, credential: Optional[str]) -> AgentIdentity:
        """Return the identity for ``credential``.

        Raises:
            AuthError: If the credential is missing or unknown
        """


class StaticTokenIdentityProvider(IdentityProvider):
    """Token table held in memory."""

    def __init__(self, tokens: Dict[str, AgentIdentity]):
        self._tokens = dict(tokens)

    @classmethod
    def from_yaml(cls, path: Path) -> "StaticTokenIdentityProvider":
        """Load a token file.

        Raises:
            ConfigurationError: If the file is missing or malformed
        """
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except FileNotFoundError as e:
            raise ConfigurationError(f"Agent token file not found: {path}") from e
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in agent token file {path}: {e}") from e

        entries = data.get("tokens", data) if isinstance(data, dict) else None
        if not isinstance(entries, dict):
            raise ConfigurationError(f"Agent token file {path} must contain a mapping of tokens")

        tokens: Dict[str, AgentIdentity] = {}
        for token, meta in entries.items():
            try:
                identity = AgentIdentity.model_validate(meta)
            except PydanticValidationError as e:
                raise ConfigurationError(f"Invalid identity for a token in {path}: {e}") from e
            if identity.handle:
                identity = identity.model_copy(update={"handle": identity.handle.lstrip("@")})
            tokens[str(token)] = identity

        logger.info("Loaded %s agent tokens", len(tokens))
        return cls(tokens)

    def resolve(self, credential: Optional[str]) -> AgentIdentity:
        if not credential:
            raise AuthError("Missing bearer token")

        for token, identity in self._tokens.items():
            if hmac.compare_digest(token.encode("utf-8"), credential.encode("utf-8")):
                return identity

        logger.warning("Rejected unknown bearer token")
        raise AuthError("Invalid bearer token")


def load_identity_provider(path: Optional[Path] = None) -> IdentityProvider:
    """Build the configured provider from ``FEEDBACK_AGENT_TOKENS_PATH``.

    With no token file every credential is rejected.
    """
    path = path or get_agent_tokens_path()
    if path is None:
        logger.warning("FEEDBACK_AGENT_TOKENS_PATH not set; all authenticated requests will be rejected")
        return StaticTokenIdentityProvider({})
    return StaticTokenIdentityProvider.from_yaml(path)
