"""FastAPI dependencies: services, rate limiting and caller identity.

Rate limiting is attached as a route-level dependency so it runs before
identity resolution and before any store access.
"""

import logging
from enum import Enum
from typing import Callable, Optional

from fastapi import Header, Request

from agent_feedback.config import get_rate_limit
from agent_feedback.lib.context import set_current_agent_id
from agent_feedback.lib.exceptions import AuthError, RateLimitedError
from agent_feedback.lib.feedback.models import AgentIdentity, SubjectKind
from agent_feedback.lib.feedback.service import FeedbackService
from agent_feedback.lib.identity import IdentityProvider
from agent_feedback.lib.rate_limit import RateLimiter, client_identifier

logger = logging.getLogger(__name__)


class SubjectPath(str, Enum):
    """Plural subject segment used in URLs."""

    ARTIFACTS = "artifacts"
    SKILLS = "skills"

    @property
    def subject_kind(self) -> SubjectKind:
        return SubjectKind.ARTIFACT if self is SubjectPath.ARTIFACTS else SubjectKind.SKILL


def get_feedback_service(request: Request) -> FeedbackService:
    return request.app.state.feedback_service


def get_rate_limiter(request: Request) -> RateLimiter:
    return request.app.state.rate_limiter


def get_identity_provider(request: Request) -> IdentityProvider:
    return request.app.state.identity_provider


def rate_limit(action: str) -> Callable[[Request], None]:
    """Build a dependency that counts the request against ``action``'s window.

    Raises:
        RateLimitedError: When the caller's window is exhausted
    """

    def check_rate_limit(request: Request) -> None:
        limiter = get_rate_limiter(request)
        peer_host = request.client.host if request.client else None
        client_id = client_identifier(request.headers.get("x-forwarded-for"), peer_host)
        window_ms, max_requests = get_rate_limit(action)

        decision = limiter.check(f"{action}:{client_id}", window_ms, max_requests)
        if not decision.ok:
            raise RateLimitedError(decision.retry_after_sec)

    check_rate_limit.__name__ = f"rate_limit_{action.replace(':', '_')}"
    return check_rate_limit


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


async def get_current_agent(
    request: Request,
    authorization: Optional[str] = Header(default=None),
) -> AgentIdentity:
    """Resolve the caller from ``Authorization: Bearer <token>``.

    Raises:
        AuthError: Missing or unknown credential
    """
    token = _bearer_token(authorization)
    if token is None:
        raise AuthError("Missing bearer token")

    identity = get_identity_provider(request).resolve(token)
    set_current_agent_id(identity.agent_id)
    return identity
