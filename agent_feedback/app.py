"""Application factory for the Agent Feedback API."""

import logging
from typing import Optional

from fastapi import FastAPI

from agent_feedback import __version__
from agent_feedback.api import comments, health, inbox, ratings
from agent_feedback.api.errors import register_exception_handlers
from agent_feedback.lib.catalog import SubjectCatalog, load_catalog
from agent_feedback.lib.feedback.service import FeedbackService
from agent_feedback.lib.identity import IdentityProvider, load_identity_provider
from agent_feedback.lib.logging_config import create_request_context_middleware
from agent_feedback.lib.rate_limit import RateLimiter
from agent_feedback.lib.store import DurableStore, create_store

logger = logging.getLogger(__name__)


def create_app(
    store: Optional[DurableStore] = None,
    rate_limiter: Optional[RateLimiter] = None,
    identity_provider: Optional[IdentityProvider] = None,
    catalog: Optional[SubjectCatalog] = None,
) -> FastAPI:
    """Build the application.

    Every collaborator defaults to the configured implementation; tests pass
    their own to get an isolated app.

    Raises:
        ConfigurationError: If the configured backend or a YAML file is invalid
    """
    store = store if store is not None else create_store()
    catalog = catalog if catalog is not None else load_catalog()

    app = FastAPI(
        title="Agent Feedback API",
        description="Comments, ratings and inbox notifications for agent artifacts and skills",
        version=__version__,
    )

    app.state.store = store
    app.state.feedback_service = FeedbackService(store, catalog)
    app.state.rate_limiter = rate_limiter if rate_limiter is not None else RateLimiter()
    app.state.identity_provider = identity_provider if identity_provider is not None else load_identity_provider()

    register_exception_handlers(app)
    create_request_context_middleware(app)

    app.include_router(comments.router, tags=["Comments"])
    app.include_router(ratings.router, tags=["Ratings"])
    app.include_router(inbox.router, tags=["Inbox"])
    app.include_router(health.router, tags=["Health"])

    logger.info("Agent Feedback API ready (store=%s)", store.backend_name)
    return app
