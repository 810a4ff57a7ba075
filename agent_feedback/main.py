"""Main FastAPI application for the Agent Feedback service.

Run with ``uvicorn agent_feedback.main:app``.
"""

import logging

from agent_feedback.app import create_app
from agent_feedback.config import get_env_source, get_store_backend
from agent_feedback.lib.logging_config import configure_logging

configure_logging()

logger = logging.getLogger(__name__)

_env_source = get_env_source()
if _env_source:
    logger.info("Loaded environment from %s", _env_source)
logger.info("Starting Agent Feedback API with %s store", get_store_backend())

app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("agent_feedback.main:app", host="0.0.0.0", port=8000)
