"""Durable storage backends.

``create_store()`` picks the backend named by ``FEEDBACK_STORE_BACKEND``
once at startup; the rest of the application only sees ``DurableStore``.
"""

import logging
from typing import Optional

from agent_feedback.config import (
    ConfigurationError,
    get_data_dir,
    get_database_url,
    get_store_backend,
)

from .base import COLLECTIONS, COMMENTS, INBOX_EVENTS, RATINGS, DurableStore
from .file_store import JsonFileDurableStore

logger = logging.getLogger(__name__)


def create_store(backend: Optional[str] = None) -> DurableStore:
    """Build the configured durable store.

    Args:
        backend: ``file`` or ``sql``; defaults to ``FEEDBACK_STORE_BACKEND``

    Raises:
        ConfigurationError: If the backend name is unknown
    """
    backend = backend or get_store_backend()

    if backend == "file":
        data_dir = get_data_dir()
        logger.info("Using file store at %s", data_dir)
        return JsonFileDurableStore(data_dir)

    if backend == "sql":
        from .sql_store import SqlDurableStore

        logger.info("Using SQL store")
        return SqlDurableStore.from_url(get_database_url())

    raise ConfigurationError(f"Unknown store backend '{backend}'")


__all__ = [
    "COLLECTIONS",
    "COMMENTS",
    "INBOX_EVENTS",
    "RATINGS",
    "DurableStore",
    "JsonFileDurableStore",
    "create_store",
]
