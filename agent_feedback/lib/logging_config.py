"""Logging setup for the Agent Feedback service.

``configure_logging()`` is called once from ``main.py``. Every record gets
the current ``request_id`` and ``agent_id``; write paths may add the
subject and record ids through ``extra=``::

    logger.info("Created comment %s", comment.id, extra={"subject_id": "art_1"})

Output is one JSON object per line, or a plain line with
``LOG_FORMAT=simple``.
"""

import json
import logging
import os
import sys
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from agent_feedback.config import get_log_level
from agent_feedback.lib.context import get_current_agent_id, request_id_var

# Optional ``extra=`` keys copied into JSON output.
FEEDBACK_FIELDS = (
    "subject_id",
    "subject_kind",
    "comment_id",
    "rating_id",
    "recipient_handle",
    "status_code",
    "duration_ms",
)

LOG_FORMATS = ("json", "simple")

_QUIET_LOGGERS = {
    "httpx": logging.WARNING,
    "sqlalchemy.engine": logging.WARNING,
    "uvicorn.access": logging.WARNING,
}


class ContextFilter(logging.Filter):
    """Stamp records with the request id and the acting agent."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "request_id", None) is None:
            record.request_id = request_id_var.get()
        if getattr(record, "agent_id", None) is None:
            record.agent_id = get_current_agent_id()
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", None),
            "agent_id": getattr(record, "agent_id", None),
        }
        for key in FEEDBACK_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                entry[key] = value
        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class SimpleFormatter(logging.Formatter):
    """``time LEVEL logger [request agent] - message`` for local runs."""

    def __init__(self):
        super().__init__("%(asctime)s %(levelname)-8s %(name)s [%(request_id)s %(agent_id)s] - %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        record.request_id = getattr(record, "request_id", None) or "-"
        record.agent_id = getattr(record, "agent_id", None) or "-"
        return super().format(record)


def configure_logging(log_format: Optional[str] = None) -> None:
    """Install a single stdout handler on the root logger.

    Args:
        log_format: ``json`` or ``simple``; defaults to ``LOG_FORMAT``, then ``json``
    """
    log_format = (log_format or os.getenv("LOG_FORMAT") or "json").lower()
    if log_format not in LOG_FORMATS:
        log_format = "json"

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(SimpleFormatter() if log_format == "simple" else JsonFormatter())
    handler.addFilter(ContextFilter())

    root_logger = logging.getLogger()
    root_logger.setLevel(get_log_level())
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    for name, level in _QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(level)


def create_request_context_middleware(app) -> None:
    """Tag each request with an ``X-Request-ID`` and log how it ended."""
    from starlette.middleware.base import BaseHTTPMiddleware

    access_logger = logging.getLogger("agent_feedback.access")

    class RequestContextMiddleware(BaseHTTPMiddleware):
        async def dispatch(self, request, call_next):
            req_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:8]
            request_id_var.set(req_id)
            started = time.perf_counter()

            response = await call_next(request)

            duration_ms = round((time.perf_counter() - started) * 1000, 1)
            access_logger.info(
                "%s %s -> %s",
                request.method,
                request.url.path,
                response.status_code,
                extra={"status_code": response.status_code, "duration_ms": duration_ms},
            )
            response.headers["X-Request-ID"] = req_id
            return response

    app.add_middleware(RequestContextMiddleware)
