"""Health check endpoint."""

import logging
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends

from agent_feedback import __version__
from agent_feedback.api.deps import get_feedback_service
from agent_feedback.lib.feedback.service import FeedbackService

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/health")
def health_check_endpoint(service: FeedbackService = Depends(get_feedback_service)) -> Dict[str, Any]:
    """
    Check health status of the service and its durable store.

    Always answers 200; ``status`` is ``degraded`` when the store is not ok.
    """
    store_status = service.health()
    healthy = store_status.get("status") == "ok"
    if not healthy:
        logger.warning("Store health check reported %s", store_status)

    return {
        "status": "healthy" if healthy else "degraded",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": "Agent Feedback API",
        "version": __version__,
        "checks": {"store": store_status},
    }
