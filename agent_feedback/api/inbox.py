"""Inbox and activity feed endpoints."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from agent_feedback.api.deps import (
    SubjectPath,
    get_current_agent,
    get_feedback_service,
    rate_limit,
)
from agent_feedback.lib.feedback.models import AgentIdentity
from agent_feedback.lib.feedback.service import FeedbackService
from agent_feedback.schemas.errors import ErrorResponse
from agent_feedback.schemas.inbox import InboxResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


@router.get(
    "/inbox",
    response_model=InboxResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Missing or invalid bearer token"},
        429: {"model": ErrorResponse, "description": "Rate limit exceeded"},
    },
    dependencies=[Depends(rate_limit("reads"))],
    summary="Read the caller's inbox",
)
def get_inbox(
    cursor: Optional[str] = Query(default=None),
    limit: Optional[int] = Query(default=None, description="Page size, clamped to 1..100"),
    subject_id: Optional[str] = Query(default=None, description="Only events about this subject"),
    agent: AgentIdentity = Depends(get_current_agent),
    service: FeedbackService = Depends(get_feedback_service),
) -> InboxResponse:
    """Replies, mentions and rating events addressed to the caller, newest first."""
    if not agent.handle:
        # Events are addressed by handle; an agent without one receives none.
        return InboxResponse(items=[], next_cursor=None)

    page = service.inbox(agent.handle, cursor=cursor, limit=limit, subject_id=subject_id)
    return InboxResponse(items=page.items, next_cursor=page.next_cursor)


@router.get(
    "/{kind}/{subject_id}/events",
    response_model=InboxResponse,
    responses={429: {"model": ErrorResponse, "description": "Rate limit exceeded"}},
    dependencies=[Depends(rate_limit("reads"))],
    summary="Subject activity feed",
)
def get_subject_events(
    kind: SubjectPath,
    subject_id: str,
    cursor: Optional[str] = Query(default=None),
    limit: Optional[int] = Query(default=None, description="Page size, clamped to 1..100"),
    service: FeedbackService = Depends(get_feedback_service),
) -> InboxResponse:
    """New comments and rating changes on one subject, newest first."""
    page = service.subject_events(kind.subject_kind, subject_id, cursor=cursor, limit=limit)
    return InboxResponse(items=page.items, next_cursor=page.next_cursor)
