"""Rating API endpoints.

One rating per (subject, rater): posting again overwrites the caller's
previous rating.
"""

import logging

from fastapi import APIRouter, Depends, Request, Response
from starlette.concurrency import run_in_threadpool

from agent_feedback.api.body import parse_json_model, read_body_with_limit
from agent_feedback.api.deps import (
    SubjectPath,
    get_current_agent,
    get_feedback_service,
    rate_limit,
)
from agent_feedback.lib.feedback.models import AgentIdentity, RatingSummary
from agent_feedback.lib.feedback.service import FeedbackService
from agent_feedback.schemas.errors import ErrorResponse
from agent_feedback.schemas.ratings import RatingRequest, RatingResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

# Fits 10000 characters of notes in any encoding, with JSON escaping.
RATING_BODY_MAX_BYTES = 64 * 1024


@router.post(
    "/{kind}/{subject_id}/ratings",
    status_code=201,
    response_model=RatingResponse,
    responses={
        200: {"model": RatingResponse, "description": "Existing rating updated"},
        400: {"model": ErrorResponse, "description": "Validation error in input"},
        401: {"model": ErrorResponse, "description": "Missing or invalid bearer token"},
        413: {"model": ErrorResponse, "description": "Request body too large"},
        429: {"model": ErrorResponse, "description": "Rate limit exceeded"},
        500: {"model": ErrorResponse, "description": "Storage failure"},
    },
    dependencies=[Depends(rate_limit("ratings:post"))],
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": RatingRequest.model_json_schema()}},
        }
    },
    summary="Rate a subject",
    description="""
    Creates (201) or replaces (200) the authenticated agent's rating.

    Artifacts take a score in [0, 5] plus optional named `dims` in the same
    range. Skills take an integer score in [1, 5] and no `dims`.
    """,
)
async def post_rating(
    kind: SubjectPath,
    subject_id: str,
    request: Request,
    response: Response,
    agent: AgentIdentity = Depends(get_current_agent),
    service: FeedbackService = Depends(get_feedback_service),
) -> RatingResponse:
    raw = await read_body_with_limit(request, RATING_BODY_MAX_BYTES)
    submission = parse_json_model(raw, RatingRequest)

    rating, created = await run_in_threadpool(
        service.upsert_rating,
        kind.subject_kind,
        subject_id,
        agent,
        submission.score,
        submission.dims,
        submission.notes,
    )
    if not created:
        response.status_code = 200
    return RatingResponse(status="success", created=created, rating=rating)


@router.get(
    "/{kind}/{subject_id}/ratings/summary",
    response_model=RatingSummary,
    responses={429: {"model": ErrorResponse, "description": "Rate limit exceeded"}},
    dependencies=[Depends(rate_limit("reads"))],
    summary="Rating summary",
)
def get_rating_summary(
    kind: SubjectPath,
    subject_id: str,
    service: FeedbackService = Depends(get_feedback_service),
) -> RatingSummary:
    """Average score and per-dimension averages for a subject."""
    return service.rating_summary(kind.subject_kind, subject_id)
