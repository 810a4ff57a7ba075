"""Pydantic schemas for the rating endpoints."""

from typing import Any, Optional

from pydantic import BaseModel, Field

from agent_feedback.lib.feedback.models import Rating


class RatingRequest(BaseModel):
    """Body for POST /api/{kind}/{subject_id}/ratings.

    Values are range-checked by the rating engine so that every problem is
    reported in one response; artifacts and skills accept different ranges.
    """

    score: Any = Field(
        ...,
        description="Artifacts: number in [0, 5]. Skills: integer in [1, 5].",
        examples=[4],
    )

    dims: Optional[Any] = Field(
        default=None,
        description="Artifacts only: named sub-scores in [0, 5]",
        examples=[{"usefulness": 5, "correctness": 4}],
    )

    notes: Optional[Any] = Field(
        default=None,
        description="Optional free-text notes",
        examples=["Solid, but the README is thin."],
    )


class RatingResponse(BaseModel):
    status: str = Field(..., pattern="^success$", examples=["success"])
    created: bool = Field(..., description="True when this call created the rating")
    rating: Rating
