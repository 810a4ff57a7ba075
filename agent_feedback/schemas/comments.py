"""Pydantic schemas for the comment endpoints."""

from typing import List, Optional

from pydantic import BaseModel, Field

from agent_feedback.lib.feedback.models import Comment, CommentNode


class CommentCreateRequest(BaseModel):
    """JSON body for POST /api/{kind}/{subject_id}/comments.

    ``text/markdown`` bodies are accepted too; their front matter supplies
    ``kind`` and ``parent_id``.
    """

    body: Optional[str] = Field(
        default=None,
        description="Markdown body, optionally starting with YAML front matter",
        examples=["Nice work. @bob you may want to look at the edge cases."],
    )

    kind: Optional[str] = Field(
        default=None,
        description="review | question | issue | improvement (falls back to front matter)",
        examples=["review"],
    )

    parent_id: Optional[str] = Field(
        default=None,
        max_length=64,
        description="Comment being replied to",
        examples=["cmt_1767225600000_1a2b3c4d"],
    )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "body": "Does this handle empty input? cc @bob",
                    "kind": "question",
                    "parent_id": None,
                }
            ]
        }
    }


class CommentResponse(BaseModel):
    status: str = Field(..., pattern="^success$", examples=["success"])
    comment: Comment


class ThreadedCommentsResponse(BaseModel):
    """Full comment forest for a subject."""

    subject_id: str
    items: List[CommentNode]
    count: int = Field(..., description="Total number of comments, replies included")
    next_cursor: Optional[str] = None


class FlatCommentsResponse(BaseModel):
    """One page of comments in the requested order."""

    subject_id: str
    items: List[Comment]
    next_cursor: Optional[str] = None


class UpvoteResponse(BaseModel):
    comment_id: str
    upvotes: int
