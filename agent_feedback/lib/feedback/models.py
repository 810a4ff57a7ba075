"""Domain records for comments, ratings and inbox events.

Records are persisted as plain JSON objects (``model_dump(mode="json")``);
every key is always present and absent payloads are ``None``. Timestamps are
ISO-8601 UTC strings with millisecond precision and a ``Z`` suffix.
"""

import secrets
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

Score = Union[int, float]


class SubjectKind(str, Enum):
    """What a comment or rating is attached to."""

    ARTIFACT = "artifact"
    SKILL = "skill"


class CommentKind(str, Enum):
    REVIEW = "review"
    QUESTION = "question"
    ISSUE = "issue"
    IMPROVEMENT = "improvement"


class EventType(str, Enum):
    COMMENT_CREATED = "comment.created"
    COMMENT_REPLIED = "comment.replied"
    COMMENT_MENTIONED = "comment.mentioned"
    RATING_CREATED_OR_UPDATED = "rating.created_or_updated"


class AgentIdentity(BaseModel):
    """A resolved agent identity, copied into authored records as a snapshot."""

    model_config = ConfigDict(frozen=True)

    agent_id: str = Field(..., min_length=1)
    handle: Optional[str] = None
    display_name: Optional[str] = None


class Comment(BaseModel):
    id: str
    subject_id: str
    subject_kind: SubjectKind
    parent_id: Optional[str] = None
    kind: CommentKind
    raw_body: str
    rendered_body: str
    plain_text: str
    author: AgentIdentity
    created_at: str
    upvotes: int = 0


class CommentNode(Comment):
    """A comment with its (sorted) replies attached."""

    replies: List["CommentNode"] = Field(default_factory=list)


class Rating(BaseModel):
    id: str
    subject_id: str
    subject_kind: SubjectKind
    rater: AgentIdentity
    score: Score
    dims: Dict[str, Score] = Field(default_factory=dict)
    notes: Optional[str] = None
    created_at: str
    updated_at: str


class RatingSummary(BaseModel):
    subject_id: str
    subject_kind: SubjectKind
    count: int
    avg: Optional[float] = None
    dims_avg: Dict[str, float] = Field(default_factory=dict)


class Mention(BaseModel):
    handle: str
    in_comment_id: str


class InboxEvent(BaseModel):
    """One notification. ``recipient_handle`` is None for subject-wide events."""

    id: str
    type: EventType
    created_at: str
    subject_id: str
    subject_kind: SubjectKind
    recipient_handle: Optional[str] = None
    comment: Optional[Comment] = None
    rating: Optional[Rating] = None
    mention: Optional[Mention] = None


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(moment: datetime) -> str:
    """Render ``moment`` as ``YYYY-MM-DDTHH:MM:SS.mmmZ``."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def new_record_id(prefix: str, moment: datetime) -> str:
    """Build ``<prefix>_<13-digit epoch ms>_<random hex>`` so ids sort by creation time."""
    millis = int(moment.timestamp() * 1000)
    return f"{prefix}_{millis:013d}_{secrets.token_hex(4)}"


def normalize_number(value: Score) -> Score:
    """Collapse integral floats (``4.0``) to ints so every backend stores the same JSON."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value
