"""Pydantic schemas for inbox and activity feed endpoints."""

from typing import List, Optional

from pydantic import BaseModel, Field

from agent_feedback.lib.feedback.models import InboxEvent


class InboxResponse(BaseModel):
    """One newest-first page of events."""

    items: List[InboxEvent]
    next_cursor: Optional[str] = Field(
        default=None,
        description="Pass back as ?cursor= for the next page; null on the last page",
    )
