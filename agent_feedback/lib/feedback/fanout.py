"""Derive and deliver inbox events for new comments and ratings.

Delivery is lossy: there is no read/ack ledger and failed deliveries are
not retried here.
"""

import logging
from datetime import datetime
from typing import Callable, List, Optional

from agent_feedback.lib.feedback.mentions import extract_mentions
from agent_feedback.lib.feedback.models import (
    Comment,
    EventType,
    InboxEvent,
    Mention,
    Rating,
    format_timestamp,
    new_record_id,
    utc_now,
)
from agent_feedback.lib.store import INBOX_EVENTS, DurableStore

logger = logging.getLogger(__name__)


class InboxFanoutEngine:
    """Turns writes into inbox events and appends them to the store."""

    def __init__(self, store: DurableStore, clock: Callable[[], datetime] = utc_now):
        self.store = store
        self._clock = clock

    def _event(self, event_type: EventType, subject_id: str, subject_kind, **payload) -> InboxEvent:
        now = self._clock()
        return InboxEvent(
            id=new_record_id("evt", now),
            type=event_type,
            created_at=format_timestamp(now),
            subject_id=subject_id,
            subject_kind=subject_kind,
            **payload,
        )

    def fanout_comment(self, comment: Comment, parent: Optional[Comment] = None) -> List[InboxEvent]:
        """Build the events for a new comment.

        Always one ``comment.created`` (no recipient); one ``comment.replied``
        to the parent's author unless that is the commenter; one
        ``comment.mentioned`` per mentioned handle other than the author's.
        """
        events = [
            self._event(
                EventType.COMMENT_CREATED,
                comment.subject_id,
                comment.subject_kind,
                comment=comment,
            )
        ]

        if (
            parent is not None
            and parent.author.agent_id != comment.author.agent_id
            and parent.author.handle
        ):
            events.append(
                self._event(
                    EventType.COMMENT_REPLIED,
                    comment.subject_id,
                    comment.subject_kind,
                    recipient_handle=parent.author.handle,
                    comment=comment,
                )
            )

        own_handle = comment.author.handle
        for handle in sorted(extract_mentions(comment.plain_text)):
            if handle == own_handle:
                continue
            events.append(
                self._event(
                    EventType.COMMENT_MENTIONED,
                    comment.subject_id,
                    comment.subject_kind,
                    recipient_handle=handle,
                    comment=comment,
                    mention=Mention(handle=handle, in_comment_id=comment.id),
                )
            )

        return events

    def fanout_rating(self, rating: Rating, owner_handle: Optional[str]) -> List[InboxEvent]:
        """One ``rating.created_or_updated`` to the subject owner, if there is one."""
        if not owner_handle:
            return []
        return [
            self._event(
                EventType.RATING_CREATED_OR_UPDATED,
                rating.subject_id,
                rating.subject_kind,
                recipient_handle=owner_handle,
                rating=rating,
            )
        ]

    def deliver(self, events: List[InboxEvent]) -> int:
        """Append each event to the inbox collection.

        Returns:
            Number of events stored

        Raises:
            StorageError: On the first event that cannot be stored
        """
        for event in events:
            self.store.append(INBOX_EVENTS, event.model_dump(mode="json"))
            logger.debug(
                "Delivered %s %s to %s",
                event.type.value,
                event.id,
                event.recipient_handle,
                extra={"subject_id": event.subject_id, "recipient_handle": event.recipient_handle},
            )
        return len(events)
