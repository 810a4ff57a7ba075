"""FeedbackService: orchestrate comment, rating and inbox operations.

Each write runs validate -> persist -> fan out -> respond in the calling
request. Fan-out is best-effort: once the primary record is stored, a
failure to derive or deliver notifications is logged and never turned into
a failed write.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from agent_feedback.lib.catalog import OpenSubjectCatalog, SubjectCatalog
from agent_feedback.lib.feedback.fanout import InboxFanoutEngine
from agent_feedback.lib.feedback.models import (
    AgentIdentity,
    Comment,
    CommentKind,
    CommentNode,
    EventType,
    InboxEvent,
    Rating,
    RatingSummary,
    SubjectKind,
    utc_now,
)
from agent_feedback.lib.feedback.ratings import RatingUpsertEngine
from agent_feedback.lib.feedback.threads import CommentThreadEngine
from agent_feedback.lib.pagination import Page, paginate
from agent_feedback.lib.store import INBOX_EVENTS, DurableStore

logger = logging.getLogger(__name__)

# Event types shown in a subject's public activity feed.
SUBJECT_FEED_TYPES = (
    EventType.COMMENT_CREATED.value,
    EventType.RATING_CREATED_OR_UPDATED.value,
)


class FeedbackService:
    """Entry point used by the HTTP layer for every feedback operation."""

    def __init__(
        self,
        store: DurableStore,
        catalog: Optional[SubjectCatalog] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize FeedbackService.

        Args:
            store: Durable store shared by all engines
            catalog: Subject catalog; defaults to one that accepts every subject
            clock: Returns the current UTC time
        """
        self.store = store
        self.catalog = catalog or OpenSubjectCatalog()
        self.threads = CommentThreadEngine(store, self.catalog, clock=clock)
        self.ratings = RatingUpsertEngine(store, clock=clock)
        self.fanout = InboxFanoutEngine(store, clock=clock)

    def _deliver_safely(self, build: Callable[[], List[InboxEvent]], source_id: str) -> int:
        try:
            events = build()
            return self.fanout.deliver(events)
        except Exception as e:
            logger.error("Fan-out failed for %s: %s", source_id, str(e), exc_info=True)
            return 0

    # ------------------------------------------------------------------
    # Comments
    # ------------------------------------------------------------------

    def create_comment(
        self,
        subject_kind: Union[str, SubjectKind],
        subject_id: str,
        author: AgentIdentity,
        raw_body: Optional[str],
        kind: Optional[Union[str, CommentKind]] = None,
        parent_id: Optional[str] = None,
    ) -> Comment:
        """Create a comment and notify the parent author and mentioned agents.

        Raises:
            ValidationError: Invalid input or a cross-subject parent
            NotFoundError: Unknown subject or parent comment
            StorageError: The comment could not be stored
        """
        comment = self.threads.create_comment(subject_id, subject_kind, parent_id, kind, raw_body, author)

        def build() -> List[InboxEvent]:
            parent = self.threads.get_comment(comment.parent_id) if comment.parent_id else None
            return self.fanout.fanout_comment(comment, parent)

        delivered = self._deliver_safely(build, comment.id)
        logger.info("Comment %s fanned out %s events", comment.id, delivered)
        return comment

    def list_comments_threaded(self, subject_kind: Union[str, SubjectKind], subject_id: str) -> List[CommentNode]:
        return self.threads.list_threaded(subject_id, subject_kind)

    def list_comments_flat(
        self,
        subject_kind: Union[str, SubjectKind],
        subject_id: str,
        order: str = "newest",
        cursor: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> Page:
        return self.threads.list_flat(subject_id, subject_kind, order=order, cursor=cursor, limit=limit)

    def upvote_comment(self, comment_id: str) -> Comment:
        return self.threads.upvote(comment_id)

    # ------------------------------------------------------------------
    # Ratings
    # ------------------------------------------------------------------

    def upsert_rating(
        self,
        subject_kind: Union[str, SubjectKind],
        subject_id: str,
        rater: AgentIdentity,
        score: Any,
        dims: Any = None,
        notes: Any = None,
    ) -> Tuple[Rating, bool]:
        """Create or overwrite the caller's rating and notify the subject owner.

        Returns:
            Tuple of (stored rating, True if newly created)
        """
        rating, created = self.ratings.upsert_rating(subject_id, subject_kind, rater, score, dims, notes)

        def build() -> List[InboxEvent]:
            return self.fanout.fanout_rating(rating, self.catalog.owner_handle(rating.subject_id))

        self._deliver_safely(build, rating.id)
        return rating, created

    def rating_summary(self, subject_kind: Union[str, SubjectKind], subject_id: str) -> RatingSummary:
        return self.ratings.summarize(subject_id, subject_kind)

    # ------------------------------------------------------------------
    # Inbox
    # ------------------------------------------------------------------

    def inbox(
        self,
        handle: str,
        cursor: Optional[str] = None,
        limit: Optional[int] = None,
        subject_id: Optional[str] = None,
    ) -> Page:
        """Return one newest-first page of events addressed to ``handle``."""
        records = self.store.list_by_recipient(INBOX_EVENTS, handle)
        if subject_id:
            records = [r for r in records if r.get("subject_id") == subject_id]

        page = paginate(records, cursor=cursor, limit=limit, order="newest")
        page.items = [InboxEvent.model_validate(r) for r in page.items]
        return page

    def subject_events(
        self,
        subject_kind: Union[str, SubjectKind],
        subject_id: str,
        cursor: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> Page:
        """Return one newest-first page of a subject's public activity."""
        kind = SubjectKind(subject_kind)
        records = [
            r
            for r in self.store.list_by_subject(INBOX_EVENTS, subject_id)
            if r.get("subject_kind") == kind.value and r.get("type") in SUBJECT_FEED_TYPES
        ]

        page = paginate(records, cursor=cursor, limit=limit, order="newest")
        page.items = [InboxEvent.model_validate(r) for r in page.items]
        return page

    def health(self) -> Dict[str, Any]:
        return self.store.health_check()
