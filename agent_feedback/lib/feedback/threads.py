"""Comment threads: validation, persistence, threading and listing."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from agent_feedback.lib.catalog import SubjectCatalog
from agent_feedback.lib.exceptions import FieldError, NotFoundError, ValidationError
from agent_feedback.lib.feedback.markdown import markdown_to_text, parse_front_matter
from agent_feedback.lib.feedback.models import (
    AgentIdentity,
    Comment,
    CommentKind,
    CommentNode,
    SubjectKind,
    format_timestamp,
    new_record_id,
    utc_now,
)
from agent_feedback.lib.pagination import ORDERS, Page, paginate, parse_timestamp
from agent_feedback.lib.store import COMMENTS, DurableStore

logger = logging.getLogger(__name__)

# UTF-8 byte caps on raw_body, per subject kind.
COMMENT_BODY_MAX_BYTES = {
    SubjectKind.ARTIFACT: 20_000,
    SubjectKind.SKILL: 2_000,
}

_COMMENT_KINDS = "|".join(k.value for k in CommentKind)
_SUBJECT_KINDS = "|".join(k.value for k in SubjectKind)

# Front-matter keys that name the subject a body was written for.
_SUBJECT_KEYS = ("subject_id", "artifact_id", "skill_id")


@dataclass
class PreparedComment:
    """A comment body that passed local validation."""

    subject_id: str
    subject_kind: SubjectKind
    parent_id: Optional[str]
    kind: CommentKind
    raw_body: str
    rendered_body: str
    plain_text: str


def coerce_subject_kind(value: Union[str, SubjectKind, None], errors: List[FieldError]) -> Optional[SubjectKind]:
    try:
        return SubjectKind(value)
    except ValueError:
        errors.append(FieldError("subject_kind", f"subject_kind must be one of {_SUBJECT_KINDS}"))
        return None


def _clean_parent_id(value: Any, errors: List[FieldError]) -> Optional[str]:
    if value is None or value == "null":
        return None
    if not isinstance(value, str):
        errors.append(FieldError("parent_id", "parent_id must be a string or null when provided"))
        return None
    return value.strip() or None


def _thread_sort_key(node: CommentNode) -> Tuple[int, datetime, str]:
    return node.upvotes, parse_timestamp(node.created_at), node.id


def _sort_tree(nodes: List[CommentNode]) -> None:
    nodes.sort(key=_thread_sort_key, reverse=True)
    for node in nodes:
        _sort_tree(node.replies)


class CommentThreadEngine:
    """Creates and lists comments on artifacts and skills."""

    def __init__(
        self,
        store: DurableStore,
        catalog: SubjectCatalog,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.catalog = catalog
        self._clock = clock

    def prepare(
        self,
        subject_id: str,
        subject_kind: Union[str, SubjectKind],
        parent_id: Optional[str],
        kind: Optional[Union[str, CommentKind]],
        raw_body: Optional[str],
    ) -> PreparedComment:
        """Run every local check and collect all violations.

        ``kind`` and ``parent_id`` fall back to the body's front matter when
        not given explicitly. Touches no storage.

        Raises:
            ValidationError: Listing every violated rule
        """
        errors: List[FieldError] = []

        resolved_kind = coerce_subject_kind(subject_kind, errors)
        subject_id = (subject_id or "").strip()
        if not subject_id:
            errors.append(FieldError("subject_id", "subject_id is required"))

        raw_body = raw_body if isinstance(raw_body, str) else ""
        parsed = parse_front_matter(raw_body)
        content = parsed.content.strip()
        front = parsed.front_matter

        if not content:
            errors.append(FieldError("body", "Comment body cannot be empty"))
        if resolved_kind is not None:
            cap = COMMENT_BODY_MAX_BYTES[resolved_kind]
            if len(raw_body.encode("utf-8")) > cap:
                errors.append(FieldError("body", f"Comment body exceeds {cap} bytes"))

        for key in _SUBJECT_KEYS:
            declared = front.get(key)
            if declared is not None and subject_id and str(declared).strip() != subject_id:
                errors.append(FieldError(key, f"{key} in front matter does not match the request"))

        kind_value = kind if kind is not None else front.get("kind")
        comment_kind: Optional[CommentKind] = None
        if kind_value is None:
            errors.append(FieldError("kind", f"kind is required ({_COMMENT_KINDS})"))
        else:
            try:
                comment_kind = CommentKind(kind_value.strip() if isinstance(kind_value, str) else kind_value)
            except ValueError:
                errors.append(FieldError("kind", f"kind must be one of {_COMMENT_KINDS}"))

        parent_value = parent_id if parent_id is not None else front.get("parent_id")
        clean_parent = _clean_parent_id(parent_value, errors)

        if errors:
            logger.warning(
                "Rejected comment on %s: %s",
                subject_id or "<missing>",
                "; ".join(e.message for e in errors),
            )
            raise ValidationError(errors)

        return PreparedComment(
            subject_id=subject_id,
            subject_kind=resolved_kind,
            parent_id=clean_parent,
            kind=comment_kind,
            raw_body=raw_body,
            rendered_body=content,
            plain_text=markdown_to_text(content),
        )

    def _check_parent(self, prepared: PreparedComment) -> None:
        if not self.catalog.exists(prepared.subject_id):
            raise NotFoundError("subject not found")

        parent = self.store.find_by_id(COMMENTS, prepared.parent_id)
        if parent is None:
            raise NotFoundError("parent comment not found")

        if parent.get("subject_id") != prepared.subject_id or parent.get("subject_kind") != prepared.subject_kind.value:
            message = f"parent_id not found on {prepared.subject_kind.value}"
            logger.warning("Rejected cross-subject reply to %s on %s", prepared.parent_id, prepared.subject_id)
            raise ValidationError([FieldError("parent_id", message)])

    def create_comment(
        self,
        subject_id: str,
        subject_kind: Union[str, SubjectKind],
        parent_id: Optional[str],
        kind: Optional[Union[str, CommentKind]],
        raw_body: Optional[str],
        author: AgentIdentity,
    ) -> Comment:
        """Validate and persist a new comment.

        Args:
            subject_id: Artifact or skill id
            subject_kind: ``artifact`` or ``skill``
            parent_id: Comment being replied to, or None for a root comment
            kind: review | question | issue | improvement
            raw_body: Markdown body, optionally with YAML front matter
            author: Identity snapshot embedded in the record

        Returns:
            The stored comment

        Raises:
            ValidationError: Local validation failed, or the parent belongs
                to another subject
            NotFoundError: The subject or the parent comment does not exist
            StorageError: The store could not be read or written
        """
        prepared = self.prepare(subject_id, subject_kind, parent_id, kind, raw_body)

        if prepared.parent_id:
            self._check_parent(prepared)

        now = self._clock()
        comment = Comment(
            id=new_record_id("cmt", now),
            subject_id=prepared.subject_id,
            subject_kind=prepared.subject_kind,
            parent_id=prepared.parent_id,
            kind=prepared.kind,
            raw_body=prepared.raw_body,
            rendered_body=prepared.rendered_body,
            plain_text=prepared.plain_text,
            author=author,
            created_at=format_timestamp(now),
            upvotes=0,
        )
        self.store.append(COMMENTS, comment.model_dump(mode="json"))

        logger.info(
            "Created comment %s on %s %s (parent=%s)",
            comment.id,
            comment.subject_kind.value,
            comment.subject_id,
            comment.parent_id,
            extra={"subject_id": comment.subject_id, "comment_id": comment.id},
        )
        return comment

    def get_comment(self, comment_id: str) -> Optional[Comment]:
        record = self.store.find_by_id(COMMENTS, comment_id)
        return Comment.model_validate(record) if record else None

    def _subject_records(self, subject_id: str, subject_kind: SubjectKind) -> List[Dict[str, Any]]:
        return [
            r
            for r in self.store.list_by_subject(COMMENTS, subject_id)
            if r.get("subject_kind") == subject_kind.value
        ]

    def list_threaded(self, subject_id: str, subject_kind: Union[str, SubjectKind]) -> List[CommentNode]:
        """Return the subject's comments as a sorted forest.

        A comment whose parent is missing becomes a root. Siblings at every
        depth are ordered by upvotes, then created_at, then id, all descending.
        """
        kind = SubjectKind(subject_kind)
        nodes: Dict[str, CommentNode] = {
            r["id"]: CommentNode.model_validate(r) for r in self._subject_records(subject_id, kind)
        }

        roots: List[CommentNode] = []
        for node in nodes.values():
            parent = nodes.get(node.parent_id) if node.parent_id else None
            if parent is not None and parent is not node:
                parent.replies.append(node)
            else:
                roots.append(node)

        _sort_tree(roots)
        return roots

    def list_flat(
        self,
        subject_id: str,
        subject_kind: Union[str, SubjectKind],
        order: str = "newest",
        cursor: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> Page:
        """Return one page of the subject's comments without threading.

        Raises:
            ValidationError: If ``order`` is unknown
        """
        if order not in ORDERS:
            raise ValidationError([FieldError("order", f"order must be one of {'|'.join(ORDERS)}")])

        kind = SubjectKind(subject_kind)
        page = paginate(self._subject_records(subject_id, kind), cursor=cursor, limit=limit, order=order)
        page.items = [Comment.model_validate(r) for r in page.items]
        return page

    def upvote(self, comment_id: str) -> Comment:
        """Add one upvote to a comment.

        Raises:
            NotFoundError: If no comment has ``comment_id``
        """

        def bump(existing: Optional[Dict[str, Any]]) -> Dict[str, Any]:
            updated = dict(existing or {})
            updated["upvotes"] = int(updated.get("upvotes") or 0) + 1
            return updated

        record = self.store.update(COMMENTS, comment_id, bump)
        if record is None:
            raise NotFoundError("comment not found")

        logger.info("Upvoted comment %s (now %s)", comment_id, record["upvotes"])
        return Comment.model_validate(record)
