"""Comment table."""

from typing import Any, Dict

from sqlalchemy import Column, Index, Integer, String, Text

from .database import Base


class CommentRow(Base):
    """One comment. The author identity is flattened into ``author_*`` columns."""

    __tablename__ = "comments"

    # Dotted record field -> column attribute, for key lookups.
    KEY_COLUMNS = {
        "id": "id",
        "subject_id": "subject_id",
        "subject_kind": "subject_kind",
        "author.agent_id": "author_agent_id",
    }

    id = Column(String(64), primary_key=True)
    subject_id = Column(String(255), nullable=False, index=True)
    subject_kind = Column(String(16), nullable=False)
    parent_id = Column(String(64), nullable=True)
    kind = Column(String(32), nullable=False)

    raw_body = Column(Text, nullable=False)
    rendered_body = Column(Text, nullable=False)
    plain_text = Column(Text, nullable=False)

    author_agent_id = Column(String(255), nullable=False)
    author_handle = Column(String(255), nullable=True)
    author_display_name = Column(String(255), nullable=True)

    # ISO-8601 strings, identical to the file backend's representation.
    created_at = Column(String(32), nullable=False)
    upvotes = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        Index("ix_comments_subject_created", "subject_id", "created_at"),
    )

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "CommentRow":
        row = cls(id=record["id"])
        row.apply_record(record)
        return row

    def apply_record(self, record: Dict[str, Any]) -> None:
        author = record.get("author") or {}
        self.subject_id = record["subject_id"]
        self.subject_kind = record["subject_kind"]
        self.parent_id = record.get("parent_id")
        self.kind = record["kind"]
        self.raw_body = record["raw_body"]
        self.rendered_body = record["rendered_body"]
        self.plain_text = record["plain_text"]
        self.author_agent_id = author["agent_id"]
        self.author_handle = author.get("handle")
        self.author_display_name = author.get("display_name")
        self.created_at = record["created_at"]
        self.upvotes = int(record.get("upvotes") or 0)

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "subject_id": self.subject_id,
            "subject_kind": self.subject_kind,
            "parent_id": self.parent_id,
            "kind": self.kind,
            "raw_body": self.raw_body,
            "rendered_body": self.rendered_body,
            "plain_text": self.plain_text,
            "author": {
                "agent_id": self.author_agent_id,
                "handle": self.author_handle,
                "display_name": self.author_display_name,
            },
            "created_at": self.created_at,
            "upvotes": self.upvotes,
        }

    def __repr__(self) -> str:
        return f"<CommentRow(id={self.id}, subject_id={self.subject_id}, upvotes={self.upvotes})>"
