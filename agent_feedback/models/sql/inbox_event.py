"""Inbox event table (append-only)."""

from typing import Any, Dict

from sqlalchemy import JSON, Column, Index, String

from .database import Base


class InboxEventRow(Base):
    """A delivered notification. Payloads are stored as JSON snapshots."""

    __tablename__ = "inbox_events"

    KEY_COLUMNS = {
        "id": "id",
        "subject_id": "subject_id",
        "subject_kind": "subject_kind",
        "recipient_handle": "recipient_handle",
    }

    id = Column(String(64), primary_key=True)
    type = Column(String(64), nullable=False)
    created_at = Column(String(32), nullable=False)
    subject_id = Column(String(255), nullable=False, index=True)
    subject_kind = Column(String(16), nullable=False)
    recipient_handle = Column(String(255), nullable=True, index=True)

    comment = Column(JSON, nullable=True)
    rating = Column(JSON, nullable=True)
    mention = Column(JSON, nullable=True)

    __table_args__ = (
        Index("ix_inbox_events_recipient_created", "recipient_handle", "created_at"),
    )

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "InboxEventRow":
        row = cls(id=record["id"])
        row.apply_record(record)
        return row

    def apply_record(self, record: Dict[str, Any]) -> None:
        self.type = record["type"]
        self.created_at = record["created_at"]
        self.subject_id = record["subject_id"]
        self.subject_kind = record["subject_kind"]
        self.recipient_handle = record.get("recipient_handle")
        self.comment = record.get("comment")
        self.rating = record.get("rating")
        self.mention = record.get("mention")

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "created_at": self.created_at,
            "subject_id": self.subject_id,
            "subject_kind": self.subject_kind,
            "recipient_handle": self.recipient_handle,
            "comment": self.comment,
            "rating": self.rating,
            "mention": self.mention,
        }

    def __repr__(self) -> str:
        return f"<InboxEventRow(id={self.id}, type={self.type}, recipient={self.recipient_handle})>"
