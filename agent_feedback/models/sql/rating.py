"""Rating table: exactly one row per (subject_kind, subject_id, rater)."""

from typing import Any, Dict

from sqlalchemy import JSON, Column, Float, String, Text, UniqueConstraint

from agent_feedback.lib.feedback.models import normalize_number

from .database import Base


class RatingRow(Base):
    """A rater's current score for one subject."""

    __tablename__ = "ratings"

    KEY_COLUMNS = {
        "id": "id",
        "subject_id": "subject_id",
        "subject_kind": "subject_kind",
        "rater.agent_id": "rater_agent_id",
    }

    id = Column(String(64), primary_key=True)
    subject_id = Column(String(255), nullable=False, index=True)
    subject_kind = Column(String(16), nullable=False)

    rater_agent_id = Column(String(255), nullable=False)
    rater_handle = Column(String(255), nullable=True)
    rater_display_name = Column(String(255), nullable=True)

    score = Column(Float, nullable=False)
    dims = Column(JSON, nullable=False, default=dict)  # Dict[str, number]
    notes = Column(Text, nullable=True)

    created_at = Column(String(32), nullable=False)
    updated_at = Column(String(32), nullable=False)

    __table_args__ = (
        UniqueConstraint(
            "subject_kind",
            "subject_id",
            "rater_agent_id",
            name="uq_ratings_subject_rater",
        ),
    )

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "RatingRow":
        row = cls(id=record["id"])
        row.apply_record(record)
        return row

    def apply_record(self, record: Dict[str, Any]) -> None:
        rater = record.get("rater") or {}
        self.subject_id = record["subject_id"]
        self.subject_kind = record["subject_kind"]
        self.rater_agent_id = rater["agent_id"]
        self.rater_handle = rater.get("handle")
        self.rater_display_name = rater.get("display_name")
        self.score = record["score"]
        self.dims = dict(record.get("dims") or {})
        self.notes = record.get("notes")
        self.created_at = record["created_at"]
        self.updated_at = record["updated_at"]

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "subject_id": self.subject_id,
            "subject_kind": self.subject_kind,
            "rater": {
                "agent_id": self.rater_agent_id,
                "handle": self.rater_handle,
                "display_name": self.rater_display_name,
            },
            "score": normalize_number(self.score),
            "dims": {key: normalize_number(value) for key, value in (self.dims or {}).items()},
            "notes": self.notes,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    def __repr__(self) -> str:
        return f"<RatingRow(id={self.id}, subject_id={self.subject_id}, rater={self.rater_agent_id})>"
