"""Ratings: one per (subject, rater), plus per-subject summaries.

Artifacts and skills accept different score shapes and are validated by
separate input types:

- artifacts: ``score`` any number in [0, 5], optional ``dims`` of named
  sub-scores in the same range;
- skills: ``score`` an integer in [1, 5], no ``dims``.
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from agent_feedback.lib.exceptions import FieldError, ValidationError
from agent_feedback.lib.feedback.models import (
    AgentIdentity,
    Rating,
    RatingSummary,
    Score,
    SubjectKind,
    format_timestamp,
    new_record_id,
    normalize_number,
    utc_now,
)
from agent_feedback.lib.feedback.threads import coerce_subject_kind
from agent_feedback.lib.store import RATINGS, DurableStore

logger = logging.getLogger(__name__)

ARTIFACT_SCORE_RANGE = (0, 5)
SKILL_SCORE_RANGE = (1, 5)
NOTES_MAX_LENGTH = 10_000
DIM_KEY_MAX_LENGTH = 64


def _is_number(value: Any) -> bool:
    # bool is an int subclass but never a score.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    # math.isfinite overflows on ints too large for a float.
    return isinstance(value, int) or math.isfinite(value)


def _check_notes(notes: Any, errors: List[FieldError]) -> Optional[str]:
    if notes is None:
        return None
    if not isinstance(notes, str):
        errors.append(FieldError("notes", "notes must be a string"))
        return None
    if len(notes) > NOTES_MAX_LENGTH:
        errors.append(FieldError("notes", f"notes must be at most {NOTES_MAX_LENGTH} characters"))
    return notes.strip() or None


@dataclass(frozen=True)
class ArtifactRatingInput:
    """Validated artifact rating: numeric score and sub-scores in [0, 5]."""

    score: Score
    dims: Dict[str, Score] = field(default_factory=dict)
    notes: Optional[str] = None

    @classmethod
    def parse(cls, score: Any, dims: Any, notes: Any) -> "ArtifactRatingInput":
        low, high = ARTIFACT_SCORE_RANGE
        errors: List[FieldError] = []

        if not _is_number(score) or not low <= score <= high:
            errors.append(FieldError("score", f"score must be a number between {low} and {high}"))

        clean_dims: Dict[str, Score] = {}
        if dims is None:
            dims = {}
        if not isinstance(dims, dict):
            errors.append(FieldError("dims", "dims must be an object of named scores"))
        else:
            for key, value in dims.items():
                if not isinstance(key, str) or not key.strip() or len(key) > DIM_KEY_MAX_LENGTH:
                    errors.append(FieldError("dims", f"dims key '{key}' is not a valid name"))
                    continue
                if not _is_number(value) or not low <= value <= high:
                    errors.append(FieldError(f"dims.{key}", f"dims.{key} must be a number between {low} and {high}"))
                    continue
                clean_dims[key] = normalize_number(value)

        clean_notes = _check_notes(notes, errors)

        if errors:
            raise ValidationError(errors)
        return cls(score=normalize_number(score), dims=clean_dims, notes=clean_notes)


@dataclass(frozen=True)
class SkillRatingInput:
    """Validated skill rating: integer score in [1, 5], never any dims."""

    score: int
    notes: Optional[str] = None

    @property
    def dims(self) -> Dict[str, Score]:
        return {}

    @classmethod
    def parse(cls, score: Any, dims: Any, notes: Any) -> "SkillRatingInput":
        low, high = SKILL_SCORE_RANGE
        errors: List[FieldError] = []

        is_integral = _is_number(score) and (isinstance(score, int) or score.is_integer())
        if not is_integral or not low <= score <= high:
            errors.append(FieldError("score", f"score must be an integer between {low} and {high}"))

        if dims:
            errors.append(FieldError("dims", "dims are not supported for skill ratings"))

        clean_notes = _check_notes(notes, errors)

        if errors:
            raise ValidationError(errors)
        return cls(score=int(score), notes=clean_notes)


RatingInput = Union[ArtifactRatingInput, SkillRatingInput]


def parse_rating_input(subject_kind: SubjectKind, score: Any, dims: Any, notes: Any) -> RatingInput:
    if subject_kind == SubjectKind.SKILL:
        return SkillRatingInput.parse(score, dims, notes)
    return ArtifactRatingInput.parse(score, dims, notes)


def summarize_records(subject_id: str, subject_kind: SubjectKind, records: List[Dict[str, Any]]) -> RatingSummary:
    """Average scores; each dim is averaged only over ratings that supplied it."""
    scores = [r["score"] for r in records if _is_number(r.get("score"))]

    dim_totals: Dict[str, float] = {}
    dim_counts: Dict[str, int] = {}
    for record in records:
        for key, value in (record.get("dims") or {}).items():
            if not _is_number(value):
                continue
            dim_totals[key] = dim_totals.get(key, 0.0) + value
            dim_counts[key] = dim_counts.get(key, 0) + 1

    return RatingSummary(
        subject_id=subject_id,
        subject_kind=subject_kind,
        count=len(records),
        avg=(sum(scores) / len(scores)) if scores else None,
        dims_avg={key: dim_totals[key] / dim_counts[key] for key in sorted(dim_totals)},
    )


class RatingUpsertEngine:
    """Keeps exactly one rating per (subject_kind, subject_id, rater)."""

    def __init__(self, store: DurableStore, clock: Callable[[], datetime] = utc_now):
        self.store = store
        self._clock = clock

    def upsert_rating(
        self,
        subject_id: str,
        subject_kind: Union[str, SubjectKind],
        rater: AgentIdentity,
        score: Any,
        dims: Any = None,
        notes: Any = None,
    ) -> Tuple[Rating, bool]:
        """Create the caller's rating for a subject, or overwrite it.

        A resubmission keeps ``id`` and ``created_at`` and replaces score,
        dims, notes, the rater snapshot and ``updated_at``.

        Args:
            subject_id: Artifact or skill id
            subject_kind: ``artifact`` or ``skill``
            rater: Identity of the caller
            score: Overall score (range depends on subject kind)
            dims: Named sub-scores (artifacts only)
            notes: Optional free text

        Returns:
            Tuple of (stored rating, True if newly created)

        Raises:
            ValidationError: Listing every violated rule
            StorageError: The store could not be read or written
        """
        errors: List[FieldError] = []
        kind = coerce_subject_kind(subject_kind, errors)
        subject_id = (subject_id or "").strip()
        if not subject_id:
            errors.append(FieldError("subject_id", "subject_id is required"))

        rating_input: Optional[RatingInput] = None
        if kind is not None:
            try:
                rating_input = parse_rating_input(kind, score, dims, notes)
            except ValidationError as e:
                errors.extend(e.errors)

        if errors:
            logger.warning(
                "Rejected rating on %s: %s",
                subject_id or "<missing>",
                "; ".join(e.message for e in errors),
            )
            raise ValidationError(errors)

        stamp = format_timestamp(self._clock())
        rater_snapshot = rater.model_dump(mode="json")

        def merge(existing: Optional[Dict[str, Any]]) -> Dict[str, Any]:
            if existing is None:
                record_id = new_record_id("rat", self._clock())
                created_at = stamp
            else:
                record_id = existing["id"]
                created_at = existing["created_at"]
            return {
                "id": record_id,
                "subject_id": subject_id,
                "subject_kind": kind.value,
                "rater": rater_snapshot,
                "score": rating_input.score,
                "dims": dict(rating_input.dims),
                "notes": rating_input.notes,
                "created_at": created_at,
                "updated_at": stamp,
            }

        record, created = self.store.upsert(
            RATINGS,
            {"subject_kind": kind.value, "subject_id": subject_id, "rater.agent_id": rater.agent_id},
            merge,
        )

        logger.info(
            "%s rating %s on %s %s by %s",
            "Created" if created else "Updated",
            record["id"],
            kind.value,
            subject_id,
            rater.agent_id,
            extra={"subject_id": subject_id, "rating_id": record["id"]},
        )
        return Rating.model_validate(record), created

    def summarize(self, subject_id: str, subject_kind: Union[str, SubjectKind]) -> RatingSummary:
        kind = SubjectKind(subject_kind)
        records = [
            r for r in self.store.list_by_subject(RATINGS, subject_id) if r.get("subject_kind") == kind.value
        ]
        return summarize_records(subject_id, kind, records)
