"""Durable store contract shared by every backend.

Records are plain JSON-compatible dicts. Callers never branch on which
backend is in use.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

COMMENTS = "comments"
RATINGS = "ratings"
INBOX_EVENTS = "inbox_events"

COLLECTIONS = (COMMENTS, RATINGS, INBOX_EVENTS)

Record = Dict[str, Any]
Mutator = Callable[[Optional[Record]], Record]


def get_field(record: Mapping[str, Any], dotted: str) -> Any:
    """Resolve a dotted field such as ``rater.agent_id`` inside ``record``."""
    value: Any = record
    for part in dotted.split("."):
        if not isinstance(value, Mapping):
            return None
        value = value.get(part)
    return value


def check_collection(collection: str) -> None:
    if collection not in COLLECTIONS:
        raise ValueError(f"Unknown collection '{collection}'")


class DurableStore(ABC):
    """Keyed persistence for the ``comments``, ``ratings`` and ``inbox_events`` collections.

    Every I/O failure surfaces as ``StorageError`` whose message carries no
    filesystem path or SQL.
    """

    backend_name = "abstract"

    @abstractmethod
    def find_by_id(self, collection: str, record_id: str) -> Optional[Record]:
        """Return the record with ``record_id`` or None."""

    @abstractmethod
    def list_by_subject(self, collection: str, subject_id: str) -> List[Record]:
        """Return every record attached to ``subject_id`` (no ordering guarantee)."""

    @abstractmethod
    def list_by_recipient(self, collection: str, handle: str) -> List[Record]:
        """Return every record whose ``recipient_handle`` equals ``handle``."""

    @abstractmethod
    def append(self, collection: str, record: Record) -> Record:
        """Persist a new record and return it."""

    @abstractmethod
    def upsert(
        self,
        collection: str,
        unique_key: Mapping[str, Any],
        mutator: Mutator,
    ) -> Tuple[Record, bool]:
        """Create or replace the single record matching ``unique_key``.

        Args:
            collection: Collection name
            unique_key: Dotted field name -> required value, e.g.
                ``{"subject_id": "art_1", "rater.agent_id": "agt_1"}``
            mutator: Receives the existing record (or None) and returns the
                record to store

        Returns:
            Tuple of (stored record, True if it was created)
        """

    @abstractmethod
    def update(self, collection: str, record_id: str, mutator: Mutator) -> Optional[Record]:
        """Replace the record with ``record_id`` by ``mutator(existing)``.

        Returns:
            The stored record, or None when no record has ``record_id``
        """

    def health_check(self) -> Dict[str, Any]:
        """Report backend status for the health endpoint."""
        return {"backend": self.backend_name, "status": "ok"}
