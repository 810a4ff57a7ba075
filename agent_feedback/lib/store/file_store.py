"""JSON-file durable store.

Each collection is one JSON array in ``<root>/<collection>.json``. Every
write reads the whole array, mutates it in memory, writes a temporary file
in the same directory and renames it over the original, so readers never
see a half-written file.

A per-collection ``threading.Lock`` serializes writers inside one process.
Writers in *different* processes are not coordinated: concurrent
read-modify-write cycles can lose updates (the last rename wins). Run a
single writer process, or use the SQL backend, when that matters.
"""

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

from agent_feedback.lib.exceptions import StorageError

from .base import DurableStore, Mutator, Record, check_collection, get_field

logger = logging.getLogger(__name__)


class JsonFileDurableStore(DurableStore):
    """Durable store backed by one JSON array file per collection."""

    backend_name = "file"

    def __init__(self, root: Path):
        """Initialize the store.

        Args:
            root: Directory holding the collection files. Created on first write.
        """
        self.root = Path(root)
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, collection: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(collection)
            if lock is None:
                lock = threading.Lock()
                self._locks[collection] = lock
            return lock

    def _path(self, collection: str) -> Path:
        check_collection(collection)
        return self.root / f"{collection}.json"

    def _read_all(self, collection: str) -> List[Record]:
        path = self._path(collection)
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return []
        except (OSError, ValueError) as e:
            logger.error("Failed to read collection %s: %s", collection, e, exc_info=True)
            raise StorageError(f"Failed to read {collection}") from e

        if not isinstance(data, list):
            logger.error("Collection %s file does not hold a JSON array", collection)
            raise StorageError(f"Failed to read {collection}")
        return data

    def _write_all(self, collection: str, records: List[Record]) -> None:
        path = self._path(collection)
        tmp_name = None
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{collection}.", suffix=".tmp", dir=str(self.root)
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(records, f, ensure_ascii=False, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
        except (OSError, TypeError, ValueError) as e:
            logger.error("Failed to write collection %s: %s", collection, e, exc_info=True)
            if tmp_name and os.path.exists(tmp_name):
                try:
                    os.unlink(tmp_name)
                except OSError:
                    logger.warning("Could not remove temp file for %s", collection)
            raise StorageError(f"Failed to write {collection}") from e

    def find_by_id(self, collection: str, record_id: str) -> Optional[Record]:
        for record in self._read_all(collection):
            if record.get("id") == record_id:
                return record
        return None

    def list_by_subject(self, collection: str, subject_id: str) -> List[Record]:
        return [r for r in self._read_all(collection) if r.get("subject_id") == subject_id]

    def list_by_recipient(self, collection: str, handle: str) -> List[Record]:
        return [r for r in self._read_all(collection) if r.get("recipient_handle") == handle]

    def append(self, collection: str, record: Record) -> Record:
        with self._lock_for(collection):
            records = self._read_all(collection)
            records.append(record)
            self._write_all(collection, records)
        return record

    def upsert(
        self,
        collection: str,
        unique_key: Mapping[str, Any],
        mutator: Mutator,
    ) -> Tuple[Record, bool]:
        with self._lock_for(collection):
            records = self._read_all(collection)
            index = next(
                (
                    i
                    for i, r in enumerate(records)
                    if all(get_field(r, field) == value for field, value in unique_key.items())
                ),
                None,
            )

            if index is None:
                stored = mutator(None)
                records.append(stored)
                created = True
            else:
                stored = mutator(records[index])
                records[index] = stored
                created = False

            self._write_all(collection, records)
        return stored, created

    def update(self, collection: str, record_id: str, mutator: Mutator) -> Optional[Record]:
        with self._lock_for(collection):
            records = self._read_all(collection)
            for i, record in enumerate(records):
                if record.get("id") == record_id:
                    stored = mutator(record)
                    records[i] = stored
                    self._write_all(collection, records)
                    return stored
        return None

    def health_check(self) -> Dict[str, Any]:
        status = "ok" if os.access(self.root if self.root.exists() else self.root.parent, os.W_OK) else "degraded"
        return {"backend": self.backend_name, "status": status}
