"""Relational durable store built on the SQLAlchemy ORM.

One table per collection. Each ORM row converts to and from the same
record dicts the file backend stores, so both backends return identical
shapes for the same data.
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple, Type

from sqlalchemy import select, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from agent_feedback.lib.exceptions import StorageError
from agent_feedback.models.sql import (
    CommentRow,
    InboxEventRow,
    RatingRow,
    build_engine,
    build_session_factory,
    init_db,
)

from .base import COMMENTS, INBOX_EVENTS, RATINGS, DurableStore, Mutator, Record, check_collection

logger = logging.getLogger(__name__)

MODELS: Dict[str, Type[Any]] = {
    COMMENTS: CommentRow,
    RATINGS: RatingRow,
    INBOX_EVENTS: InboxEventRow,
}


class SqlDurableStore(DurableStore):
    """Durable store backed by a SQL database."""

    backend_name = "sql"

    def __init__(self, session_factory: sessionmaker, engine: Optional[Engine] = None):
        self._session_factory = session_factory
        self.engine = engine

    @classmethod
    def from_url(cls, database_url: Optional[str] = None) -> "SqlDurableStore":
        """Build a store for ``database_url`` and create any missing tables."""
        engine = build_engine(database_url)
        try:
            init_db(engine)
        except SQLAlchemyError as e:
            logger.error("Failed to initialize database schema: %s", e, exc_info=True)
            raise StorageError("Failed to initialize storage") from e
        return cls(build_session_factory(engine), engine=engine)

    def _model(self, collection: str) -> Type[Any]:
        check_collection(collection)
        return MODELS[collection]

    @staticmethod
    def _key_filters(model: Type[Any], unique_key: Mapping[str, Any]) -> Dict[str, Any]:
        filters = {}
        for field, value in unique_key.items():
            column = model.KEY_COLUMNS.get(field)
            if column is None:
                raise ValueError(f"Field '{field}' is not a key of {model.__tablename__}")
            filters[column] = value
        return filters

    @contextmanager
    def _session(self, operation: str) -> Iterator[Session]:
        """Yield a session; commit on success, wrap database errors in StorageError."""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.error("Database error during %s: %s", operation, e, exc_info=True)
            raise StorageError(f"Storage operation failed: {operation}") from e
        finally:
            session.close()

    def find_by_id(self, collection: str, record_id: str) -> Optional[Record]:
        model = self._model(collection)
        with self._session(f"find {collection}") as session:
            row = session.get(model, record_id)
            return row.to_record() if row is not None else None

    def list_by_subject(self, collection: str, subject_id: str) -> List[Record]:
        model = self._model(collection)
        with self._session(f"list {collection}") as session:
            rows = session.execute(select(model).where(model.subject_id == subject_id)).scalars().all()
            return [row.to_record() for row in rows]

    def list_by_recipient(self, collection: str, handle: str) -> List[Record]:
        model = self._model(collection)
        column = model.KEY_COLUMNS.get("recipient_handle")
        if column is None:
            raise ValueError(f"{collection} has no recipient_handle")
        with self._session(f"list {collection}") as session:
            rows = session.execute(
                select(model).where(getattr(model, column) == handle)
            ).scalars().all()
            return [row.to_record() for row in rows]

    def append(self, collection: str, record: Record) -> Record:
        model = self._model(collection)
        with self._session(f"append {collection}") as session:
            session.add(model.from_record(record))
        return record

    def _upsert_once(
        self,
        model: Type[Any],
        filters: Dict[str, Any],
        mutator: Mutator,
    ) -> Tuple[Record, bool]:
        session = self._session_factory()
        try:
            row = session.execute(
                select(model).filter_by(**filters).with_for_update()
            ).scalar_one_or_none()

            if row is None:
                row = model.from_record(mutator(None))
                session.add(row)
                created = True
            else:
                row.apply_record(mutator(row.to_record()))
                created = False

            session.commit()
            return row.to_record(), created
        except SQLAlchemyError:
            session.rollback()
            raise
        finally:
            session.close()

    def upsert(
        self,
        collection: str,
        unique_key: Mapping[str, Any],
        mutator: Mutator,
    ) -> Tuple[Record, bool]:
        model = self._model(collection)
        filters = self._key_filters(model, unique_key)

        try:
            try:
                return self._upsert_once(model, filters, mutator)
            except IntegrityError:
                # A concurrent writer inserted the same key first; this pass updates it.
                logger.info("Concurrent insert on %s, retrying upsert as update", collection)
                return self._upsert_once(model, filters, mutator)
        except SQLAlchemyError as e:
            logger.error("Database error during upsert %s: %s", collection, e, exc_info=True)
            raise StorageError(f"Storage operation failed: upsert {collection}") from e

    def update(self, collection: str, record_id: str, mutator: Mutator) -> Optional[Record]:
        model = self._model(collection)
        with self._session(f"update {collection}") as session:
            row = session.execute(
                select(model).where(model.id == record_id).with_for_update()
            ).scalar_one_or_none()
            if row is None:
                return None
            row.apply_record(mutator(row.to_record()))
            session.flush()
            return row.to_record()

    def health_check(self) -> Dict[str, Any]:
        try:
            with self._session("health check") as session:
                session.execute(text("SELECT 1"))
        except StorageError:
            return {"backend": self.backend_name, "status": "unavailable"}
        return {"backend": self.backend_name, "status": "ok"}
