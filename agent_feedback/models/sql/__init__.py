"""SQLAlchemy ORM models for the relational store."""

from .database import Base, build_engine, build_session_factory, init_db
from .comment import CommentRow
from .rating import RatingRow
from .inbox_event import InboxEventRow

__all__ = [
    "Base",
    "build_engine",
    "build_session_factory",
    "init_db",
    "CommentRow",
    "RatingRow",
    "InboxEventRow",
]
