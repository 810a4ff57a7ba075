"""Database engine and session management for the relational store.

All collections live in one database; ``DATABASE_URL`` selects it. SQLite
URLs get ``check_same_thread=False`` so sessions can be used from the
FastAPI threadpool, and in-memory SQLite shares a single connection.
"""

from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker
from sqlalchemy.pool import StaticPool

from agent_feedback.config import get_database_url


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""


def build_engine(database_url: Optional[str] = None) -> Engine:
    """Create an engine for ``database_url`` (defaults to ``DATABASE_URL``)."""
    url = database_url or get_database_url()

    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(url, future=True, **kwargs)

    return create_engine(
        url,
        future=True,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,  # Verify connections before using
    )


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )


def init_db(engine: Engine) -> None:
    """Create any missing tables."""
    # Registers the models on Base.metadata.
    from agent_feedback.models.sql import comment, inbox_event, rating  # noqa: F401

    Base.metadata.create_all(bind=engine)
