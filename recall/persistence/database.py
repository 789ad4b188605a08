"""
Database - SQLAlchemy-backed key-value store

Implements the store interface the engine expects (load/save/delete by key)
on top of a single `review_blobs` table.

This module handles ONLY database I/O.
Serialization is handled by the snapshot module.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import create_engine, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from recall import config
from recall.persistence.models import Base, ReviewBlob


def get_engine(db_url: Optional[str] = None) -> Engine:
    """
    Get SQLAlchemy engine for database connection.

    SQLite URLs get a plain engine; other backends use connection pooling.

    Args:
        db_url: Database URL (defaults to config.get_database_url())

    Returns:
        SQLAlchemy Engine instance
    """
    db_url = db_url or config.get_database_url()
    if db_url.startswith("sqlite"):
        return create_engine(db_url, echo=False)
    return create_engine(
        db_url,
        pool_size=5,           # Keep 5 connections open
        max_overflow=10,       # Allow up to 10 extra connections
        pool_pre_ping=True,    # Verify connections before use
        echo=False
    )


class SqlAlchemyStore:
    """
    Key-value store persisted in a relational database.

    Usage:
        store = SqlAlchemyStore("sqlite:///logs/reviews.sqlite")
        engine = ReviewEngine(store=store)
    """

    def __init__(self, db_url: Optional[str] = None, engine: Optional[Engine] = None):
        self._engine = engine or get_engine(db_url)
        self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)
        self.init_db()

    def init_db(self) -> None:
        """
        Initialize database schema if the table doesn't exist.

        Safe to call multiple times.
        """
        inspector = inspect(self._engine)
        if ReviewBlob.__tablename__ not in inspector.get_table_names():
            Base.metadata.create_all(self._engine)

    def reset_db(self) -> None:
        """
        DANGEROUS: Delete all data and recreate the table.

        All persisted review state will be lost!
        """
        Base.metadata.drop_all(self._engine)
        self.init_db()

    def _session(self) -> Session:
        return self._session_factory()

    def load(self, key: str) -> Optional[str]:
        """
        Load the blob stored under key.

        Returns:
            The stored payload, or None if nothing is stored
        """
        session = self._session()
        try:
            row = session.get(ReviewBlob, key)
            return row.payload if row is not None else None
        finally:
            session.close()

    def save(self, key: str, blob: str) -> None:
        """Insert or replace the blob stored under key."""
        session = self._session()
        try:
            row = session.get(ReviewBlob, key)
            now = datetime.now(timezone.utc)
            if row is None:
                session.add(ReviewBlob(key=key, payload=blob, updated_at=now))
            else:
                row.payload = blob
                row.updated_at = now
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def delete(self, key: str) -> None:
        session = self._session()
        try:
            row = session.get(ReviewBlob, key)
            if row is not None:
                session.delete(row)
                session.commit()
        finally:
            session.close()

    def keys(self) -> list[str]:
        session = self._session()
        try:
            return [key for (key,) in session.query(ReviewBlob.key).order_by(ReviewBlob.key).all()]
        finally:
            session.close()
