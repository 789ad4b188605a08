"""
SQLAlchemy ORM Models for the review store

A single key-value table: the engine persists its whole state as one JSON
blob per key.
"""

from sqlalchemy import Column, DateTime, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class ReviewBlob(Base):
    """
    Persisted engine snapshot for one store key.

    The payload is the JSON document produced by persistence.snapshot.
    """
    __tablename__ = 'review_blobs'

    key = Column(String(255), primary_key=True, nullable=False)
    payload = Column(Text, nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    def __repr__(self):
        return f"<ReviewBlob({self.key}, {len(self.payload or '')} chars)>"
