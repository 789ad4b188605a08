"""
Pydantic models for item input and the import/export payload.

These models validate data crossing the engine boundary (add_item input,
import_data payloads, persisted snapshots). Keys may be snake_case or
camelCase, so exports from the browser study-tools store load unchanged.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel

from recall.clock import ensure_utc
from recall.sm2.constants import (
    DEFAULT_CHAPTER,
    DEFAULT_EASE_FACTOR,
    DEFAULT_ITEM_TYPE,
    DEFAULT_SUBJECT,
    MAX_EASE_FACTOR,
    MIN_EASE_FACTOR,
    DifficultyTier,
    ReviewStatus,
)
from recall.sm2.item_state import NewItemData, ReviewItem, ReviewSession


EXPORT_VERSION = "1.0"

_INPUT_DEFAULTS = {
    "content": "",
    "subject": DEFAULT_SUBJECT,
    "chapter": DEFAULT_CHAPTER,
    "type": DEFAULT_ITEM_TYPE,
    "difficulty": DifficultyTier.MEDIUM,
    "tags": [],
}


class _Record(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        extra = "ignore"


# ---- Item Input ----

class ItemInput(_Record):
    """Content fields accepted by add_item / import_items."""
    id: Optional[str] = None
    content: str = ""
    subject: str = DEFAULT_SUBJECT
    chapter: str = DEFAULT_CHAPTER
    difficulty: DifficultyTier = DifficultyTier.MEDIUM
    type: str = DEFAULT_ITEM_TYPE
    tags: list[str] = Field(default_factory=list)

    @field_validator("id", mode="before")
    @classmethod
    def _normalize_id(cls, value):
        if value in ("", None):
            return None
        return str(value) if isinstance(value, int) else value

    @field_validator("content", "subject", "chapter", "type", "difficulty", "tags", mode="before")
    @classmethod
    def _fill_defaults(cls, value, info):
        # Empty values fall back to defaults, like `data.subject || 'general'`
        if value is None or (isinstance(value, str) and value == ""):
            default = _INPUT_DEFAULTS[info.field_name]
            return list(default) if isinstance(default, list) else default
        return value

    def to_new_item_data(self) -> NewItemData:
        return NewItemData(
            id=self.id,
            content=self.content,
            subject=self.subject,
            chapter=self.chapter,
            difficulty=self.difficulty,
            type=self.type,
            tags=list(self.tags),
        )


class ItemUpdate(_Record):
    """Non-scheduling fields accepted by update_item. Absent keys are untouched."""
    content: Optional[str] = None
    subject: Optional[str] = None
    chapter: Optional[str] = None
    difficulty: Optional[DifficultyTier] = None
    type: Optional[str] = None
    tags: Optional[list[str]] = None


# ---- Persisted / Exported Records ----

class ItemRecord(_Record):
    """Full item state as stored in snapshots and exports."""
    id: str
    content: str = ""
    subject: str = DEFAULT_SUBJECT
    chapter: str = DEFAULT_CHAPTER
    difficulty: DifficultyTier = DifficultyTier.MEDIUM
    type: str = DEFAULT_ITEM_TYPE
    tags: list[str] = Field(default_factory=list)

    ease_factor: float = Field(default=DEFAULT_EASE_FACTOR, ge=MIN_EASE_FACTOR, le=MAX_EASE_FACTOR)
    interval: int = Field(default=0, ge=0)
    repetitions: int = Field(default=0, ge=0)
    next_review_date: datetime
    last_review_date: Optional[datetime] = None

    total_reviews: int = Field(default=0, ge=0)
    correct_reviews: int = Field(default=0, ge=0)
    accuracy: float = Field(default=0.0, ge=0, le=100)
    average_response_time: float = Field(default=0.0, ge=0)

    status: ReviewStatus = ReviewStatus.NEW
    created_at: datetime
    updated_at: datetime

    def to_item(self) -> ReviewItem:
        return ReviewItem(
            id=self.id,
            content=self.content,
            subject=self.subject,
            chapter=self.chapter,
            difficulty=DifficultyTier(self.difficulty),
            type=self.type,
            tags=list(self.tags),
            ease_factor=self.ease_factor,
            interval=self.interval,
            repetitions=self.repetitions,
            next_review_date=ensure_utc(self.next_review_date),
            last_review_date=ensure_utc(self.last_review_date) if self.last_review_date else None,
            total_reviews=self.total_reviews,
            correct_reviews=self.correct_reviews,
            accuracy=self.accuracy,
            average_response_time=self.average_response_time,
            status=ReviewStatus(self.status),
            created_at=ensure_utc(self.created_at),
            updated_at=ensure_utc(self.updated_at),
        )


class SessionRecord(_Record):
    """One review session as stored in snapshots and exports."""
    item_id: str
    quality: int = Field(ge=0, le=5)
    response_time: float = Field(default=0.0, ge=0)
    previous_interval: int = 0
    new_interval: int = 0
    previous_ease_factor: float = DEFAULT_EASE_FACTOR
    new_ease_factor: float = DEFAULT_EASE_FACTOR
    date: datetime
    subject: str = DEFAULT_SUBJECT
    chapter: str = DEFAULT_CHAPTER

    def to_session(self) -> ReviewSession:
        return ReviewSession(
            item_id=self.item_id,
            quality=self.quality,
            response_time=self.response_time,
            previous_interval=self.previous_interval,
            new_interval=self.new_interval,
            previous_ease_factor=self.previous_ease_factor,
            new_ease_factor=self.new_ease_factor,
            date=ensure_utc(self.date),
            subject=self.subject,
            chapter=self.chapter,
        )


class DataPayload(_Record):
    """
    Snapshot / import payload.

    `items` is keyed by item id; `sessions` is newest-first.
    Settings stay a raw mapping here and are validated by build_settings().
    """
    items: dict[str, ItemRecord] = Field(default_factory=dict)
    sessions: list[SessionRecord] = Field(default_factory=list)
    settings: Optional[dict[str, Any]] = None
    export_date: Optional[datetime] = None
    version: Optional[str] = None
