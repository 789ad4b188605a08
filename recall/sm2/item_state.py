"""
Item State - Review Item and Review Session records

Defines the per-item scheduling state and the immutable log record written
for every review.

Key concepts:
- Ease factor: how quickly intervals grow after correct answers
- Interval: days until the next scheduled review
- Repetitions: consecutive correct reviews since the last failure
"""

from __future__ import annotations

import random
import string
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Optional

from recall.sm2.constants import (
    DEFAULT_CHAPTER,
    DEFAULT_EASE_FACTOR,
    DEFAULT_ITEM_TYPE,
    DEFAULT_SUBJECT,
    DifficultyTier,
    ReviewStatus,
)


_ID_ALPHABET = string.digits + string.ascii_lowercase


@dataclass
class ReviewItem:
    """
    Scheduling and performance state for one piece of learnable content.

    Owned by the engine; callers only ever see copies.
    """
    id: str
    content: str
    subject: str
    chapter: str
    difficulty: DifficultyTier
    type: str
    tags: list[str]

    # Scheduling state
    ease_factor: float
    interval: int  # days
    repetitions: int
    next_review_date: datetime
    last_review_date: Optional[datetime]

    # Performance tracking
    total_reviews: int
    correct_reviews: int
    accuracy: float  # percent, 0-100
    average_response_time: float  # ms

    status: ReviewStatus
    created_at: datetime
    updated_at: datetime

    def to_dict(self) -> dict:
        """Plain-JSON representation (ISO timestamps, enum values)."""
        data = asdict(self)
        data["difficulty"] = self.difficulty.value
        data["status"] = self.status.value
        data["next_review_date"] = self.next_review_date.isoformat()
        data["last_review_date"] = self.last_review_date.isoformat() if self.last_review_date else None
        data["created_at"] = self.created_at.isoformat()
        data["updated_at"] = self.updated_at.isoformat()
        return data


@dataclass(frozen=True)
class ReviewSession:
    """
    Immutable log entry for a single review event.

    Captures the scheduling state before/after the review.
    """
    item_id: str
    quality: int
    response_time: float  # ms
    previous_interval: int
    new_interval: int
    previous_ease_factor: float
    new_ease_factor: float
    date: datetime
    subject: str
    chapter: str

    @property
    def correct(self) -> bool:
        return self.quality >= 3

    def to_dict(self) -> dict:
        data = asdict(self)
        data["date"] = self.date.isoformat()
        return data


@dataclass
class NewItemData:
    """Content fields accepted by add_item (scheduling fields come from defaults)."""
    id: Optional[str] = None
    content: str = ""
    subject: str = DEFAULT_SUBJECT
    chapter: str = DEFAULT_CHAPTER
    difficulty: DifficultyTier = DifficultyTier.MEDIUM
    type: str = DEFAULT_ITEM_TYPE
    tags: list[str] = field(default_factory=list)


def generate_item_id(now: datetime) -> str:
    """Generate an id like 'sr_1718000000000_k3j9x0a2b'."""
    suffix = "".join(random.choice(_ID_ALPHABET) for _ in range(9))
    return f"sr_{int(now.timestamp() * 1000)}_{suffix}"


def initialize_new_item(data: NewItemData, now: datetime) -> ReviewItem:
    """
    Initialize state for an item that has never been reviewed.

    New items are due immediately (next_review_date = now) with interval 0.

    Args:
        data: Content fields for the item
        now: Creation timestamp

    Returns:
        New ReviewItem with status NEW
    """
    return ReviewItem(
        id=data.id or generate_item_id(now),
        content=data.content,
        subject=data.subject,
        chapter=data.chapter,
        difficulty=DifficultyTier(data.difficulty),
        type=data.type,
        tags=list(data.tags),
        ease_factor=DEFAULT_EASE_FACTOR,
        interval=0,
        repetitions=0,
        next_review_date=now,
        last_review_date=None,
        total_reviews=0,
        correct_reviews=0,
        accuracy=0.0,
        average_response_time=0.0,
        status=ReviewStatus.NEW,
        created_at=now,
        updated_at=now
    )


def status_after_unsuspend(repetitions: int) -> ReviewStatus:
    """Status an item returns to when it leaves SUSPENDED."""
    if repetitions == 0:
        return ReviewStatus.NEW
    if repetitions < 2:
        return ReviewStatus.LEARNING
    return ReviewStatus.REVIEW
