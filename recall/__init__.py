"""
recall - spaced-repetition review scheduling

SM-2 based scheduling of learnable items: item lifecycle, review
processing, due-queue ordering, statistics and learning analytics.

Quick start:
    from recall import ReviewEngine, SqlAlchemyStore

    engine = ReviewEngine(store=SqlAlchemyStore())
    item = engine.add_item({"content": "Article 21", "subject": "polity"})
    engine.process_review(item.id, quality=4, response_time=4200)
    next_item = engine.get_next_review_item({"subject": "polity"})
"""

from recall.clock import ManualClock, utc_now
from recall.engine import ImportResult, ReviewEngine, ReviewResult
from recall.errors import NotFound, PersistenceWarning, RecallError, ValidationError
from recall.persistence import MemoryStore, SqlAlchemyStore
from recall.sm2 import (
    DifficultyTier,
    Quality,
    QueueFilters,
    ReviewItem,
    ReviewSession,
    ReviewStatus,
    Settings,
)

__all__ = [
    "ReviewEngine",
    "ReviewResult",
    "ImportResult",
    "ManualClock",
    "utc_now",
    "MemoryStore",
    "SqlAlchemyStore",
    "RecallError",
    "NotFound",
    "ValidationError",
    "PersistenceWarning",
    "DifficultyTier",
    "Quality",
    "QueueFilters",
    "ReviewItem",
    "ReviewSession",
    "ReviewStatus",
    "Settings",
]
