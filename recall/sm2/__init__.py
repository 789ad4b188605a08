"""
SM-2 - Review scheduling algorithm

Pure scheduling logic for the review engine:
- Item state and immutable review session records
- SM-2 interval / ease-factor updates with bounded intervals
- Due-queue ordering (overdue first, then lowest ease factor)

Quick start:
    from recall import sm2

    item = sm2.initialize_new_item(sm2.NewItemData(content="Article 21"), now)
    item, session, result = sm2.process_review(item, 4, sm2.DEFAULT_SETTINGS, now)
"""

# Core scheduler API (algorithm logic)
from recall.sm2.scheduler import (
    ScheduleResult,
    calculate_next_review,
    clamp_quality,
    process_review,
    update_ease_factor,
)

# Item state
from recall.sm2.item_state import (
    NewItemData,
    ReviewItem,
    ReviewSession,
    generate_item_id,
    initialize_new_item,
    status_after_unsuspend,
)

# Queue
from recall.sm2.queue import QueueFilters, build_due_queue, filter_queue

# Settings
from recall.sm2.settings import DEFAULT_SETTINGS, Settings, build_settings

# Constants and parameters
from recall.sm2.constants import (
    DEFAULT_EASE_FACTOR,
    MAX_EASE_FACTOR,
    MIN_EASE_FACTOR,
    SESSION_LOG_LIMIT,
    DifficultyTier,
    Quality,
    ReviewStatus,
)


__all__ = [
    # Core algorithm
    "ScheduleResult",
    "calculate_next_review",
    "clamp_quality",
    "process_review",
    "update_ease_factor",

    # Item state
    "NewItemData",
    "ReviewItem",
    "ReviewSession",
    "generate_item_id",
    "initialize_new_item",
    "status_after_unsuspend",

    # Queue
    "QueueFilters",
    "build_due_queue",
    "filter_queue",

    # Settings
    "DEFAULT_SETTINGS",
    "Settings",
    "build_settings",

    # Enums
    "DifficultyTier",
    "Quality",
    "ReviewStatus",

    # Parameters
    "DEFAULT_EASE_FACTOR",
    "MAX_EASE_FACTOR",
    "MIN_EASE_FACTOR",
    "SESSION_LOG_LIMIT",
]
