"""
Due Queue - ordering and filtering of items due for review.

An item is due when it is not suspended and its next review date has
arrived. Overdue items come first; within each group, lower ease factor
(harder items) first.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Mapping, Optional

from recall.errors import ValidationError
from recall.sm2.constants import DifficultyTier, ReviewStatus
from recall.sm2.item_state import ReviewItem


@dataclass(frozen=True)
class QueueFilters:
    """Optional filters applied after the due/ordering rule."""
    subject: Optional[str] = None
    chapter: Optional[str] = None
    difficulty: Optional[DifficultyTier] = None
    type: Optional[str] = None
    status: Optional[ReviewStatus] = None
    limit: Optional[int] = None

    @classmethod
    def coerce(cls, filters) -> "QueueFilters":
        """Accept None, a QueueFilters or a plain mapping."""
        if filters is None:
            return cls()
        if isinstance(filters, QueueFilters):
            return filters
        if not isinstance(filters, Mapping):
            raise ValidationError(f"Queue filters must be a mapping, got {type(filters).__name__}")

        unknown = set(filters) - set(cls.__dataclass_fields__)
        if unknown:
            raise ValidationError(f"Unknown queue filters: {', '.join(sorted(unknown))}")

        try:
            return cls(
                subject=filters.get("subject") or None,
                chapter=filters.get("chapter") or None,
                difficulty=DifficultyTier(filters["difficulty"]) if filters.get("difficulty") else None,
                type=filters.get("type") or None,
                status=ReviewStatus(filters["status"]) if filters.get("status") else None,
                limit=int(filters["limit"]) if filters.get("limit") else None,
            )
        except (TypeError, ValueError) as exc:
            raise ValidationError(f"Invalid queue filters: {exc}") from exc


def is_due(item: ReviewItem, now: datetime) -> bool:
    return item.status != ReviewStatus.SUSPENDED and item.next_review_date <= now


def is_overdue(item: ReviewItem, now: datetime) -> bool:
    return item.status != ReviewStatus.SUSPENDED and item.next_review_date < now


def build_due_queue(items: Iterable[ReviewItem], now: datetime) -> list[ReviewItem]:
    """
    Get items due for review, sorted by priority.

    Sort key: (not overdue, ease_factor). Python's sort is stable, so
    items with equal keys keep their insertion order.

    Args:
        items: All items (any order)
        now: Current time

    Returns:
        Due items, most urgent first
    """
    due_items = [item for item in items if is_due(item, now)]
    due_items.sort(key=lambda item: (not is_overdue(item, now), item.ease_factor))
    return due_items


def filter_queue(queue: list[ReviewItem], filters: QueueFilters) -> list[ReviewItem]:
    """Apply QueueFilters to an already ordered queue."""
    result = queue

    if filters.subject:
        result = [item for item in result if item.subject == filters.subject]
    if filters.chapter:
        result = [item for item in result if item.chapter == filters.chapter]
    if filters.difficulty:
        result = [item for item in result if item.difficulty == filters.difficulty]
    if filters.type:
        result = [item for item in result if item.type == filters.type]
    if filters.status:
        result = [item for item in result if item.status == filters.status]

    if filters.limit and filters.limit > 0:
        result = result[:filters.limit]

    return list(result)
