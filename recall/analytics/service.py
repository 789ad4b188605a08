"""
Service layer to assemble statistics and learning analytics.
"""

from __future__ import annotations

from datetime import datetime
from typing import Sequence

from recall.analytics.constants import UPCOMING_DAYS
from recall.analytics.metrics import (
    compute_difficulty_adjustments,
    compute_performance_stats,
    compute_problem_areas,
    compute_queue_stats,
    compute_retention_curve,
    compute_study_efficiency,
    compute_subject_stats,
    compute_upcoming_ids,
    round_to,
)
from recall.analytics.queries import load_items_df, load_sessions_df
from recall.analytics.types import (
    DifficultyAdjustment,
    LearningAnalytics,
    ProblemArea,
    RetentionPoint,
    ReviewStatistics,
)
from recall.sm2.constants import DEFAULT_EASE_FACTOR, PASSING_QUALITY, ReviewStatus
from recall.sm2.item_state import ReviewItem, ReviewSession


def build_statistics(
    items: Sequence[ReviewItem],
    sessions: Sequence[ReviewSession],
    now: datetime,
    due_count: int
) -> ReviewStatistics:
    """
    Build the overall statistics snapshot.

    Args:
        items: Item snapshots in insertion order
        sessions: Session log, newest first
        now: Current time
        due_count: Length of the current due queue
    """
    items_df = load_items_df(items)
    sessions_df = load_sessions_df(sessions)

    total_reviews = len(sessions)
    correct_reviews = sum(1 for s in sessions if s.quality >= PASSING_QUALITY)
    retention_rate = correct_reviews / total_reviews * 100 if total_reviews else 0.0
    average_ease = (
        float(items_df["ease_factor"].mean()) if not items_df.empty else DEFAULT_EASE_FACTOR
    )

    return ReviewStatistics(
        total_reviews=total_reviews,
        correct_reviews=correct_reviews,
        retention_rate=retention_rate,
        average_ease_factor=average_ease,
        last_review_date=sessions[0].date if sessions else None,
        queue_stats=compute_queue_stats(items_df, now, due_count),
        performance_stats=compute_performance_stats(sessions_df, now),
        subject_stats=compute_subject_stats(items_df),
    )


def build_retention_curve(sessions: Sequence[ReviewSession], now: datetime) -> list[RetentionPoint]:
    return compute_retention_curve(load_sessions_df(sessions), now)


def find_problem_areas(items: Sequence[ReviewItem]) -> list[ProblemArea]:
    return compute_problem_areas(load_items_df(items))


def suggest_difficulty_adjustments(items: Sequence[ReviewItem]) -> list[DifficultyAdjustment]:
    return compute_difficulty_adjustments(load_items_df(items))


def build_learning_analytics(
    items: Sequence[ReviewItem],
    sessions: Sequence[ReviewSession],
    now: datetime
) -> LearningAnalytics:
    """
    Retention curve, problem areas, efficiency and graduation progress.
    """
    items_df = load_items_df(items)
    sessions_df = load_sessions_df(sessions)

    total_items = len(items)
    graduated = sum(1 for item in items if item.status == ReviewStatus.GRADUATED)
    graduation_rate = round_to(graduated / total_items * 100, 2) if total_items else 0.0

    return LearningAnalytics(
        learning_velocity=graduated,
        retention_data=compute_retention_curve(sessions_df, now),
        problem_areas=compute_problem_areas(items_df),
        efficiency=compute_study_efficiency(sessions_df),
        total_items=total_items,
        graduated_items=graduated,
        graduation_rate=graduation_rate,
    )


def build_upcoming_reviews(
    items: Sequence[ReviewItem],
    now: datetime,
    days: int = UPCOMING_DAYS
) -> dict[str, list[ReviewItem]]:
    """
    Items coming due within `days`, grouped by ISO date (ascending).
    """
    by_id = {item.id: item for item in items}
    grouped = compute_upcoming_ids(load_items_df(items), now, days)
    return {day: [by_id[item_id] for item_id in ids] for day, ids in grouped.items()}
