"""
Metric computations for review analytics.

Every function takes dataframes from queries.py and returns plain values
or types from types.py.
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta

import pandas as pd

from recall.analytics.constants import (
    ADJUSTMENT_MIN_REVIEWS,
    DECLINING_RATIO,
    DEFAULT_RESPONSE_SECONDS,
    EASIER_MIN_ACCURACY,
    EASIER_MIN_EASE,
    EFFICIENCY_WINDOW,
    HARDER_MAX_ACCURACY,
    HARDER_MAX_EASE,
    HIGH_SEVERITY_ACCURACY,
    IMPROVING_RATIO,
    LOW_PERFORMER_ACCURACY,
    LOW_PERFORMER_SHARE,
    PROBLEM_ACCURACY_THRESHOLD,
    PROBLEM_EASE_THRESHOLD,
    PROBLEM_MIN_GROUP_SIZE,
    REASON_EASIER,
    REASON_HARDER,
    RETENTION_BUCKETS,
    RETENTION_TOLERANCE_DAYS,
    SEVERITY_RANK,
)
from recall.analytics.types import (
    DifficultyAdjustment,
    PerformanceStatistics,
    ProblemArea,
    QueueStatistics,
    RetentionPoint,
    StudyEfficiency,
    SubjectStatistics,
)
from recall.clock import DAY_SECONDS
from recall.sm2.constants import DIFFICULTY_ORDER, DifficultyTier, ReviewStatus


def round_to(value: float, digits: int = 0) -> float:
    """Round half up to `digits` decimals (2.345 -> 2.35)."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def round_int(value: float) -> int:
    return int(math.floor(value + 0.5))


def _status_count(counts: pd.Series, status: ReviewStatus) -> int:
    return int(counts.get(status.value, 0))


def compute_queue_stats(items_df: pd.DataFrame, now: datetime, due_count: int) -> QueueStatistics:
    """
    Counts per status, plus due and overdue counts.

    Overdue = not suspended and next review strictly before now.
    """
    if items_df.empty:
        return QueueStatistics(due=due_count)

    counts = items_df["status"].value_counts()
    overdue = (
        (items_df["status"] != ReviewStatus.SUSPENDED.value)
        & (items_df["next_review_date"] < pd.Timestamp(now))
    )
    return QueueStatistics(
        total=len(items_df),
        new=_status_count(counts, ReviewStatus.NEW),
        learning=_status_count(counts, ReviewStatus.LEARNING),
        review=_status_count(counts, ReviewStatus.REVIEW),
        graduated=_status_count(counts, ReviewStatus.GRADUATED),
        suspended=_status_count(counts, ReviewStatus.SUSPENDED),
        due=due_count,
        overdue=int(overdue.sum()),
    )


def compute_performance_stats(sessions_df: pd.DataFrame, now: datetime) -> PerformanceStatistics:
    """
    Session-log statistics: quality, retention, response time and recency.

    "Today" starts at UTC midnight of `now`; "this week" seven days before that.
    """
    if sessions_df.empty:
        return PerformanceStatistics()

    today = pd.Timestamp(now).normalize()
    week_ago = today - pd.Timedelta(days=7)

    timed = sessions_df.loc[sessions_df["response_time"] > 0, "response_time"]
    average_response_time = float(timed.mean()) if not timed.empty else 0.0

    return PerformanceStatistics(
        total_sessions=len(sessions_df),
        average_quality=round_to(float(sessions_df["quality"].mean()), 2),
        retention_rate=round_int(float(sessions_df["correct"].mean()) * 100),
        average_response_time=round_int(average_response_time),
        sessions_today=int((sessions_df["date"] >= today).sum()),
        sessions_this_week=int((sessions_df["date"] >= week_ago).sum()),
    )


def compute_subject_stats(items_df: pd.DataFrame) -> dict[str, SubjectStatistics]:
    """Per-subject status counts, mean accuracy and mean ease factor."""
    if items_df.empty:
        return {}

    result: dict[str, SubjectStatistics] = {}
    for subject, group in items_df.groupby("subject", sort=False):
        counts = group["status"].value_counts()
        result[subject] = SubjectStatistics(
            subject=subject,
            total=len(group),
            new=_status_count(counts, ReviewStatus.NEW),
            learning=_status_count(counts, ReviewStatus.LEARNING),
            review=_status_count(counts, ReviewStatus.REVIEW),
            graduated=_status_count(counts, ReviewStatus.GRADUATED),
            suspended=_status_count(counts, ReviewStatus.SUSPENDED),
            average_accuracy=round_int(float(group["accuracy"].mean())),
            average_ease_factor=round_to(float(group["ease_factor"].mean()), 2),
        )
    return result


def compute_retention_curve(sessions_df: pd.DataFrame, now: datetime) -> list[RetentionPoint]:
    """
    Pass rate per lag bucket.

    A session falls in a bucket when its age (now - session date, in days)
    is within ±2 days of the bucket. Buckets overlap for short lags, so a
    session may count toward more than one. Empty buckets are omitted.
    """
    if sessions_df.empty:
        return []

    ages = (pd.Timestamp(now) - sessions_df["date"]).dt.total_seconds() / DAY_SECONDS

    points = []
    for bucket in RETENTION_BUCKETS:
        mask = (ages - bucket).abs() <= RETENTION_TOLERANCE_DAYS
        sample_size = int(mask.sum())
        if sample_size == 0:
            continue
        retention_rate = float(sessions_df.loc[mask, "correct"].mean()) * 100
        points.append(RetentionPoint(
            interval=bucket,
            retention_rate=retention_rate,
            sample_size=sample_size,
        ))
    return points


def _severity(average_accuracy: float) -> str:
    if average_accuracy < HIGH_SEVERITY_ACCURACY:
        return "high"
    if average_accuracy < PROBLEM_ACCURACY_THRESHOLD:
        return "medium"
    return "low"


def compute_problem_areas(items_df: pd.DataFrame) -> list[ProblemArea]:
    """
    Weak (subject, chapter) groups, most severe first.

    Only groups with at least 3 items are analyzed. A group is flagged when
    mean accuracy < 70, mean ease < 2.0, or more than half of its items
    have accuracy < 60.
    """
    if items_df.empty:
        return []

    problems: list[ProblemArea] = []
    for (subject, chapter), group in items_df.groupby(["subject", "chapter"], sort=False):
        item_count = len(group)
        if item_count < PROBLEM_MIN_GROUP_SIZE:
            continue

        average_accuracy = float(group["accuracy"].mean())
        average_ease = float(group["ease_factor"].mean())
        low_performers = int((group["accuracy"] < LOW_PERFORMER_ACCURACY).sum())

        flagged = (
            average_accuracy < PROBLEM_ACCURACY_THRESHOLD
            or average_ease < PROBLEM_EASE_THRESHOLD
            or low_performers > item_count * LOW_PERFORMER_SHARE
        )
        if not flagged:
            continue

        problems.append(ProblemArea(
            subject=subject,
            chapter=chapter,
            item_count=item_count,
            average_accuracy=round_int(average_accuracy),
            average_ease_factor=round_to(average_ease, 2),
            low_performers=low_performers,
            severity=_severity(average_accuracy),
        ))

    # list.sort is stable, also with reverse=True
    problems.sort(key=lambda p: SEVERITY_RANK[p.severity], reverse=True)
    return problems


def shift_difficulty(tier: DifficultyTier, steps: int) -> DifficultyTier:
    """Move a tier toward easy (negative steps) or hard (positive), clamped."""
    index = DIFFICULTY_ORDER.index(tier) + steps
    index = max(0, min(len(DIFFICULTY_ORDER) - 1, index))
    return DIFFICULTY_ORDER[index]


def compute_difficulty_adjustments(items_df: pd.DataFrame) -> list[DifficultyAdjustment]:
    """
    Suggest a tier change for items whose performance disagrees with their tier.

    Items need at least 3 reviews. Accuracy >= 90 with ease > 2.8 suggests
    one tier easier; accuracy <= 50 with ease < 2.0 one tier harder.
    """
    if items_df.empty:
        return []

    candidates = items_df[items_df["total_reviews"] >= ADJUSTMENT_MIN_REVIEWS]

    adjustments = []
    for row in candidates.itertuples(index=False):
        current = DifficultyTier(row.difficulty)
        suggested = current

        if row.accuracy >= EASIER_MIN_ACCURACY and row.ease_factor > EASIER_MIN_EASE:
            suggested = shift_difficulty(current, -1)
        elif row.accuracy <= HARDER_MAX_ACCURACY and row.ease_factor < HARDER_MAX_EASE:
            suggested = shift_difficulty(current, 1)

        if suggested == current:
            continue

        adjustments.append(DifficultyAdjustment(
            item_id=row.id,
            current_difficulty=current.value,
            suggested_difficulty=suggested.value,
            reason=REASON_EASIER if row.accuracy >= EASIER_MIN_ACCURACY else REASON_HARDER,
            accuracy=float(row.accuracy),
            ease_factor=float(row.ease_factor),
        ))
    return adjustments


def _correct_per_minute(window: pd.DataFrame) -> float:
    if window.empty:
        return 0.0
    seconds = (window["response_time"] / 1000.0).where(
        window["response_time"] > 0, DEFAULT_RESPONSE_SECONDS
    )
    total_minutes = float(seconds.sum()) / 60.0
    if total_minutes <= 0:
        return 0.0
    return float(window["correct"].sum()) / total_minutes


def compute_study_efficiency(sessions_df: pd.DataFrame) -> StudyEfficiency:
    """
    Correct reviews per minute over the newest 50 sessions, compared with
    the 50 before them.
    """
    if sessions_df.empty:
        return StudyEfficiency()

    recent = sessions_df.iloc[:EFFICIENCY_WINDOW]
    older = sessions_df.iloc[EFFICIENCY_WINDOW:EFFICIENCY_WINDOW * 2]

    recent_efficiency = _correct_per_minute(recent)
    older_efficiency = _correct_per_minute(older)

    trend = "stable"
    if recent_efficiency > older_efficiency * IMPROVING_RATIO:
        trend = "improving"
    elif recent_efficiency < older_efficiency * DECLINING_RATIO:
        trend = "declining"

    return StudyEfficiency(
        efficiency=round_to(recent_efficiency, 2),
        trend=trend,
        recent_sessions=len(recent),
        comparison_sessions=len(older),
    )


def compute_upcoming_ids(items_df: pd.DataFrame, now: datetime, days: int) -> dict[str, list[str]]:
    """
    Ids of non-suspended items due after now and within `days`, by ISO date.
    """
    if items_df.empty:
        return {}

    start = pd.Timestamp(now)
    end = pd.Timestamp(now + timedelta(days=days))
    mask = (
        (items_df["status"] != ReviewStatus.SUSPENDED.value)
        & (items_df["next_review_date"] > start)
        & (items_df["next_review_date"] <= end)
    )

    grouped: dict[str, list[str]] = {}
    for row in items_df[mask].sort_values("next_review_date", kind="stable").itertuples(index=False):
        grouped.setdefault(row.next_review_date.date().isoformat(), []).append(row.id)
    return grouped
