"""
Types for review analytics.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Literal, Optional


Severity = Literal["high", "medium", "low"]
EfficiencyTrend = Literal["improving", "stable", "declining"]


@dataclass(frozen=True)
class QueueStatistics:
    """Queue composition: counts per status plus due/overdue counts."""
    total: int = 0
    new: int = 0
    learning: int = 0
    review: int = 0
    graduated: int = 0
    suspended: int = 0
    due: int = 0
    overdue: int = 0


@dataclass(frozen=True)
class PerformanceStatistics:
    total_sessions: int = 0
    average_quality: float = 0.0
    retention_rate: int = 0  # rounded percent
    average_response_time: int = 0  # ms, rounded
    sessions_today: int = 0
    sessions_this_week: int = 0


@dataclass(frozen=True)
class SubjectStatistics:
    subject: str
    total: int = 0
    new: int = 0
    learning: int = 0
    review: int = 0
    graduated: int = 0
    suspended: int = 0
    average_accuracy: int = 0
    average_ease_factor: float = 0.0


@dataclass(frozen=True)
class ReviewStatistics:
    """
    Overall statistics returned by ReviewEngine.get_statistics().
    """
    total_reviews: int
    correct_reviews: int
    retention_rate: float  # percent over the full session log
    average_ease_factor: float
    last_review_date: Optional[datetime]
    queue_stats: QueueStatistics
    performance_stats: PerformanceStatistics
    subject_stats: dict[str, SubjectStatistics] = field(default_factory=dict)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["last_review_date"] = self.last_review_date.isoformat() if self.last_review_date else None
        return data


@dataclass(frozen=True)
class RetentionPoint:
    """Pass rate of sessions whose age falls in one lag bucket."""
    interval: int  # days
    retention_rate: float  # percent
    sample_size: int


@dataclass(frozen=True)
class ProblemArea:
    subject: str
    chapter: str
    item_count: int
    average_accuracy: int
    average_ease_factor: float
    low_performers: int
    severity: Severity


@dataclass(frozen=True)
class DifficultyAdjustment:
    item_id: str
    current_difficulty: str
    suggested_difficulty: str
    reason: str
    accuracy: float
    ease_factor: float


@dataclass(frozen=True)
class StudyEfficiency:
    """Correct reviews per minute, newest window vs. the one before it."""
    efficiency: float = 0.0
    trend: EfficiencyTrend = "stable"
    recent_sessions: int = 0
    comparison_sessions: int = 0


@dataclass(frozen=True)
class LearningAnalytics:
    learning_velocity: int
    retention_data: list[RetentionPoint]
    problem_areas: list[ProblemArea]
    efficiency: StudyEfficiency
    total_items: int
    graduated_items: int
    graduation_rate: float  # percent

    def to_dict(self) -> dict:
        return asdict(self)
