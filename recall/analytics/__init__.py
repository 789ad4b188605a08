"""
Analytics package exports.
"""

from recall.analytics.service import (
    build_learning_analytics,
    build_retention_curve,
    build_statistics,
    build_upcoming_reviews,
    find_problem_areas,
    suggest_difficulty_adjustments,
)
from recall.analytics.types import (
    DifficultyAdjustment,
    LearningAnalytics,
    PerformanceStatistics,
    ProblemArea,
    QueueStatistics,
    RetentionPoint,
    ReviewStatistics,
    StudyEfficiency,
    SubjectStatistics,
)

__all__ = [
    "build_learning_analytics",
    "build_retention_curve",
    "build_statistics",
    "build_upcoming_reviews",
    "find_problem_areas",
    "suggest_difficulty_adjustments",
    "DifficultyAdjustment",
    "LearningAnalytics",
    "PerformanceStatistics",
    "ProblemArea",
    "QueueStatistics",
    "RetentionPoint",
    "ReviewStatistics",
    "StudyEfficiency",
    "SubjectStatistics",
]
