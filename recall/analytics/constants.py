"""
Constants for review analytics.
"""

from __future__ import annotations

from typing import Final


# ---- Retention Curve ----

RETENTION_BUCKETS: Final[list[int]] = [1, 3, 7, 14, 30, 60, 90]  # days
RETENTION_TOLERANCE_DAYS: Final[float] = 2.0


# ---- Problem Areas ----

PROBLEM_MIN_GROUP_SIZE: Final[int] = 3
PROBLEM_ACCURACY_THRESHOLD: Final[float] = 70.0
PROBLEM_EASE_THRESHOLD: Final[float] = 2.0
LOW_PERFORMER_ACCURACY: Final[float] = 60.0
LOW_PERFORMER_SHARE: Final[float] = 0.5
HIGH_SEVERITY_ACCURACY: Final[float] = 50.0

SEVERITY_RANK: Final[dict[str, int]] = {"high": 3, "medium": 2, "low": 1}


# ---- Difficulty Adjustments ----

ADJUSTMENT_MIN_REVIEWS: Final[int] = 3
EASIER_MIN_ACCURACY: Final[float] = 90.0
EASIER_MIN_EASE: Final[float] = 2.8
HARDER_MAX_ACCURACY: Final[float] = 50.0
HARDER_MAX_EASE: Final[float] = 2.0

REASON_EASIER: Final[str] = "High accuracy - consider easier"
REASON_HARDER: Final[str] = "Low accuracy - consider harder"


# ---- Study Efficiency ----

EFFICIENCY_WINDOW: Final[int] = 50            # sessions per comparison window
DEFAULT_RESPONSE_SECONDS: Final[float] = 60.0  # assumed when a session has no time
IMPROVING_RATIO: Final[float] = 1.1
DECLINING_RATIO: Final[float] = 0.9


# ---- Upcoming Reviews ----

UPCOMING_DAYS: Final[int] = 7
