"""
SM-2 Constants and Parameters

All fixed parameters of the review scheduling algorithm in one place.
Tunable values live in Settings (see settings.py); the values here are
part of the algorithm itself and are never changed at runtime.
"""

from enum import Enum, IntEnum


# ---- Quality Scores ----

class Quality(IntEnum):
    """Self-reported recall grade for one review."""
    BLACKOUT = 0    # Complete failure to recall
    WRONG = 1       # Incorrect, remembered upon seeing the answer
    HARD = 2        # Incorrect, but the answer felt familiar
    DIFFICULT = 3   # Correct with serious difficulty
    HESITANT = 4    # Correct after some hesitation
    PERFECT = 5     # Perfect, effortless recall


QUALITY_MIN = 0
QUALITY_MAX = 5
PASSING_QUALITY = 3  # quality >= 3 counts as a correct review


# ---- Item Classification ----

class ReviewStatus(str, Enum):
    """Lifecycle status of a review item."""
    NEW = "new"
    LEARNING = "learning"
    REVIEW = "review"
    GRADUATED = "graduated"
    SUSPENDED = "suspended"


class DifficultyTier(str, Enum):
    """Author-assigned difficulty of an item."""
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


# Order used when nudging an item one tier easier / harder
DIFFICULTY_ORDER = [DifficultyTier.EASY, DifficultyTier.MEDIUM, DifficultyTier.HARD]


# ---- Ease Factor ----

DEFAULT_EASE_FACTOR = 2.5
MIN_EASE_FACTOR = 1.3
MAX_EASE_FACTOR = 3.0
DIFFICULTY_EASE_STEP = 0.2  # Ease change when an item is moved to easy/hard


# ---- Intervals ----

SECOND_REPETITION_INTERVAL = 6  # days, fixed by SM-2
GRADUATION_MIN_REPETITIONS = 2
GRADUATION_MIN_INTERVAL = 21    # days


# ---- Session Log ----

SESSION_LOG_LIMIT = 1000  # Oldest sessions are dropped beyond this


# ---- Item Defaults ----

DEFAULT_SUBJECT = "general"
DEFAULT_CHAPTER = ""
DEFAULT_ITEM_TYPE = "mcq"  # mcq, flashcard, concept
