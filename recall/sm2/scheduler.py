"""
Scheduler - SM-2 Algorithm Logic

Pure SM-2 scheduling and state updates (no storage calls).

Main workflow:
1. Clamp the quality score to [0, 5]
2. Update performance counters (reviews, accuracy, response time)
3. Calculate the next interval, repetitions and ease factor
4. Apply the global modifier, interval bounds and quality multipliers
5. Return updated item + session record

This module handles ONLY the algorithm logic.
Storage, queue maintenance and events are handled by the engine.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Tuple

from recall.errors import ValidationError
from recall.sm2.constants import (
    GRADUATION_MIN_INTERVAL,
    GRADUATION_MIN_REPETITIONS,
    MAX_EASE_FACTOR,
    MIN_EASE_FACTOR,
    PASSING_QUALITY,
    QUALITY_MAX,
    QUALITY_MIN,
    SECOND_REPETITION_INTERVAL,
    Quality,
    ReviewStatus,
)
from recall.sm2.item_state import ReviewItem, ReviewSession
from recall.sm2.settings import Settings


@dataclass(frozen=True)
class ScheduleResult:
    """Outcome of the SM-2 calculation for one review."""
    ease_factor: float
    interval: int  # final interval, after quality multipliers
    base_interval: int  # interval after modifier and bounds, before multipliers
    repetitions: int
    next_review_date: datetime
    status: ReviewStatus


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive values (2.5 -> 3, not 2)."""
    return int(math.floor(value + 0.5))


def clamp_quality(quality) -> int:
    """
    Round and clamp a quality score to [0, 5].

    Out-of-range scores are clamped, never rejected.

    Raises:
        ValidationError: if quality is not a number at all
    """
    try:
        value = float(quality)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Quality must be a number, got {quality!r}") from exc
    if math.isnan(value):
        return QUALITY_MIN
    value = max(QUALITY_MIN, min(QUALITY_MAX, value))
    return round_half_up(value)


def update_ease_factor(ease_factor: float, quality: int) -> float:
    """
    Apply the SM-2 ease-factor curve and clamp to [1.3, 3.0].

    Formula:
        EF' = EF + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02))

    Deltas by quality: 5 -> +0.10, 4 -> 0.00, 3 -> -0.14,
    2 -> -0.32, 1 -> -0.54, 0 -> -0.80.
    The same curve applies to failures.
    """
    miss = QUALITY_MAX - quality
    new_ef = ease_factor + (0.1 - miss * (0.08 + miss * 0.02))
    return max(MIN_EASE_FACTOR, min(MAX_EASE_FACTOR, new_ef))


def clamp_interval(interval: float, settings: Settings) -> int:
    """Apply the global modifier, round, then clamp to [min_interval, max_interval]."""
    modified = round_half_up(interval * settings.interval_modifier)
    return max(settings.min_interval, min(settings.max_interval, modified))


def calculate_next_review(
    item: ReviewItem,
    quality: int,
    settings: Settings,
    now: datetime
) -> ScheduleResult:
    """
    Calculate the next review using the SM-2 variant.

    Correct (quality >= 3):
        repetitions 0 -> graduating interval
        repetitions 1 -> 6 days
        otherwise     -> round(interval * ease_factor)
        then repetitions += 1
    Incorrect (quality < 3):
        repetitions reset to 0, interval *= again multiplier

    The ease factor is updated with the pre-review value used above.
    Quality 5 multiplies the bounded interval by easy_interval, quality 2
    by hard_interval. The result of that multiplication is not re-clamped.

    Args:
        item: Current item state (not modified)
        quality: Clamped quality score (0-5)
        settings: Algorithm settings
        now: Review timestamp

    Returns:
        ScheduleResult with the new scheduling state
    """
    interval: float = item.interval
    repetitions = item.repetitions
    correct = quality >= PASSING_QUALITY

    if correct:
        if repetitions == 0:
            interval = settings.graduating_interval
        elif repetitions == 1:
            interval = SECOND_REPETITION_INTERVAL
        else:
            interval = round_half_up(interval * item.ease_factor)
        repetitions += 1
    else:
        repetitions = 0
        interval = settings.again_interval * interval

    ease_factor = update_ease_factor(item.ease_factor, quality)

    base_interval = clamp_interval(interval, settings)
    final_interval = base_interval

    if quality == Quality.PERFECT:
        final_interval = round_half_up(base_interval * settings.easy_interval)
    elif quality == Quality.HARD:
        final_interval = round_half_up(base_interval * settings.hard_interval)

    if not correct:
        status = ReviewStatus.LEARNING
    elif repetitions >= GRADUATION_MIN_REPETITIONS and final_interval >= GRADUATION_MIN_INTERVAL:
        status = ReviewStatus.GRADUATED
    elif repetitions >= 1:
        status = ReviewStatus.REVIEW
    else:
        status = ReviewStatus.LEARNING

    return ScheduleResult(
        ease_factor=ease_factor,
        interval=final_interval,
        base_interval=base_interval,
        repetitions=repetitions,
        next_review_date=now + timedelta(days=final_interval),
        status=status
    )


def process_review(
    item: ReviewItem,
    quality,
    settings: Settings,
    now: datetime,
    response_time: float = 0
) -> Tuple[ReviewItem, ReviewSession, ScheduleResult]:
    """
    Process a review and return updated item + session record.

    This is the core SM-2 algorithm. No storage calls.
    Caller is responsible for:
    1. Looking up the item
    2. Persisting the item after review
    3. Appending the session to the log

    Args:
        item: ReviewItem to update (modified in place)
        quality: Raw quality score (clamped to 0-5)
        settings: Algorithm settings
        now: Review timestamp
        response_time: Response time in milliseconds (0 = not measured)

    Returns:
        Tuple of (updated_item, session, schedule_result)
    """
    quality = clamp_quality(quality)
    try:
        response_time = max(0.0, float(response_time or 0))
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Response time must be a number, got {response_time!r}") from exc

    previous_interval = item.interval
    previous_ease_factor = item.ease_factor

    # Update performance tracking
    item.total_reviews += 1
    if quality >= PASSING_QUALITY:
        item.correct_reviews += 1
    item.accuracy = item.correct_reviews / item.total_reviews * 100

    if response_time > 0:
        total_time = item.average_response_time * (item.total_reviews - 1) + response_time
        item.average_response_time = total_time / item.total_reviews

    result = calculate_next_review(item, quality, settings, now)

    item.ease_factor = result.ease_factor
    item.interval = result.interval
    item.repetitions = result.repetitions
    item.next_review_date = result.next_review_date
    item.last_review_date = now
    item.status = result.status
    item.updated_at = now

    session = ReviewSession(
        item_id=item.id,
        quality=quality,
        response_time=response_time,
        previous_interval=previous_interval,
        new_interval=item.interval,
        previous_ease_factor=previous_ease_factor,
        new_ease_factor=item.ease_factor,
        date=now,
        subject=item.subject,
        chapter=item.chapter
    )

    return item, session, result
