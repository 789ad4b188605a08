"""
Clock helpers.

The engine never calls datetime.now() directly; it asks an injected clock
(any zero-argument callable returning an aware UTC datetime).
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional


Clock = Callable[[], datetime]

DAY_SECONDS = 86400.0


def utc_now() -> datetime:
    """Default clock."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC; convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class ManualClock:
    """
    Deterministic clock for tests and simulations.

    Usage:
        clock = ManualClock()
        engine = ReviewEngine(clock=clock)
        clock.advance(days=3)
    """

    def __init__(self, start: Optional[datetime] = None):
        self._now = ensure_utc(start) if start else utc_now()

    def __call__(self) -> datetime:
        return self._now

    def advance(self, days: float = 0, **kwargs) -> datetime:
        self._now = self._now + timedelta(days=days, **kwargs)
        return self._now

    def set(self, value: datetime) -> None:
        self._now = ensure_utc(value)
