"""
Session Log - bounded, append-only history of review events.

Sessions are kept newest-first. Once the log holds `limit` records, the
oldest record is dropped for every new one.
"""

from __future__ import annotations

from collections import deque
from typing import Iterable, Iterator

from recall.sm2.constants import SESSION_LOG_LIMIT
from recall.sm2.item_state import ReviewSession


class SessionLog:
    """Ring buffer of ReviewSession records (newest first)."""

    def __init__(self, limit: int = SESSION_LOG_LIMIT):
        if limit < 1:
            raise ValueError("Session log limit must be at least 1")
        self.limit = limit
        self._sessions: deque[ReviewSession] = deque(maxlen=limit)

    def append(self, session: ReviewSession) -> None:
        """Record a new session as the most recent entry."""
        self._sessions.appendleft(session)

    def merge(self, sessions: Iterable[ReviewSession]) -> None:
        """
        Place imported sessions ahead of the existing ones, then re-cap.

        `sessions` must itself be newest-first.
        """
        merged = [*sessions, *self._sessions]
        self._sessions = deque(merged[:self.limit], maxlen=self.limit)

    def purge_item(self, item_id: str) -> int:
        """Drop every session recorded for item_id. Returns the count removed."""
        kept = [s for s in self._sessions if s.item_id != item_id]
        removed = len(self._sessions) - len(kept)
        self._sessions = deque(kept, maxlen=self.limit)
        return removed

    def clear(self) -> None:
        self._sessions.clear()

    def snapshot(self) -> list[ReviewSession]:
        return list(self._sessions)

    def __iter__(self) -> Iterator[ReviewSession]:
        return iter(list(self._sessions))

    def __len__(self) -> int:
        return len(self._sessions)
