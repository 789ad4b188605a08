"""
Event notification for UI layers.

Subscribers register a callback per event name and are called
synchronously after the corresponding operation completes.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable

logger = logging.getLogger(__name__)

REVIEW_PROCESSED = "reviewProcessed"
QUEUE_UPDATED = "queueUpdated"
SETTINGS_UPDATED = "settingsUpdated"
DIFFICULTY_ADJUSTED = "difficultyAdjusted"
DATA_RESET = "dataReset"

EVENT_NAMES = frozenset({
    REVIEW_PROCESSED,
    QUEUE_UPDATED,
    SETTINGS_UPDATED,
    DIFFICULTY_ADJUSTED,
    DATA_RESET,
})

Listener = Callable[[Any], None]


class EventBus:
    """Explicit observer registry."""

    def __init__(self):
        self._listeners: dict[str, list[Listener]] = {name: [] for name in EVENT_NAMES}
        self._lock = threading.Lock()

    def subscribe(self, event_name: str, listener: Listener) -> Callable[[], None]:
        """
        Register a listener.

        Returns:
            A zero-argument function that removes the listener again
        """
        if event_name not in EVENT_NAMES:
            raise ValueError(f"Unknown event: {event_name}")
        with self._lock:
            self._listeners[event_name].append(listener)
        return lambda: self.unsubscribe(event_name, listener)

    def unsubscribe(self, event_name: str, listener: Listener) -> bool:
        with self._lock:
            listeners = self._listeners.get(event_name, [])
            if listener in listeners:
                listeners.remove(listener)
                return True
        return False

    def emit(self, event_name: str, payload: Any) -> None:
        """
        Call every listener for event_name with payload.

        A failing listener is logged and skipped.
        """
        with self._lock:
            listeners = list(self._listeners.get(event_name, []))
        for listener in listeners:
            try:
                listener(payload)
            except Exception:
                logger.exception("Listener for %s failed", event_name)
