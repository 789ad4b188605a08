"""
In-memory key-value store (default store, and the one used in tests).
"""

from __future__ import annotations

from typing import Optional


class MemoryStore:
    """Dict-backed store implementing load/save/delete."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})
        self.save_count = 0

    def load(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def save(self, key: str, blob: str) -> None:
        self._data[key] = blob
        self.save_count += 1

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._data)
