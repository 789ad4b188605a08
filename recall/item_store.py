"""
In-memory map of review items, with one lock per item.

Only the engine writes to the store. Readers receive copies.
"""

from __future__ import annotations

import copy
import threading
from typing import Optional

from recall.errors import NotFound
from recall.sm2.item_state import ReviewItem


class ItemStore:
    """
    Item map keyed by id, insertion-ordered.

    Each item id gets its own re-entrant lock so that a read-modify-write
    on one item (e.g. processing a review) never interleaves with another
    write to the same item. The map itself is guarded by a separate lock.

    Locks outlive their items: a thread still waiting on the lock of a
    removed item shares it with whoever re-adds the same id.
    """

    def __init__(self):
        self._items: dict[str, ReviewItem] = {}
        self._locks: dict[str, threading.RLock] = {}
        self._map_lock = threading.RLock()

    # ---- Locking ----

    def lock_for(self, item_id: str) -> threading.RLock:
        """Get (or lazily create) the lock guarding one item."""
        with self._map_lock:
            lock = self._locks.get(item_id)
            if lock is None:
                lock = threading.RLock()
                self._locks[item_id] = lock
            return lock

    @property
    def map_lock(self) -> threading.RLock:
        return self._map_lock

    # ---- Access ----

    def require(self, item_id: str) -> ReviewItem:
        """
        Get the live item (engine-internal).

        Raises:
            NotFound: if no item has this id
        """
        with self._map_lock:
            item = self._items.get(item_id)
        if item is None:
            raise NotFound(item_id)
        return item

    def get_copy(self, item_id: str) -> Optional[ReviewItem]:
        with self._map_lock:
            item = self._items.get(item_id)
            return copy.deepcopy(item) if item is not None else None

    def values(self) -> list[ReviewItem]:
        """Live items in insertion order (engine-internal)."""
        with self._map_lock:
            return list(self._items.values())

    def snapshot(self) -> list[ReviewItem]:
        """Deep copies of all items, in insertion order."""
        with self._map_lock:
            return copy.deepcopy(list(self._items.values()))

    # ---- Mutation ----

    def put(self, item: ReviewItem) -> None:
        """Insert or replace an item."""
        with self._map_lock:
            self._items[item.id] = item

    def remove(self, item_id: str) -> ReviewItem:
        """
        Raises:
            NotFound: if no item has this id
        """
        with self._map_lock:
            item = self._items.pop(item_id, None)
        if item is None:
            raise NotFound(item_id)
        return item

    def clear(self) -> None:
        with self._map_lock:
            self._items.clear()

    def __contains__(self, item_id: str) -> bool:
        with self._map_lock:
            return item_id in self._items

    def __len__(self) -> int:
        with self._map_lock:
            return len(self._items)
