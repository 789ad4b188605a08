"""
Shared test fixtures for the review engine.

Provides:
- A manual clock pinned to a fixed instant
- In-memory stores (working, failing on save, failing on delete)
- A ready-to-use ReviewEngine
- A factory for standalone ReviewItems
"""

import os
from datetime import datetime, timezone

import pytest

os.environ.setdefault("TEST_MODE", "true")

from recall import ManualClock, MemoryStore, ReviewEngine  # noqa: E402
from recall.sm2 import DEFAULT_SETTINGS, NewItemData, initialize_new_item  # noqa: E402


START = datetime(2026, 3, 2, 9, 30, tzinfo=timezone.utc)


class FailingStore(MemoryStore):
    """Store whose save() always raises; load() can be made to raise too."""

    def __init__(self, fail_load: bool = False):
        super().__init__()
        self.fail_load = fail_load
        self.save_attempts = 0

    def load(self, key):
        if self.fail_load:
            raise ConnectionError("store offline")
        return super().load(key)

    def save(self, key, blob):
        self.save_attempts += 1
        raise ConnectionError("store offline")


class DeleteFailingStore(MemoryStore):
    """Store whose delete() always raises; save() and load() work."""

    def __init__(self):
        super().__init__()
        self.delete_attempts = 0

    def delete(self, key):
        self.delete_attempts += 1
        raise ConnectionError("store offline")


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(START)


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def engine(clock, store) -> ReviewEngine:
    return ReviewEngine(clock=clock, store=store)


@pytest.fixture
def settings():
    return DEFAULT_SETTINGS


@pytest.fixture
def make_item(clock):
    """Build a ReviewItem outside the engine, with optional field overrides."""
    def _make(item_id="item", **fields):
        item = initialize_new_item(NewItemData(id=item_id, content=f"content of {item_id}"), clock())
        for name, value in fields.items():
            setattr(item, name, value)
        return item
    return _make
