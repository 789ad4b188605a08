"""
Tests for due-queue ordering and filtering.
"""

from datetime import timedelta

import pytest

from recall.errors import ValidationError
from recall.sm2 import DifficultyTier, QueueFilters, ReviewStatus, build_due_queue, filter_queue


class TestDueQueue:
    def test_overdue_before_due_then_ease(self, make_item, clock):
        now = clock()
        a = make_item("a", ease_factor=1.5, next_review_date=now - timedelta(days=3))
        b = make_item("b", ease_factor=2.8, next_review_date=now)

        assert [item.id for item in build_due_queue([b, a], now)] == ["a", "b"]

    def test_lower_ease_first_within_group(self, make_item, clock):
        now = clock()
        earlier = now - timedelta(hours=1)
        items = [
            make_item("easy", ease_factor=2.9, next_review_date=earlier),
            make_item("hard", ease_factor=1.4, next_review_date=earlier),
            make_item("mid", ease_factor=2.2, next_review_date=earlier),
        ]
        assert [item.id for item in build_due_queue(items, now)] == ["hard", "mid", "easy"]

    def test_ties_keep_insertion_order(self, make_item, clock):
        now = clock()
        items = [make_item(f"i{n}") for n in range(5)]
        assert [item.id for item in build_due_queue(items, now)] == ["i0", "i1", "i2", "i3", "i4"]

    def test_excludes_future_and_suspended(self, make_item, clock):
        now = clock()
        items = [
            make_item("due"),
            make_item("future", next_review_date=now + timedelta(seconds=1)),
            make_item("paused", status=ReviewStatus.SUSPENDED, next_review_date=now - timedelta(days=9)),
        ]
        assert [item.id for item in build_due_queue(items, now)] == ["due"]


class TestFilters:
    @pytest.fixture
    def queue(self, make_item):
        return [
            make_item("a", subject="math", chapter="1", difficulty=DifficultyTier.HARD),
            make_item("b", subject="math", chapter="2", type="flashcard"),
            make_item("c", subject="history", chapter="1", status=ReviewStatus.LEARNING),
            make_item("d", subject="math", chapter="1"),
        ]

    def test_filter_by_fields(self, queue):
        def ids(filters):
            return [item.id for item in filter_queue(queue, QueueFilters.coerce(filters))]

        assert ids({"subject": "math"}) == ["a", "b", "d"]
        assert ids({"subject": "math", "chapter": "1"}) == ["a", "d"]
        assert ids({"difficulty": "hard"}) == ["a"]
        assert ids({"type": "flashcard"}) == ["b"]
        assert ids({"status": "learning"}) == ["c"]
        assert ids({"subject": "math", "limit": 2}) == ["a", "b"]
        assert ids(None) == ["a", "b", "c", "d"]

    def test_unknown_filter_rejected(self):
        with pytest.raises(ValidationError):
            QueueFilters.coerce({"topic": "math"})

    def test_bad_filter_value_rejected(self):
        with pytest.raises(ValidationError):
            QueueFilters.coerce({"difficulty": "brutal"})


class TestEngineQueue:
    def test_queue_is_idempotent(self, engine):
        for n in range(4):
            engine.add_item({"id": f"q{n}", "subject": "math"})
        engine.process_review("q1", 1)

        first = engine.get_review_queue()
        second = engine.get_review_queue()
        assert [item.id for item in first] == [item.id for item in second]
        assert first == second

    def test_reviewed_item_leaves_queue(self, engine, clock):
        engine.add_item({"id": "a"})
        engine.add_item({"id": "b"})
        engine.process_review("a", 4)

        assert [item.id for item in engine.get_review_queue()] == ["b"]

        clock.advance(days=1)
        assert {item.id for item in engine.get_review_queue()} == {"a", "b"}

    def test_next_review_item(self, engine):
        assert engine.get_next_review_item() is None

        engine.add_item({"id": "a", "subject": "math"})
        engine.add_item({"id": "b", "subject": "physics"})

        assert engine.get_next_review_item().id == "a"
        assert engine.get_next_review_item({"subject": "physics"}).id == "b"
        assert engine.get_next_review_item({"subject": "chemistry"}) is None

    def test_queue_returns_copies(self, engine):
        engine.add_item({"id": "a"})
        queued = engine.get_next_review_item()
        queued.ease_factor = 1.3

        assert engine.get_item("a").ease_factor == 2.5

    def test_suspend_and_unsuspend(self, engine):
        engine.add_item({"id": "a"})
        engine.suspend_item("a")
        assert engine.get_review_queue() == []

        restored = engine.unsuspend_item("a")
        assert restored.status == ReviewStatus.NEW
        assert [item.id for item in engine.get_review_queue()] == ["a"]

    def test_queue_updated_event(self, engine):
        payloads = []
        engine.events.subscribe("queueUpdated", payloads.append)

        engine.add_item({"id": "a"})
        engine.add_item({"id": "b"})
        engine.process_review("a", 4)

        assert payloads[-1] == {"queue_length": 1, "overdue_count": 0}
        assert len(payloads) == 3
