"""
Tests for statistics and learning analytics.
"""

from datetime import timedelta

import pytest

from recall.analytics import (
    build_learning_analytics,
    build_retention_curve,
    build_statistics,
    build_upcoming_reviews,
    find_problem_areas,
    suggest_difficulty_adjustments,
)
from recall.analytics.constants import REASON_EASIER, REASON_HARDER
from recall.analytics.metrics import compute_study_efficiency, round_int, round_to
from recall.analytics.queries import load_sessions_df
from recall.sm2 import DifficultyTier, ReviewSession, ReviewStatus


def make_session(now, age, quality, item_id="x", response_time=0, subject="general", chapter=""):
    return ReviewSession(
        item_id=item_id,
        quality=quality,
        response_time=response_time,
        previous_interval=0,
        new_interval=1,
        previous_ease_factor=2.5,
        new_ease_factor=2.5,
        date=now - age,
        subject=subject,
        chapter=chapter,
    )


class TestRounding:
    def test_half_up(self):
        assert round_int(66.5) == 67
        assert round_int(0.5) == 1
        assert round_to(0.125, 2) == pytest.approx(0.13)
        assert round_to(2.0, 2) == 2.0


class TestStatistics:
    def test_empty_engine(self, engine):
        stats = engine.get_statistics()

        assert stats.total_reviews == 0
        assert stats.retention_rate == 0
        assert stats.average_ease_factor == 2.5
        assert stats.last_review_date is None
        assert stats.queue_stats.total == 0
        assert stats.performance_stats.total_sessions == 0
        assert stats.subject_stats == {}

    def test_counts_and_rates(self, engine, clock):
        engine.add_item({"id": "a", "subject": "math"})
        engine.add_item({"id": "b", "subject": "math"})
        engine.add_item({"id": "c", "subject": "history"})
        engine.process_review("a", 5)
        engine.process_review("b", 1)
        engine.suspend_item("c")

        stats = engine.get_statistics()

        assert stats.total_reviews == 2
        assert stats.correct_reviews == 1
        assert stats.retention_rate == 50
        assert stats.last_review_date == clock()
        assert stats.average_ease_factor == pytest.approx((2.6 + 1.96 + 2.5) / 3)

        queue = stats.queue_stats
        assert (queue.total, queue.review, queue.learning, queue.suspended) == (3, 1, 1, 1)
        assert queue.due == 0

        math = stats.subject_stats["math"]
        assert math.total == 2
        assert math.average_accuracy == 50
        assert math.average_ease_factor == pytest.approx(2.28)

    def test_overdue_count(self, engine, clock):
        engine.add_item({"id": "a"})
        clock.advance(hours=1)

        queue = engine.get_statistics().queue_stats
        assert queue.due == 1
        assert queue.overdue == 1

    def test_performance_stats(self, clock):
        now = clock()
        sessions = [
            make_session(now, timedelta(hours=1), 5, response_time=2000),
            make_session(now, timedelta(hours=10), 2),
            make_session(now, timedelta(days=3), 4, response_time=4000),
            make_session(now, timedelta(days=8), 4),
        ]

        perf = build_statistics([], sessions, now, 0).performance_stats

        assert perf.total_sessions == 4
        assert perf.average_quality == 3.75
        assert perf.retention_rate == 75
        assert perf.average_response_time == 3000
        assert perf.sessions_today == 1
        assert perf.sessions_this_week == 3


class TestRetentionCurve:
    def test_buckets(self, clock):
        now = clock()
        sessions = [
            make_session(now, timedelta(days=1), 4),
            make_session(now, timedelta(days=1), 1),
            make_session(now, timedelta(days=7), 5),
            make_session(now, timedelta(days=30), 0),
        ]

        curve = {point.interval: point for point in build_retention_curve(sessions, now)}

        assert sorted(curve) == [1, 3, 7, 30]
        assert curve[1].sample_size == 2
        assert curve[1].retention_rate == 50
        assert curve[3].sample_size == 2
        assert curve[7].retention_rate == 100
        assert curve[30].retention_rate == 0

    def test_empty(self, clock):
        assert build_retention_curve([], clock()) == []


class TestProblemAreas:
    def test_flags_and_orders_by_severity(self, make_item):
        items = []
        for n, (accuracy, ease) in enumerate([(80, 1.8), (85, 1.8), (90, 1.8)]):
            items.append(make_item(f"bio{n}", subject="bio", chapter="1", accuracy=accuracy, ease_factor=ease))
        for n in range(3):
            items.append(make_item(f"m2_{n}", subject="math", chapter="2", accuracy=65))
        for n, accuracy in enumerate([40, 45, 50]):
            items.append(make_item(f"m1_{n}", subject="math", chapter="1", accuracy=accuracy))
        for n in range(2):
            items.append(make_item(f"small{n}", subject="bio", chapter="2", accuracy=10))
        for n in range(3):
            items.append(make_item(f"chem{n}", subject="chem", accuracy=90))

        areas = find_problem_areas(items)

        assert [(a.subject, a.chapter, a.severity) for a in areas] == [
            ("math", "1", "high"),
            ("math", "2", "medium"),
            ("bio", "1", "low"),
        ]
        assert areas[0].low_performers == 3
        assert areas[0].average_accuracy == 45
        assert areas[2].average_ease_factor == pytest.approx(1.8)

    def test_majority_of_low_performers_flags_group(self, make_item):
        items = [
            make_item("a", accuracy=100),
            make_item("b", accuracy=55),
            make_item("c", accuracy=55),
        ]
        areas = find_problem_areas(items)
        assert len(areas) == 1
        assert areas[0].severity == "low"


class TestDifficultyAdjustments:
    def test_suggestions(self, make_item):
        items = [
            make_item("easier", total_reviews=5, accuracy=95, ease_factor=2.9),
            make_item("harder", total_reviews=4, accuracy=40, ease_factor=1.5),
            make_item("already_hard", total_reviews=4, accuracy=40, ease_factor=1.5,
                      difficulty=DifficultyTier.HARD),
            make_item("too_few", total_reviews=2, accuracy=100, ease_factor=3.0),
            make_item("already_easy", total_reviews=6, accuracy=95, ease_factor=2.9,
                      difficulty=DifficultyTier.EASY),
        ]

        suggestions = {s.item_id: s for s in suggest_difficulty_adjustments(items)}

        assert sorted(suggestions) == ["easier", "harder"]
        assert suggestions["easier"].suggested_difficulty == "easy"
        assert suggestions["easier"].reason == REASON_EASIER
        assert suggestions["harder"].suggested_difficulty == "hard"
        assert suggestions["harder"].reason == REASON_HARDER
        assert suggestions["harder"].accuracy == 40

    def test_engine_returns_suggestions(self, engine, clock):
        engine.add_item({"id": "x"})
        for _ in range(4):
            engine.process_review("x", 0)
            clock.advance(days=1)

        [suggestion] = engine.get_difficulty_adjustments()
        assert suggestion.item_id == "x"
        assert suggestion.suggested_difficulty == "hard"


class TestStudyEfficiency:
    def test_improving(self, clock):
        now = clock()
        sessions = [make_session(now, timedelta(minutes=n), 4, response_time=30000) for n in range(50)]
        sessions += [make_session(now, timedelta(days=1, minutes=n), 1) for n in range(10)]

        efficiency = compute_study_efficiency(load_sessions_df(sessions))

        assert efficiency.efficiency == 2.0
        assert efficiency.trend == "improving"
        assert (efficiency.recent_sessions, efficiency.comparison_sessions) == (50, 10)

    def test_declining(self, clock):
        now = clock()
        sessions = [make_session(now, timedelta(minutes=n), 1) for n in range(50)]
        sessions += [make_session(now, timedelta(days=1, minutes=n), 5) for n in range(50)]

        efficiency = compute_study_efficiency(load_sessions_df(sessions))

        assert efficiency.efficiency == 0
        assert efficiency.trend == "declining"

    def test_missing_times_default_to_a_minute(self, clock):
        now = clock()
        sessions = [make_session(now, timedelta(minutes=n), 3) for n in range(4)]
        assert compute_study_efficiency(load_sessions_df(sessions)).efficiency == 1.0


class TestLearningAnalytics:
    def test_graduation_progress(self, make_item, clock):
        items = [
            make_item("g1", status=ReviewStatus.GRADUATED),
            make_item("g2", status=ReviewStatus.GRADUATED),
            make_item("r", status=ReviewStatus.REVIEW),
        ]
        analytics = build_learning_analytics(items, [], clock())

        assert analytics.learning_velocity == 2
        assert analytics.graduated_items == 2
        assert analytics.total_items == 3
        assert analytics.graduation_rate == pytest.approx(66.67)
        assert analytics.retention_data == []
        assert analytics.efficiency.trend == "stable"

    def test_engine_analytics_to_dict(self, engine):
        engine.add_item({"id": "x"})
        engine.process_review("x", 4)

        data = engine.get_learning_analytics().to_dict()
        assert data["total_items"] == 1
        assert data["efficiency"]["recent_sessions"] == 1


class TestUpcomingReviews:
    def test_grouped_by_date(self, make_item, clock):
        now = clock()
        items = [
            make_item("later_same_day", next_review_date=now + timedelta(days=1, hours=2)),
            make_item("tomorrow", next_review_date=now + timedelta(days=1)),
            make_item("in_three", next_review_date=now + timedelta(days=3)),
            make_item("too_far", next_review_date=now + timedelta(days=8)),
            make_item("paused", next_review_date=now + timedelta(days=1), status=ReviewStatus.SUSPENDED),
            make_item("due_now"),
        ]

        upcoming = build_upcoming_reviews(items, now)

        assert list(upcoming) == ["2026-03-03", "2026-03-05"]
        assert [item.id for item in upcoming["2026-03-03"]] == ["tomorrow", "later_same_day"]
        assert [item.id for item in upcoming["2026-03-05"]] == ["in_three"]

    def test_engine_days_argument(self, engine):
        engine.add_item({"id": "x"})
        engine.process_review("x", 4)

        assert list(engine.get_upcoming_reviews(days=1)) == ["2026-03-03"]
        assert engine.get_upcoming_reviews(days=0) == {}
