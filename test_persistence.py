"""
Tests for the stores, snapshot encoding and environment configuration.
"""

import json

import pytest

from recall import ReviewEngine, config
from recall.persistence import SqlAlchemyStore, decode_state, encode_state
from recall.sm2 import DEFAULT_SETTINGS, build_settings


@pytest.fixture
def sql_store(tmp_path):
    return SqlAlchemyStore(f"sqlite:///{tmp_path / 'reviews.sqlite'}")


class TestSqlAlchemyStore:
    def test_save_load_overwrite(self, sql_store):
        assert sql_store.load("k") is None

        sql_store.save("k", "first")
        sql_store.save("k", "second")

        assert sql_store.load("k") == "second"
        assert sql_store.keys() == ["k"]

    def test_delete(self, sql_store):
        sql_store.save("k", "blob")
        sql_store.delete("k")
        sql_store.delete("never-saved")

        assert sql_store.load("k") is None

    def test_reset_db(self, sql_store):
        sql_store.save("k", "blob")
        sql_store.reset_db()
        assert sql_store.keys() == []

    def test_engine_round_trip(self, sql_store, clock):
        engine = ReviewEngine(clock=clock, store=sql_store)
        engine.add_item({"id": "x", "subject": "math"})
        engine.process_review("x", 5, response_time=900)

        restored = ReviewEngine(clock=clock, store=sql_store)

        assert restored.get_item("x") == engine.get_item("x")
        assert restored.get_statistics().total_reviews == 1


class TestSnapshot:
    def test_encode_decode(self, make_item):
        blob = encode_state([make_item("a"), make_item("b")], [], build_settings({"max_interval": 90}))

        payload = decode_state(blob)

        assert list(payload.items) == ["a", "b"]
        assert payload.items["a"].to_item() == make_item("a")
        assert payload.settings["max_interval"] == 90

    def test_camel_case_payload(self):
        blob = json.dumps({
            "items": {
                "x": {
                    "id": "x",
                    "easeFactor": 2.1,
                    "nextReviewDate": "2026-03-01T00:00:00Z",
                    "createdAt": "2026-02-01T00:00:00Z",
                    "updatedAt": "2026-03-01T00:00:00Z",
                    "status": "review",
                }
            },
            "sessions": [],
        })

        item = decode_state(blob).items["x"].to_item()
        assert item.ease_factor == 2.1
        assert item.next_review_date.tzinfo is not None

    @pytest.mark.parametrize("blob", [None, "", "not json", "42", '{"sessions": [{"quality": 9}]}'])
    def test_unusable_blobs(self, blob):
        assert decode_state(blob) is None


class TestConfig:
    def test_settings_from_env(self, monkeypatch):
        monkeypatch.setenv("RECALL_MAX_INTERVAL", "120")
        monkeypatch.setenv("RECALL_EASY_INTERVAL", "3.5")

        settings = build_settings(config.settings_from_env())

        assert settings.max_interval == 120
        assert settings.easy_interval == 3.5
        assert settings.hard_interval == DEFAULT_SETTINGS.hard_interval

    def test_database_url_in_test_mode(self, monkeypatch):
        monkeypatch.setenv("TEST_MODE", "true")
        monkeypatch.delenv("DATABASE_URL", raising=False)
        assert config.get_database_url() == "sqlite:///logs/test_reviews.sqlite"

    def test_store_key_and_log_limit(self, monkeypatch):
        monkeypatch.delenv("RECALL_STORE_KEY", raising=False)
        assert config.get_store_key() == "spacedRepetitionData"

        monkeypatch.setenv("RECALL_SESSION_LOG_LIMIT", "50")
        assert config.get_session_log_limit() == 50

        monkeypatch.setenv("RECALL_SESSION_LOG_LIMIT", "lots")
        with pytest.raises(ValueError) as excinfo:
            config.get_session_log_limit()
        assert isinstance(excinfo.value.__cause__, ValueError)
