"""
Review Engine - host-facing API of the review scheduler

Owns the item map, the session log and the active settings, and wires the
pure SM-2 logic (recall.sm2) to persistence, events and analytics.

Main workflow (process_review):
1. Lock the item and work on a copy of it
2. Run the SM-2 update (recall.sm2.process_review)
3. Commit the copy, append the session record
4. Persist the snapshot (write-through, failures become warnings)
5. Recompute the due queue and emit events

Every public method takes the clock reading once, so one operation always
sees a single "now".
"""

from __future__ import annotations

import copy
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Mapping, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from recall import config
from recall.analytics import (
    DifficultyAdjustment,
    LearningAnalytics,
    ReviewStatistics,
    build_learning_analytics,
    build_statistics,
    build_upcoming_reviews,
    suggest_difficulty_adjustments,
)
from recall.analytics.constants import UPCOMING_DAYS
from recall.clock import Clock, ensure_utc, utc_now
from recall.errors import NotFound, PersistenceWarning, ValidationError
from recall.events import (
    DATA_RESET,
    DIFFICULTY_ADJUSTED,
    QUEUE_UPDATED,
    REVIEW_PROCESSED,
    SETTINGS_UPDATED,
    EventBus,
)
from recall.item_store import ItemStore
from recall.persistence import KeyValueStore, MemoryStore, build_payload, decode_state, encode_state
from recall.schemas import EXPORT_VERSION, DataPayload, ItemInput, ItemUpdate
from recall.session_log import SessionLog
from recall.sm2 import scheduler
from recall.sm2.constants import (
    DIFFICULTY_EASE_STEP,
    MAX_EASE_FACTOR,
    MIN_EASE_FACTOR,
    DifficultyTier,
    ReviewStatus,
)
from recall.sm2.item_state import (
    NewItemData,
    ReviewItem,
    ReviewSession,
    initialize_new_item,
    status_after_unsuspend,
)
from recall.sm2.queue import QueueFilters, build_due_queue, filter_queue, is_overdue
from recall.sm2.settings import Settings, build_settings

logger = logging.getLogger(__name__)

SettingsSource = Union[Mapping[str, Any], Callable[[], Mapping[str, Any]], None]


@dataclass(frozen=True)
class ReviewResult:
    """Outcome of process_review (item is a copy)."""
    item: ReviewItem
    session: ReviewSession
    next_review_date: datetime
    interval: int
    status: ReviewStatus


@dataclass
class ImportResult:
    """Outcome of a bulk import. errors holds {"index", "error"} per rejected entry."""
    imported: int = 0
    errors: list[dict] = field(default_factory=list)


class ReviewEngine:
    """
    Spaced-repetition review engine.

    Usage:
        engine = ReviewEngine(store=SqlAlchemyStore())
        item = engine.add_item({"content": "Article 21", "subject": "polity"})
        result = engine.process_review(item.id, quality=4, response_time=5200)

    Args:
        clock: Zero-argument callable returning an aware UTC datetime
        store: Object with load(key)/save(key, blob) (MemoryStore if omitted)
        settings_source: Mapping of settings overrides, or a callable
            returning one (e.g. config.settings_from_env)
        store_key: Key the snapshot is stored under
        session_log_limit: Maximum number of sessions kept
    """

    def __init__(
        self,
        clock: Optional[Clock] = None,
        store: Optional[KeyValueStore] = None,
        settings_source: SettingsSource = None,
        store_key: Optional[str] = None,
        session_log_limit: Optional[int] = None
    ):
        self.clock = clock or utc_now
        self.store = store if store is not None else MemoryStore()
        self.store_key = store_key or config.get_store_key()
        self.events = EventBus()
        self.warnings: list[PersistenceWarning] = []

        # Engine lock guards the session log, settings and persistence.
        # Lock order: item lock -> engine lock -> item map lock.
        self._lock = threading.RLock()
        self._items = ItemStore()
        self._sessions = SessionLog(limit=session_log_limit or config.get_session_log_limit())

        source = settings_source() if callable(settings_source) else settings_source
        self._base_settings = build_settings(source)
        self._settings = self._base_settings

        self._load_state()

    # ---- Internal helpers ----

    def _now(self) -> datetime:
        return ensure_utc(self.clock())

    def _record_warning(self, warning: PersistenceWarning) -> None:
        logger.warning("%s", warning)
        self.warnings.append(warning)

    def _load_state(self) -> None:
        """Restore persisted state. Missing or corrupted state means defaults."""
        try:
            blob = self.store.load(self.store_key)
        except Exception as exc:
            self._record_warning(PersistenceWarning("load", self.store_key, exc))
            return

        payload = decode_state(blob)
        if payload is None:
            return

        for record in payload.items.values():
            self._items.put(record.to_item())
        self._sessions.merge(record.to_session() for record in payload.sessions)

        if payload.settings:
            try:
                self._settings = build_settings(payload.settings, base=self._base_settings)
            except ValidationError as exc:
                logger.warning("Ignoring persisted settings: %s", exc)

        logger.info(
            "Loaded %d items and %d sessions from %r",
            len(self._items), len(self._sessions), self.store_key
        )

    def _retry(self, operation: str, action: Callable[[], None]) -> Optional[Exception]:
        """
        Run a store call, retrying PERSIST_RETRIES extra times.

        Returns:
            None on success, otherwise the last error raised
        """
        last_error: Optional[Exception] = None
        for attempt in range(1 + config.PERSIST_RETRIES):
            try:
                action()
                return None
            except Exception as exc:
                last_error = exc
                logger.debug("Store %s attempt %d for %r failed: %s", operation, attempt + 1, self.store_key, exc)
        return last_error

    def _persist(self) -> bool:
        """
        Save the full snapshot, with retries.

        Must be called with the engine lock held. In-memory state is never
        rolled back; a final failure is recorded as a PersistenceWarning.

        Returns:
            True if the snapshot was saved
        """
        blob = encode_state(self._items.values(), self._sessions.snapshot(), self._settings)
        error = self._retry("save", lambda: self.store.save(self.store_key, blob))
        if error is not None:
            self._record_warning(PersistenceWarning("save", self.store_key, error))
            return False
        return True

    def _queue_summary(self, now: datetime) -> dict:
        queue = build_due_queue(self._items.values(), now)
        summary = {
            "queue_length": len(queue),
            "overdue_count": sum(1 for item in queue if is_overdue(item, now)),
        }
        logger.debug("Review queue recomputed: %s", summary)
        return summary

    def _commit(self, item: ReviewItem) -> None:
        """Replace the stored item with an updated copy (engine lock held)."""
        if item.id not in self._items:
            raise NotFound(item.id)
        self._items.put(item)

    def _working_copy(self, item_id: str) -> ReviewItem:
        return copy.deepcopy(self._items.require(item_id))

    @staticmethod
    def _parse_item_input(data) -> NewItemData:
        if isinstance(data, NewItemData):
            return data
        if not isinstance(data, Mapping):
            raise ValidationError(f"Item data must be a mapping, got {type(data).__name__}")
        try:
            return ItemInput.model_validate(dict(data)).to_new_item_data()
        except PydanticValidationError as exc:
            raise ValidationError.from_pydantic(exc, "item") from exc

    # ---- Settings ----

    @property
    def settings(self) -> Settings:
        return self._settings

    def update_settings(self, new_settings: Mapping[str, Any]) -> Settings:
        """
        Merge new_settings over the active settings.

        Raises:
            ValidationError: on unknown keys or out-of-range values (the
                active settings stay unchanged)
        """
        with self._lock:
            self._settings = build_settings(new_settings, base=self._settings)
            self._persist()
            settings = self._settings

        self.events.emit(SETTINGS_UPDATED, settings)
        return settings

    # ---- Item Lifecycle ----

    def add_item(self, data) -> ReviewItem:
        """
        Create a new item, due immediately.

        An item with the same id is replaced by the new one.

        Args:
            data: Mapping of content fields (id, content, subject, chapter,
                difficulty, type, tags) or NewItemData

        Returns:
            Copy of the created item

        Raises:
            ValidationError: if data is malformed
        """
        now = self._now()
        item = initialize_new_item(self._parse_item_input(data), now)

        with self._items.lock_for(item.id):
            with self._lock:
                self._items.put(item)
                self._persist()
                summary = self._queue_summary(now)

        self.events.emit(QUEUE_UPDATED, summary)
        return copy.deepcopy(item)

    def get_item(self, item_id: str) -> Optional[ReviewItem]:
        return self._items.get_copy(item_id)

    def update_item(self, item_id: str, updates: Mapping[str, Any]) -> ReviewItem:
        """
        Update content/metadata fields. Scheduling fields are never touched.

        Raises:
            NotFound: if the item does not exist
            ValidationError: if an update value is malformed
        """
        if not isinstance(updates, Mapping):
            raise ValidationError(f"Item updates must be a mapping, got {type(updates).__name__}")
        try:
            parsed = ItemUpdate.model_validate(dict(updates))
        except PydanticValidationError as exc:
            raise ValidationError.from_pydantic(exc, "item update") from exc
        changes = {k: v for k, v in parsed.model_dump(exclude_unset=True).items() if v is not None}

        now = self._now()
        with self._items.lock_for(item_id):
            item = self._working_copy(item_id)
            for name, value in changes.items():
                setattr(item, name, list(value) if name == "tags" else value)
            item.updated_at = now

            with self._lock:
                self._commit(item)
                self._persist()

        return copy.deepcopy(item)

    def suspend_item(self, item_id: str) -> ReviewItem:
        """
        Take an item out of the due queue. Scheduling state is kept.

        Raises:
            NotFound: if the item does not exist
        """
        now = self._now()
        with self._items.lock_for(item_id):
            item = self._working_copy(item_id)
            item.status = ReviewStatus.SUSPENDED
            item.updated_at = now

            with self._lock:
                self._commit(item)
                self._persist()
                summary = self._queue_summary(now)

        self.events.emit(QUEUE_UPDATED, summary)
        return copy.deepcopy(item)

    def unsuspend_item(self, item_id: str) -> ReviewItem:
        """
        Return a suspended item to the schedule.

        Status comes back from repetitions (0 -> new, 1 -> learning,
        2+ -> review). A new item is due again immediately.

        Raises:
            NotFound: if the item does not exist
        """
        now = self._now()
        with self._items.lock_for(item_id):
            item = self._working_copy(item_id)
            item.status = status_after_unsuspend(item.repetitions)
            if item.status == ReviewStatus.NEW:
                item.next_review_date = now
            item.updated_at = now

            with self._lock:
                self._commit(item)
                self._persist()
                summary = self._queue_summary(now)

        self.events.emit(QUEUE_UPDATED, summary)
        return copy.deepcopy(item)

    def delete_item(self, item_id: str) -> ReviewItem:
        """
        Delete an item and every session recorded for it.

        Returns:
            The deleted item

        Raises:
            NotFound: if the item does not exist
        """
        now = self._now()
        with self._items.lock_for(item_id):
            with self._lock:
                item = self._items.remove(item_id)
                purged = self._sessions.purge_item(item_id)
                self._persist()
                summary = self._queue_summary(now)

        logger.info("Deleted item %s (%d sessions purged)", item_id, purged)
        self.events.emit(QUEUE_UPDATED, summary)
        return item

    def adjust_item_difficulty(self, item_id: str, difficulty) -> ReviewItem:
        """
        Move an item to another difficulty tier.

        Moving to easy (from medium/hard) adds 0.2 to the ease factor,
        moving to hard (from easy/medium) subtracts 0.2, both clamped.

        Raises:
            NotFound: if the item does not exist
            ValidationError: if difficulty is not easy, medium or hard
        """
        try:
            new_difficulty = DifficultyTier(difficulty)
        except ValueError as exc:
            raise ValidationError(f"Unknown difficulty: {difficulty!r}") from exc

        now = self._now()
        with self._items.lock_for(item_id):
            item = self._working_copy(item_id)
            old_difficulty = item.difficulty

            item.difficulty = new_difficulty
            item.updated_at = now
            if new_difficulty == DifficultyTier.EASY and old_difficulty != DifficultyTier.EASY:
                item.ease_factor = min(MAX_EASE_FACTOR, item.ease_factor + DIFFICULTY_EASE_STEP)
            elif new_difficulty == DifficultyTier.HARD and old_difficulty != DifficultyTier.HARD:
                item.ease_factor = max(MIN_EASE_FACTOR, item.ease_factor - DIFFICULTY_EASE_STEP)

            with self._lock:
                self._commit(item)
                self._persist()

        self.events.emit(DIFFICULTY_ADJUSTED, {
            "item_id": item_id,
            "old_difficulty": old_difficulty.value,
            "new_difficulty": new_difficulty.value,
            "new_ease_factor": item.ease_factor,
        })
        return copy.deepcopy(item)

    # ---- Reviews ----

    def process_review(self, item_id: str, quality, response_time: float = 0) -> ReviewResult:
        """
        Apply one review to an item.

        Args:
            item_id: Item being reviewed
            quality: Recall grade; rounded and clamped to 0-5
            response_time: Milliseconds taken to answer (0 = not measured)

        Returns:
            ReviewResult with a copy of the updated item and the session

        Raises:
            NotFound: if the item does not exist
        """
        now = self._now()
        with self._items.lock_for(item_id):
            item = self._working_copy(item_id)
            item, session, schedule = scheduler.process_review(
                item, quality, self._settings, now, response_time=response_time
            )

            with self._lock:
                self._commit(item)
                self._sessions.append(session)
                self._persist()
                summary = self._queue_summary(now)

        result = ReviewResult(
            item=copy.deepcopy(item),
            session=session,
            next_review_date=schedule.next_review_date,
            interval=schedule.interval,
            status=schedule.status,
        )
        self.events.emit(REVIEW_PROCESSED, result)
        self.events.emit(QUEUE_UPDATED, summary)
        return result

    # ---- Queue ----

    def get_review_queue(self, filters=None) -> list[ReviewItem]:
        """
        Items due now, most urgent first.

        Args:
            filters: QueueFilters or mapping with subject, chapter,
                difficulty, type, status and limit

        Returns:
            Copies of the due items
        """
        queue_filters = QueueFilters.coerce(filters)
        now = self._now()
        with self._items.map_lock:
            queue = filter_queue(build_due_queue(self._items.values(), now), queue_filters)
            return copy.deepcopy(queue)

    def get_next_review_item(self, filters=None) -> Optional[ReviewItem]:
        queue = self.get_review_queue(filters)
        return queue[0] if queue else None

    def get_upcoming_reviews(self, days: int = UPCOMING_DAYS) -> dict[str, list[ReviewItem]]:
        """Items coming due within `days` (not yet due), keyed by ISO date."""
        return build_upcoming_reviews(self._items.snapshot(), self._now(), days)

    # ---- Analytics ----

    def _snapshot(self) -> tuple[list[ReviewItem], list[ReviewSession]]:
        with self._lock:
            return self._items.snapshot(), self._sessions.snapshot()

    def get_statistics(self) -> ReviewStatistics:
        items, sessions = self._snapshot()
        now = self._now()
        due_count = len(build_due_queue(items, now))
        return build_statistics(items, sessions, now, due_count)

    def get_difficulty_adjustments(self) -> list[DifficultyAdjustment]:
        return suggest_difficulty_adjustments(self._items.snapshot())

    def get_learning_analytics(self) -> LearningAnalytics:
        items, sessions = self._snapshot()
        return build_learning_analytics(items, sessions, self._now())

    # ---- Import / Export ----

    def import_items(self, entries) -> ImportResult:
        """
        Add many items. A bad entry is reported, never aborts the batch.

        Returns:
            ImportResult with the success count and {"index", "error"}
            for each rejected entry
        """
        result = ImportResult()
        now = self._now()

        with self._lock:
            for index, entry in enumerate(entries):
                try:
                    item = initialize_new_item(self._parse_item_input(entry), now)
                except ValidationError as exc:
                    result.errors.append({"index": index, "error": str(exc)})
                    continue
                self._items.put(item)
                result.imported += 1

            if result.imported:
                self._persist()
            summary = self._queue_summary(now)

        logger.info("Imported %d items (%d rejected)", result.imported, len(result.errors))
        self.events.emit(QUEUE_UPDATED, summary)
        return result

    def export_data(self) -> dict:
        """
        Full JSON-serializable export: items, sessions, statistics,
        settings, export_date and version.
        """
        items, sessions = self._snapshot()
        now = self._now()
        statistics = build_statistics(items, sessions, now, len(build_due_queue(items, now)))

        data = build_payload(items, sessions, self._settings)
        data["statistics"] = statistics.to_dict()
        data["export_date"] = now.isoformat()
        data["version"] = EXPORT_VERSION
        return data

    def import_data(self, data: Mapping[str, Any]) -> ImportResult:
        """
        Merge an export into this engine.

        Items are merged by id (imported items win), imported sessions go
        ahead of the existing log which is then re-capped, settings are
        merged over the active ones. The payload is fully validated before
        anything changes.

        Raises:
            ValidationError: if the payload or its settings are malformed
        """
        if not isinstance(data, Mapping):
            raise ValidationError(f"Import payload must be a mapping, got {type(data).__name__}")
        try:
            payload = DataPayload.model_validate(dict(data))
        except PydanticValidationError as exc:
            raise ValidationError.from_pydantic(exc, "import payload") from exc

        items = [record.to_item() for record in payload.items.values()]
        sessions = [record.to_session() for record in payload.sessions]

        now = self._now()
        with self._lock:
            settings = self._settings
            if payload.settings:
                settings = build_settings(payload.settings, base=self._settings)

            for item in items:
                self._items.put(item)
            self._sessions.merge(sessions)
            self._settings = settings
            self._persist()
            summary = self._queue_summary(now)

        logger.info("Imported data: %d items, %d sessions", len(items), len(sessions))
        self.events.emit(QUEUE_UPDATED, summary)
        return ImportResult(imported=len(items))

    # ---- Persistence / Reset ----

    def flush(self) -> bool:
        """Save the current state now. Returns False if the save failed."""
        with self._lock:
            return self._persist()

    def reset_all_data(self) -> None:
        """
        Drop all items and sessions, restore the initial settings and remove
        the persisted snapshot.

        If the store cannot delete the snapshot, it is overwritten with the
        empty state instead.
        """
        now = self._now()
        with self._lock:
            self._items.clear()
            self._sessions.clear()
            self._settings = self._base_settings

            delete = getattr(self.store, "delete", None)
            if callable(delete):
                error = self._retry("delete", lambda: delete(self.store_key))
                if error is not None:
                    # The old snapshot must not come back on the next load
                    self._record_warning(PersistenceWarning("delete", self.store_key, error))
                    self._persist()
            else:
                self._persist()
            summary = self._queue_summary(now)

        logger.info("Reset all review data for %r", self.store_key)
        self.events.emit(QUEUE_UPDATED, summary)
        self.events.emit(DATA_RESET, {})
