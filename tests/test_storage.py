"""
ProgressStore and backend tests.
"""

import json
from datetime import date, datetime

import pytest

from stemtutor.classroom import (
    ChangeNotifier,
    MemoryBackend,
    ProgressStore,
    SQLiteBackend,
    ONBOARDING_KEY,
    PROGRESS_KEY,
    SYNC_STATUS_KEY,
)


class TestRead:

    def test_defaults_when_absent(self, store, clock):
        progress = store.read()
        assert progress.xp == 0
        assert progress.streak == 0
        assert progress.last_active_date == clock()
        assert progress.current_language == "en"

    def test_invalid_json_yields_defaults(self, backend, store):
        backend.set(PROGRESS_KEY, "{not json")
        assert store.read().xp == 0

    def test_non_object_yields_defaults(self, backend, store):
        backend.set(PROGRESS_KEY, json.dumps([1, 2, 3]))
        assert store.read().completed_lessons == []

    def test_invalid_values_yield_defaults(self, backend, store):
        backend.set(PROGRESS_KEY, json.dumps({"xp": -10, "completedLessons": ["l1"]}))
        progress = store.read()
        assert progress.xp == 0
        assert progress.completed_lessons == []

    def test_partial_record_merged_over_defaults(self, backend, store, clock):
        backend.set(PROGRESS_KEY, json.dumps({"xp": 30}))
        progress = store.read()
        assert progress.xp == 30
        assert progress.streak == 0
        assert progress.last_active_date == clock()

    def test_corrupt_record_logged(self, backend, store, caplog):
        backend.set(PROGRESS_KEY, "garbage")
        store.read()
        assert "not valid JSON" in caplog.text


class TestWrite:

    def test_write_merges_fields(self, store):
        store.write(xp=10)
        store.write(completed_lessons=["l1"])
        progress = store.read()
        assert progress.xp == 10
        assert progress.completed_lessons == ["l1"]

    def test_write_accepts_aliases(self, store):
        store.write({"currentLanguage": "ta", "selectedSubjects": ["math"]})
        progress = store.read()
        assert progress.current_language == "ta"
        assert progress.selected_subjects == ["math"]

    def test_write_ignores_unknown_fields(self, store):
        progress = store.write(xp=5, mood="happy")
        assert progress.xp == 5

    def test_persisted_shape_is_camel_case(self, backend, store):
        store.write(xp=5, last_active_date=date(2024, 3, 9))
        data = json.loads(backend.get(PROGRESS_KEY))
        assert data["xp"] == 5
        assert data["lastActiveDate"] == "2024-03-09"
        assert set(data) == {
            "currentLanguage", "selectedSubjects", "xp", "streak", "lastActiveDate",
            "completedLessons", "quizScores", "unitsProgress",
        }

    def test_write_marks_pending_sync(self, store):
        assert store.get_sync_status().pending_changes is False
        store.write(xp=1)
        assert store.get_sync_status().pending_changes is True

    @pytest.mark.parametrize("fields", [{"xp": -1}, {"quiz_scores": {"quiz-l1": 150}}, {"streak": "often"}])
    def test_invalid_write_rejected(self, store, backend, fields, caplog):
        store.write(xp=10)
        before = backend.get(PROGRESS_KEY)
        changes = []
        store.subscribe(changes.append)

        progress = store.write(**fields)

        assert progress.xp == 10
        assert backend.get(PROGRESS_KEY) == before
        assert changes == []
        assert "Rejected progress write" in caplog.text


class TestChangeNotification:

    def test_write_publishes(self, store):
        seen = []
        store.subscribe(seen.append)
        store.write(xp=1)
        assert PROGRESS_KEY in seen

    def test_unsubscribe(self, store):
        seen = []
        unsubscribe = store.subscribe(seen.append)
        unsubscribe()
        store.write(xp=1)
        assert seen == []

    def test_unsubscribe_twice_is_harmless(self):
        notifier = ChangeNotifier()
        unsubscribe = notifier.subscribe(lambda key: None)
        unsubscribe()
        unsubscribe()

    def test_shared_notifier_reaches_other_view(self, clock):
        backend = MemoryBackend()
        notifier = ChangeNotifier()
        first = ProgressStore(backend, notifier=notifier, clock=clock)
        second = ProgressStore(backend, notifier=notifier, clock=clock)

        refreshed = []
        second.subscribe(lambda key: refreshed.append(second.read().xp) if key == PROGRESS_KEY else None)
        first.write(xp=42)
        assert refreshed == [42]

    def test_external_change_detected(self, clock):
        backend = MemoryBackend()
        first = ProgressStore(backend, clock=clock)
        second = ProgressStore(backend, clock=clock)
        seen = []
        second.subscribe(seen.append)

        assert second.check_for_external_changes() is False
        first.write(xp=7)
        assert second.check_for_external_changes() is True
        assert seen == [PROGRESS_KEY]
        assert second.read().xp == 7
        assert second.check_for_external_changes() is False

    def test_own_write_is_not_external(self, store):
        store.write(xp=3)
        assert store.check_for_external_changes() is False

    def test_last_write_wins(self, clock):
        backend = MemoryBackend()
        first = ProgressStore(backend, clock=clock)
        second = ProgressStore(backend, clock=clock)
        first.write(xp=10)
        second.write(current_language="bn")
        first.write(xp=20)
        progress = second.read()
        assert progress.xp == 20
        assert progress.current_language == "bn"


class TestSyncStatus:

    def test_mark_synced(self, store):
        store.write(xp=1)
        status = store.mark_synced(now=datetime(2024, 3, 10, 9, 30))
        assert status.pending_changes is False
        assert store.get_sync_status().last_synced == datetime(2024, 3, 10, 9, 30)

    def test_set_online(self, store):
        store.set_online(False)
        assert store.get_sync_status().is_online is False

    def test_malformed_sync_status(self, backend, store):
        backend.set(SYNC_STATUS_KEY, "???")
        assert store.get_sync_status().pending_changes is False


class TestOnboarding:

    def test_not_onboarded_by_default(self, store):
        assert store.is_onboarding_complete() is False

    def test_complete_onboarding_saves_choices(self, store, backend):
        store.complete_onboarding(language="mr", subjects=["math", "physics"])
        assert store.is_onboarding_complete() is True
        assert backend.get(ONBOARDING_KEY) == "true"
        progress = store.read()
        assert progress.current_language == "mr"
        assert progress.selected_subjects == ["math", "physics"]


class TestReset:

    def test_reset_clears_all_keys(self, store, backend):
        store.complete_onboarding(language="hi", subjects=["math"])
        store.write(xp=99)
        store.reset()
        assert backend.data == {}
        assert store.read().xp == 0
        assert store.is_onboarding_complete() is False

    def test_reset_publishes(self, store):
        seen = []
        store.subscribe(seen.append)
        store.reset()
        assert seen == [PROGRESS_KEY]


class TestSQLiteBackend:

    def test_round_trip(self, tmp_path):
        backend = SQLiteBackend(tmp_path / "progress.db")
        assert backend.get("k") is None
        backend.set("k", "v1")
        backend.set("k", "v2")
        assert backend.get("k") == "v2"
        backend.delete("k")
        assert backend.get("k") is None

    def test_learners_are_isolated(self, tmp_path):
        db = tmp_path / "progress.db"
        alice = SQLiteBackend(db, learner_id="alice")
        bob = SQLiteBackend(db, learner_id="bob")
        alice.set("k", "a")
        assert bob.get("k") is None

    def test_store_persists_across_instances(self, tmp_path, clock):
        db = tmp_path / "nested" / "progress.db"
        ProgressStore(SQLiteBackend(db), clock=clock).write(xp=12, completed_lessons=["l1"])
        progress = ProgressStore(SQLiteBackend(db), clock=clock).read()
        assert progress.xp == 12
        assert progress.completed_lessons == ["l1"]

    @pytest.mark.parametrize("payload", ["", "null", "42"])
    def test_store_over_sqlite_recovers_from_corruption(self, tmp_path, clock, payload):
        backend = SQLiteBackend(tmp_path / "progress.db")
        backend.set(PROGRESS_KEY, payload)
        assert ProgressStore(backend, clock=clock).read().xp == 0
