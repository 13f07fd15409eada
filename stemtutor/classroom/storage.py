"""
ProgressStore - Persist the learner progress record in a key-value backend.

Stores learner state under a few well-known keys:
- The learner progress record (JSON, camelCase keys)
- Sync status
- Onboarding-complete flag

Backends:
- MemoryBackend: in-process dict (tests, ephemeral sessions)
- SQLiteBackend: ~/.stemtutor/progress.db
"""

import json
import logging
import sqlite3
from datetime import date, datetime
from pathlib import Path
from typing import Any, Callable, Optional

from pydantic import ValidationError

from stemtutor.schemas import LearnerProgress, SyncStatus


logger = logging.getLogger(__name__)

DEFAULT_PROGRESS_DIR = Path.home() / ".stemtutor"
DEFAULT_PROGRESS_DB = DEFAULT_PROGRESS_DIR / "progress.db"

PROGRESS_KEY = "stemtutor_progress"
SYNC_STATUS_KEY = "stemtutor_sync"
ONBOARDING_KEY = "stemtutor_onboarded"
STORE_KEYS = (PROGRESS_KEY, SYNC_STATUS_KEY, ONBOARDING_KEY)

Clock = Callable[[], date]
Listener = Callable[[str], Any]


# -----------------------------------------------------------------------------
# Backends
# -----------------------------------------------------------------------------

class KeyValueBackend:
    """String key -> string value storage used by ProgressStore."""

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str):
        raise NotImplementedError

    def delete(self, key: str):
        raise NotImplementedError


class MemoryBackend(KeyValueBackend):
    """Dict-backed storage. Share one instance to simulate two open views."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self.data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str):
        self.data[key] = value

    def delete(self, key: str):
        self.data.pop(key, None)


class SQLiteBackend(KeyValueBackend):
    """
    Key-value storage in a SQLite database.

    Each learner's keys are namespaced by learner_id so several learners
    can share one file.
    """

    def __init__(self, db_path: Optional[Path] = None, learner_id: str = "default"):
        """
        Initialize the backend.

        Args:
            db_path: Path to progress.db (default: ~/.stemtutor/progress.db)
            learner_id: Learner identifier
        """
        self.db_path = Path(db_path) if db_path else DEFAULT_PROGRESS_DB
        self.learner_id = learner_id
        self._ensure_database()

    def _ensure_database(self):
        """Create database and table if they don't exist."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        conn = sqlite3.connect(str(self.db_path))
        try:
            conn.executescript("""
                CREATE TABLE IF NOT EXISTS kv_store (
                    learner_id TEXT NOT NULL,
                    key TEXT NOT NULL,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    PRIMARY KEY (learner_id, key)
                );
            """)
            conn.commit()
        finally:
            conn.close()

    def _get_connection(self) -> sqlite3.Connection:
        """Get a new database connection."""
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        return conn

    def get(self, key: str) -> Optional[str]:
        conn = self._get_connection()
        try:
            cursor = conn.execute(
                """SELECT value FROM kv_store WHERE learner_id = ? AND key = ?""",
                (self.learner_id, key)
            )
            row = cursor.fetchone()
            return row["value"] if row else None
        finally:
            conn.close()

    def set(self, key: str, value: str):
        conn = self._get_connection()
        try:
            now = datetime.now().isoformat()
            conn.execute(
                """INSERT INTO kv_store (learner_id, key, value, updated_at)
                   VALUES (?, ?, ?, ?)
                   ON CONFLICT(learner_id, key) DO UPDATE SET
                     value = excluded.value,
                     updated_at = excluded.updated_at""",
                (self.learner_id, key, value, now)
            )
            conn.commit()
        finally:
            conn.close()

    def delete(self, key: str):
        conn = self._get_connection()
        try:
            conn.execute(
                """DELETE FROM kv_store WHERE learner_id = ? AND key = ?""",
                (self.learner_id, key)
            )
            conn.commit()
        finally:
            conn.close()


# -----------------------------------------------------------------------------
# Change notification
# -----------------------------------------------------------------------------

class ChangeNotifier:
    """Publish/subscribe hub; listeners receive the storage key that changed."""

    def __init__(self):
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener. Returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def publish(self, key: str):
        for listener in list(self._listeners):
            listener(key)


# -----------------------------------------------------------------------------
# Store
# -----------------------------------------------------------------------------

def to_storage_keys(fields: dict) -> dict:
    """Map python field names to their camelCase aliases; aliases pass through."""
    result = {}
    for name, value in fields.items():
        info = LearnerProgress.model_fields.get(name)
        result[info.alias if info and info.alias else name] = value
    return result


class ProgressStore:
    """
    Sole owner of the persisted learner progress record.

    Reads never fail: a missing or malformed record yields the default
    record. Every write sets the pending-sync flag and notifies subscribers.
    Two stores over the same backend see each other's writes; concurrent
    writes resolve last-write-wins.
    """

    def __init__(
        self,
        backend: Optional[KeyValueBackend] = None,
        notifier: Optional[ChangeNotifier] = None,
        clock: Optional[Clock] = None,
    ):
        """
        Initialize the store.

        Args:
            backend: Key-value backend (default: SQLiteBackend at ~/.stemtutor/progress.db)
            notifier: Shared ChangeNotifier (default: private to this store)
            clock: Returns today's date (default: date.today)
        """
        self.backend = backend if backend is not None else SQLiteBackend()
        self.notifier = notifier or ChangeNotifier()
        self.clock: Clock = clock or date.today
        self._last_seen_raw = self.backend.get(PROGRESS_KEY)

    # -------------------------------------------------------------------------
    # Progress record
    # -------------------------------------------------------------------------

    def default_progress(self) -> LearnerProgress:
        return LearnerProgress(last_active_date=self.clock())

    def read(self) -> LearnerProgress:
        """Get the learner progress record, or defaults if absent or corrupt."""
        raw = self.backend.get(PROGRESS_KEY)
        self._last_seen_raw = raw
        if raw is None:
            return self.default_progress()

        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, TypeError) as e:
            logger.warning(f"Stored progress is not valid JSON, using defaults: {e}")
            return self.default_progress()

        if not isinstance(data, dict):
            logger.warning("Stored progress is not an object, using defaults")
            return self.default_progress()

        merged = {"lastActiveDate": self.clock().isoformat(), **data}
        try:
            return LearnerProgress.model_validate(merged)
        except ValidationError as e:
            logger.warning(f"Stored progress failed validation, using defaults: {e}")
            return self.default_progress()

    def write(self, partial: Optional[dict] = None, **fields) -> LearnerProgress:
        """
        Merge fields into the current record and persist it.

        Fields may be given by python name (xp, completed_lessons) or by
        storage alias (completedLessons). Unknown fields are ignored.
        An update that fails validation is logged and nothing is written.

        Returns:
            The record as persisted
        """
        updates = to_storage_keys({**(partial or {}), **fields})
        current = self.read()
        try:
            progress = LearnerProgress.model_validate({**current.to_storage(), **updates})
        except ValidationError as e:
            logger.warning(f"Rejected progress write: {e}")
            return current

        raw = json.dumps(progress.to_storage())
        self.backend.set(PROGRESS_KEY, raw)
        self._last_seen_raw = raw
        self._mark_pending_sync()
        self.notifier.publish(PROGRESS_KEY)
        return progress

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Subscribe to change notifications. Returns an unsubscribe function."""
        return self.notifier.subscribe(listener)

    def check_for_external_changes(self) -> bool:
        """
        Detect a write made through another store sharing this backend.

        Publishes a change notification when the stored record differs from
        the last one this store read or wrote.
        """
        raw = self.backend.get(PROGRESS_KEY)
        if raw == self._last_seen_raw:
            return False
        self._last_seen_raw = raw
        self.notifier.publish(PROGRESS_KEY)
        return True

    # -------------------------------------------------------------------------
    # Sync status
    # -------------------------------------------------------------------------

    def get_sync_status(self) -> SyncStatus:
        raw = self.backend.get(SYNC_STATUS_KEY)
        if raw is None:
            return SyncStatus()
        try:
            return SyncStatus.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"Stored sync status is malformed, using defaults: {e}")
            return SyncStatus()

    def _save_sync_status(self, status: SyncStatus):
        self.backend.set(SYNC_STATUS_KEY, json.dumps(status.to_storage()))
        self.notifier.publish(SYNC_STATUS_KEY)

    def _mark_pending_sync(self):
        status = self.get_sync_status()
        self._save_sync_status(status.model_copy(update={"pending_changes": True}))

    def mark_synced(self, now: Optional[datetime] = None) -> SyncStatus:
        """Record a completed sync: set lastSynced, clear pendingChanges."""
        status = self.get_sync_status().model_copy(update={
            "last_synced": now or datetime.now(),
            "pending_changes": False,
        })
        self._save_sync_status(status)
        return status

    def set_online(self, is_online: bool) -> SyncStatus:
        status = self.get_sync_status().model_copy(update={"is_online": is_online})
        self._save_sync_status(status)
        return status

    # -------------------------------------------------------------------------
    # Onboarding
    # -------------------------------------------------------------------------

    def is_onboarding_complete(self) -> bool:
        return self.backend.get(ONBOARDING_KEY) == "true"

    def complete_onboarding(
        self,
        language: Optional[str] = None,
        subjects: Optional[list[str]] = None,
    ):
        """Save the learner's language and subject choices, then set the flag."""
        updates = {}
        if language is not None:
            updates["current_language"] = language
        if subjects is not None:
            updates["selected_subjects"] = list(subjects)
        if updates:
            self.write(updates)
        self.backend.set(ONBOARDING_KEY, "true")
        self.notifier.publish(ONBOARDING_KEY)

    # -------------------------------------------------------------------------
    # Reset
    # -------------------------------------------------------------------------

    def reset(self):
        """Remove every key this store owns."""
        for key in STORE_KEYS:
            self.backend.delete(key)
        self._last_seen_raw = None
        logger.info("Learner progress reset")
        self.notifier.publish(PROGRESS_KEY)
