"""
ProgressionEngine - XP, streak, lesson completion and quiz score rules.

All learner state changes go through this engine:
- XP awards with daily streak bookkeeping
- Idempotent lesson completion
- Best-score quiz recording
- Guarded partial updates (profile fields, monotonic merges)
"""

import logging
import math
from datetime import timedelta
from typing import Optional

from pydantic import ValidationError

from stemtutor.schemas import LearnerProgress

from .catalog import ContentGraph
from .storage import Clock, ProgressStore, to_storage_keys


logger = logging.getLogger(__name__)

QUIZ_XP_RATE = 0.5  # XP per quiz percent point


def clamp_percent(percent: float) -> float:
    """Clamp a percent into [0, 100]."""
    return max(0, min(100, percent))


def quiz_xp(percent: float) -> int:
    """XP awarded for a quiz submission at the given percent."""
    return math.floor(clamp_percent(percent) * QUIZ_XP_RATE)


class ProgressionEngine:
    """
    Apply progression rules to the learner record held by a ProgressStore.

    With a ContentGraph attached, lesson completion also refreshes the
    unitsProgress entry for the lesson's unit.
    """

    def __init__(
        self,
        store: ProgressStore,
        graph: Optional[ContentGraph] = None,
        clock: Optional[Clock] = None,
    ):
        self.store = store
        self.graph = graph
        self.clock: Clock = clock or store.clock

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_progress(self) -> LearnerProgress:
        return self.store.read()

    def is_lesson_completed(self, lesson_id: str) -> bool:
        return lesson_id in self.store.read().completed_lessons

    def get_quiz_score(self, quiz_id: str) -> int:
        """Best recorded percent for a quiz, 0 if never taken."""
        return self.store.read().quiz_scores.get(quiz_id, 0)

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    def add_xp(self, amount: int) -> int:
        """
        Award XP and update the daily streak.

        Streak rules, by the date of the last XP award:
        - yesterday: streak continues (+1)
        - today: unchanged (one increment per day)
        - anything else: streak restarts at 1

        Negative or non-integer amounts are rejected without changing state.

        Returns:
            XP total after the award
        """
        progress = self.store.read()
        updates = self._xp_updates(progress, amount)
        if not updates:
            return progress.xp

        updated = self.store.write(updates)
        logger.debug(f"Awarded {amount} XP (total {updated.xp}, streak {updated.streak})")
        return updated.xp

    def complete_lesson(self, lesson_id: str, xp_reward: int) -> bool:
        """
        Mark a lesson completed and award its XP.

        Completion and the XP award land in a single write. Repeat
        completions are no-ops so XP is never awarded twice.

        Returns:
            True if the lesson was newly completed
        """
        progress = self.store.read()
        if lesson_id in progress.completed_lessons:
            return False

        completed = progress.completed_lessons + [lesson_id]
        updates = {"completed_lessons": completed}

        unit_id = self.graph.unit_id_for_lesson(lesson_id) if self.graph else None
        if unit_id:
            units_progress = dict(progress.units_progress)
            units_progress[unit_id] = self._unit_percent(unit_id, set(completed))
            updates["units_progress"] = units_progress

        updates.update(self._xp_updates(progress, xp_reward))
        self.store.write(updates)
        logger.info(f"Completed lesson {lesson_id} (+{xp_reward} XP)")
        return True

    def record_quiz_score(self, quiz_id: str, percent: float) -> bool:
        """
        Record a quiz submission.

        The stored score is replaced only by a strictly higher percent.
        XP is awarded on every submission, improved or not. A percent that
        is not a finite number is rejected without changing state.

        Returns:
            True if the stored best score changed
        """
        if not math.isfinite(percent):
            logger.warning(f"Rejected quiz percent {percent} for {quiz_id}")
            return False

        clamped = clamp_percent(percent)
        if clamped != percent:
            logger.warning(f"Quiz percent {percent} clamped to {clamped}")
        score = math.floor(clamped + 0.5)

        progress = self.store.read()
        best = progress.quiz_scores.get(quiz_id)
        improved = best is None or score > best
        updates = self._xp_updates(progress, quiz_xp(clamped))
        if improved:
            updates["quiz_scores"] = {**progress.quiz_scores, quiz_id: score}
        self.store.write(updates)
        return improved

    def update_progress(self, partial: Optional[dict] = None, **fields) -> LearnerProgress:
        """
        Apply a partial update without breaking progression invariants.

        - current_language, selected_subjects: replaced
        - xp: accepted only if not lower than the stored value
        - completed_lessons: unioned with the stored list
        - quiz_scores, units_progress: merged keeping the higher value
        - streak, last_active_date: accepted only when given together

        Invalid values are logged and the stored record is left unchanged.
        """
        requested = to_storage_keys({**(partial or {}), **fields})
        try:
            incoming = LearnerProgress.model_validate(
                {**self.store.read().to_storage(), **requested}
            )
        except ValidationError as e:
            logger.warning(f"Rejected progress update: {e}")
            return self.store.read()

        given = {self._field_name(key) for key in requested}
        current = self.store.read()
        updates = {}

        for name in ("current_language", "selected_subjects"):
            if name in given:
                updates[name] = getattr(incoming, name)

        if "xp" in given and incoming.xp >= current.xp:
            updates["xp"] = incoming.xp

        if "completed_lessons" in given:
            updates["completed_lessons"] = list(dict.fromkeys(
                current.completed_lessons + incoming.completed_lessons
            ))

        for name in ("quiz_scores", "units_progress"):
            if name in given:
                merged = dict(getattr(current, name))
                for key, value in getattr(incoming, name).items():
                    merged[key] = max(value, merged.get(key, value))
                updates[name] = merged

        if {"streak", "last_active_date"} <= given:
            updates["streak"] = incoming.streak
            updates["last_active_date"] = incoming.last_active_date
        elif {"streak", "last_active_date"} & given:
            logger.warning("Ignored streak/lastActiveDate update: both must be given together")

        if not updates:
            return current
        return self.store.write(updates)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _xp_updates(self, progress: LearnerProgress, amount) -> dict:
        """Fields written by an XP award, or {} when the amount is rejected."""
        if isinstance(amount, float) and amount.is_integer():
            amount = int(amount)
        if isinstance(amount, bool) or not isinstance(amount, int):
            logger.warning(f"Rejected invalid XP award: {amount!r}")
            return {}
        if amount < 0:
            logger.warning(f"Rejected negative XP award: {amount}")
            return {}

        today = self.clock()
        yesterday = today - timedelta(days=1)

        streak = progress.streak
        if progress.last_active_date == yesterday:
            streak += 1
        elif progress.last_active_date != today:
            streak = 1

        return {
            "xp": progress.xp + amount,
            "streak": streak,
            "last_active_date": today,
        }

    @staticmethod
    def _field_name(key: str) -> str:
        for name, info in LearnerProgress.model_fields.items():
            if key in (name, info.alias):
                return name
        return key

    def _unit_percent(self, unit_id: str, completed: set[str]) -> int:
        lessons = self.graph.lessons_for_unit(unit_id)
        if not lessons:
            return 0
        done = sum(1 for lesson in lessons if lesson.id in completed)
        return math.floor(done / len(lessons) * 100 + 0.5)
