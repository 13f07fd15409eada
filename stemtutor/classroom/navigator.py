"""
GatingResolver - Lesson and unit gating, progress percentages, navigation.

Provides:
- Locked / current / completed status for lessons and units
- Unit and subject completion percentages
- Annotated unit and lesson lists for display
- Starting a lesson only when it is unlocked
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from stemtutor.schemas import Lesson, Subject, Unit

from .catalog import ContentGraph
from .lesson import LessonSession
from .progress import ProgressionEngine
from .storage import ProgressStore


class LessonAvailability(str, Enum):
    """Gating status for UI display."""
    LOCKED = "locked"           # Previous item not completed
    CURRENT = "current"         # First incomplete item
    AVAILABLE = "available"     # Unlocked but not the first incomplete
    COMPLETED = "completed"     # Finished


# -----------------------------------------------------------------------------
# Pure gating rules over an ordered sequence
# -----------------------------------------------------------------------------

def is_locked_at(ids: Sequence[str], index: int, completed: set[str]) -> bool:
    """The first item is never locked; any other is locked until its predecessor is completed."""
    return index > 0 and ids[index - 1] not in completed


def current_id(ids: Sequence[str], completed: set[str]) -> Optional[str]:
    """First item (in order) not completed, or None when all are."""
    for item_id in ids:
        if item_id not in completed:
            return item_id
    return None


def availability_at(ids: Sequence[str], index: int, completed: set[str]) -> LessonAvailability:
    item_id = ids[index]
    if item_id in completed:
        return LessonAvailability.COMPLETED
    if item_id == current_id(ids, completed):
        return LessonAvailability.CURRENT
    if is_locked_at(ids, index, completed):
        return LessonAvailability.LOCKED
    return LessonAvailability.AVAILABLE


def percent_complete(ids: Sequence[str], completed: set[str]) -> float:
    """Percent of ids completed; an empty sequence is 0."""
    if not ids:
        return 0.0
    done = sum(1 for item_id in ids if item_id in completed)
    return done / len(ids) * 100


# -----------------------------------------------------------------------------
# Navigation records
# -----------------------------------------------------------------------------

@dataclass
class NavigationLesson:
    """Lesson with gating metadata."""
    lesson: Lesson
    availability: LessonAvailability
    has_quiz: bool
    quiz_score: Optional[int]  # best percent, None if never taken

    @property
    def is_locked(self) -> bool:
        return self.availability == LessonAvailability.LOCKED

    @property
    def is_current(self) -> bool:
        return self.availability == LessonAvailability.CURRENT


@dataclass
class NavigationUnit:
    """Unit with gating metadata."""
    unit: Unit
    availability: LessonAvailability
    completed_count: int
    total_count: int
    progress: int  # percent

    @property
    def is_locked(self) -> bool:
        return self.availability == LessonAvailability.LOCKED


class GatingResolver:
    """
    Derive gating status from the content graph and stored progress.

    Nothing is cached: every query re-reads the store, so status reflects
    the latest write.
    """

    def __init__(self, graph: ContentGraph, store: ProgressStore):
        """
        Initialize resolver.

        Args:
            graph: ContentGraph for ordering and attribution
            store: ProgressStore holding completed lessons
        """
        self.graph = graph
        self.store = store

    def _completed(self) -> set[str]:
        return set(self.store.read().completed_lessons)

    def _lesson_ids(self, unit_id: str) -> list[str]:
        return [lesson.id for lesson in self.graph.lessons_for_unit(unit_id)]

    def _complete_unit_ids(self, subject_id: str, completed: set[str]) -> list[str]:
        """Unit IDs of a subject whose lessons are all completed."""
        return [
            unit.id for unit in self.graph.units_for_subject(subject_id)
            if self._unit_done(unit.id, completed)
        ]

    def _unit_done(self, unit_id: str, completed: set[str]) -> bool:
        ids = self._lesson_ids(unit_id)
        return bool(ids) and all(lesson_id in completed for lesson_id in ids)

    # -------------------------------------------------------------------------
    # Lessons
    # -------------------------------------------------------------------------

    def lesson_status(self, lesson_id: str) -> LessonAvailability:
        """Gating status of a lesson within its unit. Unknown lessons are locked."""
        unit_id = self.graph.unit_id_for_lesson(lesson_id)
        if unit_id is None:
            return LessonAvailability.LOCKED
        ids = self._lesson_ids(unit_id)
        return availability_at(ids, ids.index(lesson_id), self._completed())

    def is_lesson_locked(self, lesson_id: str) -> bool:
        unit_id = self.graph.unit_id_for_lesson(lesson_id)
        if unit_id is None:
            return True
        ids = self._lesson_ids(unit_id)
        return is_locked_at(ids, ids.index(lesson_id), self._completed())

    def is_lesson_current(self, lesson_id: str) -> bool:
        return self.lesson_status(lesson_id) == LessonAvailability.CURRENT

    def current_lesson_id(self, unit_id: str) -> Optional[str]:
        """First incomplete lesson of a unit; None when the unit is complete or unknown."""
        return current_id(self._lesson_ids(unit_id), self._completed())

    def lessons_for_unit(self, unit_id: str) -> list[NavigationLesson]:
        """Lessons of a unit in order, annotated with gating status."""
        progress = self.store.read()
        completed = set(progress.completed_lessons)
        lessons = self.graph.lessons_for_unit(unit_id)
        ids = [lesson.id for lesson in lessons]

        result = []
        for index, lesson in enumerate(lessons):
            quiz = self.graph.get_quiz_for_lesson(lesson.id)
            result.append(NavigationLesson(
                lesson=lesson,
                availability=availability_at(ids, index, completed),
                has_quiz=quiz is not None,
                quiz_score=progress.quiz_scores.get(quiz.id) if quiz else None,
            ))
        return result

    def next_lesson_id(self, lesson_id: str) -> Optional[str]:
        """
        Lesson that follows in the subject's sequence.

        Crosses into the next unit after a unit's last lesson. Returns None
        after the subject's last lesson or for an unknown lesson.
        """
        subject_id = self.graph.subject_id_for_lesson(lesson_id)
        if subject_id is None:
            return None
        ids = [lesson.id for lesson in self.graph.lessons_for_subject(subject_id)]
        position = ids.index(lesson_id)
        return ids[position + 1] if position + 1 < len(ids) else None

    # -------------------------------------------------------------------------
    # Units
    # -------------------------------------------------------------------------

    def unit_progress(self, unit_id: str) -> int:
        """Percent of a unit's lessons completed."""
        return math.floor(percent_complete(self._lesson_ids(unit_id), self._completed()) + 0.5)

    def is_unit_complete(self, unit_id: str) -> bool:
        return self._unit_done(unit_id, self._completed())

    def unit_status(self, unit_id: str) -> LessonAvailability:
        """Gating status of a unit within its subject. Unknown units are locked."""
        subject_id = self.graph.subject_id_for_unit(unit_id)
        if subject_id is None:
            return LessonAvailability.LOCKED
        completed = self._completed()
        ids = [unit.id for unit in self.graph.units_for_subject(subject_id)]
        done = set(self._complete_unit_ids(subject_id, completed))
        return availability_at(ids, ids.index(unit_id), done)

    def is_unit_locked(self, unit_id: str) -> bool:
        return self.unit_status(unit_id) == LessonAvailability.LOCKED

    def units_for_subject(self, subject_id: str) -> list[NavigationUnit]:
        """Units of a subject in order, annotated with gating status and progress."""
        completed = self._completed()
        units = self.graph.units_for_subject(subject_id)
        ids = [unit.id for unit in units]
        done = set(self._complete_unit_ids(subject_id, completed))

        result = []
        for index, unit in enumerate(units):
            lesson_ids = self._lesson_ids(unit.id)
            result.append(NavigationUnit(
                unit=unit,
                availability=availability_at(ids, index, done),
                completed_count=sum(1 for lid in lesson_ids if lid in completed),
                total_count=len(lesson_ids),
                progress=math.floor(percent_complete(lesson_ids, completed) + 0.5),
            ))
        return result

    # -------------------------------------------------------------------------
    # Subjects
    # -------------------------------------------------------------------------

    def subject_progress(self, subject_id: str) -> float:
        """Percent of a subject's lessons completed, to one decimal."""
        ids = [lesson.id for lesson in self.graph.lessons_for_subject(subject_id)]
        return round(percent_complete(ids, self._completed()), 1)

    def learner_subjects(self) -> list[Subject]:
        """Subjects the learner selected, in catalog order."""
        selected = set(self.store.read().selected_subjects)
        return [s for s in self.graph.get_subjects() if s.id in selected]

    # -------------------------------------------------------------------------
    # Lesson actions
    # -------------------------------------------------------------------------

    def start_lesson(self, lesson_id: str, engine: ProgressionEngine) -> Optional[LessonSession]:
        """
        Start a lesson if it is unlocked.

        Completed lessons can be replayed.

        Returns:
            A new LessonSession, or None if the lesson is unknown or locked
        """
        lesson = self.graph.get_lesson(lesson_id)
        if lesson is None or self.is_lesson_locked(lesson_id):
            return None
        return LessonSession(lesson, engine, quiz=self.graph.get_quiz_for_lesson(lesson_id))

    # -------------------------------------------------------------------------
    # Progress Summary
    # -------------------------------------------------------------------------

    def progress_summary(self) -> dict:
        """Get progress summary for display."""
        progress = self.store.read()

        subjects = []
        for subject in self.learner_subjects():
            subjects.append({
                "id": subject.id,
                "name": subject.name,
                "progress": self.subject_progress(subject.id),
                "units": [
                    {
                        "id": nav.unit.id,
                        "name": nav.unit.name,
                        "status": nav.availability.value,
                        "completed": nav.completed_count,
                        "total": nav.total_count,
                    }
                    for nav in self.units_for_subject(subject.id)
                ],
            })

        return {
            "xp": progress.xp,
            "streak": progress.streak,
            "last_active_date": progress.last_active_date.isoformat(),
            "lessons_completed": len(progress.completed_lessons),
            "quizzes_taken": len(progress.quiz_scores),
            "subjects": subjects,
        }
