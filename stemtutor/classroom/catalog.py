"""
ContentGraph - Read-only, ordered view of the content catalog.

Provides lookups for:
- Subjects, units, lessons and quizzes by ID
- Units of a subject and lessons of a unit, in unlock order
- Lesson -> unit -> subject attribution
"""

import logging
from collections import defaultdict
from pathlib import Path
from typing import Optional

from stemtutor.schemas import Catalog, Lesson, Quiz, Subject, Unit
from stemtutor.utils.catalog_loader import load_catalog

logger = logging.getLogger(__name__)


class CatalogError(ValueError):
    """Catalog content violates an integrity rule (dangling or duplicate IDs)."""


def _index_unique(items, kind: str) -> dict:
    index = {}
    for item in items:
        if item.id in index:
            raise CatalogError(f"Duplicate {kind} id: {item.id}")
        index[item.id] = item
    return index


class ContentGraph:
    """
    Immutable catalog of subjects -> units -> lessons -> quizzes.

    All indices are built once at construction. Lookups never raise:
    unknown IDs return None or an empty list.
    """

    def __init__(self, catalog: Catalog):
        """
        Build the graph and check referential integrity.

        Args:
            catalog: Validated Catalog model

        Raises:
            CatalogError: On duplicate IDs, dangling references or more
                than one quiz per lesson
        """
        self.meta = dict(catalog.meta)
        self._subjects = _index_unique(catalog.subjects, "subject")
        self._units = _index_unique(catalog.units, "unit")
        self._lessons = _index_unique(catalog.lessons, "lesson")
        self._quizzes = _index_unique(catalog.quizzes, "quiz")

        for unit in self._units.values():
            if unit.subject_id not in self._subjects:
                raise CatalogError(f"Unit {unit.id} references unknown subject {unit.subject_id}")
        for lesson in self._lessons.values():
            if lesson.unit_id not in self._units:
                raise CatalogError(f"Lesson {lesson.id} references unknown unit {lesson.unit_id}")

        self._quiz_by_lesson: dict[str, Quiz] = {}
        for quiz in self._quizzes.values():
            if quiz.lesson_id not in self._lessons:
                raise CatalogError(f"Quiz {quiz.id} references unknown lesson {quiz.lesson_id}")
            if quiz.lesson_id in self._quiz_by_lesson:
                raise CatalogError(f"Lesson {quiz.lesson_id} has more than one quiz")
            self._quiz_by_lesson[quiz.lesson_id] = quiz

        # Ordered children; ties on order keep catalog position
        units_by_subject = defaultdict(list)
        for unit in catalog.units:
            units_by_subject[unit.subject_id].append(unit)
        self._units_by_subject = {
            sid: sorted(units, key=lambda u: u.order)
            for sid, units in units_by_subject.items()
        }

        lessons_by_unit = defaultdict(list)
        for lesson in catalog.lessons:
            lessons_by_unit[lesson.unit_id].append(lesson)
        self._lessons_by_unit = {
            uid: sorted(lessons, key=lambda lesson: lesson.order)
            for uid, lessons in lessons_by_unit.items()
        }

        # Explicit attribution maps
        self._unit_of_lesson = {lesson.id: lesson.unit_id for lesson in catalog.lessons}
        self._subject_of_unit = {unit.id: unit.subject_id for unit in catalog.units}

        self._log_declared_count_mismatches()

    @classmethod
    def from_file(cls, path: Optional[str | Path] = None) -> "ContentGraph":
        """Load a YAML catalog (default: bundled catalog) and build the graph."""
        return cls(load_catalog(Path(path) if path else None))

    def _log_declared_count_mismatches(self):
        for subject in self._subjects.values():
            actual = len(self.units_for_subject(subject.id))
            if subject.units_count is not None and subject.units_count != actual:
                logger.debug(
                    f"Subject {subject.id} declares {subject.units_count} units, catalog has {actual}"
                )
        for unit in self._units.values():
            actual = len(self.lessons_for_unit(unit.id))
            if unit.lessons_count is not None and unit.lessons_count != actual:
                logger.debug(
                    f"Unit {unit.id} declares {unit.lessons_count} lessons, catalog has {actual}"
                )

    # -------------------------------------------------------------------------
    # Lookups by ID
    # -------------------------------------------------------------------------

    def get_subject(self, subject_id: str) -> Optional[Subject]:
        return self._subjects.get(subject_id)

    def get_unit(self, unit_id: str) -> Optional[Unit]:
        return self._units.get(unit_id)

    def get_lesson(self, lesson_id: str) -> Optional[Lesson]:
        return self._lessons.get(lesson_id)

    def get_quiz(self, quiz_id: str) -> Optional[Quiz]:
        return self._quizzes.get(quiz_id)

    def get_quiz_for_lesson(self, lesson_id: str) -> Optional[Quiz]:
        """Get the quiz attached to a lesson, if any."""
        return self._quiz_by_lesson.get(lesson_id)

    # -------------------------------------------------------------------------
    # Ordered collections
    # -------------------------------------------------------------------------

    def get_subjects(self) -> list[Subject]:
        """All subjects in catalog order."""
        return list(self._subjects.values())

    def units_for_subject(self, subject_id: str) -> list[Unit]:
        """Units of a subject ordered by unlock sequence."""
        return list(self._units_by_subject.get(subject_id, []))

    def lessons_for_unit(self, unit_id: str) -> list[Lesson]:
        """Lessons of a unit ordered by unlock sequence."""
        return list(self._lessons_by_unit.get(unit_id, []))

    def lessons_for_subject(self, subject_id: str) -> list[Lesson]:
        """Lessons across all units of a subject, unit order then lesson order."""
        result = []
        for unit in self.units_for_subject(subject_id):
            result.extend(self.lessons_for_unit(unit.id))
        return result

    # -------------------------------------------------------------------------
    # Attribution
    # -------------------------------------------------------------------------

    def unit_id_for_lesson(self, lesson_id: str) -> Optional[str]:
        return self._unit_of_lesson.get(lesson_id)

    def subject_id_for_unit(self, unit_id: str) -> Optional[str]:
        return self._subject_of_unit.get(unit_id)

    def subject_id_for_lesson(self, lesson_id: str) -> Optional[str]:
        unit_id = self._unit_of_lesson.get(lesson_id)
        return self._subject_of_unit.get(unit_id) if unit_id else None

    # -------------------------------------------------------------------------
    # Statistics
    # -------------------------------------------------------------------------

    def get_stats(self) -> dict:
        """Catalog size statistics."""
        return {
            "subjects": len(self._subjects),
            "units": len(self._units),
            "lessons": len(self._lessons),
            "quizzes": len(self._quizzes),
            "questions": sum(len(q.questions) for q in self._quizzes.values()),
            "total_xp": sum(lesson.xp_reward for lesson in self._lessons.values()),
        }
