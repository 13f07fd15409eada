"""
STEM Tutor Classroom - Runtime components for progression and gating.

This module provides:
- ContentGraph: Ordered, read-only content catalog
- ProgressStore: Persisted learner record with change notification
- ProgressionEngine: XP, streak, completion and quiz score rules
- GatingResolver: Lock/current/completed status and progress percentages
- QuizSession, LessonSession: Per-attempt state machines
"""

from .catalog import (
    ContentGraph,
    CatalogError,
)

from .storage import (
    ProgressStore,
    KeyValueBackend,
    MemoryBackend,
    SQLiteBackend,
    ChangeNotifier,
    DEFAULT_PROGRESS_DIR,
    DEFAULT_PROGRESS_DB,
    PROGRESS_KEY,
    SYNC_STATUS_KEY,
    ONBOARDING_KEY,
)

from .progress import (
    ProgressionEngine,
    QUIZ_XP_RATE,
    quiz_xp,
)

from .quiz import (
    QuizSession,
    QuizInProgress,
    QuizFinished,
    AnswerFeedback,
    PASSING_PERCENT,
)

from .lesson import (
    LessonSession,
    LessonMode,
    LessonOutcome,
)

from .navigator import (
    GatingResolver,
    LessonAvailability,
    NavigationLesson,
    NavigationUnit,
)

__all__ = [
    # Catalog
    "ContentGraph",
    "CatalogError",
    # Storage
    "ProgressStore",
    "KeyValueBackend",
    "MemoryBackend",
    "SQLiteBackend",
    "ChangeNotifier",
    "DEFAULT_PROGRESS_DIR",
    "DEFAULT_PROGRESS_DB",
    "PROGRESS_KEY",
    "SYNC_STATUS_KEY",
    "ONBOARDING_KEY",
    # Progress
    "ProgressionEngine",
    "QUIZ_XP_RATE",
    "quiz_xp",
    # Quiz
    "QuizSession",
    "QuizInProgress",
    "QuizFinished",
    "AnswerFeedback",
    "PASSING_PERCENT",
    # Lesson
    "LessonSession",
    "LessonMode",
    "LessonOutcome",
    # Navigator
    "GatingResolver",
    "LessonAvailability",
    "NavigationLesson",
    "NavigationUnit",
]
