"""
LessonSession - Walk a lesson's content, take its quiz, record completion.

Modes:
- viewing: stepping through content items
- quiz: a QuizSession is in control
- complete: terminal; progression has been recorded
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from stemtutor.schemas import ContentItem, Lesson, Quiz

from .progress import ProgressionEngine
from .quiz import QuizFinished, QuizSession


class LessonMode(str, Enum):
    VIEWING = "viewing"
    QUIZ = "quiz"
    COMPLETE = "complete"


@dataclass(frozen=True)
class LessonOutcome:
    """What finishing the lesson changed for the learner."""
    lesson_id: str
    newly_completed: bool
    xp_earned: int
    quiz_result: Optional[QuizFinished] = None


class LessonSession:
    """
    State machine for one pass through a lesson.

    viewing(content_index) -> [quiz] -> complete

    Completing records progression through the engine: the quiz score
    first (if any), then the lesson. A completed session is terminal;
    revisiting a lesson means a new session, and re-completion is a no-op.
    """

    def __init__(self, lesson: Lesson, engine: ProgressionEngine, quiz: Optional[Quiz] = None):
        self.lesson = lesson
        self.engine = engine
        self.quiz = quiz
        self.mode = LessonMode.VIEWING
        self.content_index = 0
        self.quiz_session: Optional[QuizSession] = None
        self.outcome: Optional[LessonOutcome] = None

    @property
    def current_content(self) -> Optional[ContentItem]:
        if self.mode != LessonMode.VIEWING:
            return None
        return self.lesson.content[self.content_index]

    @property
    def is_last_content(self) -> bool:
        return self.content_index == len(self.lesson.content) - 1

    @property
    def is_complete(self) -> bool:
        return self.mode == LessonMode.COMPLETE

    @property
    def progress_fraction(self) -> float:
        """Share of content items reached (0.0-1.0)."""
        if self.mode != LessonMode.VIEWING:
            return 1.0
        return (self.content_index + 1) / len(self.lesson.content)

    # -------------------------------------------------------------------------
    # Navigation
    # -------------------------------------------------------------------------

    def advance(self) -> LessonMode:
        """
        Step forward.

        Moves to the next content item; after the last one, starts the quiz
        if the lesson has one, otherwise completes the lesson. Ignored
        outside viewing mode (the quiz drives itself).
        """
        if self.mode != LessonMode.VIEWING:
            return self.mode

        if not self.is_last_content:
            self.content_index += 1
        elif self.quiz is not None:
            self.mode = LessonMode.QUIZ
            self.quiz_session = QuizSession(self.quiz, on_finish=self._on_quiz_finished)
        else:
            self._complete()
        return self.mode

    def back(self) -> LessonMode:
        """
        Step backward.

        In viewing mode, returns to the previous content item. In quiz mode,
        abandons the attempt and returns to the last content item.
        """
        if self.mode == LessonMode.VIEWING:
            if self.content_index > 0:
                self.content_index -= 1
        elif self.mode == LessonMode.QUIZ:
            self.quiz_session = None
            self.mode = LessonMode.VIEWING
            self.content_index = len(self.lesson.content) - 1
        return self.mode

    # -------------------------------------------------------------------------
    # Completion
    # -------------------------------------------------------------------------

    def _on_quiz_finished(self, result: QuizFinished):
        xp_before = self.engine.get_progress().xp
        self.engine.record_quiz_score(self.quiz.id, result.percent)
        self._complete(quiz_result=result, xp_before=xp_before)

    def _complete(self, quiz_result: Optional[QuizFinished] = None, xp_before: Optional[int] = None):
        if xp_before is None:
            xp_before = self.engine.get_progress().xp
        newly_completed = self.engine.complete_lesson(self.lesson.id, self.lesson.xp_reward)
        xp_after = self.engine.get_progress().xp

        self.outcome = LessonOutcome(
            lesson_id=self.lesson.id,
            newly_completed=newly_completed,
            xp_earned=xp_after - xp_before,
            quiz_result=quiz_result,
        )
        self.mode = LessonMode.COMPLETE
