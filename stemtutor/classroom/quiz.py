"""
QuizSession - One attempt at a lesson quiz.

Provides:
- Question sequencing
- Single-selection answer scoring with feedback
- Final score, percent and pass/fail
"""

import math
from dataclasses import dataclass
from typing import Callable, Optional, Union

from stemtutor.schemas import Quiz, QuizQuestion


PASSING_PERCENT = 70


@dataclass(frozen=True)
class AnswerFeedback:
    """Result of selecting an answer for the current question."""
    question_id: str
    selected_index: int
    correct_index: int
    is_correct: bool
    explanation: str


@dataclass(frozen=True)
class QuizInProgress:
    question_index: int
    selected_answer: Optional[int]
    correct_count: int


@dataclass(frozen=True)
class QuizFinished:
    score: int
    total: int

    @property
    def percent(self) -> int:
        """Rounded percent correct; an empty quiz counts as 100."""
        if self.total == 0:
            return 100
        # half-up, so 1 of 8 is 13
        return math.floor(self.score / self.total * 100 + 0.5)

    @property
    def passed(self) -> bool:
        return self.percent >= PASSING_PERCENT


QuizState = Union[QuizInProgress, QuizFinished]


class QuizSession:
    """
    State machine for a single quiz attempt.

    InProgress(question_index, selected_answer, correct_count) -> Finished(score, total)

    Each question accepts one answer. advance() moves on only after the
    current question has been answered.
    """

    def __init__(self, quiz: Quiz, on_finish: Optional[Callable[[QuizFinished], None]] = None):
        """
        Start an attempt.

        Args:
            quiz: Quiz to take
            on_finish: Called once with the result when the attempt finishes
        """
        self.quiz = quiz
        self.on_finish = on_finish
        self.question_index = 0
        self.selected_answer: Optional[int] = None
        self.correct_count = 0
        self.result: Optional[QuizFinished] = None

        if not quiz.questions:
            self._finish()

    @property
    def total(self) -> int:
        return len(self.quiz.questions)

    @property
    def is_finished(self) -> bool:
        return self.result is not None

    @property
    def state(self) -> QuizState:
        if self.result is not None:
            return self.result
        return QuizInProgress(
            question_index=self.question_index,
            selected_answer=self.selected_answer,
            correct_count=self.correct_count,
        )

    @property
    def current_question(self) -> Optional[QuizQuestion]:
        if self.is_finished:
            return None
        return self.quiz.questions[self.question_index]

    @property
    def is_answered(self) -> bool:
        return self.selected_answer is not None

    @property
    def progress_fraction(self) -> float:
        """Share of questions answered so far (0.0-1.0)."""
        if self.is_finished:
            return 1.0
        answered = self.question_index + (1 if self.is_answered else 0)
        return answered / self.total

    def select_answer(self, index: int) -> Optional[AnswerFeedback]:
        """
        Answer the current question.

        Ignored (returns None) once the question has an answer or the quiz
        is finished. An index outside the options counts as incorrect.
        """
        question = self.current_question
        if question is None or self.is_answered:
            return None

        self.selected_answer = index
        is_correct = index == question.correct_index
        if is_correct:
            self.correct_count += 1

        return AnswerFeedback(
            question_id=question.id,
            selected_index=index,
            correct_index=question.correct_index,
            is_correct=is_correct,
            explanation=question.explanation,
        )

    def advance(self) -> QuizState:
        """Move to the next question, or finish after the last one."""
        if self.is_finished or not self.is_answered:
            return self.state

        if self.question_index < self.total - 1:
            self.question_index += 1
            self.selected_answer = None
        else:
            self._finish()
        return self.state

    def _finish(self):
        self.result = QuizFinished(score=self.correct_count, total=self.total)
        if self.on_finish:
            self.on_finish(self.result)
