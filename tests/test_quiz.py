"""
QuizSession state machine tests.
"""

from stemtutor.classroom import QuizFinished, QuizInProgress, QuizSession
from stemtutor.schemas import Quiz, QuizQuestion


def make_quiz(correct_indices):
    return Quiz(
        id="quiz-test",
        lesson_id="l1",
        questions=[
            QuizQuestion(
                id=f"q{i}",
                question=f"Question {i}?",
                options=["a", "b", "c", "d"],
                correct_index=correct,
                explanation=f"Answer is {correct}",
            )
            for i, correct in enumerate(correct_indices)
        ],
    )


def answer_all(session, answers):
    for answer in answers:
        session.select_answer(answer)
        session.advance()


class TestQuizFlow:

    def test_initial_state(self):
        session = QuizSession(make_quiz([0, 1, 2]))
        assert session.state == QuizInProgress(question_index=0, selected_answer=None, correct_count=0)
        assert session.current_question.id == "q0"
        assert session.progress_fraction == 0.0

    def test_two_of_three_correct(self):
        session = QuizSession(make_quiz([0, 1, 2]))
        answer_all(session, [0, 1, 3])
        assert session.state == QuizFinished(score=2, total=3)
        assert session.state.percent == 67
        assert session.state.passed is False

    def test_last_answer_counted_once(self):
        session = QuizSession(make_quiz([1, 1]))
        answer_all(session, [1, 1])
        assert session.state == QuizFinished(score=2, total=2)
        assert session.state.percent == 100
        assert session.state.passed is True

    def test_advance_clears_selection(self):
        session = QuizSession(make_quiz([0, 1]))
        session.select_answer(0)
        state = session.advance()
        assert state == QuizInProgress(question_index=1, selected_answer=None, correct_count=1)

    def test_advance_requires_answer(self):
        session = QuizSession(make_quiz([0, 1]))
        state = session.advance()
        assert state.question_index == 0
        assert session.current_question.id == "q0"

    def test_progress_fraction(self):
        session = QuizSession(make_quiz([0, 1]))
        session.select_answer(0)
        assert session.progress_fraction == 0.5
        session.advance()
        assert session.progress_fraction == 0.5


class TestAnswerSelection:

    def test_feedback(self):
        session = QuizSession(make_quiz([2]))
        feedback = session.select_answer(1)
        assert feedback.is_correct is False
        assert feedback.selected_index == 1
        assert feedback.correct_index == 2
        assert feedback.explanation == "Answer is 2"

    def test_repeat_selection_ignored(self):
        session = QuizSession(make_quiz([0, 0]))
        session.select_answer(0)
        assert session.select_answer(0) is None
        assert session.select_answer(3) is None
        assert session.state.correct_count == 1
        assert session.state.selected_answer == 0

    def test_out_of_range_answer_is_wrong(self):
        session = QuizSession(make_quiz([0]))
        feedback = session.select_answer(9)
        assert feedback.is_correct is False
        session.advance()
        assert session.state == QuizFinished(score=0, total=1)

    def test_no_answers_after_finish(self):
        session = QuizSession(make_quiz([0]))
        answer_all(session, [0])
        assert session.select_answer(0) is None
        assert session.current_question is None
        assert session.advance() == QuizFinished(score=1, total=1)


class TestFinish:

    def test_on_finish_called_once(self):
        results = []
        session = QuizSession(make_quiz([0, 0]), on_finish=results.append)
        answer_all(session, [0, 1])
        session.advance()
        assert results == [QuizFinished(score=1, total=2)]

    def test_empty_quiz_finishes_immediately(self):
        results = []
        session = QuizSession(Quiz(id="empty", lesson_id="l1"), on_finish=results.append)
        assert session.is_finished
        assert session.state == QuizFinished(score=0, total=0)
        assert session.state.percent == 100
        assert results == [QuizFinished(score=0, total=0)]

    def test_passing_threshold(self):
        assert QuizFinished(score=7, total=10).passed is True
        assert QuizFinished(score=69, total=100).passed is False
        assert QuizFinished(score=0, total=3).percent == 0

    def test_percent_rounds_half_up(self):
        assert QuizFinished(score=1, total=8).percent == 13
