"""Shared fixtures for STEM Tutor tests."""

from datetime import date, timedelta

import pytest

from stemtutor.classroom import (
    ContentGraph,
    GatingResolver,
    MemoryBackend,
    ProgressStore,
    ProgressionEngine,
)
from stemtutor.schemas import Catalog


class FakeClock:
    """Controllable 'today' for streak tests."""

    def __init__(self, today: date = date(2024, 3, 10)):
        self.today = today

    def __call__(self) -> date:
        return self.today

    def advance(self, days: int = 1):
        self.today += timedelta(days=days)


def make_lesson(lesson_id, unit_id, order, xp_reward=10, items=2):
    return {
        "id": lesson_id,
        "unit_id": unit_id,
        "title": lesson_id.title(),
        "order": order,
        "xp_reward": xp_reward,
        "content": [{"type": "text", "content": f"{lesson_id} part {i}"} for i in range(items)],
    }


def make_question(question_id, correct_index=0):
    return {
        "id": question_id,
        "question": f"Question {question_id}?",
        "options": ["a", "b", "c"],
        "correct_index": correct_index,
        "explanation": f"Because {question_id}",
    }


CATALOG_DATA = {
    "subjects": [
        {"id": "math", "name": "Mathematics"},
        {"id": "physics", "name": "Physics"},
    ],
    "units": [
        # listed out of order on purpose
        {"id": "math-u2", "subject_id": "math", "name": "Unit Two", "order": 2},
        {"id": "math-u1", "subject_id": "math", "name": "Unit One", "order": 1},
        {"id": "math-u3", "subject_id": "math", "name": "Unit Three", "order": 3},
        {"id": "phys-u1", "subject_id": "physics", "name": "Motion", "order": 1},
    ],
    "lessons": [
        make_lesson("l1", "math-u1", 1, xp_reward=15),
        make_lesson("l3", "math-u1", 3, xp_reward=20),
        make_lesson("l2", "math-u1", 2, xp_reward=15),
        make_lesson("l4", "math-u2", 1, xp_reward=20),
        make_lesson("l5", "math-u2", 2, xp_reward=25),
        make_lesson("p1", "phys-u1", 1, xp_reward=10),
    ],
    "quizzes": [
        {
            "id": "quiz-l1",
            "lesson_id": "l1",
            "questions": [make_question("q1", 1), make_question("q2", 2), make_question("q3", 0)],
        },
    ],
}


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def graph():
    return ContentGraph(Catalog.model_validate(CATALOG_DATA))


@pytest.fixture
def backend():
    return MemoryBackend()


@pytest.fixture
def store(backend, clock):
    return ProgressStore(backend, clock=clock)


@pytest.fixture
def engine(store, graph):
    return ProgressionEngine(store, graph)


@pytest.fixture
def resolver(graph, store):
    return GatingResolver(graph, store)
