"""
Content catalog schemas for STEM Tutor.

Defines Pydantic models for the static content catalog:
- Subjects and units
- Lessons with ordered content items
- Multiple-choice quizzes attached to lessons
"""

from pydantic import BaseModel, Field, model_validator
from typing import Literal, Optional


# -----------------------------------------------------------------------------
# Subjects and units
# -----------------------------------------------------------------------------


class Subject(BaseModel):
    id: str
    name: str
    description: str = ""
    icon: Optional[str] = None
    units_count: Optional[int] = Field(default=None, ge=0)  # declared, may exceed catalogued units


class Unit(BaseModel):
    id: str
    subject_id: str
    name: str
    description: str = ""
    icon: Optional[str] = None
    order: int  # unlock sequence within the subject
    lessons_count: Optional[int] = Field(default=None, ge=0)


# -----------------------------------------------------------------------------
# Lessons
# -----------------------------------------------------------------------------

ContentType = Literal["text", "image", "example", "formula", "tip"]


class ContentItem(BaseModel):
    """One card of lesson content, shown in order."""
    type: ContentType = "text"
    content: str


class Lesson(BaseModel):
    id: str
    unit_id: str
    title: str
    description: str = ""
    order: int  # unlock sequence within the unit
    xp_reward: int = Field(..., ge=0)
    duration: Optional[str] = None  # display string, e.g. "5 min"
    content: list[ContentItem] = Field(..., min_length=1)


# -----------------------------------------------------------------------------
# Quizzes
# -----------------------------------------------------------------------------


class QuizQuestion(BaseModel):
    id: str
    question: str
    options: list[str] = Field(..., min_length=2)
    correct_index: int = Field(..., ge=0)
    explanation: str = ""

    @model_validator(mode="after")
    def correct_index_in_options(self):
        if self.correct_index >= len(self.options):
            raise ValueError(
                f"correct_index {self.correct_index} out of range for {len(self.options)} options"
            )
        return self


class Quiz(BaseModel):
    id: str
    lesson_id: str
    questions: list[QuizQuestion] = []


# -----------------------------------------------------------------------------
# Catalog file
# -----------------------------------------------------------------------------


class Catalog(BaseModel):
    """Everything a catalog file declares, before integrity checks."""
    subjects: list[Subject] = []
    units: list[Unit] = []
    lessons: list[Lesson] = []
    quizzes: list[Quiz] = []
    meta: dict = {}  # version, locale, etc.
