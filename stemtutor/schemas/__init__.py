"""
STEM Tutor Schemas - Pydantic models for the lesson platform.

This module exports all schema classes for:
- Content: subjects, units, lessons, quizzes, catalog files
- Progress: learner progress record and sync status
"""

# Content schemas
from .content import (
    Subject,
    Unit,
    ContentType,
    ContentItem,
    Lesson,
    QuizQuestion,
    Quiz,
    Catalog,
)

# Progress schemas
from .progress import (
    LearnerProgress,
    SyncStatus,
)

__all__ = [
    # Content
    'Subject',
    'Unit',
    'ContentType',
    'ContentItem',
    'Lesson',
    'QuizQuestion',
    'Quiz',
    'Catalog',
    # Progress
    'LearnerProgress',
    'SyncStatus',
]
