"""
Progress tracking schemas for STEM Tutor.

Defines Pydantic models for learner state including:
- The persisted learner progress record
- Sync status bookkeeping

Field aliases give the camelCase shape used in storage.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional
from datetime import date, datetime


class LearnerProgress(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    current_language: str = Field(default="en", alias="currentLanguage")
    selected_subjects: list[str] = Field(default_factory=list, alias="selectedSubjects")
    xp: int = Field(default=0, ge=0)
    streak: int = Field(default=0, ge=0)
    last_active_date: date = Field(default_factory=date.today, alias="lastActiveDate")
    completed_lessons: list[str] = Field(default_factory=list, alias="completedLessons")
    quiz_scores: dict[str, int] = Field(default_factory=dict, alias="quizScores")
    units_progress: dict[str, int] = Field(default_factory=dict, alias="unitsProgress")

    @field_validator("completed_lessons", "selected_subjects")
    @classmethod
    def drop_duplicates(cls, v):
        # keep first-seen order
        return list(dict.fromkeys(v))

    @field_validator("quiz_scores", "units_progress")
    @classmethod
    def percents_in_range(cls, v):
        for key, value in v.items():
            if not 0 <= value <= 100:
                raise ValueError(f"{key}: percent must be within 0-100, got {value}")
        return v

    def to_storage(self) -> dict:
        """Serialize to the camelCase JSON-ready shape."""
        return self.model_dump(mode="json", by_alias=True)


class SyncStatus(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    last_synced: Optional[datetime] = Field(default=None, alias="lastSynced")
    pending_changes: bool = Field(default=False, alias="pendingChanges")
    is_online: bool = Field(default=True, alias="isOnline")

    def to_storage(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)
