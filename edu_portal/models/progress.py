"""
Progress Models
Chapter progress, quiz attempts and the request/response models that drive them
FILE: edu_portal/models/progress.py
"""
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, model_validator


class ProgressRecord(BaseModel):
    """
    Per (user, chapter) progress.
    progress_percentage never decreases, time_spent_seconds only grows,
    completed_at is stamped once when the percentage first reaches 100.
    """
    id: str
    user_id: str
    chapter_id: str
    progress_percentage: int = Field(0, ge=0, le=100)
    time_spent_seconds: int = Field(0, ge=0)
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def state(self) -> str:
        if self.progress_percentage >= 100:
            return "completed"
        if self.progress_percentage > 0:
            return "in_progress"
        return "not_started"


class AttemptRecord(BaseModel):
    """At most one record per (user, quiz) has completed_at = None"""
    id: str
    user_id: str
    quiz_id: str
    score: int = Field(..., ge=0)
    max_score: int = Field(..., ge=0)
    answers: Any = None
    started_at: datetime
    completed_at: Optional[datetime] = None

    @property
    def is_open(self) -> bool:
        return self.completed_at is None


class ProgressUpdateRequest(BaseModel):
    chapterId: str = Field(..., min_length=1)
    progressPercentage: int = Field(..., ge=0, le=100)
    timeSpentSeconds: int = Field(0, ge=0)


class SaveAttemptRequest(BaseModel):
    quizId: str = Field(..., min_length=1)
    score: int = Field(..., ge=0)
    maxScore: int = Field(..., ge=0)
    answers: Any = None
    completed: bool = False

    @model_validator(mode="after")
    def score_within_max(self):
        if self.score > self.maxScore:
            raise ValueError("score cannot exceed maxScore")
        return self

    class Config:
        json_schema_extra = {
            "example": {
                "quizId": "5d0f8a7e-2c1b-4c0e-8d53-0b7f6a1c9e42",
                "score": 8,
                "maxScore": 10,
                "answers": {"0": "Second law", "1": "True"},
                "completed": True
            }
        }


class StudentStats(BaseModel):
    testsCompleted: int = 0
    studyHours: int = 0
    avgScore: int = Field(0, description="Average percentage over completed attempts")
    chaptersCompleted: int = 0
    coursesActive: int = Field(0, description="Subjects started but not finished")
    overallProgress: int = Field(0, description="Mean subject progress percentage")


class SubjectProgress(BaseModel):
    """Chapter completion rolled up per subject"""
    subjectId: str
    name: str
    board: Optional[str] = None
    classLevel: Optional[int] = None
    totalChapters: int = 0
    completedChapters: int = 0
    progressPercentage: int = Field(0, ge=0, le=100)
