"""
Quiz Models
Pydantic models for generated questions, stored quizzes, and the test generation API
FILE: edu_portal/models/quiz.py
"""
from datetime import datetime, timezone
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

QuestionType = Literal["mcq", "true_false", "short_answer"]
Difficulty = Literal["easy", "medium", "hard", "mixed"]

TRUE_FALSE_OPTIONS = ["True", "False"]


class Question(BaseModel):
    """A validated question produced from model output"""
    question_text: str
    question_type: QuestionType
    options: Optional[List[str]] = None
    correct_answer: str
    explanation: Optional[str] = None
    points: int = Field(1, ge=1)

    class Config:
        json_schema_extra = {
            "example": {
                "question_text": "Which law states that F = ma?",
                "question_type": "mcq",
                "options": ["First law", "Second law", "Third law", "Law of gravitation"],
                "correct_answer": "Second law",
                "explanation": "Newton's second law relates force, mass and acceleration.",
                "points": 1
            }
        }


class QuestionSet(BaseModel):
    """Validated, ordered questions plus how many were asked for and dropped"""
    questions: List[Question]
    requested_count: int
    dropped_count: int = 0

    @property
    def generated_count(self) -> int:
        return len(self.questions)

    @property
    def count_mismatch(self) -> bool:
        return self.generated_count != self.requested_count


class Quiz(BaseModel):
    """Stored quiz document. Owns its QuizQuestion rows."""
    id: str
    chapter_id: str
    title: str
    description: Optional[str] = None
    time_limit_minutes: Optional[int] = None
    is_published: bool = True
    created_by: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class QuizQuestion(Question):
    """Stored question row; order_index is 0-based and contiguous within a quiz"""
    id: str
    quiz_id: str
    order_index: int = Field(..., ge=0)


class QuizWithQuestions(BaseModel):
    quiz: Quiz
    questions: List[QuizQuestion]


# ==================== API REQUEST/RESPONSE MODELS ====================

class GenerateTestRequest(BaseModel):
    """Request model for AI test generation"""
    chapterId: str = Field(..., min_length=1, description="Chapter to generate the test for")
    title: Optional[str] = Field(None, description="Defaults to '<chapter> - Practice Test'")
    numQuestions: int = Field(10, ge=1, le=50)
    difficulty: Difficulty = "medium"
    questionTypes: List[QuestionType] = Field(
        default_factory=lambda: ["mcq", "short_answer"],
        min_length=1
    )

    class Config:
        json_schema_extra = {
            "example": {
                "chapterId": "0b6c1c4e-6f1e-4d83-9f0a-7a0c2b8d1e11",
                "numQuestions": 5,
                "difficulty": "medium",
                "questionTypes": ["mcq", "true_false"]
            }
        }


class GenerateTestResponse(BaseModel):
    questions: List[Question]
    quizId: Optional[str] = None
    saved: bool = False
    provider: str
    requestedCount: int
    generatedCount: int


class QuizListItem(BaseModel):
    quizId: str
    chapterId: str
    title: str
    timeLimitMinutes: Optional[int] = None
    createdAt: datetime


class PurgeResult(BaseModel):
    chapterId: str
    purged: int = Field(..., ge=0, description="Incomplete quizzes removed")
