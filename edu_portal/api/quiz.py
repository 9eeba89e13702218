"""
Quiz API Routes
FastAPI endpoints for AI test generation and saved quizzes
FILE: edu_portal/api/quiz.py
"""
from fastapi import APIRouter, Depends, Path
from typing import List, Optional
import logging

from edu_portal.api.deps import get_caller_id, get_quiz_service
from edu_portal.models.content import ChapterContentStatus
from edu_portal.models.quiz import (
    GenerateTestRequest,
    GenerateTestResponse,
    PurgeResult,
    QuizListItem,
    QuizWithQuestions,
)
from edu_portal.services.quiz_service import QuizService

logger = logging.getLogger(__name__)

router = APIRouter()


# ==================== GENERATION ====================

@router.post(
    "/generate-test",
    response_model=GenerateTestResponse,
    summary="Generate a chapter test",
    description="""
    Generate exam questions from a chapter's study material.

    ## Workflow:
    1. Assemble chapter content (training documents, syllabus, description)
    2. Ask the AI providers in fixed order until one returns valid questions
    3. Save the questions as a new quiz when `X-User-Id` is present

    Malformed questions are dropped, so `generatedCount` may be lower than
    `requestedCount`.
    """
)
async def generate_test(
    request: GenerateTestRequest,
    caller_id: Optional[str] = Depends(get_caller_id),
    service: QuizService = Depends(get_quiz_service)
):
    return await service.generate_test(request, user_id=caller_id)


# ==================== RETRIEVAL ====================

@router.get(
    "/chapters/{chapter_id}/quizzes",
    response_model=List[QuizListItem],
    summary="List playable quizzes for a chapter"
)
async def list_chapter_quizzes(
    chapter_id: str = Path(..., description="Chapter ID"),
    service: QuizService = Depends(get_quiz_service)
):
    return await service.list_quizzes(chapter_id)


@router.delete(
    "/chapters/{chapter_id}/quizzes/incomplete",
    response_model=PurgeResult,
    summary="Remove quizzes left without questions by an interrupted save"
)
async def purge_incomplete_quizzes(
    chapter_id: str = Path(..., description="Chapter ID"),
    service: QuizService = Depends(get_quiz_service)
):
    purged = await service.purge_incomplete(chapter_id)
    return PurgeResult(chapterId=chapter_id, purged=purged)


@router.get(
    "/quizzes/{quiz_id}",
    response_model=QuizWithQuestions,
    summary="Get a quiz with its questions"
)
async def get_quiz(
    quiz_id: str = Path(..., description="Quiz ID"),
    service: QuizService = Depends(get_quiz_service)
):
    return await service.get_quiz(quiz_id)


@router.get(
    "/subjects/{subject_id}/content-status",
    response_model=List[ChapterContentStatus],
    summary="Which chapters have content to generate tests from"
)
async def content_status(
    subject_id: str = Path(..., description="Subject ID"),
    service: QuizService = Depends(get_quiz_service)
):
    return await service.content_status(subject_id)
