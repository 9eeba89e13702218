"""
Progress API Routes
Chapter progress, quiz attempts and dashboard stats
FILE: edu_portal/api/progress.py
"""
from fastapi import APIRouter, Depends
from typing import List
import logging

from edu_portal.api.deps import get_progress_tracker, require_caller_id
from edu_portal.models.progress import (
    AttemptRecord,
    ProgressRecord,
    ProgressUpdateRequest,
    SaveAttemptRequest,
    StudentStats,
    SubjectProgress,
)
from edu_portal.services.progress_service import ProgressTracker

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/progress", response_model=ProgressRecord, summary="Record chapter progress")
async def update_progress(
    request: ProgressUpdateRequest,
    user_id: str = Depends(require_caller_id),
    tracker: ProgressTracker = Depends(get_progress_tracker)
):
    return await tracker.update_progress(
        user_id,
        request.chapterId,
        request.progressPercentage,
        request.timeSpentSeconds
    )


@router.get("/progress/stats", response_model=StudentStats, summary="Dashboard statistics")
async def get_stats(
    user_id: str = Depends(require_caller_id),
    tracker: ProgressTracker = Depends(get_progress_tracker)
):
    return await tracker.get_stats(user_id)


@router.get(
    "/progress/subjects",
    response_model=List[SubjectProgress],
    summary="Chapter completion per subject"
)
async def get_subject_progress(
    user_id: str = Depends(require_caller_id),
    tracker: ProgressTracker = Depends(get_progress_tracker)
):
    return await tracker.get_subject_progress(user_id)


@router.post("/quiz-attempts", response_model=AttemptRecord, summary="Save a quiz attempt")
async def save_attempt(
    request: SaveAttemptRequest,
    user_id: str = Depends(require_caller_id),
    tracker: ProgressTracker = Depends(get_progress_tracker)
):
    logger.info(f"📝 Saving attempt for quiz {request.quizId} (completed={request.completed})")
    return await tracker.save_attempt(
        user_id,
        request.quizId,
        score=request.score,
        max_score=request.maxScore,
        answers=request.answers,
        completed=request.completed
    )


@router.get(
    "/quiz-attempts/open",
    response_model=List[AttemptRecord],
    summary="Attempts that can be resumed"
)
async def list_open_attempts(
    user_id: str = Depends(require_caller_id),
    tracker: ProgressTracker = Depends(get_progress_tracker)
):
    return await tracker.list_open_attempts(user_id)
