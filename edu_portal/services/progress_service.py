"""
Progress Service
Chapter progress and quiz attempt tracking
FILE: edu_portal/services/progress_service.py
"""
import logging
import math
import uuid
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any, List

from motor.motor_asyncio import AsyncIOMotorDatabase

from edu_portal.db.content_store import ContentStore
from edu_portal.models.progress import AttemptRecord, ProgressRecord, StudentStats, SubjectProgress

logger = logging.getLogger(__name__)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class ProgressTracker:
    """
    Records chapter progress and quiz attempts.

    Every write is a single-document atomic operation. Concurrent writers
    are last-writer-wins for scores, while the progress percentage is held
    by a monotonic floor ($max) and time spent only accumulates ($inc).
    Driver errors propagate to the caller.
    """

    ATTEMPTS = "quiz_attempts"
    PROGRESS = "student_progress"

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db

    @property
    def attempts(self):
        return self.db[self.ATTEMPTS]

    @property
    def progress(self):
        return self.db[self.PROGRESS]

    # ==================== CHAPTER PROGRESS ====================

    async def update_progress(
        self,
        user_id: str,
        chapter_id: str,
        progress_percentage: int,
        time_spent_seconds: int = 0
    ) -> ProgressRecord:
        """
        Record progress on a chapter

        Args:
            user_id: Student identity
            chapter_id: Chapter being studied
            progress_percentage: Reported percentage (0-100); lower values never
                overwrite a higher stored one
            time_spent_seconds: Time to add to the running total

        Returns:
            The stored ProgressRecord after the update
        """
        now = datetime.now(timezone.utc)
        key = {"user_id": user_id, "chapter_id": chapter_id}

        await self.progress.update_one(
            key,
            {
                "$max": {"progress_percentage": progress_percentage},
                "$inc": {"time_spent_seconds": time_spent_seconds},
                "$set": {"updated_at": now},
                "$setOnInsert": {
                    "id": str(uuid.uuid4()),
                    "created_at": now,
                    "completed_at": None,
                },
            },
            upsert=True
        )

        # Stamped once, the first time the stored value reaches 100
        stamped = await self.progress.update_one(
            {**key, "completed_at": None, "progress_percentage": {"$gte": 100}},
            {"$set": {"completed_at": now}}
        )
        if stamped.modified_count:
            logger.info(f"🏁 Chapter {chapter_id} completed by {user_id}")

        doc = await self.progress.find_one(key)
        doc.pop("_id", None)
        record = ProgressRecord(**doc)

        logger.info(
            f"📈 Progress for {user_id} on {chapter_id}: "
            f"{record.progress_percentage}% ({record.time_spent_seconds}s total)"
        )
        return record

    async def list_progress(self, user_id: str) -> List[ProgressRecord]:
        records = []
        async for doc in self.progress.find({"user_id": user_id}):
            doc.pop("_id", None)
            records.append(ProgressRecord(**doc))
        return records

    # ==================== QUIZ ATTEMPTS ====================

    async def save_attempt(
        self,
        user_id: str,
        quiz_id: str,
        score: int,
        max_score: int,
        answers: Any = None,
        completed: bool = False
    ) -> AttemptRecord:
        """
        Save a quiz attempt, resuming the open one if it exists

        The open attempt (completed_at is null) for (user, quiz) is updated in
        place; otherwise a new attempt is inserted. completed=True stamps
        completed_at, after which the attempt is never modified again and the
        next call opens a fresh one.

        Returns:
            The stored AttemptRecord
        """
        now = datetime.now(timezone.utc)
        fields = {
            "score": score,
            "max_score": max_score,
            "answers": answers,
            "completed_at": now if completed else None,
        }

        existing = await self.attempts.find_one(
            {"user_id": user_id, "quiz_id": quiz_id, "completed_at": None}
        )

        if existing:
            # Guarded so a concurrently completed attempt is left untouched
            result = await self.attempts.update_one(
                {"id": existing["id"], "completed_at": None},
                {"$set": fields}
            )
            if result.matched_count:
                doc = await self.attempts.find_one({"id": existing["id"]})
                doc.pop("_id", None)
                logger.info(f"💾 Attempt {existing['id']} updated (completed={completed})")
                return AttemptRecord(**doc)

            logger.warning(f"⚠️ Attempt {existing['id']} was completed concurrently, opening a new one")

        record = AttemptRecord(
            id=str(uuid.uuid4()),
            user_id=user_id,
            quiz_id=quiz_id,
            started_at=now,
            **fields
        )
        await self.attempts.insert_one(record.model_dump())

        logger.info(f"💾 Attempt {record.id} created for quiz {quiz_id} (completed={completed})")
        return record

    async def list_open_attempts(self, user_id: str) -> List[AttemptRecord]:
        """Attempts the student can resume, newest first"""
        cursor = self.attempts.find(
            {"user_id": user_id, "completed_at": None}
        ).sort("started_at", -1)

        records = []
        async for doc in cursor:
            doc.pop("_id", None)
            records.append(AttemptRecord(**doc))
        return records

    # ==================== SUBJECTS ====================

    async def get_subject_progress(self, user_id: str) -> List[SubjectProgress]:
        """
        Per-subject completion for a student

        A chapter counts as completed once its stored percentage reaches 100.
        progressPercentage is the rounded share of completed chapters, 0 for a
        subject without chapters.
        """
        completed_ids = {
            doc["chapter_id"]
            async for doc in self.progress.find(
                {"user_id": user_id, "progress_percentage": {"$gte": 100}},
                {"chapter_id": 1}
            )
        }

        chapters_by_subject = defaultdict(list)
        async for chapter in self.db[ContentStore.CHAPTERS].find({}, {"id": 1, "subject_id": 1}):
            chapters_by_subject[chapter.get("subject_id")].append(chapter["id"])

        subjects = []
        async for subject in self.db[ContentStore.SUBJECTS].find({}).sort("name", 1):
            chapter_ids = chapters_by_subject.get(subject["id"], [])
            done = sum(1 for chapter_id in chapter_ids if chapter_id in completed_ids)
            subjects.append(SubjectProgress(
                subjectId=subject["id"],
                name=subject.get("name", ""),
                board=subject.get("board"),
                classLevel=subject.get("class_level"),
                totalChapters=len(chapter_ids),
                completedChapters=done,
                progressPercentage=_round_half_up(done / len(chapter_ids) * 100) if chapter_ids else 0,
            ))
        return subjects

    # ==================== STATS ====================

    async def get_stats(self, user_id: str) -> StudentStats:
        """
        Dashboard statistics for a student

        avgScore is the rounded mean percentage over completed attempts;
        studyHours is the rounded total of time spent across chapters.
        coursesActive counts subjects strictly between 0% and 100%, and
        overallProgress is the rounded mean of the subject percentages.
        """
        completed = await self.attempts.find(
            {"user_id": user_id, "completed_at": {"$ne": None}}
        ).to_list(length=None)
        progress = await self.list_progress(user_id)
        subjects = await self.get_subject_progress(user_id)

        percentages = [
            (a["score"] / a["max_score"]) * 100 if a.get("max_score") else 0.0
            for a in completed
        ]
        avg_score = _round_half_up(sum(percentages) / len(percentages)) if percentages else 0
        total_seconds = sum(p.time_spent_seconds for p in progress)
        subject_percentages = [s.progressPercentage for s in subjects]

        return StudentStats(
            testsCompleted=len(completed),
            studyHours=_round_half_up(total_seconds / 3600),
            avgScore=avg_score,
            chaptersCompleted=sum(1 for p in progress if p.completed_at is not None),
            coursesActive=sum(1 for pct in subject_percentages if 0 < pct < 100),
            overallProgress=(
                _round_half_up(sum(subject_percentages) / len(subject_percentages))
                if subject_percentages else 0
            ),
        )
