"""
Quiz Database Operations
MongoDB persistence for generated quizzes and their question rows
FILE: edu_portal/db/quiz_db.py
"""
from typing import List, Optional, Dict, Any
import logging
import uuid

from motor.motor_asyncio import AsyncIOMotorDatabase

from edu_portal.core.exceptions import IncompleteQuiz, QuizNotFound, QuizWriteInterrupted
from edu_portal.models.quiz import Quiz, QuizQuestion, QuizWithQuestions, QuestionSet

logger = logging.getLogger(__name__)

MINUTES_PER_QUESTION = 2


def _strip_mongo_id(doc: Dict[str, Any]) -> Dict[str, Any]:
    doc.pop("_id", None)
    return doc


class QuizRepository:
    """
    Two-phase quiz writes: the quiz row first, then its questions.

    The phases are not atomic. A quiz whose questions were never written is
    "incomplete" and is hidden from listings and refused on read.
    """

    QUIZZES = "quizzes"
    QUESTIONS = "quiz_questions"

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db

    @property
    def quizzes(self):
        return self.db[self.QUIZZES]

    @property
    def questions(self):
        return self.db[self.QUESTIONS]

    async def persist(
        self,
        question_set: QuestionSet,
        chapter_id: str,
        title: str,
        created_by: Optional[str],
        description: Optional[str] = None
    ) -> Quiz:
        """
        Store a question set as a new published quiz

        Args:
            question_set: Validated questions, stored in their given order
            chapter_id: Owning chapter
            title: Quiz title
            created_by: Caller identity
            description: Optional description

        Returns:
            The stored Quiz

        Raises:
            QuizWriteInterrupted: Phase 2 failed; the quiz row stays behind as
                an incomplete quiz whose id the error carries
            Driver errors from phase 1 propagate unchanged
        """
        count = question_set.generated_count
        quiz = Quiz(
            id=str(uuid.uuid4()),
            chapter_id=chapter_id,
            title=title,
            description=description or f"AI-generated test with {count} questions",
            time_limit_minutes=count * MINUTES_PER_QUESTION,
            is_published=True,
            created_by=created_by,
        )

        # Phase 1
        await self.quizzes.insert_one(quiz.model_dump())
        logger.info(f"📝 Quiz row created: {quiz.id} (chapter={chapter_id})")

        # Phase 2
        rows = [
            QuizQuestion(
                id=str(uuid.uuid4()),
                quiz_id=quiz.id,
                order_index=idx,
                **question.model_dump()
            ).model_dump()
            for idx, question in enumerate(question_set.questions)
        ]
        try:
            await self.questions.insert_many(rows)
        except Exception as e:
            logger.error(f"❌ Questions for quiz {quiz.id} not written, quiz left incomplete: {e}")
            raise QuizWriteInterrupted(quiz.id, str(e)) from e

        logger.info(f"✅ Quiz saved: {quiz.id} with {len(rows)} questions")
        return quiz

    async def is_complete(self, quiz_id: str) -> bool:
        """True when the quiz has at least one question row"""
        return await self.questions.count_documents({"quiz_id": quiz_id}) > 0

    async def get_quiz(self, quiz_id: str) -> Optional[Quiz]:
        doc = await self.quizzes.find_one({"id": quiz_id})
        if not doc:
            return None
        return Quiz(**_strip_mongo_id(doc))

    async def get_quiz_with_questions(self, quiz_id: str) -> QuizWithQuestions:
        """
        Load a quiz with its questions sorted by order_index

        Raises:
            QuizNotFound: No quiz with this id
            IncompleteQuiz: The quiz has no question rows
        """
        quiz = await self.get_quiz(quiz_id)
        if quiz is None:
            raise QuizNotFound(quiz_id)

        cursor = self.questions.find({"quiz_id": quiz_id}).sort("order_index", 1)
        questions = [QuizQuestion(**_strip_mongo_id(doc)) async for doc in cursor]

        if not questions:
            logger.warning(f"⚠️ Quiz {quiz_id} has no questions")
            raise IncompleteQuiz(quiz_id)

        return QuizWithQuestions(quiz=quiz, questions=questions)

    async def list_playable_quizzes(self, chapter_id: str, limit: int = 50) -> List[Quiz]:
        """Published, complete quizzes for a chapter, newest first"""
        cursor = self.quizzes.find(
            {"chapter_id": chapter_id, "is_published": True}
        ).sort("created_at", -1).limit(limit)

        playable = []
        async for doc in cursor:
            if await self.is_complete(doc["id"]):
                playable.append(Quiz(**_strip_mongo_id(doc)))

        logger.info(f"📚 Retrieved {len(playable)} playable quizzes for chapter {chapter_id}")
        return playable

    async def purge_incomplete_quizzes(self, chapter_id: Optional[str] = None) -> int:
        """
        Delete quizzes left without questions by an interrupted write

        Args:
            chapter_id: Restrict the sweep to one chapter (all chapters when None)

        Returns:
            Number of quiz rows deleted
        """
        query = {"chapter_id": chapter_id} if chapter_id else {}
        orphans = [
            doc["id"] async for doc in self.quizzes.find(query, {"id": 1})
            if not await self.is_complete(doc["id"])
        ]
        if not orphans:
            return 0

        result = await self.quizzes.delete_many({"id": {"$in": orphans}})
        logger.info(f"🗑️ Purged {result.deleted_count} incomplete quizzes")
        return result.deleted_count
