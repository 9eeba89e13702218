"""
Quiz Service
Business logic for AI test generation: context, generation, validation, persistence
FILE: edu_portal/services/quiz_service.py
"""
import logging
from typing import List, Optional

from edu_portal.core.config import Settings
from edu_portal.core.exceptions import (
    ChapterNotFound,
    InsufficientContent,
    NoProviderConfigured,
    PersistenceFailure,
    QuizWriteInterrupted,
)
from edu_portal.db.content_store import ContentStore
from edu_portal.db.quiz_db import QuizRepository
from edu_portal.models.content import ChapterContentStatus
from edu_portal.models.generation import ChatMessage, GenerationRequest
from edu_portal.models.quiz import (
    GenerateTestRequest,
    GenerateTestResponse,
    QuestionSet,
    QuizListItem,
    QuizWithQuestions,
)
from edu_portal.services.context_assembler import ContextAssembler
from edu_portal.services.llm_client import ProviderGateway
from edu_portal.utils.quiz_parser import parse_question_set
from edu_portal.utils.quiz_prompt import build_test_prompt

logger = logging.getLogger(__name__)


class QuizService:
    """Service for generating, saving and listing chapter tests"""

    def __init__(
        self,
        store: ContentStore,
        assembler: ContextAssembler,
        gateway: ProviderGateway,
        quiz_repo: QuizRepository,
        settings: Settings
    ):
        self.store = store
        self.assembler = assembler
        self.gateway = gateway
        self.quiz_repo = quiz_repo
        self.settings = settings

    # ==================== TEST GENERATION ====================

    async def generate_test(
        self,
        request: GenerateTestRequest,
        user_id: Optional[str] = None
    ) -> GenerateTestResponse:
        """
        Generate a test for a chapter and save it when the caller is known

        Workflow:
        1. Fail fast when no provider is configured
        2. Load the chapter and assemble its content
        3. Refuse when the content is below the minimum
        4. Run the provider chain, validating the output inside it
        5. Persist as a new quiz (only with a caller identity)

        Args:
            request: Test parameters
            user_id: Caller identity; None skips persistence

        Returns:
            GenerateTestResponse

        Raises:
            NoProviderConfigured, ChapterNotFound, InsufficientContent,
            ProviderError, MalformedGenerationOutput, PersistenceFailure
        """
        if not self.gateway.registry.eligible():
            raise NoProviderConfigured()

        logger.info(
            f"🎯 Generating test: chapter={request.chapterId}, "
            f"questions={request.numQuestions}, difficulty={request.difficulty}"
        )

        chapter = await self.store.get_chapter(request.chapterId)
        if chapter is None:
            raise ChapterNotFound(request.chapterId)

        bundle = await self.assembler.assemble(
            chapter.scope(),
            max_total_chars=self.settings.test_max_context_chars,
            fragment_char_limit=self.settings.test_fragment_chars
        )

        if bundle.content_chars < self.settings.test_min_context_chars:
            logger.warning(
                f"⚠️ Not enough content for chapter {chapter.id}: "
                f"{bundle.content_chars} < {self.settings.test_min_context_chars} chars"
            )
            raise InsufficientContent(
                chapter.id, bundle.content_chars, self.settings.test_min_context_chars
            )

        resources = await self.store.list_chapter_resources(chapter.id)

        system_message, user_message = build_test_prompt(
            chapter=chapter,
            bundle=bundle,
            num_questions=request.numQuestions,
            difficulty=request.difficulty,
            question_types=list(request.questionTypes),
            resources=resources
        )
        generation_request = GenerationRequest(
            system_prompt=system_message,
            messages=(ChatMessage(role="user", content=user_message),),
            max_output_tokens=self.settings.test_max_output_tokens,
            temperature=self.settings.generation_temperature
        )

        outcome = await self.gateway.generate(
            generation_request,
            validate=lambda text: parse_question_set(text, request.numQuestions)
        )
        question_set: QuestionSet = outcome.value

        response = GenerateTestResponse(
            questions=question_set.questions,
            provider=outcome.provider,
            requestedCount=question_set.requested_count,
            generatedCount=question_set.generated_count
        )

        if not user_id:
            logger.info("ℹ️ No caller identity, returning questions without saving")
            return response

        title = request.title or f"{chapter.name} - Practice Test"
        try:
            quiz = await self.quiz_repo.persist(
                question_set,
                chapter_id=chapter.id,
                title=title,
                created_by=user_id
            )
        except QuizWriteInterrupted as e:
            logger.error(f"❌ Generated test only partly saved, quiz {e.quiz_id} is incomplete")
            raise PersistenceFailure(
                f"Questions were generated but could not be saved: {e.message}",
                questions=[q.model_dump() for q in question_set.questions],
                provider=outcome.provider,
                quiz_id=e.quiz_id
            ) from e
        except Exception as e:
            logger.error(f"❌ Failed to save generated test: {e}", exc_info=True)
            raise PersistenceFailure(
                f"Questions were generated but could not be saved: {e}",
                questions=[q.model_dump() for q in question_set.questions],
                provider=outcome.provider
            ) from e

        response.quizId = quiz.id
        response.saved = True

        logger.info(
            f"✅ Test generated by {outcome.provider}: quiz={quiz.id}, "
            f"{question_set.generated_count}/{question_set.requested_count} questions"
        )
        return response

    # ==================== RETRIEVAL ====================

    async def list_quizzes(self, chapter_id: str) -> List[QuizListItem]:
        quizzes = await self.quiz_repo.list_playable_quizzes(chapter_id)
        return [
            QuizListItem(
                quizId=q.id,
                chapterId=q.chapter_id,
                title=q.title,
                timeLimitMinutes=q.time_limit_minutes,
                createdAt=q.created_at
            )
            for q in quizzes
        ]

    async def get_quiz(self, quiz_id: str) -> QuizWithQuestions:
        return await self.quiz_repo.get_quiz_with_questions(quiz_id)

    async def content_status(self, subject_id: str) -> List[ChapterContentStatus]:
        return await self.store.chapter_content_status(subject_id)

    async def purge_incomplete(self, chapter_id: Optional[str] = None) -> int:
        """Remove quizzes whose question write never finished"""
        purged = await self.quiz_repo.purge_incomplete_quizzes(chapter_id)
        logger.info(f"🧹 Purge of incomplete quizzes (chapter={chapter_id or 'all'}): {purged} removed")
        return purged
