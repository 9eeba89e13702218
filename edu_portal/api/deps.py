"""
API Dependencies
Wires request handlers to the database, provider registry and services
FILE: edu_portal/api/deps.py
"""
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request
from motor.motor_asyncio import AsyncIOMotorDatabase

from edu_portal.core.config import settings
from edu_portal.db.content_store import ContentStore
from edu_portal.db.mongodb import get_database
from edu_portal.db.quiz_db import QuizRepository
from edu_portal.services.context_assembler import ContextAssembler
from edu_portal.services.llm_client import ProviderGateway, ProviderRegistry
from edu_portal.services.mentor_service import MentorService
from edu_portal.services.progress_service import ProgressTracker
from edu_portal.services.quiz_service import QuizService


# ==================== INFRASTRUCTURE ====================

def get_db() -> AsyncIOMotorDatabase:
    return get_database()


def get_registry(request: Request) -> ProviderRegistry:
    """
    Registry built at startup (see lifespan in main.py)

    Built from settings on first use when the app was started without lifespan.
    """
    registry = getattr(request.app.state, "registry", None)
    if registry is None:
        registry = ProviderRegistry.from_settings(settings)
        request.app.state.registry = registry
    return registry


def get_gateway(registry: ProviderRegistry = Depends(get_registry)) -> ProviderGateway:
    return ProviderGateway(registry, timeout=settings.llm_timeout_seconds)


# ==================== CALLER IDENTITY ====================

def get_caller_id(x_user_id: Optional[str] = Header(None)) -> Optional[str]:
    """Caller identity forwarded by the upstream auth layer, if any"""
    return x_user_id or None


def require_caller_id(caller_id: Optional[str] = Depends(get_caller_id)) -> str:
    if not caller_id:
        raise HTTPException(status_code=401, detail="Missing X-User-Id header")
    return caller_id


# ==================== SERVICES ====================

def get_content_store(db: AsyncIOMotorDatabase = Depends(get_db)) -> ContentStore:
    return ContentStore(db)


def get_assembler(store: ContentStore = Depends(get_content_store)) -> ContextAssembler:
    return ContextAssembler(
        store,
        document_limit=settings.training_document_limit,
        chapter_limit=settings.syllabus_chapter_limit,
        fragment_char_limit=settings.chat_fragment_chars
    )


def get_quiz_service(
    db: AsyncIOMotorDatabase = Depends(get_db),
    store: ContentStore = Depends(get_content_store),
    assembler: ContextAssembler = Depends(get_assembler),
    gateway: ProviderGateway = Depends(get_gateway)
) -> QuizService:
    return QuizService(store, assembler, gateway, QuizRepository(db), settings)


def get_mentor_service(
    assembler: ContextAssembler = Depends(get_assembler),
    gateway: ProviderGateway = Depends(get_gateway)
) -> MentorService:
    return MentorService(assembler, gateway, settings)


def get_progress_tracker(db: AsyncIOMotorDatabase = Depends(get_db)) -> ProgressTracker:
    return ProgressTracker(db)
