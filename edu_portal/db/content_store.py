"""
Content Store
Read access to subjects, chapters and uploaded study material in MongoDB
FILE: edu_portal/db/content_store.py
"""
import logging
from itertools import combinations
from typing import Any, Dict, Iterator, List, Optional, Tuple

from motor.motor_asyncio import AsyncIOMotorDatabase

from edu_portal.models.content import (
    ChapterContentStatus,
    ChapterInfo,
    ContentFragment,
    ContentScope,
    SourceKind,
)

logger = logging.getLogger(__name__)

TRAINING_STATUS_COMPLETED = "completed"


def _specificity_tiers(scoped: List[Tuple[str, Any]]) -> Iterator[Dict[str, Any]]:
    """
    Filters from most to least specific: every scoped field matched exactly,
    then each combination with one field fewer left unscoped (None), down to
    the fully generic documents.
    """
    for size in range(len(scoped), -1, -1):
        for chosen in combinations(scoped, size):
            chosen_fields = {field for field, _ in chosen}
            yield {
                field: (value if field in chosen_fields else None)
                for field, value in scoped
            }


class ContentStore:
    """Narrow, read-only view of the content collections"""

    SUBJECTS = "subjects"
    CHAPTERS = "chapters"
    TRAINING_DOCUMENTS = "ai_training_documents"
    CHAPTER_DOCUMENTS = "chapter_documents"

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db

    # ==================== CHAPTERS ====================

    async def get_chapter(self, chapter_id: str) -> Optional[ChapterInfo]:
        """Fetch a chapter joined with its subject, or None"""
        chapter = await self.db[self.CHAPTERS].find_one({"id": chapter_id})
        if not chapter:
            return None

        subject = None
        if chapter.get("subject_id"):
            subject = await self.db[self.SUBJECTS].find_one({"id": chapter["subject_id"]})
        subject = subject or {}

        return ChapterInfo(
            id=chapter["id"],
            name=chapter.get("name", ""),
            chapter_number=chapter.get("chapter_number"),
            subject_id=chapter.get("subject_id"),
            subject_name=subject.get("name", ""),
            board=subject.get("board"),
            class_level=subject.get("class_level"),
            description=chapter.get("description"),
            syllabus_content=chapter.get("syllabus_content"),
        )

    async def _chapter_query(self, scope: ContentScope) -> Dict[str, Any]:
        if scope.chapter_id:
            return {"id": scope.chapter_id}

        subject_query: Dict[str, Any] = {}
        if scope.board:
            subject_query["board"] = scope.board
        if scope.class_level is not None:
            subject_query["class_level"] = scope.class_level
        if not subject_query:
            return {}

        subject_ids = [
            s["id"] async for s in self.db[self.SUBJECTS].find(subject_query, {"id": 1})
        ]
        return {"subject_id": {"$in": subject_ids}}

    async def _chapter_fragments(
        self,
        scope: ContentScope,
        field: str,
        kind: SourceKind,
        limit: int
    ) -> List[ContentFragment]:
        query = await self._chapter_query(scope)
        query[field] = {"$nin": [None, ""]}

        cursor = self.db[self.CHAPTERS].find(query).sort("chapter_number", 1).limit(limit)
        fragments = []
        async for chapter in cursor:
            fragments.append(ContentFragment(
                source_kind=kind,
                title=chapter.get("name", ""),
                body_text=chapter[field],
                scope=ContentScope(chapter_id=chapter["id"]),
            ))
        return fragments

    # ==================== FRAGMENT READS ====================

    async def find_training_documents(
        self,
        scope: ContentScope,
        limit: int = 10
    ) -> List[ContentFragment]:
        """
        Active, fully processed training documents for the scope.
        Unscoped documents qualify as generic fallback; the most specific come first.
        """
        scoped = [
            (field, value)
            for field, value in (
                ("chapter_id", scope.chapter_id),
                ("class_level", scope.class_level),
                ("board", scope.board),
            )
            if value not in (None, "")
        ]

        # One bounded query per specificity tier, most specific tier first
        docs: List[Dict[str, Any]] = []
        for tier in _specificity_tiers(scoped):
            remaining = limit - len(docs)
            if remaining <= 0:
                break
            query = {"is_active": True, "training_status": TRAINING_STATUS_COMPLETED, **tier}
            cursor = self.db[self.TRAINING_DOCUMENTS].find(query).limit(remaining)
            docs.extend([doc async for doc in cursor])

        return [
            ContentFragment(
                source_kind=SourceKind.TRAINING_DOCUMENT,
                title=doc.get("title", "Untitled"),
                body_text=doc.get("parsed_content") or doc.get("content") or "",
                scope=ContentScope(
                    board=doc.get("board"),
                    class_level=doc.get("class_level"),
                    chapter_id=doc.get("chapter_id"),
                ),
                source_name=doc.get("file_name"),
                document_type=doc.get("document_type"),
            )
            for doc in docs
        ]

    async def find_syllabus_notes(self, scope: ContentScope, limit: int = 5) -> List[ContentFragment]:
        return await self._chapter_fragments(scope, "syllabus_content", SourceKind.SYLLABUS_NOTE, limit)

    async def find_chapter_descriptions(self, scope: ContentScope, limit: int = 5) -> List[ContentFragment]:
        return await self._chapter_fragments(scope, "description", SourceKind.CHAPTER_DESCRIPTION, limit)

    async def list_chapter_resources(self, chapter_id: str, limit: int = 3) -> List[str]:
        """File names of documents uploaded to the chapter"""
        cursor = self.db[self.CHAPTER_DOCUMENTS].find({"chapter_id": chapter_id}).limit(limit)
        return [doc.get("file_name", "") async for doc in cursor]

    # ==================== CONTENT STATUS ====================

    async def chapter_content_status(self, subject_id: str) -> List[ChapterContentStatus]:
        """Report, per chapter of a subject, whether a test can be generated from it"""
        subject = await self.db[self.SUBJECTS].find_one({"id": subject_id}) or {}
        class_level = subject.get("class_level")

        statuses = []
        cursor = self.db[self.CHAPTERS].find({"subject_id": subject_id}).sort("chapter_number", 1)
        async for chapter in cursor:
            training_count = await self.db[self.TRAINING_DOCUMENTS].count_documents({
                "is_active": True,
                "training_status": TRAINING_STATUS_COMPLETED,
                "$or": [
                    {"chapter_id": chapter["id"]},
                    {"chapter_id": None, "class_level": class_level},
                ],
            })
            docs_count = await self.db[self.CHAPTER_DOCUMENTS].count_documents(
                {"chapter_id": chapter["id"]}
            )
            total = training_count + docs_count

            statuses.append(ChapterContentStatus(
                chapterId=chapter["id"],
                name=chapter.get("name", ""),
                chapterNumber=chapter.get("chapter_number"),
                hasContent=(
                    total > 0
                    or bool(chapter.get("syllabus_content"))
                    or bool(chapter.get("description"))
                ),
                contentCount=total,
            ))

        logger.info(f"📊 Content status computed for {len(statuses)} chapters of subject {subject_id}")
        return statuses
