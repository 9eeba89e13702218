"""
Content Models
Grounding material read from the content store and the bounded bundle built from it
FILE: edu_portal/models/content.py
"""
from enum import Enum
from typing import ClassVar, List, Optional

from pydantic import BaseModel, Field


class SourceKind(str, Enum):
    TRAINING_DOCUMENT = "training_document"
    SYLLABUS_NOTE = "syllabus_note"
    CHAPTER_DESCRIPTION = "chapter_description"


# Concatenation priority, highest first
SOURCE_PRIORITY = [
    SourceKind.TRAINING_DOCUMENT,
    SourceKind.SYLLABUS_NOTE,
    SourceKind.CHAPTER_DESCRIPTION,
]


class ContentScope(BaseModel):
    """Filter applied to content reads. None means "any"."""
    board: Optional[str] = None
    class_level: Optional[int] = None
    chapter_id: Optional[str] = None

    class Config:
        frozen = True


class ContentFragment(BaseModel):
    """One retrievable unit of grounding material"""
    source_kind: SourceKind
    title: str
    body_text: str = ""
    scope: ContentScope = Field(default_factory=ContentScope)
    source_name: Optional[str] = Field(None, description="Uploaded file name, if any")
    document_type: Optional[str] = None

    class Config:
        frozen = True


class FragmentExcerpt(BaseModel):
    """A fragment as it was rendered into a bundle"""
    fragment: ContentFragment
    text: str
    truncated: bool = False


class ContextBundle(BaseModel):
    """
    Bounded, ordered concatenation of fragment excerpts.
    len(text) never exceeds max_total_chars.
    """
    excerpts: List[FragmentExcerpt] = Field(default_factory=list)
    fragment_char_limit: int
    max_total_chars: int
    dropped: int = 0

    SEPARATOR: ClassVar[str] = "\n\n"

    @property
    def text(self) -> str:
        return self.SEPARATOR.join(excerpt.text for excerpt in self.excerpts)

    @property
    def content_chars(self) -> int:
        return len(self.text)

    @property
    def is_empty(self) -> bool:
        return not self.excerpts

    def of_kind(self, kind: SourceKind) -> List[FragmentExcerpt]:
        return [e for e in self.excerpts if e.fragment.source_kind == kind]


class ChapterInfo(BaseModel):
    """Chapter joined with its subject"""
    id: str
    name: str
    chapter_number: Optional[int] = None
    subject_id: Optional[str] = None
    subject_name: str = ""
    board: Optional[str] = None
    class_level: Optional[int] = None
    description: Optional[str] = None
    syllabus_content: Optional[str] = None

    def scope(self) -> ContentScope:
        return ContentScope(board=self.board, class_level=self.class_level, chapter_id=self.id)


class ChapterContentStatus(BaseModel):
    """Whether a chapter has anything a test could be generated from"""
    chapterId: str
    name: str
    chapterNumber: Optional[int] = None
    hasContent: bool
    contentCount: int = Field(..., ge=0, description="Training documents plus uploaded chapter documents")
