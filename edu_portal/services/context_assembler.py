"""
Context Assembler
Gathers training documents, syllabus notes and chapter descriptions into a bounded bundle
FILE: edu_portal/services/context_assembler.py
"""
import asyncio
import logging
from typing import List, Optional

from edu_portal.db.content_store import ContentStore
from edu_portal.models.content import (
    ContentFragment,
    ContentScope,
    ContextBundle,
    FragmentExcerpt,
    SOURCE_PRIORITY,
    SourceKind,
)
from edu_portal.utils.context_loader import format_fragment

logger = logging.getLogger(__name__)

DEFAULT_FRAGMENT_CHARS = 500

# A block cut at the budget edge is only kept if at least this much survives
MIN_PARTIAL_CHARS = 80


class ContextAssembler:
    """Builds a ContextBundle from the content store. Read-only."""

    def __init__(
        self,
        store: ContentStore,
        document_limit: int = 10,
        chapter_limit: int = 5,
        fragment_char_limit: int = DEFAULT_FRAGMENT_CHARS
    ):
        self.store = store
        self.document_limit = document_limit
        self.chapter_limit = chapter_limit
        self.fragment_char_limit = fragment_char_limit

    async def _read_fragments(self, scope: ContentScope) -> List[ContentFragment]:
        """
        Read every content class concurrently.

        A failing class contributes zero fragments; the others are still used.
        Returned fragments follow SOURCE_PRIORITY.
        """
        reads = {
            SourceKind.TRAINING_DOCUMENT: self.store.find_training_documents(scope, self.document_limit),
            SourceKind.SYLLABUS_NOTE: self.store.find_syllabus_notes(scope, self.chapter_limit),
            SourceKind.CHAPTER_DESCRIPTION: self.store.find_chapter_descriptions(scope, self.chapter_limit),
        }
        results = await asyncio.gather(*reads.values(), return_exceptions=True)

        by_kind = {}
        for kind, result in zip(reads.keys(), results):
            if isinstance(result, Exception):
                logger.warning(f"⚠️ Could not read {kind.value} fragments, continuing without them: {result}")
                by_kind[kind] = []
            elif isinstance(result, BaseException):
                raise result
            else:
                by_kind[kind] = result

        fragments = []
        for kind in SOURCE_PRIORITY:
            fragments.extend(by_kind[kind])
        return fragments

    async def assemble(
        self,
        scope: ContentScope,
        max_total_chars: int,
        fragment_char_limit: Optional[int] = None
    ) -> ContextBundle:
        """
        Assemble a bundle for the scope.

        Args:
            scope: board / class level / chapter filter
            max_total_chars: Hard cap on the length of bundle.text
            fragment_char_limit: Per-fragment body cap (defaults to the assembler's)

        Returns:
            ContextBundle; fragments past the budget are dropped silently
        """
        char_limit = fragment_char_limit if fragment_char_limit is not None else self.fragment_char_limit
        fragments = await self._read_fragments(scope)

        bundle = ContextBundle(fragment_char_limit=char_limit, max_total_chars=max_total_chars)
        separator = ContextBundle.SEPARATOR
        used = 0

        for position, fragment in enumerate(fragments):
            block = format_fragment(fragment, char_limit)
            joiner = len(separator) if bundle.excerpts else 0
            room = max_total_chars - used - joiner

            if len(block) <= room:
                bundle.excerpts.append(FragmentExcerpt(fragment=fragment, text=block))
                used += joiner + len(block)
                continue

            # Budget exhausted: keep a cut of this block if it is still useful
            kept = position
            if room >= MIN_PARTIAL_CHARS:
                bundle.excerpts.append(FragmentExcerpt(fragment=fragment, text=block[:room], truncated=True))
                used += joiner + room
                kept += 1
            bundle.dropped = len(fragments) - kept
            break

        logger.info(
            f"📚 Assembled context: {len(bundle.excerpts)} fragments, "
            f"{bundle.content_chars}/{max_total_chars} chars, {bundle.dropped} dropped"
        )
        return bundle
