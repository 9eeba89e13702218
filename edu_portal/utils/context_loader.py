"""
Context Loader
Pure utility functions for formatting content fragments into LLM-ready text
"""
import re

from edu_portal.models.content import ContentFragment, SourceKind


KIND_LABELS = {
    SourceKind.TRAINING_DOCUMENT: "INFO",
    SourceKind.SYLLABUS_NOTE: "SYLLABUS",
    SourceKind.CHAPTER_DESCRIPTION: "DESCRIPTION",
}


def normalize_whitespace(text: str) -> str:
    """
    Normalize whitespace in text while preserving paragraph structure

    Args:
        text: Raw text that may contain irregular whitespace

    Returns:
        Text with normalized whitespace
    """
    if not text:
        return ""

    # Replace multiple spaces/tabs with single space
    text = re.sub(r'[ \t]+', ' ', text)

    # Replace 3+ newlines with double newline (preserve paragraphs)
    text = re.sub(r'\n{3,}', '\n\n', text)

    lines = [line.strip() for line in text.split('\n')]
    return '\n'.join(lines).strip()


def fragment_header(fragment: ContentFragment) -> str:
    """
    Header line for a fragment, e.g. "[NOTES] Newton's Laws (Source: laws.pdf):"

    Training documents are labelled with their document type when one is set.
    """
    label = KIND_LABELS[fragment.source_kind]
    if fragment.source_kind == SourceKind.TRAINING_DOCUMENT and fragment.document_type:
        label = fragment.document_type.upper()

    header = f"[{label}] {fragment.title}"
    if fragment.source_name:
        header += f" (Source: {fragment.source_name})"
    return header + ":"


def format_fragment(fragment: ContentFragment, char_limit: int) -> str:
    """
    Format a single fragment with its header and a body cut to char_limit

    Args:
        fragment: Fragment to render
        char_limit: Maximum number of body characters kept

    Returns:
        Formatted block; the header is never cut
    """
    body = normalize_whitespace(fragment.body_text)[:max(char_limit, 0)]
    return f"{fragment_header(fragment)}\n{body}".rstrip()
