"""
Prompt Builders
Constructs mentor and test generation prompts from an assembled context bundle
"""
from typing import List, Optional, Tuple

from edu_portal.models.content import ChapterInfo, ContextBundle, SourceKind


EXAMPLE_SCHEMA = """{
  "questions": [
    {
      "question_text": "Question here",
      "question_type": "mcq" | "true_false" | "short_answer",
      "options": ["A", "B", "C", "D"],
      "correct_answer": "The answer, copied exactly from options for mcq",
      "explanation": "Why this is correct",
      "points": 1
    }
  ]
}"""

MENTOR_ROLE = """You are an AI Mentor for students studying under Indian education boards (CBSE, ICSE, State Boards). Your role is to:
- Help students understand difficult concepts in a simple, friendly way
- Provide step-by-step solutions to problems
- Give exam tips, study strategies, and motivation
- Explain topics across subjects like Math, Science, English, Hindi, Physics, Chemistry, Biology, Accountancy, Economics, and more
- Be encouraging and supportive, especially when students struggle
- Use examples and analogies to make learning easier

**RESPONSE FORMATTING RULES:**
1. Use **bold** for key terms
2. Use bullet points for lists
3. For math formulas, use LaTeX: $E = mc^2$ or $$\\frac{a}{b}$$
4. Number steps when explaining procedures
5. Keep responses organized and clear"""


def _section(title: str, blocks: List[str]) -> str:
    if not blocks:
        return ""
    body = "\n\n".join(blocks)
    return f"\n\n--- {title} ---\n{body}\n--- END {title} ---\n"


def build_mentor_system_prompt(bundle: ContextBundle) -> str:
    """
    Build the mentor system prompt with the knowledge base and syllabus appended

    Args:
        bundle: Assembled context (may be empty)

    Returns:
        System prompt string
    """
    knowledge = [e.text for e in bundle.of_kind(SourceKind.TRAINING_DOCUMENT)]
    syllabus = [
        e.text for e in bundle.excerpts
        if e.fragment.source_kind != SourceKind.TRAINING_DOCUMENT
    ]

    return (
        MENTOR_ROLE
        + _section("KNOWLEDGE BASE", knowledge)
        + _section("SYLLABUS CONTENT", syllabus)
        + "\n\nAlways maintain a positive, patient, and helpful tone."
    )


def build_test_prompt(
    chapter: ChapterInfo,
    bundle: ContextBundle,
    num_questions: int,
    difficulty: str,
    question_types: List[str],
    resources: Optional[List[str]] = None
) -> Tuple[str, str]:
    """
    Build the test generation prompt

    Args:
        chapter: Chapter with subject details
        bundle: Assembled chapter content
        num_questions: Number of questions to ask for
        difficulty: easy, medium, hard or mixed
        question_types: Allowed question types
        resources: Names of uploaded chapter files, listed for reference

    Returns:
        Tuple of (system_message, user_message)
    """
    board = (chapter.board or "school").upper()

    content = (
        f"**Chapter:** {chapter.name}\n"
        f"**Subject:** {chapter.subject_name}\n"
        f"**Class:** {chapter.class_level}\n\n"
        f"{bundle.text}"
    )
    if resources:
        content += f"\n\n**Available Resources:** {', '.join(resources)}"

    system_message = f"""You are an expert test generator for Indian education boards ({board}).

You write exam questions for Class {chapter.class_level} students strictly from the content below.

**Content:**
{content}

**Output Format (STRICTLY JSON):**
{EXAMPLE_SCHEMA}

Return ONLY the JSON, no other text."""

    user_message = f"""Generate exactly {num_questions} high-quality exam questions.

**Requirements:**
- Difficulty: {difficulty}
- Question types: {', '.join(question_types)}
- Subject: {chapter.subject_name}
- Chapter: {chapter.name}
- Make questions exam-ready and aligned with {board} standards
- For mcq: provide exactly 4 options and copy the correct option text into correct_answer
- For true_false: correct_answer is "True" or "False"
- For short_answer: omit options
- Include clear explanations for each answer"""

    return system_message, user_message
