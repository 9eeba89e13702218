"""
Quiz Parser
Extracts and validates a question set from LLM-generated text
"""
import json
import logging
from typing import Any, Dict, List

from edu_portal.core.exceptions import MalformedGenerationOutput
from edu_portal.models.quiz import TRUE_FALSE_OPTIONS, Question, QuestionSet

logger = logging.getLogger(__name__)


VALID_TYPES = {"mcq", "true_false", "short_answer"}
MIN_MCQ_OPTIONS = 2
MAX_MCQ_OPTIONS = 4


class QuestionRejected(Exception):
    """Raised internally when a single question fails validation"""
    pass


def extract_json_object(raw_response: str) -> Dict[str, Any]:
    """
    Extract the top-level JSON object embedded in model output

    Stage 1 takes the substring from the first "{" to the last "}" (this
    strips prose and code fences). Stage 2 parses it strictly. There is no
    repair step: a parse failure is final.

    Args:
        raw_response: Raw LLM text

    Returns:
        Parsed JSON object

    Raises:
        MalformedGenerationOutput: If no object is found or it does not parse
    """
    if not raw_response or not raw_response.strip():
        raise MalformedGenerationOutput("Empty response received")

    start = raw_response.find("{")
    end = raw_response.rfind("}")
    if start == -1 or end == -1 or start >= end:
        raise MalformedGenerationOutput("No JSON object found in response")

    try:
        data = json.loads(raw_response[start:end + 1])
    except json.JSONDecodeError as e:
        logger.error(f"JSON parse failed: {e}")
        raise MalformedGenerationOutput(f"Failed to parse JSON: {e}")

    if not isinstance(data, dict):
        raise MalformedGenerationOutput(f"Expected a JSON object, got {type(data).__name__}")

    return data


def _non_empty_string(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


def _points(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        return 1
    return value


def _validate_question(item: Any, index: int) -> Question:
    """
    Validate a single question

    Args:
        item: Question dictionary from the model
        index: Position for log messages

    Returns:
        Normalised Question

    Raises:
        QuestionRejected: If validation fails
    """
    if not isinstance(item, dict):
        raise QuestionRejected(f"Question {index + 1}: expected object, got {type(item).__name__}")

    text = item.get("question_text")
    if not _non_empty_string(text):
        raise QuestionRejected(f"Question {index + 1}: 'question_text' must be a non-empty string")

    question_type = item.get("question_type")
    if question_type not in VALID_TYPES:
        raise QuestionRejected(f"Question {index + 1}: unknown question_type {question_type!r}")

    answer = item.get("correct_answer")
    if not _non_empty_string(answer):
        raise QuestionRejected(f"Question {index + 1}: 'correct_answer' must be a non-empty string")

    options = item.get("options")

    if question_type == "mcq":
        if not isinstance(options, list) or not MIN_MCQ_OPTIONS <= len(options) <= MAX_MCQ_OPTIONS:
            raise QuestionRejected(
                f"Question {index + 1}: mcq needs {MIN_MCQ_OPTIONS}-{MAX_MCQ_OPTIONS} options"
            )
        if not all(_non_empty_string(opt) for opt in options):
            raise QuestionRejected(f"Question {index + 1}: options must be non-empty strings")
        if answer not in options:
            raise QuestionRejected(f"Question {index + 1}: correct_answer {answer!r} is not one of the options")

    elif question_type == "true_false":
        options = list(TRUE_FALSE_OPTIONS)
        if answer not in options:
            raise QuestionRejected(f"Question {index + 1}: true_false answer must be 'True' or 'False'")

    else:
        if options:
            raise QuestionRejected(f"Question {index + 1}: short_answer must not carry options")
        options = None

    explanation = item.get("explanation")

    return Question(
        question_text=text.strip(),
        question_type=question_type,
        options=options,
        correct_answer=answer,
        explanation=explanation if isinstance(explanation, str) else None,
        points=_points(item.get("points")),
    )


def parse_question_set(raw_response: str, expected_count: int) -> QuestionSet:
    """
    Parse and validate a question set from an LLM response

    Invalid questions are dropped, never corrected. Fewer questions than
    expected_count is allowed and reported through the returned counts.

    Args:
        raw_response: Raw string response from LLM
        expected_count: Number of questions that were requested

    Returns:
        QuestionSet with the surviving questions in their original order

    Raises:
        MalformedGenerationOutput: If the JSON is unusable or no question survives

    Example:
        >>> raw = 'Sure! {"questions": [{"question_text": "2+2?", "question_type": "mcq", '
        ...       '"options": ["3", "4"], "correct_answer": "4"}]}'
        >>> parse_question_set(raw, 1).questions[0].correct_answer
        '4'
    """
    data = extract_json_object(raw_response)

    items = data.get("questions")
    if not isinstance(items, list):
        raise MalformedGenerationOutput("Response object has no 'questions' list")

    questions: List[Question] = []
    for idx, item in enumerate(items):
        try:
            questions.append(_validate_question(item, idx))
        except QuestionRejected as e:
            logger.warning(f"⚠️ Dropping question: {e}")

    if not questions:
        raise MalformedGenerationOutput("No valid questions in response")

    question_set = QuestionSet(
        questions=questions,
        requested_count=expected_count,
        dropped_count=len(items) - len(questions)
    )

    if question_set.count_mismatch:
        logger.info(
            f"ℹ️ Generated {question_set.generated_count} of {expected_count} requested questions "
            f"({question_set.dropped_count} dropped)"
        )
    else:
        logger.info(f"✅ Successfully parsed {len(questions)} questions")

    return question_set
