"""
Exception hierarchy for the education portal core.

Every domain error carries:
- error_code: machine-readable string (e.g. "PROVIDER_RATE_LIMITED")
- status_code: HTTP status surfaced to the caller
- message: human-readable description
- context: optional structured metadata dict
"""
from typing import Any, Dict, List, Optional


class PortalError(Exception):
    """Base exception for all portal domain errors."""

    def __init__(
        self,
        message: str,
        error_code: str = "INTERNAL_ERROR",
        status_code: int = 500,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.context = context or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, "code": self.error_code}


class NoProviderConfigured(PortalError):
    """No provider credential is configured at all."""

    def __init__(self, message: str = "No AI provider configured"):
        super().__init__(message, error_code="NO_PROVIDER_CONFIGURED", status_code=503)


class ProviderError(PortalError):
    """A single provider call failed. Triggers fallback to the next provider."""

    def __init__(
        self,
        provider: str,
        message: str,
        error_code: str = "PROVIDER_TRANSPORT_ERROR",
        status_code: int = 502,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.provider = provider
        super().__init__(message, error_code=error_code, status_code=status_code, context=context)


class ProviderRateLimited(ProviderError):
    def __init__(self, provider: str, message: str = "Rate limit exceeded. Please try again later."):
        super().__init__(provider, message, error_code="PROVIDER_RATE_LIMITED", status_code=429)


class ProviderQuotaExhausted(ProviderError):
    def __init__(self, provider: str, message: str = "AI provider credits exhausted."):
        super().__init__(provider, message, error_code="PROVIDER_QUOTA_EXHAUSTED", status_code=402)


class ProviderTransportError(ProviderError):
    def __init__(self, provider: str, message: str):
        super().__init__(provider, message, error_code="PROVIDER_TRANSPORT_ERROR", status_code=502)


class MalformedGenerationOutput(PortalError):
    """Provider answered but the text is not a usable question set."""

    def __init__(self, message: str, provider: Optional[str] = None):
        self.provider = provider
        super().__init__(message, error_code="MALFORMED_GENERATION_OUTPUT", status_code=502)


class InsufficientContent(PortalError):
    def __init__(self, chapter_id: str, content_chars: int, minimum: int):
        super().__init__(
            "Insufficient content available for this chapter. "
            "Please upload training materials first.",
            error_code="INSUFFICIENT_CONTENT",
            status_code=400,
            context={"chapter_id": chapter_id, "content_chars": content_chars, "minimum": minimum},
        )


class ChapterNotFound(PortalError):
    def __init__(self, chapter_id: str):
        super().__init__(
            "Chapter not found",
            error_code="CHAPTER_NOT_FOUND",
            status_code=404,
            context={"chapter_id": chapter_id},
        )


class QuizNotFound(PortalError):
    def __init__(self, quiz_id: str):
        super().__init__(
            f"Quiz not found: {quiz_id}",
            error_code="QUIZ_NOT_FOUND",
            status_code=404,
            context={"quiz_id": quiz_id},
        )


class IncompleteQuiz(PortalError):
    """Quiz row exists but its questions were never written."""

    def __init__(self, quiz_id: str):
        super().__init__(
            f"Quiz {quiz_id} has no questions and cannot be played",
            error_code="QUIZ_INCOMPLETE",
            status_code=409,
            context={"quiz_id": quiz_id},
        )


class QuizWriteInterrupted(PortalError):
    """The quiz row was written but its questions were not."""

    def __init__(self, quiz_id: str, reason: str):
        self.quiz_id = quiz_id
        super().__init__(
            f"Questions for quiz {quiz_id} could not be written: {reason}",
            error_code="QUIZ_WRITE_INTERRUPTED",
            status_code=500,
            context={"quiz_id": quiz_id},
        )


class PersistenceFailure(PortalError):
    """Questions were generated but could not be saved."""

    def __init__(
        self,
        message: str,
        questions: List[Dict[str, Any]],
        provider: str,
        quiz_id: Optional[str] = None,
    ):
        self.questions = questions
        self.provider = provider
        self.quiz_id = quiz_id
        super().__init__(
            message,
            error_code="PERSISTENCE_FAILURE",
            status_code=500,
            context={"quiz_id": quiz_id} if quiz_id else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        payload = super().to_dict()
        payload.update({
            "questions": self.questions,
            "saved": False,
            "provider": self.provider,
        })
        if self.quiz_id:
            payload["incompleteQuizId"] = self.quiz_id
        return payload
