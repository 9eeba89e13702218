"""
Generation Models
Provider-agnostic request, per-provider response shapes, and the gateway outcome
FILE: edu_portal/models/generation.py
"""
from typing import Any, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, Field


class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str

    class Config:
        frozen = True


class GenerationRequest(BaseModel):
    """Built once per caller request and replayed unchanged across providers"""
    system_prompt: str
    messages: Tuple[ChatMessage, ...]
    max_output_tokens: int = Field(1024, ge=1)
    temperature: float = Field(0.7, ge=0.0, le=2.0)

    class Config:
        frozen = True


# ==================== PROVIDER RESPONSE SHAPES ====================
# One model per wire format. Each normalises to plain text via to_text().

class _ChoiceMessage(BaseModel):
    content: Optional[str] = None


class _Choice(BaseModel):
    message: _ChoiceMessage


class ChatCompletionResponse(BaseModel):
    """OpenAI-compatible chat completions (OpenAI, Hugging Face router, Lovable gateway)"""
    wire: Literal["chat_completions"] = "chat_completions"
    choices: List[_Choice]

    def to_text(self) -> str:
        if not self.choices:
            return ""
        return (self.choices[0].message.content or "").strip()


class _GeminiPart(BaseModel):
    text: Optional[str] = None


class _GeminiContent(BaseModel):
    parts: List[_GeminiPart] = Field(default_factory=list)


class _GeminiCandidate(BaseModel):
    content: Optional[_GeminiContent] = None


class GeminiResponse(BaseModel):
    wire: Literal["gemini"] = "gemini"
    candidates: List[_GeminiCandidate] = Field(default_factory=list)

    def to_text(self) -> str:
        if not self.candidates or self.candidates[0].content is None:
            return ""
        return "".join(part.text or "" for part in self.candidates[0].content.parts).strip()


class _AnthropicBlock(BaseModel):
    type: str = "text"
    text: Optional[str] = None


class AnthropicResponse(BaseModel):
    wire: Literal["anthropic"] = "anthropic"
    content: List[_AnthropicBlock] = Field(default_factory=list)

    def to_text(self) -> str:
        return "".join(
            block.text or "" for block in self.content if block.type == "text"
        ).strip()


ProviderResponse = Union[ChatCompletionResponse, GeminiResponse, AnthropicResponse]


# ==================== GATEWAY OUTCOME ====================

class ProviderAttempt(BaseModel):
    """A provider that was tried and failed"""
    provider: str
    error_code: str
    message: str


class GenerationOutcome(BaseModel):
    provider: str
    text: str
    value: Any = None
    attempts: List[ProviderAttempt] = Field(default_factory=list)
