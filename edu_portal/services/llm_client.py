"""
LLM Client
Fixed-order fallback chain over Hugging Face, Gemini, Lovable, OpenAI and Anthropic
"""
import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Type

import httpx
from pydantic import BaseModel, ValidationError

from edu_portal.core.config import Settings
from edu_portal.core.exceptions import (
    MalformedGenerationOutput,
    NoProviderConfigured,
    ProviderError,
    ProviderQuotaExhausted,
    ProviderRateLimited,
    ProviderTransportError,
)
from edu_portal.models.generation import (
    AnthropicResponse,
    ChatCompletionResponse,
    GeminiResponse,
    GenerationOutcome,
    GenerationRequest,
    ProviderAttempt,
    ProviderResponse,
)

logger = logging.getLogger(__name__)


class WireFormat(str, Enum):
    CHAT_COMPLETIONS = "chat_completions"
    GEMINI = "gemini"
    ANTHROPIC = "anthropic"


# API Endpoints
HUGGINGFACE_API_URL = "https://router.huggingface.co/novita/v3/openai/chat/completions"
GEMINI_API_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
LOVABLE_API_URL = "https://ai.gateway.lovable.dev/v1/chat/completions"
OPENAI_API_URL = "https://api.openai.com/v1/chat/completions"
ANTHROPIC_API_URL = "https://api.anthropic.com/v1/messages"

DEFAULT_TIMEOUT = 60.0  # seconds

# Response bodies that mean "out of credits" rather than "slow down"
QUOTA_MARKERS = ("insufficient_quota", "credits exhausted", "credit balance", "billing")


# ==================== PROVIDER REGISTRY ====================

class ProviderDescriptor(BaseModel):
    name: str
    wire_format: WireFormat
    url: str
    model: str
    api_key: Optional[str] = None
    rank: int

    @property
    def credential_present(self) -> bool:
        return bool(self.api_key)

    class Config:
        frozen = True


class ProviderRegistry:
    """
    Static, rank-ordered list of providers.

    Built once at process start and handed to the gateway, so tests can
    inject their own registry instead of touching the environment.
    """

    def __init__(self, providers: List[ProviderDescriptor]):
        self.providers = sorted(providers, key=lambda p: p.rank)

    @classmethod
    def from_settings(cls, settings: Settings) -> "ProviderRegistry":
        return cls([
            ProviderDescriptor(
                name="huggingface",
                wire_format=WireFormat.CHAT_COMPLETIONS,
                url=HUGGINGFACE_API_URL,
                model=settings.huggingface_model,
                api_key=settings.huggingface_api_key,
                rank=0,
            ),
            ProviderDescriptor(
                name="gemini",
                wire_format=WireFormat.GEMINI,
                url=GEMINI_API_URL.format(model=settings.gemini_model),
                model=settings.gemini_model,
                api_key=settings.gemini_api_key,
                rank=1,
            ),
            ProviderDescriptor(
                name="lovable",
                wire_format=WireFormat.CHAT_COMPLETIONS,
                url=LOVABLE_API_URL,
                model=settings.lovable_model,
                api_key=settings.lovable_api_key,
                rank=2,
            ),
            ProviderDescriptor(
                name="openai",
                wire_format=WireFormat.CHAT_COMPLETIONS,
                url=OPENAI_API_URL,
                model=settings.openai_model,
                api_key=settings.openai_api_key,
                rank=3,
            ),
            ProviderDescriptor(
                name="anthropic",
                wire_format=WireFormat.ANTHROPIC,
                url=ANTHROPIC_API_URL,
                model=settings.anthropic_model,
                api_key=settings.anthropic_api_key,
                rank=4,
            ),
        ])

    def eligible(self) -> List[ProviderDescriptor]:
        """Providers with credentials, lowest rank first"""
        return [p for p in self.providers if p.credential_present]

    def health(self) -> List[Dict[str, Any]]:
        return [
            {
                "provider": p.name,
                "configured": p.credential_present,
                "model": p.model,
                "rank": p.rank,
                "status": "ready" if p.credential_present else "not_configured"
            }
            for p in self.providers
        ]


# ==================== WIRE TRANSLATION ====================

def _chat_completions_call(provider: ProviderDescriptor, request: GenerationRequest):
    headers = {
        "Authorization": f"Bearer {provider.api_key}",
        "Content-Type": "application/json"
    }
    payload = {
        "model": provider.model,
        "messages": [{"role": "system", "content": request.system_prompt}] + [
            {"role": m.role, "content": m.content} for m in request.messages
        ],
        "temperature": request.temperature,
        "max_tokens": request.max_output_tokens
    }
    return headers, {}, payload


def _fold_opening_turns(request: GenerationRequest):
    """
    Gemini and Anthropic want the conversation to start with a user turn.
    Assistant turns before the first user message (the chat greeting) are
    moved into the system prompt instead.
    """
    messages = list(request.messages)
    opening = []
    while messages and messages[0].role != "user":
        opening.append(messages.pop(0).content)

    if not opening:
        return request.system_prompt, messages
    greeting = "\n".join(opening)
    return f"{request.system_prompt}\n\nYou opened this conversation with:\n{greeting}", messages


def _gemini_call(provider: ProviderDescriptor, request: GenerationRequest):
    system_prompt, messages = _fold_opening_turns(request)
    headers = {"Content-Type": "application/json"}
    payload = {
        "systemInstruction": {"parts": [{"text": system_prompt}]},
        "contents": [
            {
                "role": "user" if m.role == "user" else "model",
                "parts": [{"text": m.content}]
            }
            for m in messages
        ],
        "generationConfig": {
            "temperature": request.temperature,
            "maxOutputTokens": request.max_output_tokens
        }
    }
    return headers, {"key": provider.api_key}, payload


def _anthropic_call(provider: ProviderDescriptor, request: GenerationRequest):
    system_prompt, messages = _fold_opening_turns(request)
    headers = {
        "x-api-key": provider.api_key,
        "Content-Type": "application/json",
        "anthropic-version": "2023-06-01"
    }
    payload = {
        "model": provider.model,
        "max_tokens": request.max_output_tokens,
        "temperature": request.temperature,
        "system": system_prompt,
        "messages": [{"role": m.role, "content": m.content} for m in messages]
    }
    return headers, {}, payload


WIRE_ADAPTERS: Dict[WireFormat, Callable] = {
    WireFormat.CHAT_COMPLETIONS: _chat_completions_call,
    WireFormat.GEMINI: _gemini_call,
    WireFormat.ANTHROPIC: _anthropic_call,
}

RESPONSE_MODELS: Dict[WireFormat, Type[BaseModel]] = {
    WireFormat.CHAT_COMPLETIONS: ChatCompletionResponse,
    WireFormat.GEMINI: GeminiResponse,
    WireFormat.ANTHROPIC: AnthropicResponse,
}


def classify_http_error(provider: str, status_code: int, body: str) -> ProviderError:
    """
    Map a non-2xx provider response to an error kind

    Args:
        provider: Provider name
        status_code: HTTP status returned
        body: Response body text (used to tell quota from rate limiting)

    Returns:
        ProviderQuotaExhausted, ProviderRateLimited or ProviderTransportError
    """
    lowered = (body or "").lower()

    if status_code == 402 or (status_code == 429 and any(m in lowered for m in QUOTA_MARKERS)):
        return ProviderQuotaExhausted(provider, f"{provider} credits exhausted")

    if status_code == 429:
        return ProviderRateLimited(provider, f"{provider} rate limit exceeded")

    return ProviderTransportError(provider, f"{provider} API error: {status_code} - {body[:200]}")


def parse_provider_response(provider: ProviderDescriptor, data: Any) -> ProviderResponse:
    """Parse a decoded JSON envelope into the provider's response model"""
    model = RESPONSE_MODELS[provider.wire_format]
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise ProviderTransportError(provider.name, f"Unexpected {provider.name} response shape: {e}")


# ==================== GATEWAY ====================

class ProviderGateway:
    """
    Sends one GenerationRequest down the fallback chain.

    Providers are tried strictly one at a time in rank order; the first
    success wins and the same provider is never retried within a request.
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = DEFAULT_TIMEOUT
    ):
        self.registry = registry
        self.http_client = http_client
        self.timeout = timeout

    async def _post(self, provider: ProviderDescriptor, headers, params, payload) -> httpx.Response:
        if self.http_client is not None:
            return await self.http_client.post(
                provider.url, headers=headers, params=params, json=payload, timeout=self.timeout
            )
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.post(provider.url, headers=headers, params=params, json=payload)

    async def call_provider(self, provider: ProviderDescriptor, request: GenerationRequest) -> str:
        """
        Issue one call to one provider and return its normalised text

        Raises:
            ProviderRateLimited, ProviderQuotaExhausted, ProviderTransportError
        """
        headers, params, payload = WIRE_ADAPTERS[provider.wire_format](provider, request)

        try:
            response = await self._post(provider, headers, params, payload)
        except httpx.TimeoutException as e:
            logger.error(f"❌ {provider.name} request timed out after {self.timeout}s")
            raise ProviderTransportError(provider.name, f"{provider.name} request timed out: {e}")
        except httpx.HTTPError as e:
            logger.error(f"❌ {provider.name} transport error: {e}")
            raise ProviderTransportError(provider.name, f"{provider.name} transport error: {e}")

        if not response.is_success:
            logger.error(f"❌ {provider.name} API error: {response.status_code}")
            raise classify_http_error(provider.name, response.status_code, response.text)

        try:
            data = response.json()
        except ValueError as e:
            raise ProviderTransportError(provider.name, f"{provider.name} returned invalid JSON: {e}")

        text = parse_provider_response(provider, data).to_text()
        if not text:
            raise ProviderTransportError(provider.name, f"Empty response from {provider.name}")

        logger.info(f"✅ {provider.name} response received ({len(text)} chars)")
        return text

    async def generate(
        self,
        request: GenerationRequest,
        validate: Optional[Callable[[str], Any]] = None
    ) -> GenerationOutcome:
        """
        Run the fallback chain

        Args:
            request: Provider-agnostic request, replayed unchanged to each provider
            validate: Optional parser applied to the text inside the chain; a
                MalformedGenerationOutput from it moves on to the next provider

        Returns:
            GenerationOutcome with the winning provider, its text, the validated
            value (if validate was given) and the failed attempts before it

        Raises:
            NoProviderConfigured: If no provider has credentials
            ProviderError / MalformedGenerationOutput: The last failure, with
                every attempt listed in error.context["attempts"]
        """
        eligible = self.registry.eligible()
        if not eligible:
            raise NoProviderConfigured(
                "No AI provider configured. Set HUGGINGFACE_API_KEY, GEMINI_API_KEY, "
                "LOVABLE_API_KEY, OPENAI_API_KEY or ANTHROPIC_API_KEY."
            )

        logger.info(f"🤖 Available providers: {', '.join(p.name for p in eligible)}")

        attempts: List[ProviderAttempt] = []
        last_error = None

        for provider in eligible:
            logger.info(f"Trying provider: {provider.name}")
            try:
                text = await self.call_provider(provider, request)
                value = validate(text) if validate else text
            except (ProviderError, MalformedGenerationOutput) as e:
                if isinstance(e, MalformedGenerationOutput):
                    e.provider = provider.name
                attempts.append(ProviderAttempt(
                    provider=provider.name,
                    error_code=e.error_code,
                    message=e.message
                ))
                last_error = e
                logger.warning(f"⚠️ {provider.name} failed ({e.error_code}): {e.message}")
                continue

            return GenerationOutcome(provider=provider.name, text=text, value=value, attempts=attempts)

        summary = "; ".join(f"{a.provider}: {a.error_code}" for a in attempts)
        logger.error(f"❌ All AI providers failed - {summary}")
        last_error.context["attempts"] = [a.model_dump() for a in attempts]
        raise last_error
