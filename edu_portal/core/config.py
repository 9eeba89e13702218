"""
Application configuration settings
FILE: edu_portal/core/config.py
"""
from typing import List, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # MongoDB Configuration
    mongodb_url: str = "mongodb://localhost:27017"
    database_name: str = "edu_portal"
    mongodb_timeout_ms: int = 5000

    # Provider credentials - presence of a key makes the provider eligible
    huggingface_api_key: Optional[str] = None
    gemini_api_key: Optional[str] = None
    lovable_api_key: Optional[str] = None
    openai_api_key: Optional[str] = None
    anthropic_api_key: Optional[str] = None

    # Provider models
    huggingface_model: str = "meta-llama/llama-3.1-8b-instruct"
    gemini_model: str = "gemini-2.0-flash"
    lovable_model: str = "google/gemini-2.5-flash"
    openai_model: str = "gpt-4o"
    anthropic_model: str = "claude-sonnet-4-20250514"

    llm_timeout_seconds: float = 60.0
    generation_temperature: float = 0.7

    # Mentor chat context
    chat_fragment_chars: int = 500
    chat_max_context_chars: int = 6000
    chat_max_output_tokens: int = 1024

    # Test generation context
    test_fragment_chars: int = 2000
    test_max_context_chars: int = 4000
    test_min_context_chars: int = 200
    test_max_output_tokens: int = 4096

    # Content selection
    training_document_limit: int = 10
    syllabus_chapter_limit: int = 5

    cors_origins: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://localhost:8080",
    ]

    class Config:
        env_file = ".env"
        case_sensitive = False  # This allows case-insensitive matching
        extra = "allow"  # This allows extra fields


settings = Settings()
