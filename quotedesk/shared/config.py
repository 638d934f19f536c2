"""Shared configuration management for quotedesk.

Based on Pydantic Settings v2:
https://docs.pydantic.dev/latest/concepts/pydantic_settings/
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support.

    All settings can be overridden via environment variables with the prefix 'APP_'.
    Example: APP_LOG_LEVEL=debug
    """

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Deployment environment",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level",
    )

    # Service configuration
    service_name: str = Field(
        default="quotedesk",
        description="Service identifier for metrics and logs",
    )
    service_version: str = Field(
        default="0.1.0",
        description="Service version",
    )

    # Extraction provider configuration
    extraction_provider: Literal["openai", "ollama"] = Field(
        default="openai",
        description="Extraction provider: openai (cloud API), ollama (self-hosted LLM)",
    )

    # Vision model configuration (for extraction_provider="openai")
    vision_model: str = Field(
        default="gpt-4o",
        description="Multimodal model used for document image extraction",
    )
    vision_max_tokens: int = Field(
        default=2000,
        ge=1,
        description="Maximum completion tokens for an extraction call",
    )
    vision_temperature: float = Field(
        default=0.1,
        ge=0,
        le=2,
        description="Sampling temperature (low for deterministic extraction)",
    )
    vision_detail: Literal["low", "high", "auto"] = Field(
        default="high",
        description="Image detail level sent with document images",
    )

    # Ollama configuration (for extraction_provider="ollama")
    ollama_base_url: str = Field(
        default="http://localhost:11434",
        description="Ollama server base URL",
    )
    ollama_model: str = Field(
        default="llava:13b",
        description="Ollama multimodal model used for extraction (e.g., llava:13b)",
    )

    # Call policy
    extraction_timeout_seconds: float = Field(
        default=120.0,
        gt=0,
        description="Timeout for a single completion request",
    )
    extraction_max_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts per completion call before giving up",
    )
    extraction_retry_wait_seconds: float = Field(
        default=1.0,
        ge=0,
        description="Initial backoff between attempts (exponential with jitter)",
    )

    # Conversation parsing
    default_document_type: Literal["invoice", "quote"] = Field(
        default="invoice",
        description="Document type used when a conversation mentions both or neither type",
    )
    default_currency: str = Field(
        default="NGN",
        min_length=3,
        max_length=3,
        description="Currency assumed when a conversation names none",
    )


def get_settings() -> Settings:
    """Factory function to get settings instance.

    Returns:
        Configured Settings instance
    """
    return Settings()
