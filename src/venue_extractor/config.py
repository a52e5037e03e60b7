"""Configuration management for Venue Extractor.

This module handles application configuration using Pydantic settings.
Configuration can be loaded from environment variables or .env files.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support.

    All settings can be overridden via environment variables with
    the VENUE_EXTRACTOR_ prefix (e.g., VENUE_EXTRACTOR_OLLAMA_HOST).
    """

    model_config = SettingsConfigDict(
        env_prefix="VENUE_EXTRACTOR_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # LLM provider selection
    llm_provider: Literal["ollama", "gemini"] = Field(
        default="ollama",
        description="LLM backend used for entity extraction",
    )
    llm_timeout: float = Field(
        default=30.0,
        description="Timeout for LLM API requests in seconds",
    )
    llm_temperature: float = Field(
        default=0.1,
        description="Sampling temperature sent to the LLM backend",
    )
    llm_max_output_tokens: int = Field(
        default=500,
        description="Maximum number of tokens the LLM may generate",
    )

    # Ollama Configuration
    ollama_host: str = Field(
        default="http://localhost:11434",
        description="Ollama API host URL",
    )
    ollama_model: str = Field(
        default="llama3.1:8b",
        description="Ollama model to use for extraction",
    )

    # Gemini Configuration
    gemini_api_key: str | None = Field(
        default=None,
        description="Google Gemini API key",
    )
    gemini_model: str = Field(
        default="gemini-1.5-flash",
        description="Gemini model to use for extraction",
    )
    gemini_base_url: str = Field(
        default="https://generativelanguage.googleapis.com",
        description="Gemini REST API base URL",
    )

    # Query validation
    query_min_length: int = Field(
        default=3,
        description="Minimum query length after trimming",
    )
    query_max_length: int = Field(
        default=2000,
        description="Maximum query length after trimming",
    )

    # Cache Configuration
    cache_enabled: bool = Field(
        default=True,
        description="Enable extraction result caching",
    )
    cache_ttl: int = Field(
        default=3600,
        description="Cache time-to-live in seconds",
    )
    cache_max_entries: int = Field(
        default=1024,
        description="Maximum number of results held by the in-memory cache",
    )

    # Rate limiting
    rate_limit_enabled: bool = Field(
        default=False,
        description="Enable the in-process extraction rate limiter",
    )
    rate_limit_max_requests: int = Field(
        default=100,
        description="Requests allowed per rate limit window",
    )
    rate_limit_window_seconds: int = Field(
        default=900,
        description="Rate limit window length in seconds",
    )

    # Application Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Settings: Application settings instance.
    """
    return Settings()
