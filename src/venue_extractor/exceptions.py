"""Custom exceptions for Venue Extractor."""

from __future__ import annotations


class VenueExtractorError(Exception):
    """Base exception for all Venue Extractor errors."""


class ConfigurationError(VenueExtractorError):
    """Exception raised for configuration related errors."""


class ValidationError(VenueExtractorError):
    """Exception raised for data validation errors."""


class QueryValidationError(ValidationError):
    """Exception raised when a search query is rejected before extraction."""


class RateLimitExceededError(VenueExtractorError):
    """Exception raised when the caller exceeded the extraction rate limit."""

    def __init__(self, message: str, retry_after_seconds: int = 0) -> None:
        super().__init__(message)
        self.retry_after_seconds = retry_after_seconds


class LLMError(VenueExtractorError):
    """Exception raised when an LLM backend request fails."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        provider: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.provider = provider


class LLMConnectionError(LLMError):
    """Exception raised when the LLM backend is unreachable or times out."""


class LLMQuotaError(LLMError):
    """Exception raised when the LLM backend rejects a request for quota or rate limits."""


class LLMModelError(LLMError):
    """Exception raised when the configured model is missing or invalid."""


class ResponseParseError(VenueExtractorError):
    """Exception raised when an LLM response cannot be recovered or fails validation."""
