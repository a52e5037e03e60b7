"""LLM client abstraction and provider selection."""

from venue_extractor.config import Settings
from venue_extractor.exceptions import ConfigurationError
from venue_extractor.llm.base import ChatMessage, ChatResponse, LLMClient


def create_llm_client(settings: Settings | None = None) -> LLMClient:
    """Build the LLM client configured by ``settings.llm_provider``.

    Args:
        settings: Application settings. If None, uses default settings.

    Returns:
        An Ollama or Gemini client.

    Raises:
        ConfigurationError: If the provider is unknown or lacks credentials.
    """
    from venue_extractor.config import get_settings

    settings = settings or get_settings()

    if settings.llm_provider == "ollama":
        from venue_extractor.ollama.client import OllamaClient

        return OllamaClient(settings)

    if settings.llm_provider == "gemini":
        from venue_extractor.gemini.client import GeminiClient

        if not settings.gemini_api_key:
            raise ConfigurationError(
                "Gemini provider selected but no API key configured. "
                "Set VENUE_EXTRACTOR_GEMINI_API_KEY."
            )
        return GeminiClient(settings)

    raise ConfigurationError(f"Unknown LLM provider: {settings.llm_provider}")


__all__ = ["ChatMessage", "ChatResponse", "LLMClient", "create_llm_client"]
