"""Venue Extractor - structured venue-search parameters from free text.

This package turns queries such as "a room for 50 people in Madrid next
Wednesday" into location, date, capacity, event type, duration, budget and
amenities, using an LLM backend (Ollama or Gemini) with a deterministic
pattern-matching fallback.
"""

__version__ = "0.1.0"

from venue_extractor.config import Settings, get_settings
from venue_extractor.extraction.service import (
    EntityExtractionService,
    create_extraction_service,
    extract_entities,
)
from venue_extractor.models import ExtractedEntities, ExtractionContext, ExtractionResult

__all__ = [
    "EntityExtractionService",
    "ExtractedEntities",
    "ExtractionContext",
    "ExtractionResult",
    "Settings",
    "create_extraction_service",
    "extract_entities",
    "get_settings",
    "__version__",
]
