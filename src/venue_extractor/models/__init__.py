"""Data models for Venue Extractor.

This module contains Pydantic models for data validation and serialization.
Result models are frozen and serialize with camelCase aliases so that
``model_dump(mode="json", by_alias=True)`` produces the JSON shape returned
over HTTP.
"""

from __future__ import annotations

import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _FrozenModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class ExtractionContext(_FrozenModel):
    """Optional conversation context supplied alongside a query."""

    previous_query: str | None = Field(default=None, description="Previous query in the conversation")
    user_location: str | None = Field(default=None, description="User's current location")
    date_context: str | None = Field(
        default=None,
        description='Human-readable current date, e.g. "Today is Monday, ..."',
    )
    user_preferences: dict[str, Any] | None = Field(
        default=None,
        description="Opaque user preference mapping",
    )


class Budget(_FrozenModel):
    """Budget range with an optional currency code."""

    min: float | None = Field(default=None, gt=0, description="Lower budget bound")
    max: float | None = Field(default=None, gt=0, description="Upper budget bound")
    currency: str | None = Field(default=None, description="Three-letter currency code")


class ExtractedEntities(_FrozenModel):
    """Canonical venue-search parameters extracted from a query."""

    location: str | None = Field(default=None, description="Proper-cased city name")
    date: datetime.date | None = Field(default=None, description="Event day, never in the past")
    capacity: int | None = Field(default=None, ge=1, le=100_000, description="Number of attendees")
    event_type: str | None = Field(default=None, description="Canonical event type")
    duration: float | None = Field(default=None, ge=0.5, le=24, description="Duration in hours")
    budget: Budget | None = Field(default=None, description="Budget range")
    amenities: list[str] = Field(default_factory=list, max_length=10, description="Required amenities")


class ConfidenceScores(_FrozenModel):
    """Per-field and overall confidence, each in [0, 1]."""

    overall: float = Field(ge=0.0, le=1.0)
    location: float = Field(ge=0.0, le=1.0)
    date: float = Field(ge=0.0, le=1.0)
    capacity: float = Field(ge=0.0, le=1.0)
    event_type: float = Field(ge=0.0, le=1.0)


class ExtractionMetadata(_FrozenModel):
    """Bookkeeping attached to every extraction result."""

    processing_time_ms: float = Field(default=0.0, description="Wall-clock processing time")
    tokens: int = Field(default=0, description="Tokens generated by the model")
    prompt_tokens: int | None = Field(default=None, description="Tokens in the prompt")
    timestamp: datetime.datetime = Field(
        default_factory=lambda: datetime.datetime.now(datetime.timezone.utc),
        description="When the result was produced",
    )
    model: str | None = Field(default=None, description="Model identifier")
    provider: str | None = Field(default=None, description="LLM provider or 'pattern-fallback'")
    from_cache: bool = Field(default=False, description="Served from the result cache")
    fallback: bool = Field(default=False, description="Produced by the pattern fallback")
    total_duration: int | None = Field(default=None, description="Provider-reported total duration")
    load_duration: int | None = Field(default=None, description="Provider-reported model load duration")
    eval_duration: int | None = Field(default=None, description="Provider-reported generation duration")


class ExtractionResult(_FrozenModel):
    """Result of a single extraction request."""

    session_id: str = Field(description="Per-call identifier")
    entities: ExtractedEntities = Field(description="Extracted entities")
    confidence: ConfidenceScores = Field(description="Confidence scores")
    reasoning: str | None = Field(default=None, description="Model or fallback explanation")
    suggestions: list[str] = Field(default_factory=list, description="Hints for a better query")
    metadata: ExtractionMetadata = Field(default_factory=ExtractionMetadata)


__all__ = [
    "Budget",
    "ConfidenceScores",
    "ExtractedEntities",
    "ExtractionContext",
    "ExtractionMetadata",
    "ExtractionResult",
]
