"""Deterministic pattern-based extraction used when the LLM path fails.

Only location, capacity and event type are attempted; date, duration,
budget and amenities are always left empty. Confidence scores are fixed
and low.
"""

from __future__ import annotations

import re
from typing import Any

from venue_extractor.extraction.normalizer import (
    normalize_capacity,
    normalize_event_type,
    normalize_location,
)
from venue_extractor.models import ConfidenceScores, ExtractedEntities

# Ordered: multi-word types first so "board meeting" wins over "meeting".
EVENT_TYPE_KEYWORDS: tuple[str, ...] = (
    "business meeting",
    "corporate meeting",
    "board meeting",
    "wedding reception",
    "birthday party",
    "cocktail reception",
    "networking event",
    "training session",
    "award ceremony",
    "trade show",
    "conference",
    "meeting",
    "wedding",
    "party",
    "seminar",
    "workshop",
    "training",
    "presentation",
    "celebration",
    "anniversary",
    "reception",
    "gala",
    "banquet",
    "networking",
    "mixer",
    "exhibition",
    "expo",
    "graduation",
    "ceremony",
    "concert",
    "performance",
    "pitch",
    "demo",
)

LOCATION_STOPWORDS = frozenset(
    {
        # Generic venue nouns
        "venue",
        "venues",
        "event",
        "events",
        "meeting",
        "conference",
        "party",
        "room",
        "place",
        "space",
        "hall",
        "office",
        "hotel",
        "location",
        # Filler and quantity words
        "a",
        "an",
        "need",
        "nice",
        "big",
        "small",
        "large",
        "least",
        "most",
        "home",
        "night",
        "noon",
        "the moment",
        "advance",
        "time",
        # Calendar words
        "morning",
        "afternoon",
        "evening",
        "weekend",
        "summer",
        "winter",
        "spring",
        "autumn",
        "january",
        "february",
        "march",
        "april",
        "may",
        "june",
        "july",
        "august",
        "september",
        "october",
        "november",
        "december",
        "monday",
        "tuesday",
        "wednesday",
        "thursday",
        "friday",
        "saturday",
        "sunday",
    }
)

_TERMINATOR = (
    r"(?=\s+(?:for|on|next|this|with|from|by|to|and|around|tomorrow|today|in|at|near)\b"
    r"|\s*[,.;!?]|\s*$)"
)

LOCATION_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\b(?:in|at|near)\s+([a-z][a-z ]{1,29}?)" + _TERMINATOR),
    re.compile(r"\bvenue\b[^.]{0,60}?\b(?:in|at|near)\s+([a-z][a-z ]{1,29})"),
)

CAPACITY_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(
        r"\b(\d{1,7})\s*(?:people|persons|person|attendees|guests|pax|participants|delegates|seats)\b"
    ),
    re.compile(r"\bcapacity\s*(?:of|:)?\s*(\d{1,7})\b"),
    re.compile(r"\baccommodat(?:e|ing)\s+(?:up\s+to\s+)?(\d{1,7})\b"),
)

_LEADING_ARTICLE_RE = re.compile(r"^(?:the|a|an)\s+")
_WORD_RE_CACHE: dict[str, re.Pattern[str]] = {}


def _keyword_pattern(keyword: str) -> re.Pattern[str]:
    pattern = _WORD_RE_CACHE.get(keyword)
    if pattern is None:
        pattern = re.compile(r"\b" + re.escape(keyword) + r"\b")
        _WORD_RE_CACHE[keyword] = pattern
    return pattern


def _extract_location(text: str) -> str | None:
    for pattern in LOCATION_PATTERNS:
        for match in pattern.finditer(text):
            candidate = " ".join(match.group(1).split())
            candidate = _LEADING_ARTICLE_RE.sub("", candidate)
            if len(candidate) < 2 or candidate in LOCATION_STOPWORDS:
                continue
            if any(word in LOCATION_STOPWORDS for word in candidate.split()):
                continue
            return candidate
    return None


def _extract_capacity(text: str) -> int | None:
    for pattern in CAPACITY_PATTERNS:
        match = pattern.search(text)
        if match:
            return int(match.group(1))
    return None


def _extract_event_type(text: str) -> str | None:
    for keyword in EVENT_TYPE_KEYWORDS:
        if _keyword_pattern(keyword).search(text):
            return keyword
    return None


def fallback_extract(query: Any) -> ExtractedEntities:
    """Extract location, capacity and event type with regular expressions.

    Never raises; non-string input yields empty entities.
    """
    text = query.lower() if isinstance(query, str) else ""

    return ExtractedEntities(
        location=normalize_location(_extract_location(text)),
        date=None,
        capacity=normalize_capacity(_extract_capacity(text)),
        event_type=normalize_event_type(_extract_event_type(text)),
        duration=None,
        budget=None,
        amenities=[],
    )


def fallback_confidence(entities: ExtractedEntities) -> ConfidenceScores:
    """Fixed low confidence for pattern-based results."""
    found_key_field = entities.location is not None or entities.capacity is not None
    return ConfidenceScores(
        overall=0.4 if found_key_field else 0.2,
        location=0.5 if entities.location is not None else 0.0,
        date=0.3 if entities.date is not None else 0.0,
        capacity=0.6 if entities.capacity is not None else 0.0,
        event_type=0.4 if entities.event_type is not None else 0.0,
    )
