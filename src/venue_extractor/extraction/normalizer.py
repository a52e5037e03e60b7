"""Normalization of raw extracted values into canonical entity forms.

Every function accepts whatever the LLM (or the fallback extractor) produced,
which may be of an unexpected shape, and returns the canonical value or None.
None of them raise: an unparsable field degrades to None instead of failing
the whole extraction. All of them are idempotent on their own output.
"""

from __future__ import annotations

import datetime
import math
import re
from collections.abc import Mapping
from typing import Any

from dateutil import parser as date_parser

from venue_extractor.models import Budget, ExtractedEntities

MIN_CAPACITY = 1
MAX_CAPACITY = 100_000
MIN_DURATION_HOURS = 0.5
MAX_DURATION_HOURS = 24.0
MAX_AMENITIES = 10

CITY_ABBREVIATIONS: dict[str, str] = {
    # Spain
    "bcn": "Barcelona",
    "mad": "Madrid",
    "sev": "Seville",
    "val": "Valencia",
    # United States
    "nyc": "New York",
    "ny": "New York",
    "la": "Los Angeles",
    "sf": "San Francisco",
    "san fran": "San Francisco",
    "chi": "Chicago",
    "dc": "Washington DC",
    "philly": "Philadelphia",
}

# Canonical names whose casing title-casing would get wrong.
_CANONICAL_CITIES = {name.lower(): name for name in CITY_ABBREVIATIONS.values()}

EVENT_TYPE_SYNONYMS: dict[str, str] = {
    # Business
    "conference": "conference",
    "business conference": "conference",
    "corporate conference": "conference",
    "meeting": "meeting",
    "business meeting": "meeting",
    "corporate meeting": "meeting",
    "board meeting": "meeting",
    "seminar": "seminar",
    "workshop": "workshop",
    "training": "workshop",
    "training session": "workshop",
    "presentation": "presentation",
    "pitch": "presentation",
    "demo": "presentation",
    "networking": "networking",
    "networking event": "networking",
    "mixer": "networking",
    # Social
    "wedding": "wedding",
    "wedding reception": "wedding",
    "wedding ceremony": "wedding",
    "party": "party",
    "birthday party": "party",
    "celebration": "party",
    "anniversary": "party",
    "reception": "reception",
    "cocktail reception": "reception",
    "gala": "gala",
    "banquet": "gala",
    # Ceremonies
    "graduation": "ceremony",
    "ceremony": "ceremony",
    "award ceremony": "ceremony",
    # Entertainment
    "concert": "concert",
    "performance": "performance",
    "show": "performance",
    # Trade
    "exhibition": "exhibition",
    "trade show": "exhibition",
    "expo": "exhibition",
    "fair": "exhibition",
}

DURATION_PHRASES: tuple[tuple[str, float], ...] = (
    ("half day", 4.0),
    ("half-day", 4.0),
    ("full day", 8.0),
    ("full-day", 8.0),
    ("all day", 8.0),
    ("morning", 4.0),
    ("afternoon", 4.0),
    ("evening", 3.0),
)

CURRENCY_SYNONYMS: dict[str, str] = {
    "euro": "EUR",
    "euros": "EUR",
    "eur": "EUR",
    "€": "EUR",
    "dollar": "USD",
    "dollars": "USD",
    "usd": "USD",
    "us$": "USD",
    "$": "USD",
    "pound": "GBP",
    "pounds": "GBP",
    "sterling": "GBP",
    "gbp": "GBP",
    "£": "GBP",
    "yen": "JPY",
    "¥": "JPY",
    "franc": "CHF",
    "francs": "CHF",
}

AMENITY_SYNONYMS: dict[str, str] = {
    "wifi": "WiFi",
    "wi-fi": "WiFi",
    "wi fi": "WiFi",
    "internet": "WiFi",
    "wireless": "WiFi",
    "av equipment": "AV Equipment",
    "audio visual": "AV Equipment",
    "audio-visual": "AV Equipment",
    "projector": "Projector",
    "screen": "Projector",
    "microphone": "Microphone",
    "mic": "Microphone",
    "sound system": "Sound System",
    "speakers": "Sound System",
    "parking": "Parking",
    "parking space": "Parking",
    "valet parking": "Parking",
    "catering": "Catering",
    "food": "Catering",
    "refreshments": "Catering",
    "air conditioning": "Air Conditioning",
    "ac": "Air Conditioning",
    "a/c": "Air Conditioning",
    "climate control": "Air Conditioning",
    "heating": "Heating",
    "wheelchair accessible": "Wheelchair Accessible",
    "accessibility": "Wheelchair Accessible",
    "ada compliant": "Wheelchair Accessible",
}

_CANONICAL_AMENITIES = {name.lower(): name for name in AMENITY_SYNONYMS.values()}

_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_INTEGER_RE = re.compile(r"\d+")
_HOURS_RE = re.compile(r"(\d+(?:\.\d+)?)\s*(?:hours?|hrs?|h)\b")
_MINUTES_RE = re.compile(r"(\d+(?:\.\d+)?)\s*(?:minutes?|mins?)\b")
_NUMBER_RE = re.compile(r"^\d+(?:\.\d+)?$")
_AMOUNT_RE = re.compile(r"\d+(?:\.\d+)?")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _clean_str(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    s = value.strip()
    return s or None


def _title_case(value: str) -> str:
    return " ".join(word[:1].upper() + word[1:].lower() for word in value.split())


def normalize_location(value: Any) -> str | None:
    """Map a raw location to a proper-cased city name.

    Abbreviations ("nyc", "bcn") are expanded through ``CITY_ABBREVIATIONS``;
    anything else is re-cased to Title Case.
    """
    s = _clean_str(value)
    if s is None:
        return None

    key = " ".join(s.lower().split())
    if key in CITY_ABBREVIATIONS:
        return CITY_ABBREVIATIONS[key]
    if key in _CANONICAL_CITIES:
        return _CANONICAL_CITIES[key]
    return _title_case(s)


def normalize_date(value: Any, today: datetime.date | None = None) -> datetime.date | None:
    """Resolve a raw date to a calendar day that is not in the past.

    Args:
        value: ``date``/``datetime``, ``YYYY-MM-DD`` or any parseable date string.
        today: Reference day. Defaults to the local current date.

    Returns:
        The day, or None if it is unparsable or strictly before ``today``.
    """
    today = today or datetime.date.today()

    if isinstance(value, datetime.datetime):
        parsed = value.date()
    elif isinstance(value, datetime.date):
        parsed = value
    else:
        s = _clean_str(value)
        if s is None:
            return None
        try:
            if _ISO_DATE_RE.match(s):
                parsed = datetime.date.fromisoformat(s)
            else:
                parsed = date_parser.parse(s).date()
        except (ValueError, OverflowError, TypeError):
            return None

    if parsed < today:
        return None
    return parsed


def normalize_capacity(value: Any) -> int | None:
    """Normalize an attendee count to an integer in [1, 100000].

    Strings contribute their first embedded integer ("50-100 guests" -> 50).
    Fractional values are floored and values above the maximum are clamped.
    """
    if isinstance(value, str):
        match = _INTEGER_RE.search(value)
        if not match:
            return None
        number: float = int(match.group(0))
    elif _is_number(value):
        number = value
    else:
        return None

    capacity = math.floor(number)
    if capacity < MIN_CAPACITY:
        return None
    return min(capacity, MAX_CAPACITY)


def normalize_event_type(value: Any) -> str | None:
    """Canonicalize an event type; unknown vocabulary is passed through."""
    s = _clean_str(value)
    if s is None:
        return None
    key = " ".join(s.lower().split())
    return EVENT_TYPE_SYNONYMS.get(key, s)


def _round_half_hour(hours: float) -> float:
    return math.floor(hours * 2 + 0.5) / 2


def normalize_duration(value: Any) -> float | None:
    """Normalize a duration to hours in [0.5, 24], rounded to the nearest 0.5.

    Phrases ("half day", "evening") are resolved before numeric patterns
    such as "3 hours" or "90 minutes".
    """
    hours: float | None = None

    if _is_number(value):
        hours = float(value)
    elif isinstance(value, str):
        lower = value.strip().lower()
        for phrase, phrase_hours in DURATION_PHRASES:
            if phrase in lower:
                hours = phrase_hours
                break
        else:
            if match := _HOURS_RE.search(lower):
                hours = float(match.group(1))
            elif match := _MINUTES_RE.search(lower):
                hours = float(match.group(1)) / 60
            elif _NUMBER_RE.match(lower):
                hours = float(lower)

    if hours is None or not MIN_DURATION_HOURS <= hours <= MAX_DURATION_HOURS:
        return None
    return _round_half_hour(hours)


def normalize_currency(value: Any) -> str | None:
    """Map a currency word or symbol to a three-letter code."""
    s = _clean_str(value)
    if s is None:
        return None
    return CURRENCY_SYNONYMS.get(s.lower(), s.upper())


def _positive_amount(value: Any) -> float | None:
    if _is_number(value):
        amount = float(value)
    elif isinstance(value, str):
        match = _AMOUNT_RE.search(value.replace(",", ""))
        if not match:
            return None
        amount = float(match.group(0))
    else:
        return None
    return amount if amount > 0 else None


def normalize_budget(value: Any) -> Budget | None:
    """Normalize a ``{min, max, currency}`` mapping.

    The budget is kept only when at least one bound is a positive number.
    """
    if isinstance(value, Budget):
        value = value.model_dump()
    if not isinstance(value, Mapping):
        return None

    low = _positive_amount(value.get("min"))
    high = _positive_amount(value.get("max"))
    if low is None and high is None:
        return None

    return Budget(min=low, max=high, currency=normalize_currency(value.get("currency")))


def _canonical_amenity(value: str) -> str:
    key = " ".join(value.lower().split())
    if key in AMENITY_SYNONYMS:
        return AMENITY_SYNONYMS[key]
    if key in _CANONICAL_AMENITIES:
        return _CANONICAL_AMENITIES[key]
    return key[:1].upper() + key[1:]


def normalize_amenities(value: Any) -> list[str]:
    """Canonicalize, de-duplicate and cap a list of amenities."""
    if not isinstance(value, (list, tuple)):
        return []

    amenities: list[str] = []
    for item in value:
        s = _clean_str(item)
        if s is None:
            continue
        canonical = _canonical_amenity(s)
        if canonical not in amenities:
            amenities.append(canonical)
        if len(amenities) == MAX_AMENITIES:
            break
    return amenities


def normalize_entities(raw: Any, today: datetime.date | None = None) -> ExtractedEntities:
    """Normalize a raw entity mapping field by field.

    Accepts both ``eventType`` and ``event_type`` keys. Missing keys become
    None (or an empty amenity list).
    """
    if isinstance(raw, ExtractedEntities):
        raw = raw.model_dump()
    if not isinstance(raw, Mapping):
        raw = {}

    event_type = raw.get("eventType", raw.get("event_type"))
    return ExtractedEntities(
        location=normalize_location(raw.get("location")),
        date=normalize_date(raw.get("date"), today=today),
        capacity=normalize_capacity(raw.get("capacity")),
        event_type=normalize_event_type(event_type),
        duration=normalize_duration(raw.get("duration")),
        budget=normalize_budget(raw.get("budget")),
        amenities=normalize_amenities(raw.get("amenities")),
    )
