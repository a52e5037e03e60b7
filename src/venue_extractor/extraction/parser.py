"""Recovery and validation of raw LLM extraction responses.

Models wrap their JSON in code fences or prose, and sometimes invent
confidence values. ``parse_extraction_response`` digs out the first JSON
object, checks the envelope and confidence bounds, and normalizes the
entities. Anything it cannot trust raises ``ResponseParseError``.
"""

from __future__ import annotations

import datetime
import json
import math
import re
from dataclasses import dataclass, field
from typing import Any

from venue_extractor.exceptions import ResponseParseError
from venue_extractor.extraction.normalizer import normalize_entities
from venue_extractor.models import ConfidenceScores, ExtractedEntities

CONFIDENCE_FIELDS: tuple[tuple[str, str], ...] = (
    ("overall", "overall"),
    ("location", "location"),
    ("date", "date"),
    ("capacity", "capacity"),
    ("eventType", "event_type"),
)

_CODE_FENCE_RE = re.compile(r"```[a-zA-Z]*[ \t]*\n?")


@dataclass(frozen=True)
class ParsedExtraction:
    """A validated LLM response with normalized entities."""

    entities: ExtractedEntities
    confidence: ConfidenceScores
    reasoning: str | None = None
    suggestions: list[str] | None = None
    raw: dict[str, Any] = field(default_factory=dict)


def strip_code_fences(content: str) -> str:
    """Remove triple-backtick fences, with or without a language tag."""
    return _CODE_FENCE_RE.sub("", content).strip()


def find_json_object(text: str) -> str:
    """Return the first balanced ``{...}`` span in ``text``.

    Braces inside JSON strings are ignored. If the object never closes,
    the greedy span up to the last ``}`` is returned instead.

    Raises:
        ResponseParseError: If there is no ``{`` ... ``}`` at all.
    """
    start = text.find("{")
    if start == -1:
        raise ResponseParseError("model response did not contain a JSON object")

    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue

        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start : i + 1]

    end = text.rfind("}")
    if end <= start:
        raise ResponseParseError("model response contained an unterminated JSON object")
    return text[start : end + 1]


def _validate_confidence(raw: Any) -> ConfidenceScores:
    if not isinstance(raw, dict):
        raise ResponseParseError("confidence must be an object")

    scores: dict[str, float] = {}
    for key, attr in CONFIDENCE_FIELDS:
        value = raw.get(key)
        if (
            not isinstance(value, (int, float))
            or isinstance(value, bool)
            or math.isnan(value)
            or not 0.0 <= value <= 1.0
        ):
            raise ResponseParseError(f"Invalid confidence score for {key}: {value!r}")
        scores[attr] = float(value)
    return ConfidenceScores(**scores)


def _string_list(value: Any) -> list[str] | None:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        return None
    return list(value)


def parse_extraction_response(content: str, today: datetime.date | None = None) -> ParsedExtraction:
    """Recover, validate and normalize a raw LLM extraction response.

    Args:
        content: Raw model output.
        today: Reference day for date normalization.

    Returns:
        The parsed extraction.

    Raises:
        ResponseParseError: If no valid JSON object is found, required keys
            are missing, or a confidence score is not a number in [0, 1].
    """
    if not isinstance(content, str) or not content.strip():
        raise ResponseParseError("empty model response")

    snippet = find_json_object(strip_code_fences(content))
    try:
        payload = json.loads(snippet)
    except json.JSONDecodeError as exc:
        raise ResponseParseError(f"model response was not valid JSON: {exc.msg}") from exc

    if not isinstance(payload, dict):
        raise ResponseParseError("extracted JSON was not an object")

    entities = payload.get("entities")
    if not isinstance(entities, dict) or "confidence" not in payload:
        raise ResponseParseError("Response missing required fields: entities, confidence")

    confidence = _validate_confidence(payload["confidence"])

    reasoning = payload.get("reasoning")
    if not isinstance(reasoning, str) or not reasoning.strip():
        reasoning = None

    return ParsedExtraction(
        entities=normalize_entities(entities, today=today),
        confidence=confidence,
        reasoning=reasoning,
        suggestions=_string_list(payload.get("suggestions")),
        raw=payload,
    )
