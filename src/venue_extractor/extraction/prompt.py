"""Prompt contract for extracting venue-search entities from a query.

The system message is a constant and the user message depends only on the
query and context, so identical inputs always produce identical messages.
"""

from __future__ import annotations

import datetime
import json

from venue_extractor.llm.base import ChatMessage
from venue_extractor.models import ExtractionContext

PROMPT_VERSION = "venue-extract-v1"

ENTITY_EXTRACTION_SYSTEM_PROMPT = """You are an expert venue booking assistant that extracts structured search parameters from natural language venue requests.

CORE INSTRUCTIONS:
1. Extract ONLY information that is explicitly stated or clearly implied.
2. Use null for any missing or unclear information.
3. Return ONLY valid JSON in the exact format below. No markdown, no code fences, no commentary.

EXTRACTION RULES:
- location: city name; expand common abbreviations ("NYC" -> "New York", "BCN" -> "Barcelona").
- date: convert relative dates ("tomorrow", "next Friday") using the current date context; format YYYY-MM-DD.
- capacity: number of people/attendees/guests as an integer.
- eventType: event category such as meeting, conference, wedding, party, seminar, workshop.
- duration: length in hours ("half day" -> 4, "full day" -> 8).
- budget: price range with currency; null if no budget is mentioned.
- amenities: specific requirements such as WiFi, parking, catering, projector, AV equipment.
- confidence: one number between 0 and 1 per field, plus overall.

REQUIRED JSON OUTPUT FORMAT:
{
  "entities": {
    "location": "string or null",
    "date": "YYYY-MM-DD or null",
    "capacity": "number or null",
    "eventType": "string or null",
    "duration": "number or null",
    "budget": {"min": "number or null", "max": "number or null", "currency": "string or null"},
    "amenities": ["array of strings"]
  },
  "confidence": {
    "overall": "number between 0 and 1",
    "location": "number between 0 and 1",
    "date": "number between 0 and 1",
    "capacity": "number between 0 and 1",
    "eventType": "number between 0 and 1"
  },
  "reasoning": "brief explanation of the extractions"
}

EXAMPLE:
Query: "Need a conference room for 50 people in Madrid next Wednesday with WiFi and projector, budget around 800 euros"
Response:
{
  "entities": {
    "location": "Madrid",
    "date": "2024-02-21",
    "capacity": 50,
    "eventType": "conference",
    "duration": null,
    "budget": {"min": 700, "max": 900, "currency": "EUR"},
    "amenities": ["WiFi", "projector"]
  },
  "confidence": {
    "overall": 0.92,
    "location": 0.95,
    "date": 0.85,
    "capacity": 0.98,
    "eventType": 0.9
  },
  "reasoning": "Clear location (Madrid), capacity (50), relative date converted, event type from 'conference room', budget range estimated from 'around 800', amenities listed explicitly"
}"""


def current_date_context(today: datetime.date | None = None) -> str:
    """Render the "Today is ..." line used for relative date resolution."""
    today = today or datetime.date.today()
    return f"Today is {today.strftime('%A, %B')} {today.day}, {today.year} ({today.isoformat()})"


def build_user_message(query: str, context: ExtractionContext | None = None) -> str:
    """Build the per-call user instruction.

    Context lines are rendered in a fixed order: current date, user
    location, previous query, preferences.
    """
    lines = [f'Extract venue booking entities from this query: "{query}"']

    if context is not None:
        context_lines = []
        if context.date_context:
            context_lines.append(f"Current date: {context.date_context}")
        if context.user_location:
            context_lines.append(f"User's current location: {context.user_location}")
        if context.previous_query:
            context_lines.append(f'Previous query: "{context.previous_query}"')
        if context.user_preferences:
            prefs = json.dumps(context.user_preferences, sort_keys=True, default=str)
            context_lines.append(f"User preferences: {prefs}")

        if context_lines:
            lines.append("")
            lines.append("ADDITIONAL CONTEXT:")
            lines.extend(context_lines)

    lines.append("")
    lines.append("Return the JSON response in the exact format specified in the system instructions.")
    return "\n".join(lines)


def build_extraction_messages(
    query: str,
    context: ExtractionContext | None = None,
) -> list[ChatMessage]:
    """Build the system and user messages for one extraction call."""
    return [
        ChatMessage(role="system", content=ENTITY_EXTRACTION_SYSTEM_PROMPT),
        ChatMessage(role="user", content=build_user_message(query, context)),
    ]
