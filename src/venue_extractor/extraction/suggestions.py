"""Suggestions shown to the user when parts of a query were missing or uncertain."""

from __future__ import annotations

from venue_extractor.models import ConfidenceScores, ExtractedEntities

FIELD_CONFIDENCE_THRESHOLD = 0.7
OVERALL_CONFIDENCE_THRESHOLD = 0.6

LOCATION_SUGGESTION = "Consider specifying a city or location for better venue matches"
DATE_SUGGESTION = "Adding a specific date helps find available venues"
CAPACITY_SUGGESTION = "Specifying the number of attendees improves recommendations"
EVENT_TYPE_SUGGESTION = (
    "Mentioning the event type (meeting, conference, wedding) helps find suitable venues"
)
BUDGET_SUGGESTION = "Including your budget range helps filter appropriate venues"
AMENITIES_SUGGESTION = (
    "Mentioning required amenities (WiFi, parking, catering) helps narrow down options"
)
SPECIFICITY_SUGGESTION = "Try providing more specific details for more accurate venue matching"
EXAMPLE_QUERY_SUGGESTION = (
    'Example: "I need a conference room for 30 people in Seattle on March 15th '
    'with WiFi and catering"'
)


def generate_suggestions(entities: ExtractedEntities, confidence: ConfidenceScores) -> list[str]:
    """Return one hint per missing or low-confidence field, in a fixed order."""
    suggestions: list[str] = []

    if entities.location is None or confidence.location < FIELD_CONFIDENCE_THRESHOLD:
        suggestions.append(LOCATION_SUGGESTION)
    if entities.date is None or confidence.date < FIELD_CONFIDENCE_THRESHOLD:
        suggestions.append(DATE_SUGGESTION)
    if entities.capacity is None or confidence.capacity < FIELD_CONFIDENCE_THRESHOLD:
        suggestions.append(CAPACITY_SUGGESTION)
    if entities.event_type is None or confidence.event_type < FIELD_CONFIDENCE_THRESHOLD:
        suggestions.append(EVENT_TYPE_SUGGESTION)
    if entities.budget is None or (entities.budget.min is None and entities.budget.max is None):
        suggestions.append(BUDGET_SUGGESTION)
    if not entities.amenities:
        suggestions.append(AMENITIES_SUGGESTION)
    if confidence.overall < OVERALL_CONFIDENCE_THRESHOLD:
        suggestions.append(SPECIFICITY_SUGGESTION)
        suggestions.append(EXAMPLE_QUERY_SUGGESTION)

    return suggestions
