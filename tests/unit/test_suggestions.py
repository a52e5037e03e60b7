"""Unit tests for query improvement suggestions."""

import datetime

from venue_extractor.extraction.suggestions import (
    AMENITIES_SUGGESTION,
    BUDGET_SUGGESTION,
    CAPACITY_SUGGESTION,
    DATE_SUGGESTION,
    EVENT_TYPE_SUGGESTION,
    EXAMPLE_QUERY_SUGGESTION,
    LOCATION_SUGGESTION,
    SPECIFICITY_SUGGESTION,
    generate_suggestions,
)
from venue_extractor.models import Budget, ConfidenceScores, ExtractedEntities


def _confidence(value: float, **overrides: float) -> ConfidenceScores:
    scores = {"overall": value, "location": value, "date": value, "capacity": value, "event_type": value}
    scores.update(overrides)
    return ConfidenceScores(**scores)


class TestGenerateSuggestions:
    """Test suite for generate_suggestions."""

    def test_complete_confident_extraction(self) -> None:
        """Test that a complete, confident extraction needs no hints."""
        entities = ExtractedEntities(
            location="Madrid",
            date=datetime.date(2030, 1, 1),
            capacity=50,
            event_type="conference",
            budget=Budget(min=700, max=900, currency="EUR"),
            amenities=["WiFi"],
        )

        assert generate_suggestions(entities, _confidence(0.9)) == []

    def test_empty_extraction_in_fixed_order(self) -> None:
        """Test that every hint is produced, in order, for an empty extraction."""
        suggestions = generate_suggestions(ExtractedEntities(), _confidence(0.0))

        assert suggestions == [
            LOCATION_SUGGESTION,
            DATE_SUGGESTION,
            CAPACITY_SUGGESTION,
            EVENT_TYPE_SUGGESTION,
            BUDGET_SUGGESTION,
            AMENITIES_SUGGESTION,
            SPECIFICITY_SUGGESTION,
            EXAMPLE_QUERY_SUGGESTION,
        ]

    def test_low_field_confidence_triggers_hint(self) -> None:
        """Test that a present but uncertain field still gets a hint."""
        entities = ExtractedEntities(
            location="Springfield",
            date=datetime.date(2030, 1, 1),
            capacity=50,
            event_type="party",
            budget=Budget(max=500),
            amenities=["Parking"],
        )

        suggestions = generate_suggestions(entities, _confidence(0.9, location=0.5))

        assert suggestions == [LOCATION_SUGGESTION]

    def test_overall_threshold(self) -> None:
        """Test that low overall confidence adds the specificity hints."""
        entities = ExtractedEntities(
            location="Madrid",
            date=datetime.date(2030, 1, 1),
            capacity=50,
            event_type="conference",
            budget=Budget(min=100),
            amenities=["WiFi"],
        )

        suggestions = generate_suggestions(entities, _confidence(0.9, overall=0.59))

        assert suggestions == [SPECIFICITY_SUGGESTION, EXAMPLE_QUERY_SUGGESTION]
