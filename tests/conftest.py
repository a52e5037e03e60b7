"""Pytest configuration and shared fixtures."""

from __future__ import annotations

import json
from typing import Any

import pytest

from venue_extractor.exceptions import LLMConnectionError
from venue_extractor.llm.base import ChatMessage, ChatResponse

MADRID_QUERY = (
    "conference room for 50 people in Madrid next Wednesday with WiFi and projector, "
    "budget around 800 euros"
)


class StubLLMClient:
    """In-memory LLMClient that replays a canned reply or raises."""

    provider = "stub"
    model_name = "stub-model"

    def __init__(self, content: str | None = None, error: Exception | None = None) -> None:
        self.content = content
        self.error = error
        self.calls: list[list[ChatMessage]] = []

    async def chat(self, messages: list[ChatMessage], model: str | None = None) -> ChatResponse:
        self.calls.append(messages)
        if self.error is not None:
            raise self.error
        return ChatResponse(
            content=self.content or "",
            model=model or self.model_name,
            eval_count=42,
            prompt_eval_count=310,
            total_duration=1_500_000_000,
        )

    async def check_model(self) -> bool:
        return self.error is None

    async def aclose(self) -> None:
        return None


@pytest.fixture
def mock_settings():
    """Provide mock settings for testing."""
    from venue_extractor.config import Settings

    return Settings(
        ollama_host="http://test:11434",
        ollama_model="test-model",
        gemini_api_key="test-key",
        gemini_model="gemini-test",
        gemini_base_url="https://gemini.test",
        log_level="DEBUG",
        debug=True,
        cache_enabled=False,
        rate_limit_enabled=False,
    )


@pytest.fixture
def madrid_query() -> str:
    """Provide the documented conference-room query."""
    return MADRID_QUERY


@pytest.fixture
def example_payload() -> dict[str, Any]:
    """Provide the worked-example LLM response payload."""
    return {
        "entities": {
            "location": "Madrid",
            "date": "2024-02-21",
            "capacity": 50,
            "eventType": "conference",
            "duration": None,
            "budget": {"min": 700, "max": 900, "currency": "EUR"},
            "amenities": ["WiFi", "projector"],
        },
        "confidence": {
            "overall": 0.92,
            "location": 0.95,
            "date": 0.85,
            "capacity": 0.98,
            "eventType": 0.9,
        },
        "reasoning": "Clear location, capacity, event type and amenities",
    }


@pytest.fixture
def example_response(example_payload: dict[str, Any]) -> str:
    """Provide the worked-example payload as the model would print it."""
    return f"```json\n{json.dumps(example_payload, indent=2)}\n```"


@pytest.fixture
def make_llm() -> type[StubLLMClient]:
    """Provide the stub LLM client class for tests that need custom replies."""
    return StubLLMClient


@pytest.fixture
def healthy_llm(example_response: str) -> StubLLMClient:
    """Provide an LLM stub that returns the worked example."""
    return StubLLMClient(content=example_response)


@pytest.fixture
def unreachable_llm() -> StubLLMClient:
    """Provide an LLM stub whose backend is down."""
    return StubLLMClient(error=LLMConnectionError("Cannot connect to Ollama service", provider="stub"))
