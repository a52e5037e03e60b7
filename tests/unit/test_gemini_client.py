"""Unit tests for Gemini client."""

import json

import httpx
import pytest

from venue_extractor.exceptions import (
    LLMConnectionError,
    LLMError,
    LLMModelError,
    LLMQuotaError,
)
from venue_extractor.gemini.client import GeminiClient
from venue_extractor.llm.base import ChatMessage

MESSAGES = [
    ChatMessage(role="system", content="Extract entities."),
    ChatMessage(role="user", content="room for 10 in Oslo"),
]


def _client(mock_settings, handler) -> GeminiClient:
    http_client = httpx.AsyncClient(
        base_url="https://gemini.test",
        transport=httpx.MockTransport(handler),
    )
    return GeminiClient(mock_settings, http_client=http_client)


def _candidate(text: str) -> dict:
    return {
        "candidates": [{"content": {"role": "model", "parts": [{"text": text}]}}],
        "usageMetadata": {"promptTokenCount": 250, "candidatesTokenCount": 40},
    }


class TestGeminiClient:
    """Test suite for GeminiClient class."""

    @pytest.mark.asyncio
    async def test_chat_success(self, mock_settings) -> None:
        """Test request shaping and response unpacking."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["key"] = request.url.params.get("key")
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=_candidate('{"entities": {}}'))

        response = await _client(mock_settings, handler).chat(MESSAGES)

        assert seen["path"] == "/v1beta/models/gemini-test:generateContent"
        assert seen["key"] == "test-key"
        assert seen["body"]["systemInstruction"] == {"parts": [{"text": "Extract entities."}]}
        assert seen["body"]["contents"] == [{"role": "user", "parts": [{"text": "room for 10 in Oslo"}]}]
        assert seen["body"]["generationConfig"]["maxOutputTokens"] == mock_settings.llm_max_output_tokens
        assert response.content == '{"entities": {}}'
        assert response.model == "gemini-test"
        assert response.eval_count == 40
        assert response.prompt_eval_count == 250

    @pytest.mark.asyncio
    async def test_assistant_role_mapped_to_model(self, mock_settings) -> None:
        """Test that assistant turns are sent with Gemini's model role."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=_candidate("ok"))

        messages = [
            ChatMessage(role="user", content="hi there"),
            ChatMessage(role="assistant", content="hello"),
            ChatMessage(role="user", content="room in Oslo"),
        ]
        await _client(mock_settings, handler).chat(messages)

        assert [c["role"] for c in seen["body"]["contents"]] == ["user", "model", "user"]
        assert "systemInstruction" not in seen["body"]

    @pytest.mark.asyncio
    async def test_multi_part_text_joined(self, mock_settings) -> None:
        """Test that text split across parts is concatenated."""

        def handler(request: httpx.Request) -> httpx.Response:
            data = {"candidates": [{"content": {"parts": [{"text": '{"a": '}, {"text": "1}"}]}}]}
            return httpx.Response(200, json=data)

        response = await _client(mock_settings, handler).chat(MESSAGES)

        assert response.content == '{"a": 1}'
        assert response.eval_count is None

    @pytest.mark.asyncio
    async def test_blocked_prompt(self, mock_settings) -> None:
        """Test that a response without candidates raises LLMError."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"promptFeedback": {"blockReason": "SAFETY"}})

        with pytest.raises(LLMError, match="SAFETY"):
            await _client(mock_settings, handler).chat(MESSAGES)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("status", "error", "expected"),
        [
            (429, {"message": "Too many requests"}, LLMQuotaError),
            (400, {"message": "Resource has been exhausted", "status": "RESOURCE_EXHAUSTED"}, LLMQuotaError),
            (403, {"message": "Permission denied"}, LLMConnectionError),
            (400, {"message": "API key not valid. Please pass a valid API key."}, LLMConnectionError),
            (404, {"message": "models/gemini-test is not found"}, LLMModelError),
            (500, {"message": "Internal error"}, LLMError),
        ],
    )
    async def test_chat_status_errors(self, mock_settings, status: int, error: dict, expected: type) -> None:
        """Test that Gemini errors map onto error categories."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(status, json={"error": error})

        with pytest.raises(expected) as exc_info:
            await _client(mock_settings, handler).chat(MESSAGES)

        assert type(exc_info.value) is expected
        assert exc_info.value.status_code == status
        assert exc_info.value.provider == "gemini"

    @pytest.mark.asyncio
    async def test_connection_error(self, mock_settings) -> None:
        """Test that an unreachable API raises LLMConnectionError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("name resolution failed")

        with pytest.raises(LLMConnectionError):
            await _client(mock_settings, handler).chat(MESSAGES)

    @pytest.mark.asyncio
    async def test_check_model(self, mock_settings) -> None:
        """Test model availability lookups."""

        def found(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/v1beta/models/gemini-test"
            return httpx.Response(200, json={"name": "models/gemini-test"})

        def missing(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, json={"error": {"message": "not found"}})

        assert await _client(mock_settings, found).check_model() is True
        assert await _client(mock_settings, missing).check_model() is False
