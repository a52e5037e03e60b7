"""Unit tests for Ollama client."""

import json

import httpx
import pytest

from venue_extractor.exceptions import (
    LLMConnectionError,
    LLMError,
    LLMModelError,
    LLMQuotaError,
)
from venue_extractor.llm.base import ChatMessage
from venue_extractor.ollama.client import OllamaClient

MESSAGES = [
    ChatMessage(role="system", content="Extract entities."),
    ChatMessage(role="user", content="room for 10 in Oslo"),
]


def _client(mock_settings, handler) -> OllamaClient:
    http_client = httpx.AsyncClient(
        base_url="http://test:11434",
        transport=httpx.MockTransport(handler),
    )
    return OllamaClient(mock_settings, http_client=http_client)


class TestOllamaClient:
    """Test suite for OllamaClient class."""

    def test_ollama_client_initialization(self, mock_settings) -> None:
        """Test that Ollama client is properly initialized."""
        client = OllamaClient(mock_settings)

        assert client.settings is mock_settings
        assert client.model_name == "test-model"
        assert client.provider == "ollama"

    @pytest.mark.asyncio
    async def test_chat_success(self, mock_settings) -> None:
        """Test a successful chat round trip."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                json={
                    "model": "test-model",
                    "message": {"role": "assistant", "content": '{"entities": {}}'},
                    "eval_count": 12,
                    "prompt_eval_count": 100,
                    "total_duration": 5_000,
                    "load_duration": 1_000,
                    "eval_duration": 3_000,
                },
            )

        client = _client(mock_settings, handler)
        response = await client.chat(MESSAGES)

        assert seen["path"] == "/api/chat"
        assert seen["body"]["model"] == "test-model"
        assert seen["body"]["stream"] is False
        assert seen["body"]["options"]["num_predict"] == mock_settings.llm_max_output_tokens
        assert seen["body"]["messages"][0] == {"role": "system", "content": "Extract entities."}
        assert response.content == '{"entities": {}}'
        assert response.model == "test-model"
        assert response.eval_count == 12
        assert response.prompt_eval_count == 100
        assert response.load_duration == 1_000

    @pytest.mark.asyncio
    async def test_chat_with_model_override(self, mock_settings) -> None:
        """Test that an explicit model overrides the configured one."""

        def handler(request: httpx.Request) -> httpx.Response:
            body = json.loads(request.content)
            return httpx.Response(200, json={"message": {"content": body["model"]}})

        response = await _client(mock_settings, handler).chat(MESSAGES, model="other-model")

        assert response.content == "other-model"
        assert response.model == "other-model"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("status", "expected"),
        [
            (404, LLMModelError),
            (429, LLMQuotaError),
            (500, LLMError),
            (400, LLMError),
        ],
    )
    async def test_chat_status_errors(self, mock_settings, status: int, expected: type) -> None:
        """Test that HTTP errors map onto error categories."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(status, json={"error": "boom"})

        with pytest.raises(expected) as exc_info:
            await _client(mock_settings, handler).chat(MESSAGES)

        assert exc_info.value.status_code == status
        assert exc_info.value.provider == "ollama"

    @pytest.mark.asyncio
    async def test_server_error_is_not_categorized(self, mock_settings) -> None:
        """Test that a 500 is a plain LLMError carrying the server detail."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, json={"error": "out of memory"})

        with pytest.raises(LLMError) as exc_info:
            await _client(mock_settings, handler).chat(MESSAGES)

        assert type(exc_info.value) is LLMError
        assert "out of memory" in str(exc_info.value)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [httpx.ConnectError("connection refused"), httpx.ReadTimeout("timed out")],
    )
    async def test_transport_errors(self, mock_settings, error: Exception) -> None:
        """Test that unreachable or slow servers raise LLMConnectionError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise error

        with pytest.raises(LLMConnectionError):
            await _client(mock_settings, handler).chat(MESSAGES)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(200, text="not json"),
            httpx.Response(200, json=["unexpected"]),
            httpx.Response(200, json={"done": True}),
        ],
    )
    async def test_malformed_responses(self, mock_settings, response: httpx.Response) -> None:
        """Test that unusable 200 responses raise LLMError."""

        def handler(request: httpx.Request) -> httpx.Response:
            return response

        with pytest.raises(LLMError):
            await _client(mock_settings, handler).chat(MESSAGES)

    @pytest.mark.asyncio
    async def test_check_model(self, mock_settings) -> None:
        """Test model availability against /api/tags."""

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/tags"
            return httpx.Response(200, json={"models": [{"name": "test-model"}, {"name": "other"}]})

        assert await _client(mock_settings, handler).check_model() is True

    @pytest.mark.asyncio
    async def test_check_model_missing(self, mock_settings) -> None:
        """Test that an unlisted model or unreachable server reports unavailable."""

        def missing(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"models": [{"name": "other"}]})

        def down(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused")

        assert await _client(mock_settings, missing).check_model() is False
        assert await _client(mock_settings, down).check_model() is False

    @pytest.mark.asyncio
    async def test_aclose_only_closes_owned_client(self, mock_settings) -> None:
        """Test that injected HTTP clients are left open."""
        injected = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
        borrowed = OllamaClient(mock_settings, http_client=injected)
        owned = OllamaClient(mock_settings)

        await borrowed.aclose()
        async with owned:
            pass

        assert injected.is_closed is False
        assert owned._http.is_closed is True
        await injected.aclose()
