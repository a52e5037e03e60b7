"""Ollama client implementation.

This module provides a client for chatting with a local Ollama server.
"""

from __future__ import annotations

from typing import Any, Optional

import httpx
import structlog

from venue_extractor.config import Settings
from venue_extractor.exceptions import (
    LLMConnectionError,
    LLMError,
    LLMModelError,
    LLMQuotaError,
)
from venue_extractor.llm.base import ChatMessage, ChatResponse

logger = structlog.get_logger()


class OllamaClient:
    """Ollama LLM client for entity extraction.

    This client handles communication with the Ollama ``/api/chat``
    endpoint and maps transport and HTTP failures onto the LLM error
    categories.
    """

    provider = "ollama"

    def __init__(
        self,
        settings: Optional[Settings] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """Initialize Ollama client.

        Args:
            settings: Application settings. If None, uses default settings.
            http_client: Pre-built HTTP client. If None, the client creates
                and owns one.
        """
        from venue_extractor.config import get_settings

        self.settings = settings or get_settings()
        self.model_name = self.settings.ollama_model
        self._owns_http_client = http_client is None
        self._http = http_client or httpx.AsyncClient(
            base_url=self.settings.ollama_host.rstrip("/"),
            timeout=self.settings.llm_timeout,
            headers={"Content-Type": "application/json"},
        )
        logger.info(
            "ollama_client_initialized",
            host=self.settings.ollama_host,
            model=self.model_name,
            timeout=self.settings.llm_timeout,
        )

    async def chat(
        self,
        messages: list[ChatMessage],
        model: Optional[str] = None,
    ) -> ChatResponse:
        """Have a chat conversation with Ollama.

        Args:
            messages: Conversation messages.
            model: Model name to use. If None, uses default from settings.

        Returns:
            The assistant reply with Ollama's token counts and timings.

        Raises:
            LLMConnectionError: If unable to connect to Ollama or the request times out.
            LLMModelError: If the model is not available.
            LLMQuotaError: If Ollama rejects the request as rate limited.
            LLMError: If inference fails for any other reason.
        """
        model = model or self.model_name
        logger.debug("ollama_chat_started", model=model, message_count=len(messages))

        payload = {
            "model": model,
            "messages": [m.model_dump() for m in messages],
            "stream": False,
            "options": {
                "temperature": self.settings.llm_temperature,
                "num_predict": self.settings.llm_max_output_tokens,
            },
        }
        data = await self._request("POST", "/api/chat", model=model, json=payload)

        message = data.get("message")
        if not isinstance(message, dict) or not isinstance(message.get("content"), str):
            raise LLMError("Ollama response did not contain a message", provider=self.provider)

        logger.debug(
            "ollama_chat_completed",
            model=model,
            eval_count=data.get("eval_count"),
            total_duration=data.get("total_duration"),
        )
        return ChatResponse(
            content=message["content"],
            model=data.get("model") or model,
            eval_count=data.get("eval_count"),
            prompt_eval_count=data.get("prompt_eval_count"),
            total_duration=data.get("total_duration"),
            load_duration=data.get("load_duration"),
            eval_duration=data.get("eval_duration"),
        )

    async def check_model(self) -> bool:
        """Check whether the configured model is pulled on the Ollama server.

        Returns:
            True if the model is listed by ``/api/tags``.
        """
        try:
            data = await self._request("GET", "/api/tags", model=self.model_name)
        except LLMError as exc:
            logger.warning("ollama_model_check_failed", model=self.model_name, error=str(exc))
            return False

        names = {m.get("name") for m in data.get("models", []) if isinstance(m, dict)}
        return self.model_name in names

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_http_client:
            await self._http.aclose()

    async def __aenter__(self) -> OllamaClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def _request(self, method: str, path: str, *, model: str, **kwargs: Any) -> dict[str, Any]:
        try:
            response = await self._http.request(method, path, **kwargs)
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException as exc:
            raise LLMConnectionError(
                f"Ollama request timed out after {self.settings.llm_timeout}s",
                provider=self.provider,
            ) from exc
        except httpx.HTTPStatusError as exc:
            raise self._map_status_error(exc.response, model) from exc
        except httpx.RequestError as exc:
            raise LLMConnectionError(
                f"Cannot connect to Ollama service: {exc}",
                provider=self.provider,
            ) from exc
        except ValueError as exc:
            raise LLMError("Ollama returned a non-JSON response", provider=self.provider) from exc

        if not isinstance(data, dict):
            raise LLMError("Ollama returned an unexpected response", provider=self.provider)
        return data

    def _map_status_error(self, response: httpx.Response, model: str) -> LLMError:
        status = response.status_code
        try:
            body = response.json()
        except ValueError:
            body = None
        error = body.get("error") if isinstance(body, dict) else None
        detail = str(error or response.text or "")[:200]

        if status == 404:
            return LLMModelError(f"Model {model} not found", status_code=status, provider=self.provider)
        if status == 429:
            return LLMQuotaError(
                f"Ollama rate limited the request: {detail}",
                status_code=status,
                provider=self.provider,
            )
        if status >= 500:
            return LLMError(f"Ollama service error: {detail}", status_code=status, provider=self.provider)
        return LLMError(
            detail or "Invalid request to Ollama",
            status_code=status,
            provider=self.provider,
        )
