"""Google Gemini client implementation.

Talks to the Gemini REST API (``generateContent``) directly over httpx.
Gemini has no system role in ``contents``; the system message is sent as
``systemInstruction`` and assistant turns use the ``model`` role.
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

_ROLE_MAP = {"user": "user", "assistant": "model"}


class GeminiClient:
    """Gemini LLM client for entity extraction."""

    provider = "gemini"

    def __init__(
        self,
        settings: Optional[Settings] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """Initialize Gemini client.

        Args:
            settings: Application settings. If None, uses default settings.
            http_client: Pre-built HTTP client. If None, the client creates
                and owns one.
        """
        from venue_extractor.config import get_settings

        self.settings = settings or get_settings()
        self.model_name = self.settings.gemini_model
        self._owns_http_client = http_client is None
        self._http = http_client or httpx.AsyncClient(
            base_url=self.settings.gemini_base_url.rstrip("/"),
            timeout=self.settings.llm_timeout,
        )
        logger.info(
            "gemini_client_initialized",
            model=self.model_name,
            timeout=self.settings.llm_timeout,
        )

    async def chat(
        self,
        messages: list[ChatMessage],
        model: Optional[str] = None,
    ) -> ChatResponse:
        """Send a conversation to Gemini and return the generated text.

        Args:
            messages: Conversation messages.
            model: Model name to use. If None, uses default from settings.

        Returns:
            The generated text with Gemini's token usage.

        Raises:
            LLMConnectionError: If Gemini is unreachable, times out or rejects the API key.
            LLMQuotaError: If the quota is exhausted.
            LLMModelError: If the model is not available.
            LLMError: If the request fails for any other reason.
        """
        model = model or self.model_name
        logger.debug("gemini_chat_started", model=model, message_count=len(messages))

        data = await self._request(
            "POST",
            f"/v1beta/models/{model}:generateContent",
            model=model,
            json=self._build_payload(messages),
        )

        content = self._extract_text(data)
        usage = data.get("usageMetadata") or {}
        logger.debug(
            "gemini_chat_completed",
            model=model,
            response_length=len(content),
            eval_count=usage.get("candidatesTokenCount"),
        )
        return ChatResponse(
            content=content,
            model=data.get("modelVersion") or model,
            eval_count=usage.get("candidatesTokenCount"),
            prompt_eval_count=usage.get("promptTokenCount"),
        )

    async def check_model(self) -> bool:
        """Check that the configured model is visible to this API key."""
        try:
            await self._request("GET", f"/v1beta/models/{self.model_name}", model=self.model_name)
        except LLMError as exc:
            logger.warning("gemini_model_check_failed", model=self.model_name, error=str(exc))
            return False
        return True

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_http_client:
            await self._http.aclose()

    async def __aenter__(self) -> GeminiClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    def _build_payload(self, messages: list[ChatMessage]) -> dict[str, Any]:
        system_parts = [{"text": m.content} for m in messages if m.role == "system"]
        contents = [
            {"role": _ROLE_MAP[m.role], "parts": [{"text": m.content}]}
            for m in messages
            if m.role != "system"
        ]

        payload: dict[str, Any] = {
            "contents": contents,
            "generationConfig": {
                "temperature": self.settings.llm_temperature,
                "maxOutputTokens": self.settings.llm_max_output_tokens,
            },
        }
        if system_parts:
            payload["systemInstruction"] = {"parts": system_parts}
        return payload

    def _extract_text(self, data: dict[str, Any]) -> str:
        candidates = data.get("candidates") or []
        if not candidates or not isinstance(candidates[0], dict):
            feedback = data.get("promptFeedback") or {}
            raise LLMError(
                f"Gemini returned no candidates (block reason: {feedback.get('blockReason')})",
                provider=self.provider,
            )

        parts = (candidates[0].get("content") or {}).get("parts") or []
        text = "".join(p.get("text", "") for p in parts if isinstance(p, dict))
        if not text:
            raise LLMError("Gemini candidate contained no text", provider=self.provider)
        return text

    async def _request(self, method: str, path: str, *, model: str, **kwargs: Any) -> dict[str, Any]:
        try:
            response = await self._http.request(
                method,
                path,
                params={"key": self.settings.gemini_api_key},
                **kwargs,
            )
            response.raise_for_status()
            data = response.json()
        except httpx.TimeoutException as exc:
            raise LLMConnectionError(
                f"Gemini request timed out after {self.settings.llm_timeout}s",
                provider=self.provider,
            ) from exc
        except httpx.HTTPStatusError as exc:
            raise self._map_status_error(exc.response, model) from exc
        except httpx.RequestError as exc:
            raise LLMConnectionError(
                f"Cannot connect to Gemini service: {exc}",
                provider=self.provider,
            ) from exc
        except ValueError as exc:
            raise LLMError("Gemini returned a non-JSON response", provider=self.provider) from exc

        if not isinstance(data, dict):
            raise LLMError("Gemini returned an unexpected response", provider=self.provider)
        return data

    def _map_status_error(self, response: httpx.Response, model: str) -> LLMError:
        status = response.status_code
        try:
            body = response.json()
        except ValueError:
            body = None
        error = body.get("error") if isinstance(body, dict) else None
        error = error if isinstance(error, dict) else {}
        message = str(error.get("message") or response.text or "")[:200]
        reason = str(error.get("status") or "")

        if status == 429 or reason == "RESOURCE_EXHAUSTED" or "quota" in message.lower():
            return LLMQuotaError(
                "Gemini API quota exceeded or rate limited",
                status_code=status,
                provider=self.provider,
            )
        if status in (401, 403) or "api key" in message.lower():
            return LLMConnectionError(
                "Invalid or missing Gemini API key",
                status_code=status,
                provider=self.provider,
            )
        if status == 404:
            return LLMModelError(
                f"Gemini model {model} not available",
                status_code=status,
                provider=self.provider,
            )
        return LLMError(message or "Unknown Gemini error", status_code=status, provider=self.provider)
