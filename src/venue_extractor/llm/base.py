"""Provider-agnostic LLM chat interface.

Provider-specific request and response shaping lives behind ``LLMClient``
implementations; the extraction pipeline only ever sees ``ChatMessage`` in
and ``ChatResponse`` out.
"""

from __future__ import annotations

from typing import Literal, Protocol

from pydantic import BaseModel, Field


class ChatMessage(BaseModel):
    """A single chat message."""

    role: Literal["system", "user", "assistant"] = Field(description="Message author role")
    content: str = Field(description="Message text")


class ChatResponse(BaseModel):
    """Text returned by an LLM backend, plus whatever usage data it reports."""

    content: str = Field(description="Generated text")
    model: str = Field(description="Model that produced the response")
    eval_count: int | None = Field(default=None, description="Generated token count")
    prompt_eval_count: int | None = Field(default=None, description="Prompt token count")
    total_duration: int | None = Field(default=None, description="Total request duration")
    load_duration: int | None = Field(default=None, description="Model load duration")
    eval_duration: int | None = Field(default=None, description="Generation duration")


class LLMClient(Protocol):
    """Anything that can turn chat messages into text.

    Implementations raise ``LLMConnectionError``, ``LLMQuotaError``,
    ``LLMModelError`` or ``LLMError`` on failure.
    """

    provider: str
    model_name: str

    async def chat(
        self,
        messages: list[ChatMessage],
        model: str | None = None,
    ) -> ChatResponse: ...

    async def check_model(self) -> bool: ...

    async def aclose(self) -> None: ...
