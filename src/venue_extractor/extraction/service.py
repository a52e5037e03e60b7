"""Entity extraction service.

This module provides the pipeline entry point: validate the query, consult
the cache, enforce the rate limit, ask the LLM, recover and normalize its
answer, and fall back to pattern matching whenever the LLM path fails.
"""

from __future__ import annotations

import base64
import datetime
import json
import re
import time
import uuid
from typing import Any

import structlog

from venue_extractor.cache import CacheService, InMemoryCache
from venue_extractor.config import Settings
from venue_extractor.exceptions import (
    LLMConnectionError,
    LLMError,
    LLMModelError,
    LLMQuotaError,
    QueryValidationError,
    ResponseParseError,
)
from venue_extractor.extraction.fallback import fallback_confidence, fallback_extract
from venue_extractor.extraction.parser import parse_extraction_response
from venue_extractor.extraction.prompt import (
    PROMPT_VERSION,
    build_extraction_messages,
    current_date_context,
)
from venue_extractor.extraction.suggestions import generate_suggestions
from venue_extractor.llm import LLMClient, create_llm_client
from venue_extractor.models import ExtractionContext, ExtractionMetadata, ExtractionResult
from venue_extractor.ratelimit import RateLimiter, SlidingWindowRateLimiter

logger = structlog.get_logger()

CACHE_KEY_PREFIX = "llm_extraction"
RATE_LIMIT_KEY = "llm-extraction"
FALLBACK_MODEL = "pattern-fallback"
FALLBACK_REASONING = "Pattern-based fallback extraction used because the AI service was unavailable"
FALLBACK_SUGGESTIONS: tuple[str, ...] = (
    "AI service temporarily unavailable",
    "Using pattern-based extraction with reduced accuracy",
    "Please verify extracted information",
    "Try again later for improved results",
)

_TAG_RE = re.compile(r"<[^>]*>")


def _preview(query: str) -> str:
    return query[:50]


def generate_session_id() -> str:
    """Per-call identifier, e.g. ``sess_1760000000000_3f2a9c1b0``."""
    return f"sess_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


def build_cache_key(query: str, context: ExtractionContext | None = None) -> str:
    """Content-address a request.

    The context is serialized with sorted keys and without unset fields, so
    logically equal contexts share a key regardless of construction order.
    The prompt version is part of the key, so a prompt change starts from an
    empty cache.
    """
    context_str = ""
    if context is not None:
        data = context.model_dump(mode="json", exclude_none=True)
        if data:
            context_str = json.dumps(data, sort_keys=True, separators=(",", ":"), default=str)
    encoded = base64.b64encode((query + context_str).encode("utf-8")).decode("ascii")
    return f"{CACHE_KEY_PREFIX}:{PROMPT_VERSION}:{encoded}"


class EntityExtractionService:
    """Extract venue-search entities from free-text queries.

    The service never raises for LLM failures; it only raises
    ``QueryValidationError`` for bad input and whatever the injected rate
    limiter raises when the caller is throttled.
    """

    def __init__(
        self,
        llm_client: LLMClient,
        cache: CacheService | None = None,
        rate_limiter: RateLimiter | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Initialize the extraction service.

        Args:
            llm_client: Client used for the LLM extraction path.
            cache: Optional result cache.
            rate_limiter: Optional rate limiter checked before each LLM call.
            settings: Application settings. If None, uses default settings.
        """
        from venue_extractor.config import get_settings

        self.settings = settings or get_settings()
        self.llm_client = llm_client
        self.cache = cache
        self.rate_limiter = rate_limiter
        logger.info(
            "entity_extraction_service_initialized",
            provider=getattr(llm_client, "provider", None),
            model=getattr(llm_client, "model_name", None),
            cache_enabled=cache is not None,
            rate_limiter_enabled=rate_limiter is not None,
        )

    def validate_query(self, query: Any) -> None:
        """Reject queries that are not strings, are too short or long, or contain markup.

        Raises:
            QueryValidationError: If the query is invalid.
        """
        if not isinstance(query, str) or not query.strip():
            raise QueryValidationError("Query must be a non-empty string")

        trimmed = query.strip()
        if len(trimmed) < self.settings.query_min_length:
            raise QueryValidationError(
                f"Query must be at least {self.settings.query_min_length} characters long"
            )
        if len(trimmed) > self.settings.query_max_length:
            raise QueryValidationError(
                f"Query is too long (max {self.settings.query_max_length} characters)"
            )
        if len(_TAG_RE.sub("", trimmed).strip()) != len(trimmed):
            raise QueryValidationError("Query contains invalid HTML tags")

    async def extract_entities(
        self,
        query: str,
        context: ExtractionContext | None = None,
    ) -> ExtractionResult:
        """Extract venue-search entities from a query.

        Args:
            query: Free-text query, 3-2000 characters.
            context: Optional conversation context.

        Returns:
            The extraction result. ``metadata.fallback`` is True when the LLM
            path failed and pattern matching was used instead.

        Raises:
            QueryValidationError: If the query is invalid.
            RateLimitExceededError: If the rate limiter rejects the call.
        """
        self.validate_query(query)

        cache_key = build_cache_key(query, context)
        cached = await self._cache_get(cache_key)
        if cached is not None:
            logger.debug("entity_extraction_cache_hit", query=_preview(query))
            return cached.model_copy(
                update={"metadata": cached.metadata.model_copy(update={"from_cache": True})}
            )

        if self.rate_limiter is not None:
            await self.rate_limiter.check_limit(RATE_LIMIT_KEY)

        start = time.perf_counter()
        try:
            result = await self._extract_with_llm(query, context, start)
        except LLMConnectionError as exc:
            logger.warning(
                "llm_connection_failed",
                error=str(exc),
                provider=exc.provider,
                query=_preview(query),
            )
            return self.fallback_extraction(query, start)
        except LLMQuotaError as exc:
            logger.warning(
                "llm_quota_exceeded",
                error=str(exc),
                status_code=exc.status_code,
                provider=exc.provider,
                query=_preview(query),
            )
            return self.fallback_extraction(query, start)
        except LLMModelError as exc:
            logger.error(
                "llm_model_unavailable",
                error=str(exc),
                status_code=exc.status_code,
                provider=exc.provider,
                query=_preview(query),
            )
            return self.fallback_extraction(query, start)
        except LLMError as exc:
            logger.error(
                "llm_request_failed",
                error=str(exc),
                status_code=exc.status_code,
                provider=exc.provider,
                query=_preview(query),
            )
            return self.fallback_extraction(query, start)
        except ResponseParseError as exc:
            logger.warning("llm_response_invalid", error=str(exc), query=_preview(query))
            return self.fallback_extraction(query, start)
        except Exception as exc:  # noqa: BLE001
            logger.exception("extraction_unexpected_error", error=str(exc), query=_preview(query))
            return self.fallback_extraction(query, start)

        await self._cache_set(cache_key, result)

        logger.info(
            "entity_extraction_completed",
            query=_preview(query),
            processing_time_ms=result.metadata.processing_time_ms,
            confidence=result.confidence.overall,
            model=result.metadata.model,
            from_cache=False,
        )
        return result

    async def _extract_with_llm(
        self,
        query: str,
        context: ExtractionContext | None,
        start: float,
    ) -> ExtractionResult:
        today = datetime.date.today()
        if context is None:
            context = ExtractionContext(date_context=current_date_context(today))
        elif not context.date_context:
            context = context.model_copy(update={"date_context": current_date_context(today)})

        messages = build_extraction_messages(query, context)
        response = await self.llm_client.chat(messages)

        parsed = parse_extraction_response(response.content, today=today)
        suggestions = parsed.suggestions
        if suggestions is None:
            suggestions = generate_suggestions(parsed.entities, parsed.confidence)

        return ExtractionResult(
            session_id=generate_session_id(),
            entities=parsed.entities,
            confidence=parsed.confidence,
            reasoning=parsed.reasoning or f"Entities extracted using {response.model}",
            suggestions=suggestions,
            metadata=ExtractionMetadata(
                processing_time_ms=(time.perf_counter() - start) * 1000,
                tokens=response.eval_count or 0,
                prompt_tokens=response.prompt_eval_count,
                model=response.model,
                provider=getattr(self.llm_client, "provider", None),
                from_cache=False,
                fallback=False,
                total_duration=response.total_duration,
                load_duration=response.load_duration,
                eval_duration=response.eval_duration,
            ),
        )

    def fallback_extraction(self, query: str, start: float | None = None) -> ExtractionResult:
        """Build a result from pattern matching alone. Never raises."""
        start = time.perf_counter() if start is None else start
        logger.info("fallback_extraction_used", query=_preview(query))

        entities = fallback_extract(query)
        return ExtractionResult(
            session_id=generate_session_id(),
            entities=entities,
            confidence=fallback_confidence(entities),
            reasoning=FALLBACK_REASONING,
            suggestions=list(FALLBACK_SUGGESTIONS),
            metadata=ExtractionMetadata(
                processing_time_ms=(time.perf_counter() - start) * 1000,
                tokens=0,
                model=FALLBACK_MODEL,
                provider=FALLBACK_MODEL,
                from_cache=False,
                fallback=True,
            ),
        )

    async def _cache_get(self, key: str) -> ExtractionResult | None:
        if self.cache is None:
            return None
        try:
            cached = await self.cache.get(key)
            if cached is None or isinstance(cached, ExtractionResult):
                return cached
            return ExtractionResult.model_validate(cached)
        except Exception as exc:  # noqa: BLE001
            logger.warning("cache_get_failed", error=str(exc))
            return None

    async def _cache_set(self, key: str, result: ExtractionResult) -> None:
        """Store a result; a failed write is logged and the LLM result is still served."""
        if self.cache is None:
            return
        try:
            await self.cache.set(key, result, self.settings.cache_ttl)
        except Exception as exc:  # noqa: BLE001
            logger.warning("cache_set_failed", error=str(exc))

    async def aclose(self) -> None:
        """Close the LLM client if it holds network resources."""
        aclose = getattr(self.llm_client, "aclose", None)
        if aclose is not None:
            await aclose()


def create_extraction_service(
    settings: Settings | None = None,
    llm_client: LLMClient | None = None,
    cache: CacheService | None = None,
    rate_limiter: RateLimiter | None = None,
) -> EntityExtractionService:
    """Wire an extraction service from settings.

    Collaborators that are not passed in are built from settings: the LLM
    client for ``settings.llm_provider``, an ``InMemoryCache`` when caching
    is enabled and a ``SlidingWindowRateLimiter`` when rate limiting is.
    """
    from venue_extractor.config import get_settings

    settings = settings or get_settings()

    if cache is None and settings.cache_enabled:
        cache = InMemoryCache(max_entries=settings.cache_max_entries)
    if rate_limiter is None and settings.rate_limit_enabled:
        rate_limiter = SlidingWindowRateLimiter(
            max_requests=settings.rate_limit_max_requests,
            window_seconds=settings.rate_limit_window_seconds,
        )

    return EntityExtractionService(
        llm_client=llm_client or create_llm_client(settings),
        cache=cache,
        rate_limiter=rate_limiter,
        settings=settings,
    )


async def extract_entities(
    query: str,
    context: ExtractionContext | None = None,
    settings: Settings | None = None,
) -> ExtractionResult:
    """One-shot extraction: build a service, run one query, close the client.

    Long-running callers should build one service with
    ``create_extraction_service`` and reuse it.
    """
    service = create_extraction_service(settings)
    try:
        return await service.extract_entities(query, context)
    finally:
        await service.aclose()
