"""Command-line interface for Venue Extractor.

This module provides the main entry point for the CLI application.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

import structlog

from venue_extractor import __version__
from venue_extractor.config import Settings, get_settings
from venue_extractor.exceptions import ConfigurationError, QueryValidationError, RateLimitExceededError
from venue_extractor.extraction.service import create_extraction_service
from venue_extractor.llm import create_llm_client
from venue_extractor.models import ExtractionContext

logger = structlog.get_logger()


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="venue-extractor", description="Venue Extractor")
    parser.add_argument(
        "--provider",
        choices=["ollama", "gemini"],
        default=None,
        help="LLM provider (default: settings llm_provider)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    extract_parser = subparsers.add_parser(
        "extract",
        help="Extract venue-search entities from a free-text query",
    )
    extract_parser.add_argument("query", help="Free-text venue search query")
    extract_parser.add_argument(
        "--user-location",
        default=None,
        help="User's current location, used as context",
    )
    extract_parser.add_argument(
        "--previous-query",
        default=None,
        help="Previous query in the conversation, used as context",
    )
    extract_parser.add_argument(
        "--date-context",
        default=None,
        help='Override the current date line, e.g. "Today is Monday, March 3, 2025"',
    )
    extract_parser.add_argument(
        "--preferences",
        default=None,
        help="User preferences as a JSON object",
    )
    extract_parser.add_argument(
        "--fallback-only",
        action="store_true",
        help="Skip the LLM and use pattern-based extraction",
    )
    extract_parser.add_argument("--indent", type=int, default=2, help="JSON indentation")

    subparsers.add_parser("check", help="Check that the configured LLM model is available")

    return parser


def _build_context(args: argparse.Namespace) -> ExtractionContext | None:
    preferences = None
    if args.preferences:
        preferences = json.loads(args.preferences)
        if not isinstance(preferences, dict):
            raise ValueError("--preferences must be a JSON object")

    if not any([args.user_location, args.previous_query, args.date_context, preferences]):
        return None

    return ExtractionContext(
        previous_query=args.previous_query,
        user_location=args.user_location,
        date_context=args.date_context,
        user_preferences=preferences,
    )


async def _cmd_extract(args: argparse.Namespace, settings: Settings) -> int:
    try:
        context = _build_context(args)
    except ValueError as exc:
        print(f"Invalid --preferences: {exc}", file=sys.stderr)
        return 2

    service = create_extraction_service(settings)
    try:
        if args.fallback_only:
            service.validate_query(args.query)
            result = service.fallback_extraction(args.query)
        else:
            result = await service.extract_entities(args.query, context)
    except QueryValidationError as exc:
        print(f"Invalid query: {exc}", file=sys.stderr)
        return 2
    except RateLimitExceededError as exc:
        print(f"Rate limited, retry after {exc.retry_after_seconds}s", file=sys.stderr)
        return 3
    finally:
        await service.aclose()

    print(json.dumps(result.model_dump(mode="json", by_alias=True), indent=args.indent))
    return 0


async def _cmd_check(settings: Settings) -> int:
    client = create_llm_client(settings)
    try:
        available = await client.check_model()
    finally:
        await client.aclose()

    status = "available" if available else "NOT available"
    print(f"{client.provider} model {client.model_name}: {status}")
    return 0 if available else 1


def main(args: list[str] | None = None) -> int:
    """Main entry point for the Venue Extractor CLI.

    Args:
        args: Command-line arguments. If None, uses sys.argv.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    if args is None:
        args = sys.argv[1:]

    parser = _build_parser()
    parsed = parser.parse_args(args)

    settings = get_settings()
    if parsed.provider:
        settings = settings.model_copy(update={"llm_provider": parsed.provider})

    # Configure logging; logs go to stderr so stdout stays valid JSON.
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, settings.log_level.upper(), logging.INFO)
        ),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )

    logger.info("venue_extractor_started", version=__version__, debug=settings.debug)

    try:
        if parsed.command == "extract":
            return asyncio.run(_cmd_extract(parsed, settings))
        if parsed.command == "check":
            return asyncio.run(_cmd_check(settings))
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2

    logger.error("unknown_command", command=parsed.command)
    return 2


if __name__ == "__main__":
    sys.exit(main())
