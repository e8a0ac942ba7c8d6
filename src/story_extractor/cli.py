"""Command-line entry point.

Usage::

    story-extractor extract https://example.com/customers/acme
    story-extractor batch urls.csv --concurrency 3
    story-extractor retry batch_1a2b3c4d5e6f

    # Same, without a database (stories are kept in memory)
    python -m story_extractor --dry-run extract https://example.com/customers/acme

Results are printed to stdout as JSON.  The exit code is 0 when every
requested extraction succeeded and 1 otherwise.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any

import structlog

from story_extractor.config.settings import get_settings
from story_extractor.core.exceptions import ExtractionError
from story_extractor.core.logging_config import configure_logging
from story_extractor.orchestration.csv_input import parse_url_csv
from story_extractor.orchestration.factory import build_orchestrator
from story_extractor.orchestration.service import Orchestrator
from story_extractor.storage.memory import InMemoryStoryStorage

logger = structlog.get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="story-extractor",
        description="Extract customer stories from web pages.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Keep story and batch records in memory instead of the database.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    extract = commands.add_parser("extract", help="Extract a single URL.")
    extract.add_argument("url")

    batch = commands.add_parser("batch", help="Extract every URL of a CSV file.")
    batch.add_argument("file", type=Path)
    batch.add_argument("--concurrency", type=int, default=None)

    retry = commands.add_parser("retry", help="Retry the failed stories of a batch.")
    retry.add_argument("batch_id")
    return parser


def _emit(payload: dict[str, Any]) -> None:
    print(json.dumps(payload, indent=2, default=str), flush=True)


async def _run(args: argparse.Namespace, orchestrator: Orchestrator) -> bool:
    if args.command == "extract":
        result = await orchestrator.process_single_url(args.url)
        _emit(result.to_payload())
        return result.success

    if args.command == "batch":
        entries = parse_url_csv(args.file.read_text(encoding="utf-8"))
        if not entries:
            _emit({"success": False, "error": "VALIDATION_ERROR", "message": "No valid URLs found"})
            return False
        batch = await orchestrator.process_batch(entries, concurrency=args.concurrency)
        _emit(batch.model_dump(mode="json"))
        return batch.failed == 0

    retried = await orchestrator.retry_failed_stories(args.batch_id)
    _emit(retried.model_dump(mode="json", exclude_none=True))
    return retried.still_failed == 0


async def _main(args: argparse.Namespace) -> bool:
    settings = get_settings()
    storage = InMemoryStoryStorage() if args.dry_run else None
    orchestrator = await build_orchestrator(settings, storage=storage)
    try:
        return await _run(args, orchestrator)
    except ExtractionError as exc:
        _emit({"success": False, **exc.to_dict()})
        return False
    finally:
        await orchestrator.aclose()


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    if args.command == "batch" and not args.file.is_file():
        print(f"CSV file not found: {args.file}", file=sys.stderr)
        sys.exit(2)
    configure_logging(get_settings().log_level, stream=sys.stderr)
    ok = asyncio.run(_main(args))
    sys.exit(0 if ok else 1)
