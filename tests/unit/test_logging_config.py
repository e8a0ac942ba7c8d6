"""Unit tests for the structured logging configuration.

Verifies that ``configure_logging()`` renders JSON to the chosen stream,
carries the request ID, and redacts secret-bearing fields.
"""

from __future__ import annotations

import json
import logging
from io import StringIO
from typing import Any

import structlog

from story_extractor.core.logging_config import configure_logging, request_id_var


def _records(buffer: StringIO) -> list[dict[str, Any]]:
    return [json.loads(line) for line in buffer.getvalue().splitlines() if line.strip()]


def _find(buffer: StringIO, event: str) -> dict[str, Any]:
    matching = [r for r in _records(buffer) if r.get("event") == event]
    assert matching, f"No record with event={event!r} in {buffer.getvalue()!r}"
    return matching[0]


class TestConfigureLogging:
    def test_stdlib_record_rendered_as_json(self) -> None:
        buffer = StringIO()
        configure_logging("INFO", stream=buffer)

        logging.getLogger("tests.logging").info("scraper: fetched page")

        record = _find(buffer, "scraper: fetched page")
        assert record["level"] == "info"
        assert record["logger"] == "tests.logging"
        assert "timestamp" in record

    def test_structlog_event_keeps_fields(self) -> None:
        buffer = StringIO()
        configure_logging("INFO", stream=buffer)

        structlog.get_logger("tests.logging").info("story_completed", story_id="story_1", words=12)

        record = _find(buffer, "story_completed")
        assert (record["story_id"], record["words"]) == ("story_1", 12)

    def test_level_filters_debug(self) -> None:
        buffer = StringIO()
        configure_logging("WARNING", stream=buffer)

        logging.getLogger("tests.logging").info("hidden_event")

        assert _records(buffer) == []

    def test_calling_twice_keeps_one_handler(self) -> None:
        configure_logging("INFO", stream=StringIO())
        configure_logging("INFO", stream=StringIO())

        assert len(logging.getLogger().handlers) == 1


class TestProcessors:
    def test_request_id_injected(self) -> None:
        buffer = StringIO()
        configure_logging("INFO", stream=buffer)
        token = request_id_var.set("req-1234")
        try:
            structlog.get_logger("tests.logging").info("request_event")
        finally:
            request_id_var.reset(token)

        assert _find(buffer, "request_event")["request_id"] == "req-1234"

    def test_no_request_id_outside_requests(self) -> None:
        buffer = StringIO()
        configure_logging("INFO", stream=buffer)

        structlog.get_logger("tests.logging").info("background_event")

        assert _find(buffer, "background_event").get("request_id") is None

    def test_secrets_redacted(self) -> None:
        buffer = StringIO()
        configure_logging("INFO", stream=buffer)

        structlog.get_logger("tests.logging").info(
            "client_ready",
            gamma_api_key="gk-secret",
            headers={"X-API-KEY": "gk-secret", "Accept": "application/json"},
        )

        record = _find(buffer, "client_ready")
        assert record["gamma_api_key"] == "[REDACTED]"
        assert record["headers"] == {"X-API-KEY": "[REDACTED]", "Accept": "application/json"}
