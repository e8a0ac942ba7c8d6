"""Structured logging for the API, the orchestrator and the CLI.

:func:`configure_logging` installs one root handler whose
``structlog.stdlib.ProcessorFormatter`` renders both kinds of records the
package emits:

- library modules (scraper, extraction, agents, gamma, storage) log through
  the stdlib with ``%``-style messages prefixed by their area::

      logger = logging.getLogger(__name__)
      logger.info("scraper: fetched %s", url)

- the API and orchestration layers log keyword events through structlog::

      logger = structlog.get_logger(__name__)
      logger.info("story_completed", story_id=story_id, words=412)

Records are JSON lines, or coloured console output at ``DEBUG``.  Inside an
HTTP request every record also carries the ``request_id`` set by the
middleware in ``api/main.py``.
"""

from __future__ import annotations

import logging
import re
import sys
from contextvars import ContextVar
from typing import TextIO

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)
"""Request ID of the HTTP request being served, if any."""

#: Event keys (and first-level nested keys) whose values never reach a renderer.
_SECRET_KEY_RE = re.compile(r"api[_-]?key|authorization|secret|token|password", re.IGNORECASE)

_REDACTED = "[REDACTED]"

#: Third-party loggers held at WARNING unless running at DEBUG.
_QUIET_LOGGERS: tuple[str, ...] = (
    "uvicorn.access",
    "httpx",
    "httpcore",
    "aiosqlite",
    "sqlalchemy.engine",
)


# ---------------------------------------------------------------------------
# Processors
# ---------------------------------------------------------------------------


def _redact_secrets(
    logger: WrappedLogger,  # noqa: ARG001
    method_name: str,  # noqa: ARG001
    event_dict: EventDict,
) -> EventDict:
    """Mask API keys and auth headers, e.g. ``headers={"X-API-KEY": ...}``."""
    for key, value in list(event_dict.items()):
        if _SECRET_KEY_RE.search(key):
            event_dict[key] = _REDACTED
        elif isinstance(value, dict):
            event_dict[key] = {
                k: _REDACTED if _SECRET_KEY_RE.search(str(k)) else v for k, v in value.items()
            }
    return event_dict


def _add_request_id(
    logger: WrappedLogger,  # noqa: ARG001
    method_name: str,  # noqa: ARG001
    event_dict: EventDict,
) -> EventDict:
    request_id = request_id_var.get()
    if request_id is not None:
        event_dict.setdefault("request_id", request_id)
    return event_dict


def _pre_chain() -> list[Processor]:
    """Processors shared by structlog events and foreign stdlib records."""
    return [
        structlog.contextvars.merge_contextvars,
        _add_request_id,
        _redact_secrets,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


def configure_logging(log_level: str = "INFO", stream: TextIO | None = None) -> None:
    """Route stdlib and structlog records through one JSON/console handler.

    Calling it again replaces the previous root handler, so the API factory,
    the CLI and tests can each reconfigure freely.

    Args:
        log_level: Level name, case-insensitive; unknown names mean ``INFO``.
        stream: Where records are written (default: stdout).  The CLI passes
            stderr so its JSON results stay alone on stdout.
    """
    level_name = log_level.upper()
    debug = level_name == "DEBUG"
    pre_chain = _pre_chain()

    renderer: Processor = (
        structlog.dev.ConsoleRenderer(colors=True) if debug else structlog.processors.JSONRenderer()
    )
    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(getattr(logging, level_name, logging.INFO))
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.NOTSET if debug else logging.WARNING)

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
