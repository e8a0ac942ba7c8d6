"""Jinja2 rendering of story pages and batch dashboards.

Three templates live in ``rendering/templates/``:

- ``story.html``: the standard web view of an extracted story.
- ``story_pdf.html``: a print-oriented layout sized for PDF screenshots.
- ``batch_dashboard.html``: per-item status table of a batch.

Autoescaping is on; the structured content HTML, already reduced to
``href``/``src``/``alt`` attributes by the normalizer, is inserted with
``|safe``.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any
from urllib.parse import urlencode

from jinja2 import Environment, FileSystemLoader, select_autoescape

from story_extractor.core.schemas.extraction import BatchItemResult
from story_extractor.core.schemas.story import Content

_TEMPLATES_DIR = Path(__file__).parent / "templates"

#: URLBox render API base.
URLBOX_API_BASE: str = "https://api.urlbox.io/v1"


def longdate(value: datetime | str | None) -> str:
    """Format a date as ``"January 5, 2024"``; unparseable strings pass through."""
    if not value:
        return ""
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return value
    return f"{value:%B} {value.day}, {value.year}"


def thousands(value: int) -> str:
    return f"{value:,}"


def _environment() -> Environment:
    env = Environment(
        loader=FileSystemLoader(_TEMPLATES_DIR),
        autoescape=select_autoescape(["html"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["longdate"] = longdate
    env.filters["thousands"] = thousands
    return env


_env = _environment()


def _story_context(
    story_id: str, original_url: str, extracted_at: datetime, content: Content
) -> dict[str, Any]:
    return {
        "story_id": story_id,
        "original_url": original_url,
        "extracted_at": extracted_at,
        "content": content,
    }


def render_story_page(
    story_id: str, original_url: str, extracted_at: datetime, content: Content
) -> str:
    return _env.get_template("story.html").render(
        _story_context(story_id, original_url, extracted_at, content)
    )


def render_pdf_ready_page(
    story_id: str, original_url: str, extracted_at: datetime, content: Content
) -> str:
    return _env.get_template("story_pdf.html").render(
        _story_context(story_id, original_url, extracted_at, content)
    )


def render_batch_dashboard(
    *,
    batch_id: str,
    created_at: datetime,
    total_urls: int,
    completed: int,
    failed: int,
    results: list[BatchItemResult],
) -> str:
    return _env.get_template("batch_dashboard.html").render(
        batch_id=batch_id,
        created_at=created_at,
        total_urls=total_urls,
        completed=completed,
        failed=failed,
        results=results,
    )


def urlbox_link(html_url: str, *, api_key: str, width: int, height: int) -> str | None:
    """Return a URLBox full-page PDF render link for ``html_url``.

    ``None`` when no API key is configured.
    """
    if not api_key:
        return None
    query = urlencode(
        {
            "url": html_url,
            "width": width,
            "height": height,
            "format": "pdf",
            "full_page": "true",
        }
    )
    return f"{URLBOX_API_BASE}/{api_key}/pdf?{query}"
