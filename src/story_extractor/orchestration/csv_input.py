"""CSV batch input parsing.

Headers are matched case-insensitively after trimming.  The URL is read
from the first present column among ``url``, ``link``, ``website`` and
``page``; the display name from ``name``, ``title`` or ``company``.  Rows
without a valid http(s) URL are skipped with a warning.
"""

from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass

from story_extractor.core.helpers import is_valid_url

logger = logging.getLogger(__name__)

URL_COLUMNS: tuple[str, ...] = ("url", "link", "website", "page")
NAME_COLUMNS: tuple[str, ...] = ("name", "title", "company")
DEFAULT_PRIORITY: str = "medium"


@dataclass(frozen=True)
class UrlEntry:
    """One batch input row."""

    url: str
    name: str | None = None
    priority: str = DEFAULT_PRIORITY


def _first(row: dict[str, str], columns: tuple[str, ...]) -> str:
    for column in columns:
        value = (row.get(column) or "").strip()
        if value:
            return value
    return ""


def parse_url_csv(text: str) -> list[UrlEntry]:
    """Return the valid URL entries of a CSV document, in file order."""
    reader = csv.DictReader(io.StringIO(text.lstrip("\ufeff")))
    if reader.fieldnames is None:
        return []
    reader.fieldnames = [(name or "").strip().lower() for name in reader.fieldnames]

    entries: list[UrlEntry] = []
    skipped = 0
    for row in reader:
        url = _first(row, URL_COLUMNS)
        if not url:
            continue
        if not is_valid_url(url):
            skipped += 1
            continue
        entries.append(
            UrlEntry(
                url=url,
                name=_first(row, NAME_COLUMNS) or None,
                priority=(row.get("priority") or DEFAULT_PRIORITY).strip().lower()
                or DEFAULT_PRIORITY,
            )
        )

    if skipped:
        logger.warning("orchestration: skipped %d rows with invalid URLs", skipped)
    return entries
