"""Rendered HTML artifacts on the local filesystem.

Layout under the storage root::

    <root>/<story_id>/index.html         standard story page
    <root>/<story_id>/pdf-ready.html     print layout
    <root>/batches/<batch_id>/index.html batch dashboard

The root is served statically by the API at ``/stories`` (and its
``batches`` subdirectory at ``/batches``).
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from story_extractor.core.exceptions import ErrorKind, ExtractionError

logger = logging.getLogger(__name__)

STORY_PAGE: str = "index.html"
PDF_READY_PAGE: str = "pdf-ready.html"
BATCHES_DIR: str = "batches"

_READABLE_PAGES = frozenset({STORY_PAGE, PDF_READY_PAGE})


class HtmlArtifactStore:
    """Reads and writes story pages and batch dashboards under ``root``."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root).resolve()

    @property
    def batches_root(self) -> Path:
        return self.root / BATCHES_DIR

    def story_dir(self, story_id: str) -> Path:
        return self.root / story_id

    def ensure_dirs(self) -> None:
        self.batches_root.mkdir(parents=True, exist_ok=True)

    def _write_story_pages(self, story_id: str, page: str, pdf_ready: str) -> None:
        directory = self.story_dir(story_id)
        directory.mkdir(parents=True, exist_ok=True)
        (directory / STORY_PAGE).write_text(page, encoding="utf-8")
        (directory / PDF_READY_PAGE).write_text(pdf_ready, encoding="utf-8")

    async def save_story_pages(self, story_id: str, page: str, pdf_ready: str) -> None:
        """Write both pages of a story.

        Raises:
            ExtractionError: ``STORAGE_ERROR`` when either file cannot be
                written.
        """
        try:
            await asyncio.to_thread(self._write_story_pages, story_id, page, pdf_ready)
        except OSError as exc:
            raise ExtractionError(
                ErrorKind.STORAGE_ERROR,
                f"Failed to save HTML files: {exc}",
                {"story_id": story_id},
            ) from exc
        logger.debug("storage: saved HTML pages for %s", story_id)

    async def read_story_page(self, story_id: str, filename: str = STORY_PAGE) -> str | None:
        """Return a story page's HTML, or ``None`` when it does not exist."""
        if filename not in _READABLE_PAGES:
            raise ValueError(f"Unknown story page: {filename}")
        path = self.story_dir(story_id) / filename
        try:
            return await asyncio.to_thread(path.read_text, encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            logger.error("storage: cannot read %s: %s", path, exc)
            return None

    def _write_dashboard(self, batch_id: str, html: str) -> None:
        directory = self.batches_root / batch_id
        directory.mkdir(parents=True, exist_ok=True)
        (directory / STORY_PAGE).write_text(html, encoding="utf-8")

    async def save_batch_dashboard(self, batch_id: str, html: str) -> bool:
        """Write a batch dashboard; failures are logged and reported as ``False``."""
        try:
            await asyncio.to_thread(self._write_dashboard, batch_id, html)
        except OSError as exc:
            logger.error("storage: failed to save dashboard for %s: %s", batch_id, exc)
            return False
        return True
