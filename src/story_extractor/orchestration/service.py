"""Single-URL and batch orchestration.

:class:`Orchestrator` drives URLs through fetch → produce → render →
persist and keeps per-story and per-batch state in the storage
collaborator.

Guarantees:

- :meth:`Orchestrator.process_single_url` never raises for a pipeline
  failure: every error is normalised to an
  :class:`~story_extractor.core.exceptions.ExtractionError`, persisted on a
  failed story, and returned as a failure result that still carries the
  story id.
- :meth:`Orchestrator.process_batch` runs URLs in windows of the
  concurrency limit; each window is awaited as a whole before the next one
  starts, and the batch counters are written after every window.
- Story and batch writes are best effort: a storage failure is logged and
  does not change the in-memory outcome.  Writing the rendered pages is the
  exception, since a story without pages cannot be served; that failure
  fails the story with ``STORAGE_ERROR``.
- :meth:`Orchestrator.retry_failed_stories` re-runs the failed stories of a
  batch under their existing ids.  An unknown batch raises ``NOT_FOUND``.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Sequence
from typing import Any

import httpx
import structlog

from story_extractor.api.metrics import (
    batch_windows_total,
    extraction_duration_seconds,
    stories_total,
)
from story_extractor.config.settings import Settings
from story_extractor.core.exceptions import ErrorKind, ExtractionError, to_extraction_error
from story_extractor.core.helpers import new_batch_id, new_story_id, utcnow
from story_extractor.core.schemas.extraction import (
    BatchItemResult,
    BatchResult,
    BatchStatusRead,
    ContentSummary,
    ExtractionResult,
    ExtractOptions,
    GammaDocumentRead,
    RetryResult,
    StoryStatusRead,
)
from story_extractor.core.schemas.story import Batch, Story, StoryStatus
from story_extractor.documents.gamma import GammaClient, StoryBrief
from story_extractor.orchestration.assets import build_asset_metadata
from story_extractor.orchestration.csv_input import UrlEntry
from story_extractor.producers.base import ContentProducer, ProducedContent
from story_extractor.rendering.templates import (
    render_batch_dashboard,
    render_pdf_ready_page,
    render_story_page,
    urlbox_link,
)
from story_extractor.scraper.fetcher import Fetcher
from story_extractor.storage.base import StoryStorage
from story_extractor.storage.files import PDF_READY_PAGE, STORY_PAGE, HtmlArtifactStore

logger = structlog.get_logger(__name__)

#: Fetch timeout multiplier for ``high`` priority batch rows.
HIGH_PRIORITY_TIMEOUT_FACTOR: float = 1.5

#: Seconds allowed for a completion callback POST.
CALLBACK_TIMEOUT: float = 10.0


class Orchestrator:
    """Runs the extraction pipeline for single URLs and batches.

    Args:
        settings: Application settings (timeouts, concurrency, links).
        fetcher: Fetcher with retry/backoff.
        producer: Content producer (heuristic or agents).
        storage: Story and batch storage.
        artifacts: Rendered page store.
        gamma: Optional document-generation client.
        http_client: Client used for callbacks; created when omitted.
    """

    def __init__(
        self,
        *,
        settings: Settings,
        fetcher: Fetcher,
        producer: ContentProducer,
        storage: StoryStorage,
        artifacts: HtmlArtifactStore,
        gamma: GammaClient | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.settings = settings
        self.fetcher = fetcher
        self.producer = producer
        self.storage = storage
        self.artifacts = artifacts
        self.gamma = gamma
        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=CALLBACK_TIMEOUT)
        self._background: set[asyncio.Task[None]] = set()

    # ------------------------------------------------------------------
    # Links
    # ------------------------------------------------------------------

    def story_page_url(self, story_id: str, page: str = STORY_PAGE) -> str:
        return f"{self.settings.base_url.rstrip('/')}/stories/{story_id}/{page}"

    def dashboard_url(self, batch_id: str) -> str:
        return f"{self.settings.base_url.rstrip('/')}/batches/{batch_id}/"

    # ------------------------------------------------------------------
    # Best-effort persistence
    # ------------------------------------------------------------------

    async def _save_story(self, story: Story) -> None:
        try:
            await self.storage.save_story(story)
        except Exception as exc:  # noqa: BLE001
            logger.warning("story_save_failed", story_id=story.id, error=str(exc))

    async def _save_batch(self, batch: Batch) -> None:
        try:
            await self.storage.save_batch(batch)
        except Exception as exc:  # noqa: BLE001
            logger.warning("batch_save_failed", batch_id=batch.id, error=str(exc))

    async def _update_batch(self, batch_id: str, **fields: Any) -> None:
        try:
            await self.storage.update_batch(batch_id, **fields)
        except Exception as exc:  # noqa: BLE001
            logger.warning("batch_update_failed", batch_id=batch_id, error=str(exc))

    # ------------------------------------------------------------------
    # Callbacks
    # ------------------------------------------------------------------

    async def _send_callback(self, callback_url: str, payload: dict[str, Any]) -> None:
        try:
            response = await self._http.post(callback_url, json=payload, timeout=CALLBACK_TIMEOUT)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.error("callback_failed", callback_url=callback_url, error=str(exc))
            return
        logger.info("callback_sent", callback_url=callback_url)

    def _schedule_callback(self, callback_url: str | None, result: ExtractionResult) -> None:
        if not callback_url:
            return
        task = asyncio.create_task(self._send_callback(callback_url, result.to_payload()))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    # ------------------------------------------------------------------
    # Single URL
    # ------------------------------------------------------------------

    async def process_single_url(
        self,
        url: str,
        options: ExtractOptions | None = None,
        *,
        existing_story_id: str | None = None,
        timeout_factor: float = 1.0,
    ) -> ExtractionResult:
        """Extract one URL and persist the resulting story.

        Args:
            url: Page to extract.
            options: Per-request overrides.
            existing_story_id: Reuse this story id (retries update in place).
            timeout_factor: Multiplier applied to the fetch timeout.

        Returns:
            A success or failure :class:`ExtractionResult`; never raises for
            a pipeline error.
        """
        options = options or ExtractOptions()
        story_id = existing_story_id or new_story_id()
        extracted_at = utcnow()
        method = self.producer.name
        started = time.monotonic()

        story = Story(id=story_id, original_url=url, extracted_at=extracted_at)
        await self._save_story(story)
        logger.info("story_processing", story_id=story_id, url=url, method=method)

        try:
            timeout = (options.timeout_seconds or self.settings.fetch_timeout) * timeout_factor
            fetched = await self.fetcher.fetch(
                url, timeout=timeout, max_retries=options.max_retries
            )
            final_url = fetched.final_url or url
            if final_url != url:
                logger.debug("story_redirected", story_id=story_id, final_url=final_url)

            produced = await self.producer.produce(fetched.html, final_url)
            content = produced.content
            page = render_story_page(story_id, final_url, extracted_at, content)
            pdf_ready = produced.pdf_ready_html or render_pdf_ready_page(
                story_id, final_url, extracted_at, content
            )
            await self.artifacts.save_story_pages(story_id, page, pdf_ready)

            story = Story(
                id=story_id,
                original_url=final_url,
                status=StoryStatus.COMPLETED,
                extracted_at=extracted_at,
                content=content,
            )
            result = self._success_result(story, produced, method)
        except Exception as exc:  # noqa: BLE001
            return await self._fail(story, to_extraction_error(exc), options, method)

        await self._save_story(story)
        stories_total.labels(status="completed", method=method).inc()
        extraction_duration_seconds.labels(method=method).observe(time.monotonic() - started)
        logger.info("story_completed", story_id=story_id, words=content.word_count)

        if options.use_gamma and self.gamma is not None:
            await self._attach_gamma(result, produced, options)
        self._schedule_callback(options.callback_url, result)
        return result

    async def _fail(
        self,
        story: Story,
        error: ExtractionError,
        options: ExtractOptions,
        method: str,
    ) -> ExtractionResult:
        failed = Story(
            id=story.id,
            original_url=story.original_url,
            status=StoryStatus.FAILED,
            extracted_at=story.extracted_at,
            error=error.kind,
        )
        await self._save_story(failed)
        stories_total.labels(status="failed", method=method).inc()
        logger.error(
            "story_failed",
            story_id=story.id,
            url=story.original_url,
            error=error.kind.value,
            message=error.message,
        )
        result = ExtractionResult(
            success=False,
            story_id=story.id,
            url=story.original_url,
            extracted_at=story.extracted_at,
            processing_method=method,
            error=error.kind,
            message=error.message,
            retryable=error.retryable,
        )
        self._schedule_callback(options.callback_url, result)
        return result

    def _success_result(
        self, story: Story, produced: ProducedContent, method: str
    ) -> ExtractionResult:
        content = produced.content
        assert content is not None
        pdf_ready_url = self.story_page_url(story.id, PDF_READY_PAGE)
        return ExtractionResult(
            success=True,
            story_id=story.id,
            url=story.original_url,
            extracted_at=story.extracted_at,
            processing_method=method,
            content=ContentSummary(
                title=content.title,
                text_only=content.text_only,
                word_count=content.word_count,
                estimated_read_time=content.estimated_read_time,
                quotes=content.quotes,
                extras=produced.extras,
            ),
            html_page_url=self.story_page_url(story.id),
            pdf_ready_url=pdf_ready_url,
            urlbox_link=urlbox_link(
                pdf_ready_url,
                api_key=self.settings.urlbox_api_key,
                width=self.settings.urlbox_screenshot_width,
                height=self.settings.urlbox_screenshot_height,
            ),
            asset=build_asset_metadata(content, produced.extras),
            review=produced.review,
        )

    async def _attach_gamma(
        self, result: ExtractionResult, produced: ProducedContent, options: ExtractOptions
    ) -> None:
        assert self.gamma is not None
        try:
            document = await self.gamma.generate_and_export(
                StoryBrief.from_content(produced.content, produced.extras),
                theme_id=options.gamma_theme_id,
                output_format=options.gamma_format,
                logo_url=options.logo_url,
            )
        except Exception as exc:  # noqa: BLE001
            logger.error("gamma_failed", story_id=result.story_id, error=str(exc))
            result.gamma_error = str(exc)
            return
        result.gamma = GammaDocumentRead(
            doc_id=document.doc_id,
            doc_url=document.doc_url,
            pdf_url=document.pdf_url,
            pdf_expires_at=document.pdf_expires_at,
        )
        logger.info("gamma_created", story_id=result.story_id, doc_url=document.doc_url)

    # ------------------------------------------------------------------
    # Batches
    # ------------------------------------------------------------------

    async def _process_entry(self, entry: UrlEntry) -> ExtractionResult:
        factor = HIGH_PRIORITY_TIMEOUT_FACTOR if entry.priority == "high" else 1.0
        return await self.process_single_url(entry.url, timeout_factor=factor)

    async def process_batch(
        self, entries: Sequence[UrlEntry], *, concurrency: int | None = None
    ) -> BatchResult:
        """Process ``entries`` in windows of ``concurrency`` URLs.

        Args:
            entries: Batch rows in input order.
            concurrency: Window size (default: ``max_concurrent_workers``).

        Returns:
            Final counters and one item per entry, in input order.
        """
        size = max(1, concurrency or self.settings.max_concurrent_workers)
        batch = Batch(id=new_batch_id(), total_urls=len(entries), created_at=utcnow())
        await self._save_batch(batch)
        logger.info("batch_started", batch_id=batch.id, total_urls=batch.total_urls, window=size)

        results: list[ExtractionResult] = []
        for start in range(0, len(entries), size):
            window = entries[start : start + size]
            results.extend(await asyncio.gather(*(self._process_entry(e) for e in window)))

            batch.processed = len(results)
            batch.completed = sum(1 for r in results if r.success)
            batch.failed = batch.processed - batch.completed
            batch.story_ids = [r.story_id for r in results if r.story_id]
            batch_windows_total.inc()
            await self._update_batch(
                batch.id,
                processed=batch.processed,
                completed=batch.completed,
                failed=batch.failed,
                story_ids=list(batch.story_ids),
            )
            logger.info(
                "batch_progress",
                batch_id=batch.id,
                processed=batch.processed,
                total_urls=batch.total_urls,
            )

        items = [
            BatchItemResult(
                story_id=result.story_id,
                url=result.url,
                name=entry.name,
                priority=entry.priority,
                status=StoryStatus.COMPLETED if result.success else StoryStatus.FAILED,
                html_page_url=result.html_page_url,
                error=result.error.value if result.error else None,
            )
            for entry, result in zip(entries, results)
        ]
        await self._write_dashboard(batch, items)
        logger.info(
            "batch_completed",
            batch_id=batch.id,
            completed=batch.completed,
            failed=batch.failed,
        )
        return BatchResult(
            batch_id=batch.id,
            total_urls=batch.total_urls,
            processed=batch.processed,
            completed=batch.completed,
            failed=batch.failed,
            created_at=batch.created_at,
            results=items,
            dashboard_url=self.dashboard_url(batch.id),
        )

    async def _write_dashboard(self, batch: Batch, items: list[BatchItemResult]) -> None:
        html = render_batch_dashboard(
            batch_id=batch.id,
            created_at=batch.created_at,
            total_urls=batch.total_urls,
            completed=batch.completed,
            failed=batch.failed,
            results=items,
        )
        await self.artifacts.save_batch_dashboard(batch.id, html)

    def _item_from_story(self, story: Story) -> BatchItemResult:
        completed = story.status is StoryStatus.COMPLETED
        return BatchItemResult(
            story_id=story.id,
            url=story.original_url,
            status=story.status,
            html_page_url=self.story_page_url(story.id) if completed else None,
            error=story.error.value if story.error else None,
        )

    async def _load_stories(self, story_ids: Sequence[str]) -> list[Story]:
        stories = []
        for story_id in story_ids:
            story = await self.storage.get_story(story_id)
            if story is not None:
                stories.append(story)
        return stories

    async def retry_failed_stories(self, batch_id: str) -> RetryResult:
        """Re-run every failed story of ``batch_id`` under its existing id.

        Raises:
            ExtractionError: ``NOT_FOUND`` when the batch does not exist.
        """
        batch = await self.storage.get_batch(batch_id)
        if batch is None:
            raise ExtractionError(ErrorKind.NOT_FOUND, f"Batch not found: {batch_id}")

        failed = [
            s for s in await self._load_stories(batch.story_ids) if s.status is StoryStatus.FAILED
        ]
        if not failed:
            return RetryResult(batch_id=batch_id, retried=0, message="No failed stories to retry")

        logger.info("batch_retry_started", batch_id=batch_id, retrying=len(failed))
        size = max(1, self.settings.max_concurrent_workers)
        results: list[ExtractionResult] = []
        for start in range(0, len(failed), size):
            window = failed[start : start + size]
            results.extend(
                await asyncio.gather(
                    *(self.process_single_url(s.original_url, existing_story_id=s.id) for s in window)
                )
            )

        succeeded = sum(1 for r in results if r.success)
        batch.completed += succeeded
        batch.failed -= succeeded
        await self._update_batch(batch_id, completed=batch.completed, failed=batch.failed)

        items = [self._item_from_story(s) for s in await self._load_stories(batch.story_ids)]
        await self._write_dashboard(batch, items)
        logger.info("batch_retry_completed", batch_id=batch_id, succeeded=succeeded)
        return RetryResult(
            batch_id=batch_id,
            retried=len(failed),
            succeeded=succeeded,
            still_failed=len(failed) - succeeded,
            results=results,
        )

    # ------------------------------------------------------------------
    # Status views
    # ------------------------------------------------------------------

    async def get_story_status(self, story_id: str) -> StoryStatusRead | None:
        story = await self.storage.get_story(story_id)
        if story is None:
            return None
        html_content = pdf_ready_html = None
        if story.status is StoryStatus.COMPLETED:
            html_content = await self.artifacts.read_story_page(story_id, STORY_PAGE)
            pdf_ready_html = await self.artifacts.read_story_page(story_id, PDF_READY_PAGE)
        return StoryStatusRead(
            story_id=story.id,
            url=story.original_url,
            status=story.status,
            extracted_at=story.extracted_at,
            title=story.content.title if story.content else None,
            html_content=html_content,
            pdf_ready_html=pdf_ready_html,
            error=story.error,
        )

    async def get_batch_status(self, batch_id: str) -> BatchStatusRead | None:
        batch = await self.storage.get_batch(batch_id)
        if batch is None:
            return None
        items = [self._item_from_story(s) for s in await self._load_stories(batch.story_ids)]
        return BatchStatusRead(
            batch_id=batch.id,
            total_urls=batch.total_urls,
            processed=batch.processed,
            completed=batch.completed,
            failed=batch.failed,
            created_at=batch.created_at,
            results=items,
            dashboard_url=self.dashboard_url(batch.id),
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def aclose(self) -> None:
        """Wait for pending callbacks, then release every collaborator."""
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)
        await self.fetcher.aclose()
        await self.producer.aclose()
        if self.gamma is not None:
            await self.gamma.aclose()
        if self._owns_http:
            await self._http.aclose()
        await self.storage.close()
