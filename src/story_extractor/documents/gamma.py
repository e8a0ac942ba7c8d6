"""Gamma public API client.

Turns an extracted story into a designed document (and a PDF export of it)
through Gamma's asynchronous generation API:

1. ``POST /generations`` returns a ``generationId``.
2. ``GET /generations/{id}`` is polled every :data:`POLL_INTERVAL` seconds,
   at most :data:`MAX_POLL_ATTEMPTS` times, until the status is terminal.
3. When the generation carries no PDF link, ``POST /gammas/{id}/export`` is
   tried once as a fallback.

Failures surface as :class:`~story_extractor.core.exceptions.GenerationError`;
running out of poll attempts raises the distinct
:class:`~story_extractor.core.exceptions.GenerationTimeoutError`.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Literal

import httpx

from story_extractor.core.exceptions import GenerationError, GenerationTimeoutError
from story_extractor.core.schemas.story import Content, Quote

logger = logging.getLogger(__name__)

#: Seconds between two status polls.
POLL_INTERVAL: float = 5.0

#: Poll attempts before the generation is reported as timed out.
MAX_POLL_ATTEMPTS: int = 60

#: Seconds to wait before falling back to an explicit PDF export.
EXPORT_FALLBACK_DELAY: float = 2.0

#: Full story text is included in the prompt only below this length.
MAX_PROMPT_STORY_CHARS: int = 50_000

GENERATION_TIMEOUT: float = 120.0
POLL_TIMEOUT: float = 30.0
EXPORT_TIMEOUT: float = 60.0

_DONE_STATUSES = frozenset({"completed", "complete"})
_FAILED_STATUSES = frozenset({"failed", "error"})

OutputFormat = Literal["document", "presentation", "webpage"]


async def _poll_sleep(seconds: float) -> None:
    await asyncio.sleep(seconds)


@dataclass
class StoryBrief:
    """The story fields Gamma builds its document from."""

    title: str
    text: str = ""
    company_name: str | None = None
    industry: str | None = None
    summary: str | None = None
    metrics: list[dict[str, Any]] = field(default_factory=list)
    problem: str | None = None
    solution: str | None = None
    results: str | None = None
    quotes: list[Quote] = field(default_factory=list)

    @classmethod
    def from_content(cls, content: Content, extras: dict[str, Any] | None = None) -> StoryBrief:
        extras = extras or {}
        return cls(
            title=content.title,
            text=content.text_only,
            company_name=extras.get("company_name"),
            industry=extras.get("industry"),
            summary=content.metadata.description,
            metrics=[m for m in extras.get("metrics") or [] if isinstance(m, dict)],
            problem=extras.get("problem"),
            solution=extras.get("solution"),
            results=extras.get("results"),
            quotes=list(content.quotes),
        )


@dataclass
class GammaDocument:
    """A finished Gamma generation."""

    doc_id: str | None
    doc_url: str | None
    title: str | None
    status: str
    pdf_url: str | None = None
    pptx_url: str | None = None
    pdf_expires_at: str | None = None


def build_prompt(brief: StoryBrief) -> str:
    """Render ``brief`` as the markdown input text of a generation."""
    sections = [f"# {brief.title or 'Customer Story'}"]

    if brief.company_name:
        sections.append(f"## {brief.company_name}")
        if brief.industry:
            sections.append(f"*Industry: {brief.industry}*")
    if brief.summary:
        sections.append(f"\n## Overview\n{brief.summary}")
    if brief.metrics:
        sections.append("\n## Key Results")
        sections.extend(
            f"- **{m.get('value', '')}**: {m.get('description', '')}" for m in brief.metrics
        )
    if brief.problem:
        sections.append(f"\n## The Challenge\n{brief.problem}")
    if brief.solution:
        sections.append(f"\n## The Solution\n{brief.solution}")
    if brief.results:
        sections.append(f"\n## The Results\n{brief.results}")
    if brief.quotes:
        sections.append("\n## What They Said")
        for quote in brief.quotes:
            attribution = f"\n> - {quote.cite}" if quote.cite else ""
            sections.append(f'\n> "{quote.text}"{attribution}')
    if brief.text and len(brief.text) < MAX_PROMPT_STORY_CHARS:
        sections.append(f"\n## Full Story\n{brief.text}")

    return "\n".join(sections)


class GammaClient:
    """Async client for the Gamma generation API.

    Args:
        api_key: Gamma API key, sent as ``X-API-KEY``.
        base_url: API base URL.
        default_theme_id: Theme used when a call names none.
        client: Optional shared HTTP client; one is created (and owned) when
            omitted.
    """

    def __init__(
        self,
        *,
        api_key: str,
        base_url: str = "https://public-api.gamma.app/v1.0",
        default_theme_id: str | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._default_theme_id = default_theme_id
        self._headers = {"X-API-KEY": api_key, "Content-Type": "application/json"}
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient()

    async def _request(
        self, method: str, path: str, *, timeout: float, json: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        try:
            response = await self._client.request(
                method,
                f"{self._base_url}{path}",
                json=json,
                headers=self._headers,
                timeout=timeout,
            )
            response.raise_for_status()
            return response.json()  # type: ignore[no-any-return]
        except httpx.HTTPStatusError as exc:
            raise GenerationError(
                f"gamma: HTTP {exc.response.status_code} on {path}: {exc.response.text[:200]}"
            ) from exc
        except httpx.HTTPError as exc:
            raise GenerationError(f"gamma: request to {path} failed: {exc}") from exc
        except ValueError as exc:
            raise GenerationError(f"gamma: invalid JSON from {path}") from exc

    async def list_themes(self) -> list[dict[str, Any]]:
        body = await self._request("GET", "/themes", timeout=POLL_TIMEOUT)
        themes = body.get("themes") or []
        logger.info("gamma: found %d themes", len(themes))
        return themes

    async def generate_document(
        self,
        brief: StoryBrief,
        *,
        theme_id: str | None = None,
        output_format: OutputFormat = "document",
        logo_url: str | None = None,
        export_as: Literal["pdf", "pptx"] = "pdf",
    ) -> GammaDocument:
        """Start a generation for ``brief`` and wait for it to finish.

        Raises:
            GenerationError: The API rejected the request, returned no
                generation id, or reported a failed generation.
            GenerationTimeoutError: The generation never finished.
        """
        body: dict[str, Any] = {
            "inputText": build_prompt(brief),
            "textMode": "preserve",
            "format": output_format,
            "numCards": 10,
            "cardSplit": "auto",
            "exportAs": export_as,
            "textOptions": {
                "tone": "professional",
                "audience": "business professionals",
                "language": "en",
            },
            "imageOptions": {"source": "aiGenerated"},
        }
        theme = theme_id or self._default_theme_id
        if theme:
            body["themeId"] = theme
        if logo_url:
            body["cardOptions"] = {
                "headerFooter": {
                    "topRight": {"type": "image", "source": "custom", "src": logo_url, "size": "md"},
                    "bottomLeft": {"type": "text", "value": brief.company_name or ""},
                }
            }

        logger.info("gamma: generating %s for %r", output_format, brief.title)
        started = await self._request("POST", "/generations", json=body, timeout=GENERATION_TIMEOUT)
        generation_id = started.get("generationId")
        if not generation_id:
            raise GenerationError("gamma: response did not include a generationId")

        document = await self.poll_generation(generation_id)
        document.title = document.title or brief.title
        return document

    async def poll_generation(self, generation_id: str) -> GammaDocument:
        for attempt in range(1, MAX_POLL_ATTEMPTS + 1):
            logger.debug("gamma: polling %s (%d/%d)", generation_id, attempt, MAX_POLL_ATTEMPTS)
            body = await self._request(
                "GET", f"/generations/{generation_id}", timeout=POLL_TIMEOUT
            )
            status = body.get("status")
            if status in _DONE_STATUSES:
                gamma = body.get("gamma") or {}
                logger.info("gamma: generation %s completed", generation_id)
                return GammaDocument(
                    doc_id=gamma.get("id"),
                    doc_url=gamma.get("url"),
                    title=gamma.get("title"),
                    status="completed",
                    pdf_url=body.get("pdfUrl"),
                    pptx_url=body.get("pptxUrl"),
                )
            if status in _FAILED_STATUSES:
                raise GenerationError(
                    f"gamma: generation failed: {body.get('error') or 'Unknown error'}"
                )
            await _poll_sleep(POLL_INTERVAL)

        raise GenerationTimeoutError("generation timed out")

    async def export_pdf(self, doc_id: str) -> tuple[str | None, str | None]:
        """Export a finished document; returns ``(pdf_url, expires_at)``."""
        logger.info("gamma: exporting %s to PDF", doc_id)
        body = await self._request(
            "POST", f"/gammas/{doc_id}/export", json={"format": "pdf"}, timeout=EXPORT_TIMEOUT
        )
        return body.get("url"), body.get("expiresAt")

    async def generate_and_export(
        self,
        brief: StoryBrief,
        *,
        theme_id: str | None = None,
        output_format: OutputFormat = "document",
        logo_url: str | None = None,
    ) -> GammaDocument:
        """Generate a document and make sure it carries a PDF link if possible.

        A failed fallback export is logged and leaves ``pdf_url`` empty.
        """
        document = await self.generate_document(
            brief, theme_id=theme_id, output_format=output_format, logo_url=logo_url
        )
        if document.pdf_url or not document.doc_id:
            return document

        await _poll_sleep(EXPORT_FALLBACK_DELAY)
        try:
            document.pdf_url, document.pdf_expires_at = await self.export_pdf(document.doc_id)
        except GenerationError as exc:
            logger.warning("gamma: PDF export of %s failed: %s", document.doc_id, exc)
        return document

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
