"""Agent-based content producer.

Three sequential Messages API calls replace the heuristic engine:

1. **Extractor**: raw HTML → JSON record of verbatim story fields.
2. **Reviewer**: record → quality verdict plus a cleaned record.
3. **Formatter**: cleaned record → complete print-ready HTML document.

The cleaned record is mapped onto the usual
:class:`~story_extractor.core.schemas.story.Content` contract; fields with
no place there (company, metrics, problem/solution/results, asset title and
description) are returned as ``extras``.

A reply the extractor cannot parse yields a degraded record titled
``"Extraction Error"`` holding the raw reply.  A reply the reviewer cannot
parse passes the extracted record through unchanged, with the review
marked ``degraded`` and no quality score.
"""

from __future__ import annotations

import json
import logging
import re
import time
from typing import Any
from urllib.parse import urlsplit

import httpx

from story_extractor.core.schemas.story import Content, Metadata, Quote
from story_extractor.extraction.normalizer import count_words, estimated_read_time
from story_extractor.producers.agents._anthropic import create_message
from story_extractor.producers.agents.config import (
    EXTRACTOR_MAX_TOKENS,
    EXTRACTOR_SYSTEM_PROMPT,
    FORMATTER_MAX_TOKENS,
    FORMATTER_SYSTEM_PROMPT,
    MAX_HTML_CHARS,
    REQUEST_TIMEOUT,
    REVIEWER_MAX_TOKENS,
    REVIEWER_SYSTEM_PROMPT,
)
from story_extractor.producers.base import ContentProducer, ProducedContent

logger = logging.getLogger(__name__)

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")
_CODE_FENCE_OPEN = re.compile(r"^```html?\n?", re.IGNORECASE)
_CODE_FENCE_CLOSE = re.compile(r"\n?```$")

#: Title of the degraded record produced when the extractor reply is not JSON.
EXTRACTION_ERROR_TITLE: str = "Extraction Error"

#: Title used when the cleaned record has none.
DEFAULT_TITLE: str = "Customer Story"

#: Record fields surfaced as ``extras`` (record key → extras key).
_EXTRA_FIELDS: dict[str, str] = {
    "companyName": "company_name",
    "industry": "industry",
    "metrics": "metrics",
    "problem": "problem",
    "solution": "solution",
    "results": "results",
    "assetTitle": "asset_title",
    "assetDescription": "asset_description",
}


def parse_json_object(text: str) -> dict[str, Any] | None:
    """Return the outermost ``{...}`` object in ``text``, or ``None``."""
    match = _JSON_OBJECT.search(text or "")
    if match is None:
        return None
    try:
        value = json.loads(match.group(0))
    except ValueError:
        return None
    return value if isinstance(value, dict) else None


def clean_html_document(text: str) -> str:
    """Strip markdown code fences and make sure a doctype leads the document."""
    html = _CODE_FENCE_CLOSE.sub("", _CODE_FENCE_OPEN.sub("", text.strip())).strip()
    if not html.lower().startswith("<!doctype"):
        html = "<!DOCTYPE html>\n" + html
    return html


def _quotes(raw: Any) -> list[Quote]:
    quotes: list[Quote] = []
    for item in raw if isinstance(raw, list) else []:
        if isinstance(item, dict) and isinstance(item.get("text"), str) and item["text"].strip():
            cite = item.get("attribution") or item.get("cite")
            quotes.append(Quote(text=item["text"].strip(), cite=cite or None))
    return quotes


def _text(value: Any) -> str | None:
    return value if isinstance(value, str) and value.strip() else None


class AgentContentProducer(ContentProducer):
    """Extractor → reviewer → formatter pipeline over the Messages API.

    Args:
        api_key: Anthropic API key.
        model: Model identifier for all three steps.
        base_url: Messages API base URL.
        client: Optional shared HTTP client; one is created (and owned) when
            omitted.
    """

    name = "ai-agents"

    def __init__(
        self,
        *,
        api_key: str,
        model: str,
        base_url: str = "https://api.anthropic.com",
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._base_url = base_url
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=REQUEST_TIMEOUT)

    async def _ask(self, system_prompt: str, user_message: str, max_tokens: int) -> str:
        return await create_message(
            self._client,
            base_url=self._base_url,
            api_key=self._api_key,
            model=self._model,
            system_prompt=system_prompt,
            user_message=user_message,
            max_tokens=max_tokens,
        )

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    async def extract(self, html: str, url: str) -> dict[str, Any]:
        """Run the extractor step and return its record."""
        reply = await self._ask(
            EXTRACTOR_SYSTEM_PROMPT,
            "Extract the complete customer story content from this webpage. "
            "Copy all paragraphs verbatim.\n\n"
            f"Source URL: {url}\n\nHTML Content:\n{html[:MAX_HTML_CHARS]}",
            EXTRACTOR_MAX_TOKENS,
        )
        record = parse_json_object(reply)
        if record is None:
            logger.error("agents: extractor reply for %s is not JSON", url)
            return {
                "title": EXTRACTION_ERROR_TITLE,
                "content": reply,
                "error": "Failed to parse structured response",
            }
        logger.info("agents: extracted %r from %s", record.get("title"), url)
        return record

    async def review(self, record: dict[str, Any], url: str) -> dict[str, Any]:
        """Run the reviewer step.

        Returns:
            ``{"is_valid", "quality_score", "issues", "suggestions",
            "cleaned_data", "degraded"}``.
        """
        reply = await self._ask(
            REVIEWER_SYSTEM_PROMPT,
            f"Review this extracted customer story content from {url}:\n\n"
            f"{json.dumps(record, indent=2)}",
            REVIEWER_MAX_TOKENS,
        )
        verdict = parse_json_object(reply)
        if verdict is None:
            logger.warning("agents: reviewer reply for %s is not JSON; review skipped", url)
            return {
                "is_valid": True,
                "quality_score": None,
                "issues": ["Review parsing failed"],
                "suggestions": [],
                "cleaned_data": record,
                "degraded": True,
            }
        cleaned = verdict.get("cleanedData")
        logger.info(
            "agents: review of %s scored %s/10 (valid=%s)",
            url,
            verdict.get("qualityScore"),
            verdict.get("isValid"),
        )
        return {
            "is_valid": bool(verdict.get("isValid", True)),
            "quality_score": verdict.get("qualityScore"),
            "issues": list(verdict.get("issues") or []),
            "suggestions": list(verdict.get("suggestions") or []),
            "cleaned_data": cleaned if isinstance(cleaned, dict) and cleaned else record,
            "degraded": False,
        }

    async def format(self, record: dict[str, Any], url: str) -> str:
        """Run the formatter step and return a complete HTML document."""
        reply = await self._ask(
            FORMATTER_SYSTEM_PROMPT,
            f"Create a PDF-ready HTML page for this customer story from {url}:\n\n"
            f"{json.dumps(record, indent=2)}",
            FORMATTER_MAX_TOKENS,
        )
        return clean_html_document(reply)

    # ------------------------------------------------------------------
    # ContentProducer
    # ------------------------------------------------------------------

    async def produce(self, html: str, url: str) -> ProducedContent:
        started = time.monotonic()
        extracted = await self.extract(html, url)
        review = await self.review(extracted, url)
        record = review["cleaned_data"]
        document = await self.format(record, url)
        logger.info("agents: pipeline for %s finished in %.1fs", url, time.monotonic() - started)

        text_only = _text(record.get("content")) or ""
        word_count = count_words(text_only)
        title = _text(record.get("title"))
        content = Content(
            title=title or DEFAULT_TITLE,
            text_only=text_only,
            html_structured=document,
            word_count=word_count,
            estimated_read_time=estimated_read_time(word_count),
            metadata=Metadata(
                title=title,
                description=_text(record.get("summary")),
                site_name=urlsplit(url).hostname,
            ),
            headings=[],
            quotes=_quotes(record.get("quotes")),
        )
        extras = {
            key: record[source]
            for source, key in _EXTRA_FIELDS.items()
            if record.get(source) not in (None, "", [])
        }
        return ProducedContent(
            content=content,
            pdf_ready_html=document,
            extras=extras,
            review={k: v for k, v in review.items() if k != "cleaned_data"},
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
