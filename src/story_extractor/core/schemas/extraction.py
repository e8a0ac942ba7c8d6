"""Pydantic request/response schemas for the extraction API.

Used by the orchestrator for its return values and by the API routes for
validation, serialisation, and OpenAPI documentation generation.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from story_extractor.core.exceptions import ErrorKind
from story_extractor.core.helpers import is_valid_url
from story_extractor.core.schemas.story import Quote, StoryStatus

# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class ExtractOptions(BaseModel):
    """Per-request overrides for a single extraction.

    Attributes:
        timeout: Fetch timeout in milliseconds (1000–120000).
        max_retries: Fetch attempts (0–10; 0 means the configured default).
        use_gamma: Generate a Gamma document after extraction.
        gamma_theme_id: Gamma theme overriding the configured default.
        gamma_format: ``"document"``, ``"presentation"`` or ``"webpage"``.
        logo_url: Logo placed in the generated document's header.
        callback_url: URL the result JSON is POSTed to when done.
    """

    timeout: Optional[int] = Field(default=None, ge=1000, le=120000)
    max_retries: Optional[int] = Field(default=None, ge=0, le=10)
    use_gamma: bool = False
    gamma_theme_id: Optional[str] = None
    gamma_format: Literal["document", "presentation", "webpage"] = "document"
    logo_url: Optional[str] = None
    callback_url: Optional[str] = None

    @property
    def timeout_seconds(self) -> float | None:
        return self.timeout / 1000 if self.timeout is not None else None


class SingleExtractRequest(BaseModel):
    """Body of ``POST /api/extract/single``."""

    url: str
    options: ExtractOptions = Field(default_factory=ExtractOptions)

    @field_validator("url")
    @classmethod
    def _http_url(cls, value: str) -> str:
        if not is_valid_url(value):
            raise ValueError("Invalid URL format. Must be a valid HTTP or HTTPS URL.")
        return value.strip()


# ---------------------------------------------------------------------------
# Single extraction result
# ---------------------------------------------------------------------------


class ContentSummary(BaseModel):
    """The parts of the extracted content echoed back to the caller."""

    title: str
    text_only: str
    word_count: int
    estimated_read_time: str
    quotes: list[Quote] = Field(default_factory=list)
    extras: dict[str, Any] = Field(default_factory=dict)


class AssetMetadata(BaseModel):
    """Title/description pair used when importing the story elsewhere."""

    title: str
    description: str


class GammaDocumentRead(BaseModel):
    doc_id: Optional[str] = None
    doc_url: Optional[str] = None
    pdf_url: Optional[str] = None
    pdf_expires_at: Optional[str] = None


class ExtractionResult(BaseModel):
    """Outcome of ``process_single_url``.

    Successful results carry the content summary and page links; failures
    carry ``error``, ``message`` and ``retryable``.  ``story_id`` is set on
    both whenever a story record was created.
    """

    success: bool
    story_id: Optional[str] = None
    url: str
    extracted_at: Optional[datetime] = None
    processing_method: Optional[str] = None
    content: Optional[ContentSummary] = None
    html_page_url: Optional[str] = None
    pdf_ready_url: Optional[str] = None
    urlbox_link: Optional[str] = None
    asset: Optional[AssetMetadata] = None
    review: Optional[dict[str, Any]] = None
    gamma: Optional[GammaDocumentRead] = None
    gamma_error: Optional[str] = None
    error: Optional[ErrorKind] = None
    message: Optional[str] = None
    retryable: Optional[bool] = None

    def to_payload(self) -> dict[str, Any]:
        """JSON-ready dict without the fields that do not apply."""
        return self.model_dump(mode="json", exclude_none=True)


# ---------------------------------------------------------------------------
# Batch results
# ---------------------------------------------------------------------------


class BatchItemResult(BaseModel):
    story_id: Optional[str] = None
    url: str
    name: Optional[str] = None
    priority: Optional[str] = None
    status: StoryStatus
    html_page_url: Optional[str] = None
    error: Optional[str] = None


class BatchResult(BaseModel):
    """Response of ``POST /api/extract/batch``."""

    success: bool = True
    batch_id: str
    total_urls: int
    processed: int
    completed: int
    failed: int
    created_at: datetime
    results: list[BatchItemResult]
    dashboard_url: str


class RetryResult(BaseModel):
    """Response of ``POST /api/story/batch/{batch_id}/retry``."""

    success: bool = True
    batch_id: str
    retried: int
    succeeded: int = 0
    still_failed: int = 0
    message: Optional[str] = None
    results: list[ExtractionResult] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Status views
# ---------------------------------------------------------------------------


class StoryStatusRead(BaseModel):
    """Response of ``GET /api/story/{story_id}``."""

    success: bool = True
    story_id: str
    url: str
    status: StoryStatus
    extracted_at: datetime
    title: Optional[str] = None
    html_content: Optional[str] = None
    pdf_ready_html: Optional[str] = None
    error: Optional[ErrorKind] = None


class BatchStatusRead(BaseModel):
    """Response of ``GET /api/story/batch/{batch_id}``."""

    success: bool = True
    batch_id: str
    total_urls: int
    processed: int
    completed: int
    failed: int
    created_at: datetime
    results: list[BatchItemResult]
    dashboard_url: str
