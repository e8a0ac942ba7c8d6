"""Pydantic models for stories, their extracted content, and batches.

These are the records the orchestrator builds and hands to the storage
layer.  A ``Story`` carries ``content`` exactly when its status is
``completed``; the model validator enforces that on construction.
"""

from __future__ import annotations

import enum
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

from story_extractor.core.exceptions import ErrorKind


class StoryStatus(str, enum.Enum):
    """Lifecycle of a single extraction: processing → completed | failed."""

    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class Heading(BaseModel):
    """A section heading found inside the main content."""

    level: int = Field(ge=1, le=6)
    text: str


class Quote(BaseModel):
    """A block quote with an optional citation."""

    text: str
    cite: str | None = None


class Metadata(BaseModel):
    """Page-level metadata, each field resolved from its own fallback chain."""

    title: str | None = None
    description: str | None = None
    author: str | None = None
    published_date: str | None = None
    image_url: str | None = None
    site_name: str | None = None


class Content(BaseModel):
    """Structured result of extracting one page.

    Attributes:
        title: Metadata title, else the first heading, else ``"Untitled"``.
        text_only: Line-filtered plain text of the main content.
        html_structured: Main content HTML with presentation attributes
            stripped.
        word_count: Number of whitespace-delimited tokens in ``text_only``.
        estimated_read_time: ``"N minute"``/``"N minutes"`` at 225 wpm.
        metadata: Page metadata.
        headings: h1–h6 headings of the main content in document order.
        quotes: Block quotes of the main content in document order.
    """

    title: str
    text_only: str
    html_structured: str
    word_count: int = Field(ge=0)
    estimated_read_time: str
    metadata: Metadata = Field(default_factory=Metadata)
    headings: list[Heading] = Field(default_factory=list)
    quotes: list[Quote] = Field(default_factory=list)


class Story(BaseModel):
    """One URL's trip through the extraction pipeline."""

    id: str
    original_url: str
    status: StoryStatus = StoryStatus.PROCESSING
    extracted_at: datetime
    content: Content | None = None
    error: ErrorKind | None = None

    model_config = ConfigDict(from_attributes=True)

    @model_validator(mode="after")
    def _content_matches_status(self) -> Story:
        if (self.content is not None) != (self.status is StoryStatus.COMPLETED):
            raise ValueError("content must be set exactly when status is 'completed'")
        return self


class Batch(BaseModel):
    """Aggregate progress of a CSV-driven batch.

    ``processed == completed + failed <= total_urls`` holds after every
    window; ``story_ids`` lists every item that materialised a story.
    """

    id: str
    total_urls: int = Field(ge=0)
    processed: int = Field(default=0, ge=0)
    completed: int = Field(default=0, ge=0)
    failed: int = Field(default=0, ge=0)
    story_ids: list[str] = Field(default_factory=list)
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
