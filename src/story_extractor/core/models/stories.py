"""ORM models for persisted stories and batches.

Tables:
- ``stories``: one row per extraction, updated in place on retry.
- ``batches``: aggregate counters and the ordered list of story IDs.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from story_extractor.core.models.base import Base, TimestampMixin


class StoryRecord(TimestampMixin, Base):
    """A single story row.

    Content columns are ``NULL`` until the story completes.  ``metadata`` is
    a reserved attribute on declarative classes, so the page metadata column
    is mapped as ``page_metadata``.
    """

    __tablename__ = "stories"

    story_id: Mapped[str] = mapped_column(sa.String(32), primary_key=True)
    original_url: Mapped[str] = mapped_column(sa.Text, nullable=False, index=True)
    status: Mapped[str] = mapped_column(
        sa.String(16), nullable=False, default="processing", index=True
    )
    extracted_at: Mapped[datetime] = mapped_column(sa.DateTime(timezone=True), nullable=False)

    title: Mapped[Optional[str]] = mapped_column(sa.Text)
    text_content: Mapped[Optional[str]] = mapped_column(sa.Text)
    html_content: Mapped[Optional[str]] = mapped_column(sa.Text)
    word_count: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    read_time: Mapped[Optional[str]] = mapped_column(sa.String(32))
    page_metadata: Mapped[Optional[dict[str, Any]]] = mapped_column("metadata", sa.JSON)
    headings: Mapped[Optional[list[Any]]] = mapped_column(sa.JSON)
    quotes: Mapped[Optional[list[Any]]] = mapped_column(sa.JSON)
    error: Mapped[Optional[str]] = mapped_column(sa.String(32))


class BatchRecord(TimestampMixin, Base):
    """A batch row with its progress counters."""

    __tablename__ = "batches"
    __table_args__ = (sa.Index("idx_batches_created", "created_at"),)

    batch_id: Mapped[str] = mapped_column(sa.String(32), primary_key=True)
    total_urls: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    processed: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    completed: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    failed: Mapped[int] = mapped_column(sa.Integer, nullable=False, default=0)
    story_ids: Mapped[list[str]] = mapped_column(sa.JSON, nullable=False, default=list)
