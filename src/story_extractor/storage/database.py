"""SQLAlchemy-backed story storage.

Stories and batches are upserted by primary key: an existing row is updated
in place (retries reuse story ids), otherwise a new row is added.  Every
operation runs in its own session and commits before returning.

Database failures are re-raised as ``ExtractionError(STORAGE_ERROR)``.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import select, text, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from story_extractor.core.exceptions import ErrorKind, ExtractionError
from story_extractor.core.models.stories import BatchRecord, StoryRecord
from story_extractor.core.schemas.story import (
    Batch,
    Content,
    Heading,
    Metadata,
    Quote,
    Story,
    StoryStatus,
)
from story_extractor.storage.base import StoryStorage, check_update_fields

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Row conversion
# ---------------------------------------------------------------------------


def _story_columns(story: Story) -> dict[str, Any]:
    content = story.content
    return {
        "original_url": story.original_url,
        "status": story.status.value,
        "extracted_at": story.extracted_at,
        "error": story.error.value if story.error else None,
        "title": content.title if content else None,
        "text_content": content.text_only if content else None,
        "html_content": content.html_structured if content else None,
        "word_count": content.word_count if content else 0,
        "read_time": content.estimated_read_time if content else None,
        "page_metadata": content.metadata.model_dump() if content else None,
        "headings": [h.model_dump() for h in content.headings] if content else None,
        "quotes": [q.model_dump() for q in content.quotes] if content else None,
    }


def _story_from_row(row: StoryRecord) -> Story:
    status = StoryStatus(row.status)
    content: Content | None = None
    if status is StoryStatus.COMPLETED:
        content = Content(
            title=row.title or "",
            text_only=row.text_content or "",
            html_structured=row.html_content or "",
            word_count=row.word_count,
            estimated_read_time=row.read_time or "",
            metadata=Metadata(**(row.page_metadata or {})),
            headings=[Heading(**h) for h in row.headings or []],
            quotes=[Quote(**q) for q in row.quotes or []],
        )
    return Story(
        id=row.story_id,
        original_url=row.original_url,
        status=status,
        extracted_at=row.extracted_at,
        content=content,
        error=ErrorKind(row.error) if row.error else None,
    )


def _batch_from_row(row: BatchRecord) -> Batch:
    return Batch(
        id=row.batch_id,
        total_urls=row.total_urls,
        processed=row.processed,
        completed=row.completed,
        failed=row.failed,
        story_ids=list(row.story_ids or []),
        created_at=row.created_at,
    )


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------


class SqlStoryStorage(StoryStorage):
    """Story storage over an async SQLAlchemy session factory.

    Args:
        session_factory: Factory from
            :func:`~story_extractor.core.database.build_session_factory`.
        engine: Engine disposed by :meth:`close`, if given.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        engine: AsyncEngine | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._engine = engine

    @asynccontextmanager
    async def _session(self, operation: str) -> AsyncIterator[AsyncSession]:
        try:
            async with self._session_factory() as session:
                yield session
        except SQLAlchemyError as exc:
            logger.error("storage: %s failed: %s", operation, exc)
            raise ExtractionError(
                ErrorKind.STORAGE_ERROR, f"Database error during {operation}"
            ) from exc

    async def save_story(self, story: Story) -> None:
        async with self._session("save_story") as session:
            row = await session.get(StoryRecord, story.id)
            columns = _story_columns(story)
            if row is None:
                session.add(StoryRecord(story_id=story.id, **columns))
            else:
                for key, value in columns.items():
                    setattr(row, key, value)
            await session.commit()
        logger.debug("storage: saved story %s (%s)", story.id, story.status.value)

    async def get_story(self, story_id: str) -> Story | None:
        async with self._session("get_story") as session:
            row = await session.get(StoryRecord, story_id)
            return _story_from_row(row) if row is not None else None

    async def save_batch(self, batch: Batch) -> None:
        async with self._session("save_batch") as session:
            row = await session.get(BatchRecord, batch.id)
            columns = {
                "total_urls": batch.total_urls,
                "processed": batch.processed,
                "completed": batch.completed,
                "failed": batch.failed,
                "story_ids": list(batch.story_ids),
            }
            if row is None:
                session.add(BatchRecord(batch_id=batch.id, created_at=batch.created_at, **columns))
            else:
                for key, value in columns.items():
                    setattr(row, key, value)
            await session.commit()
        logger.debug("storage: saved batch %s", batch.id)

    async def get_batch(self, batch_id: str) -> Batch | None:
        async with self._session("get_batch") as session:
            result = await session.execute(
                select(BatchRecord).where(BatchRecord.batch_id == batch_id)
            )
            row = result.scalar_one_or_none()
            return _batch_from_row(row) if row is not None else None

    async def update_batch(self, batch_id: str, **fields: Any) -> None:
        check_update_fields(fields)
        if not fields:
            return
        if "story_ids" in fields:
            fields["story_ids"] = list(fields["story_ids"])
        async with self._session("update_batch") as session:
            await session.execute(
                update(BatchRecord).where(BatchRecord.batch_id == batch_id).values(**fields)
            )
            await session.commit()

    async def ping(self) -> bool:
        try:
            async with self._session("ping") as session:
                await session.execute(text("SELECT 1"))
        except ExtractionError:
            return False
        return True

    async def close(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
