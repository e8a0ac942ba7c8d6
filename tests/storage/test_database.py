"""Tests for SqlStoryStorage against a temporary SQLite database."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine

from story_extractor.core.database import build_engine, build_session_factory, init_models
from story_extractor.core.exceptions import ErrorKind, ExtractionError
from story_extractor.core.schemas.story import StoryStatus
from story_extractor.storage.database import SqlStoryStorage
from tests.factories import BatchFactory, StoryFactory


@pytest_asyncio.fixture()
async def sql_storage(tmp_path: Path) -> AsyncGenerator[SqlStoryStorage, None]:
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'db' / 'stories.db'}")
    await init_models(engine)
    storage = SqlStoryStorage(build_session_factory(engine), engine)
    yield storage
    await storage.close()


@pytest.mark.asyncio
class TestStories:
    async def test_completed_story_roundtrip(self, sql_storage: SqlStoryStorage) -> None:
        story = StoryFactory.build()
        await sql_storage.save_story(story)

        loaded = await sql_storage.get_story(story.id)

        assert loaded is not None
        assert loaded.status is StoryStatus.COMPLETED
        assert loaded.original_url == story.original_url
        assert loaded.content == story.content
        assert loaded.error is None

    async def test_failed_story_roundtrip(self, sql_storage: SqlStoryStorage) -> None:
        story = StoryFactory.build(
            status=StoryStatus.FAILED, content=None, error=ErrorKind.TIMEOUT
        )
        await sql_storage.save_story(story)

        loaded = await sql_storage.get_story(story.id)

        assert loaded is not None
        assert loaded.status is StoryStatus.FAILED
        assert loaded.content is None
        assert loaded.error is ErrorKind.TIMEOUT

    async def test_save_replaces_existing(self, sql_storage: SqlStoryStorage) -> None:
        story = StoryFactory.build(
            status=StoryStatus.FAILED, content=None, error=ErrorKind.EXTRACTION_FAILED
        )
        await sql_storage.save_story(story)

        retried = StoryFactory.build(id=story.id, original_url=story.original_url)
        await sql_storage.save_story(retried)

        loaded = await sql_storage.get_story(story.id)
        assert loaded is not None
        assert loaded.status is StoryStatus.COMPLETED
        assert loaded.error is None
        assert loaded.content is not None

    async def test_missing_story(self, sql_storage: SqlStoryStorage) -> None:
        assert await sql_storage.get_story("story_000000000000") is None


@pytest.mark.asyncio
class TestBatches:
    async def test_save_update_get(self, sql_storage: SqlStoryStorage) -> None:
        batch = BatchFactory.build(total_urls=3)
        await sql_storage.save_batch(batch)

        await sql_storage.update_batch(
            batch.id, processed=2, completed=1, failed=1, story_ids=("story_a", "story_b")
        )

        loaded = await sql_storage.get_batch(batch.id)
        assert loaded is not None
        assert loaded.total_urls == 3
        assert (loaded.processed, loaded.completed, loaded.failed) == (2, 1, 1)
        assert loaded.story_ids == ["story_a", "story_b"]

    async def test_save_batch_twice_updates(self, sql_storage: SqlStoryStorage) -> None:
        batch = BatchFactory.build(total_urls=2)
        await sql_storage.save_batch(batch)
        await sql_storage.save_batch(batch.model_copy(update={"processed": 2, "completed": 2}))

        loaded = await sql_storage.get_batch(batch.id)
        assert loaded is not None
        assert loaded.completed == 2

    async def test_unknown_update_field(self, sql_storage: SqlStoryStorage) -> None:
        with pytest.raises(ValueError, match="created_at"):
            await sql_storage.update_batch("batch_x", created_at=None)

    async def test_missing_batch(self, sql_storage: SqlStoryStorage) -> None:
        assert await sql_storage.get_batch("batch_000000000000") is None


@pytest.mark.asyncio
class TestHealth:
    async def test_ping(self, sql_storage: SqlStoryStorage) -> None:
        assert await sql_storage.ping() is True

    async def test_unreachable_database(self, tmp_path: Path) -> None:
        engine = create_async_engine(
            f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'dir' / 'stories.db'}"
        )
        storage = SqlStoryStorage(build_session_factory(engine), engine)
        try:
            assert await storage.ping() is False
            with pytest.raises(ExtractionError) as exc_info:
                await storage.get_story("story_000000000000")
            assert exc_info.value.kind is ErrorKind.STORAGE_ERROR
        finally:
            await storage.close()
