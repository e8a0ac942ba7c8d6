"""Dict-backed storage used by tests and CLI dry runs."""

from __future__ import annotations

from typing import Any

from story_extractor.core.schemas.story import Batch, Story
from story_extractor.storage.base import StoryStorage, check_update_fields


class InMemoryStoryStorage(StoryStorage):
    """Keeps deep copies so callers cannot mutate stored records."""

    def __init__(self) -> None:
        self.stories: dict[str, Story] = {}
        self.batches: dict[str, Batch] = {}

    async def save_story(self, story: Story) -> None:
        self.stories[story.id] = story.model_copy(deep=True)

    async def get_story(self, story_id: str) -> Story | None:
        story = self.stories.get(story_id)
        return story.model_copy(deep=True) if story else None

    async def save_batch(self, batch: Batch) -> None:
        self.batches[batch.id] = batch.model_copy(deep=True)

    async def get_batch(self, batch_id: str) -> Batch | None:
        batch = self.batches.get(batch_id)
        return batch.model_copy(deep=True) if batch else None

    async def update_batch(self, batch_id: str, **fields: Any) -> None:
        check_update_fields(fields)
        batch = self.batches.get(batch_id)
        if batch is None:
            return
        self.batches[batch_id] = batch.model_copy(update=fields, deep=True)
