"""Abstract storage collaborator for stories and batches.

The orchestrator writes through this interface only; the SQL-backed
implementation is used by the service and the CLI, the in-memory one by
tests and ``--dry-run``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from story_extractor.core.schemas.story import Batch, Story

#: Batch fields :meth:`StoryStorage.update_batch` accepts.
BATCH_UPDATE_FIELDS: frozenset[str] = frozenset(
    {"total_urls", "processed", "completed", "failed", "story_ids"}
)


class StoryStorage(ABC):
    """Durable home of :class:`Story` and :class:`Batch` records."""

    @abstractmethod
    async def save_story(self, story: Story) -> None:
        """Insert or replace ``story`` by id."""

    @abstractmethod
    async def get_story(self, story_id: str) -> Story | None: ...

    @abstractmethod
    async def save_batch(self, batch: Batch) -> None:
        """Insert or replace ``batch`` by id."""

    @abstractmethod
    async def get_batch(self, batch_id: str) -> Batch | None: ...

    @abstractmethod
    async def update_batch(self, batch_id: str, **fields: Any) -> None:
        """Overwrite the given counter/story-id fields of an existing batch.

        Raises:
            ValueError: If a field is not one of :data:`BATCH_UPDATE_FIELDS`.
        """

    async def ping(self) -> bool:
        """Return ``True`` when the backend is reachable."""
        return True

    async def close(self) -> None:
        return None


def check_update_fields(fields: dict[str, Any]) -> None:
    unknown = set(fields) - BATCH_UPDATE_FIELDS
    if unknown:
        raise ValueError(f"Cannot update batch fields: {', '.join(sorted(unknown))}")
