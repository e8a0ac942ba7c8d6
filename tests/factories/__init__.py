"""Factory Boy model factories and collaborator fakes for tests.

Available helpers
-----------------
MetadataFactory      page metadata
ContentFactory       completed extraction content
StoryFactory         completed story (override ``status``/``content``)
BatchFactory         empty batch
story_page_html      realistic customer-story page with site chrome
FakeFetcher          canned pages by URL, records calls and concurrency
RecordingStorage     in-memory storage recording batch updates
FailingStorage       storage whose writes always fail
"""

from __future__ import annotations

from tests.factories.pipeline import FailingStorage, FakeFetcher, RecordingStorage
from tests.factories.stories import (
    SAMPLE_URL,
    BatchFactory,
    ContentFactory,
    MetadataFactory,
    StoryFactory,
    story_page_html,
)

__all__ = [
    "SAMPLE_URL",
    "BatchFactory",
    "ContentFactory",
    "FailingStorage",
    "FakeFetcher",
    "MetadataFactory",
    "RecordingStorage",
    "StoryFactory",
    "story_page_html",
]
