"""Rule-based producer backed by :mod:`story_extractor.extraction`."""

from __future__ import annotations

import asyncio

from story_extractor.extraction.parser import extract_content
from story_extractor.producers.base import ContentProducer, ProducedContent


class HeuristicContentProducer(ContentProducer):
    """Runs the CPU-bound extraction engine in a worker thread."""

    name = "rule-based"

    async def produce(self, html: str, url: str) -> ProducedContent:
        content = await asyncio.to_thread(extract_content, html)
        return ProducedContent(content=content)
