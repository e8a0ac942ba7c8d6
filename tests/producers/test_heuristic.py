"""Tests for the rule-based content producer."""

from __future__ import annotations

import pytest

from story_extractor.core.exceptions import ErrorKind, ExtractionError
from story_extractor.producers.heuristic import HeuristicContentProducer
from tests.factories import SAMPLE_URL, story_page_html


@pytest.mark.asyncio
class TestHeuristicContentProducer:
    async def test_produces_content_without_extras(self) -> None:
        produced = await HeuristicContentProducer().produce(story_page_html(), SAMPLE_URL)

        assert produced.content.title == "Acme Corp cuts cloud costs by 40%"
        assert produced.pdf_ready_html is None
        assert produced.extras == {}
        assert produced.review is None

    async def test_parse_error_propagates(self) -> None:
        with pytest.raises(ExtractionError) as exc_info:
            await HeuristicContentProducer().produce("", SAMPLE_URL)
        assert exc_info.value.kind is ErrorKind.PARSE_ERROR

    def test_name(self) -> None:
        assert HeuristicContentProducer.name == "rule-based"
