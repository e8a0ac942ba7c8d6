"""Heuristic extraction entry point.

:func:`extract_content` turns raw HTML into a
:class:`~story_extractor.core.schemas.story.Content` record::

    parse → filter_noise → extract_metadata → locate_content
          → (headings, quotes, HTML, text) → stats → title fallback
"""

from __future__ import annotations

import logging

from bs4 import BeautifulSoup

from story_extractor.core.exceptions import ErrorKind, ExtractionError
from story_extractor.core.schemas.story import Content
from story_extractor.extraction.locator import locate_content
from story_extractor.extraction.noise_filter import filter_noise
from story_extractor.extraction.normalizer import (
    content_to_html,
    content_to_text,
    count_words,
    estimated_read_time,
)
from story_extractor.extraction.structured import (
    extract_headings,
    extract_metadata,
    extract_quotes,
)

logger = logging.getLogger(__name__)

#: Title used when neither metadata nor a heading provides one.
UNTITLED: str = "Untitled"


def parse_html(html: str) -> BeautifulSoup:
    """Parse ``html`` with the stdlib-backed ``html.parser`` builder.

    Raises:
        ExtractionError: ``PARSE_ERROR`` when the input is not a string or
            is blank.  Markup-free text parses as a single text node.
    """
    if not isinstance(html, str) or not html.strip():
        raise ExtractionError(ErrorKind.PARSE_ERROR, "Empty HTML document")
    return BeautifulSoup(html, "html.parser")


def extract_content(html: str) -> Content:
    """Run the full heuristic pipeline over ``html``."""
    soup = filter_noise(parse_html(html))
    metadata = extract_metadata(soup)
    content = locate_content(soup)

    headings = extract_headings(content)
    quotes = extract_quotes(content)
    html_structured = content_to_html(content)
    text_only = content_to_text(content)
    word_count = count_words(text_only)

    title = metadata.title or (headings[0].text if headings else UNTITLED)
    logger.debug(
        "extraction: %d words, %d headings, %d quotes", word_count, len(headings), len(quotes)
    )
    return Content(
        title=title,
        text_only=text_only,
        html_structured=html_structured,
        word_count=word_count,
        estimated_read_time=estimated_read_time(word_count),
        metadata=metadata,
        headings=headings,
        quotes=quotes,
    )
