"""Main-content location.

:func:`locate_content` evaluates, in order:

1. **Ranked candidates**: the first match of each selector in
   :data:`~story_extractor.extraction.rules.ARTICLE_SELECTORS`, accepted when
   its text is longer than 500 characters and it holds at least 2 ``<p>``.
2. **Paragraph density**: every ``div``/``section``/``article`` with at
   least 3 paragraphs is scored ``100 * paragraphs + paragraph text length``;
   the best is accepted when it scores above 500.
3. **Default**: the document body.

The winner is deep-cleaned on a copy, so the parsed document itself is left
untouched.
"""

from __future__ import annotations

import copy
import logging

from bs4 import BeautifulSoup, Tag

from story_extractor.extraction.rules import (
    ARTICLE_SELECTORS,
    DENSITY_CANDIDATE_TAGS,
    FRAGMENT_LINK_MAX_LENGTH,
    IN_CONTENT_NOISE_SELECTORS,
    MIN_CANDIDATE_PARAGRAPHS,
    MIN_CANDIDATE_TEXT,
    MIN_DENSITY_PARAGRAPHS,
    MIN_DENSITY_SCORE,
    NAV_LINK_EXACT,
    NAV_LINK_MAX_LENGTH,
    NAV_LINK_PHRASES,
    PARAGRAPH_WEIGHT,
)

logger = logging.getLogger(__name__)


def first_article_match(soup: BeautifulSoup | Tag) -> Tag | None:
    """Return the first element matched by the ranked selectors, unchecked."""
    for selector in ARTICLE_SELECTORS:
        el = soup.select_one(selector)
        if el is not None:
            return el
    return None


def is_substantial(el: Tag) -> bool:
    """Ranked-candidate acceptance test."""
    return (
        len(el.get_text().strip()) > MIN_CANDIDATE_TEXT
        and len(el.find_all("p")) >= MIN_CANDIDATE_PARAGRAPHS
    )


def find_ranked_candidate(soup: BeautifulSoup | Tag) -> tuple[str, Tag] | None:
    """Return ``(selector, element)`` for the first acceptable ranked candidate."""
    for selector in ARTICLE_SELECTORS:
        el = soup.select_one(selector)
        if el is not None and is_substantial(el):
            return selector, el
    return None


def density_score(el: Tag) -> tuple[int, int]:
    """Return ``(score, paragraph_count)`` for a density candidate."""
    paragraphs = el.find_all("p")
    text_length = sum(len(p.get_text()) for p in paragraphs)
    return PARAGRAPH_WEIGHT * len(paragraphs) + text_length, len(paragraphs)


def find_densest_block(soup: BeautifulSoup | Tag) -> Tag | None:
    """Return the highest-scoring density candidate, or ``None``.

    Ties keep the earlier element in document order.
    """
    best: Tag | None = None
    best_score = 0
    for el in soup.find_all(DENSITY_CANDIDATE_TAGS):
        score, paragraph_count = density_score(el)
        if paragraph_count >= MIN_DENSITY_PARAGRAPHS and score > best_score:
            best, best_score = el, score
    if best is not None and best_score > MIN_DENSITY_SCORE:
        return best
    return None


def _is_nav_link(anchor: Tag) -> bool:
    text = anchor.get_text().strip()
    lowered = text.lower()
    href = anchor.get("href") or ""
    if len(text) >= NAV_LINK_MAX_LENGTH:
        return False
    if any(phrase in lowered for phrase in NAV_LINK_PHRASES) or lowered in NAV_LINK_EXACT:
        return True
    return href.startswith("#") and len(text) < FRAGMENT_LINK_MAX_LENGTH


def deep_clean(content: Tag) -> Tag:
    """Return a copy of ``content`` without in-content noise and nav links."""
    clone = copy.copy(content)
    for selector in IN_CONTENT_NOISE_SELECTORS:
        for el in clone.select(selector):
            if not el.decomposed:
                el.decompose()
    for anchor in clone.find_all("a"):
        if not anchor.decomposed and _is_nav_link(anchor):
            anchor.decompose()
    return clone


def locate_content(soup: BeautifulSoup) -> Tag:
    """Return a deep-cleaned copy of the main content node."""
    ranked = find_ranked_candidate(soup)
    if ranked is not None:
        selector, el = ranked
        logger.debug("extraction: main content found with selector %r", selector)
        return deep_clean(el)

    dense = find_densest_block(soup)
    if dense is not None:
        logger.debug("extraction: main content found by paragraph density")
        return deep_clean(dense)

    logger.debug("extraction: falling back to document body")
    return deep_clean(soup.body or soup)
