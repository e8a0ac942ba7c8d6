"""Boilerplate removal on a parsed document.

:func:`filter_noise` runs four passes over the tree until none of them
removes anything more, which makes the filter a fixed point: running it
again on its own output removes nothing.

1. :func:`apply_rules` with :data:`~story_extractor.extraction.rules.NOISE_RULES`.
2. Short elements whose text matches a noise phrase.
3. Decorative images (icons, logos, avatars, tracking pixels).
4. Containers left with neither text nor images.

The article container and its ancestors are never removed, and semantic page
chrome (``nav``, ``header``, ``footer``, ``aside``) nested inside it is kept.
The container is the first ranked candidate that passes the locator's length
and paragraph checks, so a short teaser ``<article>`` ahead of the real
``<main>`` does not claim it.  Pages with no such candidate fall back to the
first ranked selector match.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from bs4 import BeautifulSoup, Tag

from story_extractor.extraction.locator import find_ranked_candidate, first_article_match
from story_extractor.extraction.rules import (
    DECORATIVE_IMAGE_ALT_MARKERS,
    DECORATIVE_IMAGE_SRC_MARKERS,
    EMPTY_CONTAINER_TAGS,
    NOISE_RULES,
    NOISE_TEXT_MAX_LENGTH,
    NOISE_TEXT_TAGS,
    UNREMOVABLE_TAGS,
    RemovalRule,
    matches_noise,
)

logger = logging.getLogger(__name__)


def _contains(outer: Tag, inner: Tag) -> bool:
    return any(parent is outer for parent in inner.parents)


def article_container(soup: BeautifulSoup | Tag) -> Tag | None:
    """Element whose nested chrome survives filtering."""
    ranked = find_ranked_candidate(soup)
    if ranked is not None:
        return ranked[1]
    return first_article_match(soup)


def _is_protected(el: Tag, article: Tag | None) -> bool:
    """Elements that must survive every pass."""
    if el.decomposed or el.name in UNREMOVABLE_TAGS:
        return True
    return article is not None and (el is article or _contains(el, article))


def apply_rules(
    soup: BeautifulSoup | Tag,
    rules: Iterable[RemovalRule],
    *,
    article: Tag | None = None,
) -> int:
    """Remove every element matched by ``rules``, in table order.

    Args:
        soup: Document (or subtree) to filter in place.
        rules: Ordered removal rules.
        article: Article container; it and its ancestors are kept, and so
            are nested matches of rules flagged ``keep_in_article``.

    Returns:
        Number of elements removed.
    """
    removed = 0
    for rule in rules:
        for el in soup.select(rule.selector):
            if _is_protected(el, article):
                continue
            if rule.keep_in_article and article is not None and _contains(article, el):
                continue
            el.decompose()
            removed += 1
    return removed


def remove_noise_text(soup: BeautifulSoup | Tag, *, article: Tag | None = None) -> int:
    """Remove short ``a``/``span``/``div``/``p`` elements matching a noise phrase."""
    removed = 0
    for el in soup.find_all(NOISE_TEXT_TAGS):
        if _is_protected(el, article):
            continue
        text = el.get_text().strip()
        if len(text) < NOISE_TEXT_MAX_LENGTH and matches_noise(text):
            el.decompose()
            removed += 1
    return removed


def is_decorative_image(img: Tag) -> bool:
    src = img.get("src") or ""
    alt = (img.get("alt") or "").lower()
    if not src:
        return True
    return any(marker in src for marker in DECORATIVE_IMAGE_SRC_MARKERS) or any(
        marker in alt for marker in DECORATIVE_IMAGE_ALT_MARKERS
    )


def remove_decorative_images(soup: BeautifulSoup | Tag) -> int:
    removed = 0
    for img in soup.find_all("img"):
        if not img.decomposed and is_decorative_image(img):
            img.decompose()
            removed += 1
    return removed


def remove_empty_containers(soup: BeautifulSoup | Tag, *, article: Tag | None = None) -> int:
    removed = 0
    for el in soup.find_all(EMPTY_CONTAINER_TAGS):
        if _is_protected(el, article):
            continue
        if not el.get_text().strip() and el.find("img") is None:
            el.decompose()
            removed += 1
    return removed


def filter_noise(soup: BeautifulSoup) -> BeautifulSoup:
    """Strip boilerplate from ``soup`` in place and return it."""
    article = article_container(soup)
    total = 0
    while True:
        removed = (
            apply_rules(soup, NOISE_RULES, article=article)
            + remove_noise_text(soup, article=article)
            + remove_decorative_images(soup)
            + remove_empty_containers(soup, article=article)
        )
        if not removed:
            break
        total += removed
    logger.debug("extraction: noise filter removed %d elements", total)
    return soup
