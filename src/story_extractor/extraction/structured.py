"""Metadata, heading and quote extraction.

Each metadata field is resolved through an ordered chain of sources; the
first non-empty value wins and is passed through
:func:`~story_extractor.extraction.normalizer.sanitize_text`.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable

from bs4 import BeautifulSoup, Tag

from story_extractor.core.schemas.story import Heading, Metadata, Quote
from story_extractor.extraction.normalizer import sanitize_text
from story_extractor.extraction.rules import matches_noise

#: A title prefix must be longer than this for a site suffix to be cut.
_MIN_TITLE_PREFIX: int = 10

#: Separators between a page title and a trailing site name.
_TITLE_SEPARATORS: tuple[str, ...] = (" | ", " - ")

#: Headings must be longer than this.
_MIN_HEADING_LENGTH: int = 2

#: Quotes must be longer than this.
_MIN_QUOTE_LENGTH: int = 30

_HEADING_TAGS: tuple[str, ...] = ("h1", "h2", "h3", "h4", "h5", "h6")

Source = Callable[[BeautifulSoup], "str | None"]


# ---------------------------------------------------------------------------
# Source helpers
# ---------------------------------------------------------------------------


def _meta(attr: str, value: str) -> Source:
    def source(soup: BeautifulSoup) -> str | None:
        tag = soup.find("meta", attrs={attr: value})
        return tag.get("content") if tag is not None else None

    return source


def _text(selector: str) -> Source:
    def source(soup: BeautifulSoup) -> str | None:
        tag = soup.select_one(selector)
        return tag.get_text().strip() if tag is not None else None

    return source


def _attr(selector: str, attr: str) -> Source:
    def source(soup: BeautifulSoup) -> str | None:
        tag = soup.select_one(selector)
        return tag.get(attr) if tag is not None else None

    return source


def first_value(soup: BeautifulSoup, sources: Iterable[Source]) -> str | None:
    """Return the first non-empty value produced by ``sources``."""
    for source in sources:
        value = source(soup)
        if value and value.strip():
            return value
    return None


#: Fallback chains, one per metadata field.
METADATA_SOURCES: dict[str, tuple[Source, ...]] = {
    "title": (
        _meta("property", "og:title"),
        _meta("name", "twitter:title"),
        _text("h1"),
        _text("title"),
    ),
    "description": (
        _meta("property", "og:description"),
        _meta("name", "description"),
        _meta("name", "twitter:description"),
    ),
    "author": (
        _meta("name", "author"),
        _meta("property", "article:author"),
        _text('[rel="author"]'),
        _text(".author-name"),
    ),
    "published_date": (
        _meta("property", "article:published_time"),
        _attr("time[datetime]", "datetime"),
        _meta("name", "date"),
    ),
    "image_url": (
        _meta("property", "og:image"),
        _meta("name", "twitter:image"),
    ),
    "site_name": (_meta("property", "og:site_name"),),
}


# ---------------------------------------------------------------------------
# Extractors
# ---------------------------------------------------------------------------


def strip_site_suffix(title: str) -> str:
    """Cut a trailing ``| Site`` or ``- Site`` when the prefix is substantial."""
    for separator in _TITLE_SEPARATORS:
        if separator in title:
            prefix = title.split(separator, 1)[0].strip()
            if len(prefix) > _MIN_TITLE_PREFIX:
                title = prefix
    return title


def extract_metadata(soup: BeautifulSoup) -> Metadata:
    values: dict[str, str | None] = {}
    for field, sources in METADATA_SOURCES.items():
        value = first_value(soup, sources)
        if value and field == "title":
            value = strip_site_suffix(value)
        values[field] = sanitize_text(value) or None
    return Metadata(**values)


def extract_headings(content: Tag) -> list[Heading]:
    headings: list[Heading] = []
    for el in content.find_all(_HEADING_TAGS):
        text = sanitize_text(el.get_text())
        if len(text) > _MIN_HEADING_LENGTH and not matches_noise(text):
            headings.append(Heading(level=int(el.name[1]), text=text))
    return headings


def extract_quotes(content: Tag) -> list[Quote]:
    quotes: list[Quote] = []
    for el in content.find_all("blockquote"):
        text = sanitize_text(el.get_text())
        if len(text) <= _MIN_QUOTE_LENGTH:
            continue
        cite_tag = el.find("cite")
        cite = sanitize_text(cite_tag.get_text()) if cite_tag is not None else ""
        quotes.append(Quote(text=text, cite=cite or None))
    return quotes
