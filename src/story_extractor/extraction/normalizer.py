"""Text normalisation and rendering of the located content.

Two granularities:

- :func:`sanitize_text` for short values (metadata, headings, quotes):
  entity decoding, control-character stripping, whitespace collapsing.
- :func:`content_to_text` / :func:`content_to_html` for the whole content
  node, plus the :func:`count_words` / :func:`estimated_read_time` stats.
"""

from __future__ import annotations

import copy
import math
import re

from bs4 import Tag

from story_extractor.extraction.rules import matches_noise

#: Entities decoded by :func:`sanitize_text`, in replacement order.
_ENTITIES: tuple[tuple[str, str], ...] = (
    ("&nbsp;", " "),
    ("&amp;", "&"),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&#039;", "'"),
    ("&#x27;", "'"),
)

_CONTROL_CHARS = re.compile(r"[\x00-\x09\x0B\x0C\x0E-\x1F\x7F]")
_WHITESPACE_RUN = re.compile(r"\s+")
_SPACE_RUN = re.compile(r" +")
_BLANK_LINE_RUN = re.compile(r"\n{3,}")

#: Average reading speed used for the read-time estimate.
WORDS_PER_MINUTE: int = 225

#: Elements followed by a single line break in the text rendering.
_LINE_BREAK_TAGS: tuple[str, ...] = ("p", "h1", "h2", "h3", "h4", "h5", "h6", "li", "br")

#: Elements followed by a blank line in the text rendering.
_BLOCK_BREAK_TAGS: tuple[str, ...] = ("div", "section", "article")

#: Attributes surviving in the structured HTML.
_ALLOWED_ATTRIBUTES: frozenset[str] = frozenset({"href", "src", "alt"})

#: Images whose ``src`` is shorter than this are dropped from the HTML.
_MIN_IMAGE_SRC_LENGTH: int = 10

#: A kept line must be longer than this or contain a space.
_MIN_LINE_LENGTH: int = 25


def sanitize_text(text: str | None) -> str:
    """Decode common entities, drop control characters, collapse whitespace."""
    if not text:
        return ""
    for entity, replacement in _ENTITIES:
        text = text.replace(entity, replacement)
    text = _CONTROL_CHARS.sub("", text)
    return _WHITESPACE_RUN.sub(" ", text).strip()


def normalize_whitespace(text: str | None) -> str:
    """Unify line endings, turn tabs into spaces and squeeze blank lines."""
    if not text:
        return ""
    text = text.replace("\r\n", "\n").replace("\r", "\n").replace("\t", " ")
    text = _SPACE_RUN.sub(" ", text)
    return _BLANK_LINE_RUN.sub("\n\n", text).strip()


def _keep_line(line: str) -> bool:
    trimmed = line.strip()
    if not trimmed:
        return True
    if matches_noise(trimmed):
        return False
    return len(trimmed) > _MIN_LINE_LENGTH or " " in trimmed


def content_to_text(content: Tag) -> str:
    """Render the content node as line-filtered plain text.

    Block elements are followed by line breaks, then lines that match a
    noise phrase, or that are short single words, are dropped.
    """
    clone = copy.copy(content)
    for el in clone.find_all(_LINE_BREAK_TAGS):
        el.append("\n")
    for el in clone.find_all(_BLOCK_BREAK_TAGS):
        el.append("\n\n")

    text = normalize_whitespace(clone.get_text())
    lines = [line for line in text.split("\n") if _keep_line(line)]
    return _BLANK_LINE_RUN.sub("\n\n", "\n".join(lines)).strip()


def content_to_html(content: Tag) -> str:
    """Return the inner HTML of the content node, stripped for re-rendering.

    Only ``href``, ``src`` and ``alt`` attributes survive; images with a
    missing or tiny ``src`` and empty ``div``/``span``/``section`` elements
    are removed.
    """
    clone = copy.copy(content)
    for el in clone.find_all(True):
        if el.decomposed:
            continue
        el.attrs = {k: v for k, v in el.attrs.items() if k in _ALLOWED_ATTRIBUTES}
        if el.name == "img" and len(el.get("src") or "") < _MIN_IMAGE_SRC_LENGTH:
            el.decompose()

    for el in clone.find_all(["div", "span", "section"]):
        if not el.decomposed and not el.decode_contents().strip():
            el.decompose()

    return clone.decode_contents()


def count_words(text: str | None) -> int:
    """Number of whitespace-delimited non-empty tokens."""
    if not text:
        return 0
    return len(text.split())


def estimated_read_time(word_count: int) -> str:
    """``"N minute"`` or ``"N minutes"`` at :data:`WORDS_PER_MINUTE`."""
    minutes = math.ceil(word_count / WORDS_PER_MINUTE)
    return f"{minutes} minute{'' if minutes == 1 else 's'}"
