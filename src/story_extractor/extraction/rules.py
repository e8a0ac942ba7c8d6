"""Static rule tables driving the extraction engine.

Everything the heuristics match against lives here as data: the ordered
noise-removal rules, the ranked main-content selectors, the noise phrase
patterns and the in-content clean-up selectors.  The functions in
``noise_filter``, ``locator``, ``structured`` and ``normalizer`` consume
these tables and contain no selectors of their own.
"""

from __future__ import annotations

import re
from dataclasses import dataclass


@dataclass(frozen=True)
class RemovalRule:
    """One entry of the noise-removal table.

    Attributes:
        category: Label used in debug logs (``"chrome"``, ``"ads"``, ...).
        selector: CSS selector (soupsieve syntax).
        keep_in_article: Spare matches nested inside the article container.
    """

    category: str
    selector: str
    keep_in_article: bool = False


def _rules(category: str, *selectors: str, keep_in_article: bool = False) -> tuple[RemovalRule, ...]:
    return tuple(RemovalRule(category, s, keep_in_article) for s in selectors)


#: Ordered noise-removal rules applied by ``noise_filter.apply_rules``.
NOISE_RULES: tuple[RemovalRule, ...] = (
    *_rules(
        "embedded",
        "script", "style", "noscript", "iframe", "embed", "object",
        "svg", "canvas", "video", "audio",
    ),
    *_rules("chrome", "nav", "header", "footer", "aside", keep_in_article=True),
    *_rules(
        "navigation",
        ".navigation", ".nav", ".navbar", ".menu", ".header", ".footer",
        ".sidebar", ".widget", ".breadcrumb", ".breadcrumbs",
    ),
    *_rules("ads", ".advertisement", ".ad", ".ads", ".advert", ".banner", ".sponsored"),
    *_rules(
        "social",
        ".social-share", ".social-buttons", ".share-buttons", ".social",
        ".sharing", ".share", '[class*="social-"]', '[class*="share-"]',
    ),
    *_rules("comments", ".comments", ".comment-section", ".comment", "#comments"),
    *_rules(
        "related",
        ".related-posts", ".related-stories", ".related-articles", ".related-content",
        ".related", ".recommended", ".suggestions", ".more-stories", ".more-articles",
        ".also-read", ".you-may-like", ".trending", ".popular",
        '[class*="related-"]', '[class*="recommended"]',
    ),
    *_rules(
        "banners",
        ".newsletter", ".subscription", ".subscribe", ".signup", ".popup", ".modal",
        ".overlay", ".cookie-notice", ".cookie-banner", ".cookies", ".gdpr", ".consent",
    ),
    *_rules(
        "hidden",
        '[role="navigation"]', '[role="banner"]', '[role="complementary"]',
        '[role="contentinfo"]', '[aria-hidden="true"]',
        ".sr-only", ".visually-hidden", ".hidden",
    ),
    *_rules("footer", '[class*="footer"]', '[id*="footer"]'),
    *_rules("promo", ".cta", ".promo", ".promotion", ".call-to-action"),
    *_rules("author-bio", ".author-bio", ".about-author"),
    *_rules("tags", ".tags", ".categories", ".post-tags", ".article-tags"),
    *_rules("pagination", ".pagination", ".pager", ".page-numbers"),
    *_rules("forms", "form", "button", '[role="button"]'),
    *_rules(
        "media",
        ".video-wrapper", ".video-container", ".video-player", ".video-embed",
        ".media-wrapper", ".media-container", '[class*="video"]', '[class*="player"]',
        "figcaption",
    ),
    *_rules(
        "hero",
        ".hero", ".hero-section", ".intro-section", ".page-hero", '[class*="hero"]',
    ),
    *_rules(
        "carousel",
        ".carousel", ".slider", ".swiper",
        '[class*="carousel"]', '[class*="slider"]', '[class*="swiper"]',
    ),
)

#: Elements never removed by a rule, whatever their attributes.
UNREMOVABLE_TAGS: frozenset[str] = frozenset({"html", "head", "body"})

#: Main-content selectors, most specific first.
ARTICLE_SELECTORS: tuple[str, ...] = (
    'article[class*="case-study"]',
    'article[class*="customer-story"]',
    'article[class*="story"]',
    ".case-study-content",
    ".customer-story-content",
    ".story-content",
    "article",
    '[role="article"]',
    '[role="main"]',
    "main article",
    "main",
    ".article-body",
    ".article-content",
    ".post-body",
    ".post-content",
    ".entry-content",
    ".story-body",
    ".content-body",
    ".main-content",
    ".page-content",
    "#article-content",
    "#main-content",
    "#content",
    "#article",
    ".article",
    ".post",
    ".content",
    ".blog-post",
    ".story",
    ".case-study",
)

#: Tags scanned by the paragraph-density fallback.
DENSITY_CANDIDATE_TAGS: tuple[str, ...] = ("div", "section", "article")

#: A ranked candidate needs more visible text than this ...
MIN_CANDIDATE_TEXT: int = 500

#: ... and at least this many paragraphs.
MIN_CANDIDATE_PARAGRAPHS: int = 2

#: Density candidates need at least this many paragraphs ...
MIN_DENSITY_PARAGRAPHS: int = 3

#: ... and the winner must score above this.
MIN_DENSITY_SCORE: int = 500

#: Weight of one paragraph in the density score.
PARAGRAPH_WEIGHT: int = 100

_NOISE_PHRASES: tuple[str, ...] = (
    r"^read more$",
    r"^learn more$",
    r"^see more$",
    r"^view more$",
    r"^next$",
    r"^prev$",
    r"^previous$",
    r"^back$",
    r"^close$",
    r"^menu$",
    r"^search$",
    r"^share$",
    r"^tweet$",
    r"^follow us$",
    r"^subscribe$",
    r"^sign up$",
    r"^newsletter$",
    r"^related stories?$",
    r"^related articles?$",
    r"^you may also like$",
    r"^recommended$",
    r"^trending$",
    r"^popular$",
    r"^cookie",
    r"^privacy policy$",
    r"^terms of service$",
    r"^©",
    r"^\d{4} \w+",
    r"^video caption$",
    r"^image caption$",
    r"^caption$",
    r"^play video$",
    r"^watch video$",
    r"^explore here$",
    r"^explore$",
    r"^discover$",
    r"^browse$",
    r"^contact sales$",
    r"^get started$",
    r"^sign in$",
    r"^log in$",
    r"^button text$",
    r"^click here$",
    r"^submit$",
    r"^thank you!",
    r"^oops!",
    r"^something went wrong",
    r"^your submission",
)

#: Case-insensitive patterns of UI and boilerplate phrases.
NOISE_TEXT_PATTERNS: tuple[re.Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE) for p in _NOISE_PHRASES
)

#: Tags checked by the short-text noise pass.
NOISE_TEXT_TAGS: tuple[str, ...] = ("a", "span", "div", "p")

#: Only elements with less trimmed text than this are removed as noise.
NOISE_TEXT_MAX_LENGTH: int = 50

#: Containers removed when they hold neither text nor images.
EMPTY_CONTAINER_TAGS: tuple[str, ...] = ("p", "div", "span", "section")

#: ``src`` substrings marking icons, logos, spacers and tracking pixels.
DECORATIVE_IMAGE_SRC_MARKERS: tuple[str, ...] = (
    "icon",
    "logo",
    "avatar",
    "placeholder",
    "1x1",
    "pixel",
    "spacer",
    "data:image/gif",
    "data:image/png;base64,iVBOR",
)

#: ``alt`` substrings marking decorative images.
DECORATIVE_IMAGE_ALT_MARKERS: tuple[str, ...] = ("icon", "logo", "avatar")

#: Noise blocks removed from the located content.
IN_CONTENT_NOISE_SELECTORS: tuple[str, ...] = (
    ".related",
    ".recommended",
    ".social",
    ".share",
    ".author-bio",
    ".tags",
    ".categories",
    '[class*="related"]',
    '[class*="share"]',
    '[class*="social"]',
)

#: Anchors with less text than this may be navigation links.
NAV_LINK_MAX_LENGTH: int = 30

#: Fragment links with less text than this are removed.
FRAGMENT_LINK_MAX_LENGTH: int = 20

#: Substrings marking a short anchor as navigation.
NAV_LINK_PHRASES: tuple[str, ...] = ("read more", "learn more", "view", "click here")

#: Exact texts marking a short anchor as navigation.
NAV_LINK_EXACT: frozenset[str] = frozenset({"next", "prev", "previous"})


def matches_noise(text: str) -> bool:
    """Return ``True`` if ``text`` matches any :data:`NOISE_TEXT_PATTERNS`."""
    return any(pattern.search(text) for pattern in NOISE_TEXT_PATTERNS)
