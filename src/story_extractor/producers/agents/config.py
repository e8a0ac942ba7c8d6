"""Configuration for the agent pipeline.

Defines Messages API constants, per-step token limits, and the three system
prompts used by
:class:`~story_extractor.producers.agents.pipeline.AgentContentProducer`.

The extractor copies text verbatim and reports structured fields as JSON;
the reviewer returns a quality verdict plus cleaned data as JSON; the
formatter returns a complete standalone HTML document.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# API
# ---------------------------------------------------------------------------

MESSAGES_PATH: str = "/v1/messages"
"""Messages endpoint, relative to ``Settings.anthropic_base_url``."""

ANTHROPIC_VERSION: str = "2023-06-01"
"""Value of the required ``anthropic-version`` header."""

REQUEST_TIMEOUT: float = 180.0
"""Seconds allowed for one Messages API call."""

# ---------------------------------------------------------------------------
# Limits
# ---------------------------------------------------------------------------

EXTRACTOR_MAX_TOKENS: int = 8192
REVIEWER_MAX_TOKENS: int = 4096
FORMATTER_MAX_TOKENS: int = 8192

MAX_HTML_CHARS: int = 100_000
"""Raw HTML beyond this many characters is not sent to the extractor."""

# ---------------------------------------------------------------------------
# Prompts
# ---------------------------------------------------------------------------

EXTRACTOR_SYSTEM_PROMPT: str = """\
You are a content extraction tool. Your only job is to copy text verbatim \
from the HTML. Never summarize, paraphrase or rewrite.

Rules:
1. Copy text exactly as it appears.
2. Never reword quotes; copy the exact words inside the quotation marks.
3. Include every paragraph of the main article in "content", separated by \
blank lines.

Extract: the headline, the company name, every paragraph of the main story, \
all direct quotes with their speaker attribution, all statistics and \
metrics, and the problem, solution and results sections.

Skip: navigation, headers, footers, cookie notices, popups, ads, social \
sharing buttons, related articles, newsletter forms and author bios.

Respond with a single JSON object:
{
  "title": "exact headline",
  "companyName": "company name",
  "industry": "industry if mentioned",
  "summary": "1-2 sentence summary",
  "content": "the entire article text, verbatim",
  "quotes": [{"text": "exact quote", "attribution": "Person Name, Title"}],
  "metrics": [{"value": "100x", "description": "what it measures"}],
  "problem": "problem paragraphs, verbatim",
  "solution": "solution paragraphs, verbatim",
  "results": "results paragraphs, verbatim",
  "assetTitle": "5-10 word title, e.g. 'Acme Corp: 10x Faster Deployments'",
  "assetDescription": "1-2 sentences under 200 characters on the business impact"
}"""

REVIEWER_SYSTEM_PROMPT: str = """\
You are a quality assurance expert reviewing extracted customer story content.

1. Check for errors: UI or navigation text that slipped through ("Read \
more", "Next", "Video caption"), truncated sentences, repeated content, and \
content that does not belong to the main story.
2. Check for completeness: a meaningful title, the correct company name, \
real story paragraphs and properly attributed quotes.
3. Clean up: remove noise, fix obvious formatting issues.

Respond with a single JSON object:
{
  "isValid": true,
  "qualityScore": 1-10,
  "issues": ["issues found"],
  "cleanedData": {"title": "...", "companyName": "...", "content": "..."},
  "suggestions": ["suggestions for improvement"]
}"""

FORMATTER_SYSTEM_PROMPT: str = """\
You are an HTML/CSS designer creating print-ready customer story pages.

Create a complete, self-contained HTML document that looks professional, is \
optimized for PDF screenshot capture, uses system fonts, highlights key \
quotes and metrics as callouts, and shows the source URL in a subtle footer.
Keep the page at most 1200px wide and centered on a white background, with \
all CSS inlined and no external dependencies.

Return only the HTML document, starting with <!DOCTYPE html> and ending \
with </html>. No explanation and no markdown."""
