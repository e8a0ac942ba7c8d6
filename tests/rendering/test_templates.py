"""Tests for the Jinja2 story pages and batch dashboard."""

from __future__ import annotations

from datetime import datetime, timezone

from story_extractor.core.schemas.extraction import BatchItemResult
from story_extractor.core.schemas.story import StoryStatus
from story_extractor.rendering.templates import (
    longdate,
    render_batch_dashboard,
    render_pdf_ready_page,
    render_story_page,
    thousands,
    urlbox_link,
)
from tests.factories import ContentFactory, MetadataFactory

EXTRACTED_AT = datetime(2024, 6, 15, 10, 0, tzinfo=timezone.utc)


class TestFilters:
    def test_longdate_from_string(self) -> None:
        assert longdate("2024-01-05T10:00:00Z") == "January 5, 2024"

    def test_longdate_from_datetime(self) -> None:
        assert longdate(EXTRACTED_AT) == "June 15, 2024"

    def test_longdate_passthrough(self) -> None:
        assert longdate("last spring") == "last spring"
        assert longdate(None) == ""

    def test_thousands(self) -> None:
        assert thousands(1234567) == "1,234,567"


class TestStoryPages:
    def test_story_page(self) -> None:
        content = ContentFactory.build(word_count=1500)

        html = render_story_page("story_1", "https://example.com/a", EXTRACTED_AT, content)

        assert "<title>Acme Corp cuts cloud costs by 40%</title>" in html
        assert "<h2>The challenge</h2>" in html
        assert "Published: January 5, 2024" in html
        assert "1,500 words" in html
        assert "Story ID: story_1" in html

    def test_title_is_escaped(self) -> None:
        content = ContentFactory.build(title="<script>alert(1)</script>")

        html = render_story_page("story_1", "https://example.com/a", EXTRACTED_AT, content)

        assert "<script>alert(1)</script>" not in html
        assert "&lt;script&gt;alert(1)&lt;/script&gt;" in html

    def test_plain_text_fallback(self) -> None:
        content = ContentFactory.build(html_structured="", text_only="Just text.", word_count=2)

        html = render_story_page("story_1", "https://example.com/a", EXTRACTED_AT, content)

        assert "<p>Just text.</p>" in html

    def test_pdf_ready_page(self) -> None:
        content = ContentFactory.build(metadata=MetadataFactory.build(author=None))

        html = render_pdf_ready_page("story_1", "https://example.com/a", EXTRACTED_AT, content)

        assert "Acme Corp cuts cloud costs by 40%" in html
        assert "Jane Writer" not in html


class TestBatchDashboard:
    def test_rows(self) -> None:
        results = [
            BatchItemResult(
                story_id="story_1",
                url="https://example.com/a",
                name="Acme",
                status=StoryStatus.COMPLETED,
                html_page_url="http://test/stories/story_1/index.html",
            ),
            BatchItemResult(
                url="https://example.com/b", status=StoryStatus.FAILED, error="Request timeout"
            ),
        ]

        html = render_batch_dashboard(
            batch_id="batch_1",
            created_at=EXTRACTED_AT,
            total_urls=2,
            completed=1,
            failed=1,
            results=results,
        )

        assert 'href="http://test/stories/story_1/index.html"' in html
        assert "<td>Acme</td>" in html
        assert "<td>https://example.com/b</td>" in html
        assert "Request timeout" in html
        assert "Created: June 15, 2024" in html


class TestUrlbox:
    def test_without_key(self) -> None:
        assert urlbox_link("http://test/x", api_key="", width=1200, height=1600) is None

    def test_with_key(self) -> None:
        link = urlbox_link("http://test/x", api_key="ub-key", width=1200, height=1600)

        assert link is not None
        assert link.startswith("https://api.urlbox.io/v1/ub-key/pdf?")
        assert "url=http%3A%2F%2Ftest%2Fx" in link
        assert "full_page=true" in link
