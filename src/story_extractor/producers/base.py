"""Abstract base class for content producers.

The orchestrator depends only on :class:`ContentProducer`; fetching,
retries and persistence are the same whichever implementation is chosen.

Example usage::

    from story_extractor.producers.base import ContentProducer, ProducedContent

    class MyProducer(ContentProducer):
        name = "my-producer"

        async def produce(self, html, url):
            ...
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from story_extractor.core.schemas.story import Content


@dataclass
class ProducedContent:
    """What a producer hands back to the orchestrator.

    Attributes:
        content: The extracted content record.
        pdf_ready_html: A complete print-ready HTML document, when the
            producer renders one itself.
        extras: Producer-specific fields (company name, metrics, ...).
        review: Quality review of the extraction, when one was performed.
    """

    content: Content
    pdf_ready_html: str | None = None
    extras: dict[str, Any] = field(default_factory=dict)
    review: dict[str, Any] | None = None


class ContentProducer(ABC):
    """Turns fetched HTML into a :class:`ProducedContent`.

    Class Attributes:
        name: Identifier reported as the result's ``processing_method``.
    """

    name: str

    @abstractmethod
    async def produce(self, html: str, url: str) -> ProducedContent:
        """Extract content from ``html`` fetched from ``url``.

        Raises:
            ExtractionError: When the page cannot be turned into content.
        """

    async def aclose(self) -> None:
        """Release resources held by the producer."""
        return None
