"""Story Extractor: web page content extraction with batch orchestration."""

__version__ = "0.1.0"
