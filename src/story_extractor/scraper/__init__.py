"""Page fetching.

Sub-modules:
- ``config``              user-agent pool, headers, timing constants
- ``http_fetcher``        single-attempt httpx fetch with error classification
- ``playwright_fetcher``  shared headless Chromium session for rendered pages
- ``fetcher``             :class:`Fetcher`: validation, retries, browser fallback
"""
