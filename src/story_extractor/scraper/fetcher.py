"""Fetch orchestration: URL validation, retries with backoff, browser fallback.

:class:`Fetcher` is the only entry point the orchestrator uses to obtain raw
HTML.  It owns the shared :class:`httpx.AsyncClient` and, when browser
rendering is enabled, the :class:`BrowserSession`.

Retry policy (attempts are 1-indexed):

- ``TIMEOUT`` and ``RATE_LIMITED`` errors, 5xx responses and connection
  errors are retried after waiting ``3^(n-1)`` seconds.
- ``INVALID_URL`` (bad scheme, unresolvable domain) and other 4xx responses
  fail immediately.
- When attempts run out, the last error is raised.
"""

from __future__ import annotations

import asyncio
import logging

import httpx

from story_extractor.api.metrics import fetch_attempts_total
from story_extractor.core.exceptions import (
    ErrorKind,
    ExtractionError,
    TransientFetchError,
    backoff_delay,
    is_retryable,
)
from story_extractor.core.helpers import is_valid_url
from story_extractor.scraper.config import (
    DEFAULT_MAX_RETRIES,
    DEFAULT_TIMEOUT,
    MAX_REDIRECTS,
)
from story_extractor.scraper.http_fetcher import FetchResult, fetch_url
from story_extractor.scraper.playwright_fetcher import BrowserSession

logger = logging.getLogger(__name__)


async def _backoff_sleep(delay_ms: int) -> None:
    await asyncio.sleep(delay_ms / 1000)


def _terminal(error: ExtractionError) -> ExtractionError:
    """Strip the transient marker from an error that ran out of attempts."""
    if isinstance(error, TransientFetchError):
        return ExtractionError(error.kind, error.message, error.details)
    return error


class Fetcher:
    """Retrieve raw HTML for URLs.

    Args:
        timeout: Default per-attempt timeout in seconds.
        max_retries: Default number of attempts.
        use_browser: Try a headless-browser render before plain HTTP.
        client: Optional pre-built client (tests); otherwise one is created
            with the redirect cap applied.
        browser: Optional browser session; created on demand when
            ``use_browser`` is set.
    """

    def __init__(
        self,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        max_retries: int = DEFAULT_MAX_RETRIES,
        use_browser: bool = False,
        client: httpx.AsyncClient | None = None,
        browser: BrowserSession | None = None,
    ) -> None:
        self.timeout = timeout
        self.max_retries = max_retries
        self.use_browser = use_browser
        self._client = client or httpx.AsyncClient(max_redirects=MAX_REDIRECTS)
        self._owns_client = client is None
        self._browser = browser if browser is not None else (
            BrowserSession() if use_browser else None
        )

    async def fetch(
        self,
        url: str,
        *,
        timeout: float | None = None,
        max_retries: int | None = None,
    ) -> FetchResult:
        """Fetch ``url`` with retries.

        Args:
            url: Target URL; anything but absolute http/https fails with
                ``INVALID_URL`` before any attempt.
            timeout: Per-attempt timeout in seconds (default: instance value).
            max_retries: Attempt count (default: instance value; values
                below 1 mean the default).

        Returns:
            The first successful :class:`FetchResult`.

        Raises:
            ExtractionError: The terminal or last retryable failure.
        """
        if not is_valid_url(url):
            raise ExtractionError(
                ErrorKind.INVALID_URL, f"Invalid URL format: {url}", {"url": url}
            )

        timeout = timeout or self.timeout
        attempts = max_retries if max_retries and max_retries > 0 else self.max_retries
        attempts = max(1, attempts)
        last_error: ExtractionError | None = None

        for attempt in range(1, attempts + 1):
            logger.debug("scraper: fetching %s (attempt %d/%d)", url, attempt, attempts)
            try:
                result = await self._fetch_once(url, timeout=timeout)
            except ExtractionError as exc:
                fetch_attempts_total.labels(outcome=exc.kind.value.lower()).inc()
                last_error = exc
                if not is_retryable(exc):
                    raise _terminal(exc)
                if attempt < attempts:
                    delay = backoff_delay(attempt)
                    logger.warning(
                        "scraper: retrying %s in %dms (attempt %d/%d): %s",
                        url, delay, attempt, attempts, exc.message,
                    )
                    await _backoff_sleep(delay)
                continue
            fetch_attempts_total.labels(outcome="success").inc()
            return result

        assert last_error is not None
        raise _terminal(last_error)

    async def _fetch_once(self, url: str, *, timeout: float) -> FetchResult:
        if self._browser is not None and self.use_browser:
            try:
                return await self._browser.fetch(url, timeout=timeout)
            except Exception as exc:  # noqa: BLE001
                logger.warning(
                    "scraper: browser fetch failed for %s, falling back to HTTP: %s",
                    url, exc,
                )
        return await fetch_url(url, client=self._client, timeout=timeout)

    async def aclose(self) -> None:
        if self._browser is not None:
            await self._browser.close()
        if self._owns_client:
            await self._client.aclose()
