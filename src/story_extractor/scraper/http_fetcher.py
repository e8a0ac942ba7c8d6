"""Single-attempt async HTTP fetcher.

Uses ``httpx`` for all HTTP requests.  Each call performs exactly one GET
with a rotated user agent and classifies every failure into an
:class:`~story_extractor.core.exceptions.ExtractionError`; the retry policy
lives in :mod:`story_extractor.scraper.fetcher`.
"""

from __future__ import annotations

import logging
import random
import socket
from dataclasses import dataclass

import httpx

from story_extractor.core.exceptions import (
    ErrorKind,
    ExtractionError,
    TransientFetchError,
)
from story_extractor.scraper.config import (
    BROWSER_HEADERS,
    DNS_FAILURE_MARKERS,
    USER_AGENTS,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Result dataclass
# ---------------------------------------------------------------------------


@dataclass
class FetchResult:
    """Raw page returned by a successful fetch.

    Attributes:
        html: Response body (or rendered DOM for browser fetches).
        final_url: URL after following redirects.
        status_code: HTTP status of the final response.
    """

    html: str
    final_url: str
    status_code: int


# ---------------------------------------------------------------------------
# Request headers
# ---------------------------------------------------------------------------


def random_user_agent() -> str:
    """Return a user agent chosen uniformly from :data:`USER_AGENTS`."""
    return random.choice(USER_AGENTS)


def build_headers() -> dict[str, str]:
    return {"User-Agent": random_user_agent(), **BROWSER_HEADERS}


# ---------------------------------------------------------------------------
# Error classification
# ---------------------------------------------------------------------------


def _is_dns_failure(exc: BaseException) -> bool:
    """Return ``True`` if a connect error was caused by name resolution.

    Walks the ``__cause__``/``__context__`` chain looking for
    :class:`socket.gaierror`, then falls back to matching resolver messages.
    """
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        if isinstance(current, socket.gaierror):
            return True
        message = str(current).lower()
        if any(marker in message for marker in DNS_FAILURE_MARKERS):
            return True
        current = current.__cause__ or current.__context__
    return False


def _status_error(url: str, response: httpx.Response) -> ExtractionError:
    """Map a non-2xx/3xx response to the matching extraction error."""
    status = response.status_code
    if status == 429:
        return ExtractionError(
            ErrorKind.RATE_LIMITED,
            "Rate limited by server",
            {"url": url, "retry_after": response.headers.get("retry-after")},
        )
    if status >= 500:
        return TransientFetchError(
            f"HTTP {status}: {response.reason_phrase}",
            {"url": url, "status": status},
        )
    return ExtractionError(
        ErrorKind.EXTRACTION_FAILED,
        f"HTTP {status}: {response.reason_phrase}",
        {"url": url, "status": status},
    )


# ---------------------------------------------------------------------------
# Public fetch function
# ---------------------------------------------------------------------------


async def fetch_url(
    url: str,
    *,
    client: httpx.AsyncClient,
    timeout: float,
) -> FetchResult:
    """Fetch a single URL once.

    Args:
        url: Target URL (already validated as http/https).
        client: Shared :class:`httpx.AsyncClient`; its ``max_redirects``
            bounds the redirect chain.
        timeout: Request timeout in seconds.

    Returns:
        A :class:`FetchResult` for any status below 400.

    Raises:
        ExtractionError: ``TIMEOUT`` and ``RATE_LIMITED`` (retryable),
            ``INVALID_URL`` for unresolvable domains, ``EXTRACTION_FAILED``
            for other 4xx responses and redirect loops.
        TransientFetchError: For 5xx responses and connection errors.
    """
    try:
        response = await client.get(
            url,
            timeout=timeout,
            follow_redirects=True,
            headers=build_headers(),
        )
    except httpx.TimeoutException as exc:
        logger.warning("scraper: timeout fetching %s", url)
        raise ExtractionError(
            ErrorKind.TIMEOUT,
            f"Request timed out after {timeout:g}s",
            {"url": url, "timeout": timeout},
        ) from exc
    except httpx.TooManyRedirects as exc:
        logger.warning("scraper: too many redirects for %s", url)
        raise ExtractionError(
            ErrorKind.EXTRACTION_FAILED, "Too many redirects", {"url": url}
        ) from exc
    except httpx.ConnectError as exc:
        if _is_dns_failure(exc):
            logger.info("scraper: domain not found for %s", url)
            raise ExtractionError(
                ErrorKind.INVALID_URL, f"Domain not found: {url}", {"url": url}
            ) from exc
        logger.warning("scraper: connection error for %s: %s", url, exc)
        raise TransientFetchError(str(exc) or "Connection failed", {"url": url}) from exc
    except httpx.RequestError as exc:
        logger.warning("scraper: request error for %s: %s", url, exc)
        raise TransientFetchError(str(exc) or "Request failed", {"url": url}) from exc

    if response.status_code >= 400:
        logger.info("scraper: HTTP %d for %s", response.status_code, url)
        raise _status_error(url, response)

    return FetchResult(
        html=response.text,
        final_url=str(response.url),
        status_code=response.status_code,
    )
