"""Unit tests for the retrying fetcher.

The backoff wait is patched out so that the retry schedule can be asserted
without sleeping.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Iterator
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
import pytest_asyncio
import respx

from story_extractor.core.exceptions import ErrorKind, ExtractionError, TransientFetchError
from story_extractor.scraper.fetcher import Fetcher
from story_extractor.scraper.http_fetcher import FetchResult

URL = "https://example.com/story"
PAGE = "<html><body><p>Customer story</p></body></html>"


@pytest_asyncio.fixture()
async def client() -> AsyncGenerator[httpx.AsyncClient, None]:
    async with httpx.AsyncClient() as c:
        yield c


@pytest.fixture()
def sleep() -> Iterator[AsyncMock]:
    with patch("story_extractor.scraper.fetcher._backoff_sleep", new_callable=AsyncMock) as mock:
        yield mock


@pytest.mark.asyncio
class TestFetcherRetries:
    async def test_invalid_scheme_makes_no_attempt(
        self, client: httpx.AsyncClient, sleep: AsyncMock
    ) -> None:
        fetcher = Fetcher(client=client)
        with respx.mock(assert_all_called=False) as mock:
            route = mock.get(url__regex=r".*").mock(return_value=httpx.Response(200))
            with pytest.raises(ExtractionError) as exc_info:
                await fetcher.fetch("ftp://example.com/file")

        assert exc_info.value.kind is ErrorKind.INVALID_URL
        assert route.call_count == 0
        sleep.assert_not_awaited()

    async def test_rate_limited_twice_then_success(
        self, client: httpx.AsyncClient, sleep: AsyncMock
    ) -> None:
        fetcher = Fetcher(client=client, max_retries=3)
        with respx.mock() as mock:
            route = mock.get(URL).mock(
                side_effect=[
                    httpx.Response(429),
                    httpx.Response(429),
                    httpx.Response(200, text=PAGE),
                ]
            )
            result = await fetcher.fetch(URL)

        assert result.html == PAGE
        assert route.call_count == 3
        assert [c.args[0] for c in sleep.await_args_list] == [1000, 3000]

    async def test_404_is_not_retried(self, client: httpx.AsyncClient, sleep: AsyncMock) -> None:
        fetcher = Fetcher(client=client, max_retries=3)
        with respx.mock() as mock:
            route = mock.get(URL).mock(return_value=httpx.Response(404))
            with pytest.raises(ExtractionError) as exc_info:
                await fetcher.fetch(URL)

        assert exc_info.value.kind is ErrorKind.EXTRACTION_FAILED
        assert route.call_count == 1
        sleep.assert_not_awaited()

    async def test_server_error_is_retried(self, client: httpx.AsyncClient, sleep: AsyncMock) -> None:
        fetcher = Fetcher(client=client, max_retries=3)
        with respx.mock() as mock:
            route = mock.get(URL).mock(
                side_effect=[httpx.Response(503), httpx.Response(200, text=PAGE)]
            )
            result = await fetcher.fetch(URL)

        assert result.status_code == 200
        assert route.call_count == 2
        assert sleep.await_count == 1

    async def test_server_error_exhausted_reports_plain_failure(
        self, client: httpx.AsyncClient, sleep: AsyncMock
    ) -> None:
        fetcher = Fetcher(client=client, max_retries=2)
        with respx.mock() as mock:
            route = mock.get(URL).mock(return_value=httpx.Response(500))
            with pytest.raises(ExtractionError) as exc_info:
                await fetcher.fetch(URL)

        assert route.call_count == 2
        assert sleep.await_count == 1
        assert exc_info.value.kind is ErrorKind.EXTRACTION_FAILED
        assert not isinstance(exc_info.value, TransientFetchError)

    async def test_timeouts_exhaust_attempts(
        self, client: httpx.AsyncClient, sleep: AsyncMock
    ) -> None:
        fetcher = Fetcher(client=client, max_retries=3)
        with respx.mock() as mock:
            route = mock.get(URL).mock(side_effect=httpx.ReadTimeout("timed out"))
            with pytest.raises(ExtractionError) as exc_info:
                await fetcher.fetch(URL)

        assert exc_info.value.kind is ErrorKind.TIMEOUT
        assert exc_info.value.retryable is True
        assert route.call_count == 3
        assert sleep.await_count == 2

    async def test_unresolvable_domain_is_terminal(
        self, client: httpx.AsyncClient, sleep: AsyncMock
    ) -> None:
        fetcher = Fetcher(client=client, max_retries=3)
        with respx.mock() as mock:
            route = mock.get(URL).mock(
                side_effect=httpx.ConnectError("getaddrinfo failed")
            )
            with pytest.raises(ExtractionError) as exc_info:
                await fetcher.fetch(URL)

        assert exc_info.value.kind is ErrorKind.INVALID_URL
        assert route.call_count == 1

    async def test_per_call_overrides(self, client: httpx.AsyncClient, sleep: AsyncMock) -> None:
        fetcher = Fetcher(client=client, max_retries=5)
        with respx.mock() as mock:
            route = mock.get(URL).mock(return_value=httpx.Response(429))
            with pytest.raises(ExtractionError):
                await fetcher.fetch(URL, max_retries=1)

        assert route.call_count == 1
        sleep.assert_not_awaited()

    async def test_zero_retries_means_default(
        self, client: httpx.AsyncClient, sleep: AsyncMock
    ) -> None:
        fetcher = Fetcher(client=client, max_retries=2)
        with respx.mock() as mock:
            route = mock.get(URL).mock(return_value=httpx.Response(429))
            with pytest.raises(ExtractionError):
                await fetcher.fetch(URL, max_retries=0)

        assert route.call_count == 2


@pytest.mark.asyncio
class TestBrowserFallback:
    async def test_browser_result_used(self, client: httpx.AsyncClient) -> None:
        browser = MagicMock()
        browser.fetch = AsyncMock(return_value=FetchResult(html=PAGE, final_url=URL, status_code=200))
        browser.close = AsyncMock()
        fetcher = Fetcher(client=client, use_browser=True, browser=browser)

        with respx.mock(assert_all_called=False) as mock:
            route = mock.get(URL).mock(return_value=httpx.Response(200, text="http"))
            result = await fetcher.fetch(URL)

        assert result.html == PAGE
        assert route.call_count == 0

    async def test_browser_failure_falls_back_to_http(self, client: httpx.AsyncClient) -> None:
        browser = MagicMock()
        browser.fetch = AsyncMock(side_effect=RuntimeError("browser crashed"))
        browser.close = AsyncMock()
        fetcher = Fetcher(client=client, use_browser=True, browser=browser)

        with respx.mock() as mock:
            mock.get(URL).mock(return_value=httpx.Response(200, text=PAGE))
            result = await fetcher.fetch(URL)

        assert result.html == PAGE
        await fetcher.aclose()
        browser.close.assert_awaited_once()
