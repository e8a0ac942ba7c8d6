"""Unit tests for the single-attempt HTTP fetcher.

Covers header rotation, DNS-failure detection and the mapping of every
HTTP and transport failure onto an ``ExtractionError`` kind, using mocked
httpx responses.
"""

from __future__ import annotations

import socket

import httpx
import pytest
import respx

from story_extractor.core.exceptions import ErrorKind, ExtractionError, TransientFetchError
from story_extractor.scraper.config import USER_AGENTS
from story_extractor.scraper.http_fetcher import (
    _is_dns_failure,
    build_headers,
    fetch_url,
)

PAGE = "<html><body><p>Hello world</p></body></html>"


class TestBuildHeaders:
    def test_user_agent_from_pool(self) -> None:
        headers = build_headers()
        assert headers["User-Agent"] in USER_AGENTS
        assert headers["Accept-Language"].startswith("en-US")


class TestIsDnsFailure:
    def test_gaierror_in_cause_chain(self) -> None:
        exc = httpx.ConnectError("connect failed")
        exc.__cause__ = socket.gaierror(-2, "Name or service not known")
        assert _is_dns_failure(exc) is True

    def test_resolver_message(self) -> None:
        assert _is_dns_failure(httpx.ConnectError("[Errno -3] Temporary failure in name resolution"))

    def test_connection_refused_is_not_dns(self) -> None:
        assert _is_dns_failure(httpx.ConnectError("[Errno 111] Connection refused")) is False


@pytest.mark.asyncio
class TestFetchUrl:
    async def test_successful_fetch_follows_redirects(self) -> None:
        with respx.mock(base_url="https://example.com") as mock:
            mock.get("/old").mock(
                return_value=httpx.Response(301, headers={"location": "https://example.com/new"})
            )
            mock.get("/new").mock(
                return_value=httpx.Response(
                    200, text=PAGE, headers={"content-type": "text/html; charset=utf-8"}
                )
            )
            async with httpx.AsyncClient() as client:
                result = await fetch_url("https://example.com/old", client=client, timeout=10)

        assert result.html == PAGE
        assert result.final_url == "https://example.com/new"
        assert result.status_code == 200

    async def test_sends_rotated_user_agent(self) -> None:
        with respx.mock(base_url="https://example.com") as mock:
            route = mock.get("/page").mock(return_value=httpx.Response(200, text=PAGE))
            async with httpx.AsyncClient() as client:
                await fetch_url("https://example.com/page", client=client, timeout=10)

        assert route.calls.last.request.headers["user-agent"] in USER_AGENTS

    async def test_429_is_rate_limited(self) -> None:
        with respx.mock(base_url="https://example.com") as mock:
            mock.get("/busy").mock(
                return_value=httpx.Response(429, headers={"retry-after": "30"})
            )
            async with httpx.AsyncClient() as client:
                with pytest.raises(ExtractionError) as exc_info:
                    await fetch_url("https://example.com/busy", client=client, timeout=10)

        assert exc_info.value.kind is ErrorKind.RATE_LIMITED
        assert exc_info.value.retryable is True
        assert exc_info.value.details["retry_after"] == "30"

    async def test_404_is_extraction_failed(self) -> None:
        with respx.mock(base_url="https://example.com") as mock:
            mock.get("/missing").mock(return_value=httpx.Response(404))
            async with httpx.AsyncClient() as client:
                with pytest.raises(ExtractionError) as exc_info:
                    await fetch_url("https://example.com/missing", client=client, timeout=10)

        err = exc_info.value
        assert err.kind is ErrorKind.EXTRACTION_FAILED
        assert not isinstance(err, TransientFetchError)
        assert "404" in err.message

    async def test_5xx_is_transient(self) -> None:
        with respx.mock(base_url="https://example.com") as mock:
            mock.get("/down").mock(return_value=httpx.Response(503))
            async with httpx.AsyncClient() as client:
                with pytest.raises(TransientFetchError) as exc_info:
                    await fetch_url("https://example.com/down", client=client, timeout=10)

        assert exc_info.value.details["status"] == 503

    async def test_timeout(self) -> None:
        with respx.mock(base_url="https://example.com") as mock:
            mock.get("/slow").mock(side_effect=httpx.ReadTimeout("timed out"))
            async with httpx.AsyncClient() as client:
                with pytest.raises(ExtractionError) as exc_info:
                    await fetch_url("https://example.com/slow", client=client, timeout=2.5)

        assert exc_info.value.kind is ErrorKind.TIMEOUT
        assert "2.5s" in exc_info.value.message

    async def test_unresolvable_domain_is_invalid_url(self) -> None:
        with respx.mock() as mock:
            mock.get("https://no-such-host.invalid/").mock(
                side_effect=httpx.ConnectError("[Errno -2] Name or service not known")
            )
            async with httpx.AsyncClient() as client:
                with pytest.raises(ExtractionError) as exc_info:
                    await fetch_url("https://no-such-host.invalid/", client=client, timeout=10)

        assert exc_info.value.kind is ErrorKind.INVALID_URL

    async def test_connection_refused_is_transient(self) -> None:
        with respx.mock(base_url="https://example.com") as mock:
            mock.get("/").mock(side_effect=httpx.ConnectError("Connection refused"))
            async with httpx.AsyncClient() as client:
                with pytest.raises(TransientFetchError):
                    await fetch_url("https://example.com/", client=client, timeout=10)

    async def test_redirect_loop(self) -> None:
        with respx.mock(base_url="https://example.com") as mock:
            mock.get("/loop").mock(
                return_value=httpx.Response(302, headers={"location": "https://example.com/loop"})
            )
            async with httpx.AsyncClient(max_redirects=5) as client:
                with pytest.raises(ExtractionError) as exc_info:
                    await fetch_url("https://example.com/loop", client=client, timeout=10)

        assert exc_info.value.kind is ErrorKind.EXTRACTION_FAILED
        assert "redirect" in exc_info.value.message.lower()
