"""Integration tests for the HTTP API.

The application is driven in-process through ``httpx.ASGITransport``; the
startup hook does not run, so each test wires the orchestrator fixture onto
``app.state`` itself.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport

from story_extractor.api.main import app
from story_extractor.config.settings import Settings
from story_extractor.core.exceptions import ErrorKind, ExtractionError
from story_extractor.orchestration.service import Orchestrator
from story_extractor.producers.heuristic import HeuristicContentProducer
from story_extractor.storage.files import HtmlArtifactStore
from tests.factories import SAMPLE_URL, FailingStorage, FakeFetcher, story_page_html


@pytest_asyncio.fixture()
async def client(orchestrator: Orchestrator) -> AsyncGenerator[httpx.AsyncClient, None]:
    app.state.orchestrator = orchestrator
    try:
        async with httpx.AsyncClient(
            transport=ASGITransport(app=app), base_url="http://test"
        ) as http_client:
            yield http_client
    finally:
        app.state.orchestrator = None


def _csv_upload(text: str, content_type: str = "text/csv", name: str = "urls.csv") -> dict:
    return {"file": (name, text.encode("utf-8"), content_type)}


# ---------------------------------------------------------------------------
# POST /api/extract/single
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
class TestExtractSingle:
    async def test_success(self, client: httpx.AsyncClient) -> None:
        response = await client.post("/api/extract/single", json={"url": SAMPLE_URL})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["story_id"].startswith("story_")
        assert body["content"]["title"] == "Acme Corp cuts cloud costs by 40%"
        assert body["html_page_url"] == f"http://test/stories/{body['story_id']}/index.html"
        assert "error" not in body

    async def test_pipeline_failure(
        self, client: httpx.AsyncClient, fetcher: FakeFetcher
    ) -> None:
        fetcher.pages["https://example.com/slow"] = ExtractionError(
            ErrorKind.TIMEOUT, "Request timeout"
        )

        response = await client.post(
            "/api/extract/single", json={"url": "https://example.com/slow"}
        )

        assert response.status_code == 422
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "TIMEOUT"
        assert body["retryable"] is True
        assert body["story_id"].startswith("story_")

    async def test_invalid_url(self, client: httpx.AsyncClient) -> None:
        response = await client.post("/api/extract/single", json={"url": "ftp://example.com"})

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "VALIDATION_ERROR"
        assert body["details"]["errors"][0]["field"] == "body.url"

    async def test_timeout_option_out_of_range(self, client: httpx.AsyncClient) -> None:
        response = await client.post(
            "/api/extract/single", json={"url": SAMPLE_URL, "options": {"timeout": 500}}
        )

        assert response.status_code == 400
        assert response.json()["error"] == "VALIDATION_ERROR"

    async def test_request_id_header(self, client: httpx.AsyncClient) -> None:
        response = await client.post("/api/extract/single", json={"url": SAMPLE_URL})

        assert response.headers["X-Request-ID"]


# ---------------------------------------------------------------------------
# POST /api/extract/batch
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
class TestExtractBatch:
    async def test_upload(self, client: httpx.AsyncClient, fetcher: FakeFetcher) -> None:
        fetcher.pages["https://example.com/customers/globex"] = story_page_html(title="Globex")
        csv_text = f"url,name\n{SAMPLE_URL},Acme\nhttps://example.com/customers/globex,Globex\n"

        response = await client.post(
            "/api/extract/batch", files=_csv_upload(csv_text), params={"concurrency": 1}
        )

        assert response.status_code == 200
        body = response.json()
        assert (body["total_urls"], body["completed"], body["failed"]) == (2, 2, 0)
        assert [item["name"] for item in body["results"]] == ["Acme", "Globex"]
        assert fetcher.max_active == 1
        assert body["dashboard_url"] == f"http://test/batches/{body['batch_id']}/"

    async def test_no_valid_urls(self, client: httpx.AsyncClient) -> None:
        response = await client.post(
            "/api/extract/batch", files=_csv_upload("url\nnot-a-url\n")
        )

        assert response.status_code == 400
        assert response.json()["message"] == "No valid URLs found in CSV file"

    async def test_wrong_file_type(self, client: httpx.AsyncClient) -> None:
        response = await client.post(
            "/api/extract/batch",
            files=_csv_upload("{}", content_type="application/json", name="urls.json"),
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Only CSV files are allowed"

    async def test_csv_extension_accepted(self, client: httpx.AsyncClient) -> None:
        response = await client.post(
            "/api/extract/batch",
            files=_csv_upload(f"url\n{SAMPLE_URL}\n", content_type="application/octet-stream"),
        )

        assert response.status_code == 200

    async def test_invalid_concurrency(self, client: httpx.AsyncClient) -> None:
        response = await client.post(
            "/api/extract/batch",
            files=_csv_upload(f"url\n{SAMPLE_URL}\n"),
            params={"concurrency": 0},
        )

        assert response.status_code == 400


# ---------------------------------------------------------------------------
# /api/story
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
class TestStoryRoutes:
    async def test_story_status(self, client: httpx.AsyncClient) -> None:
        created = (await client.post("/api/extract/single", json={"url": SAMPLE_URL})).json()

        response = await client.get(f"/api/story/{created['story_id']}")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "completed"
        assert "two million parcels" in body["html_content"]

    async def test_invalid_story_id(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/api/story/nope")

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid story ID format"

    async def test_unknown_story(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/api/story/story_000000000000")

        assert response.status_code == 404
        assert response.json()["error"] == "NOT_FOUND"

    async def test_batch_status(self, client: httpx.AsyncClient) -> None:
        created = (
            await client.post("/api/extract/batch", files=_csv_upload(f"url\n{SAMPLE_URL}\n"))
        ).json()

        response = await client.get(f"/api/story/batch/{created['batch_id']}")

        assert response.status_code == 200
        assert response.json()["results"][0]["status"] == "completed"

    async def test_unknown_batch(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/api/story/batch/batch_000000000000")

        assert response.status_code == 404
        assert response.json()["message"] == "Batch not found"

    async def test_invalid_batch_id(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/api/story/batch/nope")

        assert response.status_code == 400

    async def test_retry_unknown_batch(self, client: httpx.AsyncClient) -> None:
        response = await client.post("/api/story/batch/batch_000000000000/retry")

        assert response.status_code == 404

    async def test_retry_nothing_failed(self, client: httpx.AsyncClient) -> None:
        created = (
            await client.post("/api/extract/batch", files=_csv_upload(f"url\n{SAMPLE_URL}\n"))
        ).json()

        response = await client.post(f"/api/story/batch/{created['batch_id']}/retry")

        assert response.status_code == 200
        assert response.json()["retried"] == 0


# ---------------------------------------------------------------------------
# System routes
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
class TestSystemRoutes:
    async def test_health(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    async def test_health_detailed(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/health/detailed")

        assert response.status_code == 200
        body = response.json()
        assert body["checks"]["storage"] == "ok"
        assert body["config"]["ai_enabled"] is False
        assert "anthropic_api_key" not in body["config"]

    async def test_health_detailed_degraded(
        self, settings: Settings, fetcher: FakeFetcher, artifacts: HtmlArtifactStore
    ) -> None:
        orch = Orchestrator(
            settings=settings,
            fetcher=fetcher,  # type: ignore[arg-type]
            producer=HeuristicContentProducer(),
            storage=FailingStorage(),
            artifacts=artifacts,
        )
        app.state.orchestrator = orch
        try:
            async with httpx.AsyncClient(
                transport=ASGITransport(app=app), base_url="http://test"
            ) as http_client:
                response = await http_client.get("/health/detailed")
        finally:
            app.state.orchestrator = None
            await orch.aclose()

        assert response.status_code == 503
        assert response.json()["status"] == "degraded"

    async def test_metrics(self, client: httpx.AsyncClient) -> None:
        await client.get("/health")

        response = await client.get("/metrics")

        assert response.status_code == 200
        assert "http_requests_total" in response.text

    async def test_not_started(self) -> None:
        app.state.orchestrator = None
        async with httpx.AsyncClient(
            transport=ASGITransport(app=app), base_url="http://test"
        ) as http_client:
            response = await http_client.post("/api/extract/single", json={"url": SAMPLE_URL})

        assert response.status_code == 503
