"""Shared pytest fixtures for Story Extractor tests.

Fixture summary
---------------
settings         Settings pointed at a temporary storage root.
artifacts        HtmlArtifactStore under the temporary storage root.
storage          Empty InMemoryStoryStorage.
fetcher          FakeFetcher serving the sample page at SAMPLE_URL.
orchestrator     Orchestrator over the fakes and the rule-based producer.

No test needs network access or a browser: HTTP is mocked with respx and
the database tests run against a temporary SQLite file.
"""

from __future__ import annotations

import os
import tempfile
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
import pytest_asyncio

# ---------------------------------------------------------------------------
# Test environment bootstrap
# ---------------------------------------------------------------------------
# Set before any application module is imported: the API module mounts the
# storage root at import time and the limiter reads its rate from settings.

_TEST_ROOT = Path(tempfile.mkdtemp(prefix="story-extractor-tests-"))

_TEST_ENV_DEFAULTS: dict[str, str] = {
    "STORAGE_PATH": str(_TEST_ROOT / "stories"),
    "DATABASE_URL": f"sqlite+aiosqlite:///{_TEST_ROOT / 'stories.db'}",
    "BASE_URL": "http://test",
    "RATE_LIMIT_PER_MINUTE": "1000",
    "ANTHROPIC_API_KEY": "",
    "GAMMA_API_KEY": "",
    "URLBOX_API_KEY": "",
}

for _key, _default in _TEST_ENV_DEFAULTS.items():
    os.environ.setdefault(_key, _default)

# ---------------------------------------------------------------------------
# Application imports (after env bootstrap)
# ---------------------------------------------------------------------------

from story_extractor.config.settings import Settings, get_settings  # noqa: E402
from story_extractor.orchestration.service import Orchestrator  # noqa: E402
from story_extractor.producers.heuristic import HeuristicContentProducer  # noqa: E402
from story_extractor.storage.files import HtmlArtifactStore  # noqa: E402
from story_extractor.storage.memory import InMemoryStoryStorage  # noqa: E402
from tests.factories import SAMPLE_URL, FakeFetcher, story_page_html  # noqa: E402

get_settings.cache_clear()


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(
        base_url="http://test",
        storage_path=str(tmp_path / "stories"),
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'stories.db'}",
        fetch_timeout=5.0,
        max_concurrent_workers=2,
        anthropic_api_key="",
        gamma_api_key="",
        urlbox_api_key="",
    )


@pytest.fixture()
def artifacts(settings: Settings) -> HtmlArtifactStore:
    store = HtmlArtifactStore(settings.storage_path)
    store.ensure_dirs()
    return store


@pytest.fixture()
def storage() -> InMemoryStoryStorage:
    return InMemoryStoryStorage()


@pytest.fixture()
def fetcher() -> FakeFetcher:
    return FakeFetcher({SAMPLE_URL: story_page_html()})


@pytest_asyncio.fixture()
async def orchestrator(
    settings: Settings,
    fetcher: FakeFetcher,
    storage: InMemoryStoryStorage,
    artifacts: HtmlArtifactStore,
) -> AsyncGenerator[Orchestrator, None]:
    orch = Orchestrator(
        settings=settings,
        fetcher=fetcher,  # type: ignore[arg-type]
        producer=HeuristicContentProducer(),
        storage=storage,
        artifacts=artifacts,
    )
    yield orch
    await orch.aclose()
