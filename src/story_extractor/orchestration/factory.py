"""Wiring of an :class:`Orchestrator` from settings.

Used by the API startup hook and the CLI.  The producer is chosen from
configuration: the agent pipeline when an Anthropic key is set, otherwise
the heuristic engine.
"""

from __future__ import annotations

import structlog

from story_extractor.config.settings import Settings
from story_extractor.core.database import build_engine, build_session_factory, init_models
from story_extractor.documents.gamma import GammaClient
from story_extractor.orchestration.service import Orchestrator
from story_extractor.producers.agents.pipeline import AgentContentProducer
from story_extractor.producers.base import ContentProducer
from story_extractor.producers.heuristic import HeuristicContentProducer
from story_extractor.scraper.fetcher import Fetcher
from story_extractor.storage.base import StoryStorage
from story_extractor.storage.database import SqlStoryStorage
from story_extractor.storage.files import HtmlArtifactStore

logger = structlog.get_logger(__name__)


def build_producer(settings: Settings) -> ContentProducer:
    if settings.ai_enabled:
        return AgentContentProducer(
            api_key=settings.anthropic_api_key,
            model=settings.anthropic_model,
            base_url=settings.anthropic_base_url,
        )
    return HeuristicContentProducer()


async def build_storage(settings: Settings) -> StoryStorage:
    """Create the SQL storage and make sure its tables exist."""
    engine = build_engine(settings.database_url)
    await init_models(engine)
    return SqlStoryStorage(build_session_factory(engine), engine)


async def build_orchestrator(
    settings: Settings, *, storage: StoryStorage | None = None
) -> Orchestrator:
    """Assemble an orchestrator; ``storage`` overrides the SQL default."""
    artifacts = HtmlArtifactStore(settings.storage_path)
    artifacts.ensure_dirs()
    producer = build_producer(settings)
    gamma = (
        GammaClient(
            api_key=settings.gamma_api_key,
            base_url=settings.gamma_base_url,
            default_theme_id=settings.gamma_default_theme_id,
        )
        if settings.gamma_enabled
        else None
    )
    orchestrator = Orchestrator(
        settings=settings,
        fetcher=Fetcher(
            timeout=settings.fetch_timeout,
            max_retries=settings.max_retries,
            use_browser=settings.use_browser,
        ),
        producer=producer,
        storage=storage or await build_storage(settings),
        artifacts=artifacts,
        gamma=gamma,
    )
    logger.info(
        "orchestrator_ready",
        producer=producer.name,
        gamma=gamma is not None,
        browser=settings.use_browser,
    )
    return orchestrator
