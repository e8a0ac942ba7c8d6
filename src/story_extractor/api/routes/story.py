"""Story and batch status route handlers.

Batch routes are declared before ``/{story_id}`` so that ``/batch/...``
paths are not captured by the story lookup.
"""

import structlog
from fastapi import APIRouter, Depends, Request

from story_extractor.api.dependencies import get_orchestrator
from story_extractor.api.limiter import limiter
from story_extractor.config.settings import get_settings
from story_extractor.core.exceptions import ErrorKind, ExtractionError
from story_extractor.core.helpers import is_valid_batch_id, is_valid_story_id
from story_extractor.core.schemas.extraction import BatchStatusRead, RetryResult, StoryStatusRead
from story_extractor.orchestration.service import Orchestrator

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/story", tags=["story"])

_RATE_LIMIT = f"{get_settings().rate_limit_per_minute}/minute"


def _require_batch_id(batch_id: str) -> None:
    if not is_valid_batch_id(batch_id):
        raise ExtractionError(
            ErrorKind.VALIDATION_ERROR, "Invalid batch ID format", {"batch_id": batch_id}
        )


@router.get("/batch/{batch_id}", response_model=BatchStatusRead)
@limiter.limit(_RATE_LIMIT)
async def get_batch(
    request: Request,
    batch_id: str,
    orchestrator: Orchestrator = Depends(get_orchestrator),
) -> BatchStatusRead:
    _require_batch_id(batch_id)
    batch = await orchestrator.get_batch_status(batch_id)
    if batch is None:
        raise ExtractionError(ErrorKind.NOT_FOUND, "Batch not found", {"batch_id": batch_id})
    return batch


@router.post("/batch/{batch_id}/retry", response_model=RetryResult)
@limiter.limit(_RATE_LIMIT)
async def retry_batch(
    request: Request,
    batch_id: str,
    orchestrator: Orchestrator = Depends(get_orchestrator),
) -> RetryResult:
    """Re-run the failed stories of a batch under their existing ids."""
    _require_batch_id(batch_id)
    logger.info("batch_retry_requested", batch_id=batch_id)
    return await orchestrator.retry_failed_stories(batch_id)


@router.get("/{story_id}", response_model=StoryStatusRead)
@limiter.limit(_RATE_LIMIT)
async def get_story(
    request: Request,
    story_id: str,
    orchestrator: Orchestrator = Depends(get_orchestrator),
) -> StoryStatusRead:
    """Return a story's status, and its rendered pages once completed."""
    if not is_valid_story_id(story_id):
        raise ExtractionError(
            ErrorKind.VALIDATION_ERROR, "Invalid story ID format", {"story_id": story_id}
        )
    story = await orchestrator.get_story_status(story_id)
    if story is None:
        raise ExtractionError(ErrorKind.NOT_FOUND, "Story not found", {"story_id": story_id})
    return story
