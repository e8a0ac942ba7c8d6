"""Extraction route handlers.

``POST /api/extract/single``
    Extract one URL.  Returns the :class:`ExtractionResult` with HTTP 200 on
    success and HTTP 422 when the pipeline failed (the body then carries
    ``error``, ``message``, ``retryable`` and the failed ``story_id``).

``POST /api/extract/batch``
    Extract every URL of an uploaded CSV file.  The batch runs to completion
    inside the request and the response carries the final counters.
"""

from pathlib import PurePath

import structlog
from fastapi import APIRouter, Depends, File, Request, UploadFile, status
from fastapi.responses import JSONResponse

from story_extractor.api.dependencies import get_orchestrator
from story_extractor.api.limiter import limiter
from story_extractor.config.settings import get_settings
from story_extractor.core.exceptions import ErrorKind, ExtractionError
from story_extractor.core.schemas.extraction import BatchResult, SingleExtractRequest
from story_extractor.orchestration.csv_input import parse_url_csv
from story_extractor.orchestration.service import Orchestrator

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/extract", tags=["extract"])

#: Largest accepted CSV upload.
MAX_UPLOAD_BYTES: int = 10 * 1024 * 1024

#: Content types accepted for batch uploads (besides a ``.csv`` filename).
CSV_CONTENT_TYPES: frozenset[str] = frozenset({"text/csv", "application/csv", "text/plain"})

_RATE_LIMIT = f"{get_settings().rate_limit_per_minute}/minute"


def _is_csv_upload(upload: UploadFile) -> bool:
    content_type = (upload.content_type or "").split(";")[0].strip().lower()
    if content_type in CSV_CONTENT_TYPES:
        return True
    return PurePath(upload.filename or "").suffix.lower() == ".csv"


@router.post("/single")
@limiter.limit(_RATE_LIMIT)
async def extract_single(
    request: Request,
    body: SingleExtractRequest,
    orchestrator: Orchestrator = Depends(get_orchestrator),
) -> JSONResponse:
    """Extract a single URL into a story."""
    logger.info("extract_single_requested", url=body.url)
    result = await orchestrator.process_single_url(body.url, body.options)
    return JSONResponse(
        status_code=status.HTTP_200_OK if result.success else status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=result.to_payload(),
    )


@router.post("/batch", response_model=BatchResult)
@limiter.limit(_RATE_LIMIT)
async def extract_batch(
    request: Request,
    file: UploadFile = File(...),
    concurrency: int | None = None,
    orchestrator: Orchestrator = Depends(get_orchestrator),
) -> BatchResult:
    """Extract every URL listed in an uploaded CSV file.

    Raises:
        ExtractionError: ``VALIDATION_ERROR`` for a non-CSV or oversized
            upload, or when the file holds no valid URL.
    """
    if not _is_csv_upload(file):
        raise ExtractionError(
            ErrorKind.VALIDATION_ERROR,
            "Only CSV files are allowed",
            {"content_type": file.content_type, "filename": file.filename},
        )
    raw = await file.read(MAX_UPLOAD_BYTES + 1)
    if len(raw) > MAX_UPLOAD_BYTES:
        raise ExtractionError(
            ErrorKind.VALIDATION_ERROR,
            "CSV file exceeds the 10 MB limit",
            {"max_bytes": MAX_UPLOAD_BYTES},
        )

    entries = parse_url_csv(raw.decode("utf-8", errors="replace"))
    if not entries:
        raise ExtractionError(ErrorKind.VALIDATION_ERROR, "No valid URLs found in CSV file")

    if concurrency is not None and concurrency < 1:
        raise ExtractionError(
            ErrorKind.VALIDATION_ERROR, "concurrency must be at least 1", {"concurrency": concurrency}
        )
    logger.info("extract_batch_requested", filename=file.filename, urls=len(entries))
    return await orchestrator.process_batch(entries, concurrency=concurrency)
