"""Exception handlers translating errors into the API error envelope.

Every error response has the shape::

    {"success": false, "error": "<KIND>", "message": "...", "retryable": bool,
     "details": {...}, "timestamp": "..."}
"""

from __future__ import annotations

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from story_extractor.core.exceptions import ErrorKind, ExtractionError

logger = structlog.get_logger(__name__)

#: HTTP status returned for each error kind.
STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.INVALID_URL: status.HTTP_400_BAD_REQUEST,
    ErrorKind.VALIDATION_ERROR: status.HTTP_400_BAD_REQUEST,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.TIMEOUT: status.HTTP_408_REQUEST_TIMEOUT,
    ErrorKind.EXTRACTION_FAILED: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorKind.PARSE_ERROR: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorKind.RATE_LIMITED: status.HTTP_429_TOO_MANY_REQUESTS,
    ErrorKind.STORAGE_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorKind.UNKNOWN: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def error_response(error: ExtractionError) -> JSONResponse:
    return JSONResponse(
        status_code=STATUS_BY_KIND[error.kind],
        content={"success": False, **error.to_dict()},
    )


async def extraction_error_handler(request: Request, exc: ExtractionError) -> JSONResponse:
    logger.warning("request_failed", error=exc.kind.value, message=exc.message)
    return error_response(exc)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [
        {"field": ".".join(str(part) for part in err.get("loc", ())), "message": err.get("msg")}
        for err in exc.errors()
    ]
    return error_response(
        ExtractionError(ErrorKind.VALIDATION_ERROR, "Validation failed", {"errors": details})
    )


async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    return error_response(
        ExtractionError(
            ErrorKind.RATE_LIMITED,
            "Too many requests, please try again later",
            {"limit": str(exc.detail)},
        )
    )


def register_exception_handlers(application: FastAPI) -> None:
    application.add_exception_handler(ExtractionError, extraction_error_handler)  # type: ignore[arg-type]
    application.add_exception_handler(RequestValidationError, validation_error_handler)  # type: ignore[arg-type]
    application.add_exception_handler(RateLimitExceeded, rate_limit_handler)  # type: ignore[arg-type]
