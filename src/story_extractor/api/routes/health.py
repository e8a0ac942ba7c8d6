"""Health check route handlers.

``GET /health``
    Liveness: ``{"status": "ok"}`` without any I/O.

``GET /health/detailed``
    Pings the story storage and echoes the non-secret runtime configuration.
    Returns HTTP 503 with ``status="degraded"`` when storage is unreachable.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from story_extractor import __version__
from story_extractor.config.settings import get_settings
from story_extractor.core.helpers import utcnow

logger = logging.getLogger(__name__)

router = APIRouter(tags=["system"])


async def _check_storage(request: Request) -> str:
    """Ping the orchestrator's storage.

    Returns:
        ``"ok"`` if the ping succeeds, ``"error"`` otherwise (including
        when the orchestrator is not wired yet).
    """
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        return "error"
    try:
        return "ok" if await orchestrator.storage.ping() else "error"
    except Exception:
        logger.exception("Health check: storage unreachable")
        return "error"


@router.get("/health")
async def health() -> JSONResponse:
    return JSONResponse({"status": "ok", "timestamp": utcnow().isoformat()})


@router.get("/health/detailed")
async def health_detailed(request: Request) -> JSONResponse:
    settings = get_settings()
    storage = await _check_storage(request)
    healthy = storage == "ok"
    body = {
        "status": "ok" if healthy else "degraded",
        "version": __version__,
        "timestamp": utcnow().isoformat(),
        "checks": {"storage": storage},
        "config": {
            "max_concurrent_workers": settings.max_concurrent_workers,
            "fetch_timeout": settings.fetch_timeout,
            "max_retries": settings.max_retries,
            "use_browser": settings.use_browser,
            "ai_enabled": settings.ai_enabled,
            "gamma_enabled": settings.gamma_enabled,
        },
    }
    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content=body,
    )
