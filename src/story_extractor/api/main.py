"""FastAPI application for the story extractor.

:func:`create_app` assembles the service: error envelope handlers, CORS,
the request-context middleware, the ``/api`` routers, ``/health``,
``/metrics`` and the static artifact mounts.  The
:class:`~story_extractor.orchestration.service.Orchestrator` is built on
startup and closed on shutdown.

Usage::

    uvicorn story_extractor.api.main:app --reload
"""

from __future__ import annotations

import time
import uuid
from pathlib import Path
from typing import Awaitable, Callable

import structlog
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from story_extractor import __version__
from story_extractor.api.errors import register_exception_handlers
from story_extractor.api.limiter import limiter
from story_extractor.api.metrics import (
    get_metrics_response,
    http_request_duration_seconds,
    http_requests_total,
)
from story_extractor.config.settings import Settings, get_settings
from story_extractor.core.logging_config import configure_logging, request_id_var
from story_extractor.storage.files import BATCHES_DIR

# Import-time records (router modules, settings) get JSON output too; the
# configured level is applied again in create_app().
configure_logging("INFO")

logger = structlog.get_logger(__name__)

CallNext = Callable[[Request], Awaitable[Response]]


# ---------------------------------------------------------------------------
# Middleware
# ---------------------------------------------------------------------------


def _route_template(request: Request) -> str:
    """Metric label for a request: the matched route path, not the raw URL."""
    route = request.scope.get("route")
    return getattr(route, "path", None) or "unmatched"


def _record_request(request: Request, status_code: int, elapsed: float) -> None:
    path = _route_template(request)
    http_requests_total.labels(method=request.method, path=path, status=str(status_code)).inc()
    http_request_duration_seconds.labels(method=request.method, path=path).observe(elapsed)
    log = logger.warning if status_code >= 400 else logger.info
    log("request_complete", status_code=status_code, elapsed_ms=round(elapsed * 1000, 2))


async def request_context_middleware(request: Request, call_next: CallNext) -> Response:
    """Tag the request with an ID, then log and count it once it completes.

    The ID is bound to the structlog context for every record emitted while
    serving the request and returned in the ``X-Request-ID`` header.
    """
    request_id = uuid.uuid4().hex
    request_id_var.set(request_id)
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(
        request_id=request_id, method=request.method, path=request.url.path
    )

    started = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception:
        _record_request(request, 500, time.perf_counter() - started)
        logger.exception("unhandled_exception")
        raise

    _record_request(request, response.status_code, time.perf_counter() - started)
    response.headers["X-Request-ID"] = request_id
    return response


# ---------------------------------------------------------------------------
# Assembly
# ---------------------------------------------------------------------------


def _mount_artifacts(application: FastAPI, settings: Settings) -> None:
    """Serve rendered stories at ``/stories`` and dashboards at ``/batches``.

    ``html=True`` lets a dashboard link such as ``/batches/<id>/`` resolve to
    its ``index.html``.
    """
    stories_dir = Path(settings.storage_path).resolve()
    batches_dir = stories_dir / BATCHES_DIR
    batches_dir.mkdir(parents=True, exist_ok=True)
    application.mount("/batches", StaticFiles(directory=batches_dir, html=True), name="batches")
    application.mount("/stories", StaticFiles(directory=stories_dir, html=True), name="stories")


def _register_lifecycle(application: FastAPI, settings: Settings) -> None:
    @application.on_event("startup")
    async def start_orchestrator() -> None:
        # Tests inject their own orchestrator before the app starts.
        if getattr(application.state, "orchestrator", None) is None:
            from story_extractor.orchestration.factory import build_orchestrator  # noqa: PLC0415

            application.state.orchestrator = await build_orchestrator(settings)
        logger.info("application_startup", base_url=settings.base_url, version=__version__)

    @application.on_event("shutdown")
    async def stop_orchestrator() -> None:
        orchestrator = getattr(application.state, "orchestrator", None)
        if orchestrator is not None:
            await orchestrator.aclose()
        logger.info("application_shutdown")


def create_app() -> FastAPI:
    """Build the application from the current settings.

    Kept separate from the module-level ``app`` so tests can build an app
    against a patched environment.
    """
    settings = get_settings()
    configure_logging(settings.log_level)

    application = FastAPI(
        title=settings.app_name,
        description="Extracts customer stories from web pages into structured content.",
        version=__version__,
        debug=settings.debug,
    )
    application.state.limiter = limiter
    register_exception_handlers(application)

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.middleware("http")(request_context_middleware)

    from story_extractor.api.routes import extract, health, story  # noqa: PLC0415

    for router in (health.router, extract.router, story.router):
        application.include_router(router)

    if settings.metrics_enabled:

        @application.get("/metrics", tags=["system"], include_in_schema=False)
        async def metrics() -> Response:
            body, content_type = get_metrics_response()
            return Response(content=body, media_type=content_type)

    _mount_artifacts(application, settings)
    _register_lifecycle(application, settings)
    return application


app = create_app()
"""Application instance served by uvicorn."""
