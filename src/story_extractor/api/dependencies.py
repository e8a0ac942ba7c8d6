"""FastAPI dependency injection providers.

The :class:`~story_extractor.orchestration.service.Orchestrator` is built
once at application startup and stored on ``app.state``; route handlers
receive it through :func:`get_orchestrator`, which tests replace with
``app.dependency_overrides``.
"""

from __future__ import annotations

from fastapi import HTTPException, Request, status

from story_extractor.orchestration.service import Orchestrator


def get_orchestrator(request: Request) -> Orchestrator:
    """Return the application's orchestrator.

    Raises:
        HTTPException 503: If startup has not finished wiring it.
    """
    orchestrator: Orchestrator | None = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service is starting up.",
        )
    return orchestrator
