"""Shared slowapi rate-limiter singleton.

Keeping the ``Limiter`` instance in its own module lets route modules apply
per-route limits without importing ``main.py``.

The default limit comes from ``Settings.rate_limit_per_minute`` and is
enforced on every route by the ``SlowAPIMiddleware`` registered in
``main.create_app()``.  The ``request`` parameter must be present in the
signature of any route decorated with ``@limiter.limit``.
"""

from __future__ import annotations

from slowapi import Limiter
from slowapi.util import get_remote_address

from story_extractor.config.settings import get_settings

limiter: Limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[f"{get_settings().rate_limit_per_minute}/minute"],
)
"""Global rate-limiter instance, keyed by client IP address."""
