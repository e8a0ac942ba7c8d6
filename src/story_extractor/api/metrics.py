"""Prometheus metrics for Story Extractor.

All metrics are module-level singletons registered on the default
``REGISTRY`` and exposed at ``/metrics`` when ``metrics_enabled`` is set.

Metrics defined here:

  fetch_attempts_total{outcome}
      Counter: individual fetch attempts by outcome (``success`` or the
      lower-cased error kind).

  stories_total{status, method}
      Counter: stories reaching a terminal status, by producer method.

  batch_windows_total
      Counter: concurrency windows completed by batch runs.

  extraction_duration_seconds{method}
      Histogram: wall-clock time of one single-URL extraction.

  http_requests_total{method, path, status}
      Counter: HTTP requests handled by the FastAPI application.

  http_request_duration_seconds{method, path}
      Histogram: HTTP request latency in seconds.

Usage::

    from story_extractor.api.metrics import stories_total
    stories_total.labels(status="completed", method="rule-based").inc()
"""

from __future__ import annotations

from prometheus_client import Counter, Histogram

# ---------------------------------------------------------------------------
# Pipeline metrics
# ---------------------------------------------------------------------------

fetch_attempts_total: Counter = Counter(
    "fetch_attempts_total",
    "Fetch attempts by outcome.",
    labelnames=["outcome"],
)
"""Counter incremented once per HTTP or browser fetch attempt."""

stories_total: Counter = Counter(
    "stories_total",
    "Stories reaching a terminal status.",
    labelnames=["status", "method"],
)
"""Counter incremented when a story is marked completed or failed."""

batch_windows_total: Counter = Counter(
    "batch_windows_total",
    "Concurrency windows completed by batch runs.",
)

extraction_duration_seconds: Histogram = Histogram(
    "extraction_duration_seconds",
    "Wall-clock duration of a single-URL extraction.",
    labelnames=["method"],
    buckets=(0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0),
)

# ---------------------------------------------------------------------------
# HTTP metrics
# ---------------------------------------------------------------------------

http_requests_total: Counter = Counter(
    "http_requests_total",
    "HTTP requests handled, by method, path and status.",
    labelnames=["method", "path", "status"],
)

http_request_duration_seconds: Histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency in seconds.",
    labelnames=["method", "path"],
)


# ---------------------------------------------------------------------------
# Response helper
# ---------------------------------------------------------------------------


def get_metrics_response() -> tuple[bytes, str]:
    """Generate a Prometheus text-format metrics response.

    Returns:
        A tuple of (body_bytes, content_type_string) suitable for constructing
        a FastAPI ``Response`` object.
    """
    from prometheus_client import CONTENT_TYPE_LATEST, generate_latest  # noqa: PLC0415

    return generate_latest(), CONTENT_TYPE_LATEST
