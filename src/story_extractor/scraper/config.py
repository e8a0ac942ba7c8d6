"""Constants and tuning parameters for the page fetcher."""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Fetch timing
# ---------------------------------------------------------------------------

#: Default per-attempt request timeout in seconds.  Overridden per request.
DEFAULT_TIMEOUT: float = 30.0

#: Default number of fetch attempts.  Overridden per request.
DEFAULT_MAX_RETRIES: int = 3

#: Maximum number of redirects followed before giving up.
MAX_REDIRECTS: int = 5

# ---------------------------------------------------------------------------
# Headless browser
# ---------------------------------------------------------------------------

#: Extra wait (milliseconds) after network idle for lazy-loaded content.
BROWSER_SETTLE_MS: int = 2000

#: Viewport used for rendered fetches.
BROWSER_VIEWPORT: dict[str, int] = {"width": 1280, "height": 800}

#: Chromium flags for container-friendly headless launches.
BROWSER_LAUNCH_ARGS: tuple[str, ...] = (
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--no-first-run",
)

# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------

#: Desktop browser user agents; one is picked at random for every attempt.
USER_AGENTS: tuple[str, ...] = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:121.0) Gecko/20100101 Firefox/121.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.2 Safari/605.1.15",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
)

#: Browser-like headers sent alongside the rotated user agent.
BROWSER_HEADERS: dict[str, str] = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "Accept-Encoding": "gzip, deflate",
    "Connection": "keep-alive",
    "Cache-Control": "no-cache",
}

#: Substrings of resolver errors that mean the domain does not exist.
DNS_FAILURE_MARKERS: tuple[str, ...] = (
    "name or service not known",
    "nodename nor servname",
    "temporary failure in name resolution",
    "getaddrinfo failed",
    "no address associated with hostname",
)
