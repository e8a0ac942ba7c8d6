"""Small shared helpers: identifiers, URL validation and timestamps."""

from __future__ import annotations

import urllib.parse
import uuid
from datetime import UTC, datetime

#: Prefix of every story identifier.
STORY_ID_PREFIX: str = "story_"

#: Prefix of every batch identifier.
BATCH_ID_PREFIX: str = "batch_"

#: Minimum length of a well-formed story or batch identifier.
MIN_ID_LENGTH: int = 10


def new_story_id() -> str:
    """Return a fresh ``story_`` identifier with 12 hex characters."""
    return f"{STORY_ID_PREFIX}{uuid.uuid4().hex[:12]}"


def new_batch_id() -> str:
    """Return a fresh ``batch_`` identifier with 12 hex characters."""
    return f"{BATCH_ID_PREFIX}{uuid.uuid4().hex[:12]}"


def is_valid_story_id(value: str) -> bool:
    return value.startswith(STORY_ID_PREFIX) and len(value) >= MIN_ID_LENGTH


def is_valid_batch_id(value: str) -> bool:
    return value.startswith(BATCH_ID_PREFIX) and len(value) >= MIN_ID_LENGTH


def is_valid_url(value: object) -> bool:
    """Return ``True`` for absolute ``http``/``https`` URLs with a host."""
    if not isinstance(value, str) or not value:
        return False
    try:
        parsed = urllib.parse.urlsplit(value.strip())
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def utcnow() -> datetime:
    return datetime.now(UTC)
