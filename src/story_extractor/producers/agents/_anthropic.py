"""Low-level Anthropic Messages API client for the agent pipeline.

This module is private to the ``agents`` package (indicated by the leading
underscore).  External code should use
:class:`~story_extractor.producers.agents.pipeline.AgentContentProducer`
instead.

Error handling maps every failure to
:class:`~story_extractor.core.exceptions.AgentError`, keeping the HTTP
status so that a 429 can later be reported as ``RATE_LIMITED``.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from story_extractor.core.exceptions import AgentError
from story_extractor.producers.agents.config import ANTHROPIC_VERSION, MESSAGES_PATH

logger = logging.getLogger(__name__)


async def create_message(
    client: httpx.AsyncClient,
    *,
    base_url: str,
    api_key: str,
    model: str,
    system_prompt: str,
    user_message: str,
    max_tokens: int,
) -> str:
    """POST one user message to the Messages API and return the reply text.

    Args:
        client: Shared :class:`httpx.AsyncClient` instance.
        base_url: API base URL (``https://api.anthropic.com``).
        api_key: Anthropic API key, sent as ``x-api-key``.
        model: Model identifier.
        system_prompt: System prompt for this step.
        user_message: The single user turn.
        max_tokens: Upper bound on the reply length.

    Returns:
        The text of the first content block of the reply.

    Raises:
        AgentError: On non-2xx responses, network errors, or a reply
            without a text block.
    """
    payload: dict[str, Any] = {
        "model": model,
        "max_tokens": max_tokens,
        "system": system_prompt,
        "messages": [{"role": "user", "content": user_message}],
    }
    headers = {
        "x-api-key": api_key,
        "anthropic-version": ANTHROPIC_VERSION,
        "content-type": "application/json",
    }

    try:
        response = await client.post(
            f"{base_url.rstrip('/')}{MESSAGES_PATH}", json=payload, headers=headers
        )
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        code = exc.response.status_code
        if code == 429:
            raise AgentError("agents: HTTP 429, rate limited", status_code=429) from exc
        if code in (401, 403):
            raise AgentError(f"agents: HTTP {code}, invalid API key", status_code=code) from exc
        raise AgentError(
            f"agents: HTTP {code}: {exc.response.text[:200]}", status_code=code
        ) from exc
    except httpx.TimeoutException:
        raise
    except httpx.RequestError as exc:
        raise AgentError(f"agents: network error: {exc}") from exc

    try:
        body = response.json()
    except ValueError as exc:
        raise AgentError(f"agents: JSON parse error: {exc}") from exc

    for block in body.get("content") or []:
        if isinstance(block, dict) and block.get("type") == "text":
            return block.get("text") or ""
    raise AgentError("agents: reply contained no text block")
