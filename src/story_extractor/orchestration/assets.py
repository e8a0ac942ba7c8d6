"""Asset title/description used when importing a story into other systems."""

from __future__ import annotations

from typing import Any

from story_extractor.core.schemas.extraction import AssetMetadata
from story_extractor.core.schemas.story import Content

#: Characters of story text used when no description is available.
SUMMARY_CHARS: int = 150

#: Metrics listed in the description.
MAX_METRICS: int = 3


def _metric_text(metric: dict[str, Any]) -> str:
    return f"{metric.get('value', '')} {metric.get('description', '')}".strip()


def _text(extras: dict[str, Any], key: str) -> str | None:
    """String value of ``extras[key]``; anything else a producer returned is ignored."""
    value = extras.get(key)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def build_asset_metadata(content: Content, extras: dict[str, Any] | None = None) -> AssetMetadata:
    """Return the producer's own asset metadata, or derive it from the content.

    Derived titles read ``"<Company>: <top metric>"``, ``"<Company> -
    <title>"`` or just the title; the description joins the summary (or the
    start of the text), up to three metrics, the first quote's attribution
    and the industry.
    """
    extras = extras or {}
    own_title = _text(extras, "asset_title")
    own_description = _text(extras, "asset_description")
    if own_title and own_description:
        return AssetMetadata(title=own_title, description=own_description)

    company = _text(extras, "company_name")
    metrics = [m for m in extras.get("metrics") or [] if isinstance(m, dict)]
    title = content.title or "Customer Story"

    if company and metrics:
        asset_title = f"{company}: {_metric_text(metrics[0])}"
    elif company:
        asset_title = f"{company} - {title}"
    else:
        asset_title = title

    parts: list[str] = []
    if content.metadata.description:
        parts.append(content.metadata.description)
    elif content.text_only:
        summary = content.text_only[:SUMMARY_CHARS].strip()
        parts.append(summary + ("..." if len(content.text_only) > SUMMARY_CHARS else ""))
    if metrics:
        listed = ", ".join(_metric_text(m) for m in metrics[:MAX_METRICS])
        parts.append(f"Key results: {listed}.")
    if content.quotes and content.quotes[0].cite:
        parts.append(f"Features testimony from {content.quotes[0].cite}.")
    industry = _text(extras, "industry")
    if industry:
        parts.append(f"Industry: {industry}.")

    return AssetMetadata(title=asset_title, description=" ".join(parts))
