"""Tests for asset title/description derivation."""

from __future__ import annotations

from story_extractor.orchestration.assets import build_asset_metadata
from tests.factories import ContentFactory, MetadataFactory


class TestBuildAssetMetadata:
    def test_producer_metadata_wins(self) -> None:
        asset = build_asset_metadata(
            ContentFactory.build(),
            {"asset_title": "Given title", "asset_description": "Given description"},
        )

        assert (asset.title, asset.description) == ("Given title", "Given description")

    def test_company_and_metric(self) -> None:
        asset = build_asset_metadata(
            ContentFactory.build(),
            {
                "company_name": "Acme Corp",
                "industry": "Logistics",
                "metrics": [
                    {"value": "40%", "description": "lower cost"},
                    {"value": "2x", "description": "faster releases"},
                ],
            },
        )

        assert asset.title == "Acme Corp: 40% lower cost"
        assert asset.description == (
            "How Acme Corp moved its platform to Example Cloud. "
            "Key results: 40% lower cost, 2x faster releases. "
            "Features testimony from Jane Doe, CTO. "
            "Industry: Logistics."
        )

    def test_company_without_metrics(self) -> None:
        asset = build_asset_metadata(ContentFactory.build(), {"company_name": "Acme Corp"})

        assert asset.title == "Acme Corp - Acme Corp cuts cloud costs by 40%"

    def test_text_summary_fallback(self) -> None:
        content = ContentFactory.build(
            metadata=MetadataFactory.build(description=None), quotes=[], word_count=200
        )

        asset = build_asset_metadata(content)

        assert asset.title == "Acme Corp cuts cloud costs by 40%"
        assert asset.description.endswith("...")
        assert len(asset.description) <= 153

    def test_non_string_fields_ignored(self) -> None:
        asset = build_asset_metadata(
            ContentFactory.build(),
            {"asset_title": 42, "asset_description": "d", "company_name": ["Acme"], "industry": 7},
        )

        assert asset.title == "Acme Corp cuts cloud costs by 40%"
        assert "Industry" not in asset.description
