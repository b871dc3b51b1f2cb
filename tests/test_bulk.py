"""
Unit tests for bulk validation.

Tests for:
- Per-item isolation with structural fallback results
- Batch platform overriding per-item platforms
- Summary statistics and batch size limit
- Upload file parsing
"""

from unittest.mock import patch

import pytest

from campaign_taxonomy.core.config import BulkConfig
from campaign_taxonomy.models.repositories import SchemaRegistry
from campaign_taxonomy.services.bulk import BulkValidator, CampaignEntry, parse_campaign_file
from campaign_taxonomy.services.validator import CampaignValidator, InvalidInputError


@pytest.fixture
def validator():
    validator = CampaignValidator(SchemaRegistry())
    validator.save_schema("Test", [
        {"name": "Brand", "required": True, "allowedValues": ["mny"]},
        {"name": "Category", "required": True, "allowedValues": ["make"]},
    ])
    return validator


@pytest.fixture
def bulk(validator):
    return BulkValidator(validator, BulkConfig())


class TestBulkValidator:
    """Test batch validation."""

    def test_mixed_batch(self, bulk):
        batch = bulk.validate_batch([
            "2024_Search_US_Promo_Campaign",
            {"name": "mny_make", "platform": "Test"},
            CampaignEntry(name="My Campaign"),
        ])

        assert [item.status for item in batch.items] == ["valid", "valid", "invalid"]
        assert batch.items[1].result.tokens == ["mny", "make"]
        assert batch.items[2].quick_fixes[0].id == "basic-cleanup"
        assert batch.summary.total == 3
        assert batch.summary.valid == 2
        assert batch.summary.invalid == 1
        assert batch.summary.fallbacks == 0
        assert batch.summary.avg_score == round((60 + 20 + 15) / 3, 2)

    def test_batch_platform_overrides_item_platform(self, bulk):
        batch = bulk.validate_batch([{"name": "mny_make", "platform": "Other"}], platform="Test")

        assert batch.items[0].platform == "Test"
        assert batch.items[0].result.is_valid is True

    def test_item_ids_are_unique(self, bulk):
        batch = bulk.validate_batch(["a_b_c", "a_b_c"])

        assert batch.items[0].id != batch.items[1].id
        assert batch.items[0].id.startswith(batch.batch_id)

    def test_invalid_item_gets_fallback(self, bulk):
        batch = bulk.validate_batch(["2024_Search_US_Promo_Campaign", None, "   "])

        assert [item.fallback for item in batch.items] == [False, True, True]
        assert batch.items[0].result.is_valid is True
        assert batch.summary.fallbacks == 2

    def test_engine_failure_does_not_abort_batch(self, bulk, validator):
        original = validator.validate_with_fixes

        def flaky(name, platform=None, version=None):
            if name.startswith("boom"):
                raise RuntimeError("engine failure")
            return original(name, platform, version)

        with patch.object(validator, "validate_with_fixes", side_effect=flaky):
            batch = bulk.validate_batch(["boom_brand_type", "boom", "2024_Search_US_Promo_Campaign"])

        structured, unstructured, normal = batch.items

        assert structured.fallback is True
        assert structured.result.is_valid is True
        assert structured.result.score == 60
        assert structured.result.max_score == 100
        assert structured.result.suggestions == ["Campaign structure looks good"]
        assert structured.quick_fixes == []

        assert unstructured.fallback is True
        assert unstructured.result.is_valid is False
        assert unstructured.result.score == 20
        assert unstructured.result.rule_ids == ["structure"]
        assert unstructured.quick_fixes[0].id == "basic-fix"
        assert unstructured.quick_fixes[0].suggested_name == "boom_Type_Target"
        assert unstructured.quick_fixes[0].confidence == 70

        assert normal.fallback is False
        assert normal.result.is_valid is True

    def test_fallback_fix_for_name_with_underscore(self, bulk):
        result, fixes = bulk.fallback_result("brand_x")

        assert result.is_valid is False
        assert fixes[0].suggested_name == "brand_x_Campaign"

    def test_fallback_fix_replaces_non_alphanumerics(self, bulk):
        _, fixes = bulk.fallback_result("my sale!")

        assert fixes[0].suggested_name == "my_sale__Type_Target"

    def test_batch_size_limit(self, validator):
        bulk = BulkValidator(validator, BulkConfig(max_items=2))

        with pytest.raises(InvalidInputError):
            bulk.validate_batch(["a", "b", "c"])

    def test_empty_batch(self, bulk):
        batch = bulk.validate_batch([])

        assert batch.items == []
        assert batch.summary.total == 0
        assert batch.summary.avg_score == 0.0

    def test_to_dict(self, bulk):
        data = bulk.validate_batch(["My Campaign"]).to_dict()

        assert set(data) == {"batchId", "results", "summary"}
        item = data["results"][0]
        assert item["originalName"] == "My Campaign"
        assert item["status"] == "invalid"
        assert item["validationResult"]["isValid"] is False
        assert data["summary"]["avgScore"] == 15


class TestParseCampaignFile:
    """Test parsing uploaded file content."""

    def test_plain_text(self):
        entries = parse_campaign_file("2024_Search_US\n\n  My Campaign  \n")

        assert entries == [CampaignEntry(name="2024_Search_US"), CampaignEntry(name="My Campaign")]

    def test_csv_with_platform_column(self):
        entries = parse_campaign_file('mny_make,Snapchat\n"2024_Search_US",\n')

        assert entries == [
            CampaignEntry(name="mny_make", platform="Snapchat"),
            CampaignEntry(name="2024_Search_US", platform=None),
        ]
