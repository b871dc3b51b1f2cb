"""
Unit tests for taxonomy entities.

Tests for:
- Schema size limits and malformed positions
- Payload parsing (camelCase and snake_case)
- Result and fix serialization
"""

import pytest

from campaign_taxonomy.models.entities import (
    MalformedSchemaError,
    QuickFix,
    TokenPositionRule,
    TokenPositionSchema,
    ValidationMode,
    ValidationResult,
    Violation,
    ViolationSeverity,
)


class TestTokenPositionSchema:
    """Test schema construction and validation."""

    def test_empty_schema_rejected(self):
        with pytest.raises(MalformedSchemaError):
            TokenPositionSchema.from_positions("Test", [])

    def test_too_many_positions_rejected(self):
        positions = [{"name": f"P{i}"} for i in range(16)]

        with pytest.raises(MalformedSchemaError) as exc_info:
            TokenPositionSchema.from_positions("Test", positions)

        assert "16" in str(exc_info.value)

    def test_fifteen_positions_accepted(self):
        schema = TokenPositionSchema.from_positions("Test", [{"name": f"P{i}"} for i in range(15)])

        assert len(schema) == 15

    def test_invalid_format_pattern_rejected(self):
        with pytest.raises(MalformedSchemaError) as exc_info:
            TokenPositionSchema.from_positions("Test", [{"name": "ID", "formatPattern": "([a-z"}])

        assert "format pattern" in str(exc_info.value)

    @pytest.mark.parametrize("synonyms", [["a", "b"], {"sa": "saudi"}, {"sa": [1, 2]}, {"": ["x"]}])
    def test_malformed_synonyms_rejected(self, synonyms):
        with pytest.raises(MalformedSchemaError):
            TokenPositionSchema.from_positions("Test", [{"name": "Market", "synonyms": synonyms}])

    def test_allowed_values_must_be_strings(self):
        with pytest.raises(MalformedSchemaError):
            TokenPositionSchema.from_positions("Test", [{"name": "Year", "allowedValues": [2024]}])

    @pytest.mark.parametrize("required", ["false", "true", 1, 0])
    def test_required_must_be_boolean(self, required):
        with pytest.raises(MalformedSchemaError) as exc_info:
            TokenPositionSchema.from_positions("Test", [{"name": "Brand", "required": required}])

        assert "required" in str(exc_info.value)

    def test_required_null_means_optional(self):
        schema = TokenPositionSchema.from_positions("Test", [{"name": "Brand", "required": None}])

        assert schema.positions[0].required is False

    def test_format_pattern_matches_whole_token(self):
        position = TokenPositionRule(index=0, name="Year", format_pattern="[0-9]{4}")

        assert position.accepts("2024") is True
        assert position.accepts("x2024") is False
        assert position.accepts("20245") is False

    def test_missing_platform_rejected(self):
        with pytest.raises(MalformedSchemaError):
            TokenPositionSchema.from_positions("  ", [{"name": "Brand"}])

    def test_positions_must_be_a_list(self):
        with pytest.raises(MalformedSchemaError):
            TokenPositionSchema.from_positions("Test", {"name": "Brand"})

    def test_positions_sorted_by_index(self):
        schema = TokenPositionSchema.from_positions(
            "Test",
            [{"position": 1, "name": "Second"}, {"position": 0, "name": "First"}],
        )

        assert [p.name for p in schema] == ["First", "Second"]

    def test_snake_and_camel_case_keys(self):
        camel = TokenPositionRule.from_dict({"name": "A", "allowedValues": ["x"], "formatPattern": "^x$"}, 0)
        snake = TokenPositionRule.from_dict({"name": "A", "allowed_values": ["x"], "format_pattern": "^x$"}, 0)

        assert camel.allowed_values == snake.allowed_values == ("x",)
        assert camel.format_pattern == snake.format_pattern == "^x$"

    def test_separator_defaults(self):
        default = TokenPositionRule.from_dict({"name": "A"}, 0)
        null = TokenPositionRule.from_dict({"name": "A", "separator": None}, 0)

        assert default.separator == "_"
        assert null.separator == ""

    def test_unnamed_position_gets_default_name(self):
        rule = TokenPositionRule.from_dict({}, 2)

        assert rule.name == "Position 3"
        assert rule.index == 2

    def test_duplicate_allowed_values_collapsed(self):
        rule = TokenPositionRule.from_dict({"name": "A", "allowedValues": ["x", "y", "x"]}, 0)

        assert rule.allowed_values == ("x", "y")

    def test_max_score_counts_required_positions_only(self):
        schema = TokenPositionSchema.from_positions(
            "Test",
            [{"name": "A", "required": True}, {"name": "B", "required": False}, {"name": "C", "required": True}],
        )

        assert schema.required_count == 2
        assert schema.max_score == 20

    def test_to_dict_round_trips_through_from_positions(self):
        schema = TokenPositionSchema.from_positions(
            "Test",
            [{"name": "Market", "required": True, "allowedValues": ["sa"], "synonyms": {"sa": ["saudi"]}}],
        )
        rebuilt = TokenPositionSchema.from_positions("Test", schema.to_dict()["tokenPositions"])

        assert rebuilt == schema

    def test_schema_is_immutable(self):
        schema = TokenPositionSchema.from_positions("Test", [{"name": "A"}])

        with pytest.raises(AttributeError):
            schema.platform = "Other"
        with pytest.raises(TypeError):
            schema.positions[0].synonyms["x"] = ("y",)


class TestSerialization:
    """Test result serialization."""

    def test_validation_result_to_dict(self):
        violation = Violation(
            rule_id="date-format",
            rule_name="Date Format",
            description="Missing date",
            suggestion="Add a year",
            weight=20,
        )
        result = ValidationResult(
            campaign_name="Search_US",
            is_valid=False,
            score=40,
            max_score=60,
            violations=[violation],
            suggestions=["Include the campaign year or quarter for better tracking."],
        )

        data = result.to_dict()

        assert data["campaignName"] == "Search_US"
        assert data["isValid"] is False
        assert data["maxScore"] == 60
        assert data["mode"] == "regex"
        assert data["violations"][0]["ruleId"] == "date-format"
        assert data["violations"][0]["severity"] == "error"
        assert "tokens" not in data

    def test_token_result_includes_tokens(self):
        result = ValidationResult(
            campaign_name="mny_make",
            is_valid=True,
            score=20,
            max_score=20,
            violations=[],
            suggestions=[],
            platform="Snapchat",
            mode=ValidationMode.TOKEN,
            tokens=["mny", "make"],
        )

        assert result.to_dict()["tokens"] == ["mny", "make"]

    def test_violation_from_dict(self):
        violation = Violation.from_dict({
            "ruleId": "no-spaces",
            "ruleName": "No Spaces",
            "description": "d",
            "suggestion": "s",
            "weight": 5,
            "severity": "warning",
        })

        assert violation.rule_id == "no-spaces"
        assert violation.severity is ViolationSeverity.WARNING

    def test_quick_fix_to_dict(self):
        fix = QuickFix(id="basic-cleanup", description="d", suggested_name="My_Campaign", confidence=95)

        assert fix.to_dict() == {
            "id": "basic-cleanup",
            "description": "d",
            "suggestedName": "My_Campaign",
            "confidence": 95,
        }
