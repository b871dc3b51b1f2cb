"""
Unit tests for rule sets.

Tests for:
- Default regex rules: weights, case-insensitive matching, suggestions
- Token evaluation: allowed values, pooled synonyms, format patterns
- Token scoring including optional-position bonus points
- Rule set resolution with fallback to the default rules
"""

import pytest

from campaign_taxonomy.models.entities import (
    RegexRule,
    TokenPositionSchema,
    ValidationMode,
)
from campaign_taxonomy.models.repositories import SchemaRegistry
from campaign_taxonomy.services.rules import (
    ALL_RULES_PASS_MESSAGE,
    DEFAULT_REGEX_RULES,
    RegexRuleSet,
    RuleSetResolver,
    TokenRuleSet,
    suggestion_for_rule,
)


def make_schema(platform, *positions):
    return TokenPositionSchema.from_positions(platform, list(positions))


class TestRegexRuleSet:
    """Test whole-string regex evaluation."""

    @pytest.fixture
    def rule_set(self):
        return RegexRuleSet()

    def test_default_rules_max_score(self, rule_set):
        assert rule_set.max_score == 60
        assert [rule.id for rule in DEFAULT_REGEX_RULES] == [
            "date-format", "campaign-type", "geo-target", "no-spaces", "length-limit", "special-chars",
        ]

    def test_compliant_name(self, rule_set):
        evaluation = rule_set.evaluate("2024_Search_US_Promo_Campaign")

        assert evaluation.violations == []
        assert evaluation.score == 60
        assert evaluation.mode is ValidationMode.REGEX
        assert evaluation.suggestions == [ALL_RULES_PASS_MESSAGE]
        assert evaluation.tokens is None

    def test_matching_is_case_insensitive(self, rule_set):
        evaluation = rule_set.evaluate("q1_2025_search_global_x")

        assert evaluation.violations == []

    def test_violations_keep_rule_order(self, rule_set):
        evaluation = rule_set.evaluate("My Campaign")

        ids = [v.rule_id for v in evaluation.violations]
        assert ids == ["date-format", "campaign-type", "no-spaces", "special-chars"]
        # "Ca" in "Campaign" satisfies geo-target; 11 characters satisfy length-limit
        assert evaluation.score == 15

    def test_violation_carries_rule_message_and_weight(self, rule_set):
        evaluation = rule_set.evaluate("Search_US_Campaign")

        violation = evaluation.violations[0]
        assert violation.rule_id == "date-format"
        assert violation.rule_name == "Date Format"
        assert violation.weight == 20
        assert violation.description == "Missing or invalid date format. Use YYYY or Q#_YYYY format."
        assert violation.severity.value == "error"

    def test_length_limit(self, rule_set):
        short = rule_set.evaluate("2024_US")
        long = rule_set.evaluate("2024_Search_US_" + "x" * 80)

        assert "length-limit" in [v.rule_id for v in short.violations]
        assert "length-limit" in [v.rule_id for v in long.violations]

    def test_optional_rule_never_violates(self):
        rules = (
            RegexRule(id="year", name="Year", pattern=r"20\d\d", weight=10, error_message="year"),
            RegexRule(id="tag", name="Tag", pattern=r"tag", weight=5, error_message="tag", required=False),
        )
        rule_set = RegexRuleSet(rules)

        missing_tag = rule_set.evaluate("2024_name")
        with_tag = rule_set.evaluate("2024_tag")

        assert missing_tag.violations == []
        assert missing_tag.score == 10
        assert with_tag.score == 15
        assert rule_set.max_score == 15

    def test_many_violations_suggest_quick_fixes(self, rule_set):
        evaluation = rule_set.evaluate("a b!")

        assert len(evaluation.violations) > 3
        assert any("Quick Fixes" in s for s in evaluation.suggestions)

    def test_negative_weight_rejected(self):
        with pytest.raises(ValueError):
            RegexRule(id="bad", name="Bad", pattern="x", weight=-1, error_message="bad")


class TestRuleSuggestions:
    """Test rule-specific suggestion text."""

    @pytest.fixture
    def rules(self):
        return {rule.id: rule for rule in DEFAULT_REGEX_RULES}

    def test_no_spaces_suggestion_shows_fixed_name(self, rules):
        assert suggestion_for_rule(rules["no-spaces"], "My  Campaign") == (
            'Replace spaces with underscores: "My_Campaign"'
        )

    def test_special_chars_suggestion_shows_fixed_name(self, rules):
        assert suggestion_for_rule(rules["special-chars"], "Sale!!_2024") == (
            'Remove special characters: "Sale_2024"'
        )

    def test_length_suggestion_depends_on_length(self, rules):
        assert "longer" in suggestion_for_rule(rules["length-limit"], "short")
        assert "Shorten" in suggestion_for_rule(rules["length-limit"], "x" * 90)


class TestTokenRuleSet:
    """Test per-position token evaluation."""

    @pytest.fixture
    def two_position_schema(self):
        return make_schema(
            "Test",
            {"name": "Brand", "required": True, "allowedValues": ["mny"]},
            {"name": "Category", "required": True, "allowedValues": ["make"]},
        )

    def test_valid_name(self, two_position_schema):
        evaluation = TokenRuleSet(two_position_schema).evaluate("mny_make")

        assert evaluation.tokens == ["mny", "make"]
        assert evaluation.violations == []
        assert evaluation.score == 20
        assert evaluation.max_score == 20
        assert evaluation.mode is ValidationMode.TOKEN

    def test_invalid_value(self, two_position_schema):
        evaluation = TokenRuleSet(two_position_schema).evaluate("mny_grow")

        assert evaluation.score == 10
        assert evaluation.max_score == 20
        assert len(evaluation.violations) == 1
        violation = evaluation.violations[0]
        assert violation.rule_id == "token-position-2"
        assert violation.rule_name == "Category"
        assert '"grow"' in violation.description
        assert "make" in violation.description

    def test_missing_required_token(self, two_position_schema):
        evaluation = TokenRuleSet(two_position_schema).evaluate("mny")

        assert evaluation.tokens == ["mny", ""]
        assert evaluation.score == 10
        assert evaluation.violations[0].description == "Missing required token at position 2: Category"

    def test_empty_optional_token_is_ignored(self):
        schema = make_schema(
            "Test",
            {"name": "Brand", "required": True, "allowedValues": ["mny"]},
            {"name": "Extra", "required": False, "allowedValues": ["x"]},
        )
        evaluation = TokenRuleSet(schema).evaluate("mny")

        assert evaluation.violations == []
        assert evaluation.score == 10

    def test_synonyms_are_pooled_across_canonical_values(self):
        schema = make_schema(
            "Test",
            {
                "name": "Market",
                "required": True,
                "allowedValues": ["sa", "ae"],
                "synonyms": {"sa": ["saudi"], "ae": ["uae"]},
            },
        )
        rule_set = TokenRuleSet(schema)

        assert rule_set.evaluate("saudi").violations == []
        assert rule_set.evaluate("uae").violations == []
        assert len(rule_set.evaluate("qatar").violations) == 1

    def test_allowed_values_are_case_sensitive(self):
        schema = make_schema("Test", {"name": "Brand", "required": True, "allowedValues": ["mny"]})

        assert len(TokenRuleSet(schema).evaluate("MNY").violations) == 1

    def test_format_pattern_overrides_allowed_values(self):
        schema = make_schema(
            "Test",
            {
                "name": "Campaign ID",
                "required": True,
                "allowedValues": ["ym00000001"],
                "formatPattern": "^(ym|YM)[0-9]{8}$",
                "formatDescription": "ym + 8 digits",
            },
        )
        rule_set = TokenRuleSet(schema)

        assert rule_set.evaluate("ym12345678").violations == []
        invalid = rule_set.evaluate("ym123")
        assert "Expected format: ym + 8 digits" in invalid.violations[0].description

    def test_unconstrained_position_accepts_anything(self):
        schema = make_schema("Test", {"name": "Free", "required": True})

        evaluation = TokenRuleSet(schema).evaluate("whatever-you-like")
        assert evaluation.violations == []
        assert evaluation.score == 10

    def test_optional_tokens_can_push_score_above_max(self):
        schema = make_schema(
            "Test",
            {"name": "Brand", "required": True, "allowedValues": ["mny"]},
            {"name": "Audience", "required": False, "allowedValues": ["lla"]},
            {"name": "Reserved", "required": False, "allowedValues": ["x"]},
        )
        evaluation = TokenRuleSet(schema).evaluate("mny_lla_x")

        assert evaluation.max_score == 10
        assert evaluation.score == 20
        assert evaluation.score > evaluation.max_score

    def test_invalid_suggestions_show_expected_structure(self, two_position_schema):
        evaluation = TokenRuleSet(two_position_schema).evaluate("abc_def")

        assert evaluation.suggestions[0] == "Expected structure for Test: Brand_Category"


class TestRuleSetResolver:
    """Test selection between token and regex rule sets."""

    @pytest.fixture
    def registry(self):
        registry = SchemaRegistry()
        registry.save(make_schema("Known", {"name": "Brand", "required": True, "allowedValues": ["mny"]}))
        return registry

    def test_known_platform_resolves_token_rules(self, registry):
        rule_set = RuleSetResolver(registry).resolve("Known")

        assert isinstance(rule_set, TokenRuleSet)
        assert rule_set.schema.platform == "Known"

    @pytest.mark.parametrize("platform", [None, "", "UnknownPlatform"])
    def test_unknown_platform_falls_back_to_regex_rules(self, registry, platform):
        resolver = RuleSetResolver(registry)

        assert resolver.resolve(platform) is resolver.default_rule_set

    def test_unknown_version_falls_back_to_regex_rules(self, registry):
        resolver = RuleSetResolver(registry)

        assert isinstance(resolver.resolve("Known", version=1), TokenRuleSet)
        assert isinstance(resolver.resolve("Known", version=7), RegexRuleSet)
