"""
Rule sets for campaign name validation.

This module provides:
- The default whole-string regex rules
- TokenRuleSet: per-position checks against a platform schema
- RegexRuleSet: weighted whole-string checks
- RuleSetResolver: picks the rule set for a platform
- Rule-specific suggestion text
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass

from ..core.logging import get_logger
from ..models.entities import (
    RegexRule,
    TokenPositionSchema,
    ValidationMode,
    Violation,
    ViolationSeverity,
)
from ..models.repositories import SchemaRegistry
from .tokenizer import tokenize


logger = get_logger("services.rules")

ALL_RULES_PASS_MESSAGE = "Your campaign name follows all taxonomy rules!"

_WHITESPACE_RE = re.compile(r"\s+")
_DISALLOWED_CHARS_RE = re.compile(r"[^a-zA-Z0-9_-]")


DEFAULT_REGEX_RULES: tuple[RegexRule, ...] = (
    RegexRule(
        id="date-format",
        name="Date Format",
        description="Campaign must include date in YYYY format or Q#_YYYY format",
        pattern=r"(Q[1-4]_)?20[0-9]{2}",
        weight=20,
        error_message="Missing or invalid date format. Use YYYY or Q#_YYYY format.",
        examples=("2024", "Q4_2024"),
    ),
    RegexRule(
        id="campaign-type",
        name="Campaign Type",
        description="Must specify campaign type (Search, Display, Social, Video, Email)",
        pattern=r"(Search|Display|Social|Video|Email|Promo|Brand)",
        weight=15,
        error_message="Missing campaign type. Include Search, Display, Social, Video, Email, Promo, or Brand.",
        examples=("Search", "Display", "Social"),
    ),
    RegexRule(
        id="geo-target",
        name="Geographic Target",
        description="Include geographic target (US, UK, CA, Global, etc.)",
        pattern=r"(US|UK|CA|AU|DE|FR|ES|IT|Global|EMEA|APAC|LATAM)",
        weight=10,
        error_message="Missing geographic target. Include US, UK, CA, Global, etc.",
        examples=("US", "Global", "EMEA"),
    ),
    RegexRule(
        id="no-spaces",
        name="No Spaces",
        description="Use underscores instead of spaces",
        pattern=r"^[^\s]*$",
        weight=5,
        error_message="Campaign names should not contain spaces. Use underscores instead.",
        examples=("Campaign_Name", "No_Spaces_Here"),
    ),
    RegexRule(
        id="length-limit",
        name="Length Limit",
        description="Campaign name should be between 10-80 characters",
        pattern=r"^.{10,80}$",
        weight=5,
        error_message="Campaign name must be between 10-80 characters long.",
        examples=("Appropriate_Length_Campaign_Name",),
    ),
    RegexRule(
        id="special-chars",
        name="Special Characters",
        description="Avoid special characters except underscores and hyphens",
        pattern=r"^[a-zA-Z0-9_-]+$",
        weight=5,
        error_message="Only letters, numbers, underscores, and hyphens are allowed.",
        examples=("Valid-Campaign_Name123",),
    ),
)


def replace_spaces(campaign_name: str) -> str:
    return _WHITESPACE_RE.sub("_", campaign_name)


def strip_special_chars(campaign_name: str) -> str:
    return _DISALLOWED_CHARS_RE.sub("", campaign_name)


def suggestion_for_rule(rule: RegexRule, campaign_name: str) -> str:
    """Get the fix suggestion for a failed regex rule."""
    if rule.id == "date-format":
        return "Add current year like '2024' or quarter like 'Q4_2024' to your campaign name."
    if rule.id == "campaign-type":
        return "Add campaign type like '_Search', '_Display', or '_Social' to indicate the channel."
    if rule.id == "geo-target":
        return "Add geographic target like '_US', '_Global', or '_EMEA' to specify location."
    if rule.id == "no-spaces":
        return f'Replace spaces with underscores: "{replace_spaces(campaign_name)}"'
    if rule.id == "length-limit":
        if len(campaign_name) < 10:
            return "Make the name longer and more descriptive."
        return "Shorten the name to under 80 characters."
    if rule.id == "special-chars":
        return f'Remove special characters: "{strip_special_chars(campaign_name)}"'
    return "Follow the rule pattern: " + ", ".join(rule.examples)


def general_suggestions(violations: list[Violation]) -> list[str]:
    """Free-text hints summarizing the violations."""
    if not violations:
        return [ALL_RULES_PASS_MESSAGE]

    rule_ids = {v.rule_id for v in violations}
    suggestions = []
    if "no-spaces" in rule_ids:
        suggestions.append("Replace spaces with underscores for better consistency.")
    if "date-format" in rule_ids:
        suggestions.append("Include the campaign year or quarter for better tracking.")
    if "campaign-type" in rule_ids:
        suggestions.append("Add the marketing channel type to categorize your campaign.")
    if len(violations) > 3:
        suggestions.append("Consider using the Quick Fixes below to address multiple issues at once.")
    return suggestions


@dataclass
class Evaluation:
    """Raw outcome of a rule set, before it is wrapped into a ValidationResult."""
    score: int
    max_score: int
    violations: list[Violation]
    suggestions: list[str]
    mode: ValidationMode
    tokens: list[str] | None = None
    schema: TokenPositionSchema | None = None


class RuleSet(ABC):
    """A set of rules that can score a campaign name."""

    mode: ValidationMode

    @abstractmethod
    def evaluate(self, campaign_name: str) -> Evaluation:
        pass


class TokenRuleSet(RuleSet):
    """Validates each token of a name against its schema position."""

    mode = ValidationMode.TOKEN

    def __init__(self, schema: TokenPositionSchema):
        self.schema = schema

    def evaluate(self, campaign_name: str) -> Evaluation:
        tokens = tokenize(campaign_name, self.schema.positions)
        violations = []
        missing = 0
        score = 0

        for i, (position, token) in enumerate(zip(self.schema.positions, tokens)):
            if not token:
                if position.required:
                    violations.append(self._missing(i, position))
                    missing += 1
                continue

            if position.accepts(token):
                score += position.points
            else:
                violations.append(self._invalid(i, position, token))

        return Evaluation(
            score=score,
            max_score=self.schema.max_score,
            violations=violations,
            suggestions=self._suggestions(violations, missing),
            mode=self.mode,
            tokens=tokens,
            schema=self.schema,
        )

    @staticmethod
    def _rule_id(i: int) -> str:
        return f"token-position-{i + 1}"

    def _missing(self, i: int, position) -> Violation:
        if position.allowed_values:
            suggestion = f"Add a {position.name} token, e.g. '{position.allowed_values[0]}'"
        else:
            suggestion = f"Add a {position.name} token"
        return Violation(
            rule_id=self._rule_id(i),
            rule_name=position.name,
            description=f"Missing required token at position {i + 1}: {position.name}",
            suggestion=suggestion,
            weight=position.points,
        )

    def _invalid(self, i: int, position, token: str) -> Violation:
        if position.format_pattern:
            expected = position.format_description or position.format_pattern
            description = f'Invalid value "{token}" at position {i + 1}. Expected format: {expected}'
            suggestion = f"Fix {position.name} to match {expected}"
        else:
            allowed = ", ".join(position.allowed_values)
            description = f'Invalid value "{token}" at position {i + 1}. Allowed: {allowed}'
            suggestion = f"Fix {position.name}: use one of {allowed}"
        return Violation(
            rule_id=self._rule_id(i),
            rule_name=position.name,
            description=description,
            suggestion=suggestion,
            weight=position.points,
        )

    def _suggestions(self, violations: list[Violation], missing: int) -> list[str]:
        if not violations:
            return [ALL_RULES_PASS_MESSAGE]
        suggestions = [f"Expected structure for {self.schema.platform}: {self.schema.expected_structure()}"]
        if missing:
            suggestions.append("Fill in every required token; separators must not be skipped.")
        if len(violations) > 3:
            suggestions.append("Consider using the Quick Fixes below to address multiple issues at once.")
        return suggestions


class RegexRuleSet(RuleSet):
    """Scores a name against weighted whole-string regex rules."""

    mode = ValidationMode.REGEX

    def __init__(self, rules: tuple[RegexRule, ...] = DEFAULT_REGEX_RULES):
        self.rules = rules

    @property
    def max_score(self) -> int:
        return sum(rule.weight for rule in self.rules)

    def evaluate(self, campaign_name: str) -> Evaluation:
        violations = []
        score = 0

        for rule in self.rules:
            if rule.matches(campaign_name):
                score += rule.weight
            elif rule.required:
                violations.append(Violation(
                    rule_id=rule.id,
                    rule_name=rule.name,
                    description=rule.error_message,
                    suggestion=suggestion_for_rule(rule, campaign_name),
                    weight=rule.weight,
                    severity=ViolationSeverity.ERROR,
                ))

        return Evaluation(
            score=score,
            max_score=self.max_score,
            violations=violations,
            suggestions=general_suggestions(violations),
            mode=self.mode,
        )


class RuleSetResolver:
    """Chooses token-schema rules for configured platforms and regex rules otherwise."""

    def __init__(self, registry: SchemaRegistry, default_rules: tuple[RegexRule, ...] = DEFAULT_REGEX_RULES):
        self.registry = registry
        self.default_rule_set = RegexRuleSet(default_rules)

    def resolve(self, platform: str | None, version: int | None = None) -> RuleSet:
        """
        Resolve the rule set for a platform.

        A platform without a schema (or an unknown version) falls back to the
        default regex rules; this is never an error.
        """
        if platform:
            schema = self.registry.get(platform, version)
            if schema is not None:
                return TokenRuleSet(schema)
            logger.debug("No token schema for platform, using default rules", platform=platform, version=version)
        return self.default_rule_set
