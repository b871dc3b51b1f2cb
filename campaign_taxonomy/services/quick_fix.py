"""
Quick-fix generation for invalid campaign names.

Produces ranked candidate names from a validation's violations:
- basic-cleanup: whitespace and special character fixes only
- comprehensive-fix: cleanup plus missing date, channel and geo tokens
- template-based: the name wrapped into the standard template
- token-fill: token-mode fallback that fills missing required positions

Generation is pure: the same name and violations always give the same fixes.
"""

import re
from collections.abc import Sequence

from ..core.config import QuickFixConfig, settings
from ..core.logging import get_logger
from ..models.entities import QuickFix, TokenPositionSchema, Violation
from .rules import replace_spaces, strip_special_chars
from .tokenizer import join_tokens


logger = get_logger("services.quick_fix")

_CHANNEL_RE = re.compile(r"(Search|Display|Social|Video|Email|Promo|Brand)", re.IGNORECASE)
_GEO_RE = re.compile(r"(US|UK|CA|Global|EMEA|APAC)", re.IGNORECASE)


class QuickFixGenerator:
    """Builds candidate corrected names, highest confidence first."""

    def __init__(self, config: QuickFixConfig | None = None):
        self.config = config or settings.quick_fix

    def generate(self, campaign_name: str, violations: Sequence[Violation]) -> list[QuickFix]:
        """
        Generate up to three fixes for regex-mode violations.

        Args:
            campaign_name: Name that was validated
            violations: Violations reported for it

        Returns:
            Fixes in the order basic-cleanup, comprehensive-fix, template-based,
            skipping any that do not apply
        """
        rule_ids = {v.rule_id for v in violations}
        fixes = []

        cleaned = campaign_name
        if "no-spaces" in rule_ids:
            cleaned = replace_spaces(cleaned)
        if "special-chars" in rule_ids:
            cleaned = strip_special_chars(cleaned)

        enhanced = self._add_missing_components(cleaned, rule_ids)
        enhanced = self._clamp_length(enhanced)

        if cleaned != campaign_name:
            fixes.append(QuickFix(
                id="basic-cleanup",
                description="Fix formatting issues (spaces, special characters)",
                suggested_name=cleaned,
                confidence=95,
            ))

        if enhanced != campaign_name and enhanced != cleaned:
            fixes.append(QuickFix(
                id="comprehensive-fix",
                description="Complete taxonomy compliance with all required elements",
                suggested_name=enhanced,
                confidence=90,
            ))

        if violations:
            fixes.append(QuickFix(
                id="template-based",
                description="Use standard template format for maximum compliance",
                suggested_name=self.template_name(campaign_name),
                confidence=85,
            ))

        return fixes

    def template_name(self, campaign_name: str) -> str:
        """Wrap a fully cleaned name into the standard naming template."""
        cleaned = strip_special_chars(replace_spaces(campaign_name))
        name = f"{self.config.default_date_token}_{cleaned}_{self.config.template_suffix}"
        return name[:self.config.max_length]

    def _add_missing_components(self, name: str, rule_ids: set[str]) -> str:
        if "date-format" in rule_ids:
            name = f"{self.config.default_date_token}_{name}"
        if "campaign-type" in rule_ids and not _CHANNEL_RE.search(name):
            name = f"{name}_{self.config.default_channel_token}"
        if "geo-target" in rule_ids and not _GEO_RE.search(name):
            name = f"{name}_{self.config.default_geo_token}"
        return name

    def _clamp_length(self, name: str) -> str:
        if len(name) < self.config.min_length:
            return f"{self.config.short_name_prefix}_{name}_{self.config.short_name_suffix}"
        if len(name) > self.config.max_length:
            keep = self.config.max_length - len(self.config.ellipsis)
            return name[:keep] + self.config.ellipsis
        return name

    def fill_tokens(self, schema: TokenPositionSchema, tokens: Sequence[str]) -> str:
        """
        Fill every empty required position with its first allowed value.

        Positions without allowed values get the placeholder token; empty
        optional positions are dropped.
        """
        filled = []
        for position, token in zip(schema.positions, tokens):
            if not token and position.required:
                token = position.allowed_values[0] if position.allowed_values else self.config.placeholder_token
            filled.append(token)
        return join_tokens(filled)

    def token_fill(
        self,
        campaign_name: str,
        schema: TokenPositionSchema,
        tokens: Sequence[str],
        violations: Sequence[Violation],
    ) -> list[QuickFix]:
        """Token-mode fallback: a single advisory fix, or none when nothing changes."""
        if not violations:
            return []

        suggested = self.fill_tokens(schema, tokens)
        if not suggested or suggested == campaign_name:
            logger.debug("Token fill produced no change", platform=schema.platform)
            return []

        return [QuickFix(
            id="token-fill",
            description=f"Fill missing required tokens for {schema.platform}",
            suggested_name=suggested,
            confidence=self.config.token_fill_confidence,
        )]


def generate_quick_fixes(campaign_name: str, violations: Sequence[Violation]) -> list[QuickFix]:
    """Generate regex-mode quick fixes with the default configuration."""
    return QuickFixGenerator().generate(campaign_name, violations)
