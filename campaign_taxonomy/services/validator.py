"""
Campaign name validation engine.

This module provides:
- CampaignValidator: resolves the rule set for a platform, scores a name and
  builds quick fixes
- Schema management on top of an injectable SchemaRegistry
- A process-wide default engine seeded from the platform rules file
"""

import time
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from ..core.config import settings
from ..core.logging import audit_logger, get_logger, performance_logger
from ..models.entities import (
    MalformedSchemaError,
    QuickFix,
    SchemaVersion,
    TaxonomyError,
    TokenPositionSchema,
    ValidationResult,
    Violation,
)
from ..models.repositories import SchemaRegistry
from ..observability.metrics import metrics
from .quick_fix import QuickFixGenerator
from .rules import RuleSetResolver
from .tokenizer import tokenize


logger = get_logger("services.validator")

__all__ = [
    "CampaignValidator",
    "InvalidInputError",
    "MalformedSchemaError",
    "TaxonomyError",
    "ValidationEngineError",
    "get_validator",
]


class InvalidInputError(TaxonomyError):
    """Campaign name is missing, empty or not a string."""
    pass


class ValidationEngineError(TaxonomyError):
    """Unexpected failure while evaluating a campaign name."""
    pass


class CampaignValidator:
    """
    Validation engine for campaign names.

    Platforms with a token schema are validated position by position; any
    other platform (or none) falls back to the default regex rules.
    """

    def __init__(
        self,
        registry: SchemaRegistry | None = None,
        resolver: RuleSetResolver | None = None,
        quick_fixes: QuickFixGenerator | None = None,
    ):
        self.registry = registry if registry is not None else SchemaRegistry()
        self.resolver = resolver or RuleSetResolver(self.registry)
        self.quick_fixes = quick_fixes or QuickFixGenerator()

    def validate(
        self,
        campaign_name: Any,
        platform: str | None = None,
        version: int | None = None,
    ) -> ValidationResult:
        """
        Validate a campaign name.

        Args:
            campaign_name: Name to validate; surrounding whitespace is ignored
            platform: Platform whose token schema applies, if any
            version: Specific schema version; latest when omitted

        Returns:
            Complete validation result

        Raises:
            InvalidInputError: If the name is not a non-empty string
            ValidationEngineError: If evaluation fails unexpectedly
        """
        result, _ = self._evaluate(campaign_name, platform, version)
        return result

    def _evaluate(
        self,
        campaign_name: Any,
        platform: str | None,
        version: int | None,
    ) -> tuple[ValidationResult, TokenPositionSchema | None]:
        """Validate a name and return the schema snapshot it was checked against."""
        name = self._clean_name(campaign_name)
        start_time = time.time()

        logger.debug("Validating campaign name", campaign_name=name, platform=platform, version=version)

        try:
            rule_set = self.resolver.resolve(platform, version)
            evaluation = rule_set.evaluate(name)
        except Exception as e:
            metrics.track_validation_failure(type(e).__name__)
            logger.error(
                "Campaign validation failed",
                campaign_name=name,
                platform=platform,
                error=str(e),
                exc_info=True,
            )
            raise ValidationEngineError("Validation failed due to an internal error") from e

        result = ValidationResult(
            campaign_name=name,
            is_valid=not evaluation.violations,
            score=evaluation.score,
            max_score=evaluation.max_score,
            violations=evaluation.violations,
            suggestions=evaluation.suggestions,
            platform=platform,
            mode=evaluation.mode,
            tokens=evaluation.tokens,
        )

        duration = time.time() - start_time
        metrics.track_validation(result.mode.value, result.is_valid, duration, result.rule_ids)
        performance_logger.log_validation_performance(
            mode=result.mode.value,
            execution_time=duration,
            is_valid=result.is_valid,
            platform=platform,
        )
        logger.info(
            "Campaign validated",
            campaign_name=name,
            platform=platform,
            mode=result.mode.value,
            score=result.score,
            max_score=result.max_score,
            violations=len(result.violations),
        )
        return result, evaluation.schema

    def generate_quick_fixes(
        self,
        campaign_name: str,
        violations: Sequence[Violation],
        platform: str | None = None,
        version: int | None = None,
        schema: TokenPositionSchema | None = None,
    ) -> list[QuickFix]:
        """
        Build quick fixes for a validated name.

        Platforms with a token schema get the token-fill fix; everything else
        gets the regex-mode fixes. Pass the schema the name was validated
        against to skip the registry lookup.
        """
        if schema is None and platform:
            schema = self.registry.get(platform, version)
        if schema is not None:
            tokens = tokenize(campaign_name, schema.positions)
            fixes = self.quick_fixes.token_fill(campaign_name, schema, tokens, violations)
        else:
            fixes = self.quick_fixes.generate(campaign_name, violations)

        metrics.track_quick_fixes([fix.id for fix in fixes])
        return fixes

    def validate_with_fixes(
        self,
        campaign_name: Any,
        platform: str | None = None,
        version: int | None = None,
    ) -> tuple[ValidationResult, list[QuickFix]]:
        """
        Validate a name and build quick fixes from the same result.

        Token fixes use the schema snapshot the name was validated against,
        so a concurrent save or delete does not change them.
        """
        result, schema = self._evaluate(campaign_name, platform, version)

        if schema is not None:
            fixes = self.quick_fixes.token_fill(result.campaign_name, schema, result.tokens or [], result.violations)
            metrics.track_quick_fixes([fix.id for fix in fixes])
        else:
            fixes = self.generate_quick_fixes(result.campaign_name, result.violations)

        return result, fixes

    def save_schema(
        self,
        platform: str,
        schema: TokenPositionSchema | Iterable[Mapping[str, Any]],
        changelog: str | None = None,
        created_by: str = "user",
    ) -> SchemaVersion:
        """
        Save a platform schema, replacing the current one (last write wins).

        Args:
            platform: Platform name
            schema: A built schema or a list of position dicts
            changelog: Description of the change
            created_by: Author of the change

        Returns:
            The stored schema version

        Raises:
            MalformedSchemaError: If the schema is rejected
        """
        try:
            if isinstance(schema, TokenPositionSchema):
                if schema.platform != platform:
                    schema = TokenPositionSchema(platform=platform, positions=schema.positions)
            else:
                schema = TokenPositionSchema.from_positions(platform, schema)
        except MalformedSchemaError as e:
            metrics.track_schema_save(str(platform), success=False)
            logger.warning("Rejected malformed schema", platform=platform, error=str(e))
            raise

        entry = self.registry.save(schema, changelog=changelog or "", created_by=created_by)

        metrics.track_schema_save(entry.platform, success=True)
        audit_logger.log_schema_saved(
            platform=entry.platform,
            version=entry.version,
            positions=len(schema),
            created_by=created_by,
        )
        return entry

    def get_schema(self, platform: str, version: int | None = None) -> TokenPositionSchema | None:
        return self.registry.get(platform, version)

    def list_platforms(self) -> list[str]:
        return self.registry.platforms()

    def list_schema_versions(self, platform: str) -> list[SchemaVersion]:
        return self.registry.versions(platform)

    def delete_schema(self, platform: str) -> bool:
        deleted = self.registry.delete(platform)
        if deleted:
            audit_logger.log_schema_deleted(platform=platform)
        return deleted

    @staticmethod
    def _clean_name(campaign_name: Any) -> str:
        if not isinstance(campaign_name, str):
            raise InvalidInputError("Campaign name must be a string")
        name = campaign_name.strip()
        if not name:
            raise InvalidInputError("Campaign name is required")
        return name


def create_validator(seed: bool | None = None) -> CampaignValidator:
    """Create an engine, seeded from the platform rules file when enabled."""
    validator = CampaignValidator(SchemaRegistry())
    if settings.rules.seed_on_startup if seed is None else seed:
        loaded = validator.registry.load_from_yaml(settings.get_rules_file())
        logger.info("Validation engine created", seeded_platforms=loaded)
    return validator


_default_validator: CampaignValidator | None = None


def get_validator() -> CampaignValidator:
    """Get the process-wide default engine, creating it on first use."""
    global _default_validator
    if _default_validator is None:
        _default_validator = create_validator()
    return _default_validator


def reset_validator(validator: CampaignValidator | None = None):
    """Replace the default engine (tests and reloads)."""
    global _default_validator
    _default_validator = validator


# Convenience functions on the default engine
def validate(campaign_name: Any, platform: str | None = None, version: int | None = None) -> ValidationResult:
    return get_validator().validate(campaign_name, platform, version)


def generate_quick_fixes(campaign_name: str, violations: Sequence[Violation], platform: str | None = None) -> list[QuickFix]:
    return get_validator().generate_quick_fixes(campaign_name, violations, platform)


def save_schema(platform: str, schema, changelog: str | None = None, created_by: str = "user") -> SchemaVersion:
    return get_validator().save_schema(platform, schema, changelog, created_by)


def get_schema(platform: str, version: int | None = None) -> TokenPositionSchema | None:
    return get_validator().get_schema(platform, version)
