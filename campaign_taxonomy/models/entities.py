"""
Domain entities for the Campaign Taxonomy Validator.

This module provides:
- Token position rules and platform schemas (immutable snapshots)
- Whole-string regex rules
- Validation results, violations and quick fixes
- Schema versions kept by the registry
"""

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any

from ..core.config import settings


class TaxonomyError(Exception):
    """Base exception for taxonomy validation errors."""
    pass


class MalformedSchemaError(TaxonomyError):
    """A token schema was rejected at configuration time."""
    pass


class ViolationSeverity(Enum):
    """Severity levels for violations."""
    ERROR = "error"
    WARNING = "warning"


class ValidationMode(Enum):
    """Rule representation used for a validation."""
    TOKEN = "token"
    REGEX = "regex"


def _string_tuple(values: Any, what: str) -> tuple[str, ...]:
    if values is None:
        return ()
    if isinstance(values, str) or not isinstance(values, Iterable):
        raise MalformedSchemaError(f"{what} must be a list of strings")
    result: list[str] = []
    for value in values:
        if not isinstance(value, str):
            raise MalformedSchemaError(f"{what} must contain only strings, got {value!r}")
        if value not in result:
            result.append(value)
    return tuple(result)


def _synonym_map(synonyms: Any, what: str) -> Mapping[str, tuple[str, ...]]:
    if synonyms is None:
        return MappingProxyType({})
    if not isinstance(synonyms, Mapping):
        raise MalformedSchemaError(f"{what} must be a mapping of canonical value to aliases")
    parsed = {}
    for canonical, aliases in synonyms.items():
        if not isinstance(canonical, str) or not canonical:
            raise MalformedSchemaError(f"{what} keys must be non-empty strings, got {canonical!r}")
        parsed[canonical] = _string_tuple(aliases, f"{what}[{canonical!r}]")
    return MappingProxyType(parsed)


@dataclass(frozen=True)
class TokenPositionRule:
    """
    One position of a platform naming schema.

    A format pattern is implicitly anchored: it must match the whole token
    (`re.fullmatch`), so `[0-9]{4}` accepts "2024" but not "x2024".
    """
    index: int
    name: str
    required: bool = False
    allowed_values: tuple[str, ...] = ()
    synonyms: Mapping[str, tuple[str, ...]] = field(default_factory=dict)
    format_pattern: str | None = None
    format_description: str | None = None
    separator: str = "_"
    description: str = ""
    id: str = ""

    def __post_init__(self):
        label = f"Position {self.index + 1}"
        if not isinstance(self.separator, str):
            raise MalformedSchemaError(f"{label}: separator must be a string")

        object.__setattr__(self, "allowed_values", _string_tuple(self.allowed_values, f"{label} allowed values"))
        object.__setattr__(self, "synonyms", _synonym_map(self.synonyms, f"{label} synonyms"))

        compiled = None
        if self.format_pattern:
            if not isinstance(self.format_pattern, str):
                raise MalformedSchemaError(f"{label}: format pattern must be a string")
            try:
                compiled = re.compile(self.format_pattern)
            except re.error as e:
                raise MalformedSchemaError(
                    f"{label}: invalid format pattern {self.format_pattern!r}: {e}"
                ) from e
        else:
            object.__setattr__(self, "format_pattern", None)

        aliases = frozenset(alias for group in self.synonyms.values() for alias in group)
        object.__setattr__(self, "_compiled_pattern", compiled)
        object.__setattr__(self, "_alias_pool", aliases)

    @property
    def alias_pool(self) -> frozenset[str]:
        """All aliases of all canonical values, pooled."""
        return self._alias_pool

    @property
    def points(self) -> int:
        """Points earned when this position validates."""
        return 10 if self.required else 5

    def accepts(self, token: str) -> bool:
        """Check a non-empty token against this position."""
        if self._compiled_pattern is not None:
            return self._compiled_pattern.fullmatch(token) is not None
        if self.allowed_values:
            return token in self.allowed_values or token in self._alias_pool
        return True

    def to_dict(self) -> dict[str, Any]:
        """Convert position to dictionary."""
        return {
            "id": self.id,
            "position": self.index,
            "name": self.name,
            "description": self.description,
            "required": self.required,
            "allowedValues": list(self.allowed_values),
            "formatPattern": self.format_pattern,
            "formatDescription": self.format_description,
            "separator": self.separator,
            "synonyms": {key: list(aliases) for key, aliases in self.synonyms.items()},
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], default_index: int) -> "TokenPositionRule":
        """Build a position from an API payload or YAML entry (camelCase or snake_case)."""
        if not isinstance(data, Mapping):
            raise MalformedSchemaError(f"Position {default_index + 1} must be an object")

        def pick(*keys, default=None):
            for key in keys:
                if key in data:
                    return data[key]
            return default

        index = pick("position", "index", default=default_index)
        if not isinstance(index, int) or isinstance(index, bool) or index < 0:
            raise MalformedSchemaError(f"Position {default_index + 1}: index must be a non-negative integer")

        required = pick("required", default=False)
        if required is None:
            required = False
        if not isinstance(required, bool):
            raise MalformedSchemaError(f"Position {default_index + 1}: required must be true or false")

        separator = pick("separator", default=settings.rules.default_separator)
        if separator is None:
            separator = ""

        return cls(
            index=index,
            name=str(pick("name", default="") or f"Position {index + 1}"),
            required=required,
            allowed_values=pick("allowedValues", "allowed_values", default=()),
            synonyms=pick("synonyms", default=None),
            format_pattern=pick("formatPattern", "format_pattern"),
            format_description=pick("formatDescription", "format_description"),
            separator=separator,
            description=str(pick("description", default="") or ""),
            id=str(pick("id", default=str(index + 1))),
        )


@dataclass(frozen=True)
class TokenPositionSchema:
    """Ordered token positions defining a platform's naming convention."""
    platform: str
    positions: tuple[TokenPositionRule, ...]

    def __post_init__(self):
        positions = tuple(self.positions)
        object.__setattr__(self, "positions", positions)

        min_positions = settings.rules.min_positions
        max_positions = settings.rules.max_positions
        if not min_positions <= len(positions) <= max_positions:
            raise MalformedSchemaError(
                f"Schema for {self.platform!r} must have between {min_positions} and "
                f"{max_positions} positions, got {len(positions)}"
            )
        for position in positions:
            if not isinstance(position, TokenPositionRule):
                raise MalformedSchemaError("Schema positions must be TokenPositionRule instances")

    def __len__(self) -> int:
        return len(self.positions)

    def __iter__(self):
        return iter(self.positions)

    @property
    def required_count(self) -> int:
        return sum(1 for position in self.positions if position.required)

    @property
    def max_score(self) -> int:
        return 10 * self.required_count

    def expected_structure(self) -> str:
        """Render the schema as a readable template, e.g. ``Brand_Category_Market``."""
        parts = []
        last = len(self.positions) - 1
        for i, position in enumerate(self.positions):
            name = position.name.replace(" ", "")
            parts.append(name if i == last else name + position.separator)
        return "".join(parts)

    def to_dict(self) -> dict[str, Any]:
        return {
            "platform": self.platform,
            "tokenPositions": [position.to_dict() for position in self.positions],
        }

    @classmethod
    def from_positions(cls, platform: str, positions: Iterable[Mapping[str, Any]]) -> "TokenPositionSchema":
        """
        Build and validate a schema from plain position dicts.

        Positions are ordered by their declared index; entries without an
        index keep their list order.

        Raises:
            MalformedSchemaError: If the payload does not describe a valid schema
        """
        if not isinstance(platform, str) or not platform.strip():
            raise MalformedSchemaError("Platform name is required")
        if positions is None or isinstance(positions, (str, Mapping)):
            raise MalformedSchemaError("Token positions must be a list")

        rules = [TokenPositionRule.from_dict(data, i) for i, data in enumerate(positions)]
        rules.sort(key=lambda rule: rule.index)
        return cls(platform=platform.strip(), positions=tuple(rules))


@dataclass(frozen=True)
class RegexRule:
    """Whole-string rule tested case-insensitively against the campaign name."""
    id: str
    name: str
    pattern: str
    weight: int
    error_message: str
    required: bool = True
    description: str = ""
    examples: tuple[str, ...] = ()

    def __post_init__(self):
        if self.weight < 0:
            raise ValueError(f"Rule {self.id} weight must be nonnegative")
        object.__setattr__(self, "examples", tuple(self.examples))
        object.__setattr__(self, "_compiled", re.compile(self.pattern, re.IGNORECASE))

    def matches(self, campaign_name: str) -> bool:
        return self._compiled.search(campaign_name) is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "pattern": self.pattern,
            "required": self.required,
            "weight": self.weight,
            "errorMessage": self.error_message,
            "examples": list(self.examples),
        }


@dataclass
class Violation:
    """A single failed rule check."""
    rule_id: str
    rule_name: str
    description: str
    suggestion: str
    weight: int
    severity: ViolationSeverity = ViolationSeverity.ERROR

    def to_dict(self) -> dict[str, Any]:
        return {
            "ruleId": self.rule_id,
            "ruleName": self.rule_name,
            "description": self.description,
            "severity": self.severity.value,
            "suggestion": self.suggestion,
            "weight": self.weight,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Violation":
        return cls(
            rule_id=data.get("ruleId", data.get("rule_id", "")),
            rule_name=data.get("ruleName", data.get("rule_name", "")),
            description=data.get("description", ""),
            suggestion=data.get("suggestion", ""),
            weight=int(data.get("weight", 0)),
            severity=ViolationSeverity(data.get("severity", "error")),
        )


@dataclass
class ValidationResult:
    """Result of validating one campaign name."""
    campaign_name: str
    is_valid: bool
    score: int
    max_score: int
    violations: list[Violation]
    suggestions: list[str]
    platform: str | None = None
    mode: ValidationMode = ValidationMode.REGEX
    tokens: list[str] | None = None

    @property
    def rule_ids(self) -> list[str]:
        return [v.rule_id for v in self.violations]

    def to_dict(self) -> dict[str, Any]:
        """Convert result to dictionary."""
        data = {
            "campaignName": self.campaign_name,
            "isValid": self.is_valid,
            "score": self.score,
            "maxScore": self.max_score,
            "violations": [v.to_dict() for v in self.violations],
            "suggestions": list(self.suggestions),
            "platform": self.platform,
            "mode": self.mode.value,
        }
        if self.tokens is not None:
            data["tokens"] = list(self.tokens)
        return data


@dataclass
class QuickFix:
    """A candidate corrected campaign name."""
    id: str
    description: str
    suggested_name: str
    confidence: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "description": self.description,
            "suggestedName": self.suggested_name,
            "confidence": self.confidence,
        }


@dataclass(frozen=True)
class SchemaVersion:
    """One saved revision of a platform schema."""
    platform: str
    version: int
    schema: TokenPositionSchema
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    created_by: str = "system"
    changelog: str = ""

    def to_dict(self, include_schema: bool = True) -> dict[str, Any]:
        data = {
            "platform": self.platform,
            "version": self.version,
            "createdAt": self.created_at.isoformat(),
            "createdBy": self.created_by,
            "changelog": self.changelog,
            "rulesCount": len(self.schema),
        }
        if include_schema:
            data["tokenPositions"] = [p.to_dict() for p in self.schema.positions]
        return data
