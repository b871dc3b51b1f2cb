"""
Bulk validation of uploaded campaign names.

Every item is validated on its own: a failure on one name is logged, replaced
by a conservative structural fallback result, and never aborts the batch.
"""

import csv
import io
import re
import uuid
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from ..core.config import BulkConfig, settings
from ..core.logging import audit_logger, get_logger, with_logging_context
from ..models.entities import QuickFix, ValidationResult, Violation
from ..observability.metrics import metrics
from .validator import CampaignValidator, InvalidInputError, get_validator


logger = get_logger("services.bulk")

_NON_ALNUM_RE = re.compile(r"[^a-zA-Z0-9]")


@dataclass
class CampaignEntry:
    """One campaign name from an upload, with its optional platform column."""
    name: Any
    platform: str | None = None

    @classmethod
    def coerce(cls, item: Any) -> "CampaignEntry":
        if isinstance(item, CampaignEntry):
            return item
        if isinstance(item, Mapping):
            name = item.get("name", item.get("campaignName", item.get("originalName")))
            return cls(name=name, platform=item.get("platform") or None)
        return cls(name=item)


@dataclass
class BulkItemResult:
    """Validation outcome for one batch item."""
    id: str
    original_name: str
    platform: str | None
    result: ValidationResult
    quick_fixes: list[QuickFix] = field(default_factory=list)
    fallback: bool = False

    @property
    def status(self) -> str:
        return "valid" if self.result.is_valid else "invalid"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "originalName": self.original_name,
            "platform": self.platform,
            "status": self.status,
            "fallback": self.fallback,
            "validationResult": self.result.to_dict(),
            "quickFixes": [fix.to_dict() for fix in self.quick_fixes],
        }


@dataclass
class BatchSummary:
    """Aggregate counts for a batch."""
    total: int = 0
    valid: int = 0
    invalid: int = 0
    avg_score: float = 0.0
    fallbacks: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "valid": self.valid,
            "invalid": self.invalid,
            "avgScore": self.avg_score,
            "fallbacks": self.fallbacks,
        }


@dataclass
class BatchResult:
    """Results of one bulk validation run."""
    batch_id: str
    items: list[BulkItemResult]
    summary: BatchSummary

    def to_dict(self) -> dict[str, Any]:
        return {
            "batchId": self.batch_id,
            "results": [item.to_dict() for item in self.items],
            "summary": self.summary.to_dict(),
        }


class BulkValidator:
    """Runs the validation engine over a list of campaign names."""

    def __init__(self, validator: CampaignValidator | None = None, config: BulkConfig | None = None):
        self.validator = validator or get_validator()
        self.config = config or settings.bulk

    def validate_batch(
        self,
        campaigns: Iterable[Any],
        platform: str | None = None,
        version: int | None = None,
    ) -> BatchResult:
        """
        Validate every campaign in a batch.

        Args:
            campaigns: Names, ``{"name", "platform"}`` dicts or CampaignEntry items
            platform: Platform for the whole batch; overrides per-item platforms
            version: Schema version to validate against

        Returns:
            Per-item results and a summary

        Raises:
            InvalidInputError: If the batch exceeds the configured size limit
        """
        entries = [CampaignEntry.coerce(item) for item in campaigns]
        if len(entries) > self.config.max_items:
            raise InvalidInputError(
                f"Batch has {len(entries)} campaigns, the limit is {self.config.max_items}"
            )

        batch_id = str(uuid.uuid4())
        items = []

        with with_logging_context(batch_id=batch_id, platform=platform):
            logger.info("Bulk validation started", total=len(entries), version=version)

            for i, entry in enumerate(entries):
                item_id = f"{batch_id}-{i + 1}"
                item_platform = platform or entry.platform
                items.append(self._validate_item(item_id, entry, item_platform, version))

            summary = self.summarize(items)
            audit_logger.log_batch_validated(
                batch_id=batch_id,
                total=summary.total,
                valid=summary.valid,
                fallbacks=summary.fallbacks,
            )

        return BatchResult(batch_id=batch_id, items=items, summary=summary)

    def _validate_item(
        self,
        item_id: str,
        entry: CampaignEntry,
        platform: str | None,
        version: int | None,
    ) -> BulkItemResult:
        original_name = entry.name if isinstance(entry.name, str) else ("" if entry.name is None else str(entry.name))

        try:
            result, fixes = self.validator.validate_with_fixes(entry.name, platform, version)
        except Exception as e:
            logger.warning(
                "Validation error for campaign, using structural fallback",
                item_id=item_id,
                campaign_name=original_name,
                error=str(e),
            )
            metrics.track_bulk_item("fallback")
            result, fixes = self.fallback_result(original_name, platform)
            return BulkItemResult(
                id=item_id,
                original_name=original_name,
                platform=platform,
                result=result,
                quick_fixes=fixes,
                fallback=True,
            )

        metrics.track_bulk_item("valid" if result.is_valid else "invalid")
        return BulkItemResult(
            id=item_id,
            original_name=original_name,
            platform=platform,
            result=result,
            quick_fixes=fixes,
        )

    def fallback_result(self, campaign_name: str, platform: str | None = None) -> tuple[ValidationResult, list[QuickFix]]:
        """Minimal underscore-structure check used when the engine fails on an item."""
        parts = campaign_name.split("_")
        if len(parts) >= self.config.fallback_min_parts:
            result = ValidationResult(
                campaign_name=campaign_name,
                is_valid=True,
                score=self.config.fallback_valid_score,
                max_score=self.config.fallback_max_score,
                violations=[],
                suggestions=["Campaign structure looks good"],
                platform=platform,
            )
            return result, []

        result = ValidationResult(
            campaign_name=campaign_name,
            is_valid=False,
            score=self.config.fallback_invalid_score,
            max_score=self.config.fallback_max_score,
            violations=[Violation(
                rule_id="structure",
                rule_name="Basic Structure",
                description=(
                    f"Campaign name should have at least {self.config.fallback_min_parts} "
                    "parts separated by underscores"
                ),
                suggestion="Use format like: Brand_Type_Target or similar structure",
                weight=20,
            )],
            suggestions=["Add more descriptive parts to your campaign name"],
            platform=platform,
        )

        if "_" in campaign_name:
            suggested = campaign_name + "_Campaign"
        else:
            suggested = _NON_ALNUM_RE.sub("_", campaign_name) + "_Type_Target"
        fix = QuickFix(
            id="basic-fix",
            description="Add basic structure",
            suggested_name=suggested,
            confidence=self.config.fallback_fix_confidence,
        )
        return result, [fix]

    @staticmethod
    def summarize(items: list[BulkItemResult]) -> BatchSummary:
        total = len(items)
        valid = sum(1 for item in items if item.result.is_valid)
        scores = sum(item.result.score for item in items)
        return BatchSummary(
            total=total,
            valid=valid,
            invalid=total - valid,
            avg_score=round(scores / total, 2) if total else 0.0,
            fallbacks=sum(1 for item in items if item.fallback),
        )


def parse_campaign_file(content: str) -> list[CampaignEntry]:
    """
    Parse an uploaded file: ``campaign_name,platform`` CSV rows, or one name
    per line when the content has no commas. Blank lines are skipped.
    """
    lines = [line for line in content.splitlines() if line.strip()]
    if "," not in content:
        return [CampaignEntry(name=line.strip()) for line in lines]

    entries = []
    for row in csv.reader(io.StringIO("\n".join(lines))):
        if not row:
            continue
        name = row[0].strip()
        platform = row[1].strip() if len(row) > 1 and row[1].strip() else None
        entries.append(CampaignEntry(name=name, platform=platform))
    return entries
