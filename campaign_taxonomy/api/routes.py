"""
API routes for the Campaign Taxonomy Validator.

This module provides:
- Health check endpoint
- Single campaign validation with quick fixes
- Bulk validation of lists and uploaded files
- Default rule listing
- Pydantic request/response schemas
"""

import time
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel, ConfigDict, Field

from ..core.logging import get_logger, with_logging_context
from ..services.bulk import BulkValidator, parse_campaign_file
from ..services.rules import DEFAULT_REGEX_RULES
from ..services.validator import CampaignValidator, InvalidInputError, ValidationEngineError
from .deps import get_bulk_validator, get_settings, get_validator

router = APIRouter()
logger = get_logger("api")


class HealthResponse(BaseModel):
    """Health check response schema."""

    status: str = Field(description="Application status")
    timestamp: datetime = Field(description="Response timestamp")
    version: str = Field(description="Application version")
    environment: str = Field(description="Environment name")
    services: dict[str, str] = Field(description="Service health status")


class ValidateCampaignRequest(BaseModel):
    """Single campaign validation request schema."""

    model_config = ConfigDict(populate_by_name=True)

    # Any: a non-string name is rejected by the engine with a 400, not by pydantic with a 422
    campaign_name: Any = Field(default=None, alias="campaignName", description="Campaign name to validate")
    platform: str | None = Field(default=None, description="Platform whose token schema applies")
    version: int | None = Field(default=None, description="Schema version, latest when omitted")


class BulkCampaignItem(BaseModel):
    """One entry of a bulk validation request."""

    name: Any = Field(default=None, description="Campaign name")
    platform: str | None = Field(default=None, description="Platform for this entry")


class BulkValidateRequest(BaseModel):
    """Bulk validation request schema."""

    campaigns: list[BulkCampaignItem] = Field(description="Campaigns to validate")
    platform: str | None = Field(default=None, description="Platform for the whole batch")
    version: int | None = Field(default=None, description="Schema version, latest when omitted")


class BulkFileRequest(BaseModel):
    """Bulk validation of an uploaded file's text content."""

    content: str = Field(description="CSV (name,platform) or one name per line")
    platform: str | None = Field(default=None, description="Platform for the whole batch")
    version: int | None = Field(default=None, description="Schema version, latest when omitted")


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


@router.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check(validator: CampaignValidator = Depends(get_validator), settings=Depends(get_settings)):
    """
    Health check endpoint.

    Returns application health status including the rule registry.
    """
    services = {}

    try:
        platforms = validator.list_platforms()
        services["schema_registry"] = "healthy"
        logger.debug("Schema registry reachable", platforms=len(platforms))
    except Exception as e:
        logger.error("Schema registry health check failed", error=str(e))
        services["schema_registry"] = "unhealthy"

    overall_status = "healthy" if all(s == "healthy" for s in services.values()) else "degraded"

    return HealthResponse(
        status=overall_status,
        timestamp=datetime.now(),
        version=settings.app.version,
        environment=settings.app.environment,
        services=services,
    )


@router.post("/validate-campaign", tags=["Validation"])
async def validate_campaign(
    request: Request,
    payload: ValidateCampaignRequest,
    validator: CampaignValidator = Depends(get_validator),
) -> dict[str, Any]:
    """
    Validate a campaign name.

    Returns the validation result and ranked quick fixes.
    """
    with with_logging_context(request_id=_request_id(request), platform=payload.platform):
        try:
            result, fixes = validator.validate_with_fixes(payload.campaign_name, payload.platform, payload.version)
        except InvalidInputError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
        except ValidationEngineError:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Internal server error during validation",
            )

        return {
            "result": result.to_dict(),
            "quickFixes": [fix.to_dict() for fix in fixes],
        }


@router.post("/bulk-validate", tags=["Validation"])
async def bulk_validate(
    request: Request,
    payload: BulkValidateRequest,
    bulk: BulkValidator = Depends(get_bulk_validator),
) -> dict[str, Any]:
    """
    Validate a list of campaign names.

    Each item is validated independently; failures get a fallback result.
    """
    campaigns = [item.model_dump() for item in payload.campaigns]
    return _run_batch(request, bulk, campaigns, payload.platform, payload.version)


@router.post("/bulk-validate/file", tags=["Validation"])
async def bulk_validate_file(
    request: Request,
    payload: BulkFileRequest,
    bulk: BulkValidator = Depends(get_bulk_validator),
) -> dict[str, Any]:
    """Validate every campaign name in an uploaded CSV or text file."""
    campaigns = parse_campaign_file(payload.content)
    if not campaigns:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No valid campaign names found in file")
    return _run_batch(request, bulk, campaigns, payload.platform, payload.version)


def _run_batch(request: Request, bulk: BulkValidator, campaigns, platform: str | None, version: int | None):
    start_time = time.time()

    with with_logging_context(request_id=_request_id(request)):
        try:
            batch = bulk.validate_batch(campaigns, platform=platform, version=version)
        except InvalidInputError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

        logger.info(
            "Bulk validation completed",
            batch_id=batch.batch_id,
            total=batch.summary.total,
            fallbacks=batch.summary.fallbacks,
            processing_time=time.time() - start_time,
        )
        return batch.to_dict()


@router.get("/rules/default", tags=["Rules"])
async def get_default_rules() -> dict[str, Any]:
    """List the regex rules used when a platform has no token schema."""
    return {
        "rules": [rule.to_dict() for rule in DEFAULT_REGEX_RULES],
        "maxScore": sum(rule.weight for rule in DEFAULT_REGEX_RULES),
    }
