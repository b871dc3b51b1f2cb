"""
Platform rules API.

Endpoints for authoring token-position schemas:
- Save a platform schema (creates a new version)
- List all platform schemas
- Get one platform schema, optionally at a given version
- List a platform's version history
- Delete a platform schema
"""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from pydantic import BaseModel, ConfigDict, Field

from ..core.logging import get_logger, with_logging_context
from ..services.validator import CampaignValidator, MalformedSchemaError
from .deps import get_validator

router = APIRouter(prefix="/platform-rules", tags=["Platform Rules"])
logger = get_logger("api.platform_rules")


class SavePlatformRulesRequest(BaseModel):
    """Save platform rules request schema."""

    model_config = ConfigDict(populate_by_name=True)

    platform: str | None = Field(default=None, description="Platform name")
    token_positions: list[Any] | None = Field(
        default=None, alias="tokenPositions", description="Ordered token positions"
    )
    changelog: str | None = Field(default=None, description="Description of the change")
    created_by: str = Field(default="user", alias="createdBy", description="Author of the change")


class SavePlatformRulesResponse(BaseModel):
    """Save platform rules response schema."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    message: str
    platform: str
    rules_count: int = Field(alias="rulesCount")
    version: int


@router.post("", response_model=SavePlatformRulesResponse)
async def save_platform_rules(
    request: Request,
    payload: SavePlatformRulesRequest,
    validator: CampaignValidator = Depends(get_validator),
):
    """
    Save the token schema for a platform.

    Replaces the current schema; the previous one stays in the version history.
    """
    if not payload.platform or payload.token_positions is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Platform and token positions are required",
        )

    with with_logging_context(request_id=getattr(request.state, "request_id", None), platform=payload.platform):
        try:
            entry = validator.save_schema(
                payload.platform,
                payload.token_positions,
                changelog=payload.changelog,
                created_by=payload.created_by,
            )
        except MalformedSchemaError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

        logger.info("Platform rules saved", platform=entry.platform, version=entry.version)

        return SavePlatformRulesResponse(
            success=True,
            message=f"Rules saved for {entry.platform}",
            platform=entry.platform,
            rules_count=len(entry.schema),
            version=entry.version,
        )


@router.get("")
async def list_platform_rules(validator: CampaignValidator = Depends(get_validator)) -> dict[str, Any]:
    """List every platform and its latest schema."""
    rule_sets = [entry.to_dict() for entry in validator.registry.latest()]
    return {
        "platforms": [rule_set["platform"] for rule_set in rule_sets],
        "ruleSets": rule_sets,
    }


@router.get("/{platform}")
async def get_platform_rules(
    platform: str,
    version: int | None = Query(default=None, ge=1, description="Schema version, latest when omitted"),
    validator: CampaignValidator = Depends(get_validator),
) -> dict[str, Any]:
    """Get a platform's schema."""
    entry = validator.registry.get_version(platform, version)
    if entry is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No rules found for platform: {platform}",
        )
    return entry.to_dict()


@router.get("/{platform}/versions")
async def get_platform_rule_versions(
    platform: str,
    validator: CampaignValidator = Depends(get_validator),
) -> dict[str, Any]:
    """Get a platform's version history, oldest first."""
    history = validator.list_schema_versions(platform)
    if not history:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No rules found for platform: {platform}",
        )
    return {
        "platform": platform,
        "currentVersion": history[-1].version,
        "versions": [entry.to_dict(include_schema=False) for entry in history],
    }


@router.delete("/{platform}")
async def delete_platform_rules(
    platform: str,
    validator: CampaignValidator = Depends(get_validator),
) -> dict[str, Any]:
    """Remove a platform's schema; its names fall back to the default rules."""
    if not validator.delete_schema(platform):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No rules found for platform: {platform}",
        )
    return {"success": True, "message": f"Rules deleted for {platform}", "platform": platform}
