"""
FastAPI dependency providers for the Campaign Taxonomy Validator.

This module provides:
- Configuration access
- The validation engine and bulk validator
"""

from fastapi import Depends

from ..core.config import Settings, settings
from ..core.logging import get_logger
from ..services.bulk import BulkValidator
from ..services.validator import CampaignValidator
from ..services.validator import get_validator as get_default_validator


logger = get_logger("api.deps")


def get_settings() -> Settings:
    """
    Get application settings.

    Returns:
        Settings instance
    """
    return settings


def get_validator() -> CampaignValidator:
    """
    Get the validation engine.

    Returns:
        Process-wide CampaignValidator
    """
    return get_default_validator()


def get_bulk_validator(
    validator: CampaignValidator = Depends(get_validator),
    app_settings: Settings = Depends(get_settings),
) -> BulkValidator:
    """Get a bulk validator bound to the current engine."""
    return BulkValidator(validator, app_settings.bulk)
