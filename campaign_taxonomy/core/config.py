"""
Configuration management for the Campaign Taxonomy Validator.

This module provides:
- Pydantic Settings for environment variable loading
- Structured configuration classes for rules, quick fixes and bulk runs
- Validation and type safety for configuration values
- Default values and environment-specific overrides
"""

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent


class AppConfig(BaseSettings):
    """Main application configuration."""
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # App metadata
    app_name: str = Field(default="Campaign Taxonomy Validator", validation_alias="APP_NAME")
    version: str = Field(default="1.0.0", validation_alias="APP_VERSION")
    environment: str = Field(default="development", validation_alias="ENVIRONMENT")
    debug: bool = Field(default=True, validation_alias="DEBUG")

    # API settings
    api_host: str = Field(default="0.0.0.0", validation_alias="API_HOST")
    api_port: int = Field(default=8000, validation_alias="API_PORT")
    api_workers: int = Field(default=1, validation_alias="API_WORKERS")
    cors_origins: list[str] = Field(default=["http://localhost:8080"], validation_alias="CORS_ORIGINS")

    # Logging
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_format: str = Field(default="json", validation_alias="LOG_FORMAT")

    @field_validator('environment')
    @classmethod
    def validate_environment(cls, v: str) -> str:
        allowed = ['development', 'testing', 'staging', 'production']
        if v not in allowed:
            raise ValueError(f'Environment must be one of: {allowed}')
        return v

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        allowed = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in allowed:
            raise ValueError(f'Log level must be one of: {allowed}')
        return v.upper()

    @field_validator('log_format')
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        if v not in ('json', 'console'):
            raise ValueError('Log format must be json or console')
        return v

    @property
    def is_development(self) -> bool:
        return self.environment == 'development'

    @property
    def is_production(self) -> bool:
        return self.environment == 'production'


class RulesConfig(BaseSettings):
    """Platform rule schema configuration."""
    model_config = SettingsConfigDict(
        env_prefix="RULES_",
        case_sensitive=False,
        extra="ignore"
    )

    rules_file: str = Field(
        default=str(PROJECT_ROOT / "config" / "platform_rules.yml"),
        description="YAML file with the seed token schemas per platform"
    )
    seed_on_startup: bool = Field(default=True)

    # Schema limits
    min_positions: int = Field(default=1)
    max_positions: int = Field(default=15)
    default_separator: str = Field(default="_")

    @field_validator('max_positions')
    @classmethod
    def validate_max_positions(cls, v: int) -> int:
        if v < 1:
            raise ValueError('max_positions must be at least 1')
        return v


class QuickFixConfig(BaseSettings):
    """Quick fix defaults used when building corrected names."""
    model_config = SettingsConfigDict(
        env_prefix="FIX_",
        case_sensitive=False,
        extra="ignore"
    )

    default_date_token: str = Field(default="Q4_2024")
    default_channel_token: str = Field(default="Search")
    default_geo_token: str = Field(default="US")
    template_suffix: str = Field(default="Search_US_Promo")

    # Length clamp
    min_length: int = Field(default=10)
    max_length: int = Field(default=80)
    short_name_prefix: str = Field(default="Campaign")
    short_name_suffix: str = Field(default="Marketing")
    ellipsis: str = Field(default="...")

    # Token-mode fill
    placeholder_token: str = Field(default="TBD")
    token_fill_confidence: int = Field(default=70, ge=0, le=100)


class BulkConfig(BaseSettings):
    """Bulk validation configuration."""
    model_config = SettingsConfigDict(
        env_prefix="BULK_",
        case_sensitive=False,
        extra="ignore"
    )

    max_items: int = Field(default=5000)
    fallback_min_parts: int = Field(default=3)
    fallback_valid_score: int = Field(default=60)
    fallback_invalid_score: int = Field(default=20)
    fallback_max_score: int = Field(default=100)
    fallback_fix_confidence: int = Field(default=70)


class Settings:
    """Main settings container with all configuration sections."""

    def __init__(self):
        self.app = AppConfig()
        self.rules = RulesConfig()
        self.quick_fix = QuickFixConfig()
        self.bulk = BulkConfig()

    def get_rules_file(self) -> Path:
        """Get the seed rules file as a path, resolved against the project root."""
        path = Path(self.rules.rules_file)
        if not path.is_absolute():
            path = PROJECT_ROOT / path
        return path


# Global settings instance
settings = Settings()

