"""
Configuration management for the Flamex POS backend
"""


import threading
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from flamex_pos.infrastructure.utilities.constants import ConfigValidation


class Settings(BaseSettings):
    """Application settings"""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # Database configuration
    database_url: str = Field(
        default="sqlite:///./data/flamex_pos.db", description="Database connection URL"
    )
    database_echo: bool = Field(default=False, description="Echo SQL statements")

    # Application settings
    app_name: str = Field(default="Flamex POS", description="Application name")
    log_level: str = Field(default="INFO", description="Logging level")
    log_dir: str = Field(default="logs", description="Directory for rotating log files")
    environment: str = Field(
        default="development", description="Application environment"
    )

    # Business settings
    timezone: str = Field(
        default="Asia/Karachi",
        description="Business timezone; order days and report ranges use its calendar",
    )
    currency: str = Field(default="PKR", description="Currency code")
    default_cashier_name: str = Field(
        default="Cashier", description="Cashier name stamped on new orders"
    )
    critical_business_keys: List[str] = Field(
        default=["business_name", "business_address", "business_phone"],
        description="Business info keys that cannot be deleted",
    )

    # Listing and reporting
    default_page_size: int = Field(default=50, gt=0, description="Default page size")
    default_report_days: int = Field(
        default=30, gt=0, description="Trailing window used when a report has no range"
    )

    # Security
    bcrypt_rounds: int = Field(default=10, ge=4, le=31, description="bcrypt cost factor")

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        if value.upper() not in ConfigValidation.VALID_LOG_LEVELS:
            raise ValueError(f"Unknown log level: {value}")
        return value.upper()

    @field_validator("environment")
    @classmethod
    def _validate_environment(cls, value: str) -> str:
        if value not in ConfigValidation.VALID_ENVIRONMENTS:
            raise ValueError(f"Unknown environment: {value}")
        return value


_settings_instance: Settings | None = None
_settings_lock = threading.Lock()


def get_config() -> Settings:
    """Get the global settings instance, ensuring thread safety."""
    global _settings_instance
    if _settings_instance is None:
        with _settings_lock:
            if _settings_instance is None:
                _settings_instance = Settings()
    return _settings_instance


def reset_config() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    global _settings_instance
    with _settings_lock:
        _settings_instance = None
