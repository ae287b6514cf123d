"""
Configuration Settings
======================

Centralized configuration using Pydantic V2 Settings.
"""

from pydantic import Field, field_validator, ValidationInfo
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    app_env: str = Field(default="development")
    app_debug: bool = Field(default=False)
    database_url: str = Field(default="sqlite:///./data/queueme.db")
    log_level: str = Field(default="INFO")

    # Policy defaults for newly created businesses
    default_max_queue_length: int = Field(default=50, ge=0)
    default_reserved_priority_slots: int = Field(default=10, ge=0)
    default_priority_extension_time: int = Field(default=15, ge=0)

    # Minutes added per waiting customer when a business enables auto wait times
    minutes_per_customer: int = Field(default=5, ge=0)

    # Upper bound on waiting for a business's admission lock
    lock_timeout_seconds: float = Field(default=10.0, gt=0.0)

    @field_validator("default_reserved_priority_slots")
    @classmethod
    def validate_priority_slots(cls, v: int, info: ValidationInfo) -> int:
        """Reserved priority slots cannot exceed the queue length."""
        max_length = info.data.get("default_max_queue_length")
        if max_length is not None and v > max_length:
            raise ValueError(
                f"default_reserved_priority_slots ({v}) must be <= default_max_queue_length ({max_length})"
            )
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level: {v}")
        return level

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


settings = Settings()


def get_settings() -> Settings:
    """Get the global settings instance."""
    return settings
