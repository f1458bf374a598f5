"""
Configuration Module

Application settings via Pydantic Settings, plus the immutable rule set the
enrollment engine is constructed with. Supports environment variables and
.env files.
"""

from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application-wide configuration settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Campus Course & Records Manager"
    app_version: str = "1.0.0"
    environment: Literal["development", "staging", "production"] = "development"

    # Enrollment rules
    max_credits_per_semester: int = Field(default=18, ge=0)
    min_credits_per_semester: int = Field(default=12, ge=0)
    enrollment_deadline_hours: int = Field(
        default=168, ge=0, description="Hours after enrollment during which a drop is allowed"
    )

    # Runtime verification
    verify_invariants: bool = Field(
        default=True, description="Check ledger invariants after every mutation"
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["json", "text"] = "text"


class EnrollmentRules(BaseModel):
    """
    Business rule limits handed to the enrollment engine at construction time.

    Frozen: a running engine never observes a rule change.
    """

    model_config = ConfigDict(frozen=True)

    max_credits_per_semester: int = Field(default=18, ge=0)
    min_credits_per_semester: int = Field(default=12, ge=0)
    drop_deadline_hours: int = Field(default=168, ge=0)

    @model_validator(mode="after")
    def validate_credit_bounds(self) -> "EnrollmentRules":
        """Minimum credit load cannot exceed the maximum."""
        if self.min_credits_per_semester > self.max_credits_per_semester:
            raise ValueError(
                f"min_credits_per_semester ({self.min_credits_per_semester}) exceeds "
                f"max_credits_per_semester ({self.max_credits_per_semester})"
            )
        return self

    @classmethod
    def from_settings(cls, settings: Settings) -> "EnrollmentRules":
        """Build the rule set from application settings."""
        return cls(
            max_credits_per_semester=settings.max_credits_per_semester,
            min_credits_per_semester=settings.min_credits_per_semester,
            drop_deadline_hours=settings.enrollment_deadline_hours,
        )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings: Application settings
    """
    return Settings()
