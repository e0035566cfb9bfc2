"""
Configuration Management for Balance Reconciliation

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Nothing in the reconciliation core reads the environment directly; it
receives values from these settings or from explicit arguments.
"""

from decimal import Decimal
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ReconciliationSettings(BaseSettings):
    """Balance reconciliation configuration."""

    model_config = SettingsConfigDict(
        env_prefix="RECONCILE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    tolerance: Decimal = Field(
        default=Decimal("0.01"),
        ge=0,
        description="Largest calculated/recorded difference not reported as a divergence"
    )
    display_timezone: str = Field(
        default="UTC",
        description="IANA timezone used to group transactions by calendar day"
    )
    audit_divergences: bool = Field(
        default=True,
        description="Write one audit event per detected divergence"
    )

    # Ledger source retries (transient failures only)
    source_retry_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts per ledger source call"
    )
    source_retry_min_wait: float = Field(
        default=2.0,
        ge=0.0,
        description="Minimum seconds between attempts"
    )
    source_retry_max_wait: float = Field(
        default=10.0,
        ge=0.0,
        description="Maximum seconds between attempts"
    )

    @field_validator('display_timezone')
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Reject timezone names the IANA database doesn't know."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone: {v}")
        return v

    @property
    def zone(self) -> ZoneInfo:
        """Display timezone as a tzinfo."""
        return ZoneInfo(self.display_timezone)


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    @property
    def reconciliation(self) -> ReconciliationSettings:
        return ReconciliationSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, plus an error message
    for each section that failed to load.
    """
    results = {}

    settings = get_settings()

    try:
        settings.reconciliation
        results["reconciliation"] = True
    except Exception as e:
        results["reconciliation"] = False
        results["reconciliation_error"] = str(e)

    return results
