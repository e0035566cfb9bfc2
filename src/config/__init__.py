"""Configuration package."""

from src.config.settings import (
    ReconciliationSettings,
    Settings,
    get_settings,
    validate_all_settings,
)

__all__ = [
    "ReconciliationSettings",
    "Settings",
    "get_settings",
    "validate_all_settings",
]
