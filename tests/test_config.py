"""
Tests for configuration loading.
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest
from pydantic import ValidationError

from src.config import ReconciliationSettings, get_settings, validate_all_settings


class TestReconciliationSettings:
    """Tests for reconciliation settings."""

    def test_defaults(self, monkeypatch):
        """Test default values when nothing is configured."""
        for name in ("TOLERANCE", "DISPLAY_TIMEZONE", "AUDIT_DIVERGENCES"):
            monkeypatch.delenv(f"RECONCILE_{name}", raising=False)

        settings = ReconciliationSettings(_env_file=None)

        assert settings.tolerance == Decimal("0.01")
        assert settings.display_timezone == "UTC"
        assert settings.audit_divergences is True
        assert settings.source_retry_attempts == 3

    def test_reads_prefixed_environment(self, monkeypatch):
        monkeypatch.setenv("RECONCILE_TOLERANCE", "0.5")
        monkeypatch.setenv("RECONCILE_DISPLAY_TIMEZONE", "America/Sao_Paulo")
        monkeypatch.setenv("RECONCILE_AUDIT_DIVERGENCES", "false")

        settings = ReconciliationSettings(_env_file=None)

        assert settings.tolerance == Decimal("0.5")
        assert settings.audit_divergences is False
        noon_utc = datetime(2024, 1, 5, 12, tzinfo=timezone.utc)
        assert noon_utc.astimezone(settings.zone).hour == 9

    def test_rejects_unknown_timezone(self):
        with pytest.raises(ValidationError, match="Unknown timezone"):
            ReconciliationSettings(display_timezone="Mars/Olympus_Mons", _env_file=None)

    def test_rejects_negative_tolerance(self):
        with pytest.raises(ValidationError):
            ReconciliationSettings(tolerance=Decimal("-1"), _env_file=None)


class TestSettingsContainer:
    """Tests for the cached root settings."""

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()

    def test_validate_all_settings(self):
        results = validate_all_settings()
        assert results["reconciliation"] is True


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
