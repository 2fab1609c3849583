"""Tests for settings loaded from the environment."""

from decimal import Decimal
from pathlib import Path

import pytest

from rentals.domain.exceptions import ValidationError
from rentals.infrastructure.config import DEFAULT_DATA_DIR, Settings


class TestSettings:

    def test_defaults(self):
        settings = Settings.from_env({})
        assert settings.data_dir == DEFAULT_DATA_DIR
        assert settings.hold_minutes == 30
        assert settings.late_fee_rate == Decimal("0.20")
        assert settings.grace_period_hours == 2
        assert settings.max_retries == 3
        assert settings.log_level == "INFO"
        assert settings.log_dir is None

    def test_overrides(self, tmp_path):
        settings = Settings.from_env(
            {
                "RENTALS_DATA_DIR": str(tmp_path),
                "RENTALS_HOLD_MINUTES": "15",
                "RENTALS_LATE_FEE_RATE": "0.10",
                "RENTALS_GRACE_PERIOD_HOURS": "0",
                "RENTALS_LOG_LEVEL": "debug",
                "RENTALS_LOG_DIR": str(tmp_path / "logs"),
            }
        )
        assert settings.data_dir == Path(tmp_path)
        assert settings.hold_window.total_seconds() == 15 * 60
        assert settings.late_fee_policy.rate_per_day == Decimal("0.10")
        assert settings.late_fee_policy.grace_period_hours == 0
        assert settings.log_level == "DEBUG"
        assert settings.log_dir == tmp_path / "logs"

    def test_blank_values_use_defaults(self):
        assert Settings.from_env({"RENTALS_HOLD_MINUTES": "  "}).hold_minutes == 30

    def test_garbage_rejected(self):
        with pytest.raises(ValidationError, match="RENTALS_MAX_RETRIES"):
            Settings.from_env({"RENTALS_MAX_RETRIES": "many"})

    def test_out_of_range_rejected(self):
        with pytest.raises(ValidationError, match="RENTALS_HOLD_MINUTES"):
            Settings.from_env({"RENTALS_HOLD_MINUTES": "0"})
        with pytest.raises(ValidationError, match="RENTALS_LATE_FEE_RATE"):
            Settings.from_env({"RENTALS_LATE_FEE_RATE": "-1"})
