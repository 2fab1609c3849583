"""Runtime settings, read from the environment.

A ``.env`` file in the working directory is loaded first, so every value
below can be set there instead of in the shell.  Values already present
in the environment win over the file.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import TypeVar

from dotenv import load_dotenv

from rentals.domain.exceptions import ValidationError
from rentals.domain.service.late_fee import (
    DEFAULT_GRACE_PERIOD_HOURS,
    DEFAULT_LATE_FEE_RATE,
    LateFeePolicy,
)
from rentals.domain.service.locking import DEFAULT_LOCK_TIMEOUT_SECONDS

# Resolve data directory relative to the project root.
# When installed in editable mode the project root is the repo root.
DEFAULT_DATA_DIR = Path(__file__).resolve().parents[3] / "data"

T = TypeVar("T")


@dataclass(frozen=True)
class Settings:
    data_dir: Path = DEFAULT_DATA_DIR
    hold_minutes: int = 30
    late_fee_rate: Decimal = DEFAULT_LATE_FEE_RATE
    grace_period_hours: float = DEFAULT_GRACE_PERIOD_HOURS
    lock_timeout_seconds: float = DEFAULT_LOCK_TIMEOUT_SECONDS
    max_retries: int = 3
    retry_backoff_seconds: float = 0.05
    log_level: str = "INFO"
    log_dir: Path | None = None

    @property
    def hold_window(self) -> timedelta:
        return timedelta(minutes=self.hold_minutes)

    @property
    def late_fee_policy(self) -> LateFeePolicy:
        return LateFeePolicy(
            rate_per_day=self.late_fee_rate,
            grace_period_hours=self.grace_period_hours,
        )

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """Build settings from ``environ`` (defaults to ``os.environ`` + ``.env``)."""
        if environ is None:
            load_dotenv(override=False)
            environ = os.environ

        def get(name: str) -> str | None:
            value = environ.get(name)
            return value.strip() if value and value.strip() else None

        data_dir = get("RENTALS_DATA_DIR")
        log_dir = get("RENTALS_LOG_DIR")
        settings = cls(
            data_dir=Path(data_dir) if data_dir else DEFAULT_DATA_DIR,
            hold_minutes=_parse(get("RENTALS_HOLD_MINUTES"), int, 30, "RENTALS_HOLD_MINUTES"),
            late_fee_rate=_parse(
                get("RENTALS_LATE_FEE_RATE"), Decimal, DEFAULT_LATE_FEE_RATE,
                "RENTALS_LATE_FEE_RATE",
            ),
            grace_period_hours=_parse(
                get("RENTALS_GRACE_PERIOD_HOURS"), float, DEFAULT_GRACE_PERIOD_HOURS,
                "RENTALS_GRACE_PERIOD_HOURS",
            ),
            lock_timeout_seconds=_parse(
                get("RENTALS_LOCK_TIMEOUT_SECONDS"), float, DEFAULT_LOCK_TIMEOUT_SECONDS,
                "RENTALS_LOCK_TIMEOUT_SECONDS",
            ),
            max_retries=_parse(get("RENTALS_MAX_RETRIES"), int, 3, "RENTALS_MAX_RETRIES"),
            retry_backoff_seconds=_parse(
                get("RENTALS_RETRY_BACKOFF_SECONDS"), float, 0.05,
                "RENTALS_RETRY_BACKOFF_SECONDS",
            ),
            log_level=(get("RENTALS_LOG_LEVEL") or "INFO").upper(),
            log_dir=Path(log_dir) if log_dir else None,
        )
        settings.validate()
        return settings

    def validate(self) -> None:
        if self.hold_minutes < 1:
            raise ValidationError("RENTALS_HOLD_MINUTES must be at least 1")
        if self.max_retries < 1:
            raise ValidationError("RENTALS_MAX_RETRIES must be at least 1")
        if self.lock_timeout_seconds <= 0:
            raise ValidationError("RENTALS_LOCK_TIMEOUT_SECONDS must be positive")
        if self.late_fee_rate < 0:
            raise ValidationError("RENTALS_LATE_FEE_RATE cannot be negative")
        if self.grace_period_hours < 0:
            raise ValidationError("RENTALS_GRACE_PERIOD_HOURS cannot be negative")


def _parse(raw: str | None, convert: Callable[[str], T], default: T, name: str) -> T:
    if raw is None:
        return default
    try:
        return convert(raw)
    except (ValueError, InvalidOperation):
        raise ValidationError(f"{name} has an invalid value: '{raw}'")
