"""Late fee assessment.

A pure calculation run while an order is being returned.  The rate and
grace period belong to the pricing side and arrive as a ``LateFeePolicy``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal

from rentals.domain.exceptions import ValidationError
from rentals.domain.model.value_objects import Money

DEFAULT_LATE_FEE_RATE = Decimal("0.20")
DEFAULT_GRACE_PERIOD_HOURS = 2

_HOUR = timedelta(hours=1)


@dataclass(frozen=True)
class LateFeePolicy:
    """``rate_per_day`` is a fraction of the daily rate charged per late day."""

    rate_per_day: Decimal = DEFAULT_LATE_FEE_RATE
    grace_period_hours: float = DEFAULT_GRACE_PERIOD_HOURS

    def __post_init__(self) -> None:
        if self.rate_per_day < 0:
            raise ValidationError("Late fee rate cannot be negative")
        if self.grace_period_hours < 0:
            raise ValidationError("Grace period cannot be negative")


@dataclass(frozen=True)
class LateFeeAssessment:
    late_days: int
    late_hours: float
    fee: Money

    @property
    def is_late(self) -> bool:
        return self.late_days > 0


def assess_late_fee(
    expected_return: datetime,
    actual_return: datetime,
    daily_rate: Money,
    policy: LateFeePolicy,
    override_fee: Money | None = None,
) -> LateFeeAssessment:
    """Late days and fee for one return.

    Nothing is charged up to ``expected + grace``.  Past that, every started
    24 hours counts as a late day and costs ``daily_rate × rate_per_day``.
    A manual ``override_fee`` replaces the computed amount but not the
    late-day count.
    """
    grace_end = expected_return + timedelta(hours=policy.grace_period_hours)

    if actual_return <= grace_end:
        late_days, late_hours = 0, 0.0
        fee = Money.zero(daily_rate.currency)
    else:
        late_hours = (actual_return - grace_end) / _HOUR
        late_days = math.ceil(late_hours / 24)
        fee = daily_rate.scaled(policy.rate_per_day * late_days)

    if override_fee is not None:
        fee = override_fee
    return LateFeeAssessment(late_days=late_days, late_hours=late_hours, fee=fee)
