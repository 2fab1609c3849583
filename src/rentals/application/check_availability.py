"""Application service: availability queries (read-only)."""

from __future__ import annotations

from datetime import datetime

from rentals.domain.model.availability import (
    AvailabilityRequest,
    AvailabilityResult,
    BatchAvailability,
    CalendarDay,
    NextAvailability,
)
from rentals.domain.service.availability_checker import AvailabilityChecker


class CheckAvailabilityHandler:

    def __init__(self, checker: AvailabilityChecker) -> None:
        self._checker = checker

    def handle(
        self,
        product_id: str,
        start: datetime,
        end: datetime,
        quantity: int = 1,
        variant_id: str | None = None,
    ) -> AvailabilityResult:
        return self._checker.check_availability(
            product_id, start, end, quantity=quantity, variant_id=variant_id
        )

    def handle_many(self, requests: list[AvailabilityRequest]) -> BatchAvailability:
        return self._checker.check_multiple_availability(requests)


class AvailabilityCalendarHandler:

    def __init__(self, checker: AvailabilityChecker) -> None:
        self._checker = checker

    def handle(
        self,
        product_id: str,
        start: datetime,
        end: datetime,
        variant_id: str | None = None,
    ) -> list[CalendarDay]:
        return self._checker.get_availability_calendar(
            product_id, start, end, variant_id=variant_id
        )


class NextAvailableDateHandler:

    def __init__(self, checker: AvailabilityChecker) -> None:
        self._checker = checker

    def handle(
        self,
        product_id: str,
        quantity: int = 1,
        duration_days: int = 1,
        variant_id: str | None = None,
    ) -> NextAvailability:
        return self._checker.get_next_available_date(
            product_id,
            quantity=quantity,
            duration_days=duration_days,
            variant_id=variant_id,
        )
