"""Transient availability values.

These are computed on demand by the availability checker and never
persisted or cached: a stale answer is how overbooking happens.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime

from rentals.domain.model.value_objects import DateRange


@dataclass(frozen=True)
class Conflict:
    """An order holding stock that overlaps the requested window."""

    order_id: int
    period: DateRange
    quantity: int


@dataclass(frozen=True)
class AvailabilityRequest:
    product_id: str
    period: DateRange
    quantity: int = 1
    variant_id: str | None = None


@dataclass(frozen=True)
class AvailabilityResult:
    product_id: str
    variant_id: str | None
    period: DateRange
    requested_quantity: int
    total_quantity: int
    reserved_quantity: int
    conflicts: list[Conflict] = field(default_factory=list)

    @property
    def available_quantity(self) -> int:
        return self.total_quantity - self.reserved_quantity

    @property
    def available(self) -> bool:
        return self.available_quantity >= self.requested_quantity


@dataclass(frozen=True)
class BatchAvailability:
    """All-or-nothing answer for several items checked together."""

    results: list[AvailabilityResult]

    @property
    def available(self) -> bool:
        return all(result.available for result in self.results)

    @property
    def unavailable(self) -> list[AvailabilityResult]:
        return [result for result in self.results if not result.available]


@dataclass(frozen=True)
class CalendarDay:
    date: date
    total: int
    reserved: int

    @property
    def available(self) -> int:
        return self.total - self.reserved


@dataclass(frozen=True)
class NextAvailability:
    found: bool
    start: datetime | None = None
    end: datetime | None = None
    message: str = ""
