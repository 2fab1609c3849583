"""Domain service: Availability Checker.

Answers "how many units of a product/variant are free for a window?" by
scanning the orders that hold stock in that window.  Nothing is cached:
every call re-reads the orders and the ledger, because a stale answer is
exactly how two customers end up with the same unit.

Reserved quantity is the *peak* of a per-day histogram over the query
window, not the sum of overlapping bookings.  An item rented for ten days
occupies one unit on each of those days, not ten units.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Callable, Iterator
from datetime import date, datetime, time, timedelta, timezone

from rentals.domain.exceptions import NotFoundError, ValidationError
from rentals.domain.model.availability import (
    AvailabilityRequest,
    AvailabilityResult,
    BatchAvailability,
    CalendarDay,
    Conflict,
    NextAvailability,
)
from rentals.domain.model.order import Order, OrderLineItem
from rentals.domain.model.order_status import STOCK_COMMITTING_STATUSES, OrderStatus
from rentals.domain.model.stock_movement import Location
from rentals.domain.model.value_objects import DateRange, Quantity
from rentals.domain.repository.order_repository import OrderRepository
from rentals.domain.repository.product_repository import ProductRepository
from rentals.domain.service.stock_ledger import StockLedger

logger = logging.getLogger(__name__)

NEXT_AVAILABLE_HORIZON_DAYS = 90

# (window, quantity) pairs that occupy stock without belonging to a saved
# order yet, e.g. earlier lines of the batch being checked.
_Pending = list[tuple[DateRange, int]]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AvailabilityChecker:

    def __init__(
        self,
        product_repo: ProductRepository,
        order_repo: OrderRepository,
        ledger: StockLedger,
        clock: Callable[[], datetime] = _utcnow,
        horizon_days: int = NEXT_AVAILABLE_HORIZON_DAYS,
    ) -> None:
        self._product_repo = product_repo
        self._order_repo = order_repo
        self._ledger = ledger
        self._clock = clock
        self._horizon_days = horizon_days

    # --- Public queries -------------------------------------------------------

    def check_availability(
        self,
        product_id: str,
        start: datetime,
        end: datetime,
        quantity: int = 1,
        variant_id: str | None = None,
        exclude_order_id: int | None = None,
        include_holds: bool = True,
    ) -> AvailabilityResult:
        """Check whether ``quantity`` units are free for ``[start, end)``.

        ``exclude_order_id`` leaves one order out of the scan (used when the
        order itself is being re-checked).  ``include_holds`` counts live
        draft soft holds; commit-time re-checks turn it off because holds
        are advisory.
        """
        request = AvailabilityRequest(
            product_id=product_id,
            period=DateRange(start, end),
            quantity=quantity,
            variant_id=variant_id,
        )
        return self._check(request, exclude_order_id, include_holds, pending=[])

    def check_multiple_availability(
        self,
        requests: list[AvailabilityRequest],
        exclude_order_id: int | None = None,
        include_holds: bool = True,
    ) -> BatchAvailability:
        """Check several items as one booking; all must fit or none do.

        Earlier requests for the same product/variant count against later
        ones, so two lines of one order cannot both claim the last unit.
        """
        if not requests:
            raise ValidationError("At least one item is required")

        pending: dict[tuple[str, str | None], _Pending] = defaultdict(list)
        results: list[AvailabilityResult] = []
        for request in requests:
            key = (request.product_id, request.variant_id)
            results.append(
                self._check(request, exclude_order_id, include_holds, pending[key])
            )
            pending[key].append((request.period, request.quantity))

        batch = BatchAvailability(results=results)
        if not batch.available:
            logger.info(
                "Batch availability failed for %d of %d items",
                len(batch.unavailable),
                len(results),
            )
        return batch

    def get_availability_calendar(
        self,
        product_id: str,
        start: datetime,
        end: datetime,
        variant_id: str | None = None,
    ) -> list[CalendarDay]:
        """Per-day total/reserved/available figures for ``[start, end)``."""
        period = DateRange(start, end)
        total = self._total_quantity(product_id, variant_id)
        windows = [
            (item.rental_period, item.quantity.value)
            for _, item in self._holders(product_id, variant_id, period, None, True)
        ]
        histogram = self._daily_histogram(period, windows)
        return [
            CalendarDay(date=day, total=total, reserved=reserved)
            for day, reserved in histogram.items()
        ]

    def get_next_available_date(
        self,
        product_id: str,
        quantity: int = 1,
        duration_days: int = 1,
        variant_id: str | None = None,
    ) -> NextAvailability:
        """First window of ``duration_days`` from today that fits ``quantity``.

        Walks forward one day at a time up to the search horizon.
        """
        if duration_days < 1:
            raise ValidationError("Rental duration must be at least one day")

        now = self._clock()
        today = datetime.combine(now.date(), time.min, tzinfo=now.tzinfo)
        for offset in range(self._horizon_days):
            start = today + timedelta(days=offset)
            end = start + timedelta(days=duration_days)
            result = self.check_availability(
                product_id, start, end, quantity=quantity, variant_id=variant_id
            )
            if result.available:
                return NextAvailability(found=True, start=start, end=end)

        return NextAvailability(
            found=False,
            message=f"No availability found in the next {self._horizon_days} days",
        )

    def check_extension(
        self,
        order: Order,
        new_end: datetime,
        include_holds: bool = True,
    ) -> BatchAvailability:
        """Check that every item of ``order`` can stay out until ``new_end``."""
        requests = [
            AvailabilityRequest(
                product_id=item.product_id,
                period=DateRange(item.rental_period.end, new_end),
                quantity=item.quantity.value,
                variant_id=item.variant_id,
            )
            for item in order.items
        ]
        return self.check_multiple_availability(
            requests, exclude_order_id=order.id, include_holds=include_holds
        )

    # --- Core algorithm -------------------------------------------------------

    def _check(
        self,
        request: AvailabilityRequest,
        exclude_order_id: int | None,
        include_holds: bool,
        pending: _Pending,
    ) -> AvailabilityResult:
        Quantity(request.quantity)
        total = self._total_quantity(request.product_id, request.variant_id)

        holders = list(
            self._holders(
                request.product_id,
                request.variant_id,
                request.period,
                exclude_order_id,
                include_holds,
            )
        )
        windows = [(item.rental_period, item.quantity.value) for _, item in holders]
        windows.extend(w for w in pending if w[0].overlaps(request.period))

        histogram = self._daily_histogram(request.period, windows)
        reserved = max(histogram.values(), default=0)

        conflicts: list[Conflict] = []
        if total - reserved < request.quantity:
            conflicts = [
                Conflict(order_id=order_id, period=item.rental_period, quantity=item.quantity.value)
                for order_id, item in holders
            ]
            logger.debug(
                "Product %s unavailable for %s: need %d, free %d",
                request.product_id,
                request.period,
                request.quantity,
                total - reserved,
            )

        return AvailabilityResult(
            product_id=request.product_id,
            variant_id=request.variant_id,
            period=request.period,
            requested_quantity=request.quantity,
            total_quantity=total,
            reserved_quantity=reserved,
            conflicts=conflicts,
        )

    def _total_quantity(self, product_id: str, variant_id: str | None) -> int:
        """Owned units minus the ones sitting in maintenance."""
        product = self._product_repo.get_by_id(product_id)
        if product is None:
            raise NotFoundError(f"Product '{product_id}' not found")
        product.ensure_rentable()

        owned = product.quantity_for(variant_id)
        in_maintenance = self._ledger.balance(product_id, variant_id, Location.MAINTENANCE)
        return max(owned - in_maintenance, 0)

    def _holders(
        self,
        product_id: str,
        variant_id: str | None,
        period: DateRange,
        exclude_order_id: int | None,
        include_holds: bool,
    ) -> Iterator[tuple[int, OrderLineItem]]:
        """Yield ``(order_id, item)`` for every line holding stock in ``period``."""
        statuses = set(STOCK_COMMITTING_STATUSES)
        if include_holds:
            statuses.add(OrderStatus.DRAFT)

        now = self._clock()
        for order in self._order_repo.list_by_status(statuses):
            if exclude_order_id is not None and order.id == exclude_order_id:
                continue
            if order.status == OrderStatus.DRAFT and not order.is_holding(now):
                continue
            for item in order.items_for(product_id, variant_id):
                if item.rental_period.overlaps(period):
                    yield order.id, item  # type: ignore[misc]

    @staticmethod
    def _daily_histogram(
        period: DateRange, windows: list[tuple[DateRange, int]]
    ) -> dict[date, int]:
        """Quantity committed on each calendar day of ``period``."""
        return {
            day: sum(qty for window, qty in windows if window.touches_day(day))
            for day in period.days()
        }
