"""Integration tests for the read-only use cases."""

from datetime import datetime, timedelta, timezone

import pytest

from rentals.application.check_availability import (
    AvailabilityCalendarHandler,
    CheckAvailabilityHandler,
    NextAvailableDateHandler,
)
from rentals.application.send_return_reminders import SendReturnRemindersHandler
from rentals.application.show_order import ShowOrderHandler
from rentals.domain.exceptions import NotFoundError
from rentals.domain.model.availability import AvailabilityRequest
from rentals.domain.model.product import Product
from rentals.domain.model.reservation import DraftItem, PickupInfo, ReservationDraft
from rentals.domain.model.value_objects import DateRange, Money
from tests.fakes import Engine, RecordingNotifier


def _day(day: int, hour: int = 0) -> datetime:
    return datetime(2024, 1, day, hour, tzinfo=timezone.utc)


def _setup() -> Engine:
    return Engine(
        [Product(id="1", name="Bike", quantity_on_hand=2, daily_rate=Money.of("12.50"))]
    )


def _reserve(engine: Engine, qty: int = 1, start: int = 2, end: int = 4, customer="cust-1"):
    draft = ReservationDraft(
        customer_id=customer,
        vendor_id="vendor-1",
        items=[DraftItem("1", qty, _day(start), _day(end))],
    )
    return engine.coordinator.create_reservation(draft).order_id


class TestShowOrder:

    def test_draft_items_are_pending(self):
        engine = _setup()
        order_id = _reserve(engine)

        dto = ShowOrderHandler(engine.order_repo, engine.ledger).handle(order_id)

        assert dto.status == "draft"
        assert dto.items[0].status == "pending"
        assert dto.items[0].line_total == "$25.00"
        assert dto.hold_expires_at is not None
        assert dto.movements == []

    def test_statuses_come_from_the_ledger(self):
        engine = _setup()
        order_id = _reserve(engine)
        engine.coordinator.confirm_reservation(order_id)
        engine.coordinator.process_pickup(order_id, PickupInfo(picked_up_by="Lee"))

        dto = ShowOrderHandler(engine.order_repo, engine.ledger).handle(order_id)

        assert dto.status == "with_customer"
        assert dto.items[0].status == "with_customer"
        assert [m.movement_type for m in dto.movements] == ["reserved", "pickup"]
        assert dto.movements[0].delta == -1

    def test_unknown_order(self):
        engine = _setup()
        with pytest.raises(NotFoundError, match="Order #5 not found"):
            ShowOrderHandler(engine.order_repo, engine.ledger).handle(5)


class TestAvailabilityQueries:

    def test_check(self):
        engine = _setup()
        _reserve(engine, qty=2)

        result = CheckAvailabilityHandler(engine.checker).handle("1", _day(3), _day(5))
        assert not result.available

    def test_check_many(self):
        engine = _setup()
        batch = CheckAvailabilityHandler(engine.checker).handle_many(
            [AvailabilityRequest("1", DateRange(_day(1), _day(2)), quantity=2)]
        )
        assert batch.available

    def test_calendar(self):
        engine = _setup()
        _reserve(engine, qty=1, start=2, end=3)

        days = AvailabilityCalendarHandler(engine.checker).handle("1", _day(1), _day(4))
        assert [d.available for d in days] == [2, 1, 2]

    def test_next_available(self):
        engine = _setup()
        _reserve(engine, qty=2, start=1, end=3)

        result = NextAvailableDateHandler(engine.checker).handle("1", quantity=1)
        assert result.start == _day(3)


class TestReturnReminders:

    def _rented(self, engine: Engine, end: int, customer: str) -> int:
        order_id = _reserve(engine, start=1, end=end, customer=customer)
        engine.coordinator.confirm_reservation(order_id)
        engine.coordinator.process_pickup(order_id, PickupInfo(picked_up_by=customer))
        return order_id

    def test_due_soon_and_overdue_are_reminded(self):
        engine = _setup()
        due_soon = self._rented(engine, end=2, customer="ann")
        later = self._rented(engine, end=9, customer="bo")
        engine.clock.now = _day(1, hour=12)
        notifier = RecordingNotifier()

        reminders = SendReturnRemindersHandler(
            engine.order_repo, notifier, window=timedelta(hours=24), clock=engine.clock
        ).handle()

        assert [r.order_id for r in reminders] == [due_soon]
        assert not reminders[0].overdue
        assert later not in [order_id for _, order_id, _ in notifier.sent]

        engine.clock.now = _day(3)
        reminders = SendReturnRemindersHandler(
            engine.order_repo, notifier, clock=engine.clock
        ).handle()
        assert [r.overdue for r in reminders] == [True]
        assert notifier.sent[-1][2]["customer_id"] == "ann"
