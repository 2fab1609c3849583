"""Unit tests for stock movements and the stock ledger."""

from datetime import datetime, timezone

import pytest

from rentals.domain.exceptions import ValidationError
from rentals.domain.model.order import OrderLineItem
from rentals.domain.model.stock_movement import Location, MovementType, StockMovement
from rentals.domain.model.value_objects import DateRange, Money, Quantity
from rentals.domain.service.stock_ledger import StockLedger
from tests.fakes import FakeStockMovementRepository

_NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _item(qty: int = 2, product_id: str = "1", variant_id: str | None = None) -> OrderLineItem:
    return OrderLineItem(
        product_id=product_id,
        product_name="Tent",
        quantity=Quantity(qty),
        rental_period=DateRange(_NOW, datetime(2024, 1, 3, tzinfo=timezone.utc)),
        unit_price=Money.of("20.00"),
        variant_id=variant_id,
    )


def _ledger() -> tuple[StockLedger, FakeStockMovementRepository]:
    repo = FakeStockMovementRepository()
    return StockLedger(repo), repo


class TestStockMovement:

    def test_deltas_by_type(self):
        item = _item(qty=2)
        assert StockMovement.reserve(item, 1, _NOW, "").delta == -2
        assert StockMovement.release(item, 1, _NOW, "").delta == 2
        assert StockMovement.pickup(item, 1, _NOW, "").delta == 0
        assert StockMovement.return_to(item, 1, Location.WAREHOUSE, _NOW, "").delta == 2

    def test_reserve_moves_warehouse_to_reserved(self):
        movement = StockMovement.reserve(_item(), 7, _NOW, "note")
        assert movement.movement_type == MovementType.RESERVED
        assert movement.from_location == Location.WAREHOUSE
        assert movement.to_location == Location.RESERVED
        assert movement.order_id == 7

    def test_zero_quantity_rejected(self):
        with pytest.raises(ValidationError, match="must be positive"):
            StockMovement(
                product_id="1",
                variant_id=None,
                order_id=None,
                movement_type=MovementType.REPAIRED,
                quantity=0,
                from_location=Location.MAINTENANCE,
                to_location=Location.WAREHOUSE,
                occurred_at=_NOW,
            )

    def test_same_location_rejected(self):
        with pytest.raises(ValidationError, match="must change location"):
            StockMovement(
                product_id="1",
                variant_id=None,
                order_id=None,
                movement_type=MovementType.REPAIRED,
                quantity=1,
                from_location=Location.WAREHOUSE,
                to_location=Location.WAREHOUSE,
                occurred_at=_NOW,
            )


class TestStockLedger:

    def test_record_and_balances(self):
        ledger, _ = _ledger()
        item = _item(qty=2)
        ledger.record([StockMovement.reserve(item, 1, _NOW, "")])

        assert ledger.balance("1", None, Location.RESERVED) == 2
        assert ledger.balance("1", None, Location.WAREHOUSE, opening_warehouse=5) == 3

    def test_full_cycle_nets_to_zero(self):
        ledger, _ = _ledger()
        item = _item(qty=2)
        ledger.record([StockMovement.reserve(item, 1, _NOW, "")])
        ledger.record([StockMovement.pickup(item, 1, _NOW, "")])
        ledger.record([StockMovement.return_to(item, 1, Location.WAREHOUSE, _NOW, "")])

        assert ledger.net_delta_for_order(1) == 0
        for location in (Location.RESERVED, Location.WITH_CUSTOMER, Location.MAINTENANCE):
            assert ledger.balance("1", None, location) == 0

    def test_release_without_reserve_rejected(self):
        ledger, repo = _ledger()
        with pytest.raises(ValidationError, match="reserved negative"):
            ledger.record([StockMovement.release(_item(), 1, _NOW, "")])
        assert repo.all() == []

    def test_invalid_batch_writes_nothing(self):
        ledger, repo = _ledger()
        good = StockMovement.reserve(_item(product_id="1"), 1, _NOW, "")
        bad = StockMovement.pickup(_item(product_id="2"), 1, _NOW, "")
        with pytest.raises(ValidationError):
            ledger.record([good, bad])
        assert repo.all() == []

    def test_variants_are_tracked_separately(self):
        ledger, _ = _ledger()
        ledger.record([StockMovement.reserve(_item(qty=1, variant_id="large"), 1, _NOW, "")])
        assert ledger.balance("1", "large", Location.RESERVED) == 1
        assert ledger.balance("1", None, Location.RESERVED) == 0

    def test_item_status_follows_latest_movement(self):
        ledger, _ = _ledger()
        item = _item()
        assert ledger.item_status(1, "1") == "pending"

        ledger.record([StockMovement.reserve(item, 1, _NOW, "")])
        assert ledger.item_status(1, "1") == "reserved"

        ledger.record([StockMovement.pickup(item, 1, _NOW, "")])
        assert ledger.item_status(1, "1") == "with_customer"

        ledger.record([StockMovement.return_to(item, 1, Location.MAINTENANCE, _NOW, "")])
        assert ledger.item_status(1, "1") == "returned"

    def test_movements_for_order_in_order(self):
        ledger, _ = _ledger()
        item = _item()
        ledger.record([StockMovement.reserve(item, 1, _NOW, "a")])
        ledger.record([StockMovement.release(item, 1, _NOW, "b")])
        notes = [m.note for m in ledger.movements_for_order(1)]
        assert notes == ["a", "b"]
