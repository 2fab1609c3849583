"""Inputs and outputs of the reservation lifecycle.

Drafts arrive from the quotation side already priced; pickup and return
details come from the vendor at the counter.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from rentals.domain.model.order import ItemCondition
from rentals.domain.model.stock_movement import StockMovement
from rentals.domain.model.value_objects import DateRange, Money

# A bare product id, or a (product_id, variant_id) pair.
StockRef = str | tuple[str, str | None]


@dataclass(frozen=True)
class DraftItem:
    """One requested line.  ``unit_price`` defaults to the catalog daily rate."""

    product_id: str
    quantity: int
    start: datetime
    end: datetime
    variant_id: str | None = None
    unit_price: Money | None = None


@dataclass(frozen=True)
class ReservationDraft:
    customer_id: str
    vendor_id: str
    items: list[DraftItem]


@dataclass(frozen=True)
class SoftHold:
    product_id: str
    variant_id: str | None
    quantity: int
    period: DateRange
    reserved_at: datetime
    expires_at: datetime


@dataclass(frozen=True)
class ReservationHold:
    order_id: int
    reservations: list[SoftHold]
    expires_at: datetime


@dataclass(frozen=True)
class PickupInfo:
    picked_up_by: str
    picked_up_at: datetime | None = None
    condition: ItemCondition = ItemCondition.GOOD
    notes: str | None = None


@dataclass(frozen=True)
class ReturnInfo:
    """What the vendor records when goods come back.

    ``condition`` applies to every item unless ``item_conditions`` names a
    specific one.  Keys of ``item_conditions`` and ``damage_notes`` are
    either a ``(product_id, variant_id)`` pair, which picks out one line,
    or a bare product id covering every line of that product.
    """

    returned_by: str
    returned_at: datetime | None = None
    condition: ItemCondition = ItemCondition.GOOD
    item_conditions: dict[StockRef, ItemCondition] = field(default_factory=dict)
    damage_notes: dict[StockRef, str] = field(default_factory=dict)
    damage_fee: Money | None = None
    late_fee_override: Money | None = None
    notes: str | None = None

    def condition_for(self, product_id: str, variant_id: str | None = None) -> ItemCondition:
        return _lookup(self.item_conditions, product_id, variant_id, self.condition)

    def notes_for(self, product_id: str, variant_id: str | None = None) -> str | None:
        return _lookup(self.damage_notes, product_id, variant_id, None)


def _lookup(mapping: dict, product_id: str, variant_id: str | None, default):
    if (product_id, variant_id) in mapping:
        return mapping[(product_id, variant_id)]
    return mapping.get(product_id, default)


@dataclass(frozen=True)
class ReturnOutcome:
    movements: list[StockMovement]
    late_days: int
    late_fee: Money
    damage_fee: Money
    total: Money
