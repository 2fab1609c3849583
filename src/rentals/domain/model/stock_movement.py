"""Stock movement — one immutable ledger entry.

Every lifecycle transition of an order writes one movement per line item.
Movements are never updated or deleted; current allocation is always
reconstructed from the full history.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from rentals.domain.exceptions import ValidationError

if TYPE_CHECKING:
    from rentals.domain.model.order import OrderLineItem


class MovementType(Enum):
    RESERVED = "reserved"
    RELEASED = "released"
    PICKUP = "pickup"
    RETURN = "return"
    REPAIRED = "repaired"


class Location(Enum):
    WAREHOUSE = "warehouse"
    RESERVED = "reserved"
    WITH_CUSTOMER = "with_customer"
    MAINTENANCE = "maintenance"


# Sign applied to ``quantity`` to get the movement's delta: its effect on
# the units an order keeps out of the shared pool.  Summed over one order
# the deltas are zero once the order is terminal.
_DELTA_SIGN = {
    MovementType.RESERVED: -1,
    MovementType.RELEASED: 1,
    MovementType.PICKUP: 0,
    MovementType.RETURN: 1,
    MovementType.REPAIRED: 0,
}


@dataclass(frozen=True)
class StockMovement:
    product_id: str
    variant_id: str | None
    order_id: int | None
    movement_type: MovementType
    quantity: int
    from_location: Location
    to_location: Location
    occurred_at: datetime
    note: str = ""
    delta: int = field(default=0, init=False)

    def __post_init__(self) -> None:
        if self.quantity <= 0:
            raise ValidationError("Movement quantity must be positive")
        if self.from_location == self.to_location:
            raise ValidationError("Movement must change location")
        object.__setattr__(
            self, "delta", _DELTA_SIGN[self.movement_type] * self.quantity
        )

    @property
    def stock_key(self) -> tuple[str, str | None]:
        return (self.product_id, self.variant_id)

    @staticmethod
    def reserve(item: OrderLineItem, order_id: int, at: datetime, note: str) -> StockMovement:
        return StockMovement(
            product_id=item.product_id,
            variant_id=item.variant_id,
            order_id=order_id,
            movement_type=MovementType.RESERVED,
            quantity=item.quantity.value,
            from_location=Location.WAREHOUSE,
            to_location=Location.RESERVED,
            occurred_at=at,
            note=note,
        )

    @staticmethod
    def release(item: OrderLineItem, order_id: int, at: datetime, note: str) -> StockMovement:
        return StockMovement(
            product_id=item.product_id,
            variant_id=item.variant_id,
            order_id=order_id,
            movement_type=MovementType.RELEASED,
            quantity=item.quantity.value,
            from_location=Location.RESERVED,
            to_location=Location.WAREHOUSE,
            occurred_at=at,
            note=note,
        )

    @staticmethod
    def pickup(item: OrderLineItem, order_id: int, at: datetime, note: str) -> StockMovement:
        return StockMovement(
            product_id=item.product_id,
            variant_id=item.variant_id,
            order_id=order_id,
            movement_type=MovementType.PICKUP,
            quantity=item.quantity.value,
            from_location=Location.RESERVED,
            to_location=Location.WITH_CUSTOMER,
            occurred_at=at,
            note=note,
        )

    @staticmethod
    def return_to(
        item: OrderLineItem, order_id: int, destination: Location, at: datetime, note: str
    ) -> StockMovement:
        return StockMovement(
            product_id=item.product_id,
            variant_id=item.variant_id,
            order_id=order_id,
            movement_type=MovementType.RETURN,
            quantity=item.quantity.value,
            from_location=Location.WITH_CUSTOMER,
            to_location=destination,
            occurred_at=at,
            note=note,
        )
